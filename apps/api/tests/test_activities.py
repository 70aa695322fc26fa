from __future__ import annotations

from .api_helpers import auth_headers, client, create_child, reset_state


def _log_activity(user_id: str, child_id: str, **overrides) -> dict:
    payload = {
        "child_id": child_id,
        "title": "Tummy time",
        "category": "play",
        "recorded_at": "2024-02-01T09:00:00+00:00",
        "duration": 15,
    }
    payload.update(overrides)
    response = client.post("/api/v1/activities", json=payload, headers=auth_headers(user_id))
    assert response.status_code == 201, response.text
    return response.json()


def test_activities_are_listed_newest_first() -> None:
    reset_state()
    child = create_child("parent-1")
    older = _log_activity("parent-1", child["id"], title="Bath", category="other")
    newer = _log_activity("parent-1", child["id"], recorded_at="2024-02-03T09:00:00+00:00")

    response = client.get("/api/v1/activities", headers=auth_headers("parent-1"))
    assert response.status_code == 200
    data = response.json()
    assert [item["id"] for item in data] == [newer["id"], older["id"]]
    assert data[0]["child_name"] == "Maya"
    assert data[0]["duration"] == 15


def test_activity_filter_by_child() -> None:
    reset_state()
    first = create_child("parent-1")
    second = create_child("parent-1", name="Leo", gender="Male")
    _log_activity("parent-1", first["id"])
    leo_activity = _log_activity("parent-1", second["id"], title="Reading", category="learning")

    response = client.get(
        "/api/v1/activities",
        params={"child_id": second["id"]},
        headers=auth_headers("parent-1"),
    )
    assert [item["id"] for item in response.json()] == [leo_activity["id"]]


def test_activity_requires_access_to_child() -> None:
    reset_state()
    child = create_child("parent-1")
    response = client.post(
        "/api/v1/activities",
        json={
            "child_id": child["id"],
            "title": "Walk",
            "category": "outdoor",
            "recorded_at": "2024-02-01T09:00:00+00:00",
        },
        headers=auth_headers("stranger"),
    )
    assert response.status_code == 404
    assert response.json()["detail"] == "Child not found or access denied"


def test_activity_validation() -> None:
    reset_state()
    child = create_child("parent-1")
    base = {
        "child_id": child["id"],
        "title": "Walk",
        "category": "outdoor",
        "recorded_at": "2024-02-01T09:00:00+00:00",
    }
    headers = auth_headers("parent-1")
    assert client.post("/api/v1/activities", json={**base, "title": "  "}, headers=headers).status_code == 400
    assert client.post("/api/v1/activities", json={**base, "duration": 0}, headers=headers).status_code == 422
    assert client.post("/api/v1/activities", json={**base, "duration": 1441}, headers=headers).status_code == 422
    assert client.post("/api/v1/activities", json={**base, "category": "napping"}, headers=headers).status_code == 422


def test_update_and_delete_activity() -> None:
    reset_state()
    child = create_child("parent-1")
    activity = _log_activity("parent-1", child["id"], description="On the mat")
    headers = auth_headers("parent-1")

    response = client.put(
        f"/api/v1/activities/{activity['id']}",
        json={"title": "Tummy time (long)", "description": ""},
        headers=headers,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["title"] == "Tummy time (long)"
    assert body["description"] is None
    assert body["category"] == "play"

    assert client.get(f"/api/v1/activities/{activity['id']}", headers=auth_headers("stranger")).status_code == 404
    assert client.delete(f"/api/v1/activities/{activity['id']}", headers=auth_headers("stranger")).status_code == 404

    assert client.delete(f"/api/v1/activities/{activity['id']}", headers=headers).status_code == 200
    assert client.get(f"/api/v1/activities/{activity['id']}", headers=headers).status_code == 404


def test_activities_with_mixed_offsets_are_ordered_by_instant() -> None:
    reset_state()
    child = create_child("parent-1")
    earlier = _log_activity("parent-1", child["id"], title="Breakfast", recorded_at="2024-02-01T10:00:00+05:30")
    later = _log_activity("parent-1", child["id"], title="Nap", recorded_at="2024-02-01T05:00:00+00:00")

    response = client.get("/api/v1/activities", headers=auth_headers("parent-1"))
    assert [item["id"] for item in response.json()] == [later["id"], earlier["id"]]
    assert response.json()[1]["recorded_at"].startswith("2024-02-01T04:30:00")
