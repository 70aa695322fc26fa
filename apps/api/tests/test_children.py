from __future__ import annotations

from datetime import datetime, timezone

from app.db import get_connection

from .api_helpers import auth_headers, client, create_child, reset_state


def test_create_and_list_children() -> None:
    reset_state()
    created = create_child("parent-1", name="  Maya  ", weight=3.4)

    assert created["name"] == "Maya"
    assert created["gender"] == "Female"
    assert created["relationship"] == "Mom"
    assert created["is_primary"] is True
    assert created["weight"] == 3.4
    assert created["height"] is None

    response = client.get("/api/v1/children", headers=auth_headers("parent-1"))
    assert response.status_code == 200
    children = response.json()
    assert [child["id"] for child in children] == [created["id"]]


def test_children_are_scoped_to_the_caller() -> None:
    reset_state()
    created = create_child("parent-1")

    assert client.get("/api/v1/children", headers=auth_headers("stranger")).json() == []
    response = client.get(f"/api/v1/children/{created['id']}", headers=auth_headers("stranger"))
    assert response.status_code == 404
    response = client.put(
        f"/api/v1/children/{created['id']}",
        json={"name": "Renamed"},
        headers=auth_headers("stranger"),
    )
    assert response.status_code == 404
    response = client.delete(f"/api/v1/children/{created['id']}", headers=auth_headers("stranger"))
    assert response.status_code == 404


def test_update_child_applies_only_sent_fields() -> None:
    reset_state()
    created = create_child("parent-1", height=50.5)

    response = client.put(
        f"/api/v1/children/{created['id']}",
        json={"name": "Maya Rose", "relationship": "Dad", "weight": 4.1},
        headers=auth_headers("parent-1"),
    )
    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "Maya Rose"
    assert body["relationship"] == "Dad"
    assert body["weight"] == 4.1
    assert body["height"] == 50.5
    assert body["date_of_birth"].startswith("2024-01-01")


def test_update_child_rejects_blank_name() -> None:
    reset_state()
    created = create_child("parent-1")
    response = client.put(
        f"/api/v1/children/{created['id']}",
        json={"name": "   "},
        headers=auth_headers("parent-1"),
    )
    assert response.status_code == 400


def test_create_child_requires_fields() -> None:
    reset_state()
    response = client.post(
        "/api/v1/children",
        json={"name": "Maya", "gender": "Female"},
        headers=auth_headers("parent-1"),
    )
    assert response.status_code == 422


def test_delete_last_relation_removes_child_records() -> None:
    reset_state()
    created = create_child("parent-1")
    client.post(
        "/api/v1/activities",
        json={
            "child_id": created["id"],
            "title": "Tummy time",
            "category": "play",
            "recorded_at": "2024-02-01T09:00:00+00:00",
        },
        headers=auth_headers("parent-1"),
    )

    response = client.delete(f"/api/v1/children/{created['id']}", headers=auth_headers("parent-1"))
    assert response.status_code == 200
    assert response.json() == {"success": True, "child_deleted": True}

    with get_connection() as conn:
        assert conn.execute("SELECT COUNT(*) FROM children").fetchone()[0] == 0
        assert conn.execute("SELECT COUNT(*) FROM activities").fetchone()[0] == 0


def test_delete_keeps_child_shared_with_another_caregiver() -> None:
    reset_state()
    created = create_child("parent-1")
    with get_connection() as conn:
        conn.execute(
            """
            INSERT INTO user_child_relations (id, user_id, child_id, relationship, is_primary, created_at)
            VALUES (?, ?, ?, ?, 0, ?)
            """,
            ("rel-2", "grandma", created["id"], "Grandparent", datetime.now(timezone.utc).isoformat()),
        )
        conn.commit()

    response = client.delete(f"/api/v1/children/{created['id']}", headers=auth_headers("parent-1"))
    assert response.json()["child_deleted"] is False

    response = client.get(f"/api/v1/children/{created['id']}", headers=auth_headers("grandma"))
    assert response.status_code == 200
    assert response.json()["relationship"] == "Grandparent"
    response = client.get(f"/api/v1/children/{created['id']}", headers=auth_headers("parent-1"))
    assert response.status_code == 404
