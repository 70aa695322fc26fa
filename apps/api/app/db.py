"""SQLite helpers."""
from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Optional
from uuid import uuid4

from .config import CONFIG
from .schemas import Activity, Child, Milestone, User, UserProfile

_DB_PATH = CONFIG.resolved_database_path
_DB_PATH.parent.mkdir(parents=True, exist_ok=True)

CHILD_COLUMNS = {
    "name",
    "date_of_birth",
    "gender",
    "head_circumference",
    "height",
    "weight",
    "profile_image",
}
RELATION_COLUMNS = {"relationship", "is_primary"}
ACTIVITY_COLUMNS = {"title", "description", "duration", "category", "recorded_at", "image"}
MILESTONE_COLUMNS = {"title", "description", "achieved_at", "photos"}
# Sorted as text, so always stored in UTC.
TIMESTAMP_COLUMNS = {"recorded_at", "achieved_at"}

_CHILD_SELECT = """
    SELECT
        c.*,
        r.id AS relation_id,
        r.relationship AS relationship,
        r.is_primary AS is_primary,
        r.created_at AS relation_created_at
    FROM children c
    JOIN user_child_relations r ON r.child_id = c.id
"""

_ACTIVITY_SELECT = """
    SELECT a.*, c.name AS child_name
    FROM activities a
    JOIN children c ON c.id = a.child_id
    JOIN user_child_relations r ON r.child_id = c.id
"""

_MILESTONE_SELECT = """
    SELECT m.*, c.name AS child_name, c.profile_image AS child_profile_image
    FROM milestones m
    JOIN children c ON c.id = m.child_id
    JOIN user_child_relations r ON r.child_id = c.id
"""


def initialize_db() -> None:
    with sqlite3.connect(_DB_PATH) as conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS users (
                id TEXT PRIMARY KEY,
                name TEXT,
                email TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );
            """
        )

        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS user_profiles (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL UNIQUE,
                phone TEXT,
                language TEXT NOT NULL DEFAULT 'English',
                avatar TEXT,
                onboarding_completed INTEGER NOT NULL DEFAULT 0,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                FOREIGN KEY (user_id) REFERENCES users(id)
            );
            """
        )

        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS children (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                date_of_birth TEXT,
                gender TEXT NOT NULL,
                head_circumference REAL,
                height REAL,
                weight REAL,
                profile_image TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );
            """
        )

        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS user_child_relations (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                child_id TEXT NOT NULL,
                relationship TEXT NOT NULL,
                is_primary INTEGER NOT NULL DEFAULT 0,
                created_at TEXT NOT NULL,
                FOREIGN KEY (user_id) REFERENCES users(id),
                FOREIGN KEY (child_id) REFERENCES children(id)
            );
            """
        )

        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS activities (
                id TEXT PRIMARY KEY,
                child_id TEXT NOT NULL,
                title TEXT NOT NULL,
                description TEXT,
                duration INTEGER,
                category TEXT,
                recorded_at TEXT NOT NULL,
                image TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                FOREIGN KEY (child_id) REFERENCES children(id)
            );
            """
        )

        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS milestones (
                id TEXT PRIMARY KEY,
                child_id TEXT NOT NULL,
                title TEXT NOT NULL,
                description TEXT,
                achieved_at TEXT NOT NULL,
                photos TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                FOREIGN KEY (child_id) REFERENCES children(id)
            );
            """
        )

        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_relations_user_child ON user_child_relations(user_id, child_id)"
        )
        conn.commit()


@contextmanager
def get_connection() -> Iterator[sqlite3.Connection]:
    conn = sqlite3.connect(_DB_PATH)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    finally:
        conn.close()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _new_id() -> str:
    return uuid4().hex


def _row_to_dict(row: sqlite3.Row | None) -> dict:
    if row is None:
        return {}
    return {key: row[key] for key in row.keys()}


def _to_db_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if hasattr(value, "value"):
        return value.value
    if isinstance(value, bool):
        return 1 if value else 0
    return value


def _utc_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def _build_set_clause(updates: Dict[str, Any], allowed: set[str]) -> tuple[str, List[Any]]:
    fields: List[str] = []
    params: List[Any] = []
    for column, value in updates.items():
        if column not in allowed:
            raise ValueError(f"Unsupported column {column}")
        fields.append(f"{column} = ?")
        if column in TIMESTAMP_COLUMNS and isinstance(value, datetime):
            params.append(_utc_timestamp(value))
        else:
            params.append(_to_db_value(value))
    return ", ".join(fields), params


# Users and profiles


def ensure_user(user_id: str, *, name: Optional[str] = None, email: Optional[str] = None) -> User:
    """Create the user row on first sight; later calls leave it untouched."""
    now = _now()
    with get_connection() as conn:
        conn.execute(
            """
            INSERT OR IGNORE INTO users (id, name, email, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (user_id, name, email, now, now),
        )
        conn.commit()
    return get_user(user_id)


def get_user(user_id: str) -> User:
    with get_connection() as conn:
        row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
    if not row:
        raise ValueError(f"User {user_id} not found")
    return User.model_validate(_row_to_dict(row))


def update_user_name(user_id: str, name: str) -> User:
    with get_connection() as conn:
        conn.execute(
            "UPDATE users SET name = ?, updated_at = ? WHERE id = ?",
            (name, _now(), user_id),
        )
        conn.commit()
    return get_user(user_id)


def get_user_profile(user_id: str) -> Optional[UserProfile]:
    with get_connection() as conn:
        row = conn.execute("SELECT * FROM user_profiles WHERE user_id = ?", (user_id,)).fetchone()
    if not row:
        return None
    return UserProfile.model_validate(_row_to_dict(row))


def upsert_user_profile(
    user_id: str,
    *,
    phone: Optional[str] = None,
    language: Optional[str] = None,
    onboarding_completed: Optional[bool] = None,
) -> UserProfile:
    now = _now()
    existing = get_user_profile(user_id)
    with get_connection() as conn:
        if existing:
            conn.execute(
                """
                UPDATE user_profiles SET
                    phone = COALESCE(?, phone),
                    language = COALESCE(?, language),
                    onboarding_completed = COALESCE(?, onboarding_completed),
                    updated_at = ?
                WHERE user_id = ?
                """,
                (
                    phone,
                    _to_db_value(language),
                    _to_db_value(onboarding_completed),
                    now,
                    user_id,
                ),
            )
        else:
            conn.execute(
                """
                INSERT INTO user_profiles (
                    id, user_id, phone, language, onboarding_completed, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    _new_id(),
                    user_id,
                    phone,
                    _to_db_value(language) or "English",
                    1 if onboarding_completed else 0,
                    now,
                    now,
                ),
            )
        conn.commit()
    profile = get_user_profile(user_id)
    if profile is None:
        raise ValueError(f"Profile for user {user_id} not found")
    return profile


# Children


def _row_to_child(row: sqlite3.Row) -> Child:
    return Child.model_validate(_row_to_dict(row))


def create_child(
    user_id: str,
    *,
    name: str,
    date_of_birth: Optional[datetime],
    gender: str,
    relationship: str,
    is_primary: bool = False,
    head_circumference: Optional[float] = None,
    height: Optional[float] = None,
    weight: Optional[float] = None,
    profile_image: Optional[str] = None,
) -> Child:
    now = _now()
    child_id = _new_id()
    with get_connection() as conn:
        conn.execute(
            """
            INSERT INTO children (
                id, name, date_of_birth, gender, head_circumference, height, weight,
                profile_image, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                child_id,
                name,
                _to_db_value(date_of_birth),
                _to_db_value(gender),
                head_circumference,
                height,
                weight,
                profile_image,
                now,
                now,
            ),
        )
        conn.execute(
            """
            INSERT INTO user_child_relations (id, user_id, child_id, relationship, is_primary, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (_new_id(), user_id, child_id, _to_db_value(relationship), 1 if is_primary else 0, now),
        )
        conn.commit()
    return get_child(user_id, child_id)


def user_has_child(user_id: str, child_id: str) -> bool:
    """Whether the user has any relation to the child."""
    with get_connection() as conn:
        row = conn.execute(
            "SELECT 1 FROM user_child_relations WHERE user_id = ? AND child_id = ? LIMIT 1",
            (user_id, child_id),
        ).fetchone()
    return row is not None


def list_children(user_id: str) -> List[Child]:
    with get_connection() as conn:
        rows = conn.execute(
            _CHILD_SELECT + " WHERE r.user_id = ? ORDER BY r.is_primary DESC, c.created_at",
            (user_id,),
        ).fetchall()
    return [_row_to_child(row) for row in rows]


def get_child(user_id: str, child_id: str) -> Child:
    with get_connection() as conn:
        row = conn.execute(
            _CHILD_SELECT + " WHERE c.id = ? AND r.user_id = ? LIMIT 1",
            (child_id, user_id),
        ).fetchone()
    if not row:
        raise ValueError(f"Child {child_id} not found")
    return _row_to_child(row)


def update_child(
    user_id: str,
    child_id: str,
    *,
    child_updates: Optional[Dict[str, Any]] = None,
    relation_updates: Optional[Dict[str, Any]] = None,
) -> Child:
    existing = get_child(user_id, child_id)
    child_updates = dict(child_updates or {})
    relation_updates = dict(relation_updates or {})
    with get_connection() as conn:
        child_updates["updated_at"] = _now()
        set_clause, params = _build_set_clause(child_updates, CHILD_COLUMNS | {"updated_at"})
        conn.execute(f"UPDATE children SET {set_clause} WHERE id = ?", (*params, child_id))
        if relation_updates:
            set_clause, params = _build_set_clause(relation_updates, RELATION_COLUMNS)
            conn.execute(
                f"UPDATE user_child_relations SET {set_clause} WHERE id = ?",
                (*params, existing.relation_id),
            )
        conn.commit()
    return get_child(user_id, child_id)


def remove_child(user_id: str, child_id: str) -> bool:
    """Drop the user's relation; delete the child once nobody is related.

    Returns True when the child record itself was deleted.
    """
    existing = get_child(user_id, child_id)
    with get_connection() as conn:
        conn.execute("DELETE FROM user_child_relations WHERE id = ?", (existing.relation_id,))
        remaining = conn.execute(
            "SELECT COUNT(*) FROM user_child_relations WHERE child_id = ?",
            (child_id,),
        ).fetchone()[0]
        deleted = remaining == 0
        if deleted:
            conn.execute("DELETE FROM activities WHERE child_id = ?", (child_id,))
            conn.execute("DELETE FROM milestones WHERE child_id = ?", (child_id,))
            conn.execute("DELETE FROM children WHERE id = ?", (child_id,))
        conn.commit()
    return deleted


# Activities


def create_activity(
    *,
    child_id: str,
    title: str,
    category: str,
    recorded_at: datetime,
    description: Optional[str] = None,
    duration: Optional[int] = None,
    image: Optional[str] = None,
) -> str:
    now = _now()
    activity_id = _new_id()
    with get_connection() as conn:
        conn.execute(
            """
            INSERT INTO activities (
                id, child_id, title, description, duration, category, recorded_at, image,
                created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                activity_id,
                child_id,
                title,
                description,
                duration,
                _to_db_value(category),
                _utc_timestamp(recorded_at),
                image,
                now,
                now,
            ),
        )
        conn.commit()
    return activity_id


def list_activities(user_id: str, *, child_id: Optional[str] = None) -> List[Activity]:
    query = _ACTIVITY_SELECT + " WHERE r.user_id = ?"
    params: List[object] = [user_id]
    if child_id is not None:
        query += " AND a.child_id = ?"
        params.append(child_id)
    query += " ORDER BY a.recorded_at DESC"
    with get_connection() as conn:
        rows = conn.execute(query, tuple(params)).fetchall()
    return [Activity.model_validate(_row_to_dict(row)) for row in rows]


def get_activity(user_id: str, activity_id: str) -> Activity:
    with get_connection() as conn:
        row = conn.execute(
            _ACTIVITY_SELECT + " WHERE a.id = ? AND r.user_id = ? LIMIT 1",
            (activity_id, user_id),
        ).fetchone()
    if not row:
        raise ValueError(f"Activity {activity_id} not found")
    return Activity.model_validate(_row_to_dict(row))


def update_activity(user_id: str, activity_id: str, updates: Dict[str, Any]) -> Activity:
    get_activity(user_id, activity_id)
    updates = dict(updates)
    updates["updated_at"] = _now()
    set_clause, params = _build_set_clause(updates, ACTIVITY_COLUMNS | {"updated_at"})
    with get_connection() as conn:
        conn.execute(f"UPDATE activities SET {set_clause} WHERE id = ?", (*params, activity_id))
        conn.commit()
    return get_activity(user_id, activity_id)


def delete_activity(user_id: str, activity_id: str) -> None:
    get_activity(user_id, activity_id)
    with get_connection() as conn:
        conn.execute("DELETE FROM activities WHERE id = ?", (activity_id,))
        conn.commit()


# Milestones


def _row_to_milestone(row: sqlite3.Row) -> Milestone:
    data = _row_to_dict(row)
    photos = data.get("photos")
    if photos:
        try:
            data["photos"] = json.loads(photos)
        except (TypeError, json.JSONDecodeError):
            data["photos"] = []
    else:
        data["photos"] = []
    return Milestone.model_validate(data)


def _encode_photos(photos: Optional[List[str]]) -> Optional[str]:
    return json.dumps(photos) if photos else None


def create_milestone(
    *,
    child_id: str,
    title: str,
    achieved_at: datetime,
    description: Optional[str] = None,
    photos: Optional[List[str]] = None,
) -> str:
    now = _now()
    milestone_id = _new_id()
    with get_connection() as conn:
        conn.execute(
            """
            INSERT INTO milestones (
                id, child_id, title, description, achieved_at, photos, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                milestone_id,
                child_id,
                title,
                description,
                _utc_timestamp(achieved_at),
                _encode_photos(photos),
                now,
                now,
            ),
        )
        conn.commit()
    return milestone_id


def list_milestones(user_id: str, *, child_id: Optional[str] = None) -> List[Milestone]:
    query = _MILESTONE_SELECT + " WHERE r.user_id = ?"
    params: List[object] = [user_id]
    if child_id is not None:
        query += " AND m.child_id = ?"
        params.append(child_id)
    query += " ORDER BY m.achieved_at DESC"
    with get_connection() as conn:
        rows = conn.execute(query, tuple(params)).fetchall()
    return [_row_to_milestone(row) for row in rows]


def get_milestone(user_id: str, milestone_id: str) -> Milestone:
    with get_connection() as conn:
        row = conn.execute(
            _MILESTONE_SELECT + " WHERE m.id = ? AND r.user_id = ? LIMIT 1",
            (milestone_id, user_id),
        ).fetchone()
    if not row:
        raise ValueError(f"Milestone {milestone_id} not found")
    return _row_to_milestone(row)


def update_milestone(user_id: str, milestone_id: str, updates: Dict[str, Any]) -> Milestone:
    get_milestone(user_id, milestone_id)
    updates = dict(updates)
    if "photos" in updates:
        updates["photos"] = _encode_photos(updates["photos"])
    updates["updated_at"] = _now()
    set_clause, params = _build_set_clause(updates, MILESTONE_COLUMNS | {"updated_at"})
    with get_connection() as conn:
        conn.execute(f"UPDATE milestones SET {set_clause} WHERE id = ?", (*params, milestone_id))
        conn.commit()
    return get_milestone(user_id, milestone_id)


def delete_milestone(user_id: str, milestone_id: str) -> None:
    get_milestone(user_id, milestone_id)
    with get_connection() as conn:
        conn.execute("DELETE FROM milestones WHERE id = ?", (milestone_id,))
        conn.commit()
