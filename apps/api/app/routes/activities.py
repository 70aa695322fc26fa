from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from ..auth import AuthContext, get_auth_context
from ..db import (
    create_activity,
    delete_activity,
    get_activity,
    list_activities,
    update_activity,
    user_has_child,
)
from ..schemas import Activity, ActivityCategory

router = APIRouter(prefix="/api/v1", tags=["activities"])


class CreateActivityPayload(BaseModel):
    child_id: str = Field(..., min_length=1)
    title: str
    category: ActivityCategory
    recorded_at: datetime
    description: Optional[str] = None
    duration: Optional[int] = Field(default=None, ge=1, le=1440)
    image: Optional[str] = None


class UpdateActivityPayload(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    duration: Optional[int] = Field(default=None, ge=1, le=1440)
    category: Optional[ActivityCategory] = None
    recorded_at: Optional[datetime] = None
    image: Optional[str] = None


@router.get("/activities", response_model=List[Activity])
async def list_activities_endpoint(
    child_id: Optional[str] = Query(None, description="Optional child id"),
    auth: AuthContext = Depends(get_auth_context),
) -> List[Activity]:
    return list_activities(auth.user_id, child_id=child_id)


@router.post("/activities", response_model=Activity, status_code=201)
async def create_activity_endpoint(
    payload: CreateActivityPayload,
    auth: AuthContext = Depends(get_auth_context),
) -> Activity:
    title = payload.title.strip()
    if not title:
        raise HTTPException(status_code=400, detail="title is required")
    if not user_has_child(auth.user_id, payload.child_id):
        raise HTTPException(status_code=404, detail="Child not found or access denied")
    activity_id = create_activity(
        child_id=payload.child_id,
        title=title,
        category=payload.category,
        recorded_at=payload.recorded_at,
        description=(payload.description or "").strip() or None,
        duration=payload.duration,
        image=payload.image or None,
    )
    return get_activity(auth.user_id, activity_id)


@router.get("/activities/{activity_id}", response_model=Activity)
async def get_activity_endpoint(activity_id: str, auth: AuthContext = Depends(get_auth_context)) -> Activity:
    try:
        return get_activity(auth.user_id, activity_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail="Activity not found") from exc


@router.put("/activities/{activity_id}", response_model=Activity)
async def update_activity_endpoint(
    activity_id: str,
    payload: UpdateActivityPayload,
    auth: AuthContext = Depends(get_auth_context),
) -> Activity:
    updates: dict = {}
    if "title" in payload.model_fields_set:
        title = (payload.title or "").strip()
        if not title:
            raise HTTPException(status_code=400, detail="title cannot be empty")
        updates["title"] = title
    if "description" in payload.model_fields_set:
        updates["description"] = (payload.description or "").strip() or None
    if "duration" in payload.model_fields_set:
        updates["duration"] = payload.duration
    if "category" in payload.model_fields_set and payload.category is not None:
        updates["category"] = payload.category
    if "recorded_at" in payload.model_fields_set and payload.recorded_at is not None:
        updates["recorded_at"] = payload.recorded_at
    if "image" in payload.model_fields_set:
        updates["image"] = payload.image or None
    try:
        return update_activity(auth.user_id, activity_id, updates)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail="Activity not found") from exc


@router.delete("/activities/{activity_id}")
async def delete_activity_endpoint(activity_id: str, auth: AuthContext = Depends(get_auth_context)) -> dict:
    try:
        delete_activity(auth.user_id, activity_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail="Activity not found") from exc
    return {"success": True}
