from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from ..auth import AuthContext, get_auth_context
from ..db import (
    create_milestone,
    delete_milestone,
    get_milestone,
    list_milestones,
    update_milestone,
    user_has_child,
)
from ..schemas import Milestone

router = APIRouter(prefix="/api/v1", tags=["milestones"])


class CreateMilestonePayload(BaseModel):
    child_id: str = Field(..., min_length=1)
    title: str
    achieved_at: datetime
    description: Optional[str] = None
    photos: List[str] = Field(default_factory=list)


class UpdateMilestonePayload(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    achieved_at: Optional[datetime] = None
    photos: Optional[List[str]] = None


@router.get("/milestones", response_model=List[Milestone])
async def list_milestones_endpoint(
    child_id: Optional[str] = Query(None, description="Optional child id"),
    auth: AuthContext = Depends(get_auth_context),
) -> List[Milestone]:
    return list_milestones(auth.user_id, child_id=child_id)


@router.post("/milestones", response_model=Milestone, status_code=201)
async def create_milestone_endpoint(
    payload: CreateMilestonePayload,
    auth: AuthContext = Depends(get_auth_context),
) -> Milestone:
    title = payload.title.strip()
    if not title:
        raise HTTPException(status_code=400, detail="title is required")
    if not user_has_child(auth.user_id, payload.child_id):
        raise HTTPException(status_code=404, detail="Child not found or access denied")
    milestone_id = create_milestone(
        child_id=payload.child_id,
        title=title,
        achieved_at=payload.achieved_at,
        description=(payload.description or "").strip() or None,
        photos=[photo for photo in payload.photos if photo],
    )
    return get_milestone(auth.user_id, milestone_id)


@router.get("/milestones/{milestone_id}", response_model=Milestone)
async def get_milestone_endpoint(milestone_id: str, auth: AuthContext = Depends(get_auth_context)) -> Milestone:
    try:
        return get_milestone(auth.user_id, milestone_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail="Milestone not found") from exc


@router.put("/milestones/{milestone_id}", response_model=Milestone)
async def update_milestone_endpoint(
    milestone_id: str,
    payload: UpdateMilestonePayload,
    auth: AuthContext = Depends(get_auth_context),
) -> Milestone:
    updates: dict = {}
    if "title" in payload.model_fields_set:
        title = (payload.title or "").strip()
        if not title:
            raise HTTPException(status_code=400, detail="title cannot be empty")
        updates["title"] = title
    if "description" in payload.model_fields_set:
        updates["description"] = (payload.description or "").strip() or None
    if "achieved_at" in payload.model_fields_set and payload.achieved_at is not None:
        updates["achieved_at"] = payload.achieved_at
    if "photos" in payload.model_fields_set:
        updates["photos"] = payload.photos or None
    try:
        return update_milestone(auth.user_id, milestone_id, updates)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail="Milestone not found") from exc


@router.delete("/milestones/{milestone_id}")
async def delete_milestone_endpoint(milestone_id: str, auth: AuthContext = Depends(get_auth_context)) -> dict:
    try:
        delete_milestone(auth.user_id, milestone_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail="Milestone not found") from exc
    return {"success": True}
