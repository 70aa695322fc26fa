from __future__ import annotations

from datetime import datetime
from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ..auth import AuthContext, get_auth_context
from ..db import create_child, get_child, list_children, remove_child, update_child
from ..schemas import Child, Gender, Relationship

router = APIRouter(prefix="/api/v1", tags=["children"])
logger = logging.getLogger(__name__)


class CreateChildPayload(BaseModel):
    name: str = Field(..., min_length=1)
    date_of_birth: datetime
    gender: Gender
    relationship: Relationship
    is_primary: bool = False
    head_circumference: Optional[float] = None
    height: Optional[float] = None
    weight: Optional[float] = None


class UpdateChildPayload(BaseModel):
    name: Optional[str] = None
    date_of_birth: Optional[datetime] = None
    gender: Optional[Gender] = None
    head_circumference: Optional[float] = None
    height: Optional[float] = None
    weight: Optional[float] = None
    profile_image: Optional[str] = None
    relationship: Optional[Relationship] = None
    is_primary: Optional[bool] = None


CHILD_FIELDS = ["name", "date_of_birth", "gender", "head_circumference", "height", "weight", "profile_image"]
RELATION_FIELDS = ["relationship", "is_primary"]


@router.get("/children", response_model=List[Child])
async def list_children_endpoint(auth: AuthContext = Depends(get_auth_context)) -> List[Child]:
    return list_children(auth.user_id)


@router.post("/children", response_model=Child, status_code=201)
async def create_child_endpoint(
    payload: CreateChildPayload,
    auth: AuthContext = Depends(get_auth_context),
) -> Child:
    name = payload.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="name is required")
    child = create_child(
        auth.user_id,
        name=name,
        date_of_birth=payload.date_of_birth,
        gender=payload.gender,
        relationship=payload.relationship,
        is_primary=payload.is_primary,
        head_circumference=payload.head_circumference or None,
        height=payload.height or None,
        weight=payload.weight or None,
    )
    logger.info("child created", extra={"user_id": auth.user_id, "child_id": child.id})
    return child


@router.get("/children/{child_id}", response_model=Child)
async def get_child_endpoint(child_id: str, auth: AuthContext = Depends(get_auth_context)) -> Child:
    try:
        return get_child(auth.user_id, child_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail="Child not found") from exc


@router.put("/children/{child_id}", response_model=Child)
async def update_child_endpoint(
    child_id: str,
    payload: UpdateChildPayload,
    auth: AuthContext = Depends(get_auth_context),
) -> Child:
    child_updates = {}
    for field in CHILD_FIELDS:
        if field in payload.model_fields_set:
            child_updates[field] = getattr(payload, field)
    if "name" in child_updates:
        name = (child_updates["name"] or "").strip()
        if not name:
            raise HTTPException(status_code=400, detail="name cannot be empty")
        child_updates["name"] = name
    for field in ["head_circumference", "height", "weight", "profile_image"]:
        if field in child_updates:
            child_updates[field] = child_updates[field] or None
    if "gender" in child_updates and child_updates["gender"] is None:
        raise HTTPException(status_code=400, detail="gender cannot be empty")

    relation_updates = {
        field: getattr(payload, field)
        for field in RELATION_FIELDS
        if field in payload.model_fields_set and getattr(payload, field) is not None
    }
    try:
        return update_child(
            auth.user_id,
            child_id,
            child_updates=child_updates,
            relation_updates=relation_updates,
        )
    except ValueError as exc:
        raise HTTPException(status_code=404, detail="Child not found") from exc


@router.delete("/children/{child_id}")
async def delete_child_endpoint(child_id: str, auth: AuthContext = Depends(get_auth_context)) -> dict:
    try:
        deleted = remove_child(auth.user_id, child_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail="Child not found") from exc
    logger.info(
        "child relation removed",
        extra={"user_id": auth.user_id, "child_id": child_id, "child_deleted": deleted},
    )
    return {"success": True, "child_deleted": deleted}
