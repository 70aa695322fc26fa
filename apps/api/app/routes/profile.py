from __future__ import annotations

from datetime import datetime
from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ..auth import AuthContext, get_auth_context
from ..db import create_child, get_user, get_user_profile, update_user_name, upsert_user_profile
from ..schemas import Gender, Language, Relationship, User, UserProfile

router = APIRouter(prefix="/api/v1", tags=["profile"])
logger = logging.getLogger(__name__)


class ProfileResponse(BaseModel):
    user: User
    user_profile: Optional[UserProfile] = None


class UpdateProfilePayload(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    language: Optional[Language] = None


class OnboardingProfile(BaseModel):
    phone: Optional[str] = None
    language: Language = Language.ENGLISH


class OnboardingChild(BaseModel):
    name: str = Field(..., min_length=1)
    date_of_birth: datetime
    gender: Gender
    relationship: Relationship
    head_circumference: Optional[float] = None
    height: Optional[float] = None
    weight: Optional[float] = None


class OnboardingPayload(BaseModel):
    profile: OnboardingProfile
    children: List[OnboardingChild] = Field(default_factory=list)


@router.get("/user/profile", response_model=ProfileResponse)
async def get_profile(auth: AuthContext = Depends(get_auth_context)) -> ProfileResponse:
    return ProfileResponse(user=get_user(auth.user_id), user_profile=get_user_profile(auth.user_id))


@router.put("/user/profile", response_model=ProfileResponse)
async def update_profile(
    payload: UpdateProfilePayload,
    auth: AuthContext = Depends(get_auth_context),
) -> ProfileResponse:
    name = (payload.name or "").strip()
    if name:
        update_user_name(auth.user_id, name)
    profile = upsert_user_profile(
        auth.user_id,
        phone=payload.phone or None,
        language=payload.language,
    )
    return ProfileResponse(user=get_user(auth.user_id), user_profile=profile)


@router.post("/onboarding/complete")
async def complete_onboarding(
    payload: OnboardingPayload,
    auth: AuthContext = Depends(get_auth_context),
) -> dict:
    for child in payload.children:
        if not child.name.strip():
            raise HTTPException(status_code=400, detail="child name is required")

    upsert_user_profile(
        auth.user_id,
        phone=payload.profile.phone or None,
        language=payload.profile.language,
        onboarding_completed=True,
    )
    child_ids = []
    for child in payload.children:
        created = create_child(
            auth.user_id,
            name=child.name.strip(),
            date_of_birth=child.date_of_birth,
            gender=child.gender,
            relationship=child.relationship,
            is_primary=True,
            head_circumference=child.head_circumference or None,
            height=child.height or None,
            weight=child.weight or None,
        )
        child_ids.append(created.id)
    logger.info(
        "onboarding completed",
        extra={"user_id": auth.user_id, "children": len(child_ids)},
    )
    return {"success": True, "child_ids": child_ids}
