from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from ..auth import AuthContext, get_auth_context
from ..db import get_child, get_user_profile
from ..development import age_breakdown, classify_stage, relevant_window
from ..development_content import (
    ContentUnavailableError,
    DevelopmentContent,
    language_code,
    load_development_content,
)
from ..schemas import DevelopmentResponse, MilestoneContent, StageContent

router = APIRouter(prefix="/api/v1", tags=["development"])
logger = logging.getLogger(__name__)


def _content_for_user(user_id: str) -> DevelopmentContent:
    profile = get_user_profile(user_id)
    language = profile.language.value if profile else None
    try:
        return load_development_content(language_code(language))
    except ContentUnavailableError as exc:
        logger.exception("milestone content unavailable")
        raise HTTPException(status_code=503, detail="Milestone data is unavailable.") from exc


def _reference_time(as_of: Optional[date]) -> datetime:
    if as_of is None:
        return datetime.now(timezone.utc)
    return datetime(as_of.year, as_of.month, as_of.day, tzinfo=timezone.utc)


def build_development_view(
    *,
    child_id: str,
    child_name: str,
    birth_date: Optional[datetime],
    now: datetime,
    content: DevelopmentContent,
) -> DevelopmentResponse:
    """Classify the child's stage and attach the content rows for its window."""

    if birth_date is None:
        return DevelopmentResponse(child_id=child_id, child_name=child_name)

    current_stage = classify_stage(birth_date, now)
    window = relevant_window(current_stage, content.stages)
    stages = [
        StageContent(
            stage=row.stage,
            milestones=[
                MilestoneContent(category=item.category, description=item.description, image=item.image)
                for item in row.milestones
            ],
        )
        for row in content.rows_for(window)
    ]
    return DevelopmentResponse(
        child_id=child_id,
        child_name=child_name,
        age_label=age_breakdown(birth_date, now).label,
        current_stage=current_stage,
        stages=stages,
        has_content=bool(stages),
    )


@router.get("/children/{child_id}/development", response_model=DevelopmentResponse)
async def child_development(
    child_id: str,
    as_of: Optional[date] = Query(None, description="Reference date, defaults to today (UTC)"),
    auth: AuthContext = Depends(get_auth_context),
) -> DevelopmentResponse:
    """Return the child's current developmental stage and guidance for it and the next one."""

    try:
        child = get_child(auth.user_id, child_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail="Child not found") from exc

    content = _content_for_user(auth.user_id)
    view = build_development_view(
        child_id=child.id,
        child_name=child.name,
        birth_date=child.date_of_birth,
        now=_reference_time(as_of),
        content=content,
    )
    logger.info(
        "development view",
        extra={
            "child_id": child_id,
            "stage": view.current_stage,
            "language": content.language,
            "stages": len(view.stages),
        },
    )
    return view
