"""Age-to-developmental-stage classification."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from typing import Iterable, List, Optional, Union

DateLike = Union[date, datetime]

AGE_STAGES = [
    "Week 1",
    "Week 2",
    "Week 3",
    "Week 4",
    "Week 5-6",
    "Week 7-8",
    "Week 9-12",
    "1-2 Months",
    "3 Months",
    "4 Months",
    "5 Months",
    "6 Months",
    "7-12 Months",
    "1 Year",
    "18-24 Months",
    "2-3 Years",
    "3 Years",
]

# Evaluated top to bottom; the first matching tier wins. The <= / < mix
# between tiers is intentional and must stay as is.
DAY_TIERS = [
    (7, "Week 1"),
    (14, "Week 2"),
    (21, "Week 3"),
    (28, "Week 4"),
]
WEEK_TIERS = [
    (6, "Week 5-6"),
    (8, "Week 7-8"),
    (12, "Week 9-12"),
]
MONTH_TIERS = [
    (4, "3 Months"),
    (5, "4 Months"),
    (6, "5 Months"),
    (7, "6 Months"),
    (12, "7-12 Months"),
    (18, "1 Year"),
    (24, "18-24 Months"),
    (36, "2-3 Years"),
]
OLDEST_STAGE = "3 Years"


@dataclass(frozen=True)
class AgeBreakdown:
    total_days: int
    total_weeks: int
    total_months: int
    years: int
    months: int
    label: str


def _as_datetime(value: DateLike, tzinfo=None) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min, tzinfo=tzinfo)


def _normalize(birth_date: DateLike, now: DateLike) -> tuple[datetime, datetime]:
    """Bring both values onto the birth date's clock.

    Naive datetimes are read as UTC when the other side is aware, and an aware
    reference time is converted into the birth date's zone so calendar months
    are counted on a single calendar.
    """
    now_tz = now.tzinfo if isinstance(now, datetime) else None
    birth = _as_datetime(birth_date, now_tz)
    current = _as_datetime(now, birth.tzinfo)
    if (birth.tzinfo is None) != (current.tzinfo is None):
        if birth.tzinfo is None:
            birth = birth.replace(tzinfo=timezone.utc)
        else:
            current = current.replace(tzinfo=timezone.utc)
    if birth.tzinfo is not None:
        current = current.astimezone(birth.tzinfo)
    return birth, current


def calendar_months_between(birth_date: DateLike, now: DateLike) -> int:
    """Whole calendar months between two dates, ignoring day-of-month."""
    return (now.year - birth_date.year) * 12 + (now.month - birth_date.month)


def classify_stage(birth_date: DateLike, now: DateLike) -> str:
    """Map a birth date and reference date to a single developmental stage.

    Callers must ensure ``birth_date <= now``; the result for a future birth
    date is not meaningful.
    """
    birth, current = _normalize(birth_date, now)
    total_days = (current - birth).days
    total_weeks = total_days // 7
    total_months = calendar_months_between(birth, current)

    for limit, stage in DAY_TIERS:
        if total_days <= limit:
            return stage
    for limit, stage in WEEK_TIERS:
        if total_weeks <= limit:
            return stage
    if total_months <= 2:
        return "1-2 Months"
    for limit, stage in MONTH_TIERS:
        if total_months < limit:
            return stage
    return OLDEST_STAGE


def stage_index(stage: str) -> Optional[int]:
    try:
        return AGE_STAGES.index(stage)
    except ValueError:
        return None


def relevant_window(current_stage: str, available_stages: Iterable[str]) -> List[str]:
    """Return the current stage and its successor, limited to stages with content."""
    index = stage_index(current_stage)
    if index is None:
        return [current_stage]
    available = set(available_stages)
    candidates = AGE_STAGES[index : index + 2]
    return [stage for stage in candidates if stage in available]


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'' if count == 1 else 's'}"


def age_breakdown(birth_date: DateLike, now: DateLike) -> AgeBreakdown:
    birth, current = _normalize(birth_date, now)
    total_days = (current - birth).days
    total_weeks = total_days // 7
    total_months = calendar_months_between(birth, current)
    years, months = divmod(total_months, 12)

    if total_months < 12:
        if total_weeks < 12:
            label = f"{_plural(total_weeks, 'week')} old"
        else:
            label = f"{_plural(total_months, 'month')} old"
    else:
        label = _plural(years, "year")
        if months > 0:
            label += f" {_plural(months, 'month')}"
        label += " old"

    return AgeBreakdown(
        total_days=total_days,
        total_weeks=total_weeks,
        total_months=total_months,
        years=years,
        months=months,
        label=label,
    )
