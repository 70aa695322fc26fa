"""Milestone content table keyed by developmental stage."""
from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional

from .config import CONFIG

logger = logging.getLogger(__name__)

STAGE_COLUMN = "Age/Timeframe"
IMAGE_SUFFIX = " Images"
MISSING_VALUES = {"", "-", "N/A"}
CANDIDATE_DELIMITERS = ",\t|;"
DEFAULT_LANGUAGE = "en"

PROFILE_LANGUAGE_CODES = {
    "English": "en",
    "Hindi": "hi",
    "Assamese": "as",
    "Bengali": "bn",
    "Kannada": "kn",
    "Tamil": "ta",
    "Marathi": "mr",
}


class ContentUnavailableError(RuntimeError):
    """Raised when no milestone table can be loaded."""


@dataclass(frozen=True)
class DevelopmentalMilestone:
    category: str
    description: str
    image: Optional[str] = None


@dataclass(frozen=True)
class DevelopmentalContentRow:
    stage: str
    milestones: tuple[DevelopmentalMilestone, ...]


class DevelopmentContent:
    """Read-only snapshot of the milestone table."""

    def __init__(self, rows: Iterable[DevelopmentalContentRow], *, language: str = DEFAULT_LANGUAGE) -> None:
        by_stage: Dict[str, DevelopmentalContentRow] = {}
        for row in rows:
            if row.stage in by_stage:
                logger.warning("duplicate stage row ignored", extra={"stage": row.stage, "language": language})
                continue
            by_stage[row.stage] = row
        self._rows: Mapping[str, DevelopmentalContentRow] = MappingProxyType(by_stage)
        self.language = language
        self.stages = frozenset(by_stage)

    def __len__(self) -> int:
        return len(self._rows)

    def get(self, stage: str) -> Optional[DevelopmentalContentRow]:
        return self._rows.get(stage)

    def rows_for(self, stages: Iterable[str]) -> List[DevelopmentalContentRow]:
        return [self._rows[stage] for stage in stages if stage in self._rows]


def language_code(profile_language: Optional[str]) -> str:
    if not profile_language:
        return DEFAULT_LANGUAGE
    return PROFILE_LANGUAGE_CODES.get(profile_language, profile_language.lower())


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    if text in MISSING_VALUES:
        return None
    return text


def _sniff_delimiter(text: str) -> str:
    header = text.split("\n", 1)[0]
    try:
        return csv.Sniffer().sniff(header, delimiters=CANDIDATE_DELIMITERS).delimiter
    except csv.Error:
        return ","


def parse_content_rows(text: str) -> List[DevelopmentalContentRow]:
    """Parse milestone CSV text into content rows.

    Every non-image column other than the stage column is a category. A
    category may have a matching ``"<Category> Images"`` column holding its
    illustration reference. Rows without a stage or without any described
    category are dropped.
    """
    reader = csv.DictReader(io.StringIO(text), delimiter=_sniff_delimiter(text))
    headers = [header for header in (reader.fieldnames or []) if header and header.strip()]
    categories = [h for h in headers if h != STAGE_COLUMN and not h.endswith(IMAGE_SUFFIX)]

    rows: List[DevelopmentalContentRow] = []
    for record in reader:
        stage = _clean(record.get(STAGE_COLUMN))
        if not stage:
            continue
        milestones = []
        for category in categories:
            description = _clean(record.get(category))
            if not description:
                continue
            milestones.append(
                DevelopmentalMilestone(
                    category=category,
                    description=description,
                    image=_clean(record.get(category + IMAGE_SUFFIX)),
                )
            )
        if milestones:
            rows.append(DevelopmentalContentRow(stage=stage, milestones=tuple(milestones)))
    return rows


def content_path(language: str, content_dir: Optional[Path] = None) -> Path:
    base = content_dir or CONFIG.resolved_content_dir
    return base / f"milestones_{language}.csv"


def read_development_content(path: Path, *, language: str = DEFAULT_LANGUAGE) -> DevelopmentContent:
    text = path.read_text(encoding="utf-8-sig")
    content = DevelopmentContent(parse_content_rows(text), language=language)
    logger.info(
        "development content loaded",
        extra={"path": str(path), "language": language, "stages": len(content)},
    )
    return content


@lru_cache
def load_development_content(language: str = DEFAULT_LANGUAGE) -> DevelopmentContent:
    """Load the milestone table for ``language`` once per process."""

    path = content_path(language)
    if not path.exists() and language != DEFAULT_LANGUAGE:
        logger.warning(
            "no milestone table for language, falling back to English",
            extra={"language": language},
        )
        return load_development_content(DEFAULT_LANGUAGE)
    if not path.exists():
        raise ContentUnavailableError(f"Milestone data not found at {path}")
    return read_development_content(path, language=language)
