"""Application configuration utilities."""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

_API_ROOT = Path(__file__).resolve().parents[1]

ENV_OVERRIDES = {
    "database_path": "BABYSTEPS_DATABASE_PATH",
    "content_dir": "BABYSTEPS_CONTENT_DIR",
    "jwt_secret": "BABYSTEPS_JWT_SECRET",
    "jwt_audience": "BABYSTEPS_JWT_AUD",
}


class AppConfig(BaseModel):
    """Strongly typed configuration loaded from config.json and the environment."""

    database_path: str = Field(default="./data/babysteps.db")
    content_dir: str = Field(default="./data")
    jwt_secret: Optional[str] = Field(default=None)
    jwt_audience: str = Field(default="authenticated")
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "http://localhost:3001",
            "http://127.0.0.1:3001",
        ]
    )

    @property
    def resolved_database_path(self) -> Path:
        """Return the absolute path for the SQLite database file."""
        return (_API_ROOT / self.database_path).resolve()

    @property
    def resolved_content_dir(self) -> Path:
        """Return the absolute directory holding the milestone CSV files."""
        return (_API_ROOT / self.content_dir).resolve()


def _config_path() -> Path:
    return _API_ROOT / "config.json"


def load_config() -> AppConfig:
    """Load configuration from config.json (optional) with environment overrides."""

    contents: Dict[str, Any] = {}
    config_file = _config_path()
    if config_file.exists():
        contents = json.loads(config_file.read_text())
    else:
        logger.info("config.json not found, using defaults", extra={"path": str(config_file)})

    for field, env_name in ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value:
            contents[field] = value
    return AppConfig(**contents)


CONFIG = load_config()
