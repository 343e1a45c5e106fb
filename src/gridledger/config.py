"""Configuration management for gridledger."""

import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()


def parse_field_list(raw: Optional[str]) -> list[str]:
    """Parse a comma-separated field list, dropping blanks."""
    if not raw or not raw.strip():
        return []
    return [field.strip() for field in raw.split(",") if field.strip()]


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


class Settings(BaseModel):
    """Engine settings."""

    # Undo/redo history
    max_history_size: int = Field(
        default_factory=lambda: int(os.getenv("GRIDLEDGER_MAX_HISTORY_SIZE", "100")), ge=1
    )
    merge_window_seconds: float = Field(
        default_factory=lambda: float(os.getenv("GRIDLEDGER_MERGE_WINDOW_SECONDS", "2.0")), ge=0
    )

    # Fields the host wants locked regardless of server metadata
    read_only_fields: list[str] = Field(
        default_factory=lambda: parse_field_list(os.getenv("GRIDLEDGER_READ_ONLY_FIELDS"))
    )

    # Logging
    log_level: str = Field(default_factory=lambda: os.getenv("GRIDLEDGER_LOG_LEVEL", "WARNING").upper())
    debug: bool = Field(default_factory=lambda: _env_bool("GRIDLEDGER_DEBUG"))

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug else self.log_level


settings = Settings()
