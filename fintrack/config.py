from __future__ import annotations

import os
from dataclasses import dataclass

from fintrack.recurrence_expander import DEFAULT_OCCURRENCES


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite:///./fintrack.db"
    frontend_origin: str = "http://localhost:3000"
    log_level: str = "INFO"
    recurrence_occurrences: int = DEFAULT_OCCURRENCES

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            database_url=os.getenv("DATABASE_URL", cls.database_url),
            frontend_origin=os.getenv("FRONTEND_ORIGIN", cls.frontend_origin),
            log_level=os.getenv("LOG_LEVEL", cls.log_level),
            recurrence_occurrences=_get_int("RECURRENCE_OCCURRENCES", cls.recurrence_occurrences),
        )


def _get_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default
