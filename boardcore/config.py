from __future__ import annotations

import os
from typing import Optional

from pydantic import BaseModel


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() not in ("0", "false", "no", "off")


def _optional_float(name: str) -> Optional[float]:
    raw = os.getenv(name)
    return float(raw) if raw else None


class Settings(BaseModel):
    preview_opponent: bool = True
    show_moves: bool = True
    decision_timeout: Optional[float] = None  # None = wait until answered or torn down
    board_pixels: int = 400
    theme: str = "classic"
    log_level: str = "INFO"
    max_sessions: int = 50

    @classmethod
    def from_env(cls) -> Settings:
        return cls(
            preview_opponent=_flag("BOARDCORE_PREVIEW_OPPONENT", "true"),
            show_moves=_flag("BOARDCORE_SHOW_MOVES", "true"),
            decision_timeout=_optional_float("BOARDCORE_DECISION_TIMEOUT"),
            board_pixels=int(os.getenv("BOARDCORE_BOARD_PIXELS", "400")),
            theme=os.getenv("BOARDCORE_THEME", "classic"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            max_sessions=int(os.getenv("MAX_SESSIONS", "50")),
        )
