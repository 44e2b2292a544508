from __future__ import annotations

from enum import Enum
from typing import FrozenSet, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from boardcore.core.primitives import Position


class SelectionState(BaseModel):
    """Origin square plus its legal destinations; replaced, never patched."""

    model_config = ConfigDict(frozen=True)

    origin: Optional[Position] = None
    destinations: FrozenSet[Position] = Field(default_factory=frozenset)

    @model_validator(mode="after")
    def _destinations_need_origin(self) -> SelectionState:
        if self.origin is None and self.destinations:
            raise ValueError("destinations without an origin square")
        return self

    @property
    def idle(self) -> bool:
        return self.origin is None


IDLE = SelectionState()


class SelectionPolicy(BaseModel):
    # Show destinations for the opponent's pieces without letting them move.
    preview_opponent: bool = True
    show_moves: bool = True


class Activation(str, Enum):
    IGNORED = "IGNORED"
    SELECTED = "SELECTED"
    RESELECTED = "RESELECTED"
    COMMITTED = "COMMITTED"
    CLEARED = "CLEARED"
