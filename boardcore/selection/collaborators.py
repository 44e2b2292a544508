from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from boardcore.core.primitives import Position


class Occupant(Protocol):
    color: str


class BoardSnapshot(Protocol):
    """Read-only board and turn queries; re-fetched on every activation."""

    def grid_size(self) -> tuple[int, int]: ...
    def get_occupant_at(self, p: Position) -> Any: ...
    def get_turn_color(self) -> str: ...
    def is_game_over(self) -> bool: ...


class MoveGenerator(Protocol):
    def get_legal_destinations(self, p: Position) -> set[Position]: ...
    def get_legal_destinations_ignoring_turn(self, p: Position) -> set[Position]: ...


class MoveRequester(Protocol):
    def request_move(self, src: Position, dst: Position) -> None: ...


class GameCollaborator(BoardSnapshot, MoveGenerator, MoveRequester, Protocol):
    """Everything the selection controller needs from the game side."""
