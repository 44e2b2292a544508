from __future__ import annotations

from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from boardcore.core.primitives import Position

Color = Literal["white", "black"]
PieceType = Literal["pawn", "rook", "knight", "bishop", "queen", "king"]

PROMOTION_CHOICES: tuple[PieceType, ...] = ("queen", "rook", "bishop", "knight")
DEFAULT_PROMOTION: PieceType = "queen"


class Piece(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: PieceType
    color: Color

    @property
    def symbol(self) -> str:
        letter = "n" if self.type == "knight" else self.type[0]
        return letter.upper() if self.color == "white" else letter


class MoveOutcome(str, Enum):
    MOVED = "MOVED"
    ILLEGAL = "ILLEGAL"
    INVALID_IN_CHECK = "INVALID_IN_CHECK"
    NOT_YOUR_TURN = "NOT_YOUR_TURN"
    GAME_OVER = "GAME_OVER"


def empty_board() -> list[list[Optional[Piece]]]:
    return [[None] * 8 for _ in range(8)]


class State(BaseModel):
    # board[row][col]; row 0 is rank 8, col 0 is file a
    board: list[list[Optional[Piece]]] = Field(default_factory=empty_board)
    turn: Color = "white"
    castle_K: bool = True
    castle_Q: bool = True
    castle_k: bool = True
    castle_q: bool = True
    en_passant: Optional[Position] = None
    halfmove_clock: int = 0
    fullmove_number: int = 1
    status: Literal["ongoing", "checkmate", "stalemate", "draw"] = "ongoing"
    winner: Optional[Color] = None
    captured: list[Piece] = Field(default_factory=list)

    def at(self, p: Position) -> Optional[Piece]:
        return self.board[p.row][p.col]

    def put(self, p: Position, piece: Optional[Piece]) -> None:
        self.board[p.row][p.col] = piece

    @property
    def game_over(self) -> bool:
        return self.status != "ongoing"

    def captured_by(self, color: Color) -> list[Piece]:
        """Pieces color has taken from the opponent."""
        return [pc for pc in self.captured if pc.color != color]
