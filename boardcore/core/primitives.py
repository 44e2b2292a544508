from __future__ import annotations

from collections.abc import Sequence
from typing import TypeVar, Union

from pydantic import BaseModel, ConfigDict, model_validator

T = TypeVar("T")

# grid[row][col]; None marks an empty square
Grid = Sequence[Sequence[Union[T, None]]]


class GridShapeError(ValueError):
    """Raised when a grid is null, empty, jagged or has a missing row."""


class Position(BaseModel):
    """Board coordinate (0-based row, col)."""

    model_config = ConfigDict(frozen=True)

    row: int
    col: int

    def offset(self, direction: Direction, steps: int = 1) -> Position:
        return Position(
            row=self.row + steps * direction.d_row,
            col=self.col + steps * direction.d_col,
        )

    def as_tuple(self) -> tuple[int, int]:
        return (self.row, self.col)

    def __repr__(self) -> str:
        return f"Position({self.row}, {self.col})"


class Direction(BaseModel):
    """Unit displacement; each component in {-1, 0, 1}, never both zero."""

    model_config = ConfigDict(frozen=True)

    d_row: int
    d_col: int

    @model_validator(mode="after")
    def _unit(self) -> Direction:
        if self.d_row not in (-1, 0, 1) or self.d_col not in (-1, 0, 1):
            raise ValueError("direction components must be -1, 0 or 1")
        if self.d_row == 0 and self.d_col == 0:
            raise ValueError("direction (0, 0) has no heading")
        return self

    def __repr__(self) -> str:
        return f"Direction({self.d_row}, {self.d_col})"


def pos(row: int, col: int) -> Position:
    return Position(row=row, col=col)


def as_direction(d: Direction | tuple[int, int]) -> Direction:
    if isinstance(d, Direction):
        return d
    d_row, d_col = d
    return Direction(d_row=d_row, d_col=d_col)


UP = Direction(d_row=-1, d_col=0)
RIGHT = Direction(d_row=0, d_col=1)
DOWN = Direction(d_row=1, d_col=0)
LEFT = Direction(d_row=0, d_col=-1)
UP_LEFT = Direction(d_row=-1, d_col=-1)
UP_RIGHT = Direction(d_row=-1, d_col=1)
DOWN_LEFT = Direction(d_row=1, d_col=-1)
DOWN_RIGHT = Direction(d_row=1, d_col=1)

# Iteration order is part of the contract: cardinal first, then diagonals.
CARDINAL: tuple[Direction, ...] = (UP, RIGHT, DOWN, LEFT)
DIAGONAL: tuple[Direction, ...] = (UP_LEFT, UP_RIGHT, DOWN_LEFT, DOWN_RIGHT)
EIGHT: tuple[Direction, ...] = CARDINAL + DIAGONAL
