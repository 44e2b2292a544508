"""Stateless geometry over rectangular grids.

Nothing here knows about any particular game: occupants are opaque and
all decisions about them are made by caller-supplied predicates.  Every
bound is half-open on the upper end, and every sequence comes back in a
fixed, documented order so callers (and tests) can rely on it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .primitives import (
    CARDINAL,
    EIGHT,
    Direction,
    GridShapeError,
    Position,
    as_direction,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from .primitives import Grid


def in_bounds(p: Position, rows: int, cols: int) -> bool:
    return 0 <= p.row < rows and 0 <= p.col < cols


def grid_shape(grid: Grid[Any] | None) -> tuple[int, int]:
    """Validate ``grid`` and return ``(rows, cols)``.

    Raises GridShapeError for a null or empty grid (no rows or no
    columns), a missing row, or a row whose length differs from the first.
    """
    if grid is None:
        raise GridShapeError("grid is None")
    if len(grid) == 0:
        raise GridShapeError("grid has no rows")
    cols = None
    for i, row in enumerate(grid):
        if row is None:
            raise GridShapeError(f"grid has a missing row at index {i}")
        if cols is None:
            cols = len(row)
        elif len(row) != cols:
            raise GridShapeError(
                f"grid is jagged: row {i} has {len(row)} columns, expected {cols}"
            )
    if not cols:
        raise GridShapeError("grid has no columns")
    return len(grid), cols


def project_line(
    origin: Position,
    direction: Direction | tuple[int, int],
    max_steps: int,
    rows: int,
    cols: int,
) -> list[Position]:
    """Squares 1..max_steps away from origin along direction.

    Stops before the first square that falls off the grid; origin itself is
    never included.
    """
    d = as_direction(direction)
    out: list[Position] = []
    for step in range(1, max_steps + 1):
        p = origin.offset(d, step)
        if not in_bounds(p, rows, cols):
            break
        out.append(p)
    return out


def project_line_until_blocked(
    origin: Position,
    direction: Direction | tuple[int, int],
    max_steps: int,
    grid: Grid[Any],
    stop: Callable[[Any], bool],
    include_stop_square: bool,
) -> list[Position]:
    """Walk like project_line but halt at the first occupant matching stop.

    The matching square is appended only when include_stop_square is set.
    With ``stop=lambda o: o is not None`` this is capture-stopping slide
    movement; without the stop square it is movement onto empty squares.
    """
    rows, cols = grid_shape(grid)
    out: list[Position] = []
    for p in project_line(origin, direction, max_steps, rows, cols):
        if stop(grid[p.row][p.col]):
            if include_stop_square:
                out.append(p)
            break
        out.append(p)
    return out


def adjacent_positions(
    origin: Position, rows: int, cols: int, include_diagonals: bool
) -> list[Position]:
    catalogue = EIGHT if include_diagonals else CARDINAL
    out = []
    for d in catalogue:
        p = origin.offset(d)
        if in_bounds(p, rows, cols):
            out.append(p)
    return out


def find_all(
    rows: int, cols: int, matches: Callable[[Position], bool]
) -> list[Position]:
    """Every position satisfying matches, row-major."""
    return [
        p
        for p in (Position(row=r, col=c) for r in range(rows) for c in range(cols))
        if matches(p)
    ]


def find_all_in_grid(grid: Grid[Any], matches: Callable[[Any], bool]) -> list[Position]:
    """Every position whose occupant satisfies matches, row-major."""
    rows, cols = grid_shape(grid)
    return [
        Position(row=r, col=c)
        for r in range(rows)
        for c in range(cols)
        if matches(grid[r][c])
    ]


def copy_grid(grid: Grid[Any]) -> list[list[Any]]:
    """New row containers holding the same occupant references."""
    grid_shape(grid)
    return [list(row) for row in grid]


def occupied(occupant: Any) -> bool:
    return occupant is not None


def empty(occupant: Any) -> bool:
    return occupant is None
