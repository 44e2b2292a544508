from __future__ import annotations

from boardcore.core.primitives import Position


class BoardInput:
    """Maps pointer pixels to board squares for a square-celled board view.

    The view may be flipped so the black side sits at the bottom; board
    coordinates always use the game's orientation.
    """

    def __init__(self, rows: int = 8, cols: int = 8, width: float = 0, height: float = 0) -> None:
        self.rows = rows
        self.cols = cols
        self.width = width
        self.height = height
        self.white_at_bottom = True

    def resize(self, width: float, height: float) -> None:
        self.width = width
        self.height = height

    def flip(self) -> None:
        self.white_at_bottom = not self.white_at_bottom

    def to_board(self, view_row: int, view_col: int) -> Position:
        if self.white_at_bottom:
            return Position(row=view_row, col=view_col)
        return Position(row=self.rows - 1 - view_row, col=self.cols - 1 - view_col)

    def to_view(self, p: Position) -> tuple[int, int]:
        # the flip is its own inverse
        q = self.to_board(p.row, p.col)
        return (q.row, q.col)

    def square_at(self, x: float, y: float) -> Position | None:
        """Square under pixel (x, y); None if the view is unsized or the pixel is off-board."""
        cell_w = self.width / self.cols
        cell_h = self.height / self.rows
        if cell_w <= 0 or cell_h <= 0:
            return None
        if x < 0 or y < 0:
            return None
        view_row = int(y // cell_h)
        view_col = int(x // cell_w)
        if view_row >= self.rows or view_col >= self.cols:
            return None
        return self.to_board(view_row, view_col)
