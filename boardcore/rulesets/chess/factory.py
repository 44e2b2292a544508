from __future__ import annotations

from typing import Optional

from boardcore.core.primitives import Position
from .models import Piece, State


def quickstart(pieces: Optional[dict[str, Piece]] = None, **fields) -> State:
    """Create a chess state; pass {"e1": Piece(...), ...} to set up a custom position."""
    if pieces is None:
        # Import lazily to avoid cycles
        from .rules import initial_board

        return State(board=initial_board(), **fields)
    from .rules import parse_square

    st = State(**fields)
    for sq, piece in pieces.items():
        p: Position = parse_square(sq)
        st.put(p, piece)
    return st
