from __future__ import annotations

from typing import Any, Optional

from boardcore.core.grid import (
    adjacent_positions,
    copy_grid,
    find_all_in_grid,
    in_bounds,
    occupied,
    project_line_until_blocked,
)
from boardcore.core.primitives import CARDINAL, DIAGONAL, EIGHT, Direction, Position
from .models import (
    DEFAULT_PROMOTION,
    PROMOTION_CHOICES,
    Color,
    MoveOutcome,
    Piece,
    PieceType,
    State,
)

SIZE = 8
FILES = "abcdefgh"
KNIGHT_JUMPS = [(1, 2), (2, 1), (-1, 2), (-2, 1), (1, -2), (2, -1), (-1, -2), (-2, -1)]
SLIDES: dict[str, tuple[Direction, ...]] = {
    "bishop": DIAGONAL,
    "rook": CARDINAL,
    "queen": EIGHT,
}
BACK_RANK: list[PieceType] = ["rook", "knight", "bishop", "queen", "king", "bishop", "knight", "rook"]


def opposite(c: Color) -> Color:
    return "black" if c == "white" else "white"


def square_name(p: Position) -> str:
    return f"{FILES[p.col]}{SIZE - p.row}"


def parse_square(sq: str) -> Position:
    if len(sq) != 2 or sq[0] not in FILES or sq[1] not in "12345678":
        raise ValueError(f"not a square: {sq!r}")
    return Position(row=SIZE - int(sq[1]), col=FILES.index(sq[0]))


def forward(c: Color) -> int:
    return -1 if c == "white" else 1


def pawn_row(c: Color) -> int:
    return 6 if c == "white" else 1


def last_row(c: Color) -> int:
    return 0 if c == "white" else 7


def home_row(c: Color) -> int:
    return 7 if c == "white" else 0


def initial_board() -> list[list[Optional[Piece]]]:
    board: list[list[Optional[Piece]]] = [[None] * SIZE for _ in range(SIZE)]
    for col, t in enumerate(BACK_RANK):
        board[0][col] = Piece(type=t, color="black")
        board[7][col] = Piece(type=t, color="white")
        board[1][col] = Piece(type="pawn", color="black")
        board[6][col] = Piece(type="pawn", color="white")
    return board


def _enemy_of(color: Color):
    return lambda o: o is not None and o.color != color


def _jumps(src: Position) -> list[Position]:
    out = []
    for dr, dc in KNIGHT_JUMPS:
        p = Position(row=src.row + dr, col=src.col + dc)
        if in_bounds(p, SIZE, SIZE):
            out.append(p)
    return out


def attacked_squares(board, src: Position, piece: Piece) -> list[Position]:
    """Squares piece on src threatens, whether or not it could move there."""
    if piece.type == "pawn":
        row = src.row + forward(piece.color)
        cand = [Position(row=row, col=src.col - 1), Position(row=row, col=src.col + 1)]
        return [p for p in cand if in_bounds(p, SIZE, SIZE)]
    if piece.type == "knight":
        return _jumps(src)
    if piece.type == "king":
        return adjacent_positions(src, SIZE, SIZE, include_diagonals=True)
    out: list[Position] = []
    for d in SLIDES[piece.type]:
        out += project_line_until_blocked(src, d, SIZE - 1, board, occupied, True)
    return out


def square_attacked(board, target: Position, by: Color) -> bool:
    for p in find_all_in_grid(board, lambda o: o is not None and o.color == by):
        if target in attacked_squares(board, p, board[p.row][p.col]):
            return True
    return False


def king_square(board, side: Color) -> Optional[Position]:
    found = find_all_in_grid(board, lambda o: o is not None and o.color == side and o.type == "king")
    return found[0] if found else None


def in_check(st: State, side: Color) -> bool:
    ksq = king_square(st.board, side)
    return bool(ksq and square_attacked(st.board, ksq, opposite(side)))


def _castle_targets(st: State, src: Position, king: Piece) -> list[Position]:
    row = home_row(king.color)
    if src != Position(row=row, col=4):
        return []
    white = king.color == "white"
    rights = [
        (st.castle_K if white else st.castle_k, 7, [5, 6], [5, 6]),
        (st.castle_Q if white else st.castle_q, 0, [1, 2, 3], [3, 2]),
    ]
    enemy = opposite(king.color)
    out = []
    for allowed, rook_col, between, transit in rights:
        if not allowed:
            continue
        rook = st.board[row][rook_col]
        if rook is None or rook.type != "rook" or rook.color != king.color:
            continue
        if any(st.board[row][c] is not None for c in between):
            continue
        if square_attacked(st.board, src, enemy):
            continue
        if any(square_attacked(st.board, Position(row=row, col=c), enemy) for c in transit):
            continue
        out.append(Position(row=row, col=transit[-1]))
    return out


def _pawn_destinations(st: State, src: Position, pawn: Piece) -> list[Position]:
    d = Direction(d_row=forward(pawn.color), d_col=0)
    steps = 2 if src.row == pawn_row(pawn.color) else 1
    out = project_line_until_blocked(src, d, steps, st.board, occupied, False)
    for p in attacked_squares(st.board, src, pawn):
        target = st.at(p)
        if target is not None and target.color != pawn.color:
            out.append(p)
        elif target is None and p == st.en_passant and pawn.color == st.turn:
            # only the side to move can take en passant
            out.append(p)
    return out


def pseudo_destinations(st: State, src: Position) -> list[Position]:
    """Destinations by movement pattern alone; own-king safety is not checked."""
    piece = st.at(src)
    if piece is None:
        return []
    if piece.type == "pawn":
        return _pawn_destinations(st, src, piece)
    reachable = _enemy_of(piece.color)
    if piece.type == "knight":
        return [p for p in _jumps(src) if st.at(p) is None or reachable(st.at(p))]
    if piece.type == "king":
        out = [
            p
            for p in adjacent_positions(src, SIZE, SIZE, include_diagonals=True)
            if st.at(p) is None or reachable(st.at(p))
        ]
        return out + _castle_targets(st, src, piece)
    out = []
    for d in SLIDES[piece.type]:
        line = project_line_until_blocked(src, d, SIZE - 1, st.board, occupied, True)
        blocker = st.at(line[-1]) if line else None
        if blocker is not None and blocker.color == piece.color:
            line = line[:-1]
        out += line
    return out


def _apply(st: State, src: Position, dst: Position, promotion: Optional[PieceType]) -> None:
    piece = st.at(src)
    if piece is None:
        raise ValueError(f"no piece on {square_name(src)}")
    captured_at = dst if st.at(dst) is not None else None
    if piece.type == "pawn" and dst == st.en_passant and src.col != dst.col and captured_at is None:
        captured_at = Position(row=src.row, col=dst.col)

    if captured_at is not None:
        victim = st.at(captured_at)
        if victim is not None:
            st.captured.append(victim)
        st.put(captured_at, None)

    st.put(src, None)
    if piece.type == "pawn" and dst.row == last_row(piece.color):
        st.put(dst, Piece(type=promotion or DEFAULT_PROMOTION, color=piece.color))
    else:
        st.put(dst, piece)

    if piece.type == "king" and abs(dst.col - src.col) == 2:
        rook_from, rook_to = (7, 5) if dst.col == 6 else (0, 3)
        st.board[src.row][rook_to] = st.board[src.row][rook_from]
        st.board[src.row][rook_from] = None

    st.en_passant = None
    if piece.type == "pawn" and abs(dst.row - src.row) == 2:
        st.en_passant = Position(row=(src.row + dst.row) // 2, col=src.col)

    if piece.type == "king":
        if piece.color == "white":
            st.castle_K = st.castle_Q = False
        else:
            st.castle_k = st.castle_q = False
    for corner in (src, dst):
        if corner == Position(row=7, col=7):
            st.castle_K = False
        elif corner == Position(row=7, col=0):
            st.castle_Q = False
        elif corner == Position(row=0, col=7):
            st.castle_k = False
        elif corner == Position(row=0, col=0):
            st.castle_q = False

    if piece.type == "pawn" or captured_at is not None:
        st.halfmove_clock = 0
    else:
        st.halfmove_clock += 1
    st.turn = opposite(st.turn)
    if st.turn == "white":
        st.fullmove_number += 1


def hypothetical(st: State, src: Position, dst: Position) -> State:
    """State after src->dst on a copy; st is left untouched."""
    g2 = st.model_copy(update={"board": copy_grid(st.board), "captured": list(st.captured)})
    _apply(g2, src, dst, None)
    return g2


def _safe(st: State, src: Position, dst: Position) -> bool:
    mover = st.at(src)
    if mover is None:
        return False
    return not in_check(hypothetical(st, src, dst), mover.color)


def legal_destinations(st: State, src: Position, respect_turn: bool = True) -> set[Position]:
    piece = st.at(src)
    if piece is None or st.game_over:
        return set()
    if respect_turn and piece.color != st.turn:
        return set()
    return {dst for dst in pseudo_destinations(st, src) if _safe(st, src, dst)}


def needs_promotion(st: State, src: Position, dst: Position) -> bool:
    piece = st.at(src)
    return bool(piece and piece.type == "pawn" and dst.row == last_row(piece.color))


def check_move(st: State, src: Position, dst: Position) -> MoveOutcome:
    if st.game_over:
        return MoveOutcome.GAME_OVER
    piece = st.at(src)
    if piece is None or src == dst:
        return MoveOutcome.ILLEGAL
    if piece.color != st.turn:
        return MoveOutcome.NOT_YOUR_TURN
    if dst not in pseudo_destinations(st, src):
        # an illegal move while in check is reported as the check itself
        return MoveOutcome.INVALID_IN_CHECK if in_check(st, piece.color) else MoveOutcome.ILLEGAL
    if not _safe(st, src, dst):
        return MoveOutcome.INVALID_IN_CHECK
    return MoveOutcome.MOVED


def apply_move(
    st: State, src: Position, dst: Position, promotion: Optional[PieceType] = None
) -> MoveOutcome:
    outcome = check_move(st, src, dst)
    if outcome != MoveOutcome.MOVED:
        return outcome
    if promotion is not None and promotion not in PROMOTION_CHOICES:
        raise ValueError(f"cannot promote to {promotion!r}")
    _apply(st, src, dst, promotion)
    summarize(st)
    return outcome


def has_any_legal_move(st: State, side: Color) -> bool:
    for src in find_all_in_grid(st.board, lambda o: o is not None and o.color == side):
        if any(_safe(st, src, dst) for dst in pseudo_destinations(st, src)):
            return True
    return False


def summarize(st: State) -> dict[str, Any]:
    if st.halfmove_clock >= 100:
        st.status = "draw"
        st.winner = None
        return {"status": st.status, "winner": st.winner}
    side = st.turn
    if not has_any_legal_move(st, side):
        if in_check(st, side):
            st.status = "checkmate"
            st.winner = opposite(side)
        else:
            st.status = "stalemate"
            st.winner = None
        return {"status": st.status, "winner": st.winner}
    return {"status": st.status, "winner": st.winner, "turn": st.turn, "fullmove": st.fullmove_number}
