from __future__ import annotations

import logging
import threading
import uuid
from typing import TYPE_CHECKING, Optional

from boardcore.core.grid import copy_grid, in_bounds
from boardcore.engine.executor import ExecutorClosed
from boardcore.events import EventBus, StateChanged
from . import rules
from .factory import quickstart
from .models import DEFAULT_PROMOTION, PROMOTION_CHOICES, Color, MoveOutcome, Piece, PieceType, State

if TYPE_CHECKING:
    from boardcore.core.primitives import Position
    from boardcore.engine.executor import SerialExecutor
    from boardcore.handshake.decision import DecisionSource

log = logging.getLogger(__name__)


class ChessGame:
    """Owns the chess state; the only thing allowed to mutate it.

    Readers get a published snapshot that is swapped after each committed
    move, so reading never waits on the mutation lock (which may be held
    for as long as a promotion decision is outstanding).
    """

    def __init__(
        self,
        state: State | None = None,
        *,
        game_id: str | None = None,
        bus: EventBus | None = None,
        decisions: DecisionSource | None = None,
        worker: SerialExecutor | None = None,
    ) -> None:
        self.id = game_id or uuid.uuid4().hex
        self.bus = bus or EventBus()
        self.decisions = decisions
        self._worker = worker
        self._lock = threading.RLock()
        self._state = state or quickstart()
        rules.summarize(self._state)
        self._snapshot = self._copy(self._state)

    @staticmethod
    def _copy(st: State) -> State:
        return st.model_copy(update={"board": copy_grid(st.board), "captured": list(st.captured)})

    def snapshot(self) -> State:
        """Current published state. Treat as read-only."""
        return self._snapshot

    # BoardSnapshot / TurnAuthority

    def grid_size(self) -> tuple[int, int]:
        return (rules.SIZE, rules.SIZE)

    def get_occupant_at(self, p: Position) -> Optional[Piece]:
        if not in_bounds(p, rules.SIZE, rules.SIZE):
            return None
        return self._snapshot.at(p)

    def get_turn_color(self) -> str:
        return self._snapshot.turn

    def is_game_over(self) -> bool:
        return self._snapshot.game_over

    def captured_by(self, color: Color) -> list[Piece]:
        return self._snapshot.captured_by(color)

    # move generation

    def get_legal_destinations(self, p: Position) -> set[Position]:
        return rules.legal_destinations(self._snapshot, p, respect_turn=True)

    def get_legal_destinations_ignoring_turn(self, p: Position) -> set[Position]:
        return rules.legal_destinations(self._snapshot, p, respect_turn=False)

    # mutation

    def request_move(self, src: Position, dst: Position) -> None:
        """Queue a move commit; the outcome arrives as a StateChanged event."""
        if self._worker is None:
            self.make_move(src, dst)
            return
        try:
            self._worker.submit(lambda: self.make_move(src, dst))
        except ExecutorClosed:
            log.warning("[game %s] move %s->%s dropped, game worker is shut down", self.id, src, dst)

    def make_move(self, src: Position, dst: Position) -> MoveOutcome:
        with self._lock:
            st = self._state
            mover = st.turn
            outcome = rules.check_move(st, src, dst)
            promotion: PieceType | None = None
            if outcome == MoveOutcome.MOVED:
                if rules.needs_promotion(st, src, dst):
                    promotion = self._ask_promotion(mover)
                rules.apply_move(st, src, dst, promotion)
                self._snapshot = self._copy(st)
            ev = StateChanged(
                game_id=self.id,
                outcome=outcome,
                src=src,
                dst=dst,
                turn=st.turn,
                status=st.status,
                winner=st.winner,
                promotion=promotion,
                message=None if outcome == MoveOutcome.MOVED else f"{mover} {src}->{dst} rejected",
            )
        log.debug("[game %s] %s %s->%s", self.id, outcome.value, src, dst)
        self.bus.emit(ev)
        return outcome

    def _ask_promotion(self, color: str) -> PieceType:
        # Called with the mutation lock held: no second move, and so no second
        # promotion request for this game, can start until this one resolves.
        if self.decisions is None:
            return DEFAULT_PROMOTION
        choice = self.decisions.request_decision(color, PROMOTION_CHOICES, DEFAULT_PROMOTION)
        if choice not in PROMOTION_CHOICES:
            log.warning("[game %s] unexpected promotion choice %r, using %s", self.id, choice, DEFAULT_PROMOTION)
            return DEFAULT_PROMOTION
        return choice  # type: ignore[return-value]
