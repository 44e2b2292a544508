"""Square-activation state machine.

Idle -> PieceSelected on activating an occupied square; PieceSelected ->
Idle after a committed move, an aborted one, or an explicit clear.  A
piece of the side to move can steal the selection while another piece is
selected.  Destinations are recomputed from the game on every selection,
and the whole SelectionState is swapped in one assignment so readers
never see an origin without its destinations or vice versa.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from boardcore.core.grid import in_bounds
from .models import IDLE, Activation, SelectionPolicy, SelectionState

if TYPE_CHECKING:
    from boardcore.core.primitives import Position
    from .collaborators import GameCollaborator

log = logging.getLogger(__name__)


class SelectionController:
    def __init__(
        self,
        game: GameCollaborator,
        local_color: str | None = None,
        policy: SelectionPolicy | None = None,
    ) -> None:
        self._game = game
        # None means this client may move for either side (hot seat)
        self.local_color = local_color
        self.policy = policy or SelectionPolicy()
        self.enabled = True
        self._state: SelectionState = IDLE

    def current_selection(self) -> SelectionState:
        return self._state

    def highlighted_squares(self) -> frozenset[Position]:
        st = self._state
        if st.origin is None:
            return frozenset()
        if not self.policy.show_moves:
            return frozenset({st.origin})
        return st.destinations | {st.origin}

    def clear(self) -> None:
        self._state = IDLE

    def activate_square(self, p: Position | None) -> Activation:
        if not self.enabled or p is None:
            return Activation.IGNORED
        rows, cols = self._game.grid_size()
        if not in_bounds(p, rows, cols):
            log.debug("activation outside the board at %s", p)
            return Activation.IGNORED
        if self._game.is_game_over():
            return Activation.IGNORED

        turn = self._game.get_turn_color()
        occupant = self._game.get_occupant_at(p)
        origin = self._state.origin

        if origin is None:
            if occupant is not None and self._select(p, occupant, turn):
                return Activation.SELECTED
            return Activation.IGNORED

        if p in self._state.destinations:
            mover = self._game.get_occupant_at(origin)
            if mover is not None and mover.color == turn and self._may_move(mover):
                self._commit(origin, p)
                return Activation.COMMITTED
            self.clear()
            return Activation.CLEARED

        if occupant is not None and occupant.color == turn:
            self._select(p, occupant, turn)
            return Activation.RESELECTED

        # Not a listed destination: still hand it to the game so an illegal
        # move while in check gets reported through its notifications.  Every
        # legal move of a turn-coloured origin is listed, so the game rejects
        # whatever arrives here.
        self._commit(origin, p)
        return Activation.COMMITTED

    def _may_move(self, piece: Any) -> bool:
        return self.local_color is None or piece.color == self.local_color

    def _select(self, p: Position, occupant: Any, turn: str) -> bool:
        if occupant.color == turn:
            destinations = self._game.get_legal_destinations(p)
        elif self.policy.preview_opponent:
            destinations = self._game.get_legal_destinations_ignoring_turn(p)
        else:
            self.clear()
            return False
        self._state = SelectionState(origin=p, destinations=frozenset(destinations))
        return True

    def _commit(self, src: Position, dst: Position) -> None:
        # Back to Idle before the request goes out: at most one commit in flight.
        self.clear()
        log.debug("requesting move %s -> %s", src, dst)
        self._game.request_move(src, dst)
