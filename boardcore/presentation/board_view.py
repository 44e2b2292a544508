"""Board presenter.

The presenter is assembled from small parts rather than being one class
that plays every role: StateUpdateHandler reacts to game notifications,
PromotionPrompt holds and answers decision requests, ThemedPalette tracks
colors, BoardInput maps pixels to squares, and SelectionController owns
the selection.  All of their state is touched only on the UI executor;
the public BoardPresenter methods marshal onto it, so they can be called
from any thread.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional

from pydantic import BaseModel, Field

from boardcore.core.primitives import Position
from boardcore.engine.executor import ExecutorClosed
from boardcore.events import DecisionResolved, StateChanged
from boardcore.handshake.decision import DecisionRequest
from boardcore.rulesets.chess.models import MoveOutcome
from boardcore.selection.models import SelectionState
from .themes import ColorScheme

if TYPE_CHECKING:
    from boardcore.engine.executor import SerialExecutor
    from boardcore.events import EventBus
    from boardcore.handshake.decision import DecisionHandshake
    from boardcore.rulesets.chess.game import ChessGame
    from boardcore.selection.controller import SelectionController
    from boardcore.selection.models import Activation
    from .input import BoardInput
    from .themes import ThemeService

log = logging.getLogger(__name__)


class BoardView(BaseModel):
    """Everything a renderer needs for one frame."""

    board: list[list[Optional[str]]]
    turn: str
    game_over: bool
    selection: SelectionState
    highlights: list[Position] = Field(default_factory=list)
    white_at_bottom: bool = True
    input_enabled: bool = True
    check_warning: bool = False
    last_outcome: Optional[str] = None
    pending_decision: Optional[DecisionRequest] = None
    palette: Optional[ColorScheme] = None
    history: list[tuple[Position, Position]] = Field(default_factory=list)
    # symbols of the pieces each side has taken, in capture order
    captured_white: list[str] = Field(default_factory=list)
    captured_black: list[str] = Field(default_factory=list)
    theme: Optional[str] = None


class StateUpdateHandler:
    def __init__(self, selection: SelectionController) -> None:
        self._selection = selection
        self.last: StateChanged | None = None
        self.check_warning = False
        self.game_over_shown = False
        self.history: list[tuple[Position, Position]] = []

    def handle(self, ev: StateChanged) -> None:
        self.last = ev
        self.check_warning = ev.outcome == MoveOutcome.INVALID_IN_CHECK
        if ev.board_changed:
            # the old destinations describe a board that no longer exists
            self._selection.clear()
            if ev.src is not None and ev.dst is not None:
                self.history.append((ev.src, ev.dst))
        if ev.status != "ongoing" and not self.game_over_shown:
            self.game_over_shown = True
            log.info("game %s over: %s, winner=%s", ev.game_id, ev.status, ev.winner)


class PromotionPrompt:
    def __init__(self, handshake: DecisionHandshake) -> None:
        self._handshake = handshake
        self.pending: DecisionRequest | None = None

    def show(self, req: DecisionRequest) -> None:
        self.pending = req

    def choose(self, choice: str) -> bool:
        req = self.pending
        if req is None:
            return False
        ok = self._handshake.resolve_decision(req.request_id, choice)
        self.pending = None
        return ok

    def dismiss(self) -> bool:
        req = self.pending
        if req is None:
            return False
        self.pending = None
        return self._handshake.cancel(req.request_id)

    def forget(self, request_id: str) -> None:
        if self.pending is not None and self.pending.request_id == request_id:
            self.pending = None


class ThemedPalette:
    def __init__(self, themes: ThemeService) -> None:
        self.colors: ColorScheme | None = None
        self._unsubscribe = themes.subscribe(self.apply)

    def apply(self, colors: ColorScheme) -> None:
        self.colors = colors

    def close(self) -> None:
        self._unsubscribe()


class BoardPresenter:
    def __init__(
        self,
        ui: SerialExecutor,
        game: ChessGame,
        selection: SelectionController,
        handshake: DecisionHandshake,
        themes: ThemeService,
        board_input: BoardInput,
        bus: EventBus,
    ) -> None:
        self._ui = ui
        self._game = game
        self._handshake = handshake
        self._themes = themes
        self.selection = selection
        self.input = board_input
        self.updates = StateUpdateHandler(selection)
        self.prompt = PromotionPrompt(handshake)
        self.palette = ThemedPalette(themes)
        handshake.set_prompt(self.prompt.show)
        self._unsubs = [
            bus.subscribe(StateChanged, self._on_state_changed),
            bus.subscribe(DecisionResolved, self._on_decision_resolved),
        ]

    # notifications arrive on the mutator's thread; re-post them

    def _post(self, fn: Any) -> None:
        try:
            self._ui.submit(fn)
        except ExecutorClosed:
            log.debug("UI executor closed, notification dropped")

    def _on_state_changed(self, ev: StateChanged) -> None:
        self._post(lambda: self.updates.handle(ev))

    def _on_decision_resolved(self, ev: DecisionResolved) -> None:
        self._post(lambda: self.prompt.forget(ev.request_id))

    # input

    def click(self, x: float, y: float) -> Activation:
        return self._ui.call(lambda: self.selection.activate_square(self.input.square_at(x, y)))

    def activate(self, p: Position | None) -> Activation:
        return self._ui.call(lambda: self.selection.activate_square(p))

    def flip(self) -> None:
        def run() -> None:
            self.input.flip()
            self.selection.clear()

        self._ui.call(run)

    def toggle_show_moves(self) -> bool:
        def run() -> bool:
            policy = self.selection.policy
            self.selection.policy = policy.model_copy(update={"show_moves": not policy.show_moves})
            return self.selection.policy.show_moves

        return self._ui.call(run)

    def set_input_enabled(self, enabled: bool) -> None:
        def run() -> None:
            self.selection.enabled = enabled
            if not enabled:
                self.selection.clear()

        self._ui.call(run)

    def choose_promotion(self, choice: str) -> bool:
        return self._ui.call(lambda: self.prompt.choose(choice))

    def dismiss_promotion(self) -> bool:
        return self._ui.call(self.prompt.dismiss)

    def pending_decision(self) -> DecisionRequest | None:
        return self._ui.call(lambda: self.prompt.pending)

    def resolve_decision(self, request_id: str, choice: str) -> bool:
        """Answer a decision by id, as a remote client would; raises InvalidDecisionChoice."""
        return self._ui.call(lambda: self._handshake.resolve_decision(request_id, choice))

    # view settings

    def resize(self, width: float, height: float) -> None:
        self._ui.call(lambda: self.input.resize(width, height))

    def switch_theme(self, name: str) -> None:
        self._ui.call(lambda: self._themes.switch(name))

    # rendering

    def view(self) -> BoardView:
        return self._ui.call(self._render)

    def _render(self) -> BoardView:
        rows, cols = self._game.grid_size()
        board = []
        for r in range(rows):
            line = []
            for c in range(cols):
                o = self._game.get_occupant_at(Position(row=r, col=c))
                line.append(None if o is None else o.symbol)
            board.append(line)
        last = self.updates.last
        return BoardView(
            board=board,
            turn=self._game.get_turn_color(),
            game_over=self._game.is_game_over(),
            selection=self.selection.current_selection(),
            highlights=sorted(self.selection.highlighted_squares(), key=Position.as_tuple),
            white_at_bottom=self.input.white_at_bottom,
            input_enabled=self.selection.enabled,
            check_warning=self.updates.check_warning,
            last_outcome=last.outcome.value if last else None,
            pending_decision=self.prompt.pending,
            palette=self.palette.colors,
            history=list(self.updates.history),
            captured_white=[pc.symbol for pc in self._game.captured_by("white")],
            captured_black=[pc.symbol for pc in self._game.captured_by("black")],
            theme=self._themes.current_name,
        )

    def close(self) -> None:
        for unsub in self._unsubs:
            unsub()
        self._unsubs.clear()
        self.palette.close()
