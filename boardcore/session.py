from __future__ import annotations

import logging
import threading
import time
import uuid
from collections import OrderedDict
from datetime import datetime
from typing import Optional

from .config import Settings
from .engine.executor import SerialExecutor
from .events import EventBus
from .handshake.decision import DecisionHandshake
from .logging_listeners import register_listeners
from .presentation.board_view import BoardPresenter
from .presentation.input import BoardInput
from .presentation.themes import ThemeService
from .rulesets.chess.game import ChessGame
from .rulesets.chess.models import Color, State
from .selection.controller import SelectionController
from .selection.models import SelectionPolicy

log = logging.getLogger(__name__)


class GameSession:
    """One game with its two execution contexts and the parts wired between them."""

    def __init__(
        self,
        local_color: Optional[Color] = None,
        settings: Settings | None = None,
        state: State | None = None,
        themes: ThemeService | None = None,
    ) -> None:
        self.settings = settings or Settings()
        # unknown theme names fail here, before any thread is started
        self.themes = themes or ThemeService(self.settings.theme)
        self._owns_themes = themes is None
        self.id = uuid.uuid4().hex
        self.created_at = datetime.now().isoformat()
        self.local_color = local_color
        self.bus = EventBus()
        self._unsubs = register_listeners(self.bus)
        self.ui = SerialExecutor(f"ui-{self.id[:8]}").start()
        self.worker = SerialExecutor(f"game-{self.id[:8]}").start()
        self.handshake = DecisionHandshake(self.ui, timeout=self.settings.decision_timeout, bus=self.bus)
        self.game = ChessGame(state, game_id=self.id, bus=self.bus, decisions=self.handshake, worker=self.worker)
        policy = SelectionPolicy(
            preview_opponent=self.settings.preview_opponent,
            show_moves=self.settings.show_moves,
        )
        self.selection = SelectionController(self.game, local_color=local_color, policy=policy)
        side = self.settings.board_pixels
        self.presenter = BoardPresenter(
            self.ui,
            self.game,
            self.selection,
            self.handshake,
            self.themes,
            BoardInput(width=side, height=side),
            self.bus,
        )
        if local_color == "black":
            self.presenter.flip()
        self._closed = False
        log.info("session %s started (local=%s)", self.id, local_color or "both")

    def settle(self, timeout: float = 5.0) -> bool:
        """Wait for queued moves and the notifications they posted.

        Returns early, with False, while a move is parked on a decision.
        """
        deadline = time.monotonic() + timeout
        done = self.worker.drain(0.05)
        while not done and not self.handshake.pending() and time.monotonic() < deadline:
            done = self.worker.drain(0.05)
        return self.ui.drain(timeout) and done

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        # unblock a mutator waiting on a decision before stopping its thread
        self.handshake.close()
        self.worker.shutdown()
        self.presenter.close()
        self.ui.shutdown()
        if self._owns_themes:
            self.themes.close()
        for unsub in self._unsubs:
            unsub()
        log.info("session %s closed", self.id)


class SessionStore:
    """In-process store; oldest sessions are closed and evicted past capacity."""

    def __init__(self, max_sessions: int = 50) -> None:
        self._data: OrderedDict[str, GameSession] = OrderedDict()
        self._lock = threading.Lock()
        self.max_sessions = max_sessions

    def add(self, s: GameSession) -> None:
        with self._lock:
            self._data[s.id] = s
            evicted = []
            while len(self._data) > self.max_sessions:
                _, old = self._data.popitem(last=False)
                evicted.append(old)
        for old in evicted:
            log.info("evicting session %s", old.id)
            old.close()

    def get(self, sid: str) -> GameSession:
        with self._lock:
            if sid not in self._data:
                raise KeyError(f"Unknown session: {sid}")
            return self._data[sid]

    def delete(self, sid: str) -> bool:
        with self._lock:
            s = self._data.pop(sid, None)
        if s is None:
            return False
        s.close()
        return True

    def all(self) -> list[GameSession]:
        with self._lock:
            return list(self._data.values())

    def close_all(self) -> None:
        with self._lock:
            sessions = list(self._data.values())
            self._data.clear()
        for s in sessions:
            s.close()
