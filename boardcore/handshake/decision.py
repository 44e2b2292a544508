"""Cross-thread decision handshake.

A background mutator that reaches a point only a human can settle (which
piece to promote to) calls ``request``.  The prompt is posted onto the
interactive executor, never run inline, and the mutator waits on a
future that is resolved exactly once: by ``resolve_decision`` with the
human's choice, or with the request's default when the prompt is
cancelled, the surface is torn down, or the optional timeout runs out.
"""

from __future__ import annotations

import logging
import threading
import uuid
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeout
from typing import TYPE_CHECKING, Any, Protocol

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..engine.executor import ExecutorClosed
from ..events import DecisionResolved

if TYPE_CHECKING:
    from collections.abc import Callable

    from ..engine.executor import SerialExecutor
    from ..events import EventBus

log = logging.getLogger(__name__)


class DecisionError(RuntimeError):
    pass


class InvalidDecisionChoice(ValueError):
    pass


class DecisionRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    request_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    subject: Any = None
    choices: tuple[str, ...]
    default: str

    @model_validator(mode="after")
    def _default_is_a_choice(self) -> DecisionRequest:
        if not self.choices:
            raise ValueError("a decision needs at least one choice")
        if self.default not in self.choices:
            raise ValueError(f"default {self.default!r} is not one of {self.choices}")
        return self


class DecisionResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    request_id: str
    choice: str
    cancelled: bool = False


class DecisionSource(Protocol):
    """What a game mutator calls when it needs a human decision."""

    def request_decision(
        self, subject: Any, choices: tuple[str, ...], default: str
    ) -> str: ...


class _Pending:
    __slots__ = ("request", "future")

    def __init__(self, request: DecisionRequest) -> None:
        self.request = request
        self.future: Future[DecisionResponse] = Future()


class DecisionHandshake:
    """Request/response channel between a mutator thread and the UI executor.

    ``prompt`` is called on ``ui`` with the request and is expected to show
    it to a human, who eventually answers through ``resolve_decision``.
    """

    def __init__(
        self,
        ui: SerialExecutor,
        prompt: Callable[[DecisionRequest], None] | None = None,
        *,
        timeout: float | None = None,
        bus: EventBus | None = None,
    ) -> None:
        self._ui = ui
        self._prompt = prompt
        self._timeout = timeout
        self._bus = bus
        self._lock = threading.Lock()
        self._pending: dict[str, _Pending] = {}
        self._closed = False

    def set_prompt(self, prompt: Callable[[DecisionRequest], None]) -> None:
        self._prompt = prompt

    @property
    def closed(self) -> bool:
        return self._closed

    def pending(self) -> list[DecisionRequest]:
        with self._lock:
            return [p.request for p in self._pending.values()]

    # mutator side

    def request(
        self, subject: Any, choices: tuple[str, ...] | list[str], default: str
    ) -> DecisionResponse:
        """Block the calling thread until the decision is resolved."""
        if self._ui.is_current():
            raise DecisionError(
                "decision requested from the interactive thread; it would wait on itself"
            )
        req = DecisionRequest(subject=subject, choices=tuple(choices), default=default)
        entry = _Pending(req)
        with self._lock:
            if self._closed:
                log.info("[handshake] surface closed, defaulting %s to %r", req.request_id, default)
                return DecisionResponse(request_id=req.request_id, choice=default, cancelled=True)
            if any(p.request.subject == subject for p in self._pending.values()):
                raise DecisionError(f"a decision for {subject!r} is already outstanding")
            self._pending[req.request_id] = entry

        log.debug("[handshake] request %s for %r, choices=%s", req.request_id, subject, req.choices)
        try:
            self._ui.submit(lambda: self._show(req))
        except ExecutorClosed:
            self._finish(req.request_id, default, cancelled=True)

        try:
            return entry.future.result(timeout=self._timeout)
        except FutureTimeout:
            log.warning("[handshake] %s timed out after %ss", req.request_id, self._timeout)
            self._finish(req.request_id, default, cancelled=True)
            return entry.future.result()

    def request_decision(
        self, subject: Any, choices: tuple[str, ...], default: str
    ) -> str:
        return self.request(subject, choices, default).choice

    def _show(self, req: DecisionRequest) -> None:
        with self._lock:
            if req.request_id not in self._pending:
                return
        if self._prompt is None:
            log.warning("[handshake] no prompt installed, defaulting %s", req.request_id)
            self._finish(req.request_id, req.default, cancelled=True)
            return
        try:
            self._prompt(req)
        except Exception:
            log.exception("[handshake] prompt failed for %s", req.request_id)
            self._finish(req.request_id, req.default, cancelled=True)

    # interactive side

    def resolve_decision(self, request_id: str, choice: str) -> bool:
        """Deliver the human's choice; False if already resolved or unknown."""
        with self._lock:
            entry = self._pending.get(request_id)
            if entry is not None and choice not in entry.request.choices:
                raise InvalidDecisionChoice(
                    f"{choice!r} is not one of {entry.request.choices}"
                )
        if entry is None:
            log.debug("[handshake] ignoring resolution for unknown/resolved %s", request_id)
            return False
        return self._finish(request_id, choice, cancelled=False)

    def cancel(self, request_id: str) -> bool:
        with self._lock:
            entry = self._pending.get(request_id)
        if entry is None:
            return False
        return self._finish(request_id, entry.request.default, cancelled=True)

    def close(self) -> None:
        """Teardown: every outstanding request gets its default."""
        with self._lock:
            self._closed = True
            outstanding = list(self._pending.values())
        for entry in outstanding:
            self._finish(entry.request.request_id, entry.request.default, cancelled=True)

    def _finish(self, request_id: str, choice: str, *, cancelled: bool) -> bool:
        with self._lock:
            entry = self._pending.pop(request_id, None)
        if entry is None:
            return False
        resp = DecisionResponse(request_id=request_id, choice=choice, cancelled=cancelled)
        entry.future.set_result(resp)
        log.info(
            "[handshake] %s resolved with %r%s",
            request_id,
            choice,
            " (default)" if cancelled else "",
        )
        if self._bus is not None:
            self._bus.emit(
                DecisionResolved(
                    request_id=request_id,
                    subject=entry.request.subject,
                    choice=choice,
                    cancelled=cancelled,
                )
            )
        return True
