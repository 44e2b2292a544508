from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar, cast

if TYPE_CHECKING:
    from collections.abc import Callable

    from boardcore.core.primitives import Position
    from boardcore.rulesets.chess.models import MoveOutcome


@dataclass
class StateChanged:
    """Pushed after every move commit attempt, legal or not."""

    game_id: str
    outcome: MoveOutcome
    src: Position | None = None
    dst: Position | None = None
    turn: str | None = None
    status: str = "ongoing"
    winner: str | None = None
    message: str | None = None
    promotion: str | None = None

    @property
    def board_changed(self) -> bool:
        from boardcore.rulesets.chess.models import MoveOutcome

        return self.outcome == MoveOutcome.MOVED


@dataclass
class DecisionResolved:
    request_id: str
    subject: Any
    choice: str
    cancelled: bool = False


T = TypeVar("T")


class EventBus:
    def __init__(self) -> None:
        self._subs: dict[type[Any], list[object]] = {}
        self._lock = threading.Lock()

    def subscribe(self, event_type: type[T], handler: Callable[[T], None]) -> Callable[[], None]:
        with self._lock:
            lst = self._subs.setdefault(event_type, [])
            lst.append(cast("object", handler))
        return lambda: self.unsubscribe(event_type, handler)

    def unsubscribe(self, event_type: type[T], handler: Callable[[T], None]) -> None:
        with self._lock:
            lst = self._subs.get(event_type, [])
            if handler in lst:
                lst.remove(handler)

    def clear(self) -> None:
        with self._lock:
            self._subs.clear()

    def emit(self, event: Any) -> None:
        with self._lock:
            handlers = list(self._subs.get(type(event), []))
        for h in handlers:
            # Let exceptions propagate; callers decide how to handle them
            cast("Callable[[Any], None]", h)(event)
