from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .events import DecisionResolved, StateChanged
from .rulesets.chess.models import MoveOutcome

if TYPE_CHECKING:
    from collections.abc import Callable

    from .events import EventBus

log = logging.getLogger("boardcore.events")


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [%(threadName)s] %(name)s: %(message)s",
    )


def _on_state_changed(ev: StateChanged) -> None:
    if ev.outcome == MoveOutcome.MOVED:
        log.info("[%s] %s -> %s, %s to move (%s)", ev.game_id, ev.src, ev.dst, ev.turn, ev.status)
    else:
        log.info("[%s] %s -> %s refused: %s", ev.game_id, ev.src, ev.dst, ev.outcome.value)


def _on_decision_resolved(ev: DecisionResolved) -> None:
    log.info(
        "decision %s for %s: %s%s",
        ev.request_id,
        ev.subject,
        ev.choice,
        " (default)" if ev.cancelled else "",
    )


def register_listeners(bus: EventBus) -> list[Callable[[], None]]:
    return [
        bus.subscribe(StateChanged, _on_state_changed),
        bus.subscribe(DecisionResolved, _on_decision_resolved),
    ]
