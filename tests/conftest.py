import logging
import time
from typing import Callable, Iterator

import pytest

from boardcore.config import Settings
from boardcore.rulesets.chess.factory import quickstart
from boardcore.rulesets.chess.models import Piece
from boardcore.session import GameSession

logger = logging.getLogger(__name__)


def _wait_for(pred: Callable[[], object], timeout: float = 5.0, interval: float = 0.01):
    """Poll pred until it returns something truthy; fail the test on timeout."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        got = pred()
        if got:
            return got
        time.sleep(interval)
    pytest.fail(f"condition not met within {timeout}s")


@pytest.fixture()
def settings() -> Settings:
    return Settings(board_pixels=400)


@pytest.fixture()
def make_session(settings) -> Iterator[Callable[..., GameSession]]:
    opened: list[GameSession] = []

    def make(local_color=None, state=None, **overrides) -> GameSession:
        s = GameSession(local_color, settings.model_copy(update=overrides), state=state)
        opened.append(s)
        logger.info("[tests] opened session %s", s.id)
        return s

    yield make
    for s in opened:
        s.close()


@pytest.fixture()
def promotion_state():
    return quickstart(
        {
            "a7": Piece(type="pawn", color="white"),
            "e1": Piece(type="king", color="white"),
            "h8": Piece(type="king", color="black"),
        }
    )


@pytest.fixture()
def wait_for():
    return _wait_for
