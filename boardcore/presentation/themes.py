"""Board color themes.

ThemeService is an ordinary object handed to whoever needs colors.  It
pushes the active scheme to subscribers when they subscribe and on every
switch; subscribers unsubscribe themselves (or the service drops them all
on close) so registrations do not accumulate across games.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

if TYPE_CHECKING:
    from collections.abc import Callable

log = logging.getLogger(__name__)


class ColorScheme(BaseModel):
    """Hex colors; highlight colors carry an alpha byte."""

    model_config = ConfigDict(frozen=True)

    display_name: str
    board_light: str
    board_dark: str
    background: str
    text: str
    move_highlight: str
    selection_highlight: str
    warning_border: str = "#ff0000"


THEMES: dict[str, ColorScheme] = {
    "classic": ColorScheme(
        display_name="Classic Enhanced",
        board_light="#fffde0",
        board_dark="#353433",
        background="#f7f3ed",
        text="#2c2c2c",
        move_highlight="#ff6464c8",
        selection_highlight="#dbccbd96",
    ),
    "chalk": ColorScheme(
        display_name="Rock Climbing & Chai",
        board_light="#e8dcc7",
        board_dark="#6b5b54",
        background="#f5eee6",
        text="#3e2e26",
        move_highlight="#ffd700c8",
        selection_highlight="#8bc34a96",
    ),
    "pizza": ColorScheme(
        display_name="Pizza Party",
        board_light="#fff8e7",
        board_dark="#8b2c1b",
        background="#d4a574",
        text="#4a0e0e",
        move_highlight="#ffd700c8",
        selection_highlight="#ffe54d96",
    ),
    "beach": ColorScheme(
        display_name="Vim Beach",
        board_light="#f4e4c1",
        board_dark="#7fb069",
        background="#e8d5b7",
        text="#2c5f2d",
        move_highlight="#ffb3bac8",
        selection_highlight="#87ceeb96",
    ),
    "neon": ColorScheme(
        display_name="Cheerful Dystopia",
        board_light="#d0d0d0",
        board_dark="#ff6ec7",
        background="#e5e5e5",
        text="#333333",
        move_highlight="#39ff14c8",
        selection_highlight="#ff00ff96",
    ),
}


class ThemeService:
    def __init__(self, theme: str = "classic", themes: dict[str, ColorScheme] | None = None) -> None:
        self._themes = dict(themes or THEMES)
        if theme not in self._themes:
            raise KeyError(f"Unknown theme: {theme}")
        self._current = theme
        self._subs: list[Callable[[ColorScheme], None]] = []
        self._lock = threading.Lock()

    @property
    def current_name(self) -> str:
        return self._current

    def current(self) -> ColorScheme:
        return self._themes[self._current]

    def available(self) -> dict[str, str]:
        return {k: v.display_name for k, v in self._themes.items()}

    def subscribe(self, apply: Callable[[ColorScheme], None]) -> Callable[[], None]:
        """Register apply and call it once with the current scheme."""
        with self._lock:
            self._subs.append(apply)
            scheme = self.current()
        apply(scheme)
        return lambda: self.unsubscribe(apply)

    def unsubscribe(self, apply: Callable[[ColorScheme], None]) -> None:
        with self._lock:
            if apply in self._subs:
                self._subs.remove(apply)

    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subs)

    def switch(self, theme: str) -> ColorScheme:
        with self._lock:
            if theme not in self._themes:
                raise KeyError(f"Unknown theme: {theme}")
            self._current = theme
            scheme = self.current()
            subs = list(self._subs)
        log.info("theme switched to %s", theme)
        for apply in subs:
            apply(scheme)
        return scheme

    def close(self) -> None:
        with self._lock:
            self._subs.clear()
