import pytest

from boardcore.core.primitives import pos
from boardcore.presentation.input import BoardInput
from boardcore.presentation.themes import THEMES, ThemeService


def test_pixel_to_square_white_at_bottom():
    bi = BoardInput(width=400, height=400)
    assert bi.square_at(0, 0) == pos(0, 0)
    assert bi.square_at(399, 399) == pos(7, 7)
    assert bi.square_at(125, 260) == pos(5, 2)


def test_pixel_to_square_flipped():
    bi = BoardInput(width=400, height=400)
    bi.flip()
    assert bi.square_at(0, 0) == pos(7, 7)
    assert bi.square_at(399, 399) == pos(0, 0)
    assert bi.to_view(pos(7, 7)) == (0, 0)


@pytest.mark.parametrize("x,y", [(-1, 10), (10, -1), (400, 10), (10, 400)])
def test_pixels_off_board_resolve_to_nothing(x, y):
    assert BoardInput(width=400, height=400).square_at(x, y) is None


def test_unsized_board_resolves_to_nothing():
    assert BoardInput().square_at(10, 10) is None


def test_theme_subscribe_applies_current_then_switches():
    themes = ThemeService("classic")
    seen = []
    unsubscribe = themes.subscribe(seen.append)
    assert seen == [THEMES["classic"]]
    themes.switch("beach")
    assert seen[-1] == THEMES["beach"]
    unsubscribe()
    themes.switch("neon")
    assert seen[-1] == THEMES["beach"]
    assert themes.subscriber_count() == 0


def test_theme_close_drops_subscribers():
    themes = ThemeService()
    for _ in range(3):
        themes.subscribe(lambda s: None)
    themes.close()
    assert themes.subscriber_count() == 0


def test_unknown_theme():
    with pytest.raises(KeyError):
        ThemeService("sepia")
    with pytest.raises(KeyError):
        ThemeService().switch("sepia")


def test_resize_rescales_squares():
    bi = BoardInput(width=400, height=400)
    bi.resize(800, 800)
    assert bi.square_at(125, 260) == pos(2, 1)
    bi.resize(0, 0)
    assert bi.square_at(125, 260) is None


def test_available_themes_and_current_name():
    themes = ThemeService("chalk")
    assert themes.current_name == "chalk"
    assert set(themes.available()) == set(THEMES)
    themes.switch("pizza")
    assert themes.current_name == "pizza"
