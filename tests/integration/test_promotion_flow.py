import threading
import time

import pytest

from boardcore.events import StateChanged
from boardcore.handshake.decision import InvalidDecisionChoice
from boardcore.rulesets.chess.models import MoveOutcome, Piece
from boardcore.rulesets.chess.rules import parse_square as sq
from boardcore.selection.models import Activation


def start_promotion(s, wait_for):
    assert s.presenter.activate(sq("a7")) == Activation.SELECTED
    assert s.presenter.activate(sq("a8")) == Activation.COMMITTED
    return wait_for(s.presenter.pending_decision)


@pytest.mark.timeout(20)
def test_human_choice_reaches_the_board(make_session, promotion_state, wait_for):
    s = make_session("white", promotion_state)
    req = start_promotion(s, wait_for)
    assert req.subject == "white"
    assert req.choices == ("queen", "rook", "bishop", "knight")

    assert s.presenter.choose_promotion("rook")
    assert s.settle()
    assert s.game.get_occupant_at(sq("a8")) == Piece(type="rook", color="white")
    view = s.presenter.view()
    assert view.pending_decision is None
    assert view.board[0][0] == "R"
    assert view.last_outcome == MoveOutcome.MOVED.value


@pytest.mark.timeout(20)
def test_board_stays_readable_while_decision_outstanding(make_session, promotion_state, wait_for):
    s = make_session("white", promotion_state)
    start_promotion(s, wait_for)
    # the mutator is parked holding its lock; reads go to the last snapshot
    view = s.presenter.view()
    assert view.pending_decision is not None
    assert view.board[1][0] == "P"
    assert view.board[0][0] is None
    assert view.turn == "white"
    assert s.presenter.activate(sq("e1")) == Activation.SELECTED


@pytest.mark.timeout(20)
def test_teardown_resolves_with_default(make_session, promotion_state, wait_for):
    s = make_session("white", promotion_state)
    moved = threading.Event()
    s.bus.subscribe(StateChanged, lambda ev: moved.set())
    start_promotion(s, wait_for)

    t0 = time.monotonic()
    s.close()
    assert moved.wait(5)
    assert time.monotonic() - t0 < 5
    assert s.game.snapshot().at(sq("a8")) == Piece(type="queen", color="white")


@pytest.mark.timeout(20)
def test_dismissed_prompt_promotes_to_default(make_session, promotion_state, wait_for):
    s = make_session("white", promotion_state)
    start_promotion(s, wait_for)
    assert s.presenter.dismiss_promotion()
    assert s.settle()
    assert s.game.get_occupant_at(sq("a8")) == Piece(type="queen", color="white")


@pytest.mark.timeout(20)
def test_configured_timeout_promotes_to_default(make_session, promotion_state, wait_for):
    s = make_session("white", promotion_state, decision_timeout=0.2)
    s.presenter.activate(sq("a7"))
    s.presenter.activate(sq("a8"))
    wait_for(lambda: s.game.get_occupant_at(sq("a8")))
    assert s.game.get_occupant_at(sq("a8")).type == "queen"


@pytest.mark.timeout(20)
def test_check_warning_from_unlisted_square(make_session):
    from boardcore.rulesets.chess.factory import quickstart

    st = quickstart(
        {
            "e1": Piece(type="king", color="white"),
            "e2": Piece(type="bishop", color="white"),
            "e8": Piece(type="rook", color="black"),
            "a8": Piece(type="king", color="black"),
        }
    )
    s = make_session("white", st)
    assert s.presenter.activate(sq("e2")) == Activation.SELECTED
    assert s.presenter.view().selection.destinations == frozenset()
    assert s.presenter.activate(sq("d3")) == Activation.COMMITTED
    s.settle()
    view = s.presenter.view()
    assert view.check_warning
    assert view.last_outcome == MoveOutcome.INVALID_IN_CHECK.value
    assert view.selection.origin is None


@pytest.mark.timeout(20)
def test_remote_side_can_preview_but_not_move(make_session):
    s = make_session("black")
    assert s.presenter.activate(sq("e2")) == Activation.SELECTED
    assert sq("e4") in s.presenter.view().selection.destinations
    assert s.presenter.activate(sq("e4")) == Activation.CLEARED
    s.settle()
    assert s.game.get_occupant_at(sq("e2")) is not None
    assert s.game.get_turn_color() == "white"


@pytest.mark.timeout(20)
def test_hot_seat_game_history_and_captures(make_session):
    s = make_session()
    for src, dst in [("e2", "e4"), ("d7", "d5"), ("e4", "d5")]:
        s.presenter.activate(sq(src))
        assert s.presenter.activate(sq(dst)) == Activation.COMMITTED
        s.settle()
    view = s.presenter.view()
    assert view.turn == "black"
    assert view.history == [(sq("e2"), sq("e4")), (sq("d7"), sq("d5")), (sq("e4"), sq("d5"))]
    assert view.captured_white == ["p"]
    assert view.captured_black == []


@pytest.mark.timeout(20)
def test_black_client_sees_flipped_board(make_session):
    s = make_session("black")
    view = s.presenter.view()
    assert not view.white_at_bottom
    # top-left pixel is h1 from black's side
    assert s.presenter.click(10, 10) == Activation.SELECTED
    assert s.presenter.view().selection.origin == sq("h1")


@pytest.mark.timeout(20)
def test_show_moves_toggle_and_disabled_input(make_session):
    s = make_session("white")
    s.presenter.activate(sq("e2"))
    assert set(s.presenter.view().highlights) == {sq("e2"), sq("e3"), sq("e4")}
    assert s.presenter.toggle_show_moves() is False
    assert s.presenter.view().highlights == [sq("e2")]

    s.presenter.set_input_enabled(False)
    view = s.presenter.view()
    assert not view.input_enabled
    assert view.selection.origin is None
    assert s.presenter.activate(sq("e2")) == Activation.IGNORED


@pytest.mark.timeout(20)
def test_remote_unlisted_square_is_refused_by_the_game(make_session):
    s = make_session("black")
    s.presenter.activate(sq("e2"))
    assert s.presenter.activate(sq("e5")) == Activation.COMMITTED
    assert s.settle()
    view = s.presenter.view()
    assert view.last_outcome == MoveOutcome.ILLEGAL.value
    assert view.board[6][4] == "P"
    assert view.turn == "white"


@pytest.mark.timeout(20)
def test_decision_answered_by_id_on_the_ui_context(make_session, promotion_state, wait_for):
    s = make_session("white", promotion_state)
    req = start_promotion(s, wait_for)
    with pytest.raises(InvalidDecisionChoice):
        s.presenter.resolve_decision(req.request_id, "king")
    assert s.presenter.pending_decision() == req

    assert s.presenter.resolve_decision(req.request_id, "bishop")
    assert not s.presenter.resolve_decision(req.request_id, "rook")
    assert s.settle()
    view = s.presenter.view()
    assert view.board[0][0] == "B"
    assert view.pending_decision is None
