import pytest
from fastapi.testclient import TestClient

from boardcore.app import create_app
from boardcore.config import Settings
from boardcore.session import GameSession


@pytest.fixture()
def app():
    return create_app(Settings(max_sessions=3))


@pytest.fixture()
def client(app):
    with TestClient(app) as c:
        yield c


def new_session(client, **body):
    r = client.post("/sessions", json=body)
    assert r.status_code == 201, r.text
    return r.json()


@pytest.mark.timeout(30)
def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["ok"] is True


@pytest.mark.timeout(30)
def test_select_then_move(client):
    sid = new_session(client, local_color="white")["id"]

    r = client.post(f"/sessions/{sid}/activate", json={"square": "e2"})
    body = r.json()
    assert body["result"] == "SELECTED"
    assert {"row": 4, "col": 4} in body["view"]["highlights"]

    r = client.post(f"/sessions/{sid}/activate", json={"square": "e4"})
    body = r.json()
    assert body["result"] == "COMMITTED"
    view = body["view"]
    assert view["board"][4][4] == "P"
    assert view["board"][6][4] is None
    assert view["turn"] == "black"
    assert view["last_outcome"] == "MOVED"


@pytest.mark.timeout(30)
def test_click_by_pixel(client):
    sid = new_session(client)["id"]
    # 400px board, 50px squares: (230, 320) is column 4, row 6 -> e2
    r = client.post(f"/sessions/{sid}/click", json={"x": 230, "y": 320})
    assert r.json()["result"] == "SELECTED"
    assert r.json()["view"]["selection"]["origin"] == {"row": 6, "col": 4}


@pytest.mark.timeout(30)
def test_preview_can_be_switched_off(client):
    sid = new_session(client, local_color="black", preview_opponent=False)["id"]
    # white to move; e7 is black's own piece but not the side to move
    r = client.post(f"/sessions/{sid}/activate", json={"row": 1, "col": 4})
    assert r.json()["result"] == "IGNORED"
    assert r.json()["view"]["selection"]["origin"] is None


@pytest.mark.timeout(30)
def test_bad_requests(client):
    sid = new_session(client)["id"]
    assert client.post(f"/sessions/{sid}/activate", json={"square": "z9"}).status_code == 400
    assert client.post(f"/sessions/{sid}/activate", json={}).status_code == 400
    assert client.post("/sessions", json={"theme": "sepia"}).status_code == 400
    assert client.get("/sessions/nope").status_code == 404


@pytest.mark.timeout(30)
def test_flip_and_delete(client):
    sid = new_session(client, local_color="white")["id"]
    r = client.post(f"/sessions/{sid}/flip")
    assert r.json()["view"]["white_at_bottom"] is False
    assert client.delete(f"/sessions/{sid}").status_code == 200
    assert client.get(f"/sessions/{sid}").status_code == 404
    assert client.delete(f"/sessions/{sid}").status_code == 404


@pytest.mark.timeout(30)
def test_oldest_session_evicted(client):
    ids = [new_session(client)["id"] for _ in range(4)]
    assert client.get(f"/sessions/{ids[0]}").status_code == 404
    assert client.get(f"/sessions/{ids[-1]}").status_code == 200


@pytest.mark.timeout(30)
def test_promotion_over_http(app, client, promotion_state, wait_for):
    s = GameSession("white", Settings(), state=promotion_state)
    app.state.sessions.add(s)

    client.post(f"/sessions/{s.id}/activate", json={"square": "a7"})
    r = client.post(f"/sessions/{s.id}/activate", json={"square": "a8"})
    assert r.json()["result"] == "COMMITTED"

    req = wait_for(lambda: client.get(f"/sessions/{s.id}/decision").json())
    assert req["subject"] == "white"
    assert req["default"] == "queen"

    bad = client.post(f"/sessions/{s.id}/decision", json={"request_id": req["request_id"], "choice": "king"})
    assert bad.status_code == 400

    r = client.post(f"/sessions/{s.id}/decision", json={"request_id": req["request_id"], "choice": "knight"})
    assert r.json() == {"resolved": True}
    view = client.get(f"/sessions/{s.id}").json()["view"]
    assert view["board"][0][0] == "N"
    assert view["pending_decision"] is None

    again = client.post(f"/sessions/{s.id}/decision", json={"request_id": req["request_id"], "choice": "rook"})
    assert again.json() == {"resolved": False}


@pytest.mark.timeout(30)
def test_resize_changes_pixel_mapping(client):
    sid = new_session(client)["id"]
    r = client.post(f"/sessions/{sid}/resize", json={"width": 800, "height": 800})
    assert r.status_code == 200
    # 100px squares now: (450, 650) is column 4, row 6 -> e2
    r = client.post(f"/sessions/{sid}/click", json={"x": 450, "y": 650})
    assert r.json()["view"]["selection"]["origin"] == {"row": 6, "col": 4}
    client.post(f"/sessions/{sid}/resize", json={"width": 0, "height": 0})
    r = client.post(f"/sessions/{sid}/click", json={"x": 450, "y": 650})
    assert r.json()["result"] == "IGNORED"


@pytest.mark.timeout(30)
def test_themes_listed_and_switched(client):
    names = client.get("/themes").json()
    assert {"classic", "chalk", "pizza", "beach", "neon"} <= set(names)

    sid = new_session(client)["id"]
    classic = client.get(f"/sessions/{sid}").json()["view"]
    assert classic["theme"] == "classic"
    r = client.post(f"/sessions/{sid}/theme", json={"name": "neon"})
    view = r.json()["view"]
    assert view["theme"] == "neon"
    assert view["palette"] != classic["palette"]
    assert client.post(f"/sessions/{sid}/theme", json={"name": "sepia"}).status_code == 400


@pytest.mark.timeout(30)
def test_captures_reported_in_view(client):
    sid = new_session(client)["id"]
    for src, dst in [("e2", "e4"), ("d7", "d5"), ("e4", "d5"), ("d8", "d5")]:
        client.post(f"/sessions/{sid}/activate", json={"square": src})
        r = client.post(f"/sessions/{sid}/activate", json={"square": dst})
        assert r.json()["result"] == "COMMITTED", (src, dst)
    view = r.json()["view"]
    assert view["captured_white"] == ["p"]
    assert view["captured_black"] == ["P"]
