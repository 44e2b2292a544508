from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, Literal, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from .config import Settings
from .core.primitives import Position
from .handshake.decision import DecisionRequest, InvalidDecisionChoice
from .logging_listeners import configure_logging
from .presentation.board_view import BoardView
from .presentation.themes import ThemeService
from .rulesets.chess.rules import parse_square
from .selection.models import Activation
from .session import GameSession, SessionStore


class CreateSessionRequest(BaseModel):
    local_color: Optional[Literal["white", "black"]] = None
    preview_opponent: Optional[bool] = None
    theme: Optional[str] = None


class ActivateRequest(BaseModel):
    square: Optional[str] = None
    row: Optional[int] = None
    col: Optional[int] = None


class ClickRequest(BaseModel):
    x: float
    y: float


class DecisionChoice(BaseModel):
    request_id: str
    choice: str


class SessionView(BaseModel):
    id: str
    local_color: Optional[str] = None
    view: BoardView


class ActivationResponse(BaseModel):
    result: Activation
    view: BoardView


class DecisionResult(BaseModel):
    resolved: bool


class ResizeRequest(BaseModel):
    width: float
    height: float


class ThemeRequest(BaseModel):
    name: str


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)
    sessions = SessionStore(settings.max_sessions)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        sessions.close_all()

    app = FastAPI(title="boardcore", lifespan=lifespan)
    app.state.sessions = sessions

    def _get(sid: str) -> GameSession:
        try:
            return sessions.get(sid)
        except KeyError as e:
            raise HTTPException(404, str(e)) from e

    def _view(s: GameSession) -> SessionView:
        return SessionView(id=s.id, local_color=s.local_color, view=s.presenter.view())

    @app.get("/health")
    def health() -> dict[str, Any]:
        return {"ok": True, "sessions": len(sessions.all())}

    @app.post("/sessions", response_model=SessionView, status_code=201)
    def create_session(req: CreateSessionRequest):
        overrides = {
            k: v
            for k, v in {"preview_opponent": req.preview_opponent, "theme": req.theme}.items()
            if v is not None
        }
        try:
            s = GameSession(req.local_color, settings.model_copy(update=overrides))
        except KeyError as e:
            raise HTTPException(400, str(e)) from e
        sessions.add(s)
        return _view(s)

    @app.get("/sessions/{sid}", response_model=SessionView)
    def get_session(sid: str):
        s = _get(sid)
        s.settle()
        return _view(s)

    @app.post("/sessions/{sid}/activate", response_model=ActivationResponse)
    def activate(sid: str, req: ActivateRequest):
        s = _get(sid)
        if req.square is not None:
            try:
                p = parse_square(req.square)
            except ValueError as e:
                raise HTTPException(400, str(e)) from e
        elif req.row is not None and req.col is not None:
            p = Position(row=req.row, col=req.col)
        else:
            raise HTTPException(400, "give a square name or row and col")
        result = s.presenter.activate(p)
        s.settle()
        return ActivationResponse(result=result, view=s.presenter.view())

    @app.post("/sessions/{sid}/click", response_model=ActivationResponse)
    def click(sid: str, req: ClickRequest):
        s = _get(sid)
        result = s.presenter.click(req.x, req.y)
        s.settle()
        return ActivationResponse(result=result, view=s.presenter.view())

    @app.post("/sessions/{sid}/flip", response_model=SessionView)
    def flip(sid: str):
        s = _get(sid)
        s.presenter.flip()
        return _view(s)

    @app.post("/sessions/{sid}/resize", response_model=SessionView)
    def resize(sid: str, req: ResizeRequest):
        s = _get(sid)
        s.presenter.resize(req.width, req.height)
        return _view(s)

    @app.get("/themes")
    def themes() -> dict[str, str]:
        return ThemeService(settings.theme).available()

    @app.post("/sessions/{sid}/theme", response_model=SessionView)
    def switch_theme(sid: str, req: ThemeRequest):
        s = _get(sid)
        try:
            s.presenter.switch_theme(req.name)
        except KeyError as e:
            raise HTTPException(400, str(e)) from e
        return _view(s)

    @app.get("/sessions/{sid}/decision", response_model=Optional[DecisionRequest])
    def pending_decision(sid: str):
        return _get(sid).presenter.pending_decision()

    @app.post("/sessions/{sid}/decision", response_model=DecisionResult)
    def resolve_decision(sid: str, req: DecisionChoice):
        s = _get(sid)
        try:
            ok = s.presenter.resolve_decision(req.request_id, req.choice)
        except InvalidDecisionChoice as e:
            raise HTTPException(400, str(e)) from e
        s.settle()
        return DecisionResult(resolved=ok)

    @app.delete("/sessions/{sid}")
    def delete_session(sid: str):
        if not sessions.delete(sid):
            raise HTTPException(404, f"Unknown session: {sid}")
        return {"ok": True}

    return app


app = create_app()
