from __future__ import annotations

import logging
from typing import Any, Dict, Literal, Optional

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, Field

from .error import (
    chess_error_handler,
    exception_handler,
    http_exception_handler,
    request_validation_exception_handler,
)
from .logging_middleware import RequestIDLoggingMiddleware
from .session import GameSession, InMemorySessionStore
from ...config import Settings
from ...engine.board import BLACK, STARTPOS_FEN, WHITE
from ...engine.errors import ChessError
from ...engine.game import Game
from ...engine.move import parse_uci
from ...engine.perft import divide, perft as perft_nodes
from ...engine.fen import position_from_fen


logger = logging.getLogger(__name__)


class CreateGameRequest(BaseModel):
    fen: Optional[str] = Field(default=None, description="Start from this FEN instead")


class CreateGameResponse(BaseModel):
    game_id: str
    fen: str


class SetPositionRequest(BaseModel):
    fen: str = Field(..., description="FEN string")


class MoveRequest(BaseModel):
    move: str = Field(..., description="UCI move string, e.g., e2e4")


class ResignRequest(BaseModel):
    color: Literal["white", "black"] = Field(..., description="Side that resigns")


class SearchRequest(BaseModel):
    depth: Optional[int] = Field(default=None, ge=1, le=64)


class PerftRequest(BaseModel):
    fen: str = Field(default=STARTPOS_FEN)
    depth: int = Field(default=1, ge=0, le=6)
    divide: bool = False


class GameStateResponse(BaseModel):
    game_id: str
    fen: str
    state: str
    legal_moves: list[str]
    in_check: bool
    checkmate: bool
    stalemate: bool
    draw: bool
    result: Optional[str]
    last_move: Optional[str]
    move_history: list[str]
    halfmove_clock: int
    fullmove_number: int


class HistoryResponse(BaseModel):
    game_id: str
    ply: int
    fen: str
    move: Optional[str]


def _state_response(game_id: str, game: Game) -> GameStateResponse:
    history = game.move_history_uci()
    state = game.state()
    return GameStateResponse(
        game_id=game_id,
        fen=game.to_fen(),
        state=state.value,
        legal_moves=[m.to_uci() for m in game.legal_moves()],
        in_check=game.in_check(),
        checkmate=game.checkmate(),
        stalemate=game.stalemate(),
        draw=state.is_draw,
        result=game.result(),
        last_move=history[-1] if history else None,
        move_history=history,
        halfmove_clock=game.halfmove_clock,
        fullmove_number=game.fullmove_number,
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()
    app = FastAPI(title="Mailbox Chess API", version="0.1.0")

    settings.configure_logging()

    # Middleware & error handling
    app.add_middleware(RequestIDLoggingMiddleware)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(ChessError, chess_error_handler)
    app.add_exception_handler(Exception, exception_handler)

    store = InMemorySessionStore(
        hash_mb=settings.hash_mb, quiescence_depth=settings.quiescence_depth
    )
    app.state.store = store
    app.state.settings = settings

    @app.get("/healthz")
    async def healthz() -> Dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/games", response_model=CreateGameResponse)
    async def create_game(req: Optional[CreateGameRequest] = None) -> CreateGameResponse:
        game = Game.from_fen(req.fen) if req is not None and req.fen else Game.new()
        game_id = store.create(game)
        return CreateGameResponse(game_id=game_id, fen=game.to_fen())

    @app.get("/api/games/{game_id}/state", response_model=GameStateResponse)
    async def get_state(game_id: str) -> GameStateResponse:
        session = _require_session(store, game_id)
        return _state_response(game_id, session.game)

    @app.post("/api/games/{game_id}/position", response_model=GameStateResponse)
    async def set_position(game_id: str, req: SetPositionRequest) -> GameStateResponse:
        _require_session(store, game_id)
        game = Game.from_fen(req.fen)
        store.replace_game(game_id, game)
        return _state_response(game_id, game)

    # Plain def: these wait on the search lock, which must not block the event loop
    @app.post("/api/games/{game_id}/move", response_model=GameStateResponse)
    def make_move(game_id: str, req: MoveRequest) -> GameStateResponse:
        session = _require_session(store, game_id)
        try:
            move = parse_uci(req.move)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        with session.search_lock:
            session.game.apply_move(move)
            return _state_response(game_id, session.game)

    @app.post("/api/games/{game_id}/resign", response_model=GameStateResponse)
    def resign(game_id: str, req: ResignRequest) -> GameStateResponse:
        session = _require_session(store, game_id)
        with session.search_lock:
            session.game.resign(WHITE if req.color == "white" else BLACK)
            return _state_response(game_id, session.game)

    @app.post("/api/games/{game_id}/draw", response_model=GameStateResponse)
    def agree_draw(game_id: str) -> GameStateResponse:
        session = _require_session(store, game_id)
        with session.search_lock:
            session.game.agree_draw()
            return _state_response(game_id, session.game)

    @app.get("/api/games/{game_id}/history/{ply}", response_model=HistoryResponse)
    async def history(game_id: str, ply: int) -> HistoryResponse:
        game = _require_session(store, game_id).game
        try:
            fen = game.fen_at(ply)
        except IndexError as e:
            raise HTTPException(status_code=404, detail=str(e))
        move = game.history[ply].move
        return HistoryResponse(
            game_id=game_id, ply=ply, fen=fen, move=move.to_uci() if move else None
        )

    # Plain def: search is CPU bound and runs in the worker threadpool
    @app.post("/api/games/{game_id}/search")
    def search(game_id: str, req: SearchRequest) -> Dict[str, Any]:
        session = _require_session(store, game_id)
        depth = req.depth or settings.default_depth
        if depth > settings.max_depth:
            raise HTTPException(
                status_code=400, detail=f"depth must be <= {settings.max_depth}"
            )
        with session.search_lock:
            res = session.search.search(session.game, depth=depth)
        # Score object: either cp or mate (UCI-style)
        score: Dict[str, Any]
        if res.mate_in is not None:
            score = {"mate": res.mate_in}
        else:
            score = {"cp": res.score_cp}
        return {
            "best_move": res.best_move.to_uci() if res.best_move else None,
            "score": score,
            "pv": [m.to_uci() for m in res.pv],
            "nodes": res.stats.nodes,
            "qnodes": res.stats.qnodes,
            "seldepth": res.stats.seldepth,
            "tt_hits": res.stats.tt_hits,
            "depth": res.depth,
            "time_ms": res.time_ms,
            "hashfull": res.hashfull,
        }

    @app.post("/api/perft")
    def perft(req: PerftRequest) -> Dict[str, Any]:
        position = position_from_fen(req.fen)
        out: Dict[str, Any] = {"nodes": perft_nodes(position, req.depth)}
        if req.divide and req.depth >= 1:
            out["divide"] = divide(position, req.depth)
        return out

    return app


def _require_session(store: InMemorySessionStore, game_id: str) -> GameSession:
    session = store.get(game_id)
    if session is None:
        raise HTTPException(status_code=404, detail="game not found")
    return session


# Default app for non-factory servers
app = create_app()
