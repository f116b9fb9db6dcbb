"""
FastAPI web application for the AI Chess Challenge.

Endpoints:
    POST /api/chess-move     Black's (or any side's) move chosen by the LLM
                             with the standard prompt and ply-count model
                             policy.
    POST /api/chess-move-2   Same pipeline with the rich prompt and a fixed
                             model.
    POST /api/evaluate       Material evaluation and game status for the
                             evaluation bar.
    GET  /api/health         Configuration status.
    GET  /                   The chessboard.js frontend.

Architecture notes:
- Sync endpoints: FastAPI runs them in its thread pool, which suits the
  blocking OpenAI client call.
- Stateless per request: the client sends the FEN each time; the server keeps
  no board between requests.
- The OpenAI client is injected through the get_llm_client dependency so tests
  can replace it via app.dependency_overrides.
- Static files are mounted last: route registration is first-match.
"""

import logging
from pathlib import Path
from typing import Any, Optional

import chess
from fastapi import Depends, FastAPI
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel

from engine.evaluate import evaluate_board
from engine.game import color_name, game_result, parse_board, replay_moves
from engine.llm import get_client
from engine.selection import select_move
from web.config import Settings, get_settings
from web.errors import FEN_REQUIRED, BadRequestError, error_response, register_error_handlers

# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------

logging.basicConfig(level=get_settings().log_level)
_log = logging.getLogger(__name__)

_STATIC_DIR = Path(__file__).parent / "static"

app = FastAPI(title="AI Chess Challenge", version="1.0.0")
register_error_handlers(app)


def get_llm_client(settings: Settings = Depends(get_settings)) -> Any:
    """OpenAI client for this process, or None without an API key."""
    return get_client(settings.openai_api_key)


# ---------------------------------------------------------------------------
# Request / response models
# ---------------------------------------------------------------------------


class MoveRequest(BaseModel):
    """
    Fields:
        fen: FEN of the position the AI must move in.
    """

    fen: Optional[str] = None


class EvaluateRequest(BaseModel):
    """
    Fields:
        fen:   Starting FEN of the game (defaults to the standard start).
        moves: Moves played since `fen`, in UCI or SAN. Replaying them lets
               the server detect threefold repetition.
    """

    fen: str = chess.STARTING_FEN
    moves: list[str] = []


class HealthResponse(BaseModel):
    status: str
    openaiConfigured: bool
    nodeEnv: str


# ---------------------------------------------------------------------------
# Move pipeline
# ---------------------------------------------------------------------------


def _game_over_payload(board: chess.Board) -> Optional[dict[str, Any]]:
    result = game_result(board)
    if not result.is_over:
        return None
    return {
        "error": result.message if result.winner is not None else "Game drawn",
        "gameOver": True,
        "winner": result.winner_name,
        "reason": result.outcome.reason,
    }


def _move_payload(board: chess.Board, san: str) -> dict[str, Any]:
    """Describe the position after `san` is played on `board`."""
    after = board.copy()
    after.push_san(san)
    result = game_result(after)
    turn = color_name(after.turn)
    payload: dict[str, Any] = {
        "move": san,
        "turn": turn,
        "inCheck": after.is_check(),
        "gameOver": result.is_over,
    }
    if result.is_over:
        payload["message"] = result.message
    elif after.is_check():
        payload["message"] = f"Check! {turn.capitalize()} is in check."
    return payload


def _choose_move(
    request: MoveRequest,
    client: Any,
    settings: Settings,
    *,
    style: str,
    policy: str,
    route: str,
) -> Any:
    _log.info("Received request to %s", route)
    if not request.fen:
        raise BadRequestError(FEN_REQUIRED)

    _log.info("Processing FEN: %s", request.fen)
    board = parse_board(request.fen)

    game_over = _game_over_payload(board)
    if game_over is not None:
        _log.info("Game already over for FEN=%s: %s", request.fen, game_over["reason"])
        return game_over

    try:
        selection = select_move(
            board,
            client,
            style=style,
            policy=policy,
            model=settings.model,
            fast_model=settings.fast_model,
            ply_threshold=settings.model_ply_threshold,
        )
        payload = _move_payload(board, selection.san)
    except Exception as exc:
        _log.exception("Error in %s for FEN=%s", route, request.fen)
        return error_response(
            500, str(exc) or "Failed to get AI move", exc=exc, include_stack=settings.is_development
        )

    if selection.warning:
        payload["warning"] = selection.warning
    if selection.original_error:
        payload["originalError"] = selection.original_error

    _log.info(
        "Move=%s source=%s model=%s fen=%s",
        selection.san,
        selection.source,
        selection.model,
        request.fen[:40],
    )
    return payload


# ---------------------------------------------------------------------------
# API routes (registered BEFORE StaticFiles mount)
# ---------------------------------------------------------------------------


@app.post("/api/chess-move")
def api_chess_move(
    request: MoveRequest,
    client: Any = Depends(get_llm_client),
    settings: Settings = Depends(get_settings),
) -> Any:
    """
    Choose the AI's move with the standard prompt.

    Returns:
        200 {move, turn, inCheck, gameOver, message?, warning?} on success,
        200 {error, gameOver: true, winner, reason} for a finished position,
        400 for a missing or invalid FEN, 500 for model failures.
    """
    return _choose_move(
        request, client, settings, style="standard", policy="ply-count", route="/api/chess-move"
    )


@app.post("/api/chess-move-2")
def api_chess_move_2(
    request: MoveRequest,
    client: Any = Depends(get_llm_client),
    settings: Settings = Depends(get_settings),
) -> Any:
    """Choose the AI's move with the rich prompt and the fixed model."""
    return _choose_move(
        request, client, settings, style="rich", policy="fixed", route="/api/chess-move-2"
    )


@app.post("/api/evaluate")
def api_evaluate(request: EvaluateRequest) -> dict[str, Any]:
    """Evaluate the position reached by replaying `moves` from `fen`."""
    board = replay_moves(request.fen, request.moves)
    result = game_result(board)
    return {
        "fen": board.fen(),
        "evaluation": evaluate_board(board),
        "turn": color_name(board.turn),
        "inCheck": board.is_check(),
        "gameOver": result.is_over,
        "winner": color_name(result.winner) if result.winner is not None else None,
        "reason": result.outcome.value,
        "message": result.message,
    }


@app.get("/api/health", response_model=HealthResponse)
def api_health(settings: Settings = Depends(get_settings)) -> HealthResponse:
    return HealthResponse(
        status="ok" if settings.openai_configured else "error",
        openaiConfigured=settings.openai_configured,
        nodeEnv=settings.app_env,
    )


@app.get("/", include_in_schema=False)
def serve_root() -> FileResponse:
    """Serve the main chessboard UI."""
    return FileResponse(_STATIC_DIR / "index.html")


# ---------------------------------------------------------------------------
# Static file mount - MUST be last (catch-all for /static/* assets)
# ---------------------------------------------------------------------------

app.mount("/static", StaticFiles(directory=_STATIC_DIR), name="static")


def main() -> None:
    """Run the development server (`ai-chess-server`)."""
    import uvicorn

    uvicorn.run("web.app:app", host="127.0.0.1", port=8000, reload=get_settings().is_development)


if __name__ == "__main__":
    main()
