"""
Move selection: prompt the model, validate its answer, fall back to random.

select_move() is the single entry point used by both HTTP endpoints. Its
contract is simple: given a position with at least one legal move, it always
returns a legal move.

Pipeline:
    1. Build the prompt (engine.prompts) in the requested style.
    2. Choose the model (engine.llm.select_model) by policy.
    3. Call the model. Quota and rate-limit errors, or a missing client,
       degrade to a uniformly random legal move with a warning attached.
       Any other API error propagates.
    4. Parse the reply. An empty reply raises EmptyModelReplyError; a reply
       that is not a legal move is replaced by a random legal move.

There is no retry and no backoff.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Any

import chess

from engine.constants import (
    DEFAULT_FAST_MODEL,
    DEFAULT_MODEL,
    DEFAULT_MODEL_PLY_THRESHOLD,
    NOT_CONFIGURED_WARNING,
    QUOTA_WARNING,
)
from engine.errors import EmptyModelReplyError
from engine.llm import is_quota_error, parse_move_reply, request_move_text, select_model
from engine.prompts import build_prompt

_log = logging.getLogger(__name__)


@dataclass
class MoveSelection:
    """
    The chosen move and how it was obtained.

    Attributes:
        move:           The legal move, as a chess.Move.
        san:            The same move in SAN for the position it was chosen in.
        source:         "model" when the model's reply was used, "random" for
                        any fallback.
        model:          Model that was asked, if any.
        reply:          Raw reply text from the model, if any.
        warning:        Set when the fallback was caused by API limits or a
                        missing API key.
        original_error: Message of the API error behind a quota fallback.
    """

    move: chess.Move
    san: str
    source: str
    model: str | None = None
    reply: str | None = None
    warning: str | None = None
    original_error: str | None = None


def random_move(board: chess.Board, rng: random.Random | None = None) -> chess.Move:
    """Pick a legal move uniformly at random."""
    moves = list(board.legal_moves)
    if not moves:
        raise ValueError("No legal moves in this position")
    return (rng or random).choice(moves)


def _fallback(board: chess.Board, rng: random.Random | None, **details: Any) -> MoveSelection:
    move = random_move(board, rng)
    return MoveSelection(move=move, san=board.san(move), source="random", **details)


def select_move(
    board: chess.Board,
    client: Any,
    *,
    style: str = "standard",
    policy: str = "ply-count",
    model: str = DEFAULT_MODEL,
    fast_model: str = DEFAULT_FAST_MODEL,
    ply_threshold: int = DEFAULT_MODEL_PLY_THRESHOLD,
    rng: random.Random | None = None,
) -> MoveSelection:
    """
    Return a legal move for the side to move.

    Args:
        board:   Current position with at least one legal move. Not modified.
        client:  OpenAI client (anything exposing chat.completions.create),
                 or None when no API key is configured.
        style:   Prompt style, "standard" or "rich".
        policy:  Model policy, "ply-count" or "fixed".
        model / fast_model / ply_threshold: Inputs to the model policy.
        rng:     Random source for fallbacks. Module-level random if omitted.

    Returns:
        MoveSelection describing the move.

    Raises:
        EmptyModelReplyError: The model answered with no content.
        Exception: Any API error other than quota / rate limiting.
    """
    legal_moves = [board.san(m) for m in board.legal_moves]
    if not legal_moves:
        raise ValueError("No legal moves in this position")
    _log.info("Found %d legal moves", len(legal_moves))

    chosen_model = select_model(
        board, policy, model=model, fast_model=fast_model, ply_threshold=ply_threshold
    )

    if client is None:
        _log.warning("No OpenAI client configured, falling back to a random move")
        return _fallback(board, rng, model=chosen_model, warning=NOT_CONFIGURED_WARNING)

    prompt = build_prompt(board, legal_moves, style=style)

    try:
        reply = request_move_text(client, chosen_model, prompt)
    except Exception as exc:
        if not is_quota_error(exc):
            raise
        _log.warning("Rate limited or out of quota, falling back to random move: %s", exc)
        return _fallback(
            board, rng, model=chosen_model, warning=QUOTA_WARNING, original_error=str(exc)
        )

    _log.info("Received move from AI: %r", reply)
    if reply is None:
        raise EmptyModelReplyError()

    move = parse_move_reply(board, reply)
    if move is None:
        selection = _fallback(board, rng, model=chosen_model, reply=reply)
        _log.warning(
            "Invalid move from AI: %r. Falling back to random move: %s", reply, selection.san
        )
        return selection

    return MoveSelection(
        move=move, san=board.san(move), source="model", model=chosen_model, reply=reply
    )
