"""
OpenAI chat-completion calls for move selection.

This module knows how to talk to the model and how to read its answer; it
does not decide what to do when the answer is unusable (see
engine.selection).

The client is created on first use (get_client) rather than at import time,
so a missing API key does not prevent the application from starting. The web
layer hands the client to the selection pipeline explicitly.
"""

from __future__ import annotations

import logging
import re
from typing import Any

import chess
from openai import OpenAI

from engine.constants import (
    DEFAULT_FAST_MODEL,
    DEFAULT_MODEL,
    DEFAULT_MODEL_PLY_THRESHOLD,
    MODEL_SETTINGS,
)
from engine.errors import IllegalMoveError
from engine.game import parse_move
from engine.prompts import ChessPrompt

_log = logging.getLogger(__name__)

_client: OpenAI | None = None

# Characters the model tends to wrap a move in: quotes, trailing punctuation,
# move-number prefixes such as "12." or "12...".
_STRIP_CHARS = "\"'`*.,;:!?()[]"
_MOVE_NUMBER = re.compile(r"^\d+\.+")


def get_client(api_key: str | None) -> OpenAI | None:
    """
    Return the process-wide OpenAI client, creating it on first call.

    Returns None when no API key is configured.
    """
    global _client
    if not api_key:
        return None
    if _client is None:
        _client = OpenAI(api_key=api_key)
    return _client


def select_model(
    board: chess.Board,
    policy: str,
    *,
    model: str = DEFAULT_MODEL,
    fast_model: str = DEFAULT_FAST_MODEL,
    ply_threshold: int = DEFAULT_MODEL_PLY_THRESHOLD,
) -> str:
    """
    Choose the model for this position.

    Policies:
        "fixed":     always `model`.
        "ply-count": `fast_model` while fewer than `ply_threshold` plies have
                     been played, `model` afterwards.
    """
    if policy == "fixed":
        return model
    if policy == "ply-count":
        return fast_model if board.ply() < ply_threshold else model
    raise ValueError(f"Unknown model policy: {policy!r}")


def request_move_text(client: Any, model: str, prompt: ChessPrompt) -> str | None:
    """
    Send the prompt and return the stripped reply text (None when empty).

    API errors propagate to the caller unchanged.
    """
    _log.info("Requesting move from %s (%s)", model, MODEL_SETTINGS)
    completion = client.chat.completions.create(
        model=model,
        messages=prompt.messages(),
        **MODEL_SETTINGS,
    )
    if not completion.choices:
        return None
    content = completion.choices[0].message.content
    content = content.strip() if content else ""
    return content or None


def is_quota_error(exc: BaseException) -> bool:
    """True for rate-limit (HTTP 429) and insufficient-quota API errors."""
    if getattr(exc, "status_code", None) == 429:
        return True
    if getattr(exc, "code", None) == "insufficient_quota":
        return True
    body = getattr(exc, "body", None)
    if isinstance(body, dict):
        code = body.get("code")
        if code is None and isinstance(body.get("error"), dict):
            code = body["error"].get("code")
        return code == "insufficient_quota"
    return False


def parse_move_reply(board: chess.Board, reply: str) -> chess.Move | None:
    """
    Extract a legal move from the model's reply.

    The whole reply is tried first, then each whitespace-separated token with
    quotes, punctuation and move numbers removed. Returns None when nothing
    in the reply is a legal move.
    """
    candidates = [reply]
    for token in reply.split():
        token = _MOVE_NUMBER.sub("", token.strip(_STRIP_CHARS))
        if token:
            candidates.append(token)

    for text in candidates:
        try:
            return parse_move(board, text)
        except IllegalMoveError:
            continue
    return None
