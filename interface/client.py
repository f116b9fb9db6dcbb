"""
Move requester: ask the web endpoint for the AI's move.

Contract: given a position that is not over, request_move() always returns a
legal move in SAN. The endpoint's answer is re-validated locally against the
board; any failure (connection error, non-2xx status, malformed JSON, missing
or illegal move) resolves to a uniformly random legal move instead. There is
no retry and no timeout beyond httpx's defaults.
"""

from __future__ import annotations

import logging
import random

import chess
import httpx

from engine.errors import IllegalMoveError
from engine.game import game_result, parse_move

_log = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://127.0.0.1:8000"
DEFAULT_ENDPOINT = "/api/chess-move"


class MoveRequester:
    """
    Attributes:
        endpoint:    Path of the move endpoint ("/api/chess-move" or
                     "/api/chess-move-2").
        last_source: "endpoint" or "random" for the most recent request.
        last_warning: `warning` field of the most recent response, if any.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        endpoint: str = DEFAULT_ENDPOINT,
        *,
        client: httpx.Client | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.endpoint = endpoint
        self._client = client or httpx.Client(base_url=base_url)
        self._rng = rng or random.Random()
        self.last_source: str | None = None
        self.last_warning: str | None = None

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> MoveRequester:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def request_move(self, board: chess.Board) -> str | None:
        """
        Return the AI's move for `board` in SAN, or None if the game is over.

        The board is not modified.
        """
        if game_result(board).is_over:
            return None

        self.last_warning = None
        try:
            response = self._client.post(self.endpoint, json={"fen": board.fen()})
            response.raise_for_status()
            data = response.json()
            text = data.get("move") if isinstance(data, dict) else None
            if not isinstance(text, str):
                raise IllegalMoveError(f"No move in response: {data!r}")
            move = parse_move(board, text)
        except (httpx.HTTPError, ValueError) as exc:
            _log.error("AI move error: %s", exc)
            self.last_source = "random"
            move = self._rng.choice(list(board.legal_moves))
            return board.san(move)

        self.last_source = "endpoint"
        self.last_warning = data.get("warning")
        return board.san(move)
