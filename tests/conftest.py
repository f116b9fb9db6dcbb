"""
Shared fixtures: well-known positions, a fake OpenAI client and a TestClient
with the model and settings dependencies replaced.
"""

from types import SimpleNamespace

import chess
import pytest
from fastapi.testclient import TestClient

AFTER_E4 = "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq - 0 1"
# 1.f3 e5 2.g4 Qh4#
FOOLS_MATE = "rnb1kbnr/pppp1ppp/8/4p3/6Pq/5P2/PPPPP2P/RNBQKBNR w KQkq - 1 3"
# 1.e4 e5 2.Bc4 Nc6 3.Qh5 Nf6 4.Qxf7#
SCHOLARS_MATE = "r1bqkb1r/pppp1Qpp/2n2n2/4p3/2B1P3/8/PPPP1PPP/RNB1K1NR b KQkq - 0 4"
BEFORE_SCHOLARS_MATE = "r1bqkb1r/pppp1ppp/2n2n2/4p2Q/2B1P3/8/PPPP1PPP/RNB1K1NR w KQkq - 4 4"
STALEMATE = "7k/5Q2/6K1/8/8/8/8/8 b - - 0 1"
BARE_KINGS = "8/8/8/4k3/8/8/8/4K3 w - - 0 1"
KING_BISHOP_VS_KING = "8/8/8/4k3/8/8/8/2B1K3 w - - 0 1"
FIFTY_MOVES = "8/8/8/4k3/8/8/8/R3K3 w - - 100 80"
# Black's queen on g5 can be taken by Bc1 and nothing recaptures.
HANGING_QUEEN = "rnb1kbnr/pppp1ppp/8/4p1q1/3P4/2N5/PPP1PPPP/R1BQKBNR w KQkq - 0 3"
# Black to move, in check from Bb5.
BLACK_IN_CHECK = "rnbqkbnr/ppp2ppp/8/1B1pp3/4P3/8/PPPP1PPP/RNBQK1NR b KQkq - 1 3"
BEFORE_BB5_CHECK = "rnbqkbnr/ppp2ppp/8/3pp3/4P3/8/PPPP1PPP/RNBQKBNR w KQkq - 0 3"

# Knights out and back twice: the start position occurs three times.
REPETITION_MOVES = ["g1f3", "g8f6", "f3g1", "f6g8", "g1f3", "g8f6", "f3g1", "f6g8"]


class FakeChatClient:
    """Stands in for openai.OpenAI: records calls, returns `reply` or raises `error`."""

    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.calls = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def _create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def legal_sans(fen):
    board = chess.Board(fen)
    return {board.san(m) for m in board.legal_moves}


@pytest.fixture
def fake_llm():
    return FakeChatClient(reply="e4")


@pytest.fixture
def settings():
    from web.config import Settings

    return Settings(
        openai_api_key="sk-test",
        model="gpt-4",
        fast_model="gpt-3.5-turbo",
        model_ply_threshold=20,
        app_env="test",
    )


@pytest.fixture
def client(fake_llm, settings):
    """TestClient whose OpenAI client and settings are test doubles."""
    from web.app import app, get_llm_client
    from web.config import get_settings

    app.dependency_overrides[get_llm_client] = lambda: fake_llm
    app.dependency_overrides[get_settings] = lambda: settings
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
