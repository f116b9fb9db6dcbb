"""
API tests for the FastAPI app, with the OpenAI client replaced by a fake.
"""

import httpx
import openai
import pytest

from engine.constants import NOT_CONFIGURED_WARNING, QUOTA_WARNING
from web.app import app, get_llm_client
from web.config import Settings, get_settings
from web.errors import FEN_REQUIRED, INVALID_BODY, INVALID_JSON
from tests.conftest import (
    AFTER_E4,
    BEFORE_BB5_CHECK,
    BEFORE_SCHOLARS_MATE,
    FOOLS_MATE,
    REPETITION_MOVES,
    STALEMATE,
    legal_sans,
)

START_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"


# ---------------------------------------------------------------------------
# Health and frontend
# ---------------------------------------------------------------------------


def test_health_reports_configured_key(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "openaiConfigured": True, "nodeEnv": "test"}


def test_health_without_key(client):
    app.dependency_overrides[get_settings] = lambda: Settings(app_env="production")
    body = client.get("/api/health").json()
    assert body == {"status": "error", "openaiConfigured": False, "nodeEnv": "production"}


def test_index_page_is_served(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert "AI CHESS CHALLENGE" in resp.text


def test_static_assets_are_served(client):
    assert client.get("/static/app.js").status_code == 200


# ---------------------------------------------------------------------------
# /api/chess-move
# ---------------------------------------------------------------------------


def test_move_from_start_position(client):
    resp = client.post("/api/chess-move", json={"fen": START_FEN})
    assert resp.status_code == 200
    body = resp.json()
    assert body["move"] == "e4"
    assert body["turn"] == "black"
    assert body["inCheck"] is False
    assert body["gameOver"] is False
    assert "warning" not in body


def test_early_position_uses_fast_model(client, fake_llm):
    fake_llm.reply = "e5"
    body = client.post("/api/chess-move", json={"fen": AFTER_E4}).json()
    assert body["move"] == "e5"
    assert body["turn"] == "white"
    assert fake_llm.calls[0]["model"] == "gpt-3.5-turbo"
    assert "[POSITIONAL FACTORS]" not in fake_llm.calls[0]["messages"][1]["content"]


def test_chess_move_2_uses_rich_prompt_and_fixed_model(client, fake_llm):
    fake_llm.reply = "e5"
    body = client.post("/api/chess-move-2", json={"fen": AFTER_E4}).json()
    assert body["move"] == "e5"
    assert fake_llm.calls[0]["model"] == "gpt-4"
    assert "[POSITIONAL FACTORS]" in fake_llm.calls[0]["messages"][1]["content"]


@pytest.mark.parametrize("path", ["/api/chess-move", "/api/chess-move-2"])
def test_checkmated_position_reports_game_over(client, fake_llm, path):
    resp = client.post(path, json={"fen": FOOLS_MATE})
    assert resp.status_code == 200
    assert resp.json() == {
        "error": "Checkmate! Black wins!",
        "gameOver": True,
        "winner": "Black",
        "reason": "checkmate",
    }
    assert fake_llm.calls == []


def test_stalemate_reports_draw(client, fake_llm):
    body = client.post("/api/chess-move", json={"fen": STALEMATE}).json()
    assert body == {"error": "Game drawn", "gameOver": True, "winner": None, "reason": "stalemate"}
    assert fake_llm.calls == []


@pytest.mark.parametrize("payload", [{}, {"fen": ""}, {"fen": None}])
def test_missing_fen_is_bad_request(client, payload):
    resp = client.post("/api/chess-move", json=payload)
    assert resp.status_code == 400
    assert resp.json()["error"] == FEN_REQUIRED


def test_invalid_fen_is_bad_request(client, fake_llm):
    resp = client.post("/api/chess-move", json={"fen": "not a fen"})
    assert resp.status_code == 400
    assert resp.json()["error"].startswith("Invalid FEN")
    assert fake_llm.calls == []


def test_malformed_json_is_bad_request(client):
    resp = client.post(
        "/api/chess-move", content="{bad", headers={"Content-Type": "application/json"}
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == INVALID_JSON


@pytest.mark.parametrize("payload", [[], ["e4"], {"fen": 5}, "fen"])
def test_body_failing_the_schema_is_bad_request(client, fake_llm, payload):
    resp = client.post("/api/chess-move", json=payload)
    assert resp.status_code == 400
    assert resp.json() == {"error": INVALID_BODY, "gameOver": False}
    assert fake_llm.calls == []


def test_default_settings_hide_stack_traces(client, fake_llm):
    app.dependency_overrides[get_settings] = lambda: Settings(openai_api_key="sk-test")
    fake_llm.error = RuntimeError("upstream down")
    resp = client.post("/api/chess-move", json={"fen": START_FEN})
    assert resp.status_code == 500
    assert "stack" not in resp.json()


def test_app_env_defaults_to_production(monkeypatch):
    monkeypatch.setattr("web.config.load_dotenv", lambda: None)
    monkeypatch.delenv("APP_ENV", raising=False)
    settings = Settings.from_env()
    assert settings.app_env == "production"
    assert not settings.is_development


def test_illegal_reply_gives_random_legal_move(client, fake_llm):
    fake_llm.reply = "Ke2"
    body = client.post("/api/chess-move", json={"fen": START_FEN}).json()
    assert body["move"] in legal_sans(START_FEN)
    assert "warning" not in body


def test_quota_error_gives_random_move_with_warning(client, fake_llm):
    request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
    fake_llm.error = openai.RateLimitError(
        "quota", response=httpx.Response(429, request=request), body={"code": "insufficient_quota"}
    )
    resp = client.post("/api/chess-move", json={"fen": AFTER_E4})
    assert resp.status_code == 200
    body = resp.json()
    assert body["move"] in legal_sans(AFTER_E4)
    assert body["warning"] == QUOTA_WARNING
    assert body["originalError"] == "quota"


def test_missing_api_key_gives_random_move_with_warning(client):
    app.dependency_overrides[get_llm_client] = lambda: None
    body = client.post("/api/chess-move", json={"fen": START_FEN}).json()
    assert body["move"] in legal_sans(START_FEN)
    assert body["warning"] == NOT_CONFIGURED_WARNING


def test_api_failure_is_server_error_without_stack(client, fake_llm):
    fake_llm.error = RuntimeError("upstream down")
    resp = client.post("/api/chess-move", json={"fen": START_FEN})
    assert resp.status_code == 500
    body = resp.json()
    assert body["error"] == "upstream down"
    assert body["gameOver"] is False
    assert "stack" not in body


def test_api_failure_includes_stack_in_development(client, fake_llm):
    app.dependency_overrides[get_settings] = lambda: Settings(
        openai_api_key="sk-test", app_env="development"
    )
    fake_llm.error = RuntimeError("upstream down")
    body = client.post("/api/chess-move", json={"fen": START_FEN}).json()
    assert "RuntimeError: upstream down" in body["stack"]


def test_empty_reply_is_server_error(client, fake_llm):
    fake_llm.reply = ""
    resp = client.post("/api/chess-move", json={"fen": START_FEN})
    assert resp.status_code == 500
    assert resp.json()["error"] == "No move returned from AI"


def test_mating_move_ends_the_game(client, fake_llm):
    fake_llm.reply = "Qxf7#"
    body = client.post("/api/chess-move", json={"fen": BEFORE_SCHOLARS_MATE}).json()
    assert body["move"] == "Qxf7#"
    assert body["inCheck"] is True
    assert body["gameOver"] is True
    assert body["message"] == "Checkmate! White wins!"


def test_checking_move_reports_check(client, fake_llm):
    fake_llm.reply = "Bb5+"
    body = client.post("/api/chess-move", json={"fen": BEFORE_BB5_CHECK}).json()
    assert body["move"] == "Bb5+"
    assert body["inCheck"] is True
    assert body["gameOver"] is False
    assert body["message"] == "Check! Black is in check."


# ---------------------------------------------------------------------------
# /api/evaluate
# ---------------------------------------------------------------------------


def test_evaluate_defaults_to_start_position(client):
    body = client.post("/api/evaluate", json={}).json()
    assert body["evaluation"] == 0.0
    assert body["turn"] == "white"
    assert body["gameOver"] is False
    assert body["reason"] == "ongoing"
    assert body["winner"] is None


def test_evaluate_checkmate(client):
    body = client.post("/api/evaluate", json={"fen": FOOLS_MATE}).json()
    assert body["evaluation"] == -100.0
    assert body["gameOver"] is True
    assert body["winner"] == "black"
    assert body["reason"] == "checkmate"
    assert body["message"] == "Checkmate! Black wins!"


def test_evaluate_detects_repetition_from_moves(client):
    body = client.post("/api/evaluate", json={"moves": REPETITION_MOVES}).json()
    assert body["gameOver"] is True
    assert body["reason"] == "threefold-repetition"
    assert body["evaluation"] == 0.0


def test_evaluate_rejects_illegal_move(client):
    resp = client.post("/api/evaluate", json={"moves": ["e2e5"]})
    assert resp.status_code == 400
    assert "error" in resp.json()
