"""
Tests for the position heuristics and prompt construction.
"""

import chess
import pytest

from engine import analysis
from engine.prompts import build_prompt
from tests.conftest import AFTER_E4, BLACK_IN_CHECK, HANGING_QUEEN


# ---------------------------------------------------------------------------
# Heuristics
# ---------------------------------------------------------------------------


def test_material_count_start_position():
    count = analysis.material_count(chess.Board(), chess.WHITE)
    assert count == analysis.MaterialCount(pawns=8, knights=2, bishops=2, rooks=2, queens=1)
    assert count.summary() == "1Q 2R 2B 2N 8P"


@pytest.mark.parametrize(
    "fen, phase",
    [
        (chess.STARTING_FEN, "opening"),
        ("r1bqkbnr/pppp1ppp/2n5/4p3/4P3/5N2/PPPP1PPP/RNBQKB1R w KQkq - 2 10", "middlegame"),
        ("8/5pk1/6p1/7p/7P/6P1/5PK1/8 w - - 0 16", "middlegame"),
        ("8/5pk1/6p1/7p/7P/6P1/5PK1/8 w - - 0 17", "endgame"),
    ],
)
def test_game_phase_by_ply_count(fen, phase):
    assert analysis.game_phase(chess.Board(fen)) == phase


def test_undefended_queen_is_hanging():
    board = chess.Board(HANGING_QUEEN)
    hanging = analysis.find_hanging_pieces(board)

    assert [(h.captured, h.to_square, h.value) for h in hanging] == [("queen", "g5", 9)]
    assert hanging[0].attacker == "B"
    assert hanging[0].from_square == "c1"


def test_defended_capture_is_not_hanging():
    board = chess.Board(HANGING_QUEEN)
    captures = {c.to_square: c for c in analysis.find_captures(board)}

    assert captures["e5"].defended is True
    assert captures["g5"].defended is False
    # Sorted by value: the queen comes first.
    assert analysis.find_captures(board)[0].captured == "queen"


def test_hanging_pieces_do_not_modify_board():
    board = chess.Board(HANGING_QUEEN)
    analysis.find_hanging_pieces(board)
    assert board.fen() == HANGING_QUEEN


def test_opponent_threats_when_in_check():
    board = chess.Board(BLACK_IN_CHECK)
    assert analysis.opponent_threats(board) == ["Bb5 gives check to e8"]


def test_opponent_threats_by_null_move():
    # Black to move; White's Bc1 already attacks the queen on g5.
    board = chess.Board(HANGING_QUEEN.replace(" w ", " b "))
    threats = analysis.opponent_threats(board)
    assert "Bc1 takes queen on g5" in threats


def test_own_threats_lists_captures():
    threats = analysis.own_threats(chess.Board(HANGING_QUEEN))
    assert "Bc1 takes queen on g5" in threats
    assert "Pd4 takes pawn on e5" in threats


def test_start_position_has_no_threats():
    board = chess.Board()
    assert analysis.own_threats(board) == []
    assert analysis.opponent_threats(board) == []
    assert analysis.checks(board) == []
    assert analysis.captures(board) == []


def test_positional_factors_start_position():
    board = chess.Board()
    assert analysis.king_safety(board, chess.WHITE) == "King on e1, developing, with pawn shield"
    assert analysis.piece_activity(board, chess.WHITE) == "62% of pieces active (10/16)"
    assert analysis.pawn_structure(board, chess.BLACK) == "8 pawns, 0 doubled, 0 isolated"
    assert analysis.open_files(board) == "No open files"
    assert analysis.weak_squares(board, chess.WHITE) == "No obvious weak squares"


def test_pawn_structure_counts_doubled_and_isolated():
    board = chess.Board("4k3/8/8/8/8/P1P5/P1P5/4K3 w - - 0 1")
    assert analysis.pawn_structure(board, chess.WHITE) == "4 pawns, 2 doubled, 4 isolated"
    assert analysis.open_files(board) == "b, d, e, f, g, h"


def test_castled_king_is_recognised():
    board = chess.Board("r1bq1rk1/pppp1ppp/2n2n2/2b1p3/2B1P3/2N2N2/PPPP1PPP/R1BQ1RK1 w - - 6 5")
    assert analysis.king_safety(board, chess.WHITE) == "King on g1, castled, with pawn shield"


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------


def test_standard_prompt_describes_start_position():
    prompt = build_prompt(chess.Board())

    assert "playing as White" in prompt.system
    assert "ONLY the move" in prompt.system
    assert "and 15 more" in prompt.system  # five candidates of twenty

    assert prompt.user.startswith("[POSITION AFTER 0 PLIES]")
    assert "- Turn: White to move" in prompt.user
    assert "- Phase: Opening" in prompt.user
    assert "- Check: No" in prompt.user
    assert "- Last move: Game start" in prompt.user
    assert "- White: 1Q 2R 2B 2N 8P" in prompt.user
    assert "[POSITIONAL FACTORS]" not in prompt.user
    assert "r n b q k b n r" in prompt.user
    assert prompt.user.rstrip().endswith("[YOUR MOVE]")


def test_prompt_lists_hanging_pieces_and_threats():
    prompt = build_prompt(chess.Board(HANGING_QUEEN))
    assert "HANGING PIECES" in prompt.user
    assert "queen on g5 (value: 9)" in prompt.user
    assert "Your threats: " in prompt.user


def test_prompt_in_check():
    prompt = build_prompt(chess.Board(BLACK_IN_CHECK))
    assert "YOU ARE IN CHECK" in prompt.user
    assert "- Check: YES" in prompt.user
    assert "Opponent threats: Bb5 gives check to e8" in prompt.user
    assert "playing as Black" in prompt.system


def test_rich_prompt_adds_positional_factors():
    prompt = build_prompt(chess.Board(AFTER_E4), style="rich")
    assert "[POSITIONAL FACTORS]" in prompt.user
    assert "King Safety: King on e8" in prompt.user
    assert "Open Files: No open files" in prompt.user


def test_prompt_includes_recent_moves_from_stack():
    board = chess.Board()
    for san in ["e4", "e5", "Nf3"]:
        board.push_san(san)
    prompt = build_prompt(board)
    assert "- Last move: White played Nf3 (g1->f3)" in prompt.user
    assert "1. e4 (e2->e4)" in prompt.user
    assert "1... e5 (e7->e5)" in prompt.user
    assert "2. Nf3 (g1->f3)" in prompt.user


def test_prompt_truncates_long_move_lists():
    moves = [f"m{i}" for i in range(40)]
    prompt = build_prompt(chess.Board(), moves)
    assert "m29 and 10 more" in prompt.user


def test_prompt_messages_roles():
    messages = build_prompt(chess.Board()).messages()
    assert [m["role"] for m in messages] == ["system", "user"]


def test_unknown_prompt_style_rejected():
    with pytest.raises(ValueError):
        build_prompt(chess.Board(), style="verbose")
