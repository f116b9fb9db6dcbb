"""
Material evaluation: the number shown on the evaluation bar.

The score is pure material counting with the classical values (P=1, N=3,
B=3, R=5, Q=9, K=0). There is no positional term. Unlike a search
evaluation, the score is always from White's point of view: positive means
White is ahead, negative means Black is ahead.

Finished games are scored before any material is counted:
- checkmate: +/- CHECKMATE_SCORE in favour of the side that delivered mate
- any draw (stalemate, insufficient material, threefold repetition,
  fifty-move rule): DRAW_SCORE
"""

import chess

from engine.constants import CHECKMATE_SCORE, DRAW_SCORE, PIECE_VALUES
from engine.game import GameOutcome, game_result


def material_balance(board: chess.Board) -> int:
    """Sum of piece values, White minus Black."""
    score = 0
    for piece in board.piece_map().values():
        value = PIECE_VALUES[piece.piece_type]
        score += value if piece.color == chess.WHITE else -value
    return score


def evaluate_board(board: chess.Board) -> float:
    """
    Evaluate the position in pawns from White's perspective.

    Args:
        board: The position to score. Not modified. Repetition draws are only
               detected when the board carries its move stack.

    Returns:
        Score rounded to one decimal.

    Example:
        >>> import chess
        >>> evaluate_board(chess.Board())
        0.0
    """
    result = game_result(board)
    if result.outcome is GameOutcome.CHECKMATE:
        return CHECKMATE_SCORE if result.winner == chess.WHITE else -CHECKMATE_SCORE
    if result.is_draw:
        return DRAW_SCORE

    return round(float(material_balance(board)), 1)
