"""
Game constants: piece values, special scores, phase thresholds, model settings.

All numeric constants used by the evaluator, the prompt builder and the model
call are defined here so tuning happens in one place.

Piece values are expressed in pawns (1 pawn = 1.0), which is also the unit
shown on the evaluation bar.
"""

import chess

# ---------------------------------------------------------------------------
# Piece values (pawns)
# ---------------------------------------------------------------------------

PAWN_VALUE: int = 1
KNIGHT_VALUE: int = 3
BISHOP_VALUE: int = 3
ROOK_VALUE: int = 5
QUEEN_VALUE: int = 9
KING_VALUE: int = 0  # The king is never counted in material

PIECE_VALUES: dict[int, int] = {
    chess.PAWN:   PAWN_VALUE,
    chess.KNIGHT: KNIGHT_VALUE,
    chess.BISHOP: BISHOP_VALUE,
    chess.ROOK:   ROOK_VALUE,
    chess.QUEEN:  QUEEN_VALUE,
    chess.KING:   KING_VALUE,
}

# ---------------------------------------------------------------------------
# Special scores
# ---------------------------------------------------------------------------

CHECKMATE_SCORE: float = 100.0
DRAW_SCORE: float = 0.0

# The evaluation bar saturates at +/- this many pawns.
EVAL_BAR_LIMIT: float = 10.0

# ---------------------------------------------------------------------------
# Game phase (ply counts)
# ---------------------------------------------------------------------------
# Opening while fewer than OPENING_MAX_PLY plies have been played, endgame once
# more than ENDGAME_MIN_PLY plies have been played, middlegame in between.

OPENING_MAX_PLY: int = 10
ENDGAME_MIN_PLY: int = 30

# ---------------------------------------------------------------------------
# Prompt sizing
# ---------------------------------------------------------------------------

CANDIDATE_MOVE_COUNT: int = 5
PROMPT_LEGAL_MOVE_LIMIT: int = 30
RECENT_MOVE_COUNT: int = 6

# ---------------------------------------------------------------------------
# Model call
# ---------------------------------------------------------------------------

DEFAULT_MODEL: str = "gpt-4"
DEFAULT_FAST_MODEL: str = "gpt-3.5-turbo"
DEFAULT_MODEL_PLY_THRESHOLD: int = 20

# Sampling parameters for the chat completion. The reply is a single move in
# SAN, so max_tokens stays small.
MODEL_SETTINGS: dict[str, float | int] = {
    "temperature": 0.4,
    "max_tokens": 10,
    "top_p": 0.9,
    "frequency_penalty": 0.5,
    "presence_penalty": 0.5,
}

QUOTA_WARNING: str = "Using random move due to API limits"
NOT_CONFIGURED_WARNING: str = "OpenAI API key not configured, using random move"
