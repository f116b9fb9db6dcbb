"""
Prompt construction for the LLM opponent.

build_prompt() turns a position and its legal moves into a (system, user)
message pair. The system message sets the persona and the checklist the model
should follow; the user message describes the concrete position: ASCII
board, material, phase, check status, hanging pieces, threats and the legal
moves to choose from.

Two styles exist:
    "standard"  the baseline description.
    "rich"      adds a block of positional factors (king safety, piece
                activity, pawn structure, open files, weak squares).

The model is asked to answer with a single move in SAN; engine.llm parses the
reply and engine.selection validates it against the legal moves.
"""

from __future__ import annotations

from dataclasses import dataclass

import chess

from engine import analysis
from engine.constants import CANDIDATE_MOVE_COUNT, PROMPT_LEGAL_MOVE_LIMIT, RECENT_MOVE_COUNT

PROMPT_STYLES = ("standard", "rich")

_PHASE_ADVICE = {
    "opening": (
        "Focus on controlling the center (e4, e5, d4, d5), developing minor pieces "
        "(knights before bishops), and castling early. Avoid moving the same piece "
        "multiple times in the opening."
    ),
    "middlegame": (
        "Look for tactical opportunities (forks, pins, skewers). Improve your worst "
        "placed piece. Control open files and strong squares. Consider pawn breaks."
    ),
    "endgame": (
        "Activate your king, create passed pawns, and use the opposition. Calculate "
        "concrete variations carefully. Remember: king activity is crucial in endgames."
    ),
}


@dataclass(frozen=True)
class ChessPrompt:
    system: str
    user: str

    def messages(self) -> list[dict[str, str]]:
        """Chat-completion messages for this prompt."""
        return [
            {"role": "system", "content": self.system},
            {"role": "user", "content": self.user},
        ]


def _side(color: chess.Color) -> str:
    return "White" if color == chess.WHITE else "Black"


def _limit(moves: list[str], limit: int) -> str:
    if len(moves) > limit:
        return f"{', '.join(moves[:limit])} and {len(moves) - limit} more"
    return ", ".join(moves)


def _played_moves(board: chess.Board) -> list[tuple[int, chess.Color, str, chess.Move]]:
    """(ply, color, san, move) for every move on the board's stack."""
    replay = board.root()
    played = []
    for move in board.move_stack:
        played.append((replay.ply() + 1, replay.turn, replay.san(move), move))
        replay.push(move)
    return played


def _last_move_line(played: list) -> str:
    if not played:
        return "Game start"
    _, color, san, move = played[-1]
    return (
        f"{_side(color)} played {san} "
        f"({chess.square_name(move.from_square)}->{chess.square_name(move.to_square)})"
    )


def _recent_moves_block(played: list) -> str:
    if not played:
        return "No moves yet"
    lines = []
    for ply, color, san, move in played[-RECENT_MOVE_COUNT:]:
        number = (ply + 1) // 2
        dots = "." if color == chess.WHITE else "..."
        lines.append(
            f"{number}{dots} {san} "
            f"({chess.square_name(move.from_square)}->{chess.square_name(move.to_square)})"
        )
    return "\n".join(lines)


def _system_prompt(
    board: chess.Board,
    legal_moves: list[str],
    own: analysis.MaterialCount,
    theirs: analysis.MaterialCount,
    threats: list[str],
) -> str:
    color = board.turn
    queens_off = own.queens + theirs.queens == 0
    material_note = (
        "Endgame - focus on king activity and pawn promotion"
        if queens_off
        else "Middlegame - look for tactical opportunities"
    )
    candidates = _limit(legal_moves, CANDIDATE_MOVE_COUNT)

    return f"""You are Magnus Carlsen, the World Chess Champion. You are playing as {_side(color)} in this game.

CHESS PRINCIPLES TO FOLLOW:
1. Safety First: Always check for hanging pieces before making a move. Defend your pieces and attack undefended enemy pieces.
2. Material: {material_note}
3. Development: Ensure all your pieces are developed and your king is safe
4. King Safety: {analysis.king_safety(board, color)}

IMPORTANT: Before making any move, check:
- Are any of your pieces under attack? If yes, move or defend them.
- Can you capture any undefended enemy pieces?
- Will your move leave any of your pieces undefended?

THINKING PROCESS:
1. Material count (you {own.summary()} vs opponent {theirs.summary()})
2. Forcing moves first:
   - Checks: {", ".join(analysis.checks(board)) or "No checks available"}
   - Captures: {", ".join(analysis.captures(board)) or "No captures available"}
   - Threats: {", ".join(threats) or "No immediate threats"}
3. Consider these candidate moves (from legal moves): {candidates}
4. Analyze your opponent's best response to each candidate move
5. Choose the move that improves your position the most

Format your response with ONLY the move in standard algebraic notation (e.g., "e4", "Nf3", "O-O")."""


def _positional_block(board: chess.Board) -> str:
    color = board.turn
    return f"""[POSITIONAL FACTORS]
1. King Safety: {analysis.king_safety(board, color)}
2. Piece Activity: {analysis.piece_activity(board, color)}
3. Pawn Structure: {analysis.pawn_structure(board, color)}
4. Open Files: {analysis.open_files(board)}
5. Weak Squares: {analysis.weak_squares(board, color)}

"""


def build_prompt(
    board: chess.Board,
    legal_moves: list[str] | None = None,
    *,
    style: str = "standard",
) -> ChessPrompt:
    """
    Build the system and user prompts for the side to move.

    Args:
        board:       Position to describe. Not modified. When it carries a
                     move stack, the last and recent moves are included.
        legal_moves: Legal moves in SAN. Computed from the board when omitted.
        style:       "standard" or "rich".

    Returns:
        ChessPrompt with the two message texts.

    Raises:
        ValueError: Unknown style.
    """
    if style not in PROMPT_STYLES:
        raise ValueError(f"Unknown prompt style: {style!r}")
    if legal_moves is None:
        legal_moves = [board.san(m) for m in board.legal_moves]

    color = board.turn
    own = analysis.material_count(board, color)
    theirs = analysis.material_count(board, not color)
    white = own if color == chess.WHITE else theirs
    black = theirs if color == chess.WHITE else own

    phase = analysis.game_phase(board)
    hanging = analysis.find_hanging_pieces(board)
    our_threats = analysis.own_threats(board)
    their_threats = analysis.opponent_threats(board)
    played = _played_moves(board)

    considerations = []
    if board.is_check():
        considerations.append("- YOU ARE IN CHECK! You must get out of check.")
    if hanging:
        listed = "\n".join(f"  {piece.describe()}" for piece in hanging)
        considerations.append(f"- HANGING PIECES (capture them):\n{listed}")
    if their_threats:
        considerations.append(f"- Opponent threats: {', '.join(their_threats)}")
    if our_threats:
        considerations.append(f"- Your threats: {', '.join(our_threats)}")
    considerations.append(f"- {_PHASE_ADVICE[phase]}")

    check_line = "YES - You are in check! Must get out of check." if board.is_check() else "No"
    positional = _positional_block(board) if style == "rich" else ""

    user = f"""[POSITION AFTER {board.ply()} PLIES]
{board}

[GAME CONTEXT]
- Turn: {_side(color)} to move
- Phase: {phase.capitalize()}
- Check: {check_line}
- Last move: {_last_move_line(played)}
- Recent moves:
{_recent_moves_block(played)}

[MATERIAL COUNT]
- White: {white.summary()}
- Black: {black.summary()}

{positional}[IMMEDIATE CONSIDERATIONS]
{chr(10).join(considerations)}

[LEGAL MOVES]
{_limit(legal_moves, PROMPT_LEGAL_MOVE_LIMIT)}

[YOUR MOVE]"""

    return ChessPrompt(
        system=_system_prompt(board, legal_moves, own, theirs, our_threats),
        user=user,
    )
