"""
Lightweight position heuristics used to describe a position to the model.

None of these functions search: each looks at the current board (and at most
one ply ahead) and returns a small fact or a short sentence for the prompt.
They never modify the board they are given.

- material_count / MaterialCount: piece counts per side.
- game_phase: opening / middlegame / endgame by ply count.
- find_hanging_pieces: opponent pieces that can be captured without an
  immediate recapture.
- own_threats / opponent_threats: captures and checks for either side.
- king_safety, piece_activity, pawn_structure, open_files, weak_squares:
  the positional factors of the rich prompt.
"""

from __future__ import annotations

from dataclasses import dataclass

import chess

from engine.constants import ENDGAME_MIN_PLY, OPENING_MAX_PLY, PIECE_VALUES

_CORNER_FILES = (0, 1, 2, 6, 7)  # a, b, c, g, h
_CENTER_SQUARES = (chess.D4, chess.E4, chess.D5, chess.E5)


@dataclass(frozen=True)
class MaterialCount:
    """Non-king piece counts for one side."""

    pawns: int = 0
    knights: int = 0
    bishops: int = 0
    rooks: int = 0
    queens: int = 0

    def summary(self) -> str:
        """Compact form used in prompts, e.g. "1Q 2R 2B 2N 8P"."""
        return f"{self.queens}Q {self.rooks}R {self.bishops}B {self.knights}N {self.pawns}P"


@dataclass(frozen=True)
class HangingPiece:
    """
    A capture available to the side to move.

    Attributes:
        attacker:  Symbol of the capturing piece, upper case ("N").
        from_square / to_square: Square names of the capture.
        captured:  Name of the captured piece ("rook").
        value:     Material value of the captured piece.
        defended:  True when the opponent can move to to_square right after
                   the capture, i.e. recapture.
    """

    attacker: str
    from_square: str
    to_square: str
    captured: str
    value: int
    defended: bool

    def describe(self) -> str:
        return f"{self.captured} on {self.to_square} (value: {self.value})"


def material_count(board: chess.Board, color: chess.Color) -> MaterialCount:
    return MaterialCount(
        pawns=len(board.pieces(chess.PAWN, color)),
        knights=len(board.pieces(chess.KNIGHT, color)),
        bishops=len(board.pieces(chess.BISHOP, color)),
        rooks=len(board.pieces(chess.ROOK, color)),
        queens=len(board.pieces(chess.QUEEN, color)),
    )


def game_phase(board: chess.Board) -> str:
    """Classify by plies played: "opening", "middlegame" or "endgame"."""
    ply = board.ply()
    if ply < OPENING_MAX_PLY:
        return "opening"
    if ply > ENDGAME_MIN_PLY:
        return "endgame"
    return "middlegame"


def _captured_piece(board: chess.Board, move: chess.Move) -> chess.Piece:
    if board.is_en_passant(move):
        return chess.Piece(chess.PAWN, not board.turn)
    return board.piece_at(move.to_square)


def _piece_label(board: chess.Board, square: chess.Square) -> str:
    piece = board.piece_at(square)
    return f"{piece.symbol().upper()}{chess.square_name(square)}"


def find_captures(board: chess.Board) -> list[HangingPiece]:
    """
    Every legal capture for the side to move, most valuable victim first,
    each flagged with whether the opponent can recapture.
    """
    probe = board.copy(stack=False)
    captures = []
    for move in list(probe.legal_moves):
        if not probe.is_capture(move):
            continue
        captured = _captured_piece(probe, move)
        attacker = probe.piece_at(move.from_square)
        probe.push(move)
        defended = any(reply.to_square == move.to_square for reply in probe.legal_moves)
        probe.pop()
        captures.append(HangingPiece(
            attacker=attacker.symbol().upper(),
            from_square=chess.square_name(move.from_square),
            to_square=chess.square_name(move.to_square),
            captured=chess.piece_name(captured.piece_type),
            value=PIECE_VALUES[captured.piece_type],
            defended=defended,
        ))
    captures.sort(key=lambda c: c.value, reverse=True)
    return captures


def find_hanging_pieces(board: chess.Board) -> list[HangingPiece]:
    """Opponent pieces the side to move can take without being recaptured."""
    return [c for c in find_captures(board) if not c.defended]


def _describe_forcing(board: chess.Board, move: chess.Move) -> str:
    label = _piece_label(board, move.from_square)
    if board.is_capture(move):
        captured = chess.piece_name(_captured_piece(board, move).piece_type)
        return f"{label} takes {captured} on {chess.square_name(move.to_square)}"
    return f"{label} gives check on {chess.square_name(move.to_square)}"


def _forcing_moves(board: chess.Board) -> list[str]:
    return [
        _describe_forcing(board, move)
        for move in board.legal_moves
        if board.is_capture(move) or board.gives_check(move)
    ]


def own_threats(board: chess.Board) -> list[str]:
    """Captures and checks available to the side to move."""
    return _forcing_moves(board)


def opponent_threats(board: chess.Board) -> list[str]:
    """
    Captures and checks the opponent would have if it were their move.

    When the side to move is in check, the checking pieces are the threat.
    Otherwise a null move hands the turn to the opponent and their forcing
    moves are listed.
    """
    if board.is_check():
        king = board.king(board.turn)
        return [
            f"{_piece_label(board, sq)} gives check to {chess.square_name(king)}"
            for sq in board.checkers()
        ]
    probe = board.copy(stack=False)
    probe.push(chess.Move.null())
    return _forcing_moves(probe)


def checks(board: chess.Board) -> list[str]:
    """SAN of every checking move for the side to move."""
    return [board.san(m) for m in board.legal_moves if board.gives_check(m)]


def captures(board: chess.Board) -> list[str]:
    """SAN of every capture for the side to move."""
    return [board.san(m) for m in board.legal_moves if board.is_capture(m)]


def _as_side_to_move(board: chess.Board, color: chess.Color) -> chess.Board:
    probe = board.copy(stack=False)
    if probe.turn != color:
        probe.push(chess.Move.null())
    return probe


# ---------------------------------------------------------------------------
# Positional factors
# ---------------------------------------------------------------------------


def king_safety(board: chess.Board, color: chess.Color) -> str:
    king = board.king(color)
    if king is None:
        return "King not found"

    back_rank = 0 if color == chess.WHITE else 7
    if chess.square_rank(king) == back_rank and chess.square_file(king) in _CORNER_FILES:
        placement = "castled"
    elif king in _CENTER_SQUARES:
        placement = "in center"
    else:
        placement = "developing"

    step = 1 if color == chess.WHITE else -1
    shield_rank = chess.square_rank(king) + step
    shielded = False
    if 0 <= shield_rank <= 7:
        shield_sq = chess.square(chess.square_file(king), shield_rank)
        shielded = board.piece_at(shield_sq) == chess.Piece(chess.PAWN, color)

    shield = "with pawn shield" if shielded else "exposed"
    return f"King on {chess.square_name(king)}, {placement}, {shield}"


def piece_activity(board: chess.Board, color: chess.Color) -> str:
    """Share of `color`'s pieces that have at least one legal move."""
    probe = _as_side_to_move(board, color)
    squares = [sq for sq, piece in probe.piece_map().items() if piece.color == color]
    movable = {move.from_square for move in probe.legal_moves}
    active = sum(1 for sq in squares if sq in movable)
    total = len(squares)
    percent = round(active / total * 100) if total else 0
    return f"{percent}% of pieces active ({active}/{total})"


def pawn_structure(board: chess.Board, color: chess.Color) -> str:
    pawns = board.pieces(chess.PAWN, color)
    if not pawns:
        return "No pawns"

    files = [chess.square_file(sq) for sq in pawns]
    occupied = set(files)
    doubled = len(files) - len(occupied)
    isolated = sum(
        1 for f in files
        if (f - 1) not in occupied and (f + 1) not in occupied
    )
    return f"{len(pawns)} pawns, {doubled} doubled, {isolated} isolated"


def open_files(board: chess.Board) -> str:
    pawns = board.pieces(chess.PAWN, chess.WHITE) | board.pieces(chess.PAWN, chess.BLACK)
    pawn_files = {chess.square_file(sq) for sq in pawns}
    names = [chess.FILE_NAMES[f] for f in range(8) if f not in pawn_files]
    return ", ".join(names) if names else "No open files"


def weak_squares(board: chess.Board, color: chess.Color) -> str:
    """
    Holes in `color`'s half that the opponent already attacks.

    A hole is a square on the third or fourth rank (sixth or fifth for Black)
    that no friendly pawn on an adjacent file can ever cover, because every
    such pawn has already advanced past it.
    """
    ranks = (2, 3) if color == chess.WHITE else (5, 4)
    own_pawns = board.pieces(chess.PAWN, color)
    holes = []
    for rank in ranks:
        for file in range(8):
            sq = chess.square(file, rank)
            coverable = any(
                abs(chess.square_file(p) - file) == 1
                and (chess.square_rank(p) < rank if color == chess.WHITE else chess.square_rank(p) > rank)
                for p in own_pawns
            )
            if not coverable and board.is_attacked_by(not color, sq):
                holes.append(chess.square_name(sq))
    return ", ".join(sorted(holes)) if holes else "No obvious weak squares"
