"""
Board state holder: wraps a python-chess Board for one game.

python-chess owns the rules (move legality, check, checkmate, stalemate,
repetition). This module adds the pieces the rest of the application needs on
top of it:

- parse_board():  FEN validation with a domain error instead of ValueError.
- parse_move():   lenient move parsing (SAN, UCI, "e2 e4") against a board.
- game_result():  the derived GameResult (outcome + winner) of a position.
- GameSession:    the single source of truth for a game in progress. FEN,
                  move history, evaluation and status are all derived from
                  the wrapped board on every read and never stored separately.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

import chess

from engine.errors import IllegalMoveError, InvalidFenError


class GameOutcome(str, enum.Enum):
    """How a position stands: still being played, or how it ended."""

    ONGOING = "ongoing"
    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"
    INSUFFICIENT_MATERIAL = "insufficient-material"
    THREEFOLD_REPETITION = "threefold-repetition"
    FIFTY_MOVE_RULE = "fifty-move-rule"

    @property
    def reason(self) -> str:
        """Reason string used by the HTTP API ("threefold repetition", ...)."""
        if self is GameOutcome.FIFTY_MOVE_RULE:
            return "draw"
        return self.value.replace("-", " ")


_DRAW_MESSAGES = {
    GameOutcome.STALEMATE: "Game drawn by stalemate",
    GameOutcome.INSUFFICIENT_MATERIAL: "Game drawn by insufficient material",
    GameOutcome.THREEFOLD_REPETITION: "Game drawn by threefold repetition",
    GameOutcome.FIFTY_MOVE_RULE: "Game drawn by the fifty-move rule",
}


@dataclass(frozen=True)
class GameResult:
    """
    Derived game result.

    Attributes:
        outcome: One of the GameOutcome members.
        winner:  chess.WHITE / chess.BLACK after checkmate, otherwise None.
    """

    outcome: GameOutcome
    winner: chess.Color | None = None

    @property
    def is_over(self) -> bool:
        return self.outcome is not GameOutcome.ONGOING

    @property
    def is_draw(self) -> bool:
        return self.is_over and self.outcome is not GameOutcome.CHECKMATE

    @property
    def winner_name(self) -> str | None:
        """Capitalised winner ("White" / "Black"), or None."""
        if self.winner is None:
            return None
        return color_name(self.winner).capitalize()

    @property
    def message(self) -> str:
        if self.outcome is GameOutcome.CHECKMATE:
            return f"Checkmate! {self.winner_name} wins!"
        if self.outcome is GameOutcome.ONGOING:
            return "Game in progress"
        return _DRAW_MESSAGES[self.outcome]


@dataclass(frozen=True)
class MoveRecord:
    """One played half-move, as shown in the move history."""

    ply: int
    color: str
    san: str
    uci: str
    from_square: str
    to_square: str
    promotion: str | None = None

    @classmethod
    def from_board(cls, board: chess.Board, move: chess.Move) -> MoveRecord:
        """Describe `move` played from `board` (the board before the move)."""
        return cls(
            ply=board.ply() + 1,
            color=color_name(board.turn),
            san=board.san(move),
            uci=move.uci(),
            from_square=chess.square_name(move.from_square),
            to_square=chess.square_name(move.to_square),
            promotion=chess.piece_symbol(move.promotion) if move.promotion else None,
        )


def color_name(color: chess.Color) -> str:
    """Return "white" or "black"."""
    return chess.COLOR_NAMES[color]


def parse_board(fen: str) -> chess.Board:
    """
    Build a board from a FEN string.

    Raises:
        InvalidFenError: The FEN is malformed or describes an impossible
                         position (missing king, side not to move in check...).
    """
    fen = (fen or "").strip()
    if not fen:
        raise InvalidFenError(fen, "empty")
    try:
        board = chess.Board(fen)
    except ValueError as exc:
        raise InvalidFenError(fen, str(exc)) from exc
    if not board.is_valid():
        raise InvalidFenError(fen, "illegal position")
    return board


def parse_move(board: chess.Board, text: str) -> chess.Move:
    """
    Parse a move written in SAN ("Nf3", "O-O", "e8=Q+") or UCI ("g1f3",
    "e7e8q", "e2 e4", "e2-e4") and check it is legal on `board`.

    A pawn move to the last rank without a promotion piece promotes to a queen.

    Raises:
        IllegalMoveError: The text is not a legal move in this position.
    """
    token = (text or "").strip()
    if not token:
        raise IllegalMoveError("Empty move")

    try:
        move = board.parse_san(token)
    except ValueError:
        move = None
    # parse_san accepts null-move spellings such as "--" and "0000".
    if move:
        return move

    compact = token.replace(" ", "").replace("-", "").lower()
    try:
        move = chess.Move.from_uci(compact)
    except ValueError:
        raise IllegalMoveError(f"Unrecognised move: {text!r}") from None

    if move and move.promotion is None and _is_promotion(board, move):
        move = chess.Move(move.from_square, move.to_square, promotion=chess.QUEEN)
    if not move or move not in board.legal_moves:
        raise IllegalMoveError(f"Illegal move: {text!r}")
    return move


def _is_promotion(board: chess.Board, move: chess.Move) -> bool:
    piece = board.piece_at(move.from_square)
    if piece is None or piece.piece_type != chess.PAWN:
        return False
    last_rank = 7 if piece.color == chess.WHITE else 0
    return chess.square_rank(move.to_square) == last_rank


def game_result(board: chess.Board) -> GameResult:
    """
    Classify the position.

    Threefold repetition can only be seen when the board carries its move
    stack; a board built from a bare FEN has no history to repeat.
    """
    if board.is_checkmate():
        return GameResult(GameOutcome.CHECKMATE, winner=not board.turn)
    if board.is_stalemate():
        return GameResult(GameOutcome.STALEMATE)
    if board.is_insufficient_material():
        return GameResult(GameOutcome.INSUFFICIENT_MATERIAL)
    if board.is_repetition(3):
        return GameResult(GameOutcome.THREEFOLD_REPETITION)
    if board.halfmove_clock >= 100:
        return GameResult(GameOutcome.FIFTY_MOVE_RULE)
    return GameResult(GameOutcome.ONGOING)


def replay_moves(fen: str, moves: list[str]) -> chess.Board:
    """Build a board from `fen` and push each move (UCI or SAN) in order."""
    board = parse_board(fen)
    for text in moves:
        board.push(parse_move(board, text))
    return board


class GameSession:
    """
    One game between the human and the AI.

    The wrapped board is never exposed for mutation: callers read derived
    values (fen, history, evaluation, result, status) and change the game only
    through make_move(), push(), undo() and reset().

    Attributes:
        human_color: Side the human plays. The other side is the AI.
    """

    def __init__(self, fen: str = chess.STARTING_FEN, human_color: chess.Color = chess.WHITE) -> None:
        self._board = parse_board(fen)
        self._start_fen = self._board.fen()
        self.human_color = human_color

    # -----------------------------------------------------------------------
    # Derived state
    # -----------------------------------------------------------------------

    @property
    def board(self) -> chess.Board:
        """A copy of the current board, move stack included."""
        return self._board.copy()

    @property
    def fen(self) -> str:
        return self._board.fen()

    @property
    def turn(self) -> chess.Color:
        return self._board.turn

    @property
    def legal_moves(self) -> list[str]:
        """Legal moves in SAN."""
        return [self._board.san(m) for m in self._board.legal_moves]

    @property
    def history(self) -> list[MoveRecord]:
        replay = chess.Board(self._start_fen)
        records = []
        for move in self._board.move_stack:
            records.append(MoveRecord.from_board(replay, move))
            replay.push(move)
        return records

    @property
    def result(self) -> GameResult:
        return game_result(self._board)

    @property
    def is_over(self) -> bool:
        return self.result.is_over

    @property
    def evaluation(self) -> float:
        # Imported here: evaluate depends on game_result from this module.
        from engine.evaluate import evaluate_board

        return evaluate_board(self._board)

    @property
    def status(self) -> str:
        """"player-turn", "ai-thinking" or "game-over"."""
        if self.is_over:
            return "game-over"
        return "player-turn" if self._board.turn == self.human_color else "ai-thinking"

    # -----------------------------------------------------------------------
    # Mutations
    # -----------------------------------------------------------------------

    def make_move(self, from_square: str, to_square: str, promotion: str | None = None) -> MoveRecord:
        """
        Play a move given as source and target squares (a board drag).

        Raises:
            IllegalMoveError: Unknown squares or an illegal move.
        """
        try:
            move = chess.Move(
                chess.parse_square(from_square),
                chess.parse_square(to_square),
                promotion=chess.Piece.from_symbol(promotion).piece_type if promotion else None,
            )
        except ValueError as exc:
            raise IllegalMoveError(f"Invalid squares: {from_square}->{to_square}") from exc
        return self.push(move.uci())

    def push(self, text: str) -> MoveRecord:
        """Play a move given in SAN or UCI."""
        if self.is_over:
            raise IllegalMoveError("Game is already over")
        move = parse_move(self._board, text)
        record = MoveRecord.from_board(self._board, move)
        self._board.push(move)
        return record

    def undo(self) -> bool:
        """
        Take back the AI's last move and the human's move before it.

        Only allowed while the game is in progress, it is the human's turn
        and both moves exist.
        Returns True when the two plies were removed.
        """
        if self.status != "player-turn" or len(self._board.move_stack) < 2:
            return False
        self._board.pop()
        self._board.pop()
        return True

    def reset(self) -> None:
        self._board = chess.Board(self._start_fen)
