"""
Terminal front end: play White against the AI from a shell.

The loop reads one command per line from stdin and dispatches it to a
PlayHandler, the same way a protocol handler would. All game state lives in
a GameSession; after every change the board, evaluation bar and move history
are re-rendered from it.

Commands:
    <move>    a move in SAN ("Nf3"), UCI ("g1f3") or squares ("g1 f3")
    undo      take back the AI's last move and your move before it
    reset     start a new game
    board     redraw the board
    help      list commands
    quit      leave

The AI's reply is fetched through MoveRequester, so the web server must be
running: `ai-chess-server` (or `uvicorn web.app:app`).

Usage: python -m interface.cli [--url http://127.0.0.1:8000] [--endpoint /api/chess-move-2]
"""

import argparse
import logging
import sys
from typing import TextIO

import chess

from engine.constants import EVAL_BAR_LIMIT
from engine.errors import IllegalMoveError
from engine.game import GameSession, MoveRecord
from interface.client import DEFAULT_BASE_URL, DEFAULT_ENDPOINT, MoveRequester

_log = logging.getLogger(__name__)

HELP_TEXT = """Commands:
  <move>   play a move: e4, Nf3, O-O, g1f3, "g1 f3"
  undo     take back the last pair of moves
  reset    start a new game
  board    show the board again
  help     show this text
  quit     leave the game"""


def render_eval_bar(evaluation: float, width: int = 20) -> str:
    """
    Text evaluation bar, White's share growing to the right.

    Example:
        >>> render_eval_bar(0.0, width=10)
        'Black [#####-----] White  0.0'
    """
    clamped = max(-EVAL_BAR_LIMIT, min(EVAL_BAR_LIMIT, evaluation))
    white_cells = round((clamped + EVAL_BAR_LIMIT) / (2 * EVAL_BAR_LIMIT) * width)
    bar = "#" * (width - white_cells) + "-" * white_cells
    return f"Black [{bar}] White {format_score(evaluation)}"


def format_score(evaluation: float) -> str:
    if evaluation > 0:
        return f"+{evaluation:.1f}"
    if evaluation < 0:
        return f"{evaluation:.1f}"
    return " 0.0"


def render_history(history: list[MoveRecord]) -> str:
    """
    Two-column move table: the human's (White's) moves and the AI's replies.

    Rows are numbered from each record's ply. A game that starts with Black
    to move gets "..." in the White column of its first row.
    """
    rows: dict[int, list[str]] = {}
    for record in history:
        row = rows.setdefault((record.ply + 1) // 2, ["...", ""])
        row[0 if record.color == "white" else 1] = record.san

    lines = [f"{'':>4} {'You':<10}{'Opponent':<10}"]
    for number, (white, black) in rows.items():
        lines.append(f"{number:>3}. {white:<10}{black:<10}")
    return "\n".join(lines)


def render_board(board: chess.Board) -> str:
    rows = str(board).splitlines()
    labelled = [f"{8 - i} {row}" for i, row in enumerate(rows)]
    labelled.append("  a b c d e f g h")
    return "\n".join(labelled)


class PlayHandler:
    """
    Stateful handler for one terminal game.

    Attributes:
        session:   The game in progress.
        requester: Source of the AI's moves.
        out:       Stream the UI is written to.
    """

    def __init__(self, session: GameSession, requester: MoveRequester, out: TextIO = sys.stdout) -> None:
        self.session = session
        self.requester = requester
        self.out = out

    def send(self, text: str = "") -> None:
        print(text, file=self.out, flush=True)

    # -----------------------------------------------------------------------
    # Rendering
    # -----------------------------------------------------------------------

    def show(self) -> None:
        self.send(render_board(self.session.board))
        self.send(render_eval_bar(self.session.evaluation))
        if self.session.history:
            self.send(render_history(self.session.history))
        result = self.session.result
        if result.is_over:
            self.send(f"Game over: {result.message} Type 'reset' for a new game.")
        elif self.session.board.is_check():
            self.send("Check!")

    # -----------------------------------------------------------------------
    # Command handlers
    # -----------------------------------------------------------------------

    def handle_move(self, text: str) -> None:
        if self.session.status != "player-turn":
            self.send("It is not your turn.")
            return
        try:
            record = self.session.push(text)
        except IllegalMoveError as exc:
            _log.debug("Rejected move %r: %s", text, exc)
            self.send(f"Invalid move: {text}")
            return

        self.send(f"You played {record.san}")
        self.advance()
        self.show()

    def advance(self) -> None:
        """Let the AI move if the game is waiting for it."""
        if self.session.status == "ai-thinking":
            self.play_ai_move()

    def play_ai_move(self) -> None:
        self.send("AI is thinking...")
        san = self.requester.request_move(self.session.board)
        if san is None:
            return
        record = self.session.push(san)
        note = " (random fallback)" if self.requester.last_source == "random" else ""
        self.send(f"AI played {record.san}{note}")
        if self.requester.last_warning:
            self.send(f"Warning: {self.requester.last_warning}")

    def handle_undo(self) -> None:
        if self.session.undo():
            self.show()
        else:
            self.send("Nothing to undo.")

    def handle_reset(self) -> None:
        self.session.reset()
        self.send("New game.")
        self.advance()
        self.show()

    def handle_line(self, line: str) -> bool:
        """Dispatch one input line. Returns False when the loop should stop."""
        command = line.strip()
        if not command:
            return True
        lowered = command.lower()

        if lowered in ("quit", "exit"):
            return False
        if lowered == "help":
            self.send(HELP_TEXT)
        elif lowered == "undo":
            self.handle_undo()
        elif lowered in ("reset", "new"):
            self.handle_reset()
        elif lowered == "board":
            self.show()
        else:
            self.handle_move(command)
        return True


def run_play_loop(handler: PlayHandler, stdin: TextIO = sys.stdin) -> None:
    """Read commands until "quit" or end of input."""
    handler.advance()
    handler.show()
    handler.send("Type 'help' for commands.")
    for raw_line in stdin:
        if not handler.handle_line(raw_line):
            break


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Play White against the AI in the terminal.")
    parser.add_argument("--url", default=DEFAULT_BASE_URL, help="Base URL of the web server")
    parser.add_argument("--endpoint", default=DEFAULT_ENDPOINT, help="Move endpoint path")
    parser.add_argument("--fen", default=chess.STARTING_FEN, help="Starting position")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.WARNING, stream=sys.stderr)

    with MoveRequester(args.url, args.endpoint) as requester:
        handler = PlayHandler(GameSession(args.fen), requester)
        run_play_loop(handler)


if __name__ == "__main__":
    main()
