"""Exceptions raised by the game and move-selection modules."""


class InvalidFenError(ValueError):
    """The FEN string could not be parsed into a valid position."""

    def __init__(self, fen: str, reason: str = "") -> None:
        self.fen = fen
        message = f"Invalid FEN: {fen!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class IllegalMoveError(ValueError):
    """A move is not legal in the current position."""


class EmptyModelReplyError(RuntimeError):
    """The model answered with no content."""

    def __init__(self) -> None:
        super().__init__("No move returned from AI")
