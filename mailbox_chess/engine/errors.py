from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from .position import GameState


class ChessError(ValueError):
    """Base class for rejected state transitions and invalid positions."""


class IllegalMoveError(ChessError):
    """Requested move is not in the legal set."""


class NullMoveError(ChessError):
    """The null-move sentinel was passed where a real move was required."""


class NoLegalMovesError(ChessError):
    """Caller asked to advance a position with no legal continuation."""

    def __init__(self, state: "GameState") -> None:
        super().__init__(f"no legal moves: {state.value}")
        self.state = state


class GameOverError(ChessError):
    """Caller asked to continue play past a terminal game state."""

    def __init__(self, state: "GameState") -> None:
        super().__init__(f"game is over: {state.value}")
        self.state = state


class InvalidPositionError(ChessError):
    """Board tuple cannot describe a playable position."""


class FenParseError(ChessError):
    """Malformed FEN text."""
