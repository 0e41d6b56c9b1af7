from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, NamedTuple, Optional

from .board import BLACK, PAWN, WHITE
from .errors import (
    ChessError,
    GameOverError,
    IllegalMoveError,
    NoLegalMovesError,
    NullMoveError,
)
from .fen import FenFields, format_fen, parse_fen
from .move import Move
from .position import GameState, Position


logger = logging.getLogger(__name__)

FIFTY_MOVE_PLIES = 100
REPETITION_LIMIT = 3


class Ply(NamedTuple):
    """One entry of the game history: the position reached and how."""

    position: Position
    move: Optional[Move]
    halfmove_clock: int
    fullmove_number: int


@dataclass
class Game:
    """Game history around a sequence of immutable positions.

    Responsibility: track one Position per ply, the move counters and the
    repetition table; validate and apply moves; classify the game state.
    History is append-only: ``position_at`` gives a read-only rewind view.
    """

    history: List[Ply]
    repetition: Dict[int, int] = field(default_factory=dict)
    # Set by resign() or agree_draw(); board-derived states are never stored
    outcome: Optional[GameState] = None

    @classmethod
    def new(cls) -> "Game":
        return cls.from_position(Position.start())

    @classmethod
    def from_position(
        cls, position: Position, halfmove_clock: int = 0, fullmove_number: int = 1
    ) -> "Game":
        game = cls(history=[Ply(position, None, halfmove_clock, fullmove_number)])
        logger.info(
            "game created from position %016x (halfmove=%d fullmove=%d)",
            position.zobrist_hash,
            halfmove_clock,
            fullmove_number,
        )
        return game

    @classmethod
    def from_fields(cls, fields: FenFields) -> "Game":
        position = Position.from_parts(fields.board, fields.side, fields.flags)
        return cls.from_position(position, fields.halfmove_clock, fields.fullmove_number)

    @classmethod
    def from_fen(cls, fen: str) -> "Game":
        try:
            return cls.from_fields(parse_fen(fen))
        except ChessError as e:
            logger.warning("FEN rejected: %s", e)
            raise

    def __post_init__(self) -> None:
        # Seed repetition with the positions already in history
        if not self.repetition:
            for ply in self.history:
                h = ply.position.zobrist_hash
                self.repetition[h] = self.repetition.get(h, 0) + 1

    # --- Accessors ---
    @property
    def position(self) -> Position:
        return self.history[-1].position

    @property
    def halfmove_clock(self) -> int:
        return self.history[-1].halfmove_clock

    @property
    def fullmove_number(self) -> int:
        return self.history[-1].fullmove_number

    @property
    def ply_count(self) -> int:
        return len(self.history) - 1

    def to_fen(self) -> str:
        return format_fen(self.position, self.halfmove_clock, self.fullmove_number)

    def position_at(self, ply: int) -> Position:
        """Return the position after ``ply`` half-moves (0 = initial)."""
        return self._ply(ply).position

    def fen_at(self, ply: int) -> str:
        p = self._ply(ply)
        return format_fen(p.position, p.halfmove_clock, p.fullmove_number)

    def _ply(self, ply: int) -> Ply:
        if ply < 0 or ply >= len(self.history):
            raise IndexError(f"ply {ply} out of range 0..{len(self.history) - 1}")
        return self.history[ply]

    def legal_moves(self) -> List[Move]:
        return list(self.position.legal_moves)

    def occurrences(self) -> int:
        return self.repetition.get(self.position.zobrist_hash, 1)

    # --- Transitions ---
    def apply_move(self, move: Move) -> Move:
        """Validate and play ``move``; return the full legal move applied.

        The game is left unchanged when the move is rejected.

        Raises:
            NullMoveError: If ``move`` is the null-move sentinel.
            NoLegalMovesError: If the position is checkmate or stalemate.
            GameOverError: If the game is drawn by repetition or the
                fifty-move rule, or a player resigned or a draw was agreed.
            IllegalMoveError: If ``move`` is not legal in the current position.
        """
        if move.is_null:
            logger.warning("null move rejected")
            raise NullMoveError("null move cannot be played")
        state = self.state()
        if state in (GameState.CHECKMATE, GameState.STALEMATE):
            logger.warning("move %s rejected: %s", move.to_uci(), state.value)
            raise NoLegalMovesError(state)
        if state.is_game_over:
            logger.warning("move %s rejected: %s", move.to_uci(), state.value)
            raise GameOverError(state)
        try:
            full = self.position.resolve(move)
        except IllegalMoveError:
            logger.warning("illegal move rejected: %s", move.to_uci())
            raise

        child = self.position.make_move(full)
        if full.piece % 6 == PAWN or full.is_capture:
            halfmove = 0
        else:
            halfmove = self.halfmove_clock + 1
        fullmove = self.fullmove_number + (1 if child.side == WHITE else 0)
        self.history.append(Ply(child, full, halfmove, fullmove))
        h = child.zobrist_hash
        self.repetition[h] = self.repetition.get(h, 0) + 1
        logger.debug("played %s -> %016x", full.to_uci(), h)
        return full

    def resign(self, color: int) -> GameState:
        """End the game by resignation of ``color``.

        Raises:
            GameOverError: If the game is already over.
        """
        if color not in (WHITE, BLACK):
            raise ValueError(f"invalid color: {color!r}")
        outcome = GameState.WHITE_RESIGN if color == WHITE else GameState.BLACK_RESIGN
        return self._declare(outcome)

    def agree_draw(self) -> GameState:
        return self._declare(GameState.AGREED_DRAW)

    def _declare(self, outcome: GameState) -> GameState:
        state = self.state()
        if state.is_game_over:
            logger.warning("%s rejected: game is over (%s)", outcome.value, state.value)
            raise GameOverError(state)
        self.outcome = outcome
        logger.info("game ended: %s", outcome.value)
        return outcome

    # --- State flags ---
    def state(self) -> GameState:
        """Classify the current game state.

        A resignation or agreed draw ends the game first; after that,
        checkmate and stalemate take precedence over the fifty-move and
        repetition draws.
        """
        if self.outcome is not None:
            return self.outcome
        status = self.position.status()
        if status in (GameState.CHECKMATE, GameState.STALEMATE):
            return status
        if self.halfmove_clock >= FIFTY_MOVE_PLIES:
            return GameState.FIFTY_MOVE
        if self.occurrences() >= REPETITION_LIMIT:
            return GameState.REPETITION
        return status

    def in_check(self) -> bool:
        return self.position.is_in_check()

    def checkmate(self) -> bool:
        return self.state() is GameState.CHECKMATE

    def stalemate(self) -> bool:
        return self.state() is GameState.STALEMATE

    def is_draw(self) -> bool:
        return self.state().is_draw

    def last_move(self) -> Optional[Move]:
        return self.history[-1].move

    def move_history_uci(self) -> List[str]:
        return [p.move.to_uci() for p in self.history[1:] if p.move is not None]

    def result(self) -> Optional[str]:
        """PGN result tag ("1-0", "0-1", "1/2-1/2"), or None while play goes on."""
        state = self.state()
        if state.is_draw:
            return "1/2-1/2"
        if state is GameState.CHECKMATE:
            # The side to move is the one mated
            return "0-1" if self.position.side == WHITE else "1-0"
        if state.is_resignation:
            return "0-1" if state is GameState.WHITE_RESIGN else "1-0"
        return None
