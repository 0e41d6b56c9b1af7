from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field, replace
from functools import cached_property
from typing import List, Optional, Sequence, Set, Tuple

from .board import (
    BLACK,
    BLACK_ROOK_LONG,
    BLACK_ROOK_SHORT,
    KING,
    PAWN,
    START_BOARD,
    WHITE,
    WHITE_ROOK_LONG,
    WHITE_ROOK_SHORT,
    Board,
    Square,
    find_kings,
    make_piece,
    mirror_index,
    render,
)
from .errors import IllegalMoveError, InvalidPositionError, NoLegalMovesError, NullMoveError
from .move import Move, MoveKind, short_move
from .movegen import MovegenFlags, defend_map, is_attacked, pseudo_legal_moves
from .zobrist import compute_hash_from_scratch, incremental_hash_update


logger = logging.getLogger(__name__)


class GameState(enum.Enum):
    ACTIVE = "active"
    CHECK = "check"
    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"
    REPETITION = "repetition"
    FIFTY_MOVE = "fifty_move"
    # Declared by the players rather than reached on the board
    WHITE_RESIGN = "white_resign"
    BLACK_RESIGN = "black_resign"
    AGREED_DRAW = "agreed_draw"

    @property
    def is_draw(self) -> bool:
        return self in (
            GameState.STALEMATE,
            GameState.REPETITION,
            GameState.FIFTY_MOVE,
            GameState.AGREED_DRAW,
        )

    @property
    def is_resignation(self) -> bool:
        return self in (GameState.WHITE_RESIGN, GameState.BLACK_RESIGN)

    @property
    def is_game_over(self) -> bool:
        return self is GameState.CHECKMATE or self.is_resignation or self.is_draw


@dataclass(frozen=True)
class Position:
    """One board snapshot plus side to move and movegen flags.

    Positions are immutable: ``make_move`` returns a new Position and the
    parent is never touched, so the legal-move cache can never go stale.

    Notes:
    - ``board`` is a 64-tuple of piece codes or None, a8 first.
    - ``zobrist_hash`` is computed from scratch on construction unless the
      caller (``make_move``) supplies the incrementally derived value.
    """

    board: Board
    side: int
    flags: MovegenFlags
    zobrist_hash: int = field(default=-1, compare=False)

    def __post_init__(self) -> None:
        if self.zobrist_hash < 0:
            object.__setattr__(self, "zobrist_hash", compute_hash_from_scratch(self))

    @classmethod
    def start(cls) -> "Position":
        return cls(START_BOARD, WHITE, MovegenFlags.starting())

    @classmethod
    def from_parts(cls, board: Sequence[Square], side: int, flags: MovegenFlags) -> "Position":
        """Build a validated Position from externally supplied parts.

        Raises:
            InvalidPositionError: If the board is not 64 squares, a color does
                not have exactly one king, the en-passant pawn index is out of
                range or not a just-pushed enemy pawn, or the side not to move
                is in check.
        """
        if len(board) != 64:
            raise InvalidPositionError(f"board must have 64 squares, got {len(board)}")
        if side not in (WHITE, BLACK):
            raise InvalidPositionError(f"invalid side to move: {side!r}")
        for sq in board:
            if sq is not None and not (0 <= sq < 12):
                raise InvalidPositionError(f"invalid piece code: {sq!r}")
        for color, name in ((WHITE, "white"), (BLACK, "black")):
            kings = find_kings(board, color)
            if len(kings) != 1:
                raise InvalidPositionError(f"{name} must have exactly one king, found {len(kings)}")

        ep = flags.en_passant
        if ep is not None:
            if not (0 <= ep < 64):
                raise InvalidPositionError(f"en passant index out of range: {ep}")
            # The capturable pawn belongs to the side that just moved
            pushed = side ^ 1
            rank_ok = 32 <= ep <= 39 if pushed == WHITE else 24 <= ep <= 31
            if not rank_ok or board[ep] != make_piece(pushed, PAWN):
                raise InvalidPositionError(f"no capturable pawn on en passant index {ep}")

        pos = cls(tuple(board), side, flags)
        if pos.is_attacked(pos.king_index(side ^ 1), side):
            raise InvalidPositionError("side not to move is in check")
        return pos

    # --- Queries ---
    @cached_property
    def _kings(self) -> Tuple[int, int]:
        white = black = -1
        wk, bk = make_piece(WHITE, KING), make_piece(BLACK, KING)
        for idx, piece in enumerate(self.board):
            if piece == wk:
                white = idx
            elif piece == bk:
                black = idx
        return white, black

    def king_index(self, color: int) -> int:
        return self._kings[color]

    def is_attacked(self, idx: int, by_color: int) -> bool:
        return is_attacked(self.board, idx, by_color)

    def defend_map(self, color: int) -> Set[int]:
        """Return every square ``color`` threatens on this board."""
        return defend_map(self.board, color)

    def is_in_check(self, color: Optional[int] = None) -> bool:
        """Return True if ``color`` (default: side to move) is in check."""
        c = self.side if color is None else color
        return self.is_attacked(self.king_index(c), c ^ 1)

    def pseudo_legal_moves(self) -> List[Move]:
        return pseudo_legal_moves(self.board, self.flags, self.side)

    @cached_property
    def legal_moves(self) -> Tuple[Move, ...]:
        """Legal moves for the side to move, in generation order."""
        return tuple(m for m in self.pseudo_legal_moves() if self._is_pseudo_legal_safe(m))

    def _is_pseudo_legal_safe(self, move: Move) -> bool:
        enemy = self.side ^ 1
        if move.castle is not None:
            # King may not castle out of, through, or into check
            for sq in move.castle.king_squares:
                if is_attacked(self.board, sq, enemy):
                    return False
            return True
        board = list(self.board)
        self._place(board, move)
        king_sq = move.to_sq if move.piece % 6 == KING else self.king_index(self.side)
        return not is_attacked(board, king_sq, enemy)

    def is_legal(self, move: Move) -> bool:
        return move in self.legal_moves

    def find_move(self, from_sq: int, to_sq: int, promotion: Optional[int] = None) -> Move:
        """Return the full legal move matching (from, to, promotion).

        Raises:
            IllegalMoveError: If no legal move matches.
        """
        return self.resolve(short_move(from_sq, to_sq, promotion))

    def resolve(self, move: Move) -> Move:
        for m in self.legal_moves:
            if m == move:
                return m
        raise IllegalMoveError(f"{move.to_uci()} is not a legal move")

    def status(self) -> GameState:
        """Classify the position from legal-move count and check status."""
        in_check = self.is_in_check()
        if not self.legal_moves:
            return GameState.CHECKMATE if in_check else GameState.STALEMATE
        return GameState.CHECK if in_check else GameState.ACTIVE

    def gives_check(self, move: Move) -> bool:
        return self.make_move(move).is_in_check()

    def gives_checkmate(self, move: Move) -> bool:
        child = self.make_move(move)
        return child.is_in_check() and not child.legal_moves

    # --- Transitions ---
    def apply(self, move: Move) -> "Position":
        """Return the child position after a validated ``move``.

        Raises:
            NullMoveError: If ``move`` is the null-move sentinel.
            NoLegalMovesError: If this position has no legal moves.
            IllegalMoveError: If ``move`` is not legal here.
        """
        if move.is_null:
            logger.warning("null move passed to Position.apply")
            raise NullMoveError("null move cannot be applied")
        if not self.legal_moves:
            state = self.status()
            logger.warning("move requested in terminal position: %s", state.value)
            raise NoLegalMovesError(state)
        try:
            full = self.resolve(move)
        except IllegalMoveError:
            logger.warning("illegal move rejected: %s", move.to_uci())
            raise
        return self.make_move(full)

    def make_move(self, move: Move) -> "Position":
        """Return the child position after ``move`` without validation.

        ``move`` must come from this position's generated moves.
        """
        board = list(self.board)
        self._place(board, move)
        flags = self._next_flags(move)
        h = incremental_hash_update(self.zobrist_hash, self.flags, flags, move)
        return Position(tuple(board), self.side ^ 1, flags, h)

    def _place(self, board: List[Square], move: Move) -> None:
        board[move.from_sq] = None
        if move.kind is MoveKind.EN_PASSANT:
            board[move.ep_capture] = None
        if move.kind is MoveKind.PROMOTION:
            board[move.to_sq] = make_piece(self.side, move.promotion)
        else:
            board[move.to_sq] = move.piece
        if move.castle is not None:
            board[move.castle.rook_to] = board[move.castle.rook_from]
            board[move.castle.rook_from] = None

    def _next_flags(self, move: Move) -> MovegenFlags:
        flags = self.flags
        ep = move.to_sq if move.kind is MoveKind.DOUBLE_PAWN_PUSH else None
        if not (
            flags.white_castle_short
            or flags.white_castle_long
            or flags.black_castle_short
            or flags.black_castle_long
        ):
            return MovegenFlags(en_passant=ep) if ep != flags.en_passant else flags

        wks, wql, bks, bql = (
            flags.white_castle_short,
            flags.white_castle_long,
            flags.black_castle_short,
            flags.black_castle_long,
        )
        if move.piece == make_piece(WHITE, KING):
            wks = wql = False
        elif move.piece == make_piece(BLACK, KING):
            bks = bql = False
        # A rook leaving or being captured on its origin square
        touched = (move.from_sq, move.to_sq)
        if WHITE_ROOK_SHORT in touched:
            wks = False
        if WHITE_ROOK_LONG in touched:
            wql = False
        if BLACK_ROOK_SHORT in touched:
            bks = False
        if BLACK_ROOK_LONG in touched:
            bql = False
        return MovegenFlags(wks, wql, bks, bql, ep)

    def mirror(self) -> "Position":
        """Return the color-and-square mirrored counterpart."""
        board: List[Square] = [None] * 64
        for idx, piece in enumerate(self.board):
            if piece is not None:
                board[mirror_index(idx)] = (piece + 6) % 12
        f = self.flags
        flags = replace(
            f,
            white_castle_short=f.black_castle_short,
            white_castle_long=f.black_castle_long,
            black_castle_short=f.white_castle_short,
            black_castle_long=f.white_castle_long,
            en_passant=mirror_index(f.en_passant) if f.en_passant is not None else None,
        )
        return Position(tuple(board), self.side ^ 1, flags)

    def __str__(self) -> str:
        return render(self.board)
