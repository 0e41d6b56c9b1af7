from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import NamedTuple, Optional, Tuple

from .board import (
    CHAR_TO_TYPE,
    PROMOTION_TYPES,
    TYPE_TO_CHAR,
    WK,
    square_to_str,
    str_to_square,
)


class MoveKind(enum.Enum):
    NORMAL = "normal"
    PAWN_PUSH = "pawn_push"
    DOUBLE_PAWN_PUSH = "double_pawn_push"
    CAPTURE = "capture"
    EN_PASSANT = "en_passant"
    PROMOTION = "promotion"
    CASTLE = "castle"
    NONE = "none"  # null move, or defend-only moves that cannot be played


class CastleInfo(NamedTuple):
    rook_from: int
    rook_to: int
    king_squares: Tuple[int, int, int]  # origin, pass-through, destination


@dataclass(frozen=True, eq=False)
class Move:
    """Engine-internal move representation.

    Attributes:
        piece (int): Piece code of the moving piece.
        from_sq (int): Origin square index (a8 = 0).
        to_sq (int): Destination square index.
        kind (MoveKind): Move type tag.
        captured (Optional[int]): Captured piece type for captures and
            promotion-captures.
        promotion (Optional[int]): Promoted-to piece type.
        ep_capture (Optional[int]): Index of the pawn removed by en passant.
        castle (Optional[CastleInfo]): Rook relocation and king path.

    Identity is (from, to, promotion); captured-piece metadata does not take
    part in equality or hashing.
    """

    piece: int
    from_sq: int
    to_sq: int
    kind: MoveKind = MoveKind.NORMAL
    captured: Optional[int] = None
    promotion: Optional[int] = None
    ep_capture: Optional[int] = None
    castle: Optional[CastleInfo] = None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Move):
            return NotImplemented
        return (
            self.from_sq == other.from_sq
            and self.to_sq == other.to_sq
            and self.promotion == other.promotion
        )

    def __hash__(self) -> int:
        return hash((self.from_sq, self.to_sq, self.promotion))

    @property
    def is_capture(self) -> bool:
        return self.kind in (MoveKind.CAPTURE, MoveKind.EN_PASSANT) or (
            self.kind is MoveKind.PROMOTION and self.captured is not None
        )

    @property
    def is_null(self) -> bool:
        return self.from_sq == NULL_SQUARE and self.to_sq == NULL_SQUARE

    def to_uci(self) -> str:
        """Serialize the move into long algebraic UCI form.

        Returns:
            str: Move encoded like ``"e2e4"`` or ``"e7e8q"``; the null move is
                ``"0000"``.
        """
        if self.is_null:
            return "0000"
        promo = TYPE_TO_CHAR[self.promotion] if self.promotion is not None else ""
        return square_to_str(self.from_sq) + square_to_str(self.to_sq) + promo

    def __str__(self) -> str:
        return self.to_uci()


# from and to are out of range
NULL_SQUARE = 64
NULL_MOVE = Move(piece=WK, from_sq=NULL_SQUARE, to_sq=NULL_SQUARE, kind=MoveKind.NONE)


def short_move(from_sq: int, to_sq: int, promotion: Optional[int] = None) -> Move:
    """Build a bare move carrying only its identity (from, to, promotion).

    Used to look up the full legal move from user input.
    """
    return Move(piece=WK, from_sq=from_sq, to_sq=to_sq, kind=MoveKind.NONE, promotion=promotion)


def parse_uci(uci: str) -> Move:
    """Parse a UCI move string into an identity-only move.

    Args:
        uci (str): Move encoded in long algebraic notation (e.g. ``"e2e4"``).

    Returns:
        Move: Move with from/to/promotion set; resolve it against a
            position's legal moves to get the full move.

    Raises:
        ValueError: If the string has an invalid length, squares, or promotion
            piece.
    """
    if uci == "0000":
        return NULL_MOVE
    if len(uci) not in (4, 5):
        raise ValueError(f"invalid UCI move length: {uci!r}")
    from_sq = str_to_square(uci[0:2])
    to_sq = str_to_square(uci[2:4])
    promo: Optional[int] = None
    if len(uci) == 5:
        promo = CHAR_TO_TYPE.get(uci[4].lower())
        if promo not in PROMOTION_TYPES:
            raise ValueError(f"invalid promotion piece: {uci[4]!r}")
    return short_move(from_sq, to_sq, promo)
