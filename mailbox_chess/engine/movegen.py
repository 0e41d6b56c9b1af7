"""Pseudo-legal move generation over the 10x12 mailbox.

Generation never looks at king safety; the Position layer filters the
pseudo-legal list down to legal moves.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final, List, Optional, Sequence, Set

from .board import (
    BISHOP,
    BLACK,
    BLACK_KING_START,
    KING,
    KNIGHT,
    OFF_BOARD,
    PAWN,
    PROMOTION_TYPES,
    QUEEN,
    ROOK,
    WHITE,
    WHITE_KING_START,
    Square,
    make_piece,
    next_index,
)
from .move import CastleInfo, Move, MoveKind


KNIGHT_OFFSETS: Final = (-21, -19, -12, -8, 8, 12, 19, 21)
BISHOP_OFFSETS: Final = (-11, -9, 9, 11)
ROOK_OFFSETS: Final = (-10, -1, 1, 10)
QUEEN_KING_OFFSETS: Final = (-11, -10, -9, -1, 1, 9, 10, 11)

PIECE_OFFSETS: Final = {
    KNIGHT: KNIGHT_OFFSETS,
    BISHOP: BISHOP_OFFSETS,
    ROOK: ROOK_OFFSETS,
    QUEEN: QUEEN_KING_OFFSETS,
    KING: QUEEN_KING_OFFSETS,
}
SLIDERS: Final = frozenset((BISHOP, ROOK, QUEEN))

PAWN_PUSH: Final = {WHITE: -10, BLACK: 10}
PAWN_ATTACKS: Final = {WHITE: (-9, -11), BLACK: (9, 11)}
KING_START: Final = {WHITE: WHITE_KING_START, BLACK: BLACK_KING_START}


@dataclass(frozen=True)
class MovegenFlags:
    """Castling rights plus the en-passant capturable pawn.

    ``en_passant`` is the index of the pawn that just made a double push, not
    the square the capturing pawn lands on.
    """

    white_castle_short: bool = False
    white_castle_long: bool = False
    black_castle_short: bool = False
    black_castle_long: bool = False
    en_passant: Optional[int] = None

    @classmethod
    def starting(cls) -> "MovegenFlags":
        return cls(True, True, True, True, None)

    def castle_short(self, color: int) -> bool:
        return self.white_castle_short if color == WHITE else self.black_castle_short

    def castle_long(self, color: int) -> bool:
        return self.white_castle_long if color == WHITE else self.black_castle_long


NO_FLAGS: Final = MovegenFlags()


def _is_promotion_square(idx: int, color: int) -> bool:
    return idx <= 7 if color == WHITE else idx >= 56


def _is_pawn_start(idx: int, color: int) -> bool:
    return 48 <= idx <= 55 if color == WHITE else 8 <= idx <= 15


def generate(
    board: Sequence[Square],
    flags: MovegenFlags,
    piece: int,
    from_sq: int,
    defending: bool = False,
) -> List[Move]:
    """Return candidate moves for ``piece`` standing on ``from_sq``.

    Args:
        board: 64-square board, a8 first.
        flags: Castling rights and en-passant state.
        piece: Piece code occupying ``from_sq``.
        from_sq: Origin square index.
        defending: When True, return the squares the piece threatens instead of
            playable moves. Friendly-occupied squares are included, pawn pushes,
            en passant and castling are skipped, and slides continue through
            the enemy king so the squares behind it count as attacked.

    Returns:
        List[Move]: Pseudo-legal moves (or ``MoveKind.NONE`` threat markers
            when ``defending``).
    """
    color, ptype = divmod(piece, 6)
    moves: List[Move] = []
    if ptype == PAWN:
        _pawn_moves(board, flags, piece, color, from_sq, defending, moves)
        return moves

    slide = ptype in SLIDERS
    enemy_king = make_piece(color ^ 1, KING)
    for offset in PIECE_OFFSETS[ptype]:
        to_sq = next_index(from_sq, offset)
        while to_sq != OFF_BOARD:
            target = board[to_sq]
            if target is None:
                moves.append(
                    Move(piece, from_sq, to_sq, MoveKind.NONE if defending else MoveKind.NORMAL)
                )
            else:
                if defending:
                    moves.append(Move(piece, from_sq, to_sq, MoveKind.NONE))
                    if not (slide and target == enemy_king):
                        break
                else:
                    if target // 6 != color:
                        moves.append(
                            Move(piece, from_sq, to_sq, MoveKind.CAPTURE, captured=target % 6)
                        )
                    break
            if not slide:
                break
            to_sq = next_index(to_sq, offset)

    if ptype == KING and not defending:
        _castle_moves(board, flags, piece, color, from_sq, moves)
    return moves


def _pawn_moves(
    board: Sequence[Square],
    flags: MovegenFlags,
    piece: int,
    color: int,
    from_sq: int,
    defending: bool,
    moves: List[Move],
) -> None:
    push = PAWN_PUSH[color]

    if not defending:
        one = next_index(from_sq, push)
        if one != OFF_BOARD and board[one] is None:
            if _is_promotion_square(one, color):
                for promo in PROMOTION_TYPES:
                    moves.append(Move(piece, from_sq, one, MoveKind.PROMOTION, promotion=promo))
            else:
                moves.append(Move(piece, from_sq, one, MoveKind.PAWN_PUSH))
                if _is_pawn_start(from_sq, color):
                    two = next_index(one, push)
                    if two != OFF_BOARD and board[two] is None:
                        moves.append(Move(piece, from_sq, two, MoveKind.DOUBLE_PAWN_PUSH))

    for offset in PAWN_ATTACKS[color]:
        to_sq = next_index(from_sq, offset)
        if to_sq == OFF_BOARD:
            continue
        target = board[to_sq]
        if defending:
            moves.append(Move(piece, from_sq, to_sq, MoveKind.NONE))
            continue
        if target is None or target // 6 == color:
            continue
        if _is_promotion_square(to_sq, color):
            for promo in PROMOTION_TYPES:
                moves.append(
                    Move(
                        piece,
                        from_sq,
                        to_sq,
                        MoveKind.PROMOTION,
                        captured=target % 6,
                        promotion=promo,
                    )
                )
        else:
            moves.append(Move(piece, from_sq, to_sq, MoveKind.CAPTURE, captured=target % 6))

    # En passant never lands on the back rank, so no promotion handling
    ep = flags.en_passant
    if not defending and ep is not None:
        for side in (-1, 1):
            if next_index(from_sq, side) != ep:
                continue
            landing = next_index(ep, push)
            if landing != OFF_BOARD and board[landing] is None:
                moves.append(
                    Move(
                        piece,
                        from_sq,
                        landing,
                        MoveKind.EN_PASSANT,
                        captured=PAWN,
                        ep_capture=ep,
                    )
                )


def _castle_moves(
    board: Sequence[Square],
    flags: MovegenFlags,
    piece: int,
    color: int,
    from_sq: int,
    moves: List[Move],
) -> None:
    if from_sq != KING_START[color]:
        return
    rook = make_piece(color, ROOK)
    if (
        flags.castle_short(color)
        and board[from_sq + 1] is None
        and board[from_sq + 2] is None
        and board[from_sq + 3] == rook
    ):
        moves.append(
            Move(
                piece,
                from_sq,
                from_sq + 2,
                MoveKind.CASTLE,
                castle=CastleInfo(
                    rook_from=from_sq + 3,
                    rook_to=from_sq + 1,
                    king_squares=(from_sq, from_sq + 1, from_sq + 2),
                ),
            )
        )
    if (
        flags.castle_long(color)
        and board[from_sq - 1] is None
        and board[from_sq - 2] is None
        and board[from_sq - 3] is None
        and board[from_sq - 4] == rook
    ):
        moves.append(
            Move(
                piece,
                from_sq,
                from_sq - 2,
                MoveKind.CASTLE,
                castle=CastleInfo(
                    rook_from=from_sq - 4,
                    rook_to=from_sq - 1,
                    king_squares=(from_sq, from_sq - 1, from_sq - 2),
                ),
            )
        )


def pseudo_legal_moves(board: Sequence[Square], flags: MovegenFlags, color: int) -> List[Move]:
    """Return every pseudo-legal move for ``color``, in board order."""
    moves: List[Move] = []
    for idx, piece in enumerate(board):
        if piece is not None and piece // 6 == color:
            moves.extend(generate(board, flags, piece, idx))
    return moves


def defend_map(board: Sequence[Square], color: int) -> Set[int]:
    """Return the set of squares threatened by ``color``'s pieces."""
    squares: Set[int] = set()
    for idx, piece in enumerate(board):
        if piece is not None and piece // 6 == color:
            for mv in generate(board, NO_FLAGS, piece, idx, defending=True):
                squares.add(mv.to_sq)
    return squares


def is_attacked(board: Sequence[Square], idx: int, by_color: int) -> bool:
    """Return True if square ``idx`` is threatened by ``by_color``.

    Walks outward from the target square instead of building the whole defend
    map. Slides stop at the first piece, so unlike ``defend_map`` the squares
    behind the defending king are not reported. On the king's own square the
    two queries always agree.
    """
    base = by_color * 6

    # A pawn of by_color attacks idx from the reverse of its attack offsets
    pawn = base + PAWN
    for offset in PAWN_ATTACKS[by_color]:
        src = next_index(idx, -offset)
        if src != OFF_BOARD and board[src] == pawn:
            return True

    knight = base + KNIGHT
    for offset in KNIGHT_OFFSETS:
        src = next_index(idx, offset)
        if src != OFF_BOARD and board[src] == knight:
            return True

    king = base + KING
    for offset in QUEEN_KING_OFFSETS:
        src = next_index(idx, offset)
        if src != OFF_BOARD and board[src] == king:
            return True

    queen = base + QUEEN
    bishop = base + BISHOP
    for offset in BISHOP_OFFSETS:
        src = next_index(idx, offset)
        while src != OFF_BOARD:
            occupant = board[src]
            if occupant is not None:
                if occupant == bishop or occupant == queen:
                    return True
                break
            src = next_index(src, offset)

    rook = base + ROOK
    for offset in ROOK_OFFSETS:
        src = next_index(idx, offset)
        while src != OFF_BOARD:
            occupant = board[src]
            if occupant is not None:
                if occupant == rook or occupant == queen:
                    return True
                break
            src = next_index(src, offset)

    return False
