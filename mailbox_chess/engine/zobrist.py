from __future__ import annotations

from typing import List, TYPE_CHECKING

from .board import BLACK, PAWN, ROOK, file_of, make_piece
from .move import Move, MoveKind

if TYPE_CHECKING:  # pragma: no cover
    from .movegen import MovegenFlags
    from .position import Position


MASK64 = 0xFFFFFFFFFFFFFFFF


class _SplitMix64:
    def __init__(self, seed: int) -> None:
        self.state = seed & MASK64

    def next(self) -> int:
        # Deterministic 64-bit SplitMix64
        self.state = (self.state + 0x9E3779B97F4A7C15) & MASK64
        z = self.state
        z = (z ^ (z >> 30)) * 0xBF58476D1CE4E5B9 & MASK64
        z = (z ^ (z >> 27)) * 0x94D049BB133111EB & MASK64
        z = z ^ (z >> 31)
        return z & MASK64


class Zobrist:
    """Zobrist hashing keys.

    Table layout:
    - piece_square[12][64]: indexed by piece code (WP..BK) and square (a8 = 0)
    - black_to_move: toggled in when Black is to move
    - castling[4]: white short, white long, black short, black long
    - ep_file[8]: files a..h of the en-passant capturable pawn
    """

    piece_square: List[List[int]]
    black_to_move: int
    castling: List[int]
    ep_file: List[int]

    def __init__(self, seed: int = 0xC0FFEE_F00D_DEAD) -> None:
        prng = _SplitMix64(seed)
        self.piece_square = [[prng.next() for _ in range(64)] for _ in range(12)]
        self.black_to_move = prng.next()
        self.castling = [prng.next() for _ in range(4)]
        self.ep_file = [prng.next() for _ in range(8)]

    def castling_key(self, flags: "MovegenFlags") -> int:
        h = 0
        for i, right in enumerate(_rights(flags)):
            if right:
                h ^= self.castling[i]
        return h


# Global table, fixed for the process lifetime
ZOBRIST = Zobrist()


def _rights(flags: "MovegenFlags") -> tuple:
    return (
        flags.white_castle_short,
        flags.white_castle_long,
        flags.black_castle_short,
        flags.black_castle_long,
    )


def compute_hash_from_scratch(position: "Position") -> int:
    """Compute the 64-bit fingerprint of a position.

    Deterministic given the fixed ZOBRIST table.
    """
    h = 0
    piece_square = ZOBRIST.piece_square
    for sq, piece in enumerate(position.board):
        if piece is not None:
            h ^= piece_square[piece][sq]
    if position.side == BLACK:
        h ^= ZOBRIST.black_to_move
    h ^= ZOBRIST.castling_key(position.flags)
    if position.flags.en_passant is not None:
        h ^= ZOBRIST.ep_file[file_of(position.flags.en_passant)]
    return h & MASK64


def incremental_hash_update(
    current_hash: int, before: "MovegenFlags", after: "MovegenFlags", move: Move
) -> int:
    """Derive the child fingerprint from the parent's by XOR toggles.

    Args:
        current_hash: Fingerprint of the position ``move`` is played from.
        before: Flags of the parent position.
        after: Flags of the child position.
        move: The move played.

    Returns:
        int: Fingerprint equal to ``compute_hash_from_scratch`` of the child.
    """
    ps = ZOBRIST.piece_square
    h = current_hash ^ ps[move.piece][move.from_sq]
    color = move.piece // 6
    enemy = color ^ 1

    if move.kind is MoveKind.PROMOTION:
        h ^= ps[make_piece(color, move.promotion)][move.to_sq]
    else:
        h ^= ps[move.piece][move.to_sq]

    if move.kind is MoveKind.EN_PASSANT:
        h ^= ps[make_piece(enemy, PAWN)][move.ep_capture]
    elif move.captured is not None:
        h ^= ps[make_piece(enemy, move.captured)][move.to_sq]

    if move.castle is not None:
        rook = make_piece(color, ROOK)
        h ^= ps[rook][move.castle.rook_from]
        h ^= ps[rook][move.castle.rook_to]

    for i, (was, now) in enumerate(zip(_rights(before), _rights(after))):
        if was != now:
            h ^= ZOBRIST.castling[i]

    if before.en_passant is not None:
        h ^= ZOBRIST.ep_file[file_of(before.en_passant)]
    if after.en_passant is not None:
        h ^= ZOBRIST.ep_file[file_of(after.en_passant)]

    h ^= ZOBRIST.black_to_move
    return h & MASK64
