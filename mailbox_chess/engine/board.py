from __future__ import annotations

from typing import Final, List, Optional, Sequence, Tuple


STARTPOS_FEN = "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1"

# Colors
WHITE, BLACK = 0, 1

# Piece types
PAWN, KNIGHT, BISHOP, ROOK, QUEEN, KING = range(6)
PIECE_TYPES = (PAWN, KNIGHT, BISHOP, ROOK, QUEEN, KING)
PROMOTION_TYPES = (KNIGHT, BISHOP, ROOK, QUEEN)

# Piece codes (color * 6 + type); an empty square is None
WP, WN, WB, WR, WQ, WK, BP, BN, BB, BR, BQ, BK = range(12)
PIECE_TO_CHAR = {
    WP: "P",
    WN: "N",
    WB: "B",
    WR: "R",
    WQ: "Q",
    WK: "K",
    BP: "p",
    BN: "n",
    BB: "b",
    BR: "r",
    BQ: "q",
    BK: "k",
}
CHAR_TO_PIECE = {v: k for k, v in PIECE_TO_CHAR.items()}
TYPE_TO_CHAR = {PAWN: "p", KNIGHT: "n", BISHOP: "b", ROOK: "r", QUEEN: "q", KING: "k"}
CHAR_TO_TYPE = {v: k for k, v in TYPE_TO_CHAR.items()}

Square = Optional[int]
Board = Tuple[Square, ...]

OFF_BOARD: Final = -1

# 10x12 mailbox: two sentinel ranks top and bottom, one sentinel file each side.
# fmt: off
MAILBOX: Final = (
    -1, -1, -1, -1, -1, -1, -1, -1, -1, -1,
    -1, -1, -1, -1, -1, -1, -1, -1, -1, -1,
    -1,  0,  1,  2,  3,  4,  5,  6,  7, -1,
    -1,  8,  9, 10, 11, 12, 13, 14, 15, -1,
    -1, 16, 17, 18, 19, 20, 21, 22, 23, -1,
    -1, 24, 25, 26, 27, 28, 29, 30, 31, -1,
    -1, 32, 33, 34, 35, 36, 37, 38, 39, -1,
    -1, 40, 41, 42, 43, 44, 45, 46, 47, -1,
    -1, 48, 49, 50, 51, 52, 53, 54, 55, -1,
    -1, 56, 57, 58, 59, 60, 61, 62, 63, -1,
    -1, -1, -1, -1, -1, -1, -1, -1, -1, -1,
    -1, -1, -1, -1, -1, -1, -1, -1, -1, -1,
)

MAILBOX64: Final = (
    21, 22, 23, 24, 25, 26, 27, 28,
    31, 32, 33, 34, 35, 36, 37, 38,
    41, 42, 43, 44, 45, 46, 47, 48,
    51, 52, 53, 54, 55, 56, 57, 58,
    61, 62, 63, 64, 65, 66, 67, 68,
    71, 72, 73, 74, 75, 76, 77, 78,
    81, 82, 83, 84, 85, 86, 87, 88,
    91, 92, 93, 94, 95, 96, 97, 98,
)
# fmt: on

# Standard starting array, a8 first
# fmt: off
START_BOARD: Final[Board] = (
    BR, BN, BB, BQ, BK, BB, BN, BR,
    BP, BP, BP, BP, BP, BP, BP, BP,
    None, None, None, None, None, None, None, None,
    None, None, None, None, None, None, None, None,
    None, None, None, None, None, None, None, None,
    None, None, None, None, None, None, None, None,
    WP, WP, WP, WP, WP, WP, WP, WP,
    WR, WN, WB, WQ, WK, WB, WN, WR,
)
# fmt: on

# Standard king/rook origin squares
WHITE_KING_START: Final = 60
BLACK_KING_START: Final = 4
WHITE_ROOK_SHORT: Final = 63
WHITE_ROOK_LONG: Final = 56
BLACK_ROOK_SHORT: Final = 7
BLACK_ROOK_LONG: Final = 0


def next_index(idx: int, offset: int) -> int:
    """Return the board index reached from ``idx`` by a mailbox ``offset``.

    Returns ``OFF_BOARD`` (-1) when the step leaves the board.
    """
    return MAILBOX[MAILBOX64[idx] + offset]


def make_piece(color: int, ptype: int) -> int:
    return color * 6 + ptype


def rank_of(idx: int) -> int:
    """Return the chess rank (1..8) of a square index."""
    return 8 - idx // 8


def file_of(idx: int) -> int:
    """Return the file (0 = a .. 7 = h) of a square index."""
    return idx % 8


def mirror_index(idx: int) -> int:
    # Flip vertically (rank mirror)
    return (7 - idx // 8) * 8 + idx % 8


def str_to_square(s: str) -> int:
    """Convert algebraic notation into a square index (a8 = 0).

    Args:
        s (str): Square name such as ``"e4"``.

    Returns:
        int: Square index.

    Raises:
        ValueError: If ``s`` is not a valid square.
    """
    if len(s) != 2 or s[0] < "a" or s[0] > "h" or s[1] < "1" or s[1] > "8":
        raise ValueError(f"invalid square: {s!r}")
    file = ord(s[0]) - ord("a")
    rank = int(s[1])
    return (8 - rank) * 8 + file


def square_to_str(idx: int) -> str:
    """Convert a square index (a8 = 0) into algebraic notation.

    Raises:
        ValueError: If ``idx`` is outside the valid square range.
    """
    if idx < 0 or idx > 63:
        raise ValueError(f"invalid square index: {idx}")
    return chr(ord("a") + file_of(idx)) + str(rank_of(idx))


def find_kings(board: Sequence[Square], color: int) -> List[int]:
    king = make_piece(color, KING)
    return [i for i, sq in enumerate(board) if sq == king]


def render(board: Sequence[Square]) -> str:
    """Return a plain-text diagram of ``board``, rank 8 on top."""
    rows = []
    for r in range(8):
        cells = []
        for f in range(8):
            sq = board[r * 8 + f]
            cells.append("." if sq is None else PIECE_TO_CHAR[sq])
        rows.append(f"{8 - r} " + " ".join(cells))
    rows.append("  a b c d e f g h")
    return "\n".join(rows)
