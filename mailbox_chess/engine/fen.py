"""FEN adapter: text <-> validated (board, side, flags, counters) tuple."""

from __future__ import annotations

import logging
from typing import List, NamedTuple, Optional

from .board import (
    BLACK,
    CHAR_TO_PIECE,
    PIECE_TO_CHAR,
    WHITE,
    Board,
    Square,
    rank_of,
    square_to_str,
    str_to_square,
)
from .errors import ChessError, FenParseError
from .movegen import MovegenFlags
from .position import Position


logger = logging.getLogger(__name__)


class FenFields(NamedTuple):
    board: Board
    side: int
    flags: MovegenFlags
    halfmove_clock: int
    fullmove_number: int


DEFAULT_HALFMOVE = 0
DEFAULT_FULLMOVE = 1


def parse_fen(fen: str) -> FenFields:
    """Parse a Forsyth–Edwards Notation (FEN) string.

    The half-move and full-move fields are optional and default to 0 and 1.

    Args:
        fen (str): FEN string describing the position to load.

    Returns:
        FenFields: Board array, side to move, flags and move counters. The
            en-passant target square is converted to the index of the pawn
            that can be captured.

    Raises:
        FenParseError: If ``fen`` is empty, has the wrong number of fields, or
            contains invalid piece placement, castling rights, en passant
            square, or move counters.
    """
    if not fen or not isinstance(fen, str):
        raise FenParseError("FEN must be a non-empty string")
    parts = fen.strip().split()
    if len(parts) < 4 or len(parts) > 6:
        raise FenParseError(f"FEN must have 4 to 6 fields, got {len(parts)}")
    placement, stm, castling, ep = parts[:4]

    ranks = placement.split("/")
    if len(ranks) != 8:
        raise FenParseError("FEN board must have 8 ranks")
    board: List[Square] = []
    for rank in ranks:  # rank 8 first, matching a8 = 0
        count = 0
        for ch in rank:
            if ch.isdigit():
                n = int(ch)
                if n < 1 or n > 8:
                    raise FenParseError("invalid empty count in FEN rank")
                board.extend([None] * n)
                count += n
            else:
                if ch not in CHAR_TO_PIECE:
                    raise FenParseError(f"invalid piece in FEN: {ch!r}")
                board.append(CHAR_TO_PIECE[ch])
                count += 1
        if count != 8:
            raise FenParseError(f"rank {rank!r} does not sum to 8 squares")

    if stm not in ("w", "b"):
        raise FenParseError("side to move must be 'w' or 'b'")
    side = WHITE if stm == "w" else BLACK

    # Letters may come in any order but each right appears at most once
    if castling != "-" and (
        not castling
        or any(ch not in "KQkq" for ch in castling)
        or len(set(castling)) != len(castling)
    ):
        raise FenParseError(f"invalid castling rights: {castling!r}")

    ep_pawn: Optional[int] = None
    if ep != "-":
        try:
            target = str_to_square(ep)
        except ValueError as e:
            raise FenParseError("invalid en passant square") from e
        # White to move captures onto rank 6, Black onto rank 3
        expected_rank = 6 if side == WHITE else 3
        if rank_of(target) != expected_rank:
            raise FenParseError("invalid en passant square rank")
        ep_pawn = target + 8 if side == WHITE else target - 8

    flags = MovegenFlags(
        white_castle_short="K" in castling,
        white_castle_long="Q" in castling,
        black_castle_short="k" in castling,
        black_castle_long="q" in castling,
        en_passant=ep_pawn,
    )

    halfmove, fullmove = DEFAULT_HALFMOVE, DEFAULT_FULLMOVE
    try:
        if len(parts) >= 5:
            halfmove = int(parts[4])
        if len(parts) == 6:
            fullmove = int(parts[5])
    except ValueError as e:
        raise FenParseError("invalid move counters in FEN") from e
    if halfmove < 0 or fullmove <= 0:
        raise FenParseError("invalid move counters in FEN")

    return FenFields(tuple(board), side, flags, halfmove, fullmove)


def position_from_fen(fen: str) -> Position:
    try:
        fields = parse_fen(fen)
        return Position.from_parts(fields.board, fields.side, fields.flags)
    except ChessError as e:
        logger.warning("FEN rejected: %s", e)
        raise


def format_fen(
    position: Position,
    halfmove_clock: int = DEFAULT_HALFMOVE,
    fullmove_number: int = DEFAULT_FULLMOVE,
) -> str:
    """Serialize a position and counters into a normalized FEN string."""
    ranks_str: List[str] = []
    for r in range(8):
        run = 0
        row = []
        for f in range(8):
            piece = position.board[r * 8 + f]
            if piece is None:
                run += 1
                continue
            if run > 0:
                row.append(str(run))
                run = 0
            row.append(PIECE_TO_CHAR[piece])
        if run > 0:
            row.append(str(run))
        ranks_str.append("".join(row))
    placement = "/".join(ranks_str)

    stm = "w" if position.side == WHITE else "b"
    flags = position.flags
    castling = "".join(
        ch
        for ch, right in (
            ("K", flags.white_castle_short),
            ("Q", flags.white_castle_long),
            ("k", flags.black_castle_short),
            ("q", flags.black_castle_long),
        )
        if right
    )
    ep = "-"
    if flags.en_passant is not None:
        # Target square sits behind the pushed pawn
        target = flags.en_passant - 8 if position.side == WHITE else flags.en_passant + 8
        ep = square_to_str(target)
    return f"{placement} {stm} {castling or '-'} {ep} {halfmove_clock} {fullmove_number}"
