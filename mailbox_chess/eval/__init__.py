"""Evaluation heuristics and related utilities.

Pure, deterministic, and side-effect free.
"""

from __future__ import annotations

from typing import Final, Sequence

from mailbox_chess.engine.board import (
    BISHOP,
    KING,
    KNIGHT,
    PAWN,
    QUEEN,
    ROOK,
    WHITE,
    Square,
    mirror_index,
)
from mailbox_chess.engine.position import Position


# Material values in centipawns
P_VAL: Final = 100
N_VAL: Final = 320
B_VAL: Final = 330
R_VAL: Final = 500
Q_VAL: Final = 900
# Only used to rank captures by the mover; kings are never captured
K_VAL: Final = 20000

PIECE_VALUES: Final = (P_VAL, N_VAL, B_VAL, R_VAL, Q_VAL, K_VAL)

# Piece-square tables from White's point of view, laid out like the board:
# first row is rank 8 (index 0 = a8), last row is rank 1.
# fmt: off
PSQT_P: Final = (
      0,   0,   0,   0,   0,   0,   0,   0,
     50,  50,  50,  50,  50,  50,  50,  50,
     10,  10,  20,  30,  30,  20,  10,  10,
      5,   5,  10,  25,  25,  10,   5,   5,
      0,   0,   0,  20,  20,   0,   0,   0,
      5,  -5, -10,   0,   0, -10,  -5,   5,
      5,  10,  10, -20, -20,  10,  10,   5,
      0,   0,   0,   0,   0,   0,   0,   0,
)

PSQT_N: Final = (
    -50, -40, -30, -30, -30, -30, -40, -50,
    -40, -20,   0,   5,   5,   0, -20, -40,
    -30,   5,  10,  15,  15,  10,   5, -30,
    -30,   0,  15,  20,  20,  15,   0, -30,
    -30,   5,  15,  20,  20,  15,   5, -30,
    -30,   0,  10,  15,  15,  10,   0, -30,
    -40, -20,   0,   0,   0,   0, -20, -40,
    -50, -40, -30, -30, -30, -30, -40, -50,
)

PSQT_B: Final = (
    -20, -10, -10, -10, -10, -10, -10, -20,
    -10,   0,   0,   0,   0,   0,   0, -10,
    -10,   0,   5,  10,  10,   5,   0, -10,
    -10,   5,   5,  10,  10,   5,   5, -10,
    -10,   0,  10,  10,  10,  10,   0, -10,
    -10,  10,  10,  10,  10,  10,  10, -10,
    -10,   5,   0,   0,   0,   0,   5, -10,
    -20, -10, -10, -10, -10, -10, -10, -20,
)

PSQT_R: Final = (
      0,   0,   0,   0,   0,   0,   0,   0,
      5,  10,  10,  10,  10,  10,  10,   5,
     -5,   0,   0,   0,   0,   0,   0,  -5,
     -5,   0,   0,   0,   0,   0,   0,  -5,
     -5,   0,   0,   0,   0,   0,   0,  -5,
     -5,   0,   0,   0,   0,   0,   0,  -5,
     -5,   0,   0,   0,   0,   0,   0,  -5,
      0,   0,   5,  10,  10,   5,   0,   0,
)

PSQT_Q: Final = (
    -20, -10, -10,  -5,  -5, -10, -10, -20,
    -10,   0,   0,   0,   0,   0,   0, -10,
    -10,   0,   5,   5,   5,   5,   0, -10,
     -5,   0,   5,   5,   5,   5,   0,  -5,
     -5,   0,   5,   5,   5,   5,   0,  -5,
    -10,   0,   5,   5,   5,   5,   0, -10,
    -10,   0,   0,   0,   0,   0,   0, -10,
    -20, -10, -10,  -5,  -5, -10, -10, -20,
)

PSQT_K: Final = (
    -30, -40, -40, -50, -50, -40, -40, -30,
    -30, -40, -40, -50, -50, -40, -40, -30,
    -30, -40, -40, -50, -50, -40, -40, -30,
    -30, -40, -40, -50, -50, -40, -40, -30,
    -20, -30, -30, -40, -40, -30, -30, -20,
    -10, -20, -20, -20, -20, -20, -20, -10,
     20,  20,   0,   0,   0,   0,  20,  20,
     20,  30,  10,   0,   0,  10,  30,  20,
)

PSQT_K_EG: Final = (
    -50, -30, -30, -30, -30, -30, -30, -50,
    -30, -10,   0,   0,   0,   0, -10, -30,
    -30,   0,  10,  15,  15,  10,   0, -30,
    -30,   0,  15,  20,  20,  15,   0, -30,
    -30,   0,  15,  20,  20,  15,   0, -30,
    -30,   0,  10,  15,  15,  10,   0, -30,
    -30, -10,   0,   0,   0,   0, -10, -30,
    -50, -30, -30, -30, -30, -30, -30, -50,
)
# fmt: on

PSQT: Final = {
    PAWN: PSQT_P,
    KNIGHT: PSQT_N,
    BISHOP: PSQT_B,
    ROOK: PSQT_R,
    QUEEN: PSQT_Q,
}

# Phase units: minor = 1, rook = 2, queen = 4; 24 with all pieces on board
PHASE_WEIGHTS: Final = {KNIGHT: 1, BISHOP: 1, ROOK: 2, QUEEN: 4}
PHASE_TOTAL: Final = 24


def piece_value(piece_type: int) -> int:
    return PIECE_VALUES[piece_type]


def game_phase(board: Sequence[Square]) -> int:
    """Return the middlegame weight on a 0..128 scale (128 = opening)."""
    units = 0
    for piece in board:
        if piece is not None:
            units += PHASE_WEIGHTS.get(piece % 6, 0)
    return max(0, min(128, (units * 128) // PHASE_TOTAL))


def evaluate_board(board: Sequence[Square]) -> int:
    """Return a material + PSQT evaluation in centipawns.

    Positive means advantage for White. Side-to-move adjustment is done by
    the search (negamax) so this function is side-agnostic.
    """
    mg_scaled = game_phase(board)
    eg_scaled = 128 - mg_scaled

    score = 0
    for idx, piece in enumerate(board):
        if piece is None:
            continue
        color, ptype = divmod(piece, 6)
        # Black reads White's tables through the rank mirror
        sq = idx if color == WHITE else mirror_index(idx)
        if ptype == KING:
            term = (mg_scaled * PSQT_K[sq] + eg_scaled * PSQT_K_EG[sq]) // 128
        else:
            term = PIECE_VALUES[ptype] + PSQT[ptype][sq]
        score += term if color == WHITE else -term
    return score


def evaluate(position: Position) -> int:
    """White-relative evaluation of ``position``."""
    return evaluate_board(position.board)


def evaluate_relative(position: Position) -> int:
    """Evaluation from the perspective of the side to move."""
    score = evaluate_board(position.board)
    return score if position.side == WHITE else -score
