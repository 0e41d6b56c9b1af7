from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

from .move import MoveKind
from .position import Position


def perft(position: Position, depth: int) -> int:
    """Compute perft node count for `position` at `depth`.

    Definition:
    - depth == 0 returns 1 (the current node).
    - depth > 0 returns the sum over all legal child positions' perft(depth-1).

    The last ply is bulk-counted from the cached legal move list.
    """
    if depth < 0:
        raise ValueError("depth must be >= 0")
    if depth == 0:
        return 1
    moves = position.legal_moves
    if depth == 1:
        return len(moves)
    nodes = 0
    for m in moves:
        nodes += perft(position.make_move(m), depth - 1)
    return nodes


def divide(position: Position, depth: int) -> Dict[str, int]:
    """Return perft(depth - 1) per root move, keyed by UCI text."""
    if depth < 1:
        raise ValueError("depth must be >= 1")
    return {m.to_uci(): perft(position.make_move(m), depth - 1) for m in position.legal_moves}


@dataclass
class PerftBreakdown:
    nodes: int = 0
    captures: int = 0
    en_passant: int = 0
    castles: int = 0
    promotions: int = 0
    checks: int = 0
    checkmates: int = 0


def perft_breakdown(position: Position, depth: int) -> PerftBreakdown:
    """Perft with per-category counters for the leaf moves.

    Counters follow the conventional perft tables: a leaf move is counted as
    a capture when it removes a piece (en passant included), and as a check
    or checkmate by the state of the resulting position.
    """
    if depth < 1:
        raise ValueError("depth must be >= 1")
    out = PerftBreakdown()
    _breakdown(position, depth, out)
    return out


def _breakdown(position: Position, depth: int, out: PerftBreakdown) -> None:
    for m in position.legal_moves:
        child = position.make_move(m)
        if depth > 1:
            _breakdown(child, depth - 1, out)
            continue
        out.nodes += 1
        if m.is_capture:
            out.captures += 1
        if m.kind is MoveKind.EN_PASSANT:
            out.en_passant += 1
        if m.kind is MoveKind.CASTLE:
            out.castles += 1
        if m.promotion is not None:
            out.promotions += 1
        if child.is_in_check():
            out.checks += 1
            if not child.legal_moves:
                out.checkmates += 1
