from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from mailbox_chess.engine.move import Move


logger = logging.getLogger(__name__)

BUCKETS_PER_SLOT = 2
# Rough per-entry footprint of a Python TTEntry plus its list cell
ENTRIES_PER_MB = 16384
KEY_SHIFT = 32


class Bound(enum.Enum):
    EXACT = "exact"
    LOWER = "lower"
    UPPER = "upper"


@dataclass
class TTEntry:
    key: int  # narrowed fingerprint (upper 32 bits)
    bound: Bound
    depth: int
    score: int
    best_move: Optional[Move]
    age: int


def narrow_key(fingerprint: int) -> int:
    return fingerprint >> KEY_SHIFT


class TranspositionTable:
    """Fixed-capacity table of two-bucket slots keyed by position fingerprint.

    Storage is one flat list of ``num_slots * 2`` cells; slot ``i`` owns cells
    ``2i`` and ``2i + 1``. Only the upper half of the fingerprint is kept, so
    two positions can alias. A stale hit is tolerated: the search treats the
    entry as advisory data and never trusts its move without checking it is
    legal.
    """

    def __init__(self, size_mb: int = 16) -> None:
        if size_mb <= 0:
            raise ValueError("size_mb must be positive")
        self._init_slots(max(1, size_mb * ENTRIES_PER_MB // BUCKETS_PER_SLOT))

    @classmethod
    def with_slots(cls, num_slots: int) -> "TranspositionTable":
        if num_slots <= 0:
            raise ValueError("num_slots must be positive")
        table = cls.__new__(cls)
        table._init_slots(num_slots)
        return table

    def _init_slots(self, num_slots: int) -> None:
        self.num_slots = num_slots
        self._cells: List[Optional[TTEntry]] = [None] * (num_slots * BUCKETS_PER_SLOT)
        self._count = 0
        self.age = 0

    def _slot_base(self, fingerprint: int) -> int:
        return (fingerprint % self.num_slots) * BUCKETS_PER_SLOT

    def lookup(self, fingerprint: int) -> Optional[TTEntry]:
        base = self._slot_base(fingerprint)
        key = narrow_key(fingerprint)
        for i in range(base, base + BUCKETS_PER_SLOT):
            entry = self._cells[i]
            if entry is not None and entry.key == key:
                return entry
        return None

    def insert(
        self,
        fingerprint: int,
        depth: int,
        bound: Bound,
        score: int,
        best_move: Optional[Move] = None,
    ) -> TTEntry:
        """Store a search result, evicting the shallowest bucket in the slot.

        A bucket already holding the same narrowed key is reused so one slot
        never carries two entries for the same position.
        """
        base = self._slot_base(fingerprint)
        key = narrow_key(fingerprint)
        victim = base
        victim_depth: Optional[int] = None
        for i in range(base, base + BUCKETS_PER_SLOT):
            entry = self._cells[i]
            if entry is None:
                victim, victim_depth = i, None
                break
            if entry.key == key:
                victim, victim_depth = i, entry.depth
                break
            if victim_depth is None or entry.depth < victim_depth:
                victim, victim_depth = i, entry.depth
        if self._cells[victim] is None:
            self._count += 1
        new_entry = TTEntry(key, bound, depth, score, best_move, self.age)
        self._cells[victim] = new_entry
        return new_entry

    def clear(self) -> None:
        self._cells = [None] * (self.num_slots * BUCKETS_PER_SLOT)
        self._count = 0
        self.age = 0
        logger.debug("transposition table cleared (%d slots)", self.num_slots)

    def new_search(self) -> None:
        self.age += 1

    def size(self) -> int:
        """Total entry capacity."""
        return len(self._cells)

    def __len__(self) -> int:
        return self._count

    def hashfull(self) -> int:
        """Occupancy in permille."""
        return (self._count * 1000) // len(self._cells)


def apply_bound(
    entry: Optional[TTEntry], depth: int, alpha: int, beta: int
) -> Tuple[Optional[int], int, int]:
    """Turn a probed entry into a usable score or a tightened window.

    Args:
        entry: Result of ``TranspositionTable.lookup`` (may be None).
        depth: Remaining depth of the node being searched.
        alpha: Current lower bound of the window.
        beta: Current upper bound of the window.

    Returns:
        Tuple[Optional[int], int, int]: ``(score, alpha, beta)``. ``score`` is
            set only when the entry settles the node: an exact entry, or a
            bound that closes the window. Otherwise the window is tightened by
            the bound and the caller keeps searching. Entries searched to a
            smaller depth than ``depth`` are ignored.
    """
    if entry is None or entry.depth < depth:
        return None, alpha, beta
    if entry.bound is Bound.EXACT:
        return entry.score, alpha, beta
    if entry.bound is Bound.LOWER:
        alpha = max(alpha, entry.score)
    else:
        beta = min(beta, entry.score)
    if alpha >= beta:
        return entry.score, alpha, beta
    return None, alpha, beta
