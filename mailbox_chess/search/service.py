from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from mailbox_chess.engine.game import REPETITION_LIMIT, Game
from mailbox_chess.engine.move import Move
from mailbox_chess.engine.position import GameState, Position
from mailbox_chess.eval import evaluate_relative, piece_value
from mailbox_chess.search.transposition import (
    Bound,
    TranspositionTable,
    TTEntry,
    apply_bound,
)


logger = logging.getLogger(__name__)

# Score sentinels stay well inside 32-bit range so negation and ply
# adjustments can never wrap.
INT32_MAX = 2**31 - 1
SCORE_MARGIN = 1_000_000
SCORE_MAX = INT32_MAX - SCORE_MARGIN
SCORE_MIN = -SCORE_MAX

MATE_SCORE = 1_000_000  # mated at ply p scores -(MATE_SCORE - p)
MATE_WINDOW = 1_024

DEFAULT_QUIESCENCE_DEPTH = 6
DEFAULT_HASH_MB = 16


@dataclass
class SearchStats:
    """Counters accumulated over one search; passed down every call."""

    nodes: int = 0
    qnodes: int = 0
    cutoffs: int = 0
    tt_probes: int = 0
    tt_hits: int = 0
    tt_stores: int = 0
    seldepth: int = 0

    def visit(self, ply: int) -> None:
        if ply > self.seldepth:
            self.seldepth = ply


@dataclass
class SearchContext:
    """Per-search mutable state threaded through the recursion."""

    table: TranspositionTable
    repetitions: Dict[int, int]
    stats: SearchStats = field(default_factory=SearchStats)
    quiescence_depth: int = DEFAULT_QUIESCENCE_DEPTH

    def push(self, fingerprint: int) -> None:
        self.repetitions[fingerprint] = self.repetitions.get(fingerprint, 0) + 1

    def pop(self, fingerprint: int) -> None:
        count = self.repetitions[fingerprint] - 1
        if count:
            self.repetitions[fingerprint] = count
        else:
            del self.repetitions[fingerprint]


@dataclass
class IterationInfo:
    depth: int
    score: int
    mate_in: Optional[int]
    best_move: Optional[Move]
    pv: List[Move]
    nodes: int
    qnodes: int
    seldepth: int
    time_ms: int
    hashfull: int


@dataclass
class SearchResult:
    best_move: Optional[Move]
    score: int
    score_cp: Optional[int]
    mate_in: Optional[int]
    pv: List[Move]
    depth: int
    stats: SearchStats
    iters: List[IterationInfo]
    time_ms: int
    hashfull: int

    @property
    def nodes(self) -> int:
        return self.stats.nodes


def is_mate_score(score: int) -> bool:
    return abs(score) >= MATE_SCORE - MATE_WINDOW


def mate_in(score: int) -> Optional[int]:
    """Moves to mate for a mate score (negative when being mated)."""
    if not is_mate_score(score):
        return None
    if score > 0:
        return (MATE_SCORE - score + 1) // 2
    return -((MATE_SCORE + score + 1) // 2)


def score_to_tt(score: int, ply: int) -> int:
    # Store mates as distance from this node, not from the root
    if score >= MATE_SCORE - MATE_WINDOW:
        return score + ply
    if score <= -(MATE_SCORE - MATE_WINDOW):
        return score - ply
    return score


def score_from_tt(score: int, ply: int) -> int:
    if score >= MATE_SCORE - MATE_WINDOW:
        return score - ply
    if score <= -(MATE_SCORE - MATE_WINDOW):
        return score + ply
    return score


# --- Move ordering ---
def move_order_score(move: Move) -> int:
    """Static ordering key: captures, then promotions, then quiet moves.

    Captures score victim value minus attacker value, floored at 1 so every
    capture is tried before a quiet move.
    """
    score = 0
    if move.is_capture:
        score = max(piece_value(move.captured) - piece_value(move.piece % 6), 1)
    if move.promotion is not None:
        score += piece_value(move.promotion)
    return score


def order_moves(
    moves: Sequence[Move],
    captures_only: bool = False,
    tt_move: Optional[Move] = None,
) -> List[Move]:
    """Return ``moves`` sorted best-first; ties keep generation order.

    Args:
        moves: Legal moves in generation order.
        captures_only: Drop every non-capture (quiescence move list).
        tt_move: Move remembered for this node; placed first when present.
    """
    if captures_only:
        candidates = [m for m in moves if m.is_capture]
    else:
        candidates = list(moves)
    # sorted() is stable, so equal keys stay in generation order
    ordered = sorted(candidates, key=move_order_score, reverse=True)
    if tt_move is not None:
        for i, m in enumerate(ordered):
            if m == tt_move:
                if i:
                    ordered.insert(0, ordered.pop(i))
                break
    return ordered


# --- Search ---
def quiescence(
    position: Position, depth: int, alpha: int, beta: int, ply: int, ctx: SearchContext
) -> int:
    """Capture-only search past the horizon.

    The static evaluation is a floor for the side to move ("stand pat").
    """
    ctx.stats.qnodes += 1
    ctx.stats.visit(ply)
    stand_pat = evaluate_relative(position)
    if stand_pat >= beta or depth <= 0:
        return stand_pat
    best = stand_pat
    if best > alpha:
        alpha = best
    for m in order_moves(position.legal_moves, captures_only=True):
        score = -quiescence(position.make_move(m), depth - 1, -beta, -alpha, ply + 1, ctx)
        if score > best:
            best = score
            if score > alpha:
                alpha = score
        if alpha >= beta:
            ctx.stats.cutoffs += 1
            break
    return best


def negamax(
    position: Position, depth: int, alpha: int, beta: int, ply: int, ctx: SearchContext
) -> int:
    """Alpha-beta search of an interior node from the side to move's view.

    Terminal checks run in order: checkmate, stalemate or threefold
    repetition, then the depth horizon hands over to quiescence.
    """
    ctx.stats.nodes += 1
    ctx.stats.visit(ply)
    moves = position.legal_moves
    if not moves:
        if position.is_in_check():
            return -(MATE_SCORE - ply)
        return 0
    h = position.zobrist_hash
    if ctx.repetitions.get(h, 0) >= REPETITION_LIMIT:
        return 0
    if depth <= 0:
        return quiescence(position, ctx.quiescence_depth, alpha, beta, ply, ctx)

    alpha_orig = alpha
    ctx.stats.tt_probes += 1
    entry = ctx.table.lookup(h)
    tt_move: Optional[Move] = None
    if entry is not None:
        tt_move = entry.best_move
        score, alpha, beta = apply_bound(_at_ply(entry, ply), depth, alpha, beta)
        if score is not None:
            ctx.stats.tt_hits += 1
            return score

    best = SCORE_MIN
    best_move: Optional[Move] = None
    for m in order_moves(moves, tt_move=tt_move):
        child = position.make_move(m)
        ctx.push(child.zobrist_hash)
        try:
            score = -negamax(child, depth - 1, -beta, -alpha, ply + 1, ctx)
        finally:
            ctx.pop(child.zobrist_hash)
        if score > best:
            best, best_move = score, m
            if score > alpha:
                alpha = score
        if alpha >= beta:
            ctx.stats.cutoffs += 1
            break

    if best <= alpha_orig:
        bound = Bound.UPPER
    elif best >= beta:
        bound = Bound.LOWER
    else:
        bound = Bound.EXACT
    ctx.table.insert(h, depth, bound, score_to_tt(best, ply), best_move)
    ctx.stats.tt_stores += 1
    return best


def negamax_root(position: Position, depth: int, ctx: SearchContext) -> Tuple[int, Optional[Move]]:
    """Search every root move and return ``(best score, best move)``.

    A root without legal moves returns the mate or stalemate score and no
    move.
    """
    if depth < 1:
        raise ValueError("depth must be >= 1")
    ctx.stats.nodes += 1
    moves = position.legal_moves
    if not moves:
        return (-MATE_SCORE if position.is_in_check() else 0), None

    entry = ctx.table.lookup(position.zobrist_hash)
    tt_move = entry.best_move if entry is not None else None
    alpha, beta = SCORE_MIN, SCORE_MAX
    best_score = SCORE_MIN
    best_move: Optional[Move] = None
    for m in order_moves(moves, tt_move=tt_move):
        child = position.make_move(m)
        ctx.push(child.zobrist_hash)
        try:
            score = -negamax(child, depth - 1, -beta, -alpha, 1, ctx)
        finally:
            ctx.pop(child.zobrist_hash)
        if score > best_score:
            best_score, best_move = score, m
        if best_score > alpha:
            alpha = best_score

    ctx.table.insert(position.zobrist_hash, depth, Bound.EXACT, best_score, best_move)
    ctx.stats.tt_stores += 1
    return best_score, best_move


def _at_ply(entry: TTEntry, ply: int) -> TTEntry:
    if is_mate_score(entry.score):
        return replace(entry, score=score_from_tt(entry.score, ply))
    return entry


def principal_variation(
    position: Position, table: TranspositionTable, first: Optional[Move], max_len: int
) -> List[Move]:
    """Follow best moves through the table, starting with ``first``."""
    pv: List[Move] = []
    seen = {position.zobrist_hash}
    move = first
    while move is not None and len(pv) < max_len:
        if not position.is_legal(move):
            break
        move = position.resolve(move)
        pv.append(move)
        position = position.make_move(move)
        if position.zobrist_hash in seen:
            break
        seen.add(position.zobrist_hash)
        entry = table.lookup(position.zobrist_hash)
        move = entry.best_move if entry is not None else None
    return pv


OnIter = Callable[[IterationInfo], None]


class SearchService:
    """Fixed-depth and iterative-deepening search over a Game.

    The service owns one transposition table; only one search may run
    against it at a time.
    """

    def __init__(
        self,
        table: Optional[TranspositionTable] = None,
        quiescence_depth: int = DEFAULT_QUIESCENCE_DEPTH,
    ) -> None:
        self.table = table if table is not None else TranspositionTable(DEFAULT_HASH_MB)
        self.quiescence_depth = quiescence_depth

    def search(self, game: Game, depth: int = 1) -> SearchResult:
        """Search ``game`` to ``depth`` plies and return the best move.

        Terminal games return no move with score 0 (draws) or the mated
        score.
        """
        return self.iterative_search(game, depth)

    def iterative_search(
        self,
        game: Game,
        max_depth: int,
        should_stop: Optional[Callable[[], bool]] = None,
        on_iter: Optional[OnIter] = None,
    ) -> SearchResult:
        """Iterative deepening over depths 1..max_depth.

        Args:
            game: Game to search from; its repetition history seeds the
                in-search repetition counts.
            max_depth: Deepest iteration to run.
            should_stop: Polled between iterations only; a True result keeps
                the last completed iteration.
            on_iter: Called with an ``IterationInfo`` after each iteration.

        Returns:
            SearchResult: Best move and score of the deepest completed
                iteration.

        Raises:
            ValueError: If ``max_depth`` is below 1.
        """
        if max_depth < 1:
            raise ValueError("depth must be >= 1")
        start = time.perf_counter()
        position = game.position
        ctx = SearchContext(
            table=self.table,
            repetitions=dict(game.repetition),
            quiescence_depth=self.quiescence_depth,
        )

        state = game.state()
        if state.is_game_over:
            score = -MATE_SCORE if state is GameState.CHECKMATE else 0
            logger.info("search on terminal position: %s", state.value)
            return self._result(None, score, [], 0, ctx, [], start)

        self.table.new_search()
        iters: List[IterationInfo] = []
        best_score, best_move, pv, completed = 0, None, [], 0
        for d in range(1, max_depth + 1):
            if d > 1 and should_stop is not None and should_stop():
                logger.debug("search stopped before depth %d", d)
                break
            best_score, best_move = negamax_root(position, d, ctx)
            pv = principal_variation(position, self.table, best_move, d)
            completed = d
            info = IterationInfo(
                depth=d,
                score=best_score,
                mate_in=mate_in(best_score),
                best_move=best_move,
                pv=pv,
                nodes=ctx.stats.nodes,
                qnodes=ctx.stats.qnodes,
                seldepth=ctx.stats.seldepth,
                time_ms=int((time.perf_counter() - start) * 1000),
                hashfull=self.table.hashfull(),
            )
            iters.append(info)
            logger.debug(
                "depth %d score %d nodes %d pv %s",
                d,
                best_score,
                ctx.stats.nodes,
                " ".join(m.to_uci() for m in pv),
            )
            if on_iter is not None:
                try:
                    on_iter(info)
                except Exception:
                    logger.exception("on_iter callback failed at depth %d", d)

        result = self._result(best_move, best_score, pv, completed, ctx, iters, start)
        logger.info(
            "search finished: depth=%d best=%s score=%d nodes=%d qnodes=%d time_ms=%d",
            completed,
            best_move.to_uci() if best_move else "none",
            best_score,
            ctx.stats.nodes,
            ctx.stats.qnodes,
            result.time_ms,
        )
        return result

    def _result(
        self,
        best_move: Optional[Move],
        score: int,
        pv: List[Move],
        depth: int,
        ctx: SearchContext,
        iters: List[IterationInfo],
        start: float,
    ) -> SearchResult:
        mi = mate_in(score)
        return SearchResult(
            best_move=best_move,
            score=score,
            score_cp=score if mi is None else None,
            mate_in=mi,
            pv=pv,
            depth=depth,
            stats=ctx.stats,
            iters=iters,
            time_ms=int((time.perf_counter() - start) * 1000),
            hashfull=self.table.hashfull(),
        )

    def clear(self) -> None:
        self.table.clear()
