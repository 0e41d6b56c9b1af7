from __future__ import annotations

import argparse
import logging
import sys
import time
from typing import List, Optional

import uvicorn

from ..config import Settings
from ..engine.board import STARTPOS_FEN
from ..engine.errors import ChessError
from ..engine.fen import position_from_fen
from ..engine.game import Game
from ..engine.perft import divide, perft_breakdown
from ..search.service import IterationInfo, SearchService
from ..search.transposition import TranspositionTable


logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mailbox-chess", description="Mailbox chess engine")
    parser.add_argument("--log-level", default=None, help="override MAILBOX_CHESS_LOG_LEVEL")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="run the HTTP API")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=8000)

    perft = sub.add_parser("perft", help="count leaf nodes of the legal move tree")
    perft.add_argument("depth", type=int)
    perft.add_argument("--fen", default=STARTPOS_FEN)
    perft.add_argument("--divide", action="store_true", help="print per-move counts")

    search = sub.add_parser("search", help="search a position and print the best move")
    search.add_argument("--fen", default=STARTPOS_FEN)
    search.add_argument("--depth", type=int, default=None)
    search.add_argument("--hash-mb", type=int, default=None)
    return parser


def _cmd_perft(args: argparse.Namespace) -> int:
    position = position_from_fen(args.fen)
    if args.depth < 1:
        print(f"nodes {1 if args.depth == 0 else 0}")
        return 0
    start = time.perf_counter()
    if args.divide:
        for uci, count in sorted(divide(position, args.depth).items()):
            print(f"{uci}: {count}")
    stats = perft_breakdown(position, args.depth)
    elapsed = time.perf_counter() - start
    print(f"nodes {stats.nodes}")
    print(
        f"captures {stats.captures} ep {stats.en_passant} castles {stats.castles} "
        f"promotions {stats.promotions} checks {stats.checks} mates {stats.checkmates}"
    )
    print(f"time {elapsed:.2f}s nps {int(stats.nodes / elapsed) if elapsed > 0 else 0}")
    return 0


def _print_iteration(info: IterationInfo) -> None:
    score = f"mate {info.mate_in}" if info.mate_in is not None else f"cp {info.score}"
    pv = " ".join(m.to_uci() for m in info.pv)
    print(
        f"info depth {info.depth} seldepth {info.seldepth} score {score} "
        f"nodes {info.nodes} time {info.time_ms} hashfull {info.hashfull} pv {pv}"
    )


def _cmd_search(args: argparse.Namespace, settings: Settings) -> int:
    game = Game.from_fen(args.fen)
    depth = args.depth or settings.default_depth
    table = TranspositionTable(args.hash_mb or settings.hash_mb)
    service = SearchService(table, quiescence_depth=settings.quiescence_depth)
    result = service.iterative_search(game, depth, on_iter=_print_iteration)
    best = result.best_move.to_uci() if result.best_move else "(none)"
    print(f"bestmove {best}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    settings = Settings.from_env()
    if args.log_level:
        settings = Settings(
            log_level=args.log_level.upper(),
            hash_mb=settings.hash_mb,
            default_depth=settings.default_depth,
            max_depth=settings.max_depth,
            quiescence_depth=settings.quiescence_depth,
        )
    settings.configure_logging()

    if args.command == "serve":
        uvicorn.run(
            "mailbox_chess.protocol.http.app:create_app",
            factory=True,
            host=args.host,
            port=args.port,
            log_level=settings.log_level.lower(),
        )
        return 0
    try:
        if args.command == "perft":
            return _cmd_perft(args)
        return _cmd_search(args, settings)
    except ChessError as e:
        logger.error("%s", e)
        print(f"error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
