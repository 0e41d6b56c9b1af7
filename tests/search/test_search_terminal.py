from __future__ import annotations

from mailbox_chess.engine.game import Game
from mailbox_chess.engine.move import parse_uci
from mailbox_chess.search.service import MATE_SCORE, SearchService


def test_stalemate_root_returns_draw_and_no_move(service: SearchService) -> None:
    # Black to move is stalemated (not in check, no legal moves)
    game = Game.from_fen("7k/5Q2/6K1/8/8/8/8/8 b - - 0 1")

    res = service.search(game, depth=2)
    assert game.stalemate() is True
    assert res.best_move is None
    assert res.score == 0
    assert res.score_cp == 0
    assert res.mate_in is None


def test_checkmate_root_reports_mate(service: SearchService) -> None:
    game = Game.from_fen("7k/6Q1/6K1/8/8/8/8/8 b - - 0 1")

    res = service.search(game, depth=2)
    assert game.checkmate() is True
    assert res.best_move is None
    assert res.score == -MATE_SCORE
    # Mate indicated via mate_in (non-positive means side to move is mated)
    assert res.mate_in is not None and res.mate_in <= 0
    assert res.score_cp is None


def test_repetition_root_returns_draw(service: SearchService) -> None:
    game = Game.new()
    for uci in ["g1f3", "g8f6", "f3g1", "f6g8"] * 2:
        game.apply_move(parse_uci(uci))
    assert game.is_draw()
    res = service.search(game, depth=2)
    assert res.best_move is None
    assert res.score == 0


def test_fifty_move_root_returns_draw(service: SearchService) -> None:
    game = Game.from_fen("4k3/8/8/8/8/8/8/R3K3 b - - 100 80")
    res = service.search(game, depth=2)
    assert res.best_move is None
    assert res.score_cp == 0


def test_declared_outcome_root_returns_no_move(service: SearchService) -> None:
    game = Game.new()
    game.agree_draw()
    res = service.search(game, depth=2)
    assert res.best_move is None
    assert res.score == 0
