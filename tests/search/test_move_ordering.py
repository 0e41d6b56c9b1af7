from __future__ import annotations

from mailbox_chess.engine.board import BISHOP, KNIGHT, PAWN, QUEEN, ROOK, WN, WP, WQ
from mailbox_chess.engine.fen import position_from_fen
from mailbox_chess.engine.move import Move, MoveKind, parse_uci
from mailbox_chess.engine.position import Position
from mailbox_chess.search.service import move_order_score, order_moves


def test_capture_scores_victim_minus_attacker() -> None:
    pxq = Move(WP, 36, 27, MoveKind.CAPTURE, captured=QUEEN)
    assert move_order_score(pxq) == 900 - 100
    nxb = Move(WN, 36, 19, MoveKind.CAPTURE, captured=BISHOP)
    assert move_order_score(nxb) == 330 - 320


def test_losing_capture_is_floored_at_one() -> None:
    qxp = Move(WQ, 36, 27, MoveKind.CAPTURE, captured=PAWN)
    assert move_order_score(qxp) == 1
    assert move_order_score(Move(WN, 57, 42)) == 0


def test_promotions_score_by_promoted_piece() -> None:
    assert move_order_score(Move(WP, 8, 0, MoveKind.PROMOTION, promotion=QUEEN)) == 900
    assert move_order_score(Move(WP, 8, 0, MoveKind.PROMOTION, promotion=KNIGHT)) == 320
    capture_promo = Move(WP, 8, 1, MoveKind.PROMOTION, captured=ROOK, promotion=QUEEN)
    assert move_order_score(capture_promo) == 400 + 900


def test_quiet_moves_keep_generation_order() -> None:
    pos = Position.start()
    assert order_moves(pos.legal_moves) == list(pos.legal_moves)


def test_captures_come_first_and_stable_among_equals() -> None:
    pos = position_from_fen("r3k2r/p1ppqpb1/bn2pnp1/3PN3/1p2P3/2N2Q1p/PPPBBPPP/R3K2R w KQkq - 0 1")
    ordered = order_moves(pos.legal_moves)
    scores = [move_order_score(m) for m in ordered]
    assert scores == sorted(scores, reverse=True)
    n_captures = sum(1 for m in pos.legal_moves if m.is_capture)
    assert all(m.is_capture for m in ordered[:n_captures])
    quiet = [m for m in ordered if move_order_score(m) == 0]
    generated_quiet = [m for m in pos.legal_moves if move_order_score(m) == 0]
    assert quiet == generated_quiet


def test_captures_only_mode_filters_quiet_moves() -> None:
    pos = position_from_fen("r3k2r/p1ppqpb1/bn2pnp1/3PN3/1p2P3/2N2Q1p/PPPBBPPP/R3K2R w KQkq - 0 1")
    captures = order_moves(pos.legal_moves, captures_only=True)
    assert len(captures) == 8
    assert all(m.is_capture for m in captures)
    assert order_moves(Position.start().legal_moves, captures_only=True) == []


def test_remembered_move_goes_first() -> None:
    pos = Position.start()
    ordered = order_moves(pos.legal_moves, tt_move=parse_uci("g1f3"))
    assert ordered[0].to_uci() == "g1f3"
    assert len(ordered) == 20
    # A move that is not legal here is ignored
    assert order_moves(pos.legal_moves, tt_move=parse_uci("e2e5")) == list(pos.legal_moves)
