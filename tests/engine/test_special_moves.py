from __future__ import annotations

from typing import List

import pytest

from mailbox_chess.engine.board import BQ, BR, WB, WP, WQ, WR, str_to_square
from mailbox_chess.engine.fen import format_fen, position_from_fen
from mailbox_chess.engine.game import Game
from mailbox_chess.engine.move import MoveKind, parse_uci
from mailbox_chess.engine.position import Position


def _legal_uci(pos: Position) -> List[str]:
    return [m.to_uci() for m in pos.legal_moves]


# --- Castling ---
def test_both_castles_legal_when_path_is_safe() -> None:
    pos = position_from_fen("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1")
    assert {"e1g1", "e1c1"} <= set(_legal_uci(pos))


def test_cannot_castle_through_attacked_square() -> None:
    # Black rook on f8 covers f1
    pos = position_from_fen("r3kr2/8/8/8/8/8/8/R3K2R w KQq - 0 1")
    legal = _legal_uci(pos)
    assert "e1g1" not in legal
    assert "e1c1" in legal


def test_long_castle_allows_attacked_b_file_square() -> None:
    pos = position_from_fen("1r2k3/8/8/8/8/8/8/R3K3 w Q - 0 1")
    assert "e1c1" in _legal_uci(pos)


def test_long_castle_requires_empty_b_file_square() -> None:
    pos = position_from_fen("4k3/8/8/8/8/8/8/RN2K3 w Q - 0 1")
    assert "e1c1" not in _legal_uci(pos)


def test_cannot_castle_out_of_check() -> None:
    pos = position_from_fen("4k3/4r3/8/8/8/8/8/R3K2R w KQ - 0 1")
    assert not [m for m in pos.legal_moves if m.kind is MoveKind.CASTLE]


def test_castling_relocates_rook_and_clears_rights() -> None:
    pos = position_from_fen("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1")
    child = pos.apply(parse_uci("e1g1"))
    assert child.board[str_to_square("g1")] == 5
    assert child.board[str_to_square("f1")] == WR
    assert child.board[str_to_square("h1")] is None
    assert not child.flags.white_castle_short
    assert not child.flags.white_castle_long
    assert child.flags.black_castle_short and child.flags.black_castle_long


def test_rook_capture_clears_both_sides_rights() -> None:
    pos = position_from_fen("r3k2r/8/8/8/8/8/8/R3K2R w KQkq - 0 1")
    child = pos.apply(parse_uci("a1a8"))
    assert format_fen(child).split()[2] == "Kk"


def test_black_castles_long() -> None:
    pos = position_from_fen("r3k2r/8/8/8/8/8/8/R3K2R b KQkq - 0 1")
    child = pos.apply(parse_uci("e8c8"))
    assert child.board[str_to_square("d8")] == BR
    assert child.board[str_to_square("a8")] is None
    assert format_fen(child).split()[2] == "KQ"


# --- En passant ---
def test_double_push_records_capturable_pawn() -> None:
    game = Game.new()
    game.apply_move(parse_uci("e2e4"))
    assert game.position.flags.en_passant == str_to_square("e4")
    assert game.to_fen() == "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq e3 0 1"


def test_en_passant_capture_removes_pushed_pawn() -> None:
    pos = position_from_fen("4k3/8/8/3pP3/8/8/8/4K3 w - d6 0 2")
    move = pos.find_move(str_to_square("e5"), str_to_square("d6"))
    assert move.kind is MoveKind.EN_PASSANT
    assert move.is_capture
    child = pos.make_move(move)
    assert child.board[str_to_square("d6")] == WP
    assert child.board[str_to_square("d5")] is None
    assert child.board[str_to_square("e5")] is None
    assert child.flags.en_passant is None


def test_en_passant_rejected_when_it_exposes_king() -> None:
    # Removing both pawns from the fifth rank opens the rook on the king
    pos = position_from_fen("8/8/8/KPp4r/8/8/8/4k3 w - c6 0 1")
    assert "b5c6" not in _legal_uci(pos)
    assert "b5b6" in _legal_uci(pos)


def test_en_passant_right_expires_after_one_ply() -> None:
    game = Game.from_fen("4k3/3p4/8/4P3/8/8/8/4K3 b - - 0 1")
    game.apply_move(parse_uci("d7d5"))
    assert "e5d6" in [m.to_uci() for m in game.legal_moves()]
    game.apply_move(parse_uci("e1e2"))
    game.apply_move(parse_uci("e8e7"))
    assert "e5d6" not in [m.to_uci() for m in game.legal_moves()]


# --- Promotions ---
def test_promotion_pushes_and_captures() -> None:
    pos = position_from_fen("1r6/P7/8/8/8/8/8/k1K5 w - - 0 1")
    promos = sorted(m.to_uci() for m in pos.legal_moves if m.kind is MoveKind.PROMOTION)
    assert promos == [
        "a7a8b",
        "a7a8n",
        "a7a8q",
        "a7a8r",
        "a7b8b",
        "a7b8n",
        "a7b8q",
        "a7b8r",
    ]


@pytest.mark.parametrize("suffix,piece", [("q", WQ), ("r", WR), ("b", WB), ("n", 1)])
def test_promotion_places_chosen_piece(suffix: str, piece: int) -> None:
    pos = position_from_fen("1r6/P7/8/8/8/8/8/k1K5 w - - 0 1")
    child = pos.apply(parse_uci("a7b8" + suffix))
    assert child.board[str_to_square("b8")] == piece
    assert child.board[str_to_square("a7")] is None


def test_black_promotion() -> None:
    pos = position_from_fen("k7/8/8/8/8/8/p7/2K5 b - - 0 1")
    child = pos.apply(parse_uci("a2a1q"))
    assert child.board[str_to_square("a1")] == BQ


def test_promotion_without_piece_is_illegal() -> None:
    game = Game.from_fen("1r6/P7/8/8/8/8/8/k1K5 w - - 0 1")
    with pytest.raises(ValueError):
        game.apply_move(parse_uci("a7a8"))
