from __future__ import annotations

import pytest

from mailbox_chess.engine.board import STARTPOS_FEN, WHITE, str_to_square
from mailbox_chess.engine.errors import ChessError, FenParseError, InvalidPositionError
from mailbox_chess.engine.fen import format_fen, parse_fen, position_from_fen
from mailbox_chess.engine.game import Game


ROUND_TRIP_FENS = [
    STARTPOS_FEN,
    "r3k2r/p1ppqpb1/bn2pnp1/3PN3/1p2P3/2N2Q1p/PPPBBPPP/R3K2R w KQkq - 0 1",
    "8/2p5/3p4/KP5r/1R3p1k/8/4P1P1/8 w - - 0 1",
    "r3k2r/Pppp1ppp/1b3nbN/nP6/BBP1P3/q4N2/Pp1P2PP/R2Q1RK1 w kq - 0 1",
    "rnbq1k1r/pp1Pbppp/2p5/8/2B5/8/PPP1NnPP/RNBQK2R w KQ - 1 8",
    "r4rk1/1pp1qppp/p1np1n2/2b1p1B1/2B1P1b1/P1NP1N2/1PP1QPPP/R4RK1 w - - 0 10",
    "rnbqkbnr/pppp1ppp/8/8/3pP3/8/PPP2PPP/RNBQKBNR b KQkq e3 0 3",
    "rnbqkbnr/ppp2ppp/8/3pP3/8/8/PPPP1PPP/RNBQKBNR w KQkq d6 0 3",
]


@pytest.mark.parametrize("fen", ROUND_TRIP_FENS)
def test_fen_round_trip(fen: str) -> None:
    assert Game.from_fen(fen).to_fen() == fen


def test_parse_startpos_fields() -> None:
    fields = parse_fen(STARTPOS_FEN)
    assert fields.side == WHITE
    assert fields.flags.white_castle_short and fields.flags.black_castle_long
    assert fields.flags.en_passant is None
    assert (fields.halfmove_clock, fields.fullmove_number) == (0, 1)


def test_en_passant_target_is_converted_to_pawn_index() -> None:
    fields = parse_fen("rnbqkbnr/ppp2ppp/8/3pP3/8/8/PPPP1PPP/RNBQKBNR w KQkq d6 0 3")
    assert fields.flags.en_passant == str_to_square("d5")
    fields = parse_fen("rnbqkbnr/pppp1ppp/8/8/3pP3/8/PPP2PPP/RNBQKBNR b KQkq e3 0 3")
    assert fields.flags.en_passant == str_to_square("e4")


def test_move_counters_are_optional() -> None:
    game = Game.from_fen("4k3/8/8/8/8/8/8/4K3 w - -")
    assert game.to_fen() == "4k3/8/8/8/8/8/8/4K3 w - - 0 1"


def test_castling_field_is_normalized() -> None:
    game = Game.from_fen("r3k2r/8/8/8/8/8/8/R3K2R w qkQK - 0 1")
    assert game.to_fen().split()[2] == "KQkq"


@pytest.mark.parametrize(
    "fen",
    [
        "",
        "8/8/8/8 w - - 0 1",
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP w KQkq - 0 1",
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNX w KQkq - 0 1",
        "rnbqkbnr/pppppppp/9/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1",
        "rnbqkbnr/ppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1",
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR x KQkq - 0 1",
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQxq - 0 1",
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KK - 0 1",
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkqq - 0 1",
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w -K - 0 1",
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq e9 0 1",
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq e3 0 1",
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - -1 1",
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 0",
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - x 1",
        "rnbqkbnr/pppppppp/8/8/8/8/PPPPPPPP/RNBQKBNR w KQkq - 0 1 extra",
    ],
)
def test_malformed_fen_rejected(fen: str) -> None:
    with pytest.raises(FenParseError):
        parse_fen(fen)


@pytest.mark.parametrize(
    "fen",
    [
        # No black king
        "8/8/8/8/8/8/8/4K3 w - - 0 1",
        # Two white kings
        "4k3/8/8/8/8/8/8/3KK3 w - - 0 1",
        # En passant target without a pushed pawn behind it
        "4k3/8/8/8/8/8/8/4K3 w - e6 0 1",
        # Side not to move is in check
        "4k3/8/8/8/8/8/8/r3K3 b - - 0 1",
    ],
)
def test_unplayable_positions_rejected(fen: str) -> None:
    with pytest.raises(InvalidPositionError):
        position_from_fen(fen)


def test_fen_errors_are_value_errors() -> None:
    with pytest.raises(ValueError):
        Game.from_fen("not a fen")
    assert issubclass(FenParseError, ChessError)


def test_format_fen_uses_supplied_counters() -> None:
    pos = position_from_fen(STARTPOS_FEN)
    assert format_fen(pos, 12, 40).endswith(" w KQkq - 12 40")
