from __future__ import annotations

from mailbox_chess.engine.board import str_to_square
from mailbox_chess.engine.fen import position_from_fen
from mailbox_chess.eval import B_VAL, N_VAL, PSQT_B, PSQT_N, evaluate


def test_bishops_versus_bishop_and_knight_is_material_plus_squares() -> None:
    # Kings mirror each other, so the difference is the f1 piece alone
    sc_bb = evaluate(position_from_fen("4k3/8/8/8/8/8/8/2B1KB2 w - - 0 1"))
    sc_bn = evaluate(position_from_fen("4k3/8/8/8/8/8/8/2B1KN2 w - - 0 1"))
    f1 = str_to_square("f1")
    assert sc_bb - sc_bn == (B_VAL + PSQT_B[f1]) - (N_VAL + PSQT_N[f1])


def test_second_bishop_adds_no_pair_bonus() -> None:
    one = evaluate(position_from_fen("4k3/8/8/8/8/8/8/2B1K3 w - - 0 1"))
    two = evaluate(position_from_fen("4k3/8/8/8/8/8/8/2B1KB2 w - - 0 1"))
    assert two - one == B_VAL + PSQT_B[str_to_square("f1")]


def test_piece_difference_does_not_depend_on_phase() -> None:
    f1 = str_to_square("f1")
    d_mg = evaluate(position_from_fen("r2qk2r/8/8/8/8/8/8/R1BQKB1R w - - 0 1")) - evaluate(
        position_from_fen("r2qk2r/8/8/8/8/8/8/R1BQKN1R w - - 0 1")
    )
    d_eg = evaluate(position_from_fen("4k3/8/8/8/8/8/8/2B1KB2 w - - 0 1")) - evaluate(
        position_from_fen("4k3/8/8/8/8/8/8/2B1KN2 w - - 0 1")
    )
    assert d_mg == d_eg == (B_VAL + PSQT_B[f1]) - (N_VAL + PSQT_N[f1])


def test_symmetric_bishops_cancel() -> None:
    assert evaluate(position_from_fen("2b1kb2/8/8/8/8/8/8/2B1KB2 w - - 0 1")) == 0
