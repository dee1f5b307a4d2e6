"""
Tests for the streak-driven difficulty controller.
"""

import pytest

from ultimate.difficulty import MAX_LEVEL, DifficultyController
from ultimate.rules import Status

BW, RW, D = Status.BLUE_WINS, Status.RED_WINS, Status.DRAW


def record_all(ctl, *outcomes):
    for o in outcomes:
        ctl.record_outcome(o)
    return ctl


def test_two_blue_wins_raise_level_and_clear_streak():
    ctl = record_all(DifficultyController(), BW, BW)
    assert ctl.level == 1
    assert ctl.streak == []


def test_mixed_pair_is_kept_without_change():
    ctl = record_all(DifficultyController(), BW, RW)
    assert ctl.level == 0
    assert ctl.streak == [BW, RW]


def test_sliding_window_pairs_with_next_result():
    ctl = record_all(DifficultyController(level=2), BW, RW, RW)
    assert ctl.level == 1
    assert ctl.streak == []


def test_two_red_wins_lower_level():
    ctl = record_all(DifficultyController(level=5), RW, RW)
    assert ctl.level == 4


def test_level_never_drops_below_zero():
    ctl = record_all(DifficultyController(), RW, RW)
    assert ctl.level == 0
    assert ctl.streak == []


def test_level_capped_at_max():
    ctl = record_all(DifficultyController(level=MAX_LEVEL), BW, BW)
    assert ctl.level == MAX_LEVEL
    assert ctl.streak == []


def test_two_draws_change_nothing():
    ctl = record_all(DifficultyController(level=3), D, D)
    assert ctl.level == 3
    assert ctl.streak == [D, D]


def test_draw_breaks_a_would_be_streak():
    ctl = record_all(DifficultyController(), BW, D, BW)
    assert ctl.level == 0
    assert ctl.streak == [D, BW]


def test_single_result_waits_for_a_partner():
    ctl = DifficultyController()
    assert not ctl.record_outcome(BW)
    assert ctl.streak == [BW]


def test_record_reports_level_change():
    ctl = DifficultyController()
    ctl.record_outcome(BW)
    assert ctl.record_outcome(BW)


@pytest.mark.parametrize("outcome", [BW, RW, D])
def test_assisted_result_is_ignored(outcome):
    ctl = DifficultyController(level=4, streak=[outcome])
    assert not ctl.record_outcome(outcome, assisted=True)
    assert ctl.level == 4
    assert ctl.streak == [outcome]


def test_unfinished_status_is_rejected():
    with pytest.raises(ValueError):
        DifficultyController().record_outcome(Status.BLUE_TO_MOVE)


def test_restored_counters_are_clamped_and_trimmed():
    ctl = DifficultyController(level=99, streak=["bluewins", "redwins", "draw"])
    assert ctl.level == MAX_LEVEL
    assert ctl.streak_tags() == ["redwins", "draw"]
