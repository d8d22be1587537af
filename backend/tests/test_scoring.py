import random

import pytest

from ringgame.services.games.errors import InvalidConfig
from ringgame.services.games.points import POINT_TABLE, points_for_length, point_table_rows
from ringgame.services.games.scoring import compute_runs, compute_score, compute_scoring_groups


def board_with(filled, size=20, value=7):
    slots = [None] * size
    for i in filled:
        slots[i] = value
    return slots


def test_point_table_is_exact_and_superlinear():
    assert [POINT_TABLE[n] for n in range(1, 21)] == [
        0, 1, 3, 5, 7, 9, 11, 15, 20, 25, 30, 35, 40, 50, 60, 70, 85, 100, 150, 300,
    ]
    for n in range(2, 21):
        assert points_for_length(n) > points_for_length(n - 1)


def test_points_outside_table_rejected():
    with pytest.raises(InvalidConfig):
        points_for_length(0)
    with pytest.raises(InvalidConfig):
        points_for_length(21)


def test_point_table_rows_for_display():
    rows = point_table_rows()
    assert rows[0] == {'length': 1, 'points': 0}
    assert rows[-1] == {'length': 20, 'points': 300}


def test_empty_board_scores_zero():
    slots = [None] * 20
    assert compute_runs(slots) == []
    assert compute_score(slots) == 0
    assert compute_scoring_groups(slots) == {}


def test_full_board_is_one_run_regardless_of_order():
    order = list(range(20))
    random.Random(3).shuffle(order)
    slots = [None] * 20
    for n, i in enumerate(order):
        slots[i] = n + 1
    assert compute_runs(slots) == [(0, 20)]
    assert compute_score(slots) == 300
    assert set(compute_scoring_groups(slots).values()) == {0}


def test_two_separate_runs():
    slots = board_with([2, 3, 4, 8, 9, 10, 11])
    assert compute_runs(slots) == [(2, 3), (8, 4)]
    assert compute_score(slots) == 3 + 5


def test_run_straddling_the_seam_is_one_run():
    slots = board_with([18, 19, 0, 1])
    assert compute_runs(slots) == [(18, 4)]
    assert compute_score(slots) == 5
    groups = compute_scoring_groups(slots)
    assert groups == {18: 0, 19: 0, 0: 0, 1: 0}


def test_single_tiles_score_nothing_and_are_not_grouped():
    slots = board_with([0, 5, 10, 15])
    assert compute_score(slots) == 0
    assert compute_scoring_groups(slots) == {}


def test_only_last_slot_filled():
    slots = board_with([19])
    assert compute_runs(slots) == [(19, 1)]
    assert compute_score(slots) == 0


def test_nineteen_filled_wraps_into_single_run():
    slots = board_with([i for i in range(20) if i != 7])
    assert compute_runs(slots) == [(8, 19)]
    assert compute_score(slots) == 150


def test_group_ids_follow_run_start_order():
    slots = board_with([19, 0, 3, 4, 10, 12, 13, 14])
    groups = compute_scoring_groups(slots)
    assert groups[3] == groups[4] == 0
    assert groups[12] == groups[13] == groups[14] == 1
    assert groups[19] == groups[0] == 2
    assert 10 not in groups


def test_score_is_pure_function_of_slots():
    slots = board_with([1, 2, 3, 6, 7])
    assert compute_score(slots) == compute_score(list(slots)) == 3 + 1
