import numpy as np
import pytest

from powerludo.board import (
    FINISH_INDEX,
    distance_forward,
    is_powerup_zone,
    is_safe_zone,
    sample_free_spawn_positions,
    skipped_index,
    spawn_positions,
    start_index,
    track_length,
    turning_index,
    wrap,
)


@pytest.mark.parametrize("players, length", [(2, 26), (3, 39), (4, 52), (5, 65), (6, 78)])
def test_track_length(players, length):
    assert track_length(players) == length


def test_standard_board_seats():
    assert [start_index(i, 4) for i in range(4)] == [0, 13, 39, 26]
    assert [turning_index(i, 4) for i in range(4)] == [50, 11, 37, 24]
    assert [skipped_index(i, 4) for i in range(4)] == [51, 12, 38, 25]


def test_turning_and_skipped_wrap_for_first_seat():
    """Seat 0 starts on square 0, so its lane entrance is at the end of the track."""
    for players in range(2, 7):
        length = track_length(players)
        assert turning_index(0, players) == length - 2
        assert skipped_index(0, players) == length - 1


def test_standard_safe_zones():
    safe = [p for p in range(52) if is_safe_zone(p, 4)]
    assert safe == [0, 8, 13, 21, 26, 34, 39, 47]


def test_non_standard_safe_zones_follow_quadrants():
    safe = [p for p in range(39) if is_safe_zone(p, 3)]
    assert safe == [0, 8, 13, 21, 26, 34]


def test_spawn_positions():
    assert spawn_positions(4) == [4, 8, 17, 21, 30, 34, 43, 47]
    assert spawn_positions(2) == [4, 8, 17, 21]
    assert is_powerup_zone(17, 4)
    assert not is_powerup_zone(18, 4)
    # Start squares never hold power-ups
    assert not any(is_powerup_zone(start_index(i, 4), 4) for i in range(4))


def test_sample_free_spawn_positions_skips_occupied():
    rng = np.random.default_rng(0)
    occupied = [4, 8, 17]
    picks = sample_free_spawn_positions(occupied, 3, 4, rng)
    assert len(picks) == 3
    assert len(set(picks)) == 3
    assert not set(picks) & set(occupied)
    assert all(is_powerup_zone(p, 4) for p in picks)


def test_sample_free_spawn_positions_is_clipped():
    rng = np.random.default_rng(0)
    picks = sample_free_spawn_positions([4, 8, 17, 21, 30, 34], 5, 4, rng)
    assert sorted(picks) == [43, 47]
    assert sample_free_spawn_positions(spawn_positions(4), 2, 4, rng) == []
    assert sample_free_spawn_positions([], 0, 4, rng) == []


def test_finish_index():
    assert FINISH_INDEX == 5


def test_wrap_and_distance_forward():
    assert wrap(55, 4) == 3
    assert wrap(-3, 4) == 49
    assert wrap(27, 2) == 1
    assert distance_forward(49, 50, 4) == 1
    assert distance_forward(50, 50, 4) == 0
    assert distance_forward(48, 11, 4) == 15
    assert distance_forward(20, 5, 3) == 24
