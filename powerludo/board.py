"""
Board geometry for power-up Ludo.

The shared track is split into one 13-square quadrant per player.  On the
standard four-player board the seats are laid out Red, Green, Blue, Yellow
with Blue and Yellow swapped around the track, so the start squares are
0, 13, 39 and 26.

Within a quadrant (relative to its start square):

    +0   start square (safe)
    +4   power-up square
    +8   star square (safe, power-up square)
    +11  turning index of the seat starting in the following quadrant
    +12  skipped index of that same seat

A seat's turning index is therefore its start square minus two, and its
skipped index is its start square minus one.

Everything here is a pure function of the player count and the seat index.
"""

from __future__ import annotations

from typing import Iterable

import numpy as np


QUADRANT_LEN = 13
STANDARD_PLAYER_COUNT = 4
STANDARD_TRACK_LEN = 52
STANDARD_START_INDEX = (0, 13, 39, 26)
STANDARD_STAR_SQUARES = (8, 21, 34, 47)

FINISH_INDEX = 5  # terminal lane index
BASE_POSITION = -1

STAR_OFFSET = 8
POWERUP_OFFSET = 4


def track_length(player_count: int) -> int:
    if player_count == STANDARD_PLAYER_COUNT:
        return STANDARD_TRACK_LEN
    return QUADRANT_LEN * player_count


def start_index(player_index: int, player_count: int) -> int:
    """Track square where a seat's tokens enter from BASE."""
    if player_count == STANDARD_PLAYER_COUNT:
        return STANDARD_START_INDEX[player_index]
    return player_index * QUADRANT_LEN


def turning_index(player_index: int, player_count: int) -> int:
    """Last shared-track square before a seat peels off into its lane."""
    return (start_index(player_index, player_count) - 2) % track_length(player_count)


def skipped_index(player_index: int, player_count: int) -> int:
    """Shared-track square a seat's tokens bypass when entering the lane."""
    return (start_index(player_index, player_count) - 1) % track_length(player_count)


def start_squares(player_count: int) -> tuple[int, ...]:
    return tuple(start_index(i, player_count) for i in range(player_count))


def star_squares(player_count: int) -> tuple[int, ...]:
    if player_count == STANDARD_PLAYER_COUNT:
        return STANDARD_STAR_SQUARES
    return tuple(q * QUADRANT_LEN + STAR_OFFSET for q in range(player_count))


def is_safe_zone(position: int, player_count: int) -> bool:
    return position in start_squares(player_count) or position in star_squares(player_count)


def spawn_positions(player_count: int) -> list[int]:
    """All power-up eligible squares: the stars plus one scattered square per quadrant."""
    scattered = [q * QUADRANT_LEN + POWERUP_OFFSET for q in range(track_length(player_count) // QUADRANT_LEN)]
    return sorted(set(star_squares(player_count)) | set(scattered))


def is_powerup_zone(position: int, player_count: int) -> bool:
    return position in spawn_positions(player_count)


def sample_free_spawn_positions(
    occupied: Iterable[int],
    count: int,
    player_count: int,
    rng: np.random.Generator,
) -> list[int]:
    """Pick up to ``count`` distinct eligible squares that are not in ``occupied``."""
    taken = set(occupied)
    free = [p for p in spawn_positions(player_count) if p not in taken]
    if count <= 0 or not free:
        return []
    picks = rng.choice(len(free), size=min(count, len(free)), replace=False)
    return [free[int(i)] for i in picks]


def wrap(position: int, player_count: int) -> int:
    return position % track_length(player_count)


def distance_forward(from_pos: int, to_pos: int, player_count: int) -> int:
    """Steps needed to walk clockwise from ``from_pos`` to ``to_pos``."""
    return (to_pos - from_pos) % track_length(player_count)
