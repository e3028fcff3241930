"""
Movement arithmetic: what a die value permits and where a token ends up.

Nothing here mutates state; the engine applies the results.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from powerludo.board import FINISH_INDEX, distance_forward, turning_index, wrap
from powerludo.state import GameState, StatusEffects, Token, TokenStatus


START_ROLL = 6
BONUS_ROLL_VALUE = 6


def can_move(token: Token, value: int) -> bool:
    if token.effects.is_frozen:
        return False
    if token.status == TokenStatus.BASE:
        return value == START_ROLL
    if token.status == TokenStatus.ACTIVE:
        return True
    if token.status == TokenStatus.HOME_STRETCH:
        # Queued exact/double modifiers apply inside the lane too
        return token.position + effective_roll(token.effects, value) <= FINISH_INDEX
    return False


def movable_tokens(state: GameState, player_id: str, value: int) -> list[Token]:
    return [t for t in state.tokens_of(player_id) if can_move(t, value)]


def has_legal_move(state: GameState, player_id: str, value: int) -> bool:
    return any(can_move(t, value) for t in state.tokens_of(player_id))


def effective_roll(effects: StatusEffects, value: int) -> int:
    """Die value after the token's queued one-shot modifiers."""
    roll = value
    if effects.exact_move is not None:
        roll = effects.exact_move
    if effects.double_move:
        roll *= 2
    return roll


def lane_steps(old_position: int, roll: int, turning: int, player_count: int) -> Optional[int]:
    """Steps a forward move carries past the turning index into the lane.

    Returns None when the token stays on the shared track, including when it
    lands exactly on the turning index.  From the square just before the
    turning index this is distance 1, so any roll of 2 or more enters.
    """
    distance = distance_forward(old_position, turning, player_count)
    if distance == 0:
        return roll
    if 0 < distance < roll:
        return roll - distance
    return None


@dataclass
class TrackMove:
    """Where an ACTIVE token goes for a given roll."""
    position: int  # track square, meaningful when lane_index is None
    lane_index: Optional[int] = None

    @property
    def enters_lane(self) -> bool:
        return self.lane_index is not None

    @property
    def finishes(self) -> bool:
        return self.lane_index is not None and self.lane_index >= FINISH_INDEX


def resolve_track_move(
    old_position: int,
    roll: int,
    direction: int,
    seat: int,
    player_count: int,
) -> TrackMove:
    if direction > 0:
        steps = lane_steps(old_position, roll, turning_index(seat, player_count), player_count)
        if steps is not None:
            return TrackMove(position=old_position, lane_index=max(0, steps - 1))
    return TrackMove(position=wrap(old_position + roll * direction, player_count))

