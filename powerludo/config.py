"""
Rules constants for power-up Ludo.

Board geometry lives in ``board.py``; everything here is a tunable number
that the engine reads through ``RulesConfig``.
"""

from __future__ import annotations

from dataclasses import dataclass


MIN_PLAYERS = 2
MAX_PLAYERS = 6

TOKENS_PER_PLAYER = 4
INVENTORY_CAPACITY = 3

# Board power-ups
BOARD_POWERUP_CAP = 8
RESPAWN_BATCH = 2
RESPAWN_INTERVAL = 4  # turns
INITIAL_POWERUPS = 4

# Dice
DIE_FACES = 6
ALL_BASE_SIX_PROBABILITY = 0.25

# Seconds a caller should wait in SKIPPING before calling advance_turn()
SKIP_DELAY = 1.0

PLAYER_COLORS = ["#FF0000", "#00FF00", "#0000FF", "#FFFF00", "#00FFFF", "#FF00FF"]


@dataclass(frozen=True)
class RulesConfig:
    tokens_per_player: int = TOKENS_PER_PLAYER
    inventory_capacity: int = INVENTORY_CAPACITY
    board_powerup_cap: int = BOARD_POWERUP_CAP
    respawn_batch: int = RESPAWN_BATCH
    respawn_interval: int = RESPAWN_INTERVAL
    initial_powerups: int = INITIAL_POWERUPS
    all_base_six_probability: float = ALL_BASE_SIX_PROBABILITY
    skip_delay: float = SKIP_DELAY

    def roll_weights(self) -> list[float]:
        """Die face probabilities used while every token is still in BASE."""
        other = (1.0 - self.all_base_six_probability) / (DIE_FACES - 1)
        return [other] * (DIE_FACES - 1) + [self.all_base_six_probability]


DEFAULT_CONFIG = RulesConfig()


# Power-up effect strengths
SHIELD_TURNS = 2
FREEZE_TURNS = 2
IMMUNITY_TURNS = 3
PHASE_TURNS = 1
SAFE_PASSAGE_TURNS = 3
WARP_STEPS = 10
BACKWARDS_DASH_STEPS = 5
MAGNET_PULL = 3
DEFAULT_DICE_LOCK = 1
