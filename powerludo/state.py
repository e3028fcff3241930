"""
Game state representation for power-up Ludo.

The engine owns a single ``GameState`` and mutates it in place; callers get a
deep copy through ``GameState.copy()`` when they need a snapshot.  Players
and tokens refer to each other by id only.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Optional

from powerludo.board import BASE_POSITION, FINISH_INDEX, track_length


class TokenStatus(str, Enum):
    BASE = "BASE"
    ACTIVE = "ACTIVE"
    HOME_STRETCH = "HOME_STRETCH"
    FINISHED = "FINISHED"


class Phase(str, Enum):
    SETUP = "SETUP"
    ROLLING = "ROLLING"
    MOVING = "MOVING"
    SKIPPING = "SKIPPING"
    POWERUP_SELECTION = "POWERUP_SELECTION"
    POWERUP_DISCARD = "POWERUP_DISCARD"


class PowerUpType(str, Enum):
    # Movement
    TELEPORT = "TELEPORT"
    DOUBLE_MOVE = "DOUBLE_MOVE"
    EXACT_MOVE = "EXACT_MOVE"
    WARP = "WARP"
    BACKWARDS_DASH = "BACKWARDS_DASH"
    HOME_STRETCH_TELEPORT = "HOME_STRETCH_TELEPORT"
    # Offensive
    SEND_BACK = "SEND_BACK"
    FREEZE = "FREEZE"
    STEAL_POWERUP = "STEAL_POWERUP"
    MAGNET = "MAGNET"
    # Defensive
    SHIELD = "SHIELD"
    IMMUNITY = "IMMUNITY"
    PHASE = "PHASE"
    SAFE_PASSAGE = "SAFE_PASSAGE"
    # Utility
    REVERSE = "REVERSE"
    SWAP = "SWAP"
    EXTRA_TURN = "EXTRA_TURN"
    BONUS_ROLL = "BONUS_ROLL"
    DICE_LOCK = "DICE_LOCK"
    SWAP_DICE = "SWAP_DICE"


ALL_POWERUP_TYPES = tuple(PowerUpType)


@dataclass
class StatusEffects:
    """Temporary effects on a token.

    Timed effects are plain turn counters; an effect is active while its
    counter is above zero, so there is no separate flag to drift out of sync.
    """

    shield: int = 0
    frozen: int = 0
    phased: int = 0
    immune: int = 0
    safe_passage: int = 0
    # One-shot modifiers consumed by the token's next move
    reversed: bool = False
    double_move: bool = False
    exact_move: Optional[int] = None

    COUNTERS: ClassVar[tuple[str, ...]] = ("shield", "frozen", "phased", "immune", "safe_passage")

    @property
    def is_invulnerable(self) -> bool:
        return self.shield > 0

    @property
    def is_frozen(self) -> bool:
        return self.frozen > 0

    @property
    def is_phased(self) -> bool:
        return self.phased > 0

    @property
    def is_immune(self) -> bool:
        return self.immune > 0

    @property
    def has_safe_passage(self) -> bool:
        return self.safe_passage > 0

    @property
    def blocks_capture(self) -> bool:
        return self.is_invulnerable or self.is_immune

    @property
    def untargetable(self) -> bool:
        """Opposing power-ups cannot pick this token."""
        return self.is_immune or self.is_phased

    def tick(self) -> None:
        for name in self.COUNTERS:
            value = getattr(self, name)
            if value > 0:
                setattr(self, name, value - 1)

    def clear(self) -> None:
        for name in self.COUNTERS:
            setattr(self, name, 0)
        self.reversed = False
        self.double_move = False
        self.exact_move = None


@dataclass
class Token:
    token_id: str
    player_id: str
    status: TokenStatus = TokenStatus.BASE
    # BASE: sentinel, ACTIVE: track square, HOME_STRETCH: lane 0..4, FINISHED: 5
    position: int = BASE_POSITION
    effects: StatusEffects = field(default_factory=StatusEffects)

    @property
    def track_position(self) -> Optional[int]:
        return self.position if self.status == TokenStatus.ACTIVE else None

    @property
    def lane_position(self) -> Optional[int]:
        if self.status in (TokenStatus.HOME_STRETCH, TokenStatus.FINISHED):
            return self.position
        return None

    def send_to_base(self) -> None:
        self.status = TokenStatus.BASE
        self.position = BASE_POSITION
        self.effects.clear()

    def place_on_track(self, position: int) -> None:
        self.status = TokenStatus.ACTIVE
        self.position = position

    def enter_lane(self, lane_index: int) -> None:
        if lane_index >= FINISH_INDEX:
            self.finish()
        else:
            self.status = TokenStatus.HOME_STRETCH
            self.position = lane_index

    def finish(self) -> None:
        self.status = TokenStatus.FINISHED
        self.position = FINISH_INDEX


@dataclass
class PowerUp:
    power_up_id: str
    type: PowerUpType


@dataclass
class Player:
    player_id: str
    name: str
    color: str
    seat: int
    power_ups: list[PowerUp] = field(default_factory=list)


@dataclass
class PendingCollection:
    """A board power-up the player could not pick up because the inventory was full."""
    position: int
    player_id: str
    # Whether the interrupted move ends the turn once the request is resolved
    end_turn: bool = False


@dataclass
class PendingSelection:
    """An activation waiting for the caller to supply its target."""
    power_up_type: PowerUpType
    power_up_index: int
    player_id: str
    resume_phase: Phase = Phase.ROLLING


@dataclass
class GameState:
    players: list[Player] = field(default_factory=list)
    tokens: dict[str, Token] = field(default_factory=dict)
    current_player_index: int = 0
    dice_roll: Optional[int] = None
    phase: Phase = Phase.SETUP
    player_count: int = 4
    power_ups_on_board: dict[int, PowerUp] = field(default_factory=dict)
    power_up_used_this_turn: bool = False
    turn_count: int = 0
    pending_collection: Optional[PendingCollection] = None
    pending_selection: Optional[PendingSelection] = None
    # Utility power-up bookkeeping
    extra_turns: set[str] = field(default_factory=set)
    dice_locks: dict[str, int] = field(default_factory=dict)
    last_rolls: dict[str, int] = field(default_factory=dict)

    @property
    def track_length(self) -> int:
        return track_length(self.player_count)

    @property
    def current_player(self) -> Optional[Player]:
        if 0 <= self.current_player_index < len(self.players):
            return self.players[self.current_player_index]
        return None

    @property
    def has_pending_request(self) -> bool:
        return self.pending_collection is not None or self.pending_selection is not None

    def player(self, player_id: str) -> Optional[Player]:
        for p in self.players:
            if p.player_id == player_id:
                return p
        return None

    def tokens_of(self, player_id: str) -> list[Token]:
        return [t for t in self.tokens.values() if t.player_id == player_id]

    def tokens_at(self, position: int) -> list[Token]:
        """ACTIVE tokens standing on a shared-track square."""
        return [
            t for t in self.tokens.values()
            if t.status == TokenStatus.ACTIVE and t.position == position
        ]

    def copy(self) -> "GameState":
        return copy.deepcopy(self)
