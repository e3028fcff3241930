"""Outcome of an engine command."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from powerludo.state import PowerUp


class ErrorKind(str, Enum):
    WRONG_PHASE = "WRONG_PHASE"
    NOT_YOUR_TURN = "NOT_YOUR_TURN"
    NOT_OWNER = "NOT_OWNER"
    NO_SUCH_TOKEN = "NO_SUCH_TOKEN"
    NO_SUCH_PLAYER = "NO_SUCH_PLAYER"
    NO_SUCH_POWER_UP = "NO_SUCH_POWER_UP"
    NO_DICE_ROLL = "NO_DICE_ROLL"
    ILLEGAL_MOVE = "ILLEGAL_MOVE"
    TOKEN_FROZEN = "TOKEN_FROZEN"
    POWER_UP_ALREADY_USED = "POWER_UP_ALREADY_USED"
    INVALID_TARGET = "INVALID_TARGET"
    INVALID_VALUE = "INVALID_VALUE"
    INVENTORY_FULL = "INVENTORY_FULL"
    NOTHING_PENDING = "NOTHING_PENDING"


@dataclass
class CommandResult:
    """What a command did.

    ``error`` is None on success.  A failed command leaves the game state
    untouched, except ``collect_power_up`` on a full inventory, which records
    the pending discard request alongside its INVENTORY_FULL error.
    """

    error: Optional[ErrorKind] = None
    detail: str = ""
    dice_roll: Optional[int] = None
    bonus_turn: bool = False
    captured: list[str] = field(default_factory=list)
    collected: Optional[PowerUp] = None
    spawned: list[int] = field(default_factory=list)
    discard_required: bool = False
    needs_target: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def fail(cls, error: ErrorKind, detail: str = "") -> "CommandResult":
        return cls(error=error, detail=detail)
