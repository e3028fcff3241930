"""
Power-up activation.

Each power-up type declares which target it needs (``TARGETS``) and has one
effect function registered in ``_EFFECTS``.  Effect functions validate their
target first and only mutate the state once the activation is known to
succeed; the engine then consumes the power-up.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

import numpy as np

from powerludo import config
from powerludo.board import turning_index, wrap
from powerludo.movement import has_legal_move
from powerludo.results import CommandResult, ErrorKind
from powerludo.state import GameState, Phase, Player, PowerUpType, Token, TokenStatus


logger = logging.getLogger("powerludo.powerups")


class Target(Enum):
    NONE = "none"
    OWN_TOKEN = "own_token"
    OWN_ACTIVE_TOKEN = "own_active_token"
    OWN_TOKEN_AND_VALUE = "own_token_and_value"
    OWN_ACTIVE_TOKEN_AND_POSITION = "own_active_token_and_position"
    OPPONENT_TOKEN = "opponent_token"
    OPPONENT_PLAYER = "opponent_player"


TARGETS = {
    PowerUpType.SHIELD: Target.OWN_TOKEN,
    PowerUpType.REVERSE: Target.OWN_TOKEN,
    PowerUpType.SWAP: Target.OPPONENT_TOKEN,
    PowerUpType.TELEPORT: Target.OWN_ACTIVE_TOKEN_AND_POSITION,
    PowerUpType.DOUBLE_MOVE: Target.OWN_TOKEN,
    PowerUpType.EXACT_MOVE: Target.OWN_TOKEN_AND_VALUE,
    PowerUpType.WARP: Target.OWN_ACTIVE_TOKEN,
    PowerUpType.BACKWARDS_DASH: Target.OWN_ACTIVE_TOKEN,
    PowerUpType.HOME_STRETCH_TELEPORT: Target.OWN_ACTIVE_TOKEN,
    PowerUpType.SEND_BACK: Target.OPPONENT_TOKEN,
    PowerUpType.FREEZE: Target.OPPONENT_TOKEN,
    PowerUpType.STEAL_POWERUP: Target.OPPONENT_PLAYER,
    PowerUpType.MAGNET: Target.OPPONENT_TOKEN,
    PowerUpType.IMMUNITY: Target.OWN_TOKEN,
    PowerUpType.PHASE: Target.OWN_TOKEN,
    PowerUpType.SAFE_PASSAGE: Target.OWN_TOKEN,
    PowerUpType.EXTRA_TURN: Target.NONE,
    PowerUpType.BONUS_ROLL: Target.NONE,
    PowerUpType.DICE_LOCK: Target.OPPONENT_PLAYER,
    PowerUpType.SWAP_DICE: Target.OPPONENT_PLAYER,
}


@dataclass(frozen=True)
class Activation:
    """An activate-power-up request as received from the caller."""
    player_id: str
    power_up_index: int
    target_token_id: Optional[str] = None
    target_position: Optional[int] = None
    target_player_id: Optional[str] = None
    target_dice_value: Optional[int] = None

    def is_missing_target(self, target: Target) -> bool:
        if target in (Target.OWN_TOKEN, Target.OWN_ACTIVE_TOKEN, Target.OPPONENT_TOKEN):
            return self.target_token_id is None
        if target == Target.OWN_TOKEN_AND_VALUE:
            return self.target_token_id is None or self.target_dice_value is None
        if target == Target.OWN_ACTIVE_TOKEN_AND_POSITION:
            return self.target_token_id is None or self.target_position is None
        if target == Target.OPPONENT_PLAYER:
            return self.target_player_id is None
        return False


@dataclass
class _Context:
    state: GameState
    player: Player
    activation: Activation
    rng: np.random.Generator
    # Phase the game is in, ignoring any pending target selection
    phase: Phase
    next_phase: Optional[Phase] = None


def needs_target(power_up_type: PowerUpType, activation: Activation) -> bool:
    return activation.is_missing_target(TARGETS[power_up_type])


def apply(
    state: GameState,
    player: Player,
    power_up_type: PowerUpType,
    activation: Activation,
    rng: np.random.Generator,
    phase: Phase,
) -> tuple[CommandResult, Optional[Phase]]:
    """Run the effect of ``power_up_type``.

    Returns the result and, when the effect moves the turn along, the phase
    the game should continue in.
    """
    ctx = _Context(state=state, player=player, activation=activation, rng=rng, phase=phase)
    result = _EFFECTS[power_up_type](ctx)
    if result.ok:
        logger.debug("%s activated %s", player.player_id, power_up_type.value)
    else:
        logger.debug("%s could not activate %s: %s", player.player_id, power_up_type.value, result.error.value)
    return result, ctx.next_phase


# ------------------------------------------------------------
# Target resolution
# ------------------------------------------------------------

def _own_token(ctx: _Context, active: bool = False) -> tuple[Optional[Token], Optional[CommandResult]]:
    token = ctx.state.tokens.get(ctx.activation.target_token_id)
    if token is None:
        return None, CommandResult.fail(ErrorKind.NO_SUCH_TOKEN)
    if token.player_id != ctx.player.player_id:
        return None, CommandResult.fail(ErrorKind.NOT_OWNER, "target must be your own token")
    if token.status == TokenStatus.FINISHED:
        return None, CommandResult.fail(ErrorKind.INVALID_TARGET, "token already finished")
    if active and token.status != TokenStatus.ACTIVE:
        return None, CommandResult.fail(ErrorKind.INVALID_TARGET, "token is not on the track")
    return token, None


def _opponent_token(ctx: _Context, allowed: tuple[TokenStatus, ...]) -> tuple[Optional[Token], Optional[CommandResult]]:
    token = ctx.state.tokens.get(ctx.activation.target_token_id)
    if token is None:
        return None, CommandResult.fail(ErrorKind.NO_SUCH_TOKEN)
    if token.player_id == ctx.player.player_id:
        return None, CommandResult.fail(ErrorKind.INVALID_TARGET, "target must be an opponent's token")
    if token.status not in allowed:
        return None, CommandResult.fail(ErrorKind.INVALID_TARGET, f"token is {token.status.value}")
    if token.effects.untargetable:
        return None, CommandResult.fail(ErrorKind.INVALID_TARGET, "token cannot be targeted")
    return token, None


def _opponent(ctx: _Context) -> tuple[Optional[Player], Optional[CommandResult]]:
    target = ctx.state.player(ctx.activation.target_player_id)
    if target is None:
        return None, CommandResult.fail(ErrorKind.NO_SUCH_PLAYER)
    if target.player_id == ctx.player.player_id:
        return None, CommandResult.fail(ErrorKind.INVALID_TARGET, "target must be an opponent")
    return target, None


def _first_active(ctx: _Context) -> Optional[Token]:
    for token in ctx.state.tokens_of(ctx.player.player_id):
        if token.status == TokenStatus.ACTIVE:
            return token
    return None


def _needs_pending_roll(ctx: _Context) -> Optional[CommandResult]:
    if ctx.phase != Phase.MOVING or ctx.state.dice_roll is None:
        return CommandResult.fail(ErrorKind.WRONG_PHASE, "needs a rolled die that has not been used")
    return None


# ------------------------------------------------------------
# Effects
# ------------------------------------------------------------

_EFFECTS: dict[PowerUpType, Callable[[_Context], CommandResult]] = {}


def _effect(*types: PowerUpType):
    def register(fn):
        for t in types:
            _EFFECTS[t] = fn
        return fn
    return register


_TIMED = {
    PowerUpType.SHIELD: ("shield", config.SHIELD_TURNS),
    PowerUpType.IMMUNITY: ("immune", config.IMMUNITY_TURNS),
    PowerUpType.PHASE: ("phased", config.PHASE_TURNS),
    PowerUpType.SAFE_PASSAGE: ("safe_passage", config.SAFE_PASSAGE_TURNS),
}


def _timed_effect(power_up_type: PowerUpType):
    counter, turns = _TIMED[power_up_type]

    def fn(ctx: _Context) -> CommandResult:
        token, err = _own_token(ctx)
        if err is not None:
            return err
        setattr(token.effects, counter, turns)
        return CommandResult()

    return fn


for _type in _TIMED:
    _EFFECTS[_type] = _timed_effect(_type)


@_effect(PowerUpType.REVERSE)
def _reverse(ctx: _Context) -> CommandResult:
    token, err = _own_token(ctx)
    if err is not None:
        return err
    token.effects.reversed = True
    return CommandResult()


@_effect(PowerUpType.DOUBLE_MOVE)
def _double_move(ctx: _Context) -> CommandResult:
    token, err = _own_token(ctx)
    if err is not None:
        return err
    token.effects.double_move = True
    return CommandResult()


@_effect(PowerUpType.EXACT_MOVE)
def _exact_move(ctx: _Context) -> CommandResult:
    value = ctx.activation.target_dice_value
    if not 1 <= value <= config.DIE_FACES:
        return CommandResult.fail(ErrorKind.INVALID_VALUE, f"die value must be 1-{config.DIE_FACES}")
    token, err = _own_token(ctx)
    if err is not None:
        return err
    token.effects.exact_move = value
    return CommandResult()


@_effect(PowerUpType.SWAP)
def _swap(ctx: _Context) -> CommandResult:
    source = _first_active(ctx)
    if source is None:
        return CommandResult.fail(ErrorKind.INVALID_TARGET, "no token of yours on the track")
    target, err = _opponent_token(ctx, (TokenStatus.ACTIVE,))
    if err is not None:
        return err
    source.position, target.position = target.position, source.position
    return CommandResult()


@_effect(PowerUpType.TELEPORT)
def _teleport(ctx: _Context) -> CommandResult:
    position = ctx.activation.target_position
    if not 0 <= position < ctx.state.track_length:
        return CommandResult.fail(ErrorKind.INVALID_TARGET, f"position {position} is off the track")
    token, err = _own_token(ctx, active=True)
    if err is not None:
        return err
    token.position = position
    return CommandResult()


@_effect(PowerUpType.WARP)
def _warp(ctx: _Context) -> CommandResult:
    token, err = _own_token(ctx, active=True)
    if err is not None:
        return err
    token.position = wrap(token.position + config.WARP_STEPS, ctx.state.player_count)
    return CommandResult()


@_effect(PowerUpType.BACKWARDS_DASH)
def _backwards_dash(ctx: _Context) -> CommandResult:
    token, err = _own_token(ctx, active=True)
    if err is not None:
        return err
    token.position = wrap(token.position - config.BACKWARDS_DASH_STEPS, ctx.state.player_count)
    return CommandResult()


@_effect(PowerUpType.HOME_STRETCH_TELEPORT)
def _home_stretch_teleport(ctx: _Context) -> CommandResult:
    token, err = _own_token(ctx, active=True)
    if err is not None:
        return err
    token.position = turning_index(ctx.player.seat, ctx.state.player_count)
    return CommandResult()


@_effect(PowerUpType.SEND_BACK)
def _send_back(ctx: _Context) -> CommandResult:
    token, err = _opponent_token(ctx, (TokenStatus.ACTIVE,))
    if err is not None:
        return err
    token.send_to_base()
    return CommandResult(captured=[token.token_id])


@_effect(PowerUpType.FREEZE)
def _freeze(ctx: _Context) -> CommandResult:
    token, err = _opponent_token(
        ctx, (TokenStatus.ACTIVE, TokenStatus.HOME_STRETCH, TokenStatus.FINISHED)
    )
    if err is not None:
        return err
    token.effects.frozen = config.FREEZE_TURNS
    return CommandResult()


@_effect(PowerUpType.MAGNET)
def _magnet(ctx: _Context) -> CommandResult:
    if _first_active(ctx) is None:
        return CommandResult.fail(ErrorKind.INVALID_TARGET, "no token of yours on the track")
    token, err = _opponent_token(ctx, (TokenStatus.ACTIVE,))
    if err is not None:
        return err
    token.position = wrap(token.position - config.MAGNET_PULL, ctx.state.player_count)
    return CommandResult()


@_effect(PowerUpType.STEAL_POWERUP)
def _steal(ctx: _Context) -> CommandResult:
    victim, err = _opponent(ctx)
    if err is not None:
        return err
    if not victim.power_ups:
        return CommandResult.fail(ErrorKind.INVALID_TARGET, f"{victim.name} holds no power-ups")
    stolen = victim.power_ups.pop(int(ctx.rng.integers(len(victim.power_ups))))
    # The activated power-up is removed afterwards, so capacity is not exceeded
    ctx.player.power_ups.append(stolen)
    return CommandResult(collected=stolen)


@_effect(PowerUpType.EXTRA_TURN)
def _extra_turn(ctx: _Context) -> CommandResult:
    ctx.state.extra_turns.add(ctx.player.player_id)
    return CommandResult(bonus_turn=True)


@_effect(PowerUpType.BONUS_ROLL)
def _bonus_roll(ctx: _Context) -> CommandResult:
    err = _needs_pending_roll(ctx)
    if err is not None:
        return err
    ctx.state.dice_roll = None
    ctx.next_phase = Phase.ROLLING
    return CommandResult(bonus_turn=True)


@_effect(PowerUpType.DICE_LOCK)
def _dice_lock(ctx: _Context) -> CommandResult:
    value = ctx.activation.target_dice_value
    if value is None:
        value = config.DEFAULT_DICE_LOCK
    if not 1 <= value <= config.DIE_FACES:
        return CommandResult.fail(ErrorKind.INVALID_VALUE, f"die value must be 1-{config.DIE_FACES}")
    victim, err = _opponent(ctx)
    if err is not None:
        return err
    ctx.state.dice_locks[victim.player_id] = value
    return CommandResult()


@_effect(PowerUpType.SWAP_DICE)
def _swap_dice(ctx: _Context) -> CommandResult:
    err = _needs_pending_roll(ctx)
    if err is not None:
        return err
    victim, err = _opponent(ctx)
    if err is not None:
        return err
    theirs = ctx.state.last_rolls.get(victim.player_id)
    if theirs is None:
        return CommandResult.fail(ErrorKind.INVALID_TARGET, f"{victim.name} has not rolled yet")
    ours = ctx.state.dice_roll
    ctx.state.dice_roll = theirs
    ctx.state.last_rolls[victim.player_id] = ours
    ctx.state.last_rolls[ctx.player.player_id] = theirs
    if has_legal_move(ctx.state, ctx.player.player_id, theirs):
        ctx.next_phase = Phase.MOVING
    else:
        ctx.next_phase = Phase.SKIPPING
    return CommandResult(dice_roll=theirs)
