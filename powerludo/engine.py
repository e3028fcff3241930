"""
The power-up Ludo rules engine.

``GameEngine`` owns the one mutable ``GameState`` and exposes the commands a
front end drives the game with.  Every command runs to completion and
returns a ``CommandResult``; illegal commands are refused without touching
the state.  The engine assumes a single caller at a time.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

import numpy as np

from powerludo import powerups
from powerludo.board import (
    BASE_POSITION,
    FINISH_INDEX,
    STANDARD_PLAYER_COUNT,
    is_powerup_zone,
    is_safe_zone,
    sample_free_spawn_positions,
    start_index,
    wrap,
)
from powerludo.config import (
    DEFAULT_CONFIG,
    DIE_FACES,
    MAX_PLAYERS,
    MIN_PLAYERS,
    PLAYER_COLORS,
    RulesConfig,
)
from powerludo.movement import (
    BONUS_ROLL_VALUE,
    can_move,
    effective_roll,
    has_legal_move,
    movable_tokens,
    resolve_track_move,
)
from powerludo.results import CommandResult, ErrorKind
from powerludo.state import (
    ALL_POWERUP_TYPES,
    GameState,
    PendingCollection,
    PendingSelection,
    Phase,
    Player,
    PowerUp,
    Token,
    TokenStatus,
)


logger = logging.getLogger("powerludo.engine")

# Seat order around the standard board: Red, Green, Yellow, Blue
CLOCKWISE_ORDER = (0, 1, 3, 2)


def _reject(error: ErrorKind, detail: str = "") -> CommandResult:
    logger.debug("rejected: %s %s", error.value, detail)
    return CommandResult.fail(error, detail)


class GameEngine:
    def __init__(self, player_count: int = STANDARD_PLAYER_COUNT, seed=None, config: Optional[RulesConfig] = None):
        self.config = config or DEFAULT_CONFIG
        self.np_random = np.random.default_rng(seed)
        self.state = GameState()
        self._power_up_serial = 0
        self.init(player_count)

    # ------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------

    def init(self, player_count: int = STANDARD_PLAYER_COUNT, seed=None) -> CommandResult:
        """Start a fresh game, discarding whatever was in progress."""
        if not MIN_PLAYERS <= player_count <= MAX_PLAYERS:
            raise ValueError(f"player_count must be {MIN_PLAYERS}-{MAX_PLAYERS}, got {player_count}")
        if seed is not None:
            self.np_random = np.random.default_rng(seed)
        self._power_up_serial = 0

        players = [
            Player(player_id=f"p{i}", name=f"Player {i + 1}", color=PLAYER_COLORS[i], seat=i)
            for i in range(player_count)
        ]
        tokens = {}
        for p in players:
            for i in range(self.config.tokens_per_player):
                token_id = f"{p.player_id}_t{i}"
                tokens[token_id] = Token(token_id=token_id, player_id=p.player_id)

        self.state = GameState(
            players=players,
            tokens=tokens,
            player_count=player_count,
            phase=Phase.ROLLING,
        )
        spawned = []
        for position in sample_free_spawn_positions([], self.config.initial_powerups, player_count, self.np_random):
            self._place_power_up(position)
            spawned.append(position)

        logger.info("new game: %d players, power-ups at %s", player_count, sorted(spawned))
        return CommandResult(spawned=spawned)

    # ------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------

    @property
    def current_player(self) -> Optional[Player]:
        return self.state.current_player

    def has_legal_move(self, value: Optional[int] = None) -> bool:
        player = self.state.current_player
        value = self.state.dice_roll if value is None else value
        if player is None or value is None:
            return False
        return has_legal_move(self.state, player.player_id, value)

    def legal_token_ids(self) -> list[str]:
        """Tokens the current player may move with the pending die value."""
        player = self.state.current_player
        if self.state.phase != Phase.MOVING or self.state.dice_roll is None or player is None:
            return []
        return [t.token_id for t in movable_tokens(self.state, player.player_id, self.state.dice_roll)]

    def has_finished(self, player_id: str) -> bool:
        tokens = self.state.tokens_of(player_id)
        return bool(tokens) and all(t.status == TokenStatus.FINISHED for t in tokens)

    def finished_players(self) -> list[str]:
        return [p.player_id for p in self.state.players if self.has_finished(p.player_id)]

    def snapshot(self) -> GameState:
        return self.state.copy()

    # ------------------------------------------------------------
    # Dice
    # ------------------------------------------------------------

    def roll(self) -> CommandResult:
        if self.state.phase != Phase.ROLLING:
            return _reject(ErrorKind.WRONG_PHASE, f"cannot roll during {self.state.phase.value}")
        player = self.state.current_player
        locked = self.state.dice_locks.pop(player.player_id, None)
        if locked is not None:
            value = locked
        elif all(t.status == TokenStatus.BASE for t in self.state.tokens_of(player.player_id)):
            # Biased towards 6 so nobody sits in BASE forever
            value = int(self.np_random.choice(DIE_FACES, p=self.config.roll_weights())) + 1
        else:
            value = int(self.np_random.integers(1, DIE_FACES + 1))
        return self._apply_roll(value)

    def roll_with_value(self, value: int) -> CommandResult:
        if not 1 <= value <= DIE_FACES:
            return _reject(ErrorKind.INVALID_VALUE, f"die value must be 1-{DIE_FACES}")
        if self.state.phase != Phase.ROLLING:
            return _reject(ErrorKind.WRONG_PHASE, f"cannot roll during {self.state.phase.value}")
        return self._apply_roll(value)

    def _apply_roll(self, value: int) -> CommandResult:
        state = self.state
        player = state.current_player
        state.dice_roll = value
        state.last_rolls[player.player_id] = value
        if has_legal_move(state, player.player_id, value):
            state.phase = Phase.MOVING
        else:
            # The caller waits config.skip_delay, then calls advance_turn()
            state.phase = Phase.SKIPPING
        logger.debug("%s rolled %d -> %s", player.player_id, value, state.phase.value)
        return CommandResult(dice_roll=value)

    # ------------------------------------------------------------
    # Movement
    # ------------------------------------------------------------

    def move_token(self, token_id: str) -> CommandResult:
        state = self.state
        if state.phase != Phase.MOVING:
            return _reject(ErrorKind.WRONG_PHASE, f"cannot move during {state.phase.value}")
        if state.dice_roll is None:
            return _reject(ErrorKind.NO_DICE_ROLL)
        token = state.tokens.get(token_id)
        if token is None:
            return _reject(ErrorKind.NO_SUCH_TOKEN, token_id)
        player = state.current_player
        if token.player_id != player.player_id:
            return _reject(ErrorKind.NOT_OWNER, f"{token_id} does not belong to {player.player_id}")
        if token.effects.is_frozen:
            return _reject(ErrorKind.TOKEN_FROZEN, token_id)
        dice = state.dice_roll
        if not can_move(token, dice):
            return _reject(ErrorKind.ILLEGAL_MOVE, f"{token_id} cannot move {dice}")

        result = CommandResult(dice_roll=dice)
        if token.status == TokenStatus.BASE:
            token.place_on_track(start_index(player.seat, state.player_count))
            result.bonus_turn = True
        elif token.status == TokenStatus.ACTIVE:
            self._move_on_track(token, player, dice, result)
        else:
            token.enter_lane(token.position + self._consume_modifiers(token, dice))
            result.bonus_turn = dice == BONUS_ROLL_VALUE and token.status != TokenStatus.FINISHED

        self._tick_effects(player.player_id)
        logger.debug(
            "%s moved to %s %d (bonus=%s, captured=%s)",
            token_id, token.status.value, token.position, result.bonus_turn, result.captured,
        )

        pending = state.pending_collection
        if pending is not None:
            # Turn resolution waits for the discard prompt
            pending.end_turn = not result.bonus_turn
            state.dice_roll = None
            state.phase = Phase.POWERUP_DISCARD
            result.discard_required = True
        elif result.bonus_turn:
            state.dice_roll = None
            state.phase = Phase.ROLLING
            state.power_up_used_this_turn = False
        else:
            self.advance_turn()
        return result

    def _consume_modifiers(self, token: Token, dice: int) -> int:
        roll = effective_roll(token.effects, dice)
        token.effects.double_move = False
        token.effects.exact_move = None
        return roll

    def _move_on_track(self, token: Token, player: Player, dice: int, result: CommandResult) -> None:
        state = self.state
        roll = self._consume_modifiers(token, dice)
        direction = -1 if token.effects.reversed else 1
        token.effects.reversed = False

        move = resolve_track_move(token.position, roll, direction, player.seat, state.player_count)
        if move.enters_lane:
            token.enter_lane(move.lane_index)
            result.bonus_turn = dice == BONUS_ROLL_VALUE and not move.finishes
            return

        token.position = move.position
        captured, blocked = self._resolve_capture(token)
        result.captured = captured
        if blocked:
            result.bonus_turn = False
        else:
            result.bonus_turn = bool(captured) or dice == BONUS_ROLL_VALUE

        if is_powerup_zone(token.position, state.player_count) and token.position in state.power_ups_on_board:
            collect = self.collect_power_up(token.position, player.player_id)
            result.collected = collect.collected

    def _resolve_capture(self, mover: Token) -> tuple[list[str], bool]:
        """Send unprotected opponents on the mover's square back to BASE.

        Returns the captured token ids and whether a shielded or immune
        opponent stood there, which forfeits the mover's bonus turn.
        """
        position = mover.position
        if mover.effects.is_phased or is_safe_zone(position, self.state.player_count):
            return [], False
        captured = []
        blocked = False
        for other in self.state.tokens_at(position):
            if other.player_id == mover.player_id or other.effects.has_safe_passage:
                continue
            if other.effects.blocks_capture:
                blocked = True
                continue
            other.send_to_base()
            captured.append(other.token_id)
        return captured, blocked

    def _tick_effects(self, player_id: str) -> None:
        for token in self.state.tokens_of(player_id):
            token.effects.tick()

    # ------------------------------------------------------------
    # Turn order
    # ------------------------------------------------------------

    def _next_player_index(self) -> int:
        current = self.state.current_player_index
        if self.state.player_count == STANDARD_PLAYER_COUNT:
            return CLOCKWISE_ORDER[(CLOCKWISE_ORDER.index(current) + 1) % len(CLOCKWISE_ORDER)]
        return (current + 1) % self.state.player_count

    def advance_turn(self) -> CommandResult:
        state = self.state
        if state.has_pending_request:
            return _reject(ErrorKind.WRONG_PHASE, "a power-up prompt is still open")
        player = state.current_player
        if state.phase == Phase.SKIPPING:
            # A skipped turn still counts down the player's effects
            self._tick_effects(player.player_id)

        if player.player_id in state.extra_turns:
            state.extra_turns.discard(player.player_id)
            result = CommandResult(bonus_turn=True)
        else:
            state.current_player_index = self._next_player_index()
            result = CommandResult()

        state.dice_roll = None
        state.phase = Phase.ROLLING
        state.power_up_used_this_turn = False
        state.turn_count += 1
        if state.turn_count % self.config.respawn_interval == 0:
            result.spawned = self.respawn_power_ups().spawned
        logger.debug("turn %d: %s to roll", state.turn_count, state.current_player.player_id)
        return result

    # ------------------------------------------------------------
    # Board power-ups and inventory
    # ------------------------------------------------------------

    def _place_power_up(self, position: int) -> PowerUp:
        self._power_up_serial += 1
        kind = ALL_POWERUP_TYPES[int(self.np_random.integers(len(ALL_POWERUP_TYPES)))]
        power_up = PowerUp(power_up_id=f"pu{self._power_up_serial}", type=kind)
        self.state.power_ups_on_board[position] = power_up
        return power_up

    def spawn_power_up_on_board(self, position: int) -> CommandResult:
        if not is_powerup_zone(position, self.state.player_count):
            return _reject(ErrorKind.INVALID_TARGET, f"{position} is not a power-up square")
        if position in self.state.power_ups_on_board:
            return _reject(ErrorKind.INVALID_TARGET, f"{position} already holds a power-up")
        self._place_power_up(position)
        return CommandResult(spawned=[position])

    def respawn_power_ups(self) -> CommandResult:
        board = self.state.power_ups_on_board
        room = self.config.board_powerup_cap - len(board)
        if room <= 0:
            return CommandResult()
        positions = sample_free_spawn_positions(
            board.keys(), min(self.config.respawn_batch, room), self.state.player_count, self.np_random
        )
        for position in positions:
            self._place_power_up(position)
        if positions:
            logger.debug("respawned power-ups at %s", positions)
        return CommandResult(spawned=positions)

    def collect_power_up(self, position: int, player_id: str) -> CommandResult:
        state = self.state
        player = state.player(player_id)
        if player is None:
            return _reject(ErrorKind.NO_SUCH_PLAYER, player_id)
        power_up = state.power_ups_on_board.get(position)
        if power_up is None:
            return _reject(ErrorKind.NO_SUCH_POWER_UP, f"nothing at {position}")
        if len(player.power_ups) >= self.config.inventory_capacity:
            if state.has_pending_request:
                return _reject(ErrorKind.WRONG_PHASE, "a power-up prompt is already open")
            state.pending_collection = PendingCollection(position=position, player_id=player_id)
            state.phase = Phase.POWERUP_DISCARD
            logger.debug("%s must discard before collecting at %d", player_id, position)
            return CommandResult(error=ErrorKind.INVENTORY_FULL, discard_required=True)
        player.power_ups.append(power_up)
        del state.power_ups_on_board[position]
        logger.debug("%s collected %s at %d", player_id, power_up.type.value, position)
        return CommandResult(collected=power_up)

    def discard_power_up(self, player_id: str, index: int) -> CommandResult:
        state = self.state
        player = state.player(player_id)
        if player is None:
            return _reject(ErrorKind.NO_SUCH_PLAYER, player_id)
        pending = state.pending_collection
        if state.pending_selection is not None or (pending is not None and pending.player_id != player_id):
            return _reject(ErrorKind.WRONG_PHASE, "another power-up prompt is open")
        if not 0 <= index < len(player.power_ups):
            return _reject(ErrorKind.NO_SUCH_POWER_UP, f"no power-up at slot {index}")

        player.power_ups.pop(index)
        if pending is None:
            return CommandResult()

        state.pending_collection = None
        result = self.collect_power_up(pending.position, player_id)
        self._resume_after_collection(pending)
        return result

    def decline_power_up_collection(self) -> CommandResult:
        """Close the discard prompt, leaving the power-up on the board."""
        pending = self.state.pending_collection
        if pending is None:
            return _reject(ErrorKind.NOTHING_PENDING)
        self.state.pending_collection = None
        self._resume_after_collection(pending)
        return CommandResult()

    def _resume_after_collection(self, pending: PendingCollection) -> None:
        self.state.dice_roll = None
        self.state.phase = Phase.ROLLING
        if pending.end_turn:
            self.advance_turn()
        else:
            self.state.power_up_used_this_turn = False

    # ------------------------------------------------------------
    # Power-up activation
    # ------------------------------------------------------------

    def activate_power_up(
        self,
        player_id: str,
        power_up_index: int,
        target_token_id: Optional[str] = None,
        target_position: Optional[int] = None,
        target_player_id: Optional[str] = None,
        target_dice_value: Optional[int] = None,
    ) -> CommandResult:
        state = self.state
        player = state.player(player_id)
        if player is None:
            return _reject(ErrorKind.NO_SUCH_PLAYER, player_id)

        selection = state.pending_selection
        if selection is not None:
            if selection.player_id != player_id:
                return _reject(ErrorKind.NOT_YOUR_TURN, "another player is choosing a target")
            resume_phase = selection.resume_phase
        elif state.phase in (Phase.ROLLING, Phase.MOVING):
            resume_phase = state.phase
        else:
            return _reject(ErrorKind.WRONG_PHASE, f"cannot activate during {state.phase.value}")

        if state.current_player is not player:
            return _reject(ErrorKind.NOT_YOUR_TURN, player_id)
        if state.power_up_used_this_turn:
            return _reject(ErrorKind.POWER_UP_ALREADY_USED)
        if not 0 <= power_up_index < len(player.power_ups):
            return _reject(ErrorKind.NO_SUCH_POWER_UP, f"no power-up at slot {power_up_index}")

        power_up = player.power_ups[power_up_index]
        activation = powerups.Activation(
            player_id=player_id,
            power_up_index=power_up_index,
            target_token_id=target_token_id,
            target_position=target_position,
            target_player_id=target_player_id,
            target_dice_value=target_dice_value,
        )
        if powerups.needs_target(power_up.type, activation):
            state.pending_selection = PendingSelection(
                power_up_type=power_up.type,
                power_up_index=power_up_index,
                player_id=player_id,
                resume_phase=resume_phase,
            )
            state.phase = Phase.POWERUP_SELECTION
            return CommandResult(needs_target=True)

        result, next_phase = powerups.apply(state, player, power_up.type, activation, self.np_random, resume_phase)
        if not result.ok:
            return result

        player.power_ups.pop(power_up_index)
        state.power_up_used_this_turn = True
        state.pending_selection = None
        state.phase = next_phase or resume_phase
        return result

    def cancel_power_up_selection(self) -> CommandResult:
        selection = self.state.pending_selection
        if selection is None:
            return _reject(ErrorKind.NOTHING_PENDING)
        self.state.pending_selection = None
        self.state.phase = selection.resume_phase
        return CommandResult()

    # ------------------------------------------------------------
    # Board editing
    # ------------------------------------------------------------

    def set_token_position(
        self,
        token_id: str,
        position: int,
        status: Union[TokenStatus, str],
        home_lane_index: Optional[int] = None,
    ) -> CommandResult:
        """Force-place a token for layout and debugging; no rules are applied."""
        token = self.state.tokens.get(token_id)
        if token is None:
            return _reject(ErrorKind.NO_SUCH_TOKEN, token_id)
        try:
            status = TokenStatus(status)
        except ValueError:
            return _reject(ErrorKind.INVALID_VALUE, f"unknown token status {status!r}")
        token.status = status
        if status == TokenStatus.BASE:
            token.position = BASE_POSITION
        elif status == TokenStatus.ACTIVE:
            token.position = wrap(position, self.state.player_count)
        elif status == TokenStatus.HOME_STRETCH:
            token.position = home_lane_index if home_lane_index is not None else position
        else:
            token.position = FINISH_INDEX
        return CommandResult()
