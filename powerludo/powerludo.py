# noqa: D212, D415
"""
# Power-up Ludo

Power-up Ludo as a PettingZoo AEC environment.  The rules live in
``GameEngine``; this module rolls for the acting agent, exposes the legal
choices as an action mask and turns engine state into observations.
"""

from __future__ import annotations

import numpy as np
import gymnasium
from gymnasium import spaces
from gymnasium.utils import EzPickle

from pettingzoo import AECEnv
from pettingzoo.utils import wrappers

from powerludo.board import FINISH_INDEX, track_length
from powerludo.config import DIE_FACES, INVENTORY_CAPACITY, MAX_PLAYERS, MIN_PLAYERS, TOKENS_PER_PLAYER
from powerludo.engine import GameEngine
from powerludo.state import Phase, TokenStatus


def env(**kwargs):
    env = raw_env(**kwargs)
    env = wrappers.TerminateIllegalWrapper(env, illegal_reward=-1)
    env = wrappers.AssertOutOfBoundsWrapper(env)
    env = wrappers.OrderEnforcingWrapper(env)
    return env


# ------------------------------------------------------------
# Environment
# ------------------------------------------------------------

class raw_env(AECEnv, EzPickle):
    metadata = {
        "render_modes": [],
        "name": "powerludo_v0",
        "is_parallelizable": False,
    }

    PIECES = TOKENS_PER_PLAYER

    # Actions: 0-3 move token, 4 pass, 5-7 discard inventory slot, 8 decline pickup
    PASS = PIECES
    DISCARD = PASS + 1
    DECLINE = DISCARD + INVENTORY_CAPACITY
    NUM_ACTIONS = DECLINE + 1

    def __init__(self, num_players=4, render_mode=None):
        EzPickle.__init__(self, num_players, render_mode)
        super().__init__()

        assert MIN_PLAYERS <= num_players <= MAX_PLAYERS
        assert render_mode is None, "rendering is not supported"
        self.num_players = num_players
        self.render_mode = render_mode
        self.track_len = track_length(num_players)

        self.agents = [f"player_{i}" for i in range(num_players)]
        self.possible_agents = self.agents[:]

        self.obs_dim = 2 * self.track_len + num_players * (self.PIECES + 1) + 2
        self.action_spaces = {a: spaces.Discrete(self.NUM_ACTIONS) for a in self.agents}
        self.observation_spaces = {
            a: spaces.Dict(
                {
                    "observation": spaces.Box(0, 1, shape=(self.obs_dim,), dtype=np.float32),
                    "action_mask": spaces.Box(0, 1, shape=(self.NUM_ACTIONS,), dtype=np.int8),
                }
            )
            for a in self.agents
        }

        self.engine = GameEngine(num_players)
        self.reset()

    # ------------------------------------------------------------
    # Reset
    # ------------------------------------------------------------

    def reset(self, seed=None, options=None):
        self.engine.init(self.num_players, seed=seed)

        self.agents = self.possible_agents[:]
        self.rewards = {a: 0 for a in self.agents}
        self._cumulative_rewards = {a: 0 for a in self.agents}
        self.terminations = {a: False for a in self.agents}
        self.truncations = {a: False for a in self.agents}
        self.infos = {a: {} for a in self.agents}

        # Roll for the first agent so there is always an active dice value
        self._roll_if_needed()

    def _player_id(self, agent):
        return self.engine.state.players[self.agents.index(agent)].player_id

    def _token_ids(self, agent):
        return [t.token_id for t in self.engine.state.tokens_of(self._player_id(agent))]

    def _roll_if_needed(self):
        if self.engine.state.phase == Phase.ROLLING:
            self.engine.roll()
        self.agent_selection = self.agents[self.engine.state.current_player_index]

    # ------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------

    def observe(self, agent):
        state = self.engine.state
        obs = np.zeros(self.obs_dim, dtype=np.float32)

        for token in state.tokens.values():
            if token.status == TokenStatus.ACTIVE:
                obs[token.position] = 1.0
        for position in state.power_ups_on_board:
            obs[self.track_len + position] = 1.0

        offset = 2 * self.track_len
        for player in state.players:
            for token in state.tokens_of(player.player_id):
                if token.status == TokenStatus.BASE:
                    obs[offset] = 0.0
                elif token.status == TokenStatus.ACTIVE:
                    obs[offset] = 0.8 * (token.position + 1) / self.track_len
                elif token.status == TokenStatus.HOME_STRETCH:
                    obs[offset] = 0.8 + token.position / (5 * FINISH_INDEX)
                else:
                    obs[offset] = 1.0
                offset += 1
            obs[offset] = len(player.power_ups) / INVENTORY_CAPACITY
            offset += 1

        obs[offset] = (state.dice_roll or 0) / DIE_FACES
        obs[offset + 1] = 1.0 if agent == self.agent_selection else 0.0

        action_mask = np.zeros(self.NUM_ACTIONS, dtype=np.int8)
        if agent == self.agent_selection:
            for a in self._legal_actions(agent):
                action_mask[a] = 1

        return {"observation": obs, "action_mask": action_mask}

    def observation_space(self, agent):
        return self.observation_spaces[agent]

    def action_space(self, agent):
        return self.action_spaces[agent]

    # ------------------------------------------------------------
    # Legal actions
    # ------------------------------------------------------------

    def _legal_actions(self, agent):
        state = self.engine.state
        phase = state.phase
        if phase == Phase.SKIPPING:
            return [self.PASS]
        if phase == Phase.POWERUP_DISCARD:
            player = state.player(self._player_id(agent))
            return [self.DISCARD + i for i in range(len(player.power_ups))] + [self.DECLINE]
        if phase == Phase.MOVING:
            movable = set(self.engine.legal_token_ids())
            return [i for i, tid in enumerate(self._token_ids(agent)) if tid in movable]
        return []

    # ------------------------------------------------------------
    # Step
    # ------------------------------------------------------------

    def step(self, action):
        if (
            self.truncations[self.agent_selection]
            or self.terminations[self.agent_selection]
        ):
            return self._was_dead_step(action)

        agent = self.agent_selection
        self._cumulative_rewards[agent] = 0
        self.rewards = {a: 0 for a in self.agents}

        if action not in self._legal_actions(agent):
            # Illegal move -> let TerminateIllegalWrapper handle termination/penalty
            return

        player_id = self._player_id(agent)
        if action < self.PASS:
            self.engine.move_token(self._token_ids(agent)[action])
        elif action == self.PASS:
            self.engine.advance_turn()
        elif action < self.DECLINE:
            self.engine.discard_power_up(player_id, action - self.DISCARD)
        else:
            self.engine.decline_power_up_collection()

        # Win check
        if self.engine.has_finished(player_id):
            for a in self.agents:
                self.terminations[a] = True
                self.rewards[a] = 1 if a == agent else -1
            self._accumulate_rewards()
            return

        self._roll_if_needed()
        self._accumulate_rewards()

    def render(self):
        gymnasium.logger.warn("Rendering is not supported by this environment.")
