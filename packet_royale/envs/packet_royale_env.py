from typing import List, Optional, Tuple

import gymnasium as gym
import numpy as np
from gymnasium import spaces

from .. import eligibility
from ..bot_manager import BotGameManager
from ..bots import BotConfig
from ..constants import (
    HUMAN_PLAYER_ID,
    MAX_NODE_CONNECTIONS,
    NODE_COUNT,
    NODE_THRESHOLD_MAX,
    TICK_INTERVAL_MS,
)
from ..models import STATE_CAPTURING
from .rew_shaper import RewardShaping

NODE_FEATURES = 8
GLOBAL_FEATURES = 4
THROUGHPUT_SCALE = 100.0


class PacketRoyaleEnv(gym.Env):
    """An external agent plays the human side against the built-in bot."""

    metadata = {"render_modes": []}

    def __init__(self, node_count=NODE_COUNT, ticks_per_step=30, max_steps=500, bot_config: Optional[BotConfig] = None, render_mode=None):
        assert render_mode is None or render_mode in self.metadata["render_modes"]
        self.render_mode = render_mode

        self.node_count = int(node_count)  # observation slots; the lattice may use fewer
        self.ticks_per_step = int(ticks_per_step)
        self.MAX_STEPS = int(max_steps)
        self.bot_config = bot_config
        self.agent_id = HUMAN_PLAYER_ID

        # 0 = wait, 1 + i*6 + k = stream from i-th node to its k-th neighbour, last = final attack
        self.n_actions = 2 + self.node_count * MAX_NODE_CONNECTIONS
        self.attack_action = self.n_actions - 1

        self.observation_space = spaces.Dict({
            "nodes": spaces.Box(low=0, high=1, shape=(self.node_count, NODE_FEATURES), dtype=np.float32),
            "global": spaces.Box(low=0, high=np.inf, shape=(GLOBAL_FEATURES,), dtype=np.float32),
        })
        self.action_space = spaces.Discrete(self.n_actions)

        self.game_manager = BotGameManager()
        self.rew_shape = RewardShaping(self.MAX_STEPS, agent_id=self.agent_id)
        self.node_ids: List[int] = []
        self.clock_ms = 0.0
        self.n_steps = 0

    @property
    def state(self):
        return self.game_manager.game_engine.state

    def _get_obs(self):
        state = self.state
        node_features = np.zeros((self.node_count, NODE_FEATURES), dtype=np.float32)
        for slot, node_id in enumerate(self.node_ids):
            node = state.nodes[node_id]
            visible = node.explored or node.owner == self.agent_id
            if visible:
                node_features[slot, 0] = float(node.owner == self.agent_id)
                node_features[slot, 1] = float(node.owner is not None and node.owner != self.agent_id)
                node_features[slot, 2] = float(node.owner is None)
                node_features[slot, 3] = node.bandwidth_threshold / NODE_THRESHOLD_MAX
                node_features[slot, 4] = min(1.0, node.current_load / node.bandwidth_threshold)
                node_features[slot, 5] = node.capture_progress
                node_features[slot, 6] = float(node.state == STATE_CAPTURING)
            node_features[slot, 7] = float(node.explored)

        agent = state.players[self.agent_id]
        opponent = eligibility.get_opponent(state, self.agent_id)
        global_features = np.zeros((GLOBAL_FEATURES,), dtype=np.float32)
        global_features[0] = agent.nodes_owned / agent.max_nodes
        global_features[2] = agent.total_throughput / THROUGHPUT_SCALE
        if opponent is not None:
            global_features[1] = opponent.nodes_owned / opponent.max_nodes
            global_features[3] = opponent.total_throughput / THROUGHPUT_SCALE
        return {"nodes": node_features, "global": global_features}

    def _get_info(self):
        return {
            "tick": self.state.current_tick,
            "winner": self.game_manager.winner_id(),
            "action_mask": self.valid_action_mask(),
        }

    def decode_action(self, action: int) -> Optional[Tuple[int, int]]:
        """Map a stream action to (source, target); None for wait/attack/out-of-range slots."""
        if action <= 0 or action >= self.attack_action:
            return None
        slot, k = divmod(int(action) - 1, MAX_NODE_CONNECTIONS)
        if slot >= len(self.node_ids):
            return None
        source = self.state.nodes[self.node_ids[slot]]
        if k >= len(source.connections):
            return None
        return source.id, source.connections[k]

    def valid_action_mask(self):
        """Get current step valid actions mask"""
        mask = np.zeros((self.n_actions,), dtype=np.int8)
        mask[0] = 1
        state = self.state
        slot_of = {node_id: slot for slot, node_id in enumerate(self.node_ids)}
        for source_id, target_id in eligibility.get_capturable_connections(state, self.agent_id):
            slot = slot_of.get(source_id)
            if slot is None:
                continue
            k = state.nodes[source_id].connections.index(target_id)
            if k < MAX_NODE_CONNECTIONS:
                mask[1 + slot * MAX_NODE_CONNECTIONS + k] = 1
        if eligibility.can_attack_enemy_base(state, self.agent_id):
            mask[self.attack_action] = 1
        return mask

    def reset(self, seed=None, options=None):
        """Reset the environment"""
        super().reset(seed=seed)
        game_seed = int(self.np_random.integers(0, 2**31 - 1))
        self.game_manager = BotGameManager()
        self.game_manager.start_bot_game(seed=game_seed, bot_config=self.bot_config, node_count=self.node_count)
        self.node_ids = sorted(self.state.nodes.keys())[: self.node_count]
        self.rew_shape.reset(self.state)
        self.clock_ms = 0.0
        self.n_steps = 0

        return self._get_obs(), self._get_info()

    def step(self, action):
        action = int(action)
        acted = action != 0
        if action == self.attack_action:
            action_valid = self.game_manager.handle_attack()
        else:
            pair = self.decode_action(action)
            action_valid = pair is not None and self.game_manager.handle_capture(*pair)

        winner_id = self.game_manager.winner_id()
        for _ in range(self.ticks_per_step):
            if not self.game_manager.game_active:
                break
            self.clock_ms += TICK_INTERVAL_MS
            winner_id = self.game_manager.step(self.clock_ms)

        self.n_steps += 1
        reward, rew_info = self.rew_shape.calculate_rew(self.state, acted, action_valid, winner_id)
        terminated = winner_id is not None
        truncated = not terminated and self.n_steps >= self.MAX_STEPS

        info = self._get_info()
        info.update(rew_info)
        return self._get_obs(), reward, terminated, truncated, info

    def close(self):
        self.game_manager.end_game()
