from typing import Dict, Optional, Tuple

from ..constants import BOT_PLAYER_ID, HUMAN_PLAYER_ID
from ..state import GraphState


class RewardShaping:
    def __init__(self, max_steps, reward_weights=None, agent_id=HUMAN_PLAYER_ID, opponent_id=BOT_PLAYER_ID):
        self.MAX_STEPS = max_steps
        self.agent_id = agent_id
        self.opponent_id = opponent_id
        if reward_weights is None:
            self.reward_weights = {
                "capture": 5.0,         # per node gained
                "lost": -5.0,           # per node lost
                "enemy_loss": 3.0,      # per node the opponent lost
                "enemy_gain": -2.0,     # per node the opponent gained
                "action_cost": -0.1,    # small cost for each stream opened
                "invalid_action": -0.5, # chosen action was rejected by the engine
                "wl_points": 100,       # win lose points
            }
        else:
            self.reward_weights = reward_weights
        self.reset()

    def reset(self, state: Optional[GraphState] = None):
        self.n_steps = 0
        self.n_agent_prev_nodes = 0
        self.n_opp_prev_nodes = 0
        if state is not None:
            self.n_agent_prev_nodes, self.n_opp_prev_nodes = self.get_owned_nodes(state)

    def get_owned_nodes(self, state: GraphState) -> Tuple[int, int]:
        agent = 0
        opponent = 0
        for node in state.nodes.values():
            if node.owner == self.agent_id:
                agent += 1
            elif node.owner == self.opponent_id:
                opponent += 1
        return agent, opponent

    def calculate_rew(
        self,
        state: GraphState,
        acted: bool,
        action_valid: bool,
        winner_id: Optional[int],
    ) -> Tuple[float, Dict[str, float]]:
        """Reward for one env step plus its components for logging."""
        w = self.reward_weights
        self.n_steps += 1
        agent_nodes, opp_nodes = self.get_owned_nodes(state)

        agent_delta = agent_nodes - self.n_agent_prev_nodes
        opp_delta = opp_nodes - self.n_opp_prev_nodes
        self.n_agent_prev_nodes, self.n_opp_prev_nodes = agent_nodes, opp_nodes

        r_own = agent_delta * w["capture"] if agent_delta > 0 else -agent_delta * w["lost"]
        r_enemy = opp_delta * w["enemy_gain"] if opp_delta > 0 else -opp_delta * w["enemy_loss"]
        r_act = 0.0
        if acted:
            r_act = w["action_cost"] if action_valid else w["invalid_action"]

        r_winner_loser = 0.0
        if winner_id == self.agent_id:
            r_winner_loser = float(w["wl_points"])
        elif winner_id is not None:
            r_winner_loser = -float(w["wl_points"])

        reward = r_own + r_enemy + r_act + r_winner_loser
        info = {
            "r_own": r_own,
            "r_enemy": r_enemy,
            "r_act": r_act,
            "r_winner_loser": r_winner_loser,
            "agent_nodes": agent_nodes,
            "opponent_nodes": opp_nodes,
        }
        return reward, info
