"""
Bot implementations: contains `BotDecisionEngine`, the scoring opponent that
polls the graph on a cooldown and opens capture streams through the engine.
"""
import logging
from dataclasses import dataclass, fields, replace
from typing import List, Optional, Tuple

from . import eligibility
from .constants import (
    BOT_AGGRESSIVENESS,
    BOT_MAX_ATTEMPTS,
    BOT_PLAYER_ID,
    BOT_THINK_DELAY_MS,
    SCORE_AGGRESSION_WEIGHT,
    SCORE_IN_PROGRESS_BONUS,
    SCORE_OVEREXTENSION_PENALTY,
    SCORE_OVEREXTENSION_RATIO,
    SCORE_PER_CONNECTION,
    SCORE_PROXIMITY_DISTANCE_UNIT,
    SCORE_PROXIMITY_MAX,
    SCORE_REINFORCEMENT_BONUS,
    SCORE_THRESHOLD_CEILING,
    SCORE_THRESHOLD_WEIGHT,
)
from .game_engine import GameEngine
from .models import STATE_CAPTURING
from .state import GraphState

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class BotConfig:
    think_delay: float = BOT_THINK_DELAY_MS  # milliseconds between decisions
    aggressiveness: float = BOT_AGGRESSIVENESS  # 0-1, appetite for enemy-owned targets


class BotDecisionEngine:

    def __init__(self, player_id: int = BOT_PLAYER_ID, config: Optional[BotConfig] = None):
        self.player_id = player_id
        self.config: BotConfig = config if config is not None else BotConfig()
        self.game_engine: Optional[GameEngine] = None
        self.last_think_time = 0.0

    def join_game(self, game_engine: GameEngine) -> None:
        """Use this engine for actions whenever it wraps the state being played."""
        self.game_engine = game_engine

    def think(self, state: GraphState, current_time: float) -> int:
        """
        Called every game tick with a monotonic clock in milliseconds.
        Returns the number of actions taken this call.
        """
        if current_time - self.last_think_time < self.config.think_delay:
            return 0

        self.last_think_time = current_time
        return self._make_decision(state)

    def reset(self) -> None:
        self.last_think_time = 0.0

    def set_config(self, **changes) -> None:
        known = {f.name for f in fields(BotConfig)}
        unknown = set(changes) - known
        if unknown:
            raise ValueError(f"Unknown bot config field(s): {', '.join(sorted(unknown))}")
        self.config = replace(self.config, **changes)

    def _engine_for(self, state: GraphState) -> GameEngine:
        if self.game_engine is None or self.game_engine.state is not state:
            self.game_engine = GameEngine(state)
        return self.game_engine

    def _make_decision(self, state: GraphState) -> int:
        engine = self._engine_for(state)

        # A fully surrounded enemy base preempts everything else
        if eligibility.can_attack_enemy_base(state, self.player_id):
            LOGGER.info("[Bot %s] All nodes around the enemy base secured, launching final attack", self.player_id)
            if engine.launch_attack(self.player_id):
                LOGGER.info("[Bot %s] Final attack launched", self.player_id)
                return 1
            return 0

        scored = self.rank_connections(state)
        if not scored:
            LOGGER.debug("[Bot %s] No capturable connections available", self.player_id)
            return 0

        actions = 0
        for _, (source_id, target_id) in scored[:BOT_MAX_ATTEMPTS]:
            target = state.nodes.get(target_id)
            if target is None:
                continue

            # Already being captured with enough bandwidth
            if target.state == STATE_CAPTURING and target.current_load >= target.bandwidth_threshold:
                continue

            if not engine.initiate_capture_via_edge(source_id, target_id, self.player_id):
                continue
            actions += 1
            LOGGER.info(
                "[Bot %s] Initiated capture %s -> %s (threshold: %.1f Gbps, current: %.1f Gbps)",
                self.player_id, source_id, target_id, target.bandwidth_threshold, target.current_load,
            )

            if target.state == STATE_CAPTURING and target.current_load < target.bandwidth_threshold:
                LOGGER.debug(
                    "[Bot %s] Need more streams for %s (%.1f/%.1f Gbps)",
                    self.player_id, target_id, target.current_load, target.bandwidth_threshold,
                )
                continue
            break

        return actions

    def evaluate_connection(self, state: GraphState, connection: Tuple[int, int]) -> float:
        """Strategic value of opening ``connection``; higher is better."""
        _, target_id = connection
        target = state.nodes.get(target_id)
        if target is None:
            return 0.0

        threshold = target.bandwidth_threshold
        capturing = target.state == STATE_CAPTURING

        # Easier targets first (0-80)
        score = (SCORE_THRESHOLD_CEILING - threshold) * SCORE_THRESHOLD_WEIGHT

        # Finish what is already started
        if capturing and target.owner != self.player_id:
            score += SCORE_IN_PROGRESS_BONUS

        # Well-connected nodes open up more of the map
        score += len(target.connections) * SCORE_PER_CONNECTION

        if target.owner is not None and target.owner != self.player_id:
            score += self.config.aggressiveness * SCORE_AGGRESSION_WEIGHT

        enemy = eligibility.get_opponent(state, self.player_id)
        enemy_base = state.nodes.get(enemy.base_node_id) if enemy is not None else None
        if enemy_base is not None:
            distance = target.distance_to(enemy_base)
            score += max(0.0, SCORE_PROXIMITY_MAX - distance / SCORE_PROXIMITY_DISTANCE_UNIT)

        # Under-resourced siege that needs another stream
        if capturing and 0 < target.current_load < threshold:
            score += SCORE_REINFORCEMENT_BONUS

        own_load = state.player_load_on(target_id, self.player_id)
        if 0 < own_load < threshold * SCORE_OVEREXTENSION_RATIO:
            score -= SCORE_OVEREXTENSION_PENALTY

        return score

    def rank_connections(self, state: GraphState) -> List[Tuple[float, Tuple[int, int]]]:
        """Every legal connection with its score, best first."""
        connections = eligibility.get_capturable_connections(state, self.player_id)
        return sorted(
            ((self.evaluate_connection(state, conn), conn) for conn in connections),
            key=lambda item: -item[0],
        )
