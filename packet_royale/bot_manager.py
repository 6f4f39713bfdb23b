"""
Bot game management: contains `BotGameManager`.
This module is responsible for creating a game, wiring the bot into it, and
exposing simple controls for ticking and lifecycle.
"""
import logging
from typing import Any, Dict, List, Optional

from .bots import BotConfig, BotDecisionEngine
from .constants import BOT_PLAYER_ID, HUMAN_PLAYER_ID
from .game_engine import GameEngine
from .graph_generator import graph_generator

LOGGER = logging.getLogger(__name__)


class BotGameManager:
    """Manages human vs bot games."""

    def __init__(self):
        self.game_engine: Optional[GameEngine] = None
        self.bot_player: Optional[BotDecisionEngine] = None
        self.game_active = False
        self.use_node_cap = False
        # Events produced by the most recent step, oldest first
        self.last_events: List[Dict[str, Any]] = []

    def start_bot_game(
        self,
        seed: Optional[int] = None,
        bot_config: Optional[BotConfig] = None,
        use_node_cap: bool = False,
        **generator_options: Any,
    ) -> GameEngine:
        """Start a new human vs bot game and return its engine."""
        state = graph_generator.generate(seed=seed, **generator_options)
        self.game_engine = GameEngine(state)
        self.bot_player = BotDecisionEngine(player_id=BOT_PLAYER_ID, config=bot_config)
        self.bot_player.join_game(self.game_engine)
        self.use_node_cap = use_node_cap
        self.game_active = True
        self.last_events = []
        LOGGER.info("Bot game started (seed=%s)", seed)
        return self.game_engine

    def step(self, now_ms: float) -> Optional[int]:
        """
        Advance one tick, then let the bot think.
        Returns the winner id once the game has ended.
        """
        if not self.game_active or not self.game_engine or not self.bot_player:
            return self.winner_id()

        state = self.game_engine.state
        winner_id = self.game_engine.simulate_tick(use_node_cap=self.use_node_cap)
        if winner_id is None:
            self.bot_player.think(state, now_ms)
            winner_id = self.game_engine.check_winner(use_node_cap=self.use_node_cap)

        self.last_events = state.pop_pending_events()
        if winner_id is not None:
            self.game_active = False
        return winner_id

    def handle_capture(self, source_node_id: int, target_node_id: int) -> bool:
        """Human request to stream from one of their nodes into a neighbour."""
        if not self.game_active or not self.game_engine:
            return False
        return self.game_engine.initiate_capture_via_edge(source_node_id, target_node_id, HUMAN_PLAYER_ID)

    def handle_attack(self) -> bool:
        """Human request to launch the final attack on the bot's base."""
        if not self.game_active or not self.game_engine:
            return False
        success = self.game_engine.launch_attack(HUMAN_PLAYER_ID)
        if success:
            self.game_engine.check_winner(use_node_cap=self.use_node_cap)
            self.last_events = self.game_engine.state.pop_pending_events()
            self.game_active = False
        return success

    def winner_id(self) -> Optional[int]:
        if not self.game_engine:
            return None
        return self.game_engine.winner_id

    def end_game(self) -> None:
        """End the bot game."""
        self.game_active = False
        self.bot_player = None
