"""
Game Engine - mutating commands issued by the human player or the bot.
Every public action validates through the eligibility rules first and reports
the outcome as a boolean; a rejected action leaves the state untouched.
"""
import logging
from typing import Optional

from . import eligibility
from .constants import STREAM_BANDWIDTH_MAX, STREAM_BANDWIDTH_MIN
from .models import STATE_CAPTURING, STATE_UNDER_ATTACK, Edge, Node, Player
from .state import GraphState

LOGGER = logging.getLogger(__name__)


class GameValidationError(Exception):
    """Raised when a game action fails validation."""
    pass


class GameEngine:
    """Applies player commands and drives ticks for one ``GraphState``."""

    def __init__(self, state: GraphState):
        self.state: GraphState = state
        self.game_active: bool = True
        self.winner_id: Optional[int] = None

    # ------------------------------------------------------------------
    # Validation helpers
    # ------------------------------------------------------------------
    def validate_player(self, player_id: int) -> Player:
        """Validate that the player exists and is still in the contest."""
        player = self.state.players.get(player_id)
        if player is None:
            raise GameValidationError("Invalid player")
        if not player.is_alive:
            raise GameValidationError("Player defeated")
        return player

    def validate_node_exists(self, node_id: int) -> Node:
        node = self.state.nodes.get(node_id)
        if node is None:
            raise GameValidationError("Invalid node")
        return node

    def validate_capturable_connection(self, source_node_id: int, target_node_id: int, player_id: int) -> None:
        if not eligibility.is_capturable_connection(self.state, source_node_id, target_node_id, player_id):
            raise GameValidationError("Connection is not capturable")

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------
    def initiate_capture_via_edge(self, source_node_id: int, target_node_id: int, player_id: int) -> bool:
        """
        Open a stream from an owned node into an adjacent target.
        Returns True if the stream was created.
        """
        try:
            self.validate_player(player_id)
            self.validate_capturable_connection(source_node_id, target_node_id, player_id)
            target = self.validate_node_exists(target_node_id)
        except GameValidationError as err:
            LOGGER.debug(
                "Player %s cannot stream %s -> %s: %s", player_id, source_node_id, target_node_id, err
            )
            return False

        # Joining a capture already underway keeps its progress
        if target.state != STATE_CAPTURING:
            target.state = STATE_CAPTURING
            target.capture_progress = 0.0

        # Simulated network capacity of the attacker
        bandwidth = self.state.rng.uniform(STREAM_BANDWIDTH_MIN, STREAM_BANDWIDTH_MAX)
        self.state.add_edge(
            Edge(
                source_node_id=source_node_id,
                target_node_id=target_node_id,
                owner=player_id,
                bandwidth=bandwidth,
                max_bandwidth=self.state.max_bandwidth,
            )
        )
        return True

    def initiate_capture(self, node_id: int, player_id: int) -> bool:
        """
        Start capturing a node from whichever adjacent owned node can stream into it.
        Returns True if a stream was opened.
        """
        try:
            self.validate_player(player_id)
            node = self.validate_node_exists(node_id)
            if not eligibility.can_capture_node(self.state, node_id, player_id):
                raise GameValidationError("Node is not capturable")
        except GameValidationError:
            return False

        for conn_id in node.connections:
            if eligibility.is_capturable_connection(self.state, conn_id, node_id, player_id):
                return self.initiate_capture_via_edge(conn_id, node_id, player_id)
        return False

    def launch_attack(self, player_id: int) -> bool:
        """
        Final attack on the enemy base once it is fully surrounded.
        Ends the contest for the opponent; a repeat call returns False.
        """
        try:
            self.validate_player(player_id)
            if not eligibility.can_attack_enemy_base(self.state, player_id):
                raise GameValidationError("Enemy base is not surrounded")
            enemy = eligibility.get_opponent(self.state, player_id)
            if enemy is None or not enemy.is_alive:
                raise GameValidationError("No opponent left to attack")
            enemy_base = self.validate_node_exists(enemy.base_node_id)
        except GameValidationError:
            return False

        enemy.is_alive = False
        enemy_base.state = STATE_UNDER_ATTACK
        enemy_base.capture_progress = 0.0

        LOGGER.info("Player %s launched the final attack on player %s's base", player_id, enemy.id)
        LOGGER.info("Player %s has been defeated", enemy.id)
        self.state.record_event("baseDefeated", nodeId=enemy_base.id, playerId=player_id, defeatedId=enemy.id)
        return True

    # ------------------------------------------------------------------
    # Ticking
    # ------------------------------------------------------------------
    def simulate_tick(self, use_node_cap: bool = False) -> Optional[int]:
        """
        Simulate one game tick and return winner ID if game ended.
        """
        if not self.game_active:
            return self.winner_id

        self.state.simulate_tick()
        return self.check_winner(use_node_cap)

    def check_winner(self, use_node_cap: bool = False) -> Optional[int]:
        winner_id = self.state.check_defeat_victory()
        if winner_id is None and use_node_cap:
            winner_id = self.state.check_node_count_victory()

        if winner_id is not None:
            self._end_game(winner_id)
        return winner_id

    def _end_game(self, winner_id: int) -> None:
        if not self.game_active:
            return
        self.game_active = False
        self.winner_id = winner_id
        LOGGER.info("Game over after %d ticks - player %s wins", self.state.current_tick, winner_id)
