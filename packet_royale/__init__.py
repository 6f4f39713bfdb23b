"""Packet Royale: territorial conquest over a network graph, simulated tick by tick."""
from .bot_manager import BotGameManager
from .bots import BotConfig, BotDecisionEngine
from .game_engine import GameEngine, GameValidationError
from .graph_generator import generate_game_state
from .models import Edge, Node, Player
from .state import GraphState

__all__ = [
    "BotConfig",
    "BotDecisionEngine",
    "BotGameManager",
    "Edge",
    "GameEngine",
    "GameValidationError",
    "GraphState",
    "Node",
    "Player",
    "generate_game_state",
]
