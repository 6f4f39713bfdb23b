from typing import Any, Dict, List

PLAYER_COLOR_SCHEMES: List[Dict[str, Any]] = [
    {"name": "Player 1 (You)", "color": "#00FFFF"},
    {"name": "Player 2", "color": "#FF00FF"},
]

HUMAN_PLAYER_ID: int = 0
BOT_PLAYER_ID: int = 1


# Core timing
TICK_INTERVAL_SECONDS: float = 1.0 / 60.0
TICK_INTERVAL_MS: float = TICK_INTERVAL_SECONDS * 1000.0


# Map layout tuning
NODE_COUNT: int = 100
HEX_SIZE: float = 80.0  # distance from hex center to vertex
CONNECTION_DISTANCE: float = 160.0  # 2 * HEX_SIZE
MAX_NODE_CONNECTIONS: int = 6
PLAYER_STARTING_NODES: int = 4
BOT_STARTING_NODES: int = 3
PLAYER_MAX_NODES: int = 20


# Node tuning (Gbps)
NODE_THRESHOLD_MIN: float = 2.0
NODE_THRESHOLD_MAX: float = 10.0


# Edge / stream tuning (Gbps)
EDGE_MAX_BANDWIDTH: float = 10.0
EDGE_MIN_BANDWIDTH: float = 1.0
STREAM_BANDWIDTH_MIN: float = 3.0
STREAM_BANDWIDTH_MAX: float = 8.0
BANDWIDTH_FLUCTUATION: float = 0.4  # total swing, i.e. +/-20%
PACKETS_PER_GBPS: int = 10
PACKET_LOSS_RATE: float = 0.05
INITIAL_PACKETS_SENT_RANGE = (5000, 15000)
INITIAL_PACKETS_LOST_RANGE = (0, 100)


# Capture tuning
CAPTURE_BASE_SPEED: float = 0.01
CAPTURE_SURPLUS_SPEED: float = 0.02
NEUTRAL_SIEGE_DECAY: float = 0.005
INSUFFICIENT_LOG_INTERVAL_TICKS: int = 20


# Packet reflection (failed hostile capture)
REFLECTION_BASE_CHANCE: float = 0.3
REFLECTION_DAMAGE_WEIGHT: float = 0.4


# Bot tuning
BOT_THINK_DELAY_MS: float = 2000.0
BOT_AGGRESSIVENESS: float = 0.6
BOT_MAX_ATTEMPTS: int = 3

# Scoring weights used by the bot when ranking candidate streams
SCORE_THRESHOLD_CEILING: float = 10.0
SCORE_THRESHOLD_WEIGHT: float = 10.0
SCORE_IN_PROGRESS_BONUS: float = 50.0
SCORE_PER_CONNECTION: float = 5.0
SCORE_AGGRESSION_WEIGHT: float = 40.0
SCORE_PROXIMITY_MAX: float = 30.0
SCORE_PROXIMITY_DISTANCE_UNIT: float = 100.0
SCORE_REINFORCEMENT_BONUS: float = 70.0
SCORE_OVEREXTENSION_PENALTY: float = 20.0
SCORE_OVEREXTENSION_RATIO: float = 0.5


def clamp(value: float, low: float, high: float) -> float:
    """Clamp ``value`` to the closed range ``[low, high]``."""
    return max(low, min(high, value))
