from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .constants import EDGE_MAX_BANDWIDTH, PLAYER_MAX_NODES

# Node roles
ROLE_NEUTRAL = "NEUTRAL"
ROLE_OWNED = "OWNED"
ROLE_BASE = "BASE"
NODE_ROLES: Tuple[str, ...] = (ROLE_NEUTRAL, ROLE_OWNED, ROLE_BASE)

# Node states
STATE_IDLE = "IDLE"
STATE_CAPTURING = "CAPTURING"
STATE_UNDER_ATTACK = "UNDER_ATTACK"
NODE_STATES: Tuple[str, ...] = (STATE_IDLE, STATE_CAPTURING, STATE_UNDER_ATTACK)

# (source_node_id, target_node_id)
EdgeKey = Tuple[int, int]


@dataclass
class Player:
    id: int
    base_node_id: int
    name: str = ""
    color: str = "#ffffff"  # hex color string like "#00ffff"
    is_alive: bool = True
    # Derived each tick from edges/nodes
    total_throughput: float = 0.0
    nodes_owned: int = 0
    max_nodes: int = PLAYER_MAX_NODES


@dataclass
class Node:
    id: int
    x: float
    y: float
    bandwidth_threshold: float  # Gbps needed to capture, fixed at creation
    owner: Optional[int] = None  # player id
    role: str = ROLE_NEUTRAL
    state: str = STATE_IDLE
    current_load: float = 0.0  # hostile inflow derived in the last tick
    capture_progress: float = 0.0
    explored: bool = False
    connections: List[int] = field(default_factory=list)

    @property
    def position(self) -> Tuple[float, float]:
        return (self.x, self.y)

    def distance_to(self, other: "Node") -> float:
        dx = self.x - other.x
        dy = self.y - other.y
        return (dx * dx + dy * dy) ** 0.5

    def reset_capture(self) -> None:
        self.state = STATE_IDLE
        self.capture_progress = 0.0

    def make_neutral(self) -> None:
        self.owner = None
        self.role = ROLE_NEUTRAL
        self.reset_capture()


@dataclass
class Edge:
    source_node_id: int
    target_node_id: int
    owner: int  # player who opened the stream
    bandwidth: float  # Gbps currently flowing
    max_bandwidth: float = EDGE_MAX_BANDWIDTH
    # Cosmetic telemetry, only ever incremented
    packets_sent: int = 0
    packets_lost: int = 0
    active: bool = True

    @property
    def key(self) -> EdgeKey:
        return (self.source_node_id, self.target_node_id)

    def touches(self, node_id: int) -> bool:
        return self.source_node_id == node_id or self.target_node_id == node_id
