import logging
import math
import random
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .constants import (
    BANDWIDTH_FLUCTUATION,
    CAPTURE_BASE_SPEED,
    CAPTURE_SURPLUS_SPEED,
    EDGE_MAX_BANDWIDTH,
    EDGE_MIN_BANDWIDTH,
    INSUFFICIENT_LOG_INTERVAL_TICKS,
    NEUTRAL_SIEGE_DECAY,
    PACKET_LOSS_RATE,
    PACKETS_PER_GBPS,
    REFLECTION_BASE_CHANCE,
    REFLECTION_DAMAGE_WEIGHT,
    clamp,
)
from .models import (
    ROLE_BASE,
    ROLE_OWNED,
    STATE_CAPTURING,
    Edge,
    EdgeKey,
    Node,
    Player,
)

LOGGER = logging.getLogger(__name__)


class GraphState:
    """Owned aggregate of every node, edge and player in one contest.

    Components never hold their own copy of the graph; they receive this object
    and either read it (eligibility) or mutate it in place (engine, tick).
    """

    def __init__(
        self,
        nodes: List[Node],
        edges: List[Edge],
        players: List[Player],
        rng: Optional[random.Random] = None,
    ) -> None:
        self.nodes: Dict[int, Node] = {n.id: n for n in nodes}
        self.edges: Dict[EdgeKey, Edge] = {}
        for e in edges:
            self.add_edge(e)
        self.players: Dict[int, Player] = {p.id: p for p in players}

        self.rng: random.Random = rng if rng is not None else random.Random()
        self.current_tick: int = 0
        self.max_bandwidth: float = EDGE_MAX_BANDWIDTH

        # Advisory telemetry drained by callers after each tick
        self.pending_events: List[Dict[str, Any]] = []

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------
    def connect(self, node_id_a: int, node_id_b: int) -> None:
        """Add an undirected adjacency between two nodes (idempotent)."""
        if node_id_a == node_id_b:
            raise ValueError("Self-loops are not allowed")
        node_a = self.nodes[node_id_a]
        node_b = self.nodes[node_id_b]
        if node_id_b not in node_a.connections:
            node_a.connections.append(node_id_b)
        if node_id_a not in node_b.connections:
            node_b.connections.append(node_id_a)

    def add_edge(self, edge: Edge) -> None:
        if edge.key in self.edges:
            raise ValueError(f"Edge from {edge.source_node_id} to {edge.target_node_id} already exists")
        self.edges[edge.key] = edge

    def remove_edges(self, edge_keys: Iterable[EdgeKey]) -> List[EdgeKey]:
        """Remove edges by key, ignoring keys that are already gone."""
        removed: List[EdgeKey] = []
        for key in edge_keys:
            if self.edges.pop(key, None) is not None:
                removed.append(key)
        return removed

    def remove_edges_touching(self, node_id: int) -> List[EdgeKey]:
        return self.remove_edges([key for key, e in self.edges.items() if e.touches(node_id)])

    def adjacency_violations(self) -> List[Tuple[int, int]]:
        """Return (a, b) pairs where b lists a as neighbour but not vice versa, or b is unknown."""
        violations: List[Tuple[int, int]] = []
        for node in self.nodes.values():
            for conn_id in node.connections:
                other = self.nodes.get(conn_id)
                if other is None or node.id not in other.connections:
                    violations.append((node.id, conn_id))
        return violations

    def is_adjacency_symmetric(self) -> bool:
        return not self.adjacency_violations()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def nodes_owned_by(self, player_id: int) -> List[Node]:
        return [n for n in self.nodes.values() if n.owner == player_id]

    def attacking_edges(self, node: Node) -> List[Edge]:
        """Active edges into ``node`` from anyone other than its owner, by ascending key."""
        incoming = [
            e for e in self.edges.values()
            if e.target_node_id == node.id and e.active and e.owner != node.owner
        ]
        incoming.sort(key=lambda e: e.key)
        return incoming

    def player_load_on(self, node_id: int, player_id: int) -> float:
        return sum(
            e.bandwidth for e in self.edges.values()
            if e.target_node_id == node_id and e.owner == player_id
        )

    def pop_pending_events(self) -> List[Dict[str, Any]]:
        events = self.pending_events
        self.pending_events = []
        return events

    def record_event(self, event_type: str, **payload: Any) -> None:
        payload["type"] = event_type
        payload["tick"] = self.current_tick
        self.pending_events.append(payload)

    # ------------------------------------------------------------------
    # Simulation
    # ------------------------------------------------------------------
    def simulate_tick(self) -> None:
        self.current_tick += 1

        self._update_edge_bandwidth()

        # Hostile inflow per node; own reinforcing traffic never counts
        for node in self.nodes.values():
            node.current_load = sum(e.bandwidth for e in self.attacking_edges(node))

        for node_id in sorted(self.nodes.keys()):
            node = self.nodes.get(node_id)
            if node is None or node.state != STATE_CAPTURING:
                continue
            self._advance_capture(node)

        self.recompute_player_aggregates()

    def _update_edge_bandwidth(self) -> None:
        for edge in self.edges.values():
            if not edge.active:
                continue
            fluctuation = (self.rng.random() - 0.5) * BANDWIDTH_FLUCTUATION
            edge.bandwidth = clamp(edge.bandwidth * (1 + fluctuation), EDGE_MIN_BANDWIDTH, edge.max_bandwidth)

            edge.packets_sent += int(math.floor(edge.bandwidth * PACKETS_PER_GBPS))

            loss_rate = (edge.bandwidth / edge.max_bandwidth) * PACKET_LOSS_RATE
            if self.rng.random() < loss_rate:
                edge.packets_lost += 1

    def _advance_capture(self, node: Node) -> None:
        # Earlier nodes this tick may have removed edges, so re-derive from the live set
        attacking = self.attacking_edges(node)
        load = sum(e.bandwidth for e in attacking)
        node.current_load = load
        threshold = node.bandwidth_threshold
        was_owned = node.owner is not None

        if load >= threshold:
            surplus = load - threshold
            capture_speed = CAPTURE_BASE_SPEED + (surplus / threshold) * CAPTURE_SURPLUS_SPEED
            node.capture_progress = min(1.0, node.capture_progress + capture_speed)
            if node.capture_progress >= 1.0 and attacking:
                self._complete_capture(node, attacking[0], load)
        elif was_owned:
            self._reflect_hostile_capture(node, attacking, load)
        else:
            node.capture_progress = max(0.0, node.capture_progress - NEUTRAL_SIEGE_DECAY)
            if self.current_tick % INSUFFICIENT_LOG_INTERVAL_TICKS == 0:
                LOGGER.debug(
                    "Node %s - insufficient bandwidth: %.1f/%.1f Gbps (%d stream%s)",
                    node.id, load, threshold, len(attacking), "" if len(attacking) == 1 else "s",
                )

    def _complete_capture(self, node: Node, capturing_edge: Edge, load: float) -> None:
        previous_owner = node.owner
        node.owner = capturing_edge.owner
        node.role = ROLE_OWNED
        node.reset_capture()

        for conn_id in node.connections:
            neighbor = self.nodes.get(conn_id)
            if neighbor is not None:
                neighbor.explored = True

        LOGGER.info(
            "Node %s captured by player %s (threshold: %.1f Gbps, load: %.1f Gbps)",
            node.id, node.owner, node.bandwidth_threshold, load,
        )
        self.record_event(
            "nodeCaptured",
            nodeId=node.id,
            playerId=node.owner,
            previousOwner=previous_owner,
            load=load,
        )

    def _reflect_hostile_capture(self, node: Node, attacking: List[Edge], load: float) -> None:
        threshold = node.bandwidth_threshold
        LOGGER.info(
            "Hostile capture failed on node %s - reflecting packets (%.1f/%.1f Gbps)",
            node.id, load, threshold,
        )
        self.record_event("hostileCaptureFailed", nodeId=node.id, load=load, threshold=threshold)

        for attack_edge in attacking:
            source = self.nodes.get(attack_edge.source_node_id)
            if source is not None:
                reflection_damage = attack_edge.bandwidth / threshold
                destruction_chance = clamp(
                    REFLECTION_BASE_CHANCE + reflection_damage * REFLECTION_DAMAGE_WEIGHT, 0.0, 1.0
                )
                # Bases are permanent; they absorb the reflection
                if source.role != ROLE_BASE and self.rng.random() < destruction_chance:
                    self._destroy_node(source, attack_edge.owner, destruction_chance)
                else:
                    LOGGER.info(
                        "Node %s survived packet reflection (%.0f%% chance)",
                        source.id, destruction_chance * 100,
                    )
                    self.record_event("nodeSurvived", nodeId=source.id, chance=destruction_chance)

            self.remove_edges([attack_edge.key])

        node.reset_capture()

    def _destroy_node(self, node: Node, attacker_id: int, chance: float) -> None:
        LOGGER.info("Node %s destroyed by packet reflection (%.0f%% chance)", node.id, chance * 100)
        node.make_neutral()
        removed = self.remove_edges_touching(node.id)
        self.record_event(
            "nodeDestroyed",
            nodeId=node.id,
            playerId=attacker_id,
            chance=chance,
            removedEdges=removed,
        )

    def recompute_player_aggregates(self) -> None:
        for player in self.players.values():
            player.total_throughput = sum(e.bandwidth for e in self.edges.values() if e.owner == player.id)
            player.nodes_owned = sum(1 for n in self.nodes.values() if n.owner == player.id)

    # ------------------------------------------------------------------
    # Win conditions (evaluated by callers; the simulation never halts itself)
    # ------------------------------------------------------------------
    def check_defeat_victory(self) -> Optional[int]:
        """Return the last player standing once every other player has fallen."""
        alive = [p.id for p in self.players.values() if p.is_alive]
        if len(alive) == 1 and len(self.players) > 1:
            return alive[0]
        return None

    def check_node_count_victory(self) -> Optional[int]:
        """Return the first player (by id) whose territory reached its ``max_nodes`` cap."""
        for player_id in sorted(self.players.keys()):
            player = self.players[player_id]
            if player.is_alive and player.nodes_owned >= player.max_nodes:
                return player_id
        return None
