"""
Graph Generator - builds the starting contest: a hex-lattice network, two bases,
starting territories and the human player's initial fog-of-war frontier.
"""
import logging
import math
import random
from typing import List, Optional, Set, Tuple

from .constants import (
    BOT_PLAYER_ID,
    BOT_STARTING_NODES,
    CONNECTION_DISTANCE,
    EDGE_MAX_BANDWIDTH,
    HEX_SIZE,
    HUMAN_PLAYER_ID,
    INITIAL_PACKETS_LOST_RANGE,
    INITIAL_PACKETS_SENT_RANGE,
    MAX_NODE_CONNECTIONS,
    NODE_COUNT,
    NODE_THRESHOLD_MAX,
    NODE_THRESHOLD_MIN,
    PLAYER_COLOR_SCHEMES,
    PLAYER_MAX_NODES,
    PLAYER_STARTING_NODES,
    STREAM_BANDWIDTH_MAX,
    STREAM_BANDWIDTH_MIN,
)
from .models import ROLE_BASE, ROLE_OWNED, Edge, Node, Player
from .state import GraphState

LOGGER = logging.getLogger(__name__)


class GraphGenerator:
    """Handles graph generation with consistent parameters."""

    def __init__(self):
        self.default_node_count = NODE_COUNT
        self.default_hex_size = HEX_SIZE
        self.default_connection_distance = CONNECTION_DISTANCE

    def generate(
        self,
        node_count: int = None,
        hex_size: float = None,
        connection_distance: float = None,
        seed: Optional[int] = None,
        rng: Optional[random.Random] = None,
    ) -> GraphState:
        """
        Generate a complete starting state.
        ``rng`` wins over ``seed``; the same generator keeps driving the simulation.
        """
        n = node_count or self.default_node_count
        size = hex_size or self.default_hex_size
        distance = connection_distance or self.default_connection_distance
        if n < PLAYER_STARTING_NODES + BOT_STARTING_NODES + 2:
            raise ValueError(f"Need at least {PLAYER_STARTING_NODES + BOT_STARTING_NODES + 2} nodes, got {n}")
        if rng is None:
            rng = random.Random(seed)

        players = create_players()
        nodes = generate_node_positions(n, size, rng)
        state = GraphState(nodes, [], players, rng=rng)
        generate_connections(state, distance)
        setup_player_territories(state)
        for edge in generate_edges(state):
            state.add_edge(edge)
        state.recompute_player_aggregates()

        LOGGER.info("Generated network: %d nodes, %d edges", len(state.nodes), len(state.edges))
        return state


def create_players() -> List[Player]:
    players: List[Player] = []
    for player_id in (HUMAN_PLAYER_ID, BOT_PLAYER_ID):
        scheme = PLAYER_COLOR_SCHEMES[player_id]
        players.append(
            Player(
                id=player_id,
                base_node_id=-1,  # assigned once territories are laid out
                name=scheme["name"],
                color=scheme["color"],
                max_nodes=PLAYER_MAX_NODES,
            )
        )
    return players


def generate_node_positions(num_nodes: int, hex_size: float, rng: random.Random) -> List[Node]:
    """Place nodes on an axial hex lattice, ring radius sized to the node count."""
    grid_radius = math.ceil(math.sqrt(num_nodes / 7))
    nodes: List[Node] = []
    seen_positions: Set[Tuple[int, int]] = set()

    for q in range(-grid_radius, grid_radius + 1):
        if len(nodes) >= num_nodes:
            break
        r1 = max(-grid_radius, -q - grid_radius)
        r2 = min(grid_radius, -q + grid_radius)
        for r in range(r1, r2 + 1):
            if len(nodes) >= num_nodes:
                break
            x = hex_size * (3 / 2 * q)
            y = hex_size * (math.sqrt(3) / 2 * q + math.sqrt(3) * r)

            pos_key = (round(x), round(y))
            if pos_key in seen_positions:
                continue
            seen_positions.add(pos_key)

            nodes.append(
                Node(
                    id=len(nodes),
                    x=x,
                    y=y,
                    bandwidth_threshold=rng.uniform(NODE_THRESHOLD_MIN, NODE_THRESHOLD_MAX),
                )
            )
    return nodes


def generate_connections(state: GraphState, max_distance: float) -> None:
    """Link every node to its nearest neighbours within ``max_distance``."""
    node_list = [state.nodes[nid] for nid in sorted(state.nodes.keys())]
    for node_a in node_list:
        neighbors = sorted(
            (
                (node_a.distance_to(node_b), node_b.id)
                for node_b in node_list
                if node_b.id != node_a.id
            ),
        )
        neighbors = [(d, nid) for d, nid in neighbors if d < max_distance][:MAX_NODE_CONNECTIONS]
        for _, node_b_id in neighbors:
            state.connect(node_a.id, node_b_id)


def _nearest(origin: Node, candidates: List[Node]) -> List[Node]:
    return sorted(candidates, key=lambda n: (origin.distance_to(n), n.id))


def setup_player_territories(state: GraphState) -> None:
    node_list = [state.nodes[nid] for nid in sorted(state.nodes.keys())]
    human = state.players[HUMAN_PLAYER_ID]
    bot = state.players[BOT_PLAYER_ID]

    human_base = node_list[0]
    human_base.role = ROLE_BASE
    human_base.owner = human.id
    human_base.explored = True
    human.base_node_id = human_base.id

    human_nodes = _nearest(human_base, [n for n in node_list if n.id != human_base.id])
    human_nodes = human_nodes[:PLAYER_STARTING_NODES]
    for node in human_nodes:
        node.role = ROLE_OWNED
        node.owner = human.id
        node.explored = True

    # Bot base sits as far from the human base as the lattice allows
    taken = {human_base.id} | {n.id for n in human_nodes}
    remaining = [n for n in node_list if n.id not in taken]
    bot_base = max(remaining, key=lambda n: (human_base.distance_to(n), -n.id))
    bot_base.role = ROLE_BASE
    bot_base.owner = bot.id
    bot_base.explored = True  # enemy base is always visible
    bot.base_node_id = bot_base.id

    bot_nodes = _nearest(bot_base, [n for n in node_list if n.owner is None])
    for node in bot_nodes[:BOT_STARTING_NODES]:
        node.role = ROLE_OWNED
        node.owner = bot.id
        node.explored = False  # enemy territory stays hidden

    # Reveal only the immediate frontier around the human territory
    for node in node_list:
        if node.owner == human.id or node.explored:
            continue
        for conn_id in node.connections:
            if state.nodes[conn_id].owner == human.id:
                node.explored = True
                break


def generate_edges(state: GraphState) -> List[Edge]:
    """Reinforcing streams between adjacent nodes of the same owner, one per pair."""
    edges: List[Edge] = []
    processed: Set[Tuple[int, int]] = set()
    rng = state.rng

    for node_id in sorted(state.nodes.keys()):
        node = state.nodes[node_id]
        if node.owner is None:
            continue
        for connected_id in node.connections:
            pair_key = (min(node_id, connected_id), max(node_id, connected_id))
            if pair_key in processed:
                continue
            processed.add(pair_key)

            connected = state.nodes.get(connected_id)
            if connected is None or connected.owner != node.owner:
                continue

            edges.append(
                Edge(
                    source_node_id=node.id,
                    target_node_id=connected_id,
                    owner=node.owner,
                    bandwidth=rng.uniform(STREAM_BANDWIDTH_MIN, STREAM_BANDWIDTH_MAX),
                    max_bandwidth=EDGE_MAX_BANDWIDTH,
                    packets_sent=rng.randrange(*INITIAL_PACKETS_SENT_RANGE),
                    packets_lost=rng.randrange(*INITIAL_PACKETS_LOST_RANGE),
                )
            )
    return edges


def generate_game_state(seed: Optional[int] = None, rng: Optional[random.Random] = None, **kwargs) -> GraphState:
    return graph_generator.generate(seed=seed, rng=rng, **kwargs)


# Global generator instance
graph_generator = GraphGenerator()
