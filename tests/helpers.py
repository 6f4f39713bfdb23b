"""Small hand-built maps and a scripted random source for deterministic tests."""
from collections import deque
from typing import Iterable, List, Optional, Sequence, Tuple

from packet_royale.models import (
    ROLE_BASE,
    ROLE_NEUTRAL,
    ROLE_OWNED,
    STATE_IDLE,
    Edge,
    Node,
    Player,
)
from packet_royale.state import GraphState


class ScriptedRandom:
    """Stand-in for ``random.Random``: queued ``random()`` values, then a default."""

    def __init__(self, values: Iterable[float] = (), default: float = 0.5, uniform_value: Optional[float] = None):
        self.values = deque(values)
        self.default = default
        self.uniform_value = uniform_value
        self.calls = 0

    def random(self) -> float:
        self.calls += 1
        if self.values:
            return self.values.popleft()
        return self.default

    def uniform(self, a: float, b: float) -> float:
        if self.uniform_value is not None:
            return self.uniform_value
        return (a + b) / 2


def make_node(
    node_id: int,
    owner: Optional[int] = None,
    role: Optional[str] = None,
    threshold: float = 5.0,
    x: float = 0.0,
    y: float = 0.0,
    explored: bool = True,
    state: str = STATE_IDLE,
    progress: float = 0.0,
) -> Node:
    if role is None:
        role = ROLE_NEUTRAL if owner is None else ROLE_OWNED
    return Node(
        id=node_id,
        x=x,
        y=y,
        bandwidth_threshold=threshold,
        owner=owner,
        role=role,
        state=state,
        capture_progress=progress,
        explored=explored,
    )


def make_edge(source: int, target: int, owner: int, bandwidth: float) -> Edge:
    return Edge(source_node_id=source, target_node_id=target, owner=owner, bandwidth=bandwidth)


def make_state(
    nodes: Sequence[Node],
    links: Iterable[Tuple[int, int]],
    edges: Iterable[Edge] = (),
    rng=None,
    players: Optional[List[Player]] = None,
) -> GraphState:
    if players is None:
        bases = {n.owner: n.id for n in nodes if n.role == ROLE_BASE}
        players = [
            Player(id=0, base_node_id=bases.get(0, -1), name="Player 1 (You)"),
            Player(id=1, base_node_id=bases.get(1, -1), name="Player 2"),
        ]
    state = GraphState(list(nodes), [], players, rng=rng if rng is not None else ScriptedRandom())
    for a, b in links:
        state.connect(a, b)
    for edge in edges:
        state.add_edge(edge)
    return state


def skirmish_state(rng=None, edges: Iterable[Edge] = ()) -> GraphState:
    """
    A six-node front line::

        0(P0 base) - 1(P0) - 2(neutral) - 3(P1) - 4(P1 base)
                      \\      5(neutral, unexplored)      /
                       `-------------'  `------------'  (1-5, 5-3)
    """
    nodes = [
        make_node(0, owner=0, role=ROLE_BASE, x=0.0),
        make_node(1, owner=0, x=100.0),
        make_node(2, threshold=5.0, x=200.0),
        make_node(3, owner=1, threshold=8.0, x=300.0),
        make_node(4, owner=1, role=ROLE_BASE, x=400.0),
        make_node(5, threshold=4.0, x=200.0, y=100.0, explored=False),
    ]
    links = [(0, 1), (1, 2), (2, 3), (3, 4), (1, 5), (5, 3)]
    return make_state(nodes, links, edges=edges, rng=rng)


def is_connected(state: GraphState) -> bool:
    if not state.nodes:
        return True
    start = next(iter(state.nodes))
    seen = {start}
    queue = deque([start])
    while queue:
        current = queue.popleft()
        for neighbor in state.nodes[current].connections:
            if neighbor not in seen:
                seen.add(neighbor)
                queue.append(neighbor)
    return len(seen) == len(state.nodes)


def assert_state_invariants(state: GraphState) -> None:
    assert state.is_adjacency_symmetric(), state.adjacency_violations()

    for key, edge in state.edges.items():
        assert key == edge.key
        assert 1.0 <= edge.bandwidth <= edge.max_bandwidth

    for node in state.nodes.values():
        assert (node.owner is None) == (node.role == ROLE_NEUTRAL)
        assert 0.0 <= node.capture_progress <= 1.0
        if node.state != "CAPTURING":
            assert node.capture_progress == 0.0

    for player in state.players.values():
        base = state.nodes[player.base_node_id]
        assert base.role == ROLE_BASE
        assert base.owner == player.id
