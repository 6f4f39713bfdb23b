"""
Read-only rules deciding which actions are legal for a player.

Nothing in this module mutates the ``GraphState`` it is given. The engine and
the bot both consult these predicates before acting, and an unknown node id is
simply "not legal" rather than an error.
"""
from typing import List, Optional, Tuple

from .constants import HUMAN_PLAYER_ID
from .models import ROLE_BASE, STATE_CAPTURING, Node, Player
from .state import GraphState


def get_opponent(state: GraphState, player_id: int) -> Optional[Player]:
    """Return the first player that is not ``player_id``."""
    for player in state.players.values():
        if player.id != player_id:
            return player
    return None


def can_capture_node(state: GraphState, node_id: int, player_id: int) -> bool:
    """
    A node can be captured when it is explored, not already ours, not already
    being captured, not a base, and touches at least one node we own.
    """
    node = state.nodes.get(node_id)
    if node is None or not node.explored:
        return False

    if node.owner == player_id or node.state == STATE_CAPTURING:
        return False

    if node.role == ROLE_BASE:
        return False

    return _has_adjacent_owned(state, node, player_id)


def get_capturable_nodes(state: GraphState, player_id: int) -> List[Node]:
    return [
        state.nodes[node_id]
        for node_id in sorted(state.nodes.keys())
        if can_capture_node(state, node_id, player_id)
    ]


def is_capturable_connection(state: GraphState, source_node_id: int, target_node_id: int, player_id: int) -> bool:
    """
    Check whether ``player_id`` may open a stream from source to target.

    Fog of war only applies to the human player; other players may stream into
    unexplored nodes. A target that is already being captured is allowed so
    several streams can pile onto one node.
    """
    source = state.nodes.get(source_node_id)
    target = state.nodes.get(target_node_id)
    if source is None or target is None:
        return False

    if player_id == HUMAN_PLAYER_ID and not target.explored:
        return False

    if source.owner != player_id:
        return False

    if target.owner == player_id or target.role == ROLE_BASE:
        return False

    if target_node_id not in source.connections:
        return False

    if (source_node_id, target_node_id) in state.edges:
        return False

    return True


def get_capturable_connections(state: GraphState, player_id: int) -> List[Tuple[int, int]]:
    """All legal (source, target) pairs, owned nodes by id then connection order."""
    capturable: List[Tuple[int, int]] = []
    for node_id in sorted(state.nodes.keys()):
        owned = state.nodes[node_id]
        if owned.owner != player_id:
            continue
        for connected_id in owned.connections:
            if is_capturable_connection(state, owned.id, connected_id, player_id):
                capturable.append((owned.id, connected_id))
    return capturable


def can_attack_enemy_base(state: GraphState, player_id: int) -> bool:
    """The final attack is open once every neighbour of the enemy base is ours."""
    enemy = get_opponent(state, player_id)
    if enemy is None:
        return False

    enemy_base = state.nodes.get(enemy.base_node_id)
    if enemy_base is None:
        return False

    for conn_id in enemy_base.connections:
        conn_node = state.nodes.get(conn_id)
        if conn_node is None or conn_node.owner != player_id:
            return False
    return True


def _has_adjacent_owned(state: GraphState, node: Node, player_id: int) -> bool:
    for conn_id in node.connections:
        conn_node = state.nodes.get(conn_id)
        if conn_node is not None and conn_node.owner == player_id:
            return True
    return False
