import copy
import random

import pytest

from packet_royale.constants import BOT_PLAYER_ID, HUMAN_PLAYER_ID
from packet_royale.game_engine import GameEngine, GameValidationError
from packet_royale.models import STATE_CAPTURING, STATE_UNDER_ATTACK

from helpers import ScriptedRandom, make_edge, skirmish_state


def _snapshot(state):
    return copy.deepcopy((state.nodes, state.edges, state.players))


class TestValidation:
    def test_validate_player(self):
        engine = GameEngine(skirmish_state())
        assert engine.validate_player(HUMAN_PLAYER_ID).id == HUMAN_PLAYER_ID
        with pytest.raises(GameValidationError):
            engine.validate_player(7)
        engine.state.players[HUMAN_PLAYER_ID].is_alive = False
        with pytest.raises(GameValidationError):
            engine.validate_player(HUMAN_PLAYER_ID)

    def test_validate_node_exists(self):
        engine = GameEngine(skirmish_state())
        assert engine.validate_node_exists(2).id == 2
        with pytest.raises(GameValidationError):
            engine.validate_node_exists(99)


class TestInitiateCaptureViaEdge:
    """Opening streams between adjacent nodes."""

    def test_opens_stream_and_starts_capture(self):
        state = skirmish_state(rng=ScriptedRandom(uniform_value=4.5))
        engine = GameEngine(state)

        assert engine.initiate_capture_via_edge(1, 2, HUMAN_PLAYER_ID)

        target = state.nodes[2]
        assert target.state == STATE_CAPTURING
        assert target.capture_progress == 0.0
        edge = state.edges[(1, 2)]
        assert edge.owner == HUMAN_PLAYER_ID
        assert edge.bandwidth == 4.5
        assert edge.max_bandwidth == state.max_bandwidth
        assert edge.packets_sent == 0
        assert edge.packets_lost == 0
        assert edge.active

    def test_real_rng_bandwidth_range(self):
        state = skirmish_state()
        state.rng = random.Random(3)
        engine = GameEngine(state)
        assert engine.initiate_capture_via_edge(3, 2, BOT_PLAYER_ID)
        assert 3.0 <= state.edges[(3, 2)].bandwidth <= 8.0

    def test_joining_keeps_progress(self):
        state = skirmish_state(edges=[make_edge(3, 2, BOT_PLAYER_ID, 3.0)])
        state.nodes[2].state = STATE_CAPTURING
        state.nodes[2].capture_progress = 0.4
        engine = GameEngine(state)

        assert engine.initiate_capture_via_edge(1, 2, HUMAN_PLAYER_ID)

        assert state.nodes[2].capture_progress == 0.4
        assert {(1, 2), (3, 2)} <= set(state.edges)

    @pytest.mark.parametrize(
        "source, target, player_id",
        [
            (1, 5, HUMAN_PLAYER_ID),  # fogged
            (0, 2, HUMAN_PLAYER_ID),  # not adjacent
            (2, 3, HUMAN_PLAYER_ID),  # source not owned
            (3, 4, BOT_PLAYER_ID),  # own base
            (1, 42, HUMAN_PLAYER_ID),  # unknown target
            (1, 2, 9),  # unknown player
        ],
    )
    def test_rejected_action_leaves_state_untouched(self, source, target, player_id):
        state = skirmish_state()
        engine = GameEngine(state)
        before = _snapshot(state)

        assert not engine.initiate_capture_via_edge(source, target, player_id)
        assert _snapshot(state) == before

    def test_duplicate_stream_rejected(self):
        state = skirmish_state()
        engine = GameEngine(state)
        assert engine.initiate_capture_via_edge(1, 2, HUMAN_PLAYER_ID)
        before = _snapshot(state)
        assert not engine.initiate_capture_via_edge(1, 2, HUMAN_PLAYER_ID)
        assert _snapshot(state) == before

    def test_defeated_player_cannot_act(self):
        state = skirmish_state()
        state.players[HUMAN_PLAYER_ID].is_alive = False
        engine = GameEngine(state)
        assert not engine.initiate_capture_via_edge(1, 2, HUMAN_PLAYER_ID)
        assert state.edges == {}


class TestInitiateCapture:
    def test_picks_adjacent_owned_source(self):
        state = skirmish_state()
        engine = GameEngine(state)
        assert engine.initiate_capture(2, HUMAN_PLAYER_ID)
        assert list(state.edges) == [(1, 2)]

    def test_rejects_uncapturable_node(self):
        state = skirmish_state()
        engine = GameEngine(state)
        assert not engine.initiate_capture(5, HUMAN_PLAYER_ID)
        assert not engine.initiate_capture(4, HUMAN_PLAYER_ID)
        assert not engine.initiate_capture(99, HUMAN_PLAYER_ID)
        assert state.edges == {}


class TestLaunchAttack:
    """Final attack on a surrounded base."""

    def test_rejected_until_surrounded(self):
        state = skirmish_state()
        engine = GameEngine(state)
        assert not engine.launch_attack(HUMAN_PLAYER_ID)
        assert state.players[BOT_PLAYER_ID].is_alive

    def test_defeats_opponent_once(self):
        state = skirmish_state()
        state.nodes[3].owner = HUMAN_PLAYER_ID
        engine = GameEngine(state)

        assert engine.launch_attack(HUMAN_PLAYER_ID)

        bot = state.players[BOT_PLAYER_ID]
        assert not bot.is_alive
        assert state.nodes[4].state == STATE_UNDER_ATTACK
        assert state.nodes[4].owner == BOT_PLAYER_ID
        events = state.pop_pending_events()
        assert [e["type"] for e in events] == ["baseDefeated"]
        assert events[0]["defeatedId"] == BOT_PLAYER_ID

        assert not engine.launch_attack(HUMAN_PLAYER_ID)
        assert state.pop_pending_events() == []

    def test_defeated_player_cannot_attack(self):
        state = skirmish_state()
        state.nodes[1].owner = BOT_PLAYER_ID
        state.players[BOT_PLAYER_ID].is_alive = False
        engine = GameEngine(state)
        assert not engine.launch_attack(BOT_PLAYER_ID)
        assert state.players[HUMAN_PLAYER_ID].is_alive


class TestTicking:
    def test_tick_reports_defeat_winner(self):
        state = skirmish_state()
        state.nodes[3].owner = HUMAN_PLAYER_ID
        engine = GameEngine(state)
        assert engine.simulate_tick() is None

        engine.launch_attack(HUMAN_PLAYER_ID)
        assert engine.simulate_tick() == HUMAN_PLAYER_ID
        assert not engine.game_active
        assert engine.winner_id == HUMAN_PLAYER_ID

        # Finished games no longer advance
        tick = state.current_tick
        assert engine.simulate_tick() == HUMAN_PLAYER_ID
        assert state.current_tick == tick

    def test_node_cap_only_when_enabled(self):
        state = skirmish_state()
        state.players[HUMAN_PLAYER_ID].max_nodes = 2
        engine = GameEngine(state)
        assert engine.simulate_tick() is None
        assert engine.simulate_tick(use_node_cap=True) == HUMAN_PLAYER_ID
