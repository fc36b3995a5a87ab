import os

import pytest

from ai.model_monitoring import InsightSummary, ModelMonitor, decision_confidence
from ai.persistence import InMemoryStore, JsonFileStore
from game.state import GameAction, Player
from tests.helpers import bluff, card, make_state, truthful

INSIGHTS = InsightSummary(bluff_probability=0.8, challenge_probability=0.25,
                          pattern_confidence=0.6, risk_level=0.4)


def state():
    return make_state([card("2")], [card("9"), card("K")])


def test_confidence_heuristic():
    assert decision_confidence(INSIGHTS, GameAction.challenge(Player.AI)) == pytest.approx(0.8 * 0.6)
    assert decision_confidence(INSIGHTS, bluff(Player.AI)) == pytest.approx(0.75 * 0.4)
    assert decision_confidence(INSIGHTS, truthful(Player.AI)) == 0.6
    assert decision_confidence(INSIGHTS, GameAction.pass_turn(Player.AI)) == 0.6


def test_record_decision_snapshots_state():
    monitor = ModelMonitor(clock=lambda: 5.0)
    metrics = monitor.record_decision(state(), INSIGHTS, bluff(Player.AI), ["PASS"])
    assert metrics.timestamp == 5.0
    assert metrics.game_state["ai_cards"] == 2
    assert metrics.game_state["current_turn"] == "ai"
    assert metrics.decision_type == "PLAY_CARDS"
    assert metrics.is_bluff
    assert metrics.alternatives == ("PASS",)
    assert monitor.get_performance_metrics().total_decisions == 1


def test_outcome_attaches_once_to_latest_decision():
    monitor = ModelMonitor()
    monitor.record_outcome(True, 1.0)          # nothing recorded yet
    assert monitor.get_performance_metrics().total_outcomes == 0

    monitor.record_decision(state(), INSIGHTS, GameAction.pass_turn(Player.AI))
    monitor.record_outcome(True, 1.0)
    monitor.record_outcome(False, -5.0)
    perf = monitor.get_performance_metrics()
    assert perf.total_outcomes == 1
    assert perf.average_reward == 1.0
    assert monitor.get_recent_decisions(1)[0].outcome.reward == 1.0


def test_rates_are_split_by_decision_kind():
    monitor = ModelMonitor()
    for action, ok, reward in [
        (bluff(Player.AI), True, 2.0),
        (bluff(Player.AI), False, -1.0),
        (truthful(Player.AI), False, 0.0),
        (GameAction.challenge(Player.AI), True, 3.0),
    ]:
        monitor.record_decision(state(), INSIGHTS, action)
        monitor.record_outcome(ok, reward)

    perf = monitor.get_performance_metrics()
    assert perf.bluff_success_rate == pytest.approx(0.5)
    assert perf.challenge_success_rate == 1.0
    assert perf.accuracy == pytest.approx(0.5)
    assert perf.average_reward == pytest.approx(1.0)


def test_game_results_and_distribution():
    monitor = ModelMonitor()
    monitor.record_game_result(True)
    monitor.record_game_result(False)
    monitor.record_decision(state(), INSIGHTS, GameAction.challenge(Player.AI))
    monitor.record_decision(state(), INSIGHTS, GameAction.challenge(Player.AI))
    perf = monitor.get_performance_metrics()
    assert (perf.games_played, perf.games_won) == (2, 1)
    assert monitor.get_decision_distribution() == {
        "PLAY_CARDS": 0, "CHALLENGE": 2, "PASS": 0,
    }


def test_history_is_bounded():
    monitor = ModelMonitor(history_limit=3)
    for _ in range(5):
        monitor.record_decision(state(), INSIGHTS, GameAction.pass_turn(Player.AI))
    assert len(monitor.get_recent_decisions(10)) == 3
    assert monitor.get_recent_decisions(0) == []
    assert monitor.get_performance_metrics().total_decisions == 5


def test_autosave_toggle():
    store = InMemoryStore()
    ModelMonitor(store).record_game_result(True)
    assert store.load("model_history")["performance"]["games_won"] == 1

    quiet = InMemoryStore()
    monitor = ModelMonitor(quiet, autosave=False)
    monitor.record_decision(state(), INSIGHTS, GameAction.pass_turn(Player.AI))
    assert quiet.load("model_history") is None
    monitor.save()
    assert len(quiet.load("model_history")["decisions"]) == 1


def test_restart_restores_history_and_rates(tmp_path):
    store = JsonFileStore(str(tmp_path))
    first = ModelMonitor(store)
    for ok in (True, False):
        first.record_decision(state(), INSIGHTS, bluff(Player.AI))
        first.record_outcome(ok, 1.0)

    second = ModelMonitor(store)
    restored = second.get_recent_decisions()
    assert len(restored) == 2
    assert restored[0].insights == INSIGHTS
    assert restored[0].alternatives == ()
    assert restored[1].outcome.successful is False

    second.record_decision(state(), INSIGHTS, bluff(Player.AI))
    second.record_outcome(True, 1.0)
    perf = second.get_performance_metrics()
    assert perf.total_decisions == 3
    assert perf.bluff_success_rate == pytest.approx(2 / 3)


def test_load_skips_malformed_decisions_and_counts_old_saves():
    good = {
        "timestamp": 1.0, "game_state": {}, "decision_type": "CHALLENGE",
        "insights": {"bluff_probability": 0.5, "challenge_probability": 0.5,
                     "pattern_confidence": 0.5, "risk_level": 0.5},
        "confidence": 0.25, "alternatives": ["PASS"],
        "outcome": {"successful": False, "reward": -1.0},
    }
    store = InMemoryStore({"model_history": {
        "decisions": [good, {"timestamp": 2.0}],
        "performance": {"total_decisions": 2, "total_outcomes": 1, "unknown": 7},
    }})
    monitor = ModelMonitor(store)
    assert len(monitor.get_recent_decisions()) == 1
    assert monitor.get_performance_metrics().total_decisions == 2

    monitor.record_decision(state(), INSIGHTS, GameAction.challenge(Player.AI))
    monitor.record_outcome(True, 3.0)
    assert monitor.get_performance_metrics().challenge_success_rate == pytest.approx(0.5)


def test_plot_reward_trend(tmp_path):
    monitor = ModelMonitor()
    assert monitor.plot_reward_trend(str(tmp_path / "none.png")) is None

    for reward in (1.0, -0.5, 2.0):
        monitor.record_decision(state(), INSIGHTS, GameAction.pass_turn(Player.AI))
        monitor.record_outcome(reward > 0, reward)
    path = monitor.plot_reward_trend(str(tmp_path / "trend.png"))
    assert path is not None
    assert os.path.getsize(path) > 0
