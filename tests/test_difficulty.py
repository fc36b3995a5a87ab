
import pytest

from ai.data_logger import GameSummary, RecordedMove
from ai.difficulty_balancer import DifficultyBalancer, DifficultySettings
from ai.persistence import InMemoryStore
from game.cards import Suit, create_deck
from game.state import GameAction, GameState, Player
from tests.helpers import FakeClock, bluff, card, make_state


def human_win(moves=None, duration=60.0):
    return GameSummary(winner=Player.HUMAN, player_moves=moves or [], duration=duration)


def ai_win(moves=None):
    return GameSummary(winner=Player.AI, player_moves=moves or [], duration=30.0)


def test_no_adaptation_before_three_games():
    balancer = DifficultyBalancer()
    before = balancer.get_current_difficulty()
    balancer.update_metrics(human_win())
    balancer.update_metrics(human_win())
    assert balancer.get_current_difficulty() == before
    assert balancer.get_player_metrics().games_played == 2


def test_winning_player_sharpens_the_ai():
    balancer = DifficultyBalancer(settings=DifficultySettings(exploit_weaknesses=False))
    for _ in range(3):
        balancer.update_metrics(human_win())
    s = balancer.get_current_difficulty()
    assert s.aggressiveness == pytest.approx(0.8)
    assert s.bluff_frequency == pytest.approx(0.7)
    assert s.risk_tolerance == pytest.approx(0.8)
    assert s.challenge_threshold == pytest.approx(0.5)


def test_challenge_threshold_floor_when_player_wins():
    balancer = DifficultyBalancer(settings=DifficultySettings(exploit_weaknesses=False))
    for _ in range(10):
        balancer.update_metrics(human_win())
    s = balancer.get_current_difficulty()
    assert s.challenge_threshold == pytest.approx(0.4)
    assert s.bluff_frequency == 1.0


def test_exploit_caught_bluffer():
    caught = RecordedMove(bluff(), was_challenged=True, was_successful=False)
    good_challenge = RecordedMove(GameAction.challenge(Player.HUMAN), was_successful=True)
    balancer = DifficultyBalancer()
    for _ in range(3):
        balancer.update_metrics(ai_win([caught, good_challenge]))
    m = balancer.get_player_metrics()
    assert m.win_rate == 0.0
    assert m.bluff_success_rate == 0.0
    assert m.challenge_success_rate == 1.0
    s = balancer.get_current_difficulty()
    assert s.challenge_threshold == pytest.approx(0.4)
    assert s.bluff_frequency == pytest.approx(0.6)


def test_exploit_poor_challenger_and_card_dumper():
    bad_challenge = RecordedMove(GameAction.challenge(Player.HUMAN), was_successful=False)
    dump = RecordedMove(GameAction.play(Player.HUMAN, [card(r) for r in "2345"], "2"))
    clean = RecordedMove(bluff(), was_challenged=False)
    balancer = DifficultyBalancer()
    for _ in range(3):
        balancer.update_metrics(ai_win([bad_challenge, dump, clean, dump]))
    m = balancer.get_player_metrics()
    assert m.average_cards_per_play > 2
    s = balancer.get_current_difficulty()
    assert s.bluff_frequency == pytest.approx(0.8)
    assert s.challenge_threshold == pytest.approx(0.45)


def test_time_to_win_only_counts_player_wins():
    balancer = DifficultyBalancer()
    balancer.update_metrics(human_win(duration=100.0))
    balancer.update_metrics(ai_win())
    balancer.update_metrics(human_win(duration=50.0))
    assert balancer.get_player_metrics().average_time_to_win == pytest.approx(75.0)


def test_summary_without_duration_uses_clock():
    clock = FakeClock()
    balancer = DifficultyBalancer(clock=clock)
    balancer.start_game()
    clock.advance(42.0)
    balancer.update_metrics(GameSummary(winner=Player.HUMAN))
    assert balancer.get_player_metrics().average_time_to_win == pytest.approx(42.0)


def test_metrics_persist():
    store = InMemoryStore()
    DifficultyBalancer(store).update_metrics(human_win())
    assert DifficultyBalancer(store).get_player_metrics().games_played == 1


def test_modifiers_normal_phase():
    deck = create_deck()
    state = GameState(human_hand=tuple(deck[:26]), ai_hand=tuple(deck[26:]))
    mods = DifficultyBalancer().get_difficulty_modifiers(state)
    assert mods.phase == "normal"
    assert mods.bluff_probability_multiplier == pytest.approx(0.6)
    assert mods.challenge_threshold_multiplier == pytest.approx(0.6)
    assert mods.risk_tolerance_multiplier == pytest.approx(0.7)


def test_modifiers_endgame_ahead_and_behind():
    ai = [card(r, Suit.SPADES) for r in ("2", "3", "4")]
    human = [card(r) for r in ("2", "3", "4", "5", "6")]
    ahead = DifficultyBalancer().get_difficulty_modifiers(make_state(human, ai))
    assert ahead.phase == "endgame"
    assert ahead.bluff_probability_multiplier == pytest.approx(0.6 * 0.7)
    assert ahead.challenge_threshold_multiplier == pytest.approx(0.6 * 1.2)

    behind = DifficultyBalancer().get_difficulty_modifiers(make_state(ai, human))
    assert behind.bluff_probability_multiplier == pytest.approx(0.6 * 1.3)
    assert behind.risk_tolerance_multiplier == pytest.approx(0.7 * 1.2)


def test_modifiers_critical_are_clamped():
    ai = [card("2", Suit.SPADES)]
    human = [card(r) for r in ("2", "3", "4", "5", "6", "7", "8", "9", "10", "J")]
    settings = DifficultySettings(bluff_frequency=1.0, challenge_threshold=0.3, risk_tolerance=1.0)
    mods = DifficultyBalancer(settings=settings).get_difficulty_modifiers(make_state(human, ai))
    assert mods.phase == "critical"
    assert mods.bluff_probability_multiplier == 1.0
    assert mods.risk_tolerance_multiplier == 1.0
    assert mods.challenge_threshold_multiplier == pytest.approx(0.3)
