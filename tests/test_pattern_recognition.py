from ai.pattern_recognition import PatternRecognition, PatternConfig
from ai.persistence import InMemoryStore
from game.cards import Suit
from game.state import GameAction, Player
from tests.helpers import bluff, card, make_state, truthful


def small_hand_state():
    return make_state([card("2", Suit.CLUBS), card("3")], [card("9")], turn=Player.HUMAN)


def big_hand_state():
    human = [card(r) for r in ("2", "3", "4", "5", "6", "7", "8")] + [card("2", Suit.CLUBS)]
    return make_state(human, [card("9", Suit.SPADES)], turn=Player.HUMAN)


def test_empty_history_predicts_zero():
    prediction = PatternRecognition().get_prediction()
    assert prediction.likely_to_bluff == 0
    assert prediction.likely_to_challenge == 0


def test_bluff_triggers():
    patterns = PatternRecognition()
    patterns.analyze_patterns(bluff(declared="A"), small_hand_state())
    assert patterns.bluff_triggers.under_pressure == 1
    assert patterns.bluff_triggers.high_cards == 1

    patterns.analyze_patterns(bluff(declared="5"), big_hand_state())
    assert patterns.bluff_triggers.low_cards == 1
    assert patterns.bluff_triggers.under_pressure == 1

    prediction = patterns.get_prediction()
    assert prediction.likely_to_bluff == 3 / 2


def test_truthful_play_is_not_a_trigger():
    patterns = PatternRecognition()
    patterns.analyze_patterns(truthful(), big_hand_state())
    assert patterns.bluff_triggers.total == 0
    assert patterns.history_length == 1


def test_challenge_after_streak_of_plays():
    patterns = PatternRecognition()
    state = big_hand_state()
    for _ in range(3):
        patterns.analyze_patterns(truthful(), state)
    patterns.analyze_patterns(GameAction.challenge(Player.HUMAN), state)
    assert patterns.challenge_triggers.after_consecutive_plays == 1
    assert patterns.get_prediction().likely_to_challenge == 1 / 4


def test_challenge_after_short_streak_not_counted():
    patterns = PatternRecognition()
    state = big_hand_state()
    patterns.analyze_patterns(truthful(), state)
    patterns.analyze_patterns(GameAction.pass_turn(Player.HUMAN), state)
    patterns.analyze_patterns(truthful(), state)
    patterns.analyze_patterns(truthful(), state)
    patterns.analyze_patterns(GameAction.challenge(Player.HUMAN), state)
    assert patterns.challenge_triggers.total == 0


def test_history_is_bounded():
    patterns = PatternRecognition(config=PatternConfig(history_limit=20))
    state = big_hand_state()
    for _ in range(30):
        patterns.analyze_patterns(GameAction.pass_turn(Player.HUMAN), state)
    assert patterns.history_length == 20


def test_counters_survive_reload():
    store = InMemoryStore()
    patterns = PatternRecognition(store)
    patterns.analyze_patterns(bluff(declared="A"), small_hand_state())

    reloaded = PatternRecognition(store)
    assert reloaded.bluff_triggers.high_cards == 1
    assert reloaded.history_length == 1


def test_reset_clears_everything():
    patterns = PatternRecognition()
    patterns.analyze_patterns(bluff(), small_hand_state())
    patterns.reset()
    assert patterns.history_length == 0
    assert patterns.bluff_triggers.total == 0
