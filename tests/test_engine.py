import random

import pytest

from game.cards import Suit, create_deck, shuffle_deck, rank_above, is_high_rank
from game.engine import GameEngine
from game.errors import InvalidMove, NoChallengeTarget
from game.state import ActionType, GameAction, GameState, GameStatus, LastPlay, Player
from tests.helpers import card, make_state


def engine(seed=7):
    return GameEngine(random.Random(seed))


def test_deck_has_52_unique_cards():
    deck = create_deck()
    assert len(deck) == 52
    assert len(set(deck)) == 52


def test_shuffle_is_a_permutation():
    deck = create_deck()
    shuffled = shuffle_deck(deck, random.Random(1))
    assert sorted(map(str, shuffled)) == sorted(map(str, deck))
    assert deck == create_deck()


def test_rank_helpers():
    assert rank_above("K") == "A"
    assert rank_above("A", 2) == "A"
    assert rank_above("5", 2) == "7"
    assert is_high_rank("10")
    assert not is_high_rank("9")


def test_card_rejects_unknown_rank():
    with pytest.raises(ValueError):
        card("1")


def test_initialize_deals_26_each_human_first():
    state = engine().initialize()
    assert len(state.human_hand) == 26
    assert state.ai_hand_count == 26
    assert state.center_pile == ()
    assert state.current_turn is Player.HUMAN
    assert state.last_play is None
    assert state.status is GameStatus.PLAYING
    assert len(set(state.human_hand + state.ai_hand)) == 52


def test_play_moves_cards_to_pile_and_passes_turn():
    eng = engine()
    state = eng.initialize()
    played = state.human_hand[:2]
    new = eng.apply(GameAction.play(Player.HUMAN, played, "7"), state)

    assert len(new.human_hand) == 24
    assert new.center_pile[-2:] == played
    assert new.last_play == LastPlay(Player.HUMAN, "7", played)
    assert new.current_turn is Player.AI
    assert new.total_cards == 52
    # copy-on-write
    assert len(state.human_hand) == 26


def test_play_with_unheld_card_is_invalid():
    eng = engine()
    state = eng.initialize()
    with pytest.raises(InvalidMove):
        eng.apply(GameAction.play(Player.HUMAN, [state.ai_hand[0]], "2"), state)


def test_play_rule_violations_are_invalid():
    eng = engine()
    state = eng.initialize()
    c = state.human_hand[0]
    with pytest.raises(InvalidMove):
        eng.apply(GameAction.play(Player.HUMAN, [], "2"), state)
    with pytest.raises(InvalidMove):
        eng.apply(GameAction.play(Player.HUMAN, [c, c], c.rank), state)
    with pytest.raises(InvalidMove):
        eng.apply(GameAction.play(Player.HUMAN, [c], "1"), state)
    with pytest.raises(InvalidMove):
        eng.apply(GameAction.play(Player.AI, [state.ai_hand[0]], "2"), state)


def test_unrecognised_action_is_invalid():
    eng = engine()
    with pytest.raises(InvalidMove):
        eng.apply("PLAY", eng.initialize())


def test_challenge_without_last_play():
    eng = engine()
    state = eng.initialize()
    with pytest.raises(NoChallengeTarget):
        eng.apply(GameAction.challenge(Player.HUMAN), state)


def test_challenge_own_play():
    eng = engine()
    state = eng.initialize()
    state = eng.apply(GameAction.play(Player.HUMAN, state.human_hand[:1], "2"), state)
    state = GameState(state.human_hand, state.ai_hand, state.center_pile,
                      Player.HUMAN, state.last_play)
    with pytest.raises(NoChallengeTarget):
        eng.apply(GameAction.challenge(Player.HUMAN), state)


def test_truthful_play_challenged_challenger_takes_pile():
    sevens = [card("7", Suit.HEARTS), card("7", Suit.SPADES)]
    human = sevens + [card("3")]
    ai = [card("9"), card("K")]
    state = make_state(human, ai, turn=Player.HUMAN)
    eng = engine()

    state = eng.apply(GameAction.play(Player.HUMAN, sevens, "7"), state)
    pile_size = len(state.center_pile)
    state = eng.apply(GameAction.challenge(Player.AI), state)

    assert state.ai_hand_count == 2 + pile_size
    assert state.center_pile == ()
    assert state.last_play is None
    assert state.current_turn is Player.HUMAN
    assert state.total_cards == 52


def test_bluff_challenged_actor_takes_pile():
    human = [card("2"), card("5")]
    ai = [card("9"), card("K")]
    state = make_state(human, ai, turn=Player.HUMAN)
    eng = engine()

    state = eng.apply(GameAction.play(Player.HUMAN, [card("2")], "A"), state)
    pile_size = len(state.center_pile)
    hand_before = len(state.human_hand)
    state = eng.apply(GameAction.challenge(Player.AI), state)

    assert len(state.human_hand) == hand_before + pile_size
    assert state.center_pile == ()
    assert state.last_play is None
    assert state.current_turn is Player.AI


def test_pass_clears_last_play_and_keeps_pile():
    eng = engine()
    state = eng.initialize()
    state = eng.apply(GameAction.play(Player.HUMAN, state.human_hand[:1], "4"), state)
    pile = state.center_pile
    state = eng.apply(GameAction.pass_turn(Player.AI), state)
    assert state.last_play is None
    assert state.center_pile == pile
    assert state.current_turn is Player.HUMAN


def test_ai_emptying_hand_wins():
    ai_card = card("Q")
    state = make_state([card("3"), card("4")], [ai_card], turn=Player.AI)
    state = engine().apply(GameAction.play(Player.AI, [ai_card], "Q"), state)
    assert state.status is GameStatus.FINISHED
    assert state.winner is Player.AI
    assert engine().check_winner(state) is Player.AI


def test_no_moves_after_game_finished():
    ai_card = card("Q")
    eng = engine()
    state = make_state([card("3")], [ai_card], turn=Player.AI)
    state = eng.apply(GameAction.play(Player.AI, [ai_card], "Q"), state)
    with pytest.raises(InvalidMove):
        eng.apply(GameAction.pass_turn(Player.HUMAN), state)


def test_try_apply_returns_error_instead_of_raising():
    eng = engine()
    state = eng.initialize()
    result = eng.try_apply(GameAction.challenge(Player.HUMAN), state)
    assert not result.ok
    assert isinstance(result.error, NoChallengeTarget)
    assert result.state is None

    result = eng.try_apply(GameAction.pass_turn(Player.HUMAN), state)
    assert result.ok
    assert result.state.current_turn is Player.AI


def test_card_conservation_over_random_games():
    for seed in range(5):
        rng = random.Random(seed)
        eng = GameEngine(rng)
        state = eng.initialize()
        for _ in range(300):
            if state.is_finished:
                break
            actor = state.current_turn
            hand = state.hand_of(actor)
            roll = rng.random()
            if state.last_play and state.last_play.actor is not actor and roll < 0.3:
                action = GameAction.challenge(actor)
            elif roll < 0.4:
                action = GameAction.pass_turn(actor)
            else:
                cards = rng.sample(hand, min(len(hand), rng.randint(1, 3)))
                action = GameAction.play(actor, cards, rng.choice(cards).rank)
            state = eng.apply(action, state)
            assert state.total_cards == 52
            assert action.type in ActionType


def test_public_view_hides_ai_cards():
    view = engine().initialize().public_view()
    assert view["ai_hand_count"] == 26
    assert "ai_hand" not in view
    assert len(view["human_hand"]) == 26
