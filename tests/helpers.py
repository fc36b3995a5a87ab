"""Shared builders for the test-suite."""

from game.cards import Card, Suit, create_deck
from game.state import GameAction, GameState, LastPlay, Player


def card(rank, suit=Suit.HEARTS):
    return Card(suit, rank)


def make_state(human, ai, last_play=None, turn=Player.AI):
    """State with the given hands; every other card of the deck is on the pile."""
    played = tuple(last_play.actual_cards) if last_play else ()
    used = set(human) | set(ai) | set(played)
    rest = tuple(c for c in create_deck() if c not in used)
    return GameState(
        human_hand=tuple(human),
        ai_hand=tuple(ai),
        center_pile=rest + played,
        current_turn=turn,
        last_play=last_play,
    )


def human_play(cards, declared):
    return LastPlay(Player.HUMAN, declared, tuple(cards))


def bluff(player=Player.HUMAN, declared="A"):
    return GameAction.play(player, [card("2", Suit.CLUBS)], declared)


def truthful(player=Player.HUMAN, rank="7"):
    return GameAction.play(player, [card(rank, Suit.CLUBS)], rank)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds
