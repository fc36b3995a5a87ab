"""
simulation_runner.py – Headless games between the AIBrain and a scripted human.

Runs N complete games without any UI.  Every applied action is fed
back through AIBrain.update_model() and every finished game through
AIBrain.record_game_end(), so a simulation run trains the Q-table,
the pattern counters and the difficulty balancer exactly like real
play would.

Usage (from CLI):
    python main.py --simulate 50

Success of an action, as reported to the learners:
    PLAY_CARDS  True unless the opponent's next move is a challenge
                that exposes it as a bluff (resolved one move later)
    CHALLENGE   True when the challenged play was a bluff
    PASS        False (passing never advances a hand)
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass

from ai.ai_core import AIBrain
from ai.data_logger import GameRecorder
from game.cards import RANK_ORDER, group_by_rank
from game.engine import GameEngine
from game.state import ActionType, GameAction, GameState, Player
from settings import (
    RANKS, RL_MAX_PLAY_COUNT, SIM_MAX_TURNS,
    SIM_HUMAN_BLUFF_RATE, SIM_HUMAN_CHALLENGE_RATE,
)

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════
#  Per-game result
# ══════════════════════════════════════════════════════════

@dataclass
class GameResult:
    """Lightweight record for one simulated game."""
    game_number: int = 0
    winner: str = ""               # "human", "ai", or "" on timeout
    turns: int = 0
    ai_challenges: int = 0
    ai_challenges_won: int = 0
    ai_bluffs: int = 0
    ai_bluffs_caught: int = 0
    human_bluffs: int = 0
    duration_sec: float = 0.0


# ══════════════════════════════════════════════════════════
#  Scripted opponent
# ══════════════════════════════════════════════════════════

class ScriptedHuman:
    """Simple rule-based stand-in for a human player."""

    def __init__(self, rng: random.Random | None = None,
                 bluff_rate: float = SIM_HUMAN_BLUFF_RATE,
                 challenge_rate: float = SIM_HUMAN_CHALLENGE_RATE):
        self._rng = rng or random.Random()
        self.bluff_rate = bluff_rate
        self.challenge_rate = challenge_rate

    def choose(self, state: GameState) -> GameAction:
        last = state.last_play
        if last is not None and last.actor is Player.AI:
            if self._rng.random() < self.challenge_rate:
                return GameAction.challenge(Player.HUMAN)

        hand = state.human_hand
        if not hand:
            return GameAction.pass_turn(Player.HUMAN)

        if self._rng.random() < self.bluff_rate:
            card = min(hand, key=lambda c: c.rank_order)
            others = [r for r in RANKS if r != card.rank]
            return GameAction.play(Player.HUMAN, [card], self._rng.choice(others))

        groups = group_by_rank(hand)
        rank = max(groups, key=lambda r: (len(groups[r]), -RANK_ORDER[r]))
        return GameAction.play(Player.HUMAN, groups[rank][:RL_MAX_PLAY_COUNT], rank)


# ══════════════════════════════════════════════════════════
#  Simulation Runner
# ══════════════════════════════════════════════════════════

class SimulationRunner:
    """Run *n_games* headless games.

    Parameters
    ----------
    brain : AIBrain
        The AI under training / evaluation.
    n_games : int
        How many games to play.
    """

    def __init__(self, brain: AIBrain, n_games: int = 10, *,
                 engine: GameEngine | None = None,
                 human: ScriptedHuman | None = None,
                 recorder: GameRecorder | None = None,
                 max_turns: int = SIM_MAX_TURNS) -> None:
        self.brain = brain
        self.n_games = n_games
        self.engine = engine or GameEngine()
        self.human = human or ScriptedHuman()
        self.recorder = recorder or GameRecorder()
        self.max_turns = max_turns
        self.results: list[GameResult] = []

    def run(self, print_summary: bool = True) -> list[GameResult]:
        """Execute all N games, then print and return results."""
        logger.info("Starting simulation: %d games", self.n_games)
        for n in range(1, self.n_games + 1):
            result = self._run_one_game(n)
            self.results.append(result)
            logger.info("Game %d/%d: winner=%s turns=%d",
                        n, self.n_games, result.winner or "none", result.turns)
        if print_summary:
            self._print_summary()
        return self.results

    def _run_one_game(self, game_number: int) -> GameResult:
        state = self.engine.initialize()
        self.recorder.start_game()
        self.brain.start_game()
        result = GameResult(game_number=game_number)
        start = time.monotonic()

        # (action, state it was played in, state after it) awaiting the reply
        pending = None

        for _ in range(self.max_turns):
            if state.is_finished:
                break
            actor = state.current_turn
            if actor is Player.HUMAN:
                action = self.human.choose(state)
            else:
                action = self.brain.make_decision(state)

            move = self.engine.try_apply(action, state)
            if not move.ok:
                logger.warning("Illegal %s move (%s), passing instead",
                               actor.value, move.error)
                action = GameAction.pass_turn(actor)
                move = self.engine.try_apply(action, state)

            before, state = state, move.state
            result.turns += 1

            if pending is not None:
                caught = action.type is ActionType.CHALLENGE and pending[0].is_bluff
                if caught and pending[0].player is Player.AI:
                    result.ai_bluffs_caught += 1
                self.brain.update_model(pending[0], not caught, pending[1], pending[2])
                pending = None

            if action.type is ActionType.PLAY_CARDS:
                self.recorder.log_move(action)
                if action.is_bluff:
                    if actor is Player.AI:
                        result.ai_bluffs += 1
                    else:
                        result.human_bluffs += 1
                pending = (action, before, state)
            elif action.type is ActionType.CHALLENGE:
                caught = before.last_play.is_bluff
                self.recorder.mark_last_play_challenged(actor.opponent, caught)
                self.recorder.log_move(action, was_challenged=False, was_successful=caught)
                if actor is Player.AI:
                    result.ai_challenges += 1
                    result.ai_challenges_won += int(caught)
                self.brain.update_model(action, caught, before, state)
            else:
                self.recorder.log_move(action)
                self.brain.update_model(action, False, before, state)

        if pending is not None:
            self.brain.update_model(pending[0], True, pending[1], pending[2])

        result.duration_sec = time.monotonic() - start
        if state.winner is not None:
            result.winner = state.winner.value
            summary = self.recorder.end_game(state.winner, state)
            self.brain.record_game_end(summary)
        else:
            logger.warning("Game %d hit the %d-turn cap", game_number, self.max_turns)

        self.brain.flush()
        return result

    # ── Summary printout ──────────────────────────────────

    def _print_summary(self) -> None:
        n = len(self.results)
        if n == 0:
            print("\nNo games completed.")
            return

        ai_wins = sum(1 for r in self.results if r.winner == Player.AI.value)
        human_wins = sum(1 for r in self.results if r.winner == Player.HUMAN.value)
        other = n - ai_wins - human_wins

        print(f"\n{'=' * 58}")
        print(f"  Simulation Results  ({n} games)")
        print(f"{'=' * 58}")
        print(f"\n  AI wins     : {ai_wins:>4d}  ({100 * ai_wins / n:.1f}%)")
        print(f"  Human wins  : {human_wins:>4d}  ({100 * human_wins / n:.1f}%)")
        if other:
            print(f"  Other       : {other:>4d}  (turn cap reached)")

        avg_turns = sum(r.turns for r in self.results) / n
        challenges = sum(r.ai_challenges for r in self.results)
        won = sum(r.ai_challenges_won for r in self.results)
        print(f"\n  Avg turns per game    : {avg_turns:.1f}")
        print(f"  AI challenges         : {challenges}  "
              f"(won {100 * won / challenges if challenges else 0.0:.1f}%)")
        bluffs = sum(r.ai_bluffs for r in self.results)
        caught = sum(r.ai_bluffs_caught for r in self.results)
        print(f"  AI bluffs             : {bluffs}  (caught {caught})")
        print(f"  Human bluffs          : {sum(r.human_bluffs for r in self.results)}")

        perf = self.brain.monitor.get_performance_metrics()
        progress = self.brain.rl.get_learning_progress()
        print(f"\n  Decision accuracy     : {perf.accuracy:.3f}")
        print(f"  Average reward        : {perf.average_reward:.3f}")
        print(f"  Q-table entries       : {progress.total_states}")
        print(f"  Errors counted        : {self.brain.get_error_stats().total_errors}")
        print(f"\n{'=' * 58}\n")
