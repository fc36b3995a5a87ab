"""
main.py - Entry point for the Bluff AI opponent.

Integrates all systems:
- Game rules engine (game/engine.py)
- Pattern recognition / adaptive learning / behaviour analysis (ai/)
- Q-learning policy (ai/reinforcement_learning.py)
- Adaptive difficulty (ai/difficulty_balancer.py)
- Personality presets (ai/personality.py)
- Decision cache, circuit breakers, error handling (systems/)
- Model monitoring and reward plots (ai/model_monitoring.py)

Run:  python main.py --simulate 50 --data-dir data --plot reward_trend.png
"""
VERSION = "1.0.0"

import argparse
import logging
import random

logger = logging.getLogger(__name__)

# ── Project imports ───────────────────────────────────────
from ai.ai_core import AIBrain
from ai.data_logger import GameRecorder
from ai.persistence import JsonFileStore
from ai.personality import PERSONALITY_NAMES
from ai.simulation_runner import ScriptedHuman, SimulationRunner
from game.engine import GameEngine
from settings import DEFAULT_PERSONALITY, SIM_MAX_TURNS


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Train and evaluate the Bluff AI opponent in headless games."
    )
    parser.add_argument("--simulate", type=int, default=10, metavar="N",
                        help="Number of games to simulate (default 10)")
    parser.add_argument("--data-dir", default=None,
                        help="Directory for learned data (default <project>/data)")
    parser.add_argument("--personality", choices=PERSONALITY_NAMES,
                        default=DEFAULT_PERSONALITY, help="AI personality preset")
    parser.add_argument("--seed", type=int, help="Optional RNG seed")
    parser.add_argument("--max-turns", type=int, default=SIM_MAX_TURNS,
                        help="Turn cap per game")
    parser.add_argument("--csv", default=None, help="Append one row per game to this CSV")
    parser.add_argument("--plot", default=None, metavar="PATH",
                        help="Save a reward-trend graph to PATH")
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    rng = random.Random(args.seed)
    store = JsonFileStore(args.data_dir)
    brain = AIBrain.build(store, personality=args.personality, rng=rng, autosave=False)

    runner = SimulationRunner(
        brain,
        n_games=args.simulate,
        engine=GameEngine(rng),
        human=ScriptedHuman(rng),
        recorder=GameRecorder(args.csv),
        max_turns=args.max_turns,
    )
    try:
        runner.run()
        if args.plot:
            if brain.monitor.plot_reward_trend(args.plot) is None:
                logger.info("No rewards recorded, skipping plot")
    finally:
        brain.shutdown()
    return 0


# ── Run ───────────────────────────────────────────────────
if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    raise SystemExit(main())
