"""
settings.py - Game and AI constants for the Bluff opponent.

All configurable values live here so they're easy to tweak
and easy to reference from any module.
"""

# ── Deck ──────────────────────────────────────────────────
SUITS = ("hearts", "diamonds", "clubs", "spades")
RANKS = ("2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K", "A")
DECK_SIZE = len(SUITS) * len(RANKS)     # 52
HAND_SIZE = DECK_SIZE // 2              # 26 each
HIGH_RANK_INDEX = RANKS.index("10")     # "10" and above count as high

# ── Game stages (by cards left in both hands) ─────────────
STAGE_EARLY_ABOVE = 40
STAGE_MID_ABOVE = 20

# ── Pattern recognition ───────────────────────────────────
PATTERN_HISTORY_LIMIT = 20
PATTERN_PRESSURE_HAND = 5               # hand size at or below = under pressure
PATTERN_STREAK_LENGTH = 3               # consecutive plays before a challenge

# ── Reinforcement learning (tabular Q-learning) ───────────
RL_LEARNING_RATE = 0.1                  # alpha
RL_DISCOUNT_FACTOR = 0.9                # gamma
RL_EXPLORATION_RATE = 0.2               # epsilon
RL_REWARD_HISTORY = 100
RL_MAX_PLAY_COUNT = 4                   # four of a kind is the most a rank can hold

# ── Adaptive difficulty ───────────────────────────────────
DIFFICULTY_MIN_GAMES = 3
DIFFICULTY_DEFAULTS = {
    "aggressiveness": 0.7,
    "bluff_frequency": 0.6,
    "challenge_threshold": 0.6,
    "risk_tolerance": 0.7,
    "adaptive_speed": 0.8,
    "exploit_weaknesses": True,
}
DIFFICULTY_STEP = 0.1
DIFFICULTY_CHALLENGE_FLOOR = 0.4        # floor when the player is winning
DIFFICULTY_EXPLOIT_FLOOR = 0.3          # floor for weakness exploitation
DIFFICULTY_WEAKNESS_RATE = 0.4
DIFFICULTY_ENDGAME_CARDS = 10
DIFFICULTY_CRITICAL_CARDS = 2

# ── Personalities ─────────────────────────────────────────
PERSONALITY_AGGRESSIVE = {
    "bluff_frequency": 0.7,
    "challenge_threshold": 0.3,
    "risk_tolerance": 0.8,
    "adaptive_rate": 0.5,
}
PERSONALITY_CONSERVATIVE = {
    "bluff_frequency": 0.3,
    "challenge_threshold": 0.7,
    "risk_tolerance": 0.3,
    "adaptive_rate": 0.3,
}
PERSONALITY_BALANCED = {
    "bluff_frequency": 0.5,
    "challenge_threshold": 0.5,
    "risk_tolerance": 0.5,
    "adaptive_rate": 0.5,
}
# bluff / challenge / risk are re-drawn on every read
PERSONALITY_UNPREDICTABLE_ADAPTIVE_RATE = 0.8
DEFAULT_PERSONALITY = "balanced"

# ── Cache (seconds) ───────────────────────────────────────
CACHE_DEFAULT_TTL = 5 * 60
CACHE_DECISION_TTL = 30
CACHE_PREDICTION_TTL = 2 * 60
CACHE_MAX_ENTRIES = 1000
CACHE_SWEEP_INTERVAL = 60

# ── Error recovery ────────────────────────────────────────
RECOVERY_SERVICES = ("prediction", "strategy", "learning",
                     "personality", "cache", "monitoring")
RECOVERY_FAILURE_THRESHOLD = 5
RECOVERY_TIMEOUT = 30.0
RETRY_MAX_ATTEMPTS = 3
RETRY_BASE_DELAY = 1.0

# ── Decision orchestrator ─────────────────────────────────
RECENT_MOVES_LIMIT = 10
BLUFF_CHANCE_SCALE = 0.8                # x bluff probability multiplier
BLUFF_RANK_JUMP = 2                     # declared ranks above the real one
LEAD_BLUFF_MAX_CHALLENGE = 0.5
FOLLOW_BLUFF_MAX_CHALLENGE = 0.7
RISKY_BLUFF_TOLERANCE = 0.7             # above this, bluff with two cards

# Weights of the challenge-time bluff estimate
BLUFF_WEIGHT_CARDS_PLAYED = 0.3
BLUFF_WEIGHT_HAND_LEFT = 0.2
BLUFF_WEIGHT_PATTERN = 0.3
BLUFF_WEIGHT_PLAYER = 0.2

# Chat signal contributions
CHAT_DETECTED_BLUFF_WEIGHT = 0.2
CHAT_EMOTION_BONUS = {
    "nervous": 0.15,
    "aggressive": 0.10,
    "confident": 0.10,
}

# ── Reward shaping ────────────────────────────────────────
REWARD_CHALLENGE_MULT = 1.5
REWARD_PER_CARD = 0.2
REWARD_BLUFF_BONUS = 1.3
REWARD_PROGRESS_WEIGHT = 0.5

# ── Monitoring ────────────────────────────────────────────
MONITOR_HISTORY_LIMIT = 1000

# ── Simulation ────────────────────────────────────────────
SIM_MAX_TURNS = 400                     # safety cap per game
SIM_HUMAN_BLUFF_RATE = 0.3
SIM_HUMAN_CHALLENGE_RATE = 0.25
