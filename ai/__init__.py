"""
ai package – Adaptive decision engine for the Bluff opponent.

Modules:
    ai_core               – Central brain (AIBrain) that orchestrates all sub-systems
    pattern_recognition   – Bluff / challenge trigger counters over recent moves
    adaptive_learning     – Per-stage success counts and strategy recommendation
    behavior_analyzer     – Player style detection
    reinforcement_learning – Tabular Q-learning policy
    difficulty_balancer   – Cross-game difficulty adaptation and phase modifiers
    personality           – Trait presets (aggressive / conservative / balanced / unpredictable)
    insights              – Typed MLInsights bundle and chat analysis contract
    model_monitoring      – Decision history, performance metrics, reward plot
    data_logger           – Per-game move recording and CSV log
    persistence           – Key-value stores for learned data
    simulation_runner     – Headless games against a scripted human
"""
