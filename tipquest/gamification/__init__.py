"""
Gamification engine for tipquest

This package turns a shift log into:
- Day streaks (current and longest)
- Persisted, idempotent achievement unlocks
- XP totals and level bands

The calculators are pure; only AchievementEngine touches the progress store.
"""

from tipquest.gamification.streak_system import calculate_streak, calculate_shift_streak
from tipquest.gamification.metrics import MetricKind, compute_metrics
from tipquest.gamification.achievement_system import AchievementEngine
from tipquest.gamification.xp_system import build_gamification_stats, calculate_level_from_xp

__all__ = [
    "calculate_streak",
    "calculate_shift_streak",
    "MetricKind",
    "compute_metrics",
    "AchievementEngine",
    "build_gamification_stats",
    "calculate_level_from_xp",
]
