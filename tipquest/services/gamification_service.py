"""
GamificationService - Gamification Business Logic

Explicit "recompute now" entry point for the host application. Call
recompute() whenever the user's shift log changes (shift added, edited or
deleted); it reconciles achievements and returns the display snapshot.
"""

import logging
from typing import Any, Dict, Iterable, Optional, Sequence
from datetime import date, datetime

from tipquest.config import STREAK_BONUS_BASIS
from tipquest.db.progress_store import ProgressStore
from tipquest.gamification.achievement_system import (
    AchievementEngine,
    get_achievement_recommendations,
    get_visible_achievements,
)
from tipquest.gamification.streak_system import calculate_shift_streak
from tipquest.gamification.xp_system import build_gamification_stats
from tipquest.models.achievement import AchievementDefinition, UserAchievement
from tipquest.models.gamification import GamificationStats
from tipquest.models.shift import ShiftInput, coerce_shift_log

logger = logging.getLogger(__name__)


class GamificationService:
    """
    Service for gamification features.

    Responsibilities:
    - Achievement reconciliation (through AchievementEngine)
    - XP, level and streak snapshot for display
    - Achievement recommendations
    """

    def __init__(
        self,
        store: ProgressStore,
        catalog: Optional[Sequence[AchievementDefinition]] = None,
        streak_bonus_basis: str = STREAK_BONUS_BASIS
    ):
        """
        Initialize GamificationService.

        Args:
            store: Progress store for achievement unlock state
            catalog: Achievement definitions (defaults to the built-in catalog)
            streak_bonus_basis: 'current' or 'longest' streak for XP brackets
        """
        self.engine = AchievementEngine(store, catalog)
        self.streak_bonus_basis = streak_bonus_basis
        logger.debug("GamificationService initialized")

    async def recompute(
        self,
        user_id: Optional[str],
        shifts: Iterable[ShiftInput],
        today: Optional[date] = None,
        now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """
        Recompute achievements and stats after a shift log change.

        Args:
            user_id: User ID, None when nobody is signed in
            shifts: Full current shift log
            today: Reference day for streaks (defaults to local today)
            now: Unlock timestamp (defaults to current UTC time)

        Returns:
            {
                'achievements': list[UserAchievement],  # display order
                'newly_unlocked': list[UserAchievement],  # every new unlock
                'stats': GamificationStats,
                'store_available': bool
            }
        """
        shift_log = coerce_shift_log(shifts)

        try:
            report = await self.engine.recompute(user_id, shift_log, today=today, now=now)
        except Exception as e:
            logger.error(f"Error recomputing achievements for user {user_id}: {e}", exc_info=True)
            return self._fallback_result(shift_log, today)

        stats = build_gamification_stats(
            shift_log,
            report.achievements,
            streak=report.streak,
            basis=self.streak_bonus_basis,
        )

        if report.newly_unlocked:
            logger.info(
                f"User {user_id} unlocked {len(report.newly_unlocked)} achievement(s): "
                f"{', '.join(a.id for a in report.newly_unlocked)}"
            )

        return {
            'achievements': report.achievements,
            'newly_unlocked': report.newly_unlocked,
            'stats': stats,
            'store_available': report.store_available,
        }

    def get_stats(
        self,
        shifts: Iterable[ShiftInput],
        achievements: Iterable[UserAchievement],
        today: Optional[date] = None
    ) -> GamificationStats:
        """Display snapshot from already reconciled achievements, no store access"""
        return build_gamification_stats(
            shifts,
            achievements,
            today=today,
            basis=self.streak_bonus_basis,
        )

    @staticmethod
    def visible_achievements(achievements: Iterable[UserAchievement]) -> list[UserAchievement]:
        """Achievements worth showing in a gallery (unlocked or started)"""
        return get_visible_achievements(achievements)

    @staticmethod
    def recommendations(achievements: Iterable[UserAchievement], limit: int = 3) -> list[UserAchievement]:
        """Locked achievements closest to completion"""
        return get_achievement_recommendations(achievements, limit=limit)

    def _fallback_result(self, shift_log: list, today: Optional[date]) -> Dict[str, Any]:
        """Stats without achievements for unexpected engine failures."""
        streak = calculate_shift_streak(shift_log, today=today)
        return {
            'achievements': [],
            'newly_unlocked': [],
            'stats': build_gamification_stats(
                shift_log, [], streak=streak, basis=self.streak_bonus_basis
            ),
            'store_available': False,
        }
