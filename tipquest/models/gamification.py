"""Derived gamification snapshots"""
from datetime import date
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from tipquest.models.achievement import UserAchievement


class StreakInfo(BaseModel):
    """Day-streak summary over the distinct worked dates"""
    current_streak: int = Field(default=0, ge=0)
    longest_streak: int = Field(default=0, ge=0)
    last_log_date: Optional[date] = None
    is_streak_active: bool = False

    @model_validator(mode='after')
    def longest_covers_current(self) -> 'StreakInfo':
        if self.longest_streak < self.current_streak:
            raise ValueError(
                f"longest_streak ({self.longest_streak}) cannot be below "
                f"current_streak ({self.current_streak})"
            )
        return self

    @property
    def best_streak(self) -> int:
        return max(self.current_streak, self.longest_streak)


class Level(BaseModel):
    """One band of the static level table; max_xp None means unbounded"""
    level: int
    title: str
    min_xp: int
    max_xp: Optional[int] = None
    color: str = "#71717a"
    icon: str = ""

    @property
    def is_open_ended(self) -> bool:
        return self.max_xp is None

    def contains(self, total_xp: int) -> bool:
        """True when total_xp falls in [min_xp, max_xp)"""
        if total_xp < self.min_xp:
            return False
        return self.max_xp is None or total_xp < self.max_xp


class PersonalBests(BaseModel):
    highest_single_shift_tips: float = 0.0
    highest_single_shift_earnings: float = 0.0
    most_guests_served: int = 0
    best_tip_percentage: float = 0.0


class AchievementReport(BaseModel):
    """
    Result of one achievement recompute

    achievements is ordered unlocked-first (most recent unlock first), then
    locked by descending progress. newly_unlocked holds every achievement
    whose unlock was persisted during this recompute.
    """
    achievements: list[UserAchievement] = Field(default_factory=list)
    newly_unlocked: list[UserAchievement] = Field(default_factory=list)
    metrics: dict[str, float] = Field(default_factory=dict)
    streak: StreakInfo = Field(default_factory=StreakInfo)
    store_available: bool = True

    @property
    def unlocked(self) -> list[UserAchievement]:
        return [a for a in self.achievements if a.unlocked]


class GamificationStats(BaseModel):
    """Snapshot for display, recomputed on demand and never persisted"""
    total_xp: int
    current_level: Level
    xp_to_next_level: int
    xp_progress: float = Field(ge=0, le=100)
    streak: StreakInfo
    total_shifts: int
    total_earnings: float
    unlocked_achievements: int
    total_achievements: int
    personal_bests: PersonalBests
