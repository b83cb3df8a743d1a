"""
XP and Leveling System

XP is recomputed from scratch on every call; nothing here is persisted.

XP Award Rules:
- Shift logged: 10 XP each
- Achievement unlocked: 25 / 50 / 100 / 200 XP (common / rare / epic / legendary)
- Streak bracket: 15 / 35 / 75 / 150 XP for 3 / 7 / 14 / 30 days, only the
  single highest bracket reached counts
- High-tip shift ($100+ tips): 20 XP each

Levels:
- Ten named bands from Rookie Server (0 XP) to Tip God (5000+ XP)
- Bands are contiguous: each max_xp is the next level's min_xp
- The top band is open-ended
"""

from typing import Dict, Iterable, List, Optional, Sequence
from datetime import date
import logging

from tipquest.config import STREAK_BONUS_BASIS
from tipquest.exceptions import ValidationError
from tipquest.gamification.metrics import HIGH_TIP_THRESHOLD
from tipquest.gamification.streak_system import calculate_shift_streak
from tipquest.models.achievement import AchievementTier, UserAchievement
from tipquest.models.gamification import GamificationStats, Level, PersonalBests, StreakInfo
from tipquest.models.shift import ShiftInput, ShiftRecord, coerce_shift_log

logger = logging.getLogger(__name__)

XP_PER_SHIFT = 10
XP_PER_HIGH_TIP_SHIFT = 20

TIER_XP: Dict[AchievementTier, int] = {
    AchievementTier.COMMON: 25,
    AchievementTier.RARE: 50,
    AchievementTier.EPIC: 100,
    AchievementTier.LEGENDARY: 200,
}

# days reached -> bonus XP
STREAK_BRACKETS: Dict[int, int] = {
    3: 15,
    7: 35,
    14: 75,
    30: 150,
}

LEVELS: tuple[Level, ...] = (
    Level(level=1, title="Rookie Server", min_xp=0, max_xp=100, color="#71717a", icon="🌱"),
    Level(level=2, title="Trainee", min_xp=100, max_xp=250, color="#71717a", icon="📝"),
    Level(level=3, title="Server", min_xp=250, max_xp=500, color="#22c55e", icon="🍽️"),
    Level(level=4, title="Skilled Server", min_xp=500, max_xp=850, color="#22c55e", icon="⭐"),
    Level(level=5, title="Expert Server", min_xp=850, max_xp=1300, color="#3b82f6", icon="💫"),
    Level(level=6, title="Senior Server", min_xp=1300, max_xp=1850, color="#3b82f6", icon="🎯"),
    Level(level=7, title="Lead Server", min_xp=1850, max_xp=2500, color="#8b5cf6", icon="👑"),
    Level(level=8, title="Tip Master", min_xp=2500, max_xp=3500, color="#8b5cf6", icon="🏆"),
    Level(level=9, title="Tip Legend", min_xp=3500, max_xp=5000, color="#f59e0b", icon="🌟"),
    Level(level=10, title="Tip God", min_xp=5000, max_xp=None, color="#f59e0b", icon="👑✨"),
)


def validate_level_table(levels: Sequence[Level]) -> None:
    """
    Check that level bands start at 0, are contiguous and end open-ended

    Raises:
        ValidationError: if the table has gaps, overlaps or a bounded top
    """
    if not levels:
        raise ValidationError("Level table is empty", field="levels")
    if levels[0].min_xp != 0:
        raise ValidationError("First level must start at 0 XP", field="min_xp", value=levels[0].min_xp)

    for current, following in zip(levels, levels[1:]):
        if current.max_xp is None or current.max_xp != following.min_xp:
            raise ValidationError(
                f"Level {current.level} ends at {current.max_xp} but level "
                f"{following.level} starts at {following.min_xp}",
                field="max_xp",
                value=current.max_xp
            )
        if current.max_xp <= current.min_xp:
            raise ValidationError(f"Level {current.level} has an empty XP band", field="max_xp", value=current.max_xp)

    if levels[-1].max_xp is not None:
        raise ValidationError("Top level must be open-ended", field="max_xp", value=levels[-1].max_xp)


def get_level(level_number: int, levels: Sequence[Level] = LEVELS) -> Optional[Level]:
    """Look up a level by its number"""
    for level in levels:
        if level.level == level_number:
            return level
    return None


def calculate_level_from_xp(total_xp: int, levels: Sequence[Level] = LEVELS) -> Dict[str, any]:
    """
    Map total XP to its level band

    Returns:
        {
            'current_level': Level,
            'xp_in_current_level': int,
            'xp_to_next_level': int (0 at the top level),
            'xp_progress': float (0-100, 100 at the top level),
            'next_level': Level | None
        }
    """
    total_xp = max(0, total_xp)
    current = next((level for level in levels if level.contains(total_xp)), levels[-1])
    next_level = get_level(current.level + 1, levels)

    xp_in_level = total_xp - current.min_xp
    if current.is_open_ended:
        xp_progress = 100.0
        xp_to_next = 0
    else:
        band = current.max_xp - current.min_xp
        xp_progress = min(xp_in_level / band * 100, 100.0)
        xp_to_next = current.max_xp - total_xp

    return {
        "current_level": current,
        "xp_in_current_level": xp_in_level,
        "xp_to_next_level": xp_to_next,
        "xp_progress": xp_progress,
        "next_level": next_level,
    }


def streak_bracket_bonus(streak_days: int) -> int:
    """Bonus for the single highest streak bracket reached"""
    reached = [days for days in STREAK_BRACKETS if streak_days >= days]
    if not reached:
        return 0
    return STREAK_BRACKETS[max(reached)]


def streak_bonus_days(streak: StreakInfo, basis: str = STREAK_BONUS_BASIS) -> int:
    """Streak length that feeds the bracket bonus"""
    if basis == "longest":
        return streak.best_streak
    return streak.current_streak


def calculate_xp_breakdown(
    shifts: Iterable[ShiftRecord],
    achievements: Iterable[UserAchievement],
    streak: StreakInfo,
    basis: str = STREAK_BONUS_BASIS
) -> Dict[str, int]:
    """
    Calculate XP per source

    Returns:
        {
            'shifts': int,
            'achievements': int,
            'streak': int,
            'high_tip_shifts': int,
            'total': int
        }
    """
    shift_list = list(shifts)

    shift_xp = len(shift_list) * XP_PER_SHIFT
    achievement_xp = sum(TIER_XP.get(a.tier, 0) for a in achievements if a.unlocked)
    streak_xp = streak_bracket_bonus(streak_bonus_days(streak, basis))
    high_tip_xp = sum(1 for s in shift_list if s.total_tips >= HIGH_TIP_THRESHOLD) * XP_PER_HIGH_TIP_SHIFT

    return {
        "shifts": shift_xp,
        "achievements": achievement_xp,
        "streak": streak_xp,
        "high_tip_shifts": high_tip_xp,
        "total": shift_xp + achievement_xp + streak_xp + high_tip_xp,
    }


def calculate_personal_bests(shifts: Iterable[ShiftRecord]) -> PersonalBests:
    """Best single-shift figures over the whole log"""
    shift_list = list(shifts)
    return PersonalBests(
        highest_single_shift_tips=max((s.total_tips for s in shift_list), default=0.0),
        highest_single_shift_earnings=max((s.total_earnings for s in shift_list), default=0.0),
        most_guests_served=max((s.guest_count for s in shift_list), default=0),
        best_tip_percentage=max((s.tip_percentage for s in shift_list), default=0.0),
    )


def build_gamification_stats(
    shifts: Iterable[ShiftInput],
    achievements: Iterable[UserAchievement],
    streak: Optional[StreakInfo] = None,
    today: Optional[date] = None,
    basis: str = STREAK_BONUS_BASIS,
    levels: Sequence[Level] = LEVELS
) -> GamificationStats:
    """
    Build the display snapshot for a user

    Args:
        shifts: Full current shift log
        achievements: Achievements from the latest recompute
        streak: Streak already computed for this log (computed when omitted)
        today: Reference day used when the streak must be computed
        basis: 'current' or 'longest' streak for the bracket bonus
        levels: Level table

    Returns:
        GamificationStats snapshot
    """
    records = coerce_shift_log(shifts)
    achievement_list: List[UserAchievement] = list(achievements)
    if streak is None:
        streak = calculate_shift_streak(records, today=today)

    xp = calculate_xp_breakdown(records, achievement_list, streak, basis)
    level_info = calculate_level_from_xp(xp["total"], levels)

    logger.debug(
        f"XP breakdown: {xp}, level={level_info['current_level'].level}"
    )

    return GamificationStats(
        total_xp=xp["total"],
        current_level=level_info["current_level"],
        xp_to_next_level=level_info["xp_to_next_level"],
        xp_progress=level_info["xp_progress"],
        streak=streak,
        total_shifts=len(records),
        total_earnings=sum(s.total_earnings for s in records),
        unlocked_achievements=sum(1 for a in achievement_list if a.unlocked),
        total_achievements=len(achievement_list),
        personal_bests=calculate_personal_bests(records),
    )
