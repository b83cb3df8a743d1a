"""
Achievement Catalog

Static, ordered list of achievement definitions. Loaded once per session and
never mutated; catalog order is the tie-break order for display.
"""

from typing import Any, Iterable, Optional
import logging

from pydantic import ValidationError as PydanticValidationError

from tipquest.exceptions import ValidationError
from tipquest.gamification.metrics import METRICS, MetricKind
from tipquest.models.achievement import (
    AchievementCategory,
    AchievementDefinition,
    AchievementTier,
)

logger = logging.getLogger(__name__)


def _define(
    id: str,
    name: str,
    description: str,
    metric: MetricKind,
    target_value: float,
    tier: AchievementTier,
    category: AchievementCategory,
    icon: str,
) -> AchievementDefinition:
    return AchievementDefinition(
        id=id,
        name=name,
        description=description,
        metric=metric.value,
        target_value=target_value,
        tier=tier,
        category=category,
        icon=icon,
    )


DEFAULT_CATALOG: tuple[AchievementDefinition, ...] = (
    # Milestones
    _define("first_shift", "First Shift Logged",
            "You've logged your very first shift. Here's to many more!",
            MetricKind.SHIFT_COUNT, 1, AchievementTier.COMMON, AchievementCategory.MILESTONE, "Rocket"),
    _define("shifts_10", "10 Shifts Logged",
            "You've logged 10 shifts. You're building momentum!",
            MetricKind.SHIFT_COUNT, 10, AchievementTier.COMMON, AchievementCategory.MILESTONE, "CheckCircle"),
    _define("shifts_30", "30 Shifts Logged",
            "30 shifts down! You're becoming a tracking pro.",
            MetricKind.SHIFT_COUNT, 30, AchievementTier.RARE, AchievementCategory.MILESTONE, "TrendingUp"),
    _define("shifts_50", "50 Shifts Logged",
            "Half a century of shifts! Your dedication is impressive.",
            MetricKind.SHIFT_COUNT, 50, AchievementTier.EPIC, AchievementCategory.MILESTONE, "Star"),
    _define("shifts_100", "100 Shifts Logged",
            "100 shifts! You're a true professional at tracking your earnings.",
            MetricKind.SHIFT_COUNT, 100, AchievementTier.LEGENDARY, AchievementCategory.MILESTONE, "Crown"),

    # Earnings (single shift tips)
    _define("solid_night_150", "Solid Night",
            "Earn $150 in tips in a single shift.",
            MetricKind.MAX_SINGLE_SHIFT_TIPS, 150, AchievementTier.COMMON, AchievementCategory.EARNINGS, "DollarSign"),
    _define("big_tipper", "Big Tipper",
            "Earn $200 in tips in a single shift.",
            MetricKind.MAX_SINGLE_SHIFT_TIPS, 200, AchievementTier.RARE, AchievementCategory.EARNINGS, "DollarSign"),
    _define("big_night_300", "Big Night",
            "Earn $300 in tips in a single shift.",
            MetricKind.MAX_SINGLE_SHIFT_TIPS, 300, AchievementTier.RARE, AchievementCategory.EARNINGS, "Zap"),
    _define("big_night_400", "Legendary Night",
            "Earn $400 in tips in a single shift.",
            MetricKind.MAX_SINGLE_SHIFT_TIPS, 400, AchievementTier.EPIC, AchievementCategory.EARNINGS, "Trophy"),
    _define("whale_hunter", "Whale Hunter",
            "Earn $500+ in tips in a single shift. Legendary service!",
            MetricKind.MAX_SINGLE_SHIFT_TIPS, 500, AchievementTier.LEGENDARY, AchievementCategory.EARNINGS, "Crown"),

    # Consistency
    _define("logging_streak_3", "Don't Break the Chain",
            "Log shifts 3 days in a row.",
            MetricKind.BEST_STREAK, 3, AchievementTier.COMMON, AchievementCategory.CONSISTENCY, "Flame"),
    _define("logging_streak_7", "Week Warrior",
            "Log shifts 7 days in a row.",
            MetricKind.BEST_STREAK, 7, AchievementTier.RARE, AchievementCategory.CONSISTENCY, "Flame"),
    _define("logging_streak_14", "Iron Apron",
            "Log shifts 14 days in a row.",
            MetricKind.BEST_STREAK, 14, AchievementTier.EPIC, AchievementCategory.CONSISTENCY, "Flame"),
    _define("logging_streak_30", "Monthly Master",
            "Log shifts 30 days in a row. Unstoppable!",
            MetricKind.BEST_STREAK, 30, AchievementTier.LEGENDARY, AchievementCategory.CONSISTENCY, "Flame"),

    # Special
    _define("weekend_warrior", "Weekend Warrior",
            "You logged both Saturday and Sunday shifts in the same week!",
            MetricKind.WEEKEND_DOUBLE, 1, AchievementTier.RARE, AchievementCategory.SPECIAL, "Calendar"),
)


def load_catalog(entries: Iterable[Any]) -> list[AchievementDefinition]:
    """
    Validate a host-supplied catalog

    Args:
        entries: AchievementDefinition instances or mappings

    Returns:
        Ordered list of definitions

    Raises:
        ValidationError: on an invalid entry or a duplicate id
    """
    catalog = []
    seen = set()
    for entry in entries:
        try:
            definition = (
                entry if isinstance(entry, AchievementDefinition)
                else AchievementDefinition.model_validate(entry)
            )
        except PydanticValidationError as e:
            raise ValidationError(
                f"Invalid achievement definition: {e.errors()[0].get('msg')}",
                field="achievement",
                value=entry,
                cause=e
            )

        if definition.id in seen:
            raise ValidationError(
                f"Duplicate achievement id '{definition.id}'",
                field="id",
                value=definition.id
            )
        seen.add(definition.id)

        if definition.metric not in METRICS:
            logger.warning(
                f"Achievement '{definition.id}' targets unknown metric '{definition.metric}' and will never unlock"
            )
        catalog.append(definition)

    logger.info(f"Loaded achievement catalog with {len(catalog)} definitions")
    return catalog


def get_achievement_by_id(
    achievement_id: str,
    catalog: Optional[Iterable[AchievementDefinition]] = None
) -> Optional[AchievementDefinition]:
    """Find a definition by id"""
    for definition in (DEFAULT_CATALOG if catalog is None else catalog):
        if definition.id == achievement_id:
            return definition
    return None


def get_achievements_by_category(
    category: AchievementCategory,
    catalog: Optional[Iterable[AchievementDefinition]] = None
) -> list[AchievementDefinition]:
    """All definitions in one display category, catalog order preserved"""
    return [
        definition for definition in (DEFAULT_CATALOG if catalog is None else catalog)
        if definition.category == category
    ]
