"""
Shift Log Metrics

Turns a shift log into the named scalar values that achievement targets are
compared against. Each metric is a plain function registered under its
MetricKind name:

- shift_count: number of shifts logged
- max_single_shift_tips: best cash + credit tips in one shift
- best_streak: max(current, longest) day streak
- total_tips / total_earnings: lifetime sums
- max_guest_count: most guests served in one shift
- high_tip_shift_count: shifts with tips at or above HIGH_TIP_THRESHOLD
- weekend_double: 1 when a Saturday and Sunday were worked in the same week

Catalog entries naming an unregistered metric read 0 and never unlock.
"""

from enum import Enum
from typing import Callable, Dict, Iterable, Optional
import logging

from tipquest.models.gamification import StreakInfo
from tipquest.models.shift import ShiftRecord

logger = logging.getLogger(__name__)

# Tips in a single shift that count as a high-tip shift
HIGH_TIP_THRESHOLD = 100.0

MetricFn = Callable[[list[ShiftRecord], StreakInfo], float]


class MetricKind(str, Enum):
    """Metrics an achievement definition can target"""
    SHIFT_COUNT = "shift_count"
    MAX_SINGLE_SHIFT_TIPS = "max_single_shift_tips"
    BEST_STREAK = "best_streak"
    TOTAL_TIPS = "total_tips"
    TOTAL_EARNINGS = "total_earnings"
    MAX_GUEST_COUNT = "max_guest_count"
    HIGH_TIP_SHIFT_COUNT = "high_tip_shift_count"
    WEEKEND_DOUBLE = "weekend_double"


METRICS: Dict[str, MetricFn] = {}


def register_metric(kind: str) -> Callable[[MetricFn], MetricFn]:
    """Register a metric function under a kind name"""
    def decorator(fn: MetricFn) -> MetricFn:
        key = kind.value if isinstance(kind, MetricKind) else kind
        METRICS[key] = fn
        return fn
    return decorator


@register_metric(MetricKind.SHIFT_COUNT)
def shift_count(shifts: list[ShiftRecord], streak: StreakInfo) -> float:
    return float(len(shifts))


@register_metric(MetricKind.MAX_SINGLE_SHIFT_TIPS)
def max_single_shift_tips(shifts: list[ShiftRecord], streak: StreakInfo) -> float:
    return max((s.total_tips for s in shifts), default=0.0)


@register_metric(MetricKind.BEST_STREAK)
def best_streak(shifts: list[ShiftRecord], streak: StreakInfo) -> float:
    return float(streak.best_streak)


@register_metric(MetricKind.TOTAL_TIPS)
def total_tips(shifts: list[ShiftRecord], streak: StreakInfo) -> float:
    return sum(s.total_tips for s in shifts)


@register_metric(MetricKind.TOTAL_EARNINGS)
def total_earnings(shifts: list[ShiftRecord], streak: StreakInfo) -> float:
    return sum(s.total_earnings for s in shifts)


@register_metric(MetricKind.MAX_GUEST_COUNT)
def max_guest_count(shifts: list[ShiftRecord], streak: StreakInfo) -> float:
    return float(max((s.guest_count for s in shifts), default=0))


@register_metric(MetricKind.HIGH_TIP_SHIFT_COUNT)
def high_tip_shift_count(shifts: list[ShiftRecord], streak: StreakInfo) -> float:
    return float(sum(1 for s in shifts if s.total_tips >= HIGH_TIP_THRESHOLD))


@register_metric(MetricKind.WEEKEND_DOUBLE)
def weekend_double(shifts: list[ShiftRecord], streak: StreakInfo) -> float:
    """1 if some ISO week contains both a Saturday and a Sunday shift"""
    weekend_days: Dict[tuple, set] = {}
    for shift in shifts:
        weekday = shift.date.weekday()
        if weekday < 5:
            continue
        iso_year, iso_week, _ = shift.date.isocalendar()
        weekend_days.setdefault((iso_year, iso_week), set()).add(weekday)
    return 1.0 if any(len(days) == 2 for days in weekend_days.values()) else 0.0


def compute_metrics(
    shifts: Iterable[ShiftRecord],
    streak: StreakInfo,
    registry: Optional[Dict[str, MetricFn]] = None
) -> Dict[str, float]:
    """
    Evaluate every registered metric over the shift log

    A metric that raises is logged and reported as 0 so the rest of the
    recompute still runs.

    Args:
        shifts: Normalized shift records
        streak: Streak computed from the same log
        registry: Metric functions by name (defaults to METRICS)

    Returns:
        Metric values keyed by kind name
    """
    shift_list = list(shifts)
    registry = METRICS if registry is None else registry

    values = {}
    for kind, fn in registry.items():
        try:
            values[kind] = float(fn(shift_list, streak))
        except Exception as e:
            logger.error(f"Metric '{kind}' failed, using 0: {e}", exc_info=True)
            values[kind] = 0.0

    return values


def metric_value(metrics: Dict[str, float], kind: str) -> float:
    """Look up a metric, treating unknown kinds as 0"""
    key = kind.value if isinstance(kind, MetricKind) else kind
    if key not in metrics:
        logger.warning(f"Unknown metric kind '{key}' in achievement catalog, treating as 0")
        return 0.0
    return metrics[key]
