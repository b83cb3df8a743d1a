"""
Day Streak Calculation

A streak is the count of consecutive calendar days with at least one logged
shift, ending at the most recent log. Both the achievement path and the
leveling path use calculate_streak(), so the two can never disagree.

Rules:
- Several shifts on the same day count as one day
- The streak stays active while the last log is today or yesterday
- Anything older than yesterday leaves current_streak at 0
- longest_streak is the best run over the whole history and never falls
  below current_streak
"""

from typing import Iterable, Optional
from datetime import date, timedelta

from tipquest.models.gamification import StreakInfo
from tipquest.models.shift import ShiftRecord
from tipquest.utils.datetime_helpers import local_today

ONE_DAY = timedelta(days=1)


def worked_dates(shifts: Iterable[ShiftRecord]) -> set[date]:
    """Distinct calendar days with at least one shift"""
    return {shift.date for shift in shifts}


def calculate_streak(dates: Iterable[date], today: Optional[date] = None) -> StreakInfo:
    """
    Calculate current and longest day streaks

    Args:
        dates: Worked calendar dates (duplicates allowed)
        today: Reference day, defaults to local_today()

    Returns:
        StreakInfo with current_streak, longest_streak, last_log_date and
        is_streak_active
    """
    distinct = sorted(set(dates), reverse=True)
    if not distinct:
        return StreakInfo()

    if today is None:
        today = local_today()

    last_log_date = distinct[0]
    is_active = last_log_date in (today, today - ONE_DAY)

    # Walk back from the most recent log while days stay consecutive
    current = 0
    if is_active:
        expected = last_log_date
        for day in distinct:
            if day != expected:
                break
            current += 1
            expected = day - ONE_DAY

    # Best run of consecutive days anywhere in the history
    longest = 1
    run = 1
    ascending = distinct[::-1]
    for previous, day in zip(ascending, ascending[1:]):
        if (day - previous).days == 1:
            run += 1
        else:
            run = 1
        longest = max(longest, run)

    return StreakInfo(
        current_streak=current,
        longest_streak=max(longest, current),
        last_log_date=last_log_date,
        is_streak_active=is_active,
    )


def calculate_shift_streak(shifts: Iterable[ShiftRecord], today: Optional[date] = None) -> StreakInfo:
    """Streak over a shift log"""
    return calculate_streak(worked_dates(shifts), today=today)
