"""Global test fixtures and utilities for tipquest tests"""
import pytest
from datetime import datetime, date, timedelta, timezone

from tipquest.db.progress_store import InMemoryProgressStore
from tipquest.models.achievement import (
    AchievementCategory,
    AchievementDefinition,
    AchievementTier,
)
from tipquest.models.shift import ShiftRecord


# ============================================================================
# User & Clock Fixtures
# ============================================================================

@pytest.fixture
def test_user_id():
    """Standard test user ID"""
    return "user-123456789"


@pytest.fixture
def today():
    """Fixed reference day for streak calculations"""
    return date(2024, 1, 15)


@pytest.fixture
def frozen_now():
    """Fixed unlock timestamp"""
    return datetime(2024, 1, 15, 20, 30, 0, tzinfo=timezone.utc)


# ============================================================================
# Shift Log Fixtures
# ============================================================================

@pytest.fixture
def make_shift():
    """Factory for shift records"""
    def _create(day, cash_tips=40.0, credit_tips=60.0, **kwargs):
        return ShiftRecord(date=day, cash_tips=cash_tips, credit_tips=credit_tips, **kwargs)

    return _create


@pytest.fixture
def shift_log_factory(make_shift):
    """Factory for one shift per day ending on `end`, going back `count` days"""
    def _create(end, count, **kwargs):
        return [make_shift(end - timedelta(days=i), **kwargs) for i in range(count)]

    return _create


@pytest.fixture
def test_shift_entry():
    """Raw host-app shift entry"""
    return {
        "id": "shift-1",
        "date": "2024-01-15",
        "cash_tips": 55.5,
        "credit_tips": 120,
        "hours_worked": 6,
        "hourly_rate": 2.13,
        "guest_count": 24,
        "total_sales": 900,
        "section": "Patio",
        "shift_type": "PM",
    }


# ============================================================================
# Gamification Fixtures
# ============================================================================

@pytest.fixture
def memory_store():
    """Empty in-memory progress store"""
    return InMemoryProgressStore()


@pytest.fixture
def small_catalog():
    """Three-entry catalog covering the core metric kinds"""
    return [
        AchievementDefinition(
            id="first_shift",
            name="First Shift Logged",
            description="Log your first shift",
            metric="shift_count",
            target_value=1,
            tier=AchievementTier.COMMON,
            category=AchievementCategory.MILESTONE,
        ),
        AchievementDefinition(
            id="shifts_10",
            name="10 Shifts Logged",
            description="Log 10 shifts",
            metric="shift_count",
            target_value=10,
            tier=AchievementTier.COMMON,
            category=AchievementCategory.MILESTONE,
        ),
        AchievementDefinition(
            id="big_tipper",
            name="Big Tipper",
            description="Earn $200 in tips in a single shift",
            metric="max_single_shift_tips",
            target_value=200,
            tier=AchievementTier.RARE,
            category=AchievementCategory.EARNINGS,
        ),
    ]
