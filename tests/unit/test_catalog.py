"""Unit tests for the achievement catalog (tipquest/gamification/catalog.py)"""
import pytest

from tipquest.exceptions import ValidationError
from tipquest.gamification.catalog import (
    DEFAULT_CATALOG,
    get_achievement_by_id,
    get_achievements_by_category,
    load_catalog,
)
from tipquest.gamification.metrics import METRICS, MetricKind
from tipquest.models.achievement import AchievementCategory


def test_default_catalog_ids_are_unique():
    """Test no two definitions share an id"""
    ids = [a.id for a in DEFAULT_CATALOG]

    assert len(ids) == len(set(ids))


def test_default_catalog_uses_known_metrics():
    """Test every built-in definition can unlock"""
    known = {kind.value for kind in MetricKind}

    assert all(a.metric in known for a in DEFAULT_CATALOG)


def test_default_catalog_has_every_category():
    categories = {a.category for a in DEFAULT_CATALOG}

    assert categories == set(AchievementCategory)


def test_get_achievement_by_id():
    """Test lookup by id"""
    achievement = get_achievement_by_id("shifts_10")

    assert achievement.target_value == 10
    assert achievement.metric == MetricKind.SHIFT_COUNT.value
    assert get_achievement_by_id("nonexistent") is None


def test_get_achievements_by_category_keeps_order():
    """Test category filter preserves catalog order"""
    streaks = get_achievements_by_category(AchievementCategory.CONSISTENCY)

    assert [a.target_value for a in streaks] == [3, 7, 14, 30]


def test_load_catalog_from_dicts():
    """Test a host-supplied catalog"""
    catalog = load_catalog([
        {
            "id": "double_shift",
            "name": "Double Up",
            "description": "Log 2 shifts",
            "metric": "shift_count",
            "target_value": 2,
            "tier": "common",
            "category": "milestone",
        }
    ])

    assert len(catalog) == 1
    assert catalog[0].id == "double_shift"


def test_load_catalog_rejects_duplicate_ids():
    """Test duplicate ids are a configuration error"""
    with pytest.raises(ValidationError) as exc_info:
        load_catalog([DEFAULT_CATALOG[0], DEFAULT_CATALOG[0]])

    assert exc_info.value.field == "id"


def test_load_catalog_rejects_invalid_entry():
    """Test non-positive targets are rejected"""
    with pytest.raises(ValidationError):
        load_catalog([{
            "id": "broken",
            "name": "Broken",
            "description": "",
            "metric": "shift_count",
            "target_value": -1,
            "tier": "common",
            "category": "milestone",
        }])


def test_load_catalog_keeps_unknown_metric(caplog):
    """Test an unknown metric is loaded with a warning"""
    catalog = load_catalog([{
        "id": "mystery",
        "name": "Mystery",
        "description": "",
        "metric": "moon_phase",
        "target_value": 1,
        "tier": "epic",
        "category": "special",
    }])

    assert catalog[0].metric == "moon_phase"
    assert "moon_phase" in caplog.text


def test_load_catalog_accepts_registered_custom_metric(monkeypatch, caplog):
    """Test a metric added through the registry loads without a warning"""
    monkeypatch.setitem(METRICS, "double_shifts", lambda shifts, streak: 0.0)

    catalog = load_catalog([{
        "id": "double_trouble",
        "name": "Double Trouble",
        "description": "",
        "metric": "double_shifts",
        "target_value": 1,
        "tier": "rare",
        "category": "special",
    }])

    assert catalog[0].metric == "double_shifts"
    assert "never unlock" not in caplog.text
