"""Achievement models for gamification"""
from enum import Enum
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class AchievementCategory(str, Enum):
    """Achievement categories (display grouping only)"""
    EARNINGS = "earnings"
    CONSISTENCY = "consistency"
    MILESTONE = "milestone"
    SPECIAL = "special"


class AchievementTier(str, Enum):
    """Achievement rarity, weights the XP reward"""
    COMMON = "common"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"


class AchievementDefinition(BaseModel):
    """Static catalog entry"""
    id: str
    name: str
    description: str
    metric: str  # MetricKind value; unknown kinds evaluate to 0
    target_value: float = Field(gt=0)
    tier: AchievementTier
    category: AchievementCategory
    icon: str = "Trophy"


class ProgressRecord(BaseModel):
    """
    Durable per-user, per-achievement state

    Once is_unlocked is True it stays True, and unlocked_at never changes.
    """
    achievement_id: str
    current_value: float = 0.0
    target_value: Optional[float] = None
    is_unlocked: bool = False
    unlocked_at: Optional[datetime] = None


class UserAchievement(AchievementDefinition):
    """Catalog entry joined with the user's derived state"""
    unlocked: bool = False
    unlocked_at: Optional[datetime] = None
    current_value: float = 0.0
    progress: float = Field(default=0.0, ge=0, le=100)
