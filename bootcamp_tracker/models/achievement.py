"""Achievement models for gamification"""
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict


class CriteriaType(str, Enum):
    """What an achievement's threshold is measured against"""
    COMPLETION_COUNT = "completion_count"
    STREAK = "streak"
    CATEGORY_HALF = "category_half"
    CATEGORY_COMPLETE = "category_complete"
    OVERALL_PERCENTAGE = "overall_percentage"


class AchievementCriteria(BaseModel):
    """Unlock condition"""
    model_config = ConfigDict(frozen=True)

    type: CriteriaType
    value: int = 0
    category: Optional[str] = None  # Category.name for category criteria


class AchievementDefinition(BaseModel):
    """Achievement definition with display metadata"""
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str
    icon: str
    color: str
    criteria: AchievementCriteria
