"""Pydantic models for curriculum, progress, accounts and achievements"""
from bootcamp_tracker.models.curriculum import Module, Category
from bootcamp_tracker.models.progress import ModuleStatus, ProgressRecord
from bootcamp_tracker.models.user import StudySession, UserAccount
from bootcamp_tracker.models.achievement import AchievementCriteria, AchievementDefinition

__all__ = [
    "Module",
    "Category",
    "ModuleStatus",
    "ProgressRecord",
    "StudySession",
    "UserAccount",
    "AchievementCriteria",
    "AchievementDefinition",
]
