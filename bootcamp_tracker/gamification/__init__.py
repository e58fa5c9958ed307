"""
Gamification for Bootcamp Tracker

- Study streaks (consecutive calendar days with progress)
- Progress ledger transforms and completion statistics
- Achievement evaluation and display catalog
- Leaderboard, weekly activity and study recommendations
- Study timer sessions
"""

from bootcamp_tracker.gamification.streak_system import compute_streak, calendar_date
from bootcamp_tracker.gamification.progress_ledger import (
    apply_status_update,
    completed_count,
    completion_percentage,
    category_completion,
)
from bootcamp_tracker.gamification.achievement_system import (
    ACHIEVEMENTS,
    evaluate_achievements,
    get_achievement_summary,
)
from bootcamp_tracker.gamification.dashboards import build_leaderboard, build_weekly_activity
from bootcamp_tracker.gamification.study_sessions import record_study_session, summarize_study_time

__all__ = [
    "compute_streak",
    "calendar_date",
    "apply_status_update",
    "completed_count",
    "completion_percentage",
    "category_completion",
    "ACHIEVEMENTS",
    "evaluate_achievements",
    "get_achievement_summary",
    "build_leaderboard",
    "build_weekly_activity",
    "record_study_session",
    "summarize_study_time",
]
