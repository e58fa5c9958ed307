"""
Achievement System

Eighteen fixed badges:
- Completion count (1, 5, 10 modules)
- Study streak (3, 7 days)
- Per category: half of the modules (rounded up) and all of them
- Whole course: 50%, 75%, 100%

Unlocking is permanent. evaluate_achievements() is a pure function: it
returns only ids not already unlocked and never touches storage, so running
it again against an unchanged ledger returns nothing.
"""

import math
from typing import Dict, Iterable, List, Mapping, Sequence
import logging

from bootcamp_tracker.curriculum.catalog import (
    COURSE_MODULES,
    CATEGORIES,
    CATEGORY_ACHIEVEMENT_STEMS,
)
from bootcamp_tracker.gamification.progress_ledger import (
    completed_count,
    completed_module_ids,
    round_percentage,
)
from bootcamp_tracker.models.achievement import (
    AchievementCriteria,
    AchievementDefinition,
    CriteriaType,
)
from bootcamp_tracker.models.curriculum import Module
from bootcamp_tracker.models.progress import ProgressRecord

logger = logging.getLogger(__name__)

COMPLETION_TIERS = ((1, "first_module"), (5, "five_modules"), (10, "ten_modules"))
STREAK_TIERS = ((3, "three_day_streak"), (7, "seven_day_streak"))
OVERALL_TIERS = ((50, "halfway_course"), (75, "course_75"), (100, "course_complete"))


def category_half_id(stem: str) -> str:
    return f"{stem}_50"


def category_complete_id(stem: str) -> str:
    return f"{stem}_complete"


def evaluate_achievements(
    ledger: Sequence[ProgressRecord],
    streak: int,
    already_unlocked: Iterable[str],
    category_stems: Mapping[str, str] = CATEGORY_ACHIEVEMENT_STEMS,
    modules: Sequence[Module] = COURSE_MODULES
) -> List[str]:
    """
    Work out which achievements the learner has newly earned

    Args:
        ledger: The learner's progress records (already updated)
        streak: The learner's current streak
        already_unlocked: Ids the learner already holds
        category_stems: Category name -> achievement id stem
        modules: Course modules (category totals and overall percentage)

    Returns:
        Newly unlocked ids in catalog order, none of them in already_unlocked
    """
    unlocked = set(already_unlocked)
    earned: List[str] = []

    def award(achievement_id: str) -> None:
        if achievement_id not in unlocked and achievement_id not in earned:
            earned.append(achievement_id)

    completed = completed_count(ledger)

    for required, achievement_id in COMPLETION_TIERS:
        if completed >= required:
            award(achievement_id)

    for required, achievement_id in STREAK_TIERS:
        if streak >= required:
            award(achievement_id)

    completed_ids = set(completed_module_ids(ledger))
    for category_name, stem in category_stems.items():
        category_ids = {module.id for module in modules if module.category == category_name}
        total = len(category_ids)
        completed_in_category = len(category_ids & completed_ids)
        half = math.ceil(total / 2)

        if completed_in_category >= half:
            award(category_half_id(stem))
        if total > 0 and completed_in_category >= total:
            award(category_complete_id(stem))

    overall = round_percentage(completed, len(modules))
    for required, achievement_id in OVERALL_TIERS:
        if overall >= required:
            award(achievement_id)

    if earned:
        logger.debug(f"Achievements earned: {earned} (completed={completed}, streak={streak})")

    return earned


# ============================================
# Display catalog
# ============================================

_CATEGORY_BADGES: Dict[str, Dict[str, tuple]] = {
    # stem: {kind: (title, description, icon, color)}
    "html_css": {
        "half": ("HTML Apprentice", "Reached 50% in Front-End Fundamentals", "📝", "#FF5733"),
        "complete": ("CSS Stylist", "Completed all Front-End Fundamentals modules", "🎨", "#33B5FF"),
    },
    "js_dom": {
        "half": ("Script Padawan", "Reached 50% in JavaScript & DOM", "⚙️", "#FFDD33"),
        "complete": ("DOM Manipulator", "Completed all JavaScript & DOM modules", "🧩", "#33FF57"),
    },
    "backend": {
        "half": ("Server Novice", "Reached 50% in Backend Development", "🔌", "#8A33FF"),
        "complete": ("API Architect", "Completed all Backend Development modules", "🏗️", "#FF33A8"),
    },
    "database": {
        "half": ("Data Collector", "Reached 50% in Databases & Full Stack", "💾", "#33FFC1"),
        "complete": ("Full Stack Engineer", "Completed all Databases & Full Stack modules", "🔄", "#C133FF"),
    },
    "advanced": {
        "half": ("Advanced Explorer", "Reached 50% in Advanced Topics", "🔍", "#FF3333"),
        "complete": ("Technology Master", "Completed all Advanced Topics modules", "🧠", "#33FFEC"),
    },
}


def _build_catalog() -> List[AchievementDefinition]:
    catalog = [
        AchievementDefinition(
            id="first_module", title="First Steps", description="Completed your first module",
            icon="🌱", color="#4dff9d",
            criteria=AchievementCriteria(type=CriteriaType.COMPLETION_COUNT, value=1),
        ),
        AchievementDefinition(
            id="five_modules", title="Getting Traction", description="Completed 5 modules",
            icon="🚀", color="#4d9aff",
            criteria=AchievementCriteria(type=CriteriaType.COMPLETION_COUNT, value=5),
        ),
        AchievementDefinition(
            id="ten_modules", title="Serious Learner", description="Completed 10 modules",
            icon="📚", color="#c44dff",
            criteria=AchievementCriteria(type=CriteriaType.COMPLETION_COUNT, value=10),
        ),
        AchievementDefinition(
            id="three_day_streak", title="Consistency Begins",
            description="Maintained a 3-day study streak", icon="🔥", color="#ff9d4d",
            criteria=AchievementCriteria(type=CriteriaType.STREAK, value=3),
        ),
        AchievementDefinition(
            id="seven_day_streak", title="Week Warrior",
            description="Maintained a 7-day study streak", icon="🏆", color="#ffd700",
            criteria=AchievementCriteria(type=CriteriaType.STREAK, value=7),
        ),
    ]

    for category in CATEGORIES:
        stem = CATEGORY_ACHIEVEMENT_STEMS[category.name]
        badges = _CATEGORY_BADGES[stem]
        title, description, icon, color = badges["half"]
        catalog.append(AchievementDefinition(
            id=category_half_id(stem), title=title, description=description, icon=icon, color=color,
            criteria=AchievementCriteria(type=CriteriaType.CATEGORY_HALF, category=category.name),
        ))
        title, description, icon, color = badges["complete"]
        catalog.append(AchievementDefinition(
            id=category_complete_id(stem), title=title, description=description, icon=icon, color=color,
            criteria=AchievementCriteria(type=CriteriaType.CATEGORY_COMPLETE, category=category.name),
        ))

    catalog.extend([
        AchievementDefinition(
            id="halfway_course", title="Halfway Hero",
            description="Completed 50% of the entire course", icon="🏄", color="#FFA533",
            criteria=AchievementCriteria(type=CriteriaType.OVERALL_PERCENTAGE, value=50),
        ),
        AchievementDefinition(
            id="course_75", title="Almost There",
            description="Completed 75% of the entire course", icon="🏂", color="#33FFA8",
            criteria=AchievementCriteria(type=CriteriaType.OVERALL_PERCENTAGE, value=75),
        ),
        AchievementDefinition(
            id="course_complete", title="Coding Champion",
            description="Completed the entire bootcamp", icon="👑", color="#FFD700",
            criteria=AchievementCriteria(type=CriteriaType.OVERALL_PERCENTAGE, value=100),
        ),
    ])
    return catalog


ACHIEVEMENTS: List[AchievementDefinition] = _build_catalog()
ACHIEVEMENTS_BY_ID: Dict[str, AchievementDefinition] = {a.id: a for a in ACHIEVEMENTS}


def calculate_achievement_progress(
    achievement: AchievementDefinition,
    ledger: Sequence[ProgressRecord],
    streak: int,
    modules: Sequence[Module] = COURSE_MODULES
) -> Dict[str, object]:
    """
    Calculate progress toward an achievement

    Returns:
        {
            'current': int,
            'required': int,
            'percentage': int,
            'description': str
        }
    """
    criteria = achievement.criteria
    current = 0
    required = criteria.value

    if criteria.type == CriteriaType.COMPLETION_COUNT:
        current = completed_count(ledger)

    elif criteria.type == CriteriaType.STREAK:
        current = streak

    elif criteria.type in (CriteriaType.CATEGORY_HALF, CriteriaType.CATEGORY_COMPLETE):
        category_ids = {m.id for m in modules if m.category == criteria.category}
        current = len(category_ids & set(completed_module_ids(ledger)))
        total = len(category_ids)
        required = math.ceil(total / 2) if criteria.type == CriteriaType.CATEGORY_HALF else total

    elif criteria.type == CriteriaType.OVERALL_PERCENTAGE:
        current = round_percentage(completed_count(ledger), len(modules))

    percentage = min(100, int(current / required * 100)) if required > 0 else 100

    return {
        "current": current,
        "required": required,
        "percentage": percentage,
        "description": f"{current}/{required}",
    }


def get_achievement_summary(
    unlocked_ids: Sequence[str],
    ledger: Sequence[ProgressRecord],
    streak: int,
    include_locked: bool = True
) -> Dict[str, object]:
    """
    Unlocked achievements (in the order they were earned) and locked ones with progress

    Returns:
        {
            'unlocked': [achievement dicts],
            'locked': [achievement dicts with 'progress'] (if include_locked=True),
            'total_unlocked': int,
            'total_achievements': int
        }
    """
    unlocked = []
    for achievement_id in unlocked_ids:
        achievement = ACHIEVEMENTS_BY_ID.get(achievement_id)
        if achievement is None:
            logger.warning(f"Unknown achievement id on account: {achievement_id}")
            continue
        unlocked.append(_display(achievement))

    result: Dict[str, object] = {
        "unlocked": unlocked,
        "total_unlocked": len(unlocked),
        "total_achievements": len(ACHIEVEMENTS),
    }

    if include_locked:
        held = set(unlocked_ids)
        locked = []
        for achievement in ACHIEVEMENTS:
            if achievement.id in held:
                continue
            entry = _display(achievement)
            entry["progress"] = calculate_achievement_progress(achievement, ledger, streak)
            locked.append(entry)

        # Closest to completion first
        locked.sort(key=lambda x: x["progress"]["percentage"], reverse=True)
        result["locked"] = locked

    return result


def _display(achievement: AchievementDefinition) -> Dict[str, object]:
    return {
        "id": achievement.id,
        "title": achievement.title,
        "description": achievement.description,
        "icon": achievement.icon,
        "color": achievement.color,
    }
