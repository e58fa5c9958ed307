"""
Dashboard Aggregations

Read-only views computed from loaded user documents:
- Leaderboard (overall completion, descending)
- Weekly activity (modules completed since Sunday midnight, descending)
- Milestone titles for overall and per-category completion
- Next module to study and study recommendations

Sorting is stable: ties keep roster order.
"""

import random
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Dict, List, Optional, Sequence
import logging

from bootcamp_tracker.config import get_timezone
from bootcamp_tracker.curriculum.catalog import COURSE_MODULES, TOTAL_MODULES
from bootcamp_tracker.gamification.progress_ledger import (
    category_completion,
    completed_count,
    completed_module_ids,
    completion_percentage,
    module_status,
)
from bootcamp_tracker.models.curriculum import Module
from bootcamp_tracker.models.progress import ModuleStatus, ProgressRecord
from bootcamp_tracker.models.user import UserAccount

logger = logging.getLogger(__name__)


# ============================================
# Leaderboard & weekly activity
# ============================================

def build_leaderboard(
    roster: Sequence[UserAccount],
    current_user_id: Optional[str] = None,
    total_modules: int = TOTAL_MODULES
) -> List[Dict[str, object]]:
    """
    Rank learners by overall completion percentage

    Returns:
        [
            {
                'id': str,
                'name': str,
                'completion': int,
                'completed_modules': int,
                'streak': int,
                'is_current_user': bool
            }
        ]
    """
    rows = [
        {
            "id": user.id,
            "name": user.name,
            "completion": completion_percentage(user.progress, total_modules),
            "completed_modules": completed_count(user.progress),
            "streak": user.streak,
            "is_current_user": user.id == current_user_id,
        }
        for user in roster
    ]
    rows.sort(key=lambda row: row["completion"], reverse=True)
    return rows


def start_of_week(now: datetime, tz: Optional[tzinfo] = None) -> datetime:
    """Most recent Sunday, local midnight (aware, in the streak timezone)"""
    if tz is None:
        tz = get_timezone()
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    local_now = now.astimezone(tz)
    days_since_sunday = (local_now.weekday() + 1) % 7
    sunday = local_now.date() - timedelta(days=days_since_sunday)
    return datetime(sunday.year, sunday.month, sunday.day, tzinfo=tz)


def weekly_completion_count(
    ledger: Sequence[ProgressRecord],
    now: datetime,
    tz: Optional[tzinfo] = None
) -> int:
    """Modules whose completion was recorded in the current calendar week"""
    week_start = start_of_week(now, tz)
    count = 0
    for record in ledger:
        if record.status != ModuleStatus.COMPLETED:
            continue
        updated_at = record.updated_at
        if updated_at.tzinfo is None:
            updated_at = updated_at.replace(tzinfo=timezone.utc)
        if updated_at >= week_start:
            count += 1
    return count


def build_weekly_activity(
    roster: Sequence[UserAccount],
    now: datetime,
    current_user_id: Optional[str] = None,
    tz: Optional[tzinfo] = None
) -> List[Dict[str, object]]:
    """
    Rank learners by modules completed this week

    Returns:
        [{'id': str, 'name': str, 'this_week': int, 'is_current_user': bool}]
    """
    rows = [
        {
            "id": user.id,
            "name": user.name,
            "this_week": weekly_completion_count(user.progress, now, tz),
            "is_current_user": user.id == current_user_id,
        }
        for user in roster
    ]
    rows.sort(key=lambda row: row["this_week"], reverse=True)
    return rows


# ============================================
# Milestone titles
# ============================================

OVERALL_MILESTONES = [
    (100, "Full Stack Master! 🎓",
     "You've mastered all aspects of web development. Congratulations on completing the bootcamp!"),
    (90, "Code Virtuoso! 🥇",
     "You're at an expert level with only a few concepts left to master!"),
    (75, "Backend Developer! 💻",
     "You've mastered backend development concepts and are well on your way to full stack mastery!"),
    (60, "Framework Fluent! 🛠️",
     "You've gained proficiency with frameworks and advanced programming techniques!"),
    (50, "JavaScript Ninja! ⚡",
     "You're skilled with JavaScript and DOM manipulation, a core skill for any web developer!"),
    (40, "Function Aficionado! 🧮",
     "You've mastered functions, objects, and the core building blocks of programming!"),
    (25, "HTML/CSS Wizard! 🧙‍♂️",
     "You've learned the fundamentals of web design and can create structured, styled pages!"),
    (15, "Markup Enthusiast! 🎯",
     "You're getting comfortable with HTML and beginning to understand web structures!"),
    (5, "Code Explorer! 🔍",
     "You've started your journey and taken the first steps into the world of coding!"),
    (0, "Just Getting Started! 🌱",
     "Keep going! You're on the path to becoming a developer!"),
]

CATEGORY_MILESTONES: Dict[str, List[tuple]] = {
    "Front-End Fundamentals": [
        (100, "UI/UX Designer 🎨"), (75, "CSS Specialist 🖌️"), (50, "Layout Artist 🖼️"),
        (25, "HTML Structurer 📐"), (0, "Web Beginner 🌐"),
    ],
    "JavaScript & DOM": [
        (100, "DOM Wizard 🧙‍♂️"), (75, "Event Master 🎮"), (50, "Function Guru ⚙️"),
        (25, "Script Writer 📜"), (0, "Logic Learner 🧩"),
    ],
    "Backend Development": [
        (100, "API Architect 🏗️"), (75, "Server Expert 🖥️"), (50, "Route Navigator 🧭"),
        (25, "Backend Explorer 🔍"), (0, "Server Novice 🔌"),
    ],
    "Databases & Full Stack": [
        (100, "Data Maestro 💾"), (75, "Query Craftsman 📊"), (50, "Schema Designer 📐"),
        (25, "Data Modeler 📋"), (0, "Database Beginner 📁"),
    ],
    "Advanced Topics": [
        (100, "Tech Innovator 🚀"), (75, "Framework Guru 🛠️"), (50, "Performance Optimizer ⚡"),
        (25, "Advanced Thinker 🧠"), (0, "Curious Explorer 🔭"),
    ],
}

DEFAULT_CATEGORY_MILESTONES = [
    (100, "Master 🏆"), (75, "Expert 🥇"), (50, "Practitioner 🔧"),
    (25, "Apprentice 📚"), (0, "Beginner 🌱"),
]


def get_milestone(completion: int) -> Dict[str, str]:
    """Title and description for an overall completion percentage"""
    for threshold, title, description in OVERALL_MILESTONES:
        if completion >= threshold:
            return {"title": title, "description": description}
    _, title, description = OVERALL_MILESTONES[-1]
    return {"title": title, "description": description}


def get_category_milestone(category_name: str, percentage: int) -> str:
    """Title for a category completion percentage (generic ladder for unknown categories)"""
    ladder = CATEGORY_MILESTONES.get(category_name, DEFAULT_CATEGORY_MILESTONES)
    for threshold, title in ladder:
        if percentage >= threshold:
            return title
    return DEFAULT_CATEGORY_MILESTONES[-1][1]


# ============================================
# What to study next
# ============================================

def get_next_module(
    ledger: Sequence[ProgressRecord],
    modules: Sequence[Module] = COURSE_MODULES
) -> Dict[str, object]:
    """
    Module to continue with

    - First in-progress record (ledger order) that is in the catalog
    - Otherwise the first module in sequence not yet completed
    - Otherwise an "all completed" marker pointing at the last module
    """
    modules_by_id = {module.id: module for module in modules}

    for record in ledger:
        if record.status == ModuleStatus.IN_PROGRESS and record.module_id in modules_by_id:
            module = modules_by_id[record.module_id]
            return {"id": module.id, "title": module.title, "status": ModuleStatus.IN_PROGRESS.value}

    completed = set(completed_module_ids(ledger))
    for module in modules:
        if module.id not in completed:
            return {"id": module.id, "title": module.title, "status": ModuleStatus.NOT_STARTED.value}

    last = modules[-1]
    return {"id": last.id, "title": "All modules completed! 🎉", "status": ModuleStatus.COMPLETED.value}


LEARNING_TIPS = [
    "Try using the Pomodoro technique: 25 minutes of focused study followed by a 5-minute break.",
    "Studies show that teaching concepts to others solidifies your own understanding.",
    "Create small coding projects to practice what you learn in each module.",
    "Take notes while learning to improve retention and create a personal reference.",
    "Schedule regular review sessions for previously completed modules.",
    "Try the 'rubber duck debugging' technique: explain your code to an object to find issues.",
    "Pair coding can improve problem-solving skills and expose you to new approaches.",
    "Set specific and achievable learning goals for each study session.",
    "Visualize concepts with diagrams and flowcharts to better understand relationships.",
    "Practice active recall by testing yourself rather than simply reviewing material.",
]


def get_study_recommendations(
    ledger: Sequence[ProgressRecord],
    limit: int = 3,
    rng: Optional[random.Random] = None,
    modules: Sequence[Module] = COURSE_MODULES
) -> Dict[str, object]:
    """
    Suggest modules from the weakest categories plus a learning tip

    Focus categories: up to two under 50% completion (weakest first), or the
    single weakest category when all are at 50% or more. Candidates, in order:
    not-started modules in the focus categories, then any in-progress modules,
    then the next uncompleted modules in sequence.

    Returns:
        {
            'focus_categories': [str],
            'modules': [{'id', 'title', 'category', 'description'}],
            'tip': str
        }
    """
    rng = rng or random.Random()
    categories = category_completion(ledger, modules)

    weakest = sorted(
        (category for category in categories if category["percentage"] < 50),
        key=lambda category: category["percentage"]
    )[:2]
    if not weakest:
        weakest = sorted(categories, key=lambda category: category["percentage"])[:1]
    focus = {category["name"] for category in weakest}

    recommended = [
        module for module in modules
        if module.category in focus and module_status(ledger, module.id) == ModuleStatus.NOT_STARTED
    ][:limit]

    if not recommended:
        recommended = [
            module for module in modules
            if module_status(ledger, module.id) == ModuleStatus.IN_PROGRESS
        ][:limit]

    if not recommended:
        completed = set(completed_module_ids(ledger))
        recommended = [module for module in modules if module.id not in completed][:limit]

    return {
        "focus_categories": [category["name"] for category in weakest],
        "modules": [module.model_dump() for module in recommended],
        "tip": rng.choice(LEARNING_TIPS),
    }
