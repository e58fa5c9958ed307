"""Static course catalog"""
from bootcamp_tracker.curriculum.catalog import (
    COURSE_MODULES,
    CATEGORIES,
    CATEGORY_ACHIEVEMENT_STEMS,
    TOTAL_MODULES,
    get_module,
    get_category,
    modules_in_category,
)

__all__ = [
    "COURSE_MODULES",
    "CATEGORIES",
    "CATEGORY_ACHIEVEMENT_STEMS",
    "TOTAL_MODULES",
    "get_module",
    "get_category",
    "modules_in_category",
]
