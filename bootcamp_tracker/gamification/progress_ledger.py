"""
Progress Ledger

Pure transforms and statistics over a learner's list of ProgressRecords.
A ledger holds at most one record per module id; a missing record means the
module is not started.
"""

from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
import logging

from bootcamp_tracker.curriculum.catalog import COURSE_MODULES, CATEGORIES, TOTAL_MODULES
from bootcamp_tracker.models.curriculum import Module, Category
from bootcamp_tracker.models.progress import ModuleStatus, ProgressRecord

logger = logging.getLogger(__name__)


def apply_status_update(
    ledger: Sequence[ProgressRecord],
    module_id: int,
    status: ModuleStatus,
    now: datetime
) -> Tuple[List[ProgressRecord], ProgressRecord]:
    """
    Set the status of one module, returning a new ledger

    - No record yet: append one with started_at = updated_at = now
    - Existing record: replace status and updated_at, keep started_at

    Module ids are not checked against the catalog; unknown ids are stored as-is.

    Args:
        ledger: Current records (not modified)
        module_id: Module to update
        status: New status
        now: Timestamp of the update

    Returns:
        (new ledger, the written record)
    """
    updated = list(ledger)

    for index, record in enumerate(updated):
        if record.module_id == module_id:
            new_record = record.model_copy(update={"status": status, "updated_at": now})
            updated[index] = new_record
            return updated, new_record

    new_record = ProgressRecord(
        module_id=module_id,
        status=status,
        started_at=now,
        updated_at=now,
    )
    updated.append(new_record)
    return updated, new_record


def find_record(ledger: Iterable[ProgressRecord], module_id: int) -> Optional[ProgressRecord]:
    for record in ledger:
        if record.module_id == module_id:
            return record
    return None


def module_status(ledger: Iterable[ProgressRecord], module_id: int) -> ModuleStatus:
    """Status of a module, NOT_STARTED when the ledger has no record for it"""
    record = find_record(ledger, module_id)
    return record.status if record else ModuleStatus.NOT_STARTED


def completed_module_ids(ledger: Iterable[ProgressRecord]) -> List[int]:
    return [record.module_id for record in ledger if record.status == ModuleStatus.COMPLETED]


def completed_count(ledger: Iterable[ProgressRecord]) -> int:
    return len(completed_module_ids(ledger))


def round_percentage(part: int, whole: int) -> int:
    """
    100 * part / whole rounded half-up (0 when whole is 0)

    Python's round() rounds halves to even, so Decimal is used to get 12.5 -> 13.
    """
    if whole <= 0:
        return 0
    value = Decimal(100 * part) / Decimal(whole)
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def completion_percentage(
    ledger: Iterable[ProgressRecord],
    total_modules: int = TOTAL_MODULES
) -> int:
    """Overall course completion, the figure shared by achievements and the leaderboard"""
    return round_percentage(completed_count(ledger), total_modules)


def category_completion(
    ledger: Sequence[ProgressRecord],
    modules: Sequence[Module] = COURSE_MODULES,
    categories: Sequence[Category] = CATEGORIES
) -> List[Dict[str, object]]:
    """
    Per-category breakdown for one learner

    Returns:
        [
            {
                'name': str,
                'color': str,
                'completed': int,
                'in_progress': int,
                'not_started': int,
                'total': int,
                'percentage': int
            }
        ]
    """
    status_by_module = {record.module_id: record.status for record in ledger}

    result = []
    for category in categories:
        category_ids = [module.id for module in modules if module.category == category.name]
        completed = sum(
            1 for module_id in category_ids
            if status_by_module.get(module_id) == ModuleStatus.COMPLETED
        )
        in_progress = sum(
            1 for module_id in category_ids
            if status_by_module.get(module_id) == ModuleStatus.IN_PROGRESS
        )
        total = len(category_ids)

        result.append({
            "name": category.name,
            "color": category.display_color,
            "completed": completed,
            "in_progress": in_progress,
            "not_started": total - completed - in_progress,
            "total": total,
            "percentage": round_percentage(completed, total),
        })

    return result
