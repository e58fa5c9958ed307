"""
ProgressService - Progress, Streak and Achievement Orchestration

A status update reads the user document, computes the new ledger, streak
and achievements in memory, and writes them back in one versioned update.
When another session wrote in between, the update is recomputed from the
fresh document (up to MAX_UPDATE_ATTEMPTS times).
"""

import inspect
import logging
import random
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from bootcamp_tracker.config import MAX_UPDATE_ATTEMPTS
from bootcamp_tracker.curriculum.catalog import TOTAL_MODULES, get_module
from bootcamp_tracker.exceptions import ConcurrentUpdateError, ValidationError
from bootcamp_tracker.gamification.achievement_system import evaluate_achievements, get_achievement_summary
from bootcamp_tracker.gamification.dashboards import (
    build_leaderboard,
    build_weekly_activity,
    get_category_milestone,
    get_milestone,
    get_next_module,
    get_study_recommendations,
)
from bootcamp_tracker.gamification.progress_ledger import (
    apply_status_update,
    category_completion,
    completed_count,
    completion_percentage,
)
from bootcamp_tracker.gamification.streak_system import compute_streak
from bootcamp_tracker.gamification.study_sessions import (
    FOCUS_MINUTES,
    record_study_session,
    summarize_study_time,
)
from bootcamp_tracker.models.progress import ModuleStatus, ProgressRecord
from bootcamp_tracker.models.user import UserAccount
from bootcamp_tracker.monitoring.prometheus_metrics import track_achievements_unlocked, track_status_update
from bootcamp_tracker.services.user_service import UserService
from bootcamp_tracker.store.access import store_call
from bootcamp_tracker.store.base import USERS_COLLECTION, DocumentSnapshot, DocumentStore
from bootcamp_tracker.store.subscriptions import Subscription

logger = logging.getLogger(__name__)


@dataclass
class StatusUpdateResult:
    """Outcome of update_module_status"""
    user_id: str
    record: ProgressRecord
    ledger: List[ProgressRecord]
    streak: int
    newly_unlocked: List[str] = field(default_factory=list)
    achievements: List[str] = field(default_factory=list)


def parse_status(status: Union[str, ModuleStatus]) -> ModuleStatus:
    try:
        return ModuleStatus(status)
    except ValueError:
        raise ValidationError(
            f"Unknown module status '{status}'",
            field="status",
            value=status,
            operation="update_module_status",
        )


class ProgressService:
    """
    Service for learner progress.

    Responsibilities:
    - Module status updates with streak and achievement evaluation
    - Study session logging
    - Per-user views (achievements, categories, recommendations)
    - Roster views (leaderboard, weekly activity)
    - Live subscriptions to one user or the whole roster
    """

    def __init__(
        self,
        store: DocumentStore,
        user_service: UserService,
        max_attempts: int = MAX_UPDATE_ATTEMPTS,
        total_modules: int = TOTAL_MODULES
    ):
        self.store = store
        self.users = user_service
        self.max_attempts = max_attempts
        self.total_modules = total_modules

    # ============================================
    # Writes
    # ============================================

    async def update_module_status(
        self,
        user_id: str,
        module_id: int,
        status: Union[str, ModuleStatus],
        now: Optional[datetime] = None
    ) -> StatusUpdateResult:
        """
        Set a module's status for a learner.

        Args:
            user_id: Learner id
            module_id: Module id (not checked against the catalog)
            status: 'not-started', 'in-progress' or 'completed'
            now: Update timestamp (defaults to current UTC time)

        Returns:
            StatusUpdateResult with the stored ledger, new streak and newly
            unlocked achievement ids

        Raises:
            ValidationError: Unknown status
            RecordNotFoundError: Unknown user
            ConcurrentUpdateError: Still conflicting after max_attempts
            DatabaseError: Store failure (nothing is written)
        """
        new_status = parse_status(status)
        now = now or datetime.now(timezone.utc)
        if get_module(module_id) is None:
            logger.warning(f"User {user_id} updating module {module_id}, which is not in the catalog")

        def mutate(user: UserAccount) -> Tuple[Dict[str, Any], StatusUpdateResult]:
            ledger, record = apply_status_update(user.progress, module_id, new_status, now)
            streak = compute_streak(user.streak, user.last_updated, now)
            newly_unlocked = evaluate_achievements(ledger, streak, user.achievements)
            achievements = [*user.achievements, *newly_unlocked]

            fields = {
                "progress": [r.to_document() for r in ledger],
                "streak": streak,
                "lastUpdated": now.isoformat(),
                "achievements": achievements,
            }
            result = StatusUpdateResult(
                user_id=user_id,
                record=record,
                ledger=ledger,
                streak=streak,
                newly_unlocked=newly_unlocked,
                achievements=achievements,
            )
            return fields, result

        try:
            result = await self._mutate_user(user_id, "update_module_status", mutate)
        except ConcurrentUpdateError:
            track_status_update(new_status.value, "conflict")
            raise
        except Exception:
            track_status_update(new_status.value, "error")
            raise

        track_status_update(new_status.value, "success")
        logger.info(
            f"User {user_id} set module {module_id} to {new_status.value} "
            f"(streak {result.streak}, {completed_count(result.ledger)} completed)"
        )
        if result.newly_unlocked:
            track_achievements_unlocked(result.newly_unlocked)
            logger.info(f"User {user_id} unlocked achievements: {result.newly_unlocked}")

        return result

    async def log_study_session(
        self,
        user_id: str,
        duration: int = FOCUS_MINUTES,
        mode: str = "focus",
        now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """
        Record a finished study timer session.

        Returns:
            Study time summary (see summarize_study_time)

        Raises:
            ValidationError: Non-positive duration or unknown mode
        """
        now = now or datetime.now(timezone.utc)

        def mutate(user: UserAccount) -> Tuple[Dict[str, Any], Dict[str, Any]]:
            try:
                sessions, total = record_study_session(
                    user.study_sessions, user.total_study_time, duration, now, mode
                )
            except ValueError as e:
                raise ValidationError(
                    str(e),
                    field="duration" if duration <= 0 else "mode",
                    value=duration if duration <= 0 else mode,
                    user_id=user_id,
                    operation="log_study_session",
                )
            fields = {
                "studySessions": [s.model_dump(mode="json") for s in sessions],
                "totalStudyTime": total,
            }
            return fields, summarize_study_time(sessions, total)

        summary = await self._mutate_user(user_id, "log_study_session", mutate)
        logger.info(f"User {user_id} logged a {duration} min {mode} session")
        return summary

    async def _mutate_user(
        self,
        user_id: str,
        operation: str,
        mutate: Callable[[UserAccount], Tuple[Dict[str, Any], Any]]
    ) -> Any:
        """Read-compute-write loop guarded by the document version"""
        for attempt in range(1, self.max_attempts + 1):
            user, version = await self.users.load_user(user_id)
            fields, result = mutate(user)

            try:
                await store_call(
                    "update_fields", USERS_COLLECTION,
                    self.store.update_fields, USERS_COLLECTION, user_id, fields,
                    expected_version=version
                )
                return result
            except ConcurrentUpdateError:
                if attempt == self.max_attempts:
                    logger.error(f"{operation} for {user_id} gave up after {attempt} conflicting attempts")
                    raise
                logger.warning(f"{operation} for {user_id} conflicted (attempt {attempt}), retrying")

        raise RuntimeError("unreachable: max_attempts must be >= 1")

    # ============================================
    # Per-user views
    # ============================================

    async def get_overview(self, user_id: str) -> Dict[str, Any]:
        """
        User document plus derived progress figures

        Returns:
            {
                'user': dict,
                'completion': int,
                'completed_modules': int,
                'total_modules': int,
                'milestone': {'title', 'description'},
                'next_module': {'id', 'title', 'status'},
                'study_time': dict
            }
        """
        user = await self.users.get_user(user_id)
        completion = completion_percentage(user.progress, self.total_modules)
        return {
            "user": user.model_dump(mode="json", by_alias=True),
            "completion": completion,
            "completed_modules": completed_count(user.progress),
            "total_modules": self.total_modules,
            "milestone": get_milestone(completion),
            "next_module": get_next_module(user.progress),
            "study_time": summarize_study_time(user.study_sessions, user.total_study_time),
        }

    async def get_achievements(self, user_id: str, include_locked: bool = True) -> Dict[str, Any]:
        user = await self.users.get_user(user_id)
        return get_achievement_summary(user.achievements, user.progress, user.streak, include_locked)

    async def get_categories(self, user_id: str) -> List[Dict[str, Any]]:
        """Per-category completion with milestone titles"""
        user = await self.users.get_user(user_id)
        categories = category_completion(user.progress)
        for category in categories:
            category["milestone"] = get_category_milestone(category["name"], category["percentage"])
        return categories

    async def get_recommendations(self, user_id: str, rng: Optional[random.Random] = None) -> Dict[str, Any]:
        user = await self.users.get_user(user_id)
        return get_study_recommendations(user.progress, rng=rng)

    async def get_study_summary(self, user_id: str) -> Dict[str, Any]:
        user = await self.users.get_user(user_id)
        return summarize_study_time(user.study_sessions, user.total_study_time)

    # ============================================
    # Roster views
    # ============================================

    async def get_roster(self) -> List[UserAccount]:
        snapshots = await store_call(
            "list_documents", USERS_COLLECTION,
            self.store.list_documents, USERS_COLLECTION
        )
        return roster_from_snapshots(snapshots)

    async def get_leaderboard(self, current_user_id: Optional[str] = None) -> List[Dict[str, object]]:
        return build_leaderboard(await self.get_roster(), current_user_id, self.total_modules)

    async def get_weekly_activity(
        self,
        current_user_id: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> List[Dict[str, object]]:
        now = now or datetime.now(timezone.utc)
        return build_weekly_activity(await self.get_roster(), now, current_user_id)

    # ============================================
    # Live updates
    # ============================================

    async def subscribe_user(
        self,
        user_id: str,
        callback: Callable[[Optional[UserAccount]], Any]
    ) -> Subscription:
        """Listen to one learner; callback gets a UserAccount, or None while the document is missing"""

        async def on_snapshot(snapshot: DocumentSnapshot) -> None:
            user = UserAccount.from_document(user_id, snapshot.data) if snapshot.exists else None
            result = callback(user)
            if inspect.isawaitable(result):
                await result

        return await self.store.subscribe(USERS_COLLECTION, user_id, on_snapshot)

    async def subscribe_roster(self, callback: Callable[[List[UserAccount]], Any]) -> Subscription:
        """Listen to the whole roster; callback gets every UserAccount after each write"""

        async def on_snapshots(snapshots: List[DocumentSnapshot]) -> None:
            result = callback(roster_from_snapshots(snapshots))
            if inspect.isawaitable(result):
                await result

        return await self.store.subscribe_collection(USERS_COLLECTION, on_snapshots)


def roster_from_snapshots(snapshots: List[DocumentSnapshot]) -> List[UserAccount]:
    return [
        UserAccount.from_document(snapshot.id, snapshot.data)
        for snapshot in snapshots
        if snapshot.exists
    ]
