"""Business services for bootcamp-tracker"""

from bootcamp_tracker.services.container import (
    ServiceContainer,
    get_container,
    init_container,
    reset_container,
)
from bootcamp_tracker.services.progress_service import ProgressService, StatusUpdateResult
from bootcamp_tracker.services.user_service import UserService

__all__ = [
    "ServiceContainer",
    "get_container",
    "init_container",
    "reset_container",
    "ProgressService",
    "StatusUpdateResult",
    "UserService",
]
