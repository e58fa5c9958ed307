"""
Service Container - Dependency Injection Container

Simple DI container for managing service instances and their dependencies.
Uses lazy loading to only instantiate services when first accessed.
"""

from dataclasses import dataclass, field
from typing import Optional
import logging

from bootcamp_tracker.store.base import DocumentStore

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """
    Simple dependency injection container for services.

    Services are lazy-loaded on first access via properties.
    The document store is injected.
    """

    store: DocumentStore

    _identity: Optional[object] = field(default=None, init=False, repr=False)
    _user_service: Optional[object] = field(default=None, init=False, repr=False)
    _progress_service: Optional[object] = field(default=None, init=False, repr=False)

    @property
    def identity(self):
        """Get PasswordIdentityProvider instance (lazy-loaded)"""
        if self._identity is None:
            from bootcamp_tracker.auth.identity import PasswordIdentityProvider
            self._identity = PasswordIdentityProvider(self.store)
            logger.debug("PasswordIdentityProvider instantiated")
        return self._identity

    @property
    def user_service(self):
        """Get UserService instance (lazy-loaded)"""
        if self._user_service is None:
            from bootcamp_tracker.services.user_service import UserService
            self._user_service = UserService(self.store, self.identity)
            logger.debug("UserService instantiated")
        return self._user_service

    @property
    def progress_service(self):
        """Get ProgressService instance (lazy-loaded)"""
        if self._progress_service is None:
            from bootcamp_tracker.services.progress_service import ProgressService
            self._progress_service = ProgressService(self.store, self.user_service)
            logger.debug("ProgressService instantiated")
        return self._progress_service


# Global container instance (initialized at application startup)
_container: Optional[ServiceContainer] = None


def get_container() -> ServiceContainer:
    """
    Get the global service container.

    Raises:
        RuntimeError: If container not initialized (call init_container first)
    """
    if _container is None:
        raise RuntimeError(
            "Service container not initialized. "
            "Call init_container() at startup before using services."
        )
    return _container


def init_container(store: DocumentStore) -> ServiceContainer:
    """
    Initialize the global service container.

    Args:
        store: Document store backend

    Returns:
        ServiceContainer: The initialized container
    """
    global _container

    _container = ServiceContainer(store=store)

    logger.info("Service container initialized")
    return _container


def reset_container() -> None:
    """Drop the global container (application shutdown)"""
    global _container
    _container = None
