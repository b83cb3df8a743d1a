"""
Service Container - Dependency Injection Container

Simple DI container for managing service instances and their dependencies.
Uses lazy loading to only instantiate services when first accessed.
"""

from dataclasses import dataclass, field
from typing import Optional
import logging

from tipquest.db.progress_store import InMemoryProgressStore, PostgresProgressStore, ProgressStore

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """
    Simple dependency injection container for services.

    The progress store is chosen once: Postgres when a database is injected,
    an in-memory store otherwise.
    """

    # Infrastructure dependencies (injected)
    db: Optional[object] = None  # Database instance

    # Services (lazy-loaded via properties)
    _progress_store: Optional[ProgressStore] = field(default=None, init=False, repr=False)
    _gamification_service: Optional[object] = field(default=None, init=False, repr=False)

    @property
    def progress_store(self) -> ProgressStore:
        """Get the ProgressStore (lazy-loaded)"""
        if self._progress_store is None:
            if self.db is not None:
                self._progress_store = PostgresProgressStore(self.db)
            else:
                logger.warning("No database configured, achievement progress is kept in memory only")
                self._progress_store = InMemoryProgressStore()
        return self._progress_store

    @property
    def gamification_service(self):
        """Get GamificationService instance (lazy-loaded)"""
        if self._gamification_service is None:
            from tipquest.services.gamification_service import GamificationService
            self._gamification_service = GamificationService(self.progress_store)
            logger.debug("GamificationService instantiated")
        return self._gamification_service


# Global container instance (initialized by the host application)
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
            "Call init_container() during application startup before using services."
        )
    return _container


def init_container(db: Optional[object] = None) -> ServiceContainer:
    """
    Initialize the global service container.

    Args:
        db: Initialized Database instance, None for an in-memory progress store

    Returns:
        ServiceContainer: The initialized container
    """
    global _container

    _container = ServiceContainer(db=db)

    logger.info("Service container initialized")
    return _container
