"""
Service Layer Package

Business logic services sitting between the host application and the
gamification engine / progress store.

- GamificationService: recompute entry point, stats snapshot, recommendations
"""

from tipquest.services.container import ServiceContainer, get_container, init_container
from tipquest.services.gamification_service import GamificationService

__all__ = [
    "ServiceContainer",
    "get_container",
    "init_container",
    "GamificationService",
]
