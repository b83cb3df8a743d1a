"""
Standardized exception hierarchy for tipquest
Provides rich context and consistent logging for engine and store failures
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any
from uuid import uuid4
import logging

logger = logging.getLogger(__name__)


class TipQuestError(Exception):
    """
    Base exception for all tipquest errors

    Provides:
    - Automatic timestamping
    - Request ID for tracing
    - User-friendly messages
    - Structured context
    - Automatic logging

    Example:
        raise TipQuestError(
            message="Failed to persist achievement progress",
            user_id="user-42",
            operation="upsert_progress",
            context={"achievement_id": "shifts_10"}
        )
    """

    def __init__(
        self,
        message: str,
        user_id: Optional[str] = None,
        request_id: Optional[str] = None,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        user_message: Optional[str] = None
    ):
        super().__init__(message)
        self.message = message
        self.user_id = user_id
        self.request_id = request_id or str(uuid4())
        self.operation = operation
        self.context = context or {}
        self.cause = cause
        self.user_message = user_message or "An error occurred. Please try again."
        self.timestamp = datetime.now(timezone.utc)

        # Auto-log on creation
        self._log_error()

    def _log_error(self) -> None:
        """Log error with full context"""
        log_data = {
            "error_type": self.__class__.__name__,
            "error_message": self.message,  # Avoid conflict with logging's 'message' field
            "request_id": self.request_id,
            "user_id": self.user_id,
            "operation": self.operation,
            "error_context": self.context,
            "timestamp": self.timestamp.isoformat()
        }

        if self.cause:
            log_data["cause"] = str(self.cause)
            logger.error(f"{self.__class__.__name__}: {self.message}", extra=log_data, exc_info=self.cause)
        else:
            logger.error(f"{self.__class__.__name__}: {self.message}", extra=log_data)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for host application responses"""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "user_message": self.user_message,
            "request_id": self.request_id,
            "timestamp": self.timestamp.isoformat()
        }


# ==========================================
# Validation Errors (Input)
# ==========================================

class ValidationError(TipQuestError):
    """
    Raised when input fails validation

    Examples:
    - Achievement definition with a non-positive target
    - Level table with gaps between bands
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        **kwargs
    ):
        self.field = field
        self.value = value
        super().__init__(
            message=message,
            user_message=f"Invalid {field}: {message}" if field else message,
            context={"field": field, "value": value},
            **kwargs
        )


# ==========================================
# Persistence Errors
# ==========================================

class DatabaseError(TipQuestError):
    """
    Base class for database-related errors
    """
    pass


class ProgressStoreError(DatabaseError):
    """Achievement progress could not be read or written"""

    def __init__(
        self,
        message: str,
        achievement_id: Optional[str] = None,
        **kwargs
    ):
        self.achievement_id = achievement_id
        context = kwargs.pop("context", None) or {}
        context.setdefault("achievement_id", achievement_id)
        super().__init__(
            message=message,
            user_message="Your achievement progress will be saved on the next update.",
            context=context,
            **kwargs
        )


# ==========================================
# Configuration Errors
# ==========================================

class ConfigurationError(TipQuestError):
    """System configuration is invalid or missing"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        **kwargs
    ):
        self.config_key = config_key
        super().__init__(
            message=message,
            user_message="The system is not properly configured. Please contact support.",
            context={"config_key": config_key},
            **kwargs
        )


def wrap_store_exception(
    error: Exception,
    operation: str,
    user_id: Optional[str] = None,
    achievement_id: Optional[str] = None
) -> ProgressStoreError:
    """
    Wrap a driver-level exception raised by a progress store

    Example:
        try:
            await cur.execute(query, params)
        except psycopg.Error as e:
            raise wrap_store_exception(e, operation="upsert_progress", user_id=user_id)
    """
    import psycopg

    if isinstance(error, psycopg.OperationalError):
        message = f"Progress store unreachable during {operation}: {error}"
    else:
        message = f"Progress store {operation} failed: {error}"

    return ProgressStoreError(
        message=message,
        achievement_id=achievement_id,
        user_id=user_id,
        operation=operation,
        cause=error
    )
