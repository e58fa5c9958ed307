"""
Standardized exception hierarchy for bootcamp-tracker
Provides rich context, consistent logging, and user-friendly error messages
"""

from datetime import datetime, timezone
from typing import Optional, Dict, Any
from uuid import uuid4
import logging

logger = logging.getLogger(__name__)


def _merge_context(kwargs: Dict[str, Any], extra: Dict[str, Any]) -> Dict[str, Any]:
    """Pop caller-supplied context from kwargs and merge subclass fields into it"""
    merged = dict(kwargs.pop("context", None) or {})
    merged.update(extra)
    return merged


class TrackerError(Exception):
    """
    Base exception for all bootcamp-tracker errors

    Provides:
    - Automatic timestamping
    - Request ID for tracing
    - User-friendly messages
    - Structured context
    - Automatic logging

    Example:
        raise TrackerError(
            message="Failed to save progress",
            user_id="uid-123",
            operation="update_module_status",
            context={"module_id": 7}
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

    # Expected user errors override this with WARNING
    log_level = logging.ERROR

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
            logger.log(self.log_level, f"{self.__class__.__name__}: {self.message}", extra=log_data, exc_info=self.cause)
        else:
            logger.log(self.log_level, f"{self.__class__.__name__}: {self.message}", extra=log_data)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for API responses"""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "user_message": self.user_message,
            "request_id": self.request_id,
            "timestamp": self.timestamp.isoformat()
        }


# ==========================================
# Validation Errors (User Input)
# ==========================================

class ValidationError(TrackerError):
    """
    Raised when user input fails validation

    Examples:
    - Unknown module status
    - Non-positive study session duration

    Example:
        raise ValidationError(
            message="Duration must be positive",
            field="duration",
            value=-5,
            user_id="uid-123"
        )
    """

    log_level = logging.WARNING

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
            context=_merge_context(kwargs, {"field": field, "value": value}),
            **kwargs
        )


# ==========================================
# Document Store Errors
# ==========================================

class DatabaseError(TrackerError):
    """
    Base class for document store errors
    """
    pass


class ConnectionError(DatabaseError):
    """Document store connection failed (transient)"""

    def __init__(self, message: str = "Database connection failed", **kwargs):
        super().__init__(
            message=message,
            user_message="We're having trouble connecting to the database. Please try again in a moment.",
            **kwargs
        )


class QueryError(DatabaseError):
    """Document store read or write failed"""

    def __init__(
        self,
        message: str,
        query: Optional[str] = None,
        **kwargs
    ):
        self.query = query
        super().__init__(
            message=message,
            user_message="We encountered an issue saving your data. Please try again.",
            context=_merge_context(kwargs, {"query": query}),
            **kwargs
        )


class RecordNotFoundError(DatabaseError):
    """Requested document does not exist"""

    log_level = logging.WARNING

    def __init__(
        self,
        message: str,
        record_type: Optional[str] = None,
        record_id: Optional[str] = None,
        **kwargs
    ):
        self.record_type = record_type
        self.record_id = record_id
        super().__init__(
            message=message,
            user_message=f"{record_type or 'Record'} not found.",
            context=_merge_context(kwargs, {"record_type": record_type, "record_id": record_id}),
            **kwargs
        )


class RecordExistsError(DatabaseError):
    """Create-only write found the document already present"""

    log_level = logging.WARNING

    def __init__(
        self,
        message: str,
        record_type: Optional[str] = None,
        record_id: Optional[str] = None,
        **kwargs
    ):
        self.record_type = record_type
        self.record_id = record_id
        super().__init__(
            message=message,
            user_message=f"{record_type or 'Record'} already exists.",
            context=_merge_context(kwargs, {"record_type": record_type, "record_id": record_id}),
            **kwargs
        )


class ConcurrentUpdateError(DatabaseError):
    """Document changed between read and write (optimistic version check failed)"""

    log_level = logging.WARNING

    def __init__(
        self,
        message: str,
        record_id: Optional[str] = None,
        expected_version: Optional[int] = None,
        actual_version: Optional[int] = None,
        **kwargs
    ):
        self.record_id = record_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            message=message,
            user_message="Your progress was updated from another session. Please refresh and try again.",
            context=_merge_context(kwargs, {
                "record_id": record_id,
                "expected_version": expected_version,
                "actual_version": actual_version,
            }),
            **kwargs
        )


# ==========================================
# Identity / Authentication
# ==========================================

class IdentityError(TrackerError):
    """Base class for identity provider failures"""

    log_level = logging.WARNING
    default_user_message = "Authentication failed. Please check your credentials."

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("user_message", self.default_user_message)
        super().__init__(message=message, **kwargs)


class EmailAlreadyInUseError(IdentityError):
    """Registration with an email that already has an account"""
    default_user_message = (
        "This email is already registered. Please use a different email or try logging in."
    )


class InvalidEmailError(IdentityError):
    """Malformed email address"""
    default_user_message = "Invalid email address. Please check your email format."


class WeakPasswordError(IdentityError):
    """Password below the minimum length"""

    def __init__(self, message: str, min_length: int = 6, **kwargs):
        self.min_length = min_length
        kwargs.setdefault(
            "user_message",
            f"Password is too weak. Please use at least {min_length} characters."
        )
        super().__init__(message, **kwargs)


class InvalidCredentialsError(IdentityError):
    """Unknown email or wrong password"""
    default_user_message = "Failed to log in. Please check your email and password."


class IdentityNetworkError(IdentityError):
    """Identity provider could not reach its backing store"""
    log_level = logging.ERROR
    default_user_message = "Network error. Please check your internet connection."


class SessionNotFoundError(IdentityError):
    """Session token is unknown or already logged out"""
    default_user_message = "Your session has expired. Please log in again."


# ==========================================
# Configuration Errors
# ==========================================

class ConfigurationError(TrackerError):
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
            context=_merge_context(kwargs, {"config_key": config_key}),
            **kwargs
        )


# ==========================================
# Helper Functions
# ==========================================

def wrap_external_exception(
    error: Exception,
    operation: str,
    user_id: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None
) -> TrackerError:
    """
    Wrap external exceptions (psycopg, etc.) into our exception hierarchy

    Args:
        error: Original exception
        operation: What operation was being performed
        user_id: User ID if applicable
        context: Additional context

    Returns:
        Appropriate TrackerError subclass

    Example:
        try:
            await cur.execute(query)
        except psycopg.Error as e:
            raise wrap_external_exception(
                e,
                operation="update_fields",
                context={"collection": "users"}
            )
    """
    import psycopg

    if isinstance(error, TrackerError):
        return error

    # Database errors
    if isinstance(error, psycopg.OperationalError):
        return ConnectionError(
            message=f"Database connection failed: {str(error)}",
            user_id=user_id,
            operation=operation,
            context=context,
            cause=error
        )
    elif isinstance(error, psycopg.Error):
        return QueryError(
            message=f"Database query failed: {str(error)}",
            user_id=user_id,
            operation=operation,
            context=context,
            cause=error
        )

    # Generic fallback
    return TrackerError(
        message=f"{operation} failed: {str(error)}",
        user_id=user_id,
        operation=operation,
        context=context,
        cause=error
    )
