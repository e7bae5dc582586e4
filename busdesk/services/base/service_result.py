"""
Service result patterns for standardized response handling.

Every public engine operation returns a ServiceResult instead of raising,
so the presentation layer can show a recoverable message and carry on.
"""

from typing import TypeVar, Generic, Optional, Any, Dict
from dataclasses import dataclass
from enum import Enum
from datetime import datetime, timezone


class ErrorCode(str, Enum):
    """Standard error codes for engine operations."""

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"

    # Workflow errors
    INVALID_STATE = "INVALID_STATE"
    CONFLICT = "CONFLICT"
    OPERATION_CANCELLED = "OPERATION_CANCELLED"

    # Remote store and setup errors
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    TIMEOUT = "TIMEOUT"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"


class ErrorSeverity(str, Enum):
    """Error severity levels."""

    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


@dataclass
class ServiceError:
    """Why an operation failed, in words the operator can act on."""

    code: ErrorCode
    message: str
    severity: ErrorSeverity = ErrorSeverity.ERROR
    details: Optional[Dict[str, Any]] = None
    field: Optional[str] = None
    timestamp: Optional[datetime] = None

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = datetime.now(timezone.utc)


TData = TypeVar("TData")


@dataclass
class ServiceResult(Generic[TData]):
    """
    Standardized operation result with success/failure pattern.

    Attributes:
        is_success: Operation success indicator
        data: Result data (if successful)
        error: Error information (if failed)
        message: Human-readable status message
        metadata: Additional context (informational notices, counts)
    """

    is_success: bool
    data: Optional[TData] = None
    error: Optional[ServiceError] = None
    message: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    @classmethod
    def success(
        cls,
        data: Optional[TData] = None,
        message: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> "ServiceResult[TData]":
        """Create a successful result."""
        return cls(
            is_success=True,
            data=data,
            message=message,
            metadata=metadata or {},
        )

    @classmethod
    def failure(
        cls,
        error: ServiceError,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> "ServiceResult[TData]":
        """Create a failed result."""
        return cls(
            is_success=False,
            error=error,
            message=error.message,
            metadata=metadata or {},
        )

    @classmethod
    def validation_failure(
        cls,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> "ServiceResult[TData]":
        """Create a validation failure result."""
        return cls.failure(
            ServiceError(
                code=ErrorCode.VALIDATION_ERROR,
                message=message,
                field=field,
                details=details,
            )
        )

    @classmethod
    def not_found(
        cls,
        resource_type: str,
        resource_id: Optional[str] = None,
    ) -> "ServiceResult[TData]":
        """Create a not found failure result."""
        message = f"{resource_type} not found"
        if resource_id:
            message += f" (ID: {resource_id})"

        return cls.failure(
            ServiceError(
                code=ErrorCode.NOT_FOUND,
                message=message,
                severity=ErrorSeverity.WARNING,
                details={"resource_type": resource_type, "resource_id": resource_id},
            )
        )

    @classmethod
    def cancelled(cls, operation: str) -> "ServiceResult[TData]":
        """Create a result for an operation the operator declined to confirm."""
        return cls.failure(
            ServiceError(
                code=ErrorCode.OPERATION_CANCELLED,
                message=f"{operation} was cancelled",
                severity=ErrorSeverity.INFO,
            )
        )

    @classmethod
    def conflict(
        cls,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> "ServiceResult[TData]":
        """Create a conflict failure result."""
        return cls.failure(
            ServiceError(
                code=ErrorCode.CONFLICT,
                message=message,
                severity=ErrorSeverity.WARNING,
                details=details,
            )
        )

    @property
    def notice(self) -> Optional[str]:
        """Informational notice attached to an otherwise successful result."""
        return (self.metadata or {}).get("notice")

    @property
    def error_code(self) -> Optional[ErrorCode]:
        return self.error.code if self.error else None

    def unwrap(self) -> TData:
        """
        Data of a successful result.

        Raises:
            ValueError: the operation failed; the message is the failure's
        """
        if not self.is_success:
            raise ValueError(self.message or "Operation failed")
        return self.data

    def unwrap_or(self, default: TData) -> TData:
        return self.data if self.is_success else default

    def __bool__(self) -> bool:
        return self.is_success

    def __repr__(self) -> str:
        status = "Success" if self.is_success else "Failure"
        if self.message:
            return f"ServiceResult({status}: {self.message})"
        return f"ServiceResult({status})"


__all__ = [
    "ErrorCode",
    "ErrorSeverity",
    "ServiceError",
    "ServiceResult",
]
