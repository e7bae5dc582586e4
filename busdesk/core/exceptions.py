"""
Custom exceptions for the booking engine.

Raised inside the engine (remote client, validation, in-flight guard) and
converted to ServiceResult failures at the service boundary.
"""

from typing import Any, Dict, List, Optional
from enum import Enum


class ErrorCode(str, Enum):
    """Error codes carried by engine exceptions"""
    INTERNAL_ERROR = "INTERNAL_ERROR"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Workflow errors
    DUPLICATE_OPERATION = "DUPLICATE_OPERATION"

    # Remote store errors
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    CONNECTION_ERROR = "CONNECTION_ERROR"
    MALFORMED_RESPONSE = "MALFORMED_RESPONSE"

    # Configuration errors
    MISSING_CONFIGURATION = "MISSING_CONFIGURATION"


class BaseAppException(Exception):
    """
    Base exception class for all engine exceptions.

    Provides consistent error handling with structured error information.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"{self.error_code.value}: {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message='{self.message}', error_code='{self.error_code.value}')"


class ValidationError(BaseAppException):
    """Exception raised when booking data fails validation"""

    def __init__(
        self,
        message: str = "Validation failed",
        field_errors: Optional[Dict[str, List[str]]] = None,
        error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
    ):
        details = {"field_errors": field_errors} if field_errors else {}
        super().__init__(message, error_code, details)


class RemoteStoreError(BaseAppException):
    """Exception raised when the remote booking store cannot be used"""

    def __init__(
        self,
        message: str = "Could not reach the booking store",
        error_code: ErrorCode = ErrorCode.EXTERNAL_SERVICE_ERROR,
        details: Optional[Dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ):
        details = dict(details or {})
        if status_code is not None:
            details["status_code"] = status_code
        self.status_code = status_code
        super().__init__(message, error_code, details)


class DuplicateOperationError(BaseAppException):
    """Exception raised when the same operation is already running for a booking"""

    def __init__(self, operation: str, booking_key: str):
        super().__init__(
            f"{operation} is already in progress for booking {booking_key}",
            ErrorCode.DUPLICATE_OPERATION,
            {"operation": operation, "booking_key": booking_key},
        )


class ConfigurationError(BaseAppException):
    """Exception raised when required settings are missing"""

    def __init__(self, setting: str):
        super().__init__(
            f"Missing required setting: {setting}",
            ErrorCode.MISSING_CONFIGURATION,
            {"setting": setting},
        )
