"""
Base service class providing common functionality for engine services.
"""

from typing import Optional, Dict, Any, Tuple
from contextlib import contextmanager
import logging

import httpx

from busdesk.core.exceptions import (
    ConfigurationError,
    DuplicateOperationError,
    RemoteStoreError,
    ValidationError,
)
from busdesk.services.base.service_result import (
    ServiceResult,
    ServiceError,
    ErrorCode,
    ErrorSeverity,
)


class BaseService:
    """
    Base service with common behaviors:
    - Shared logger
    - Consistent error handling via ServiceResult
    - Per-operation in-flight guard
    """

    def __init__(self):
        self._logger = logging.getLogger(f"{self.__class__.__module__}.{self.__class__.__name__}")
        self._in_flight: Dict[Tuple[str, str], str] = {}

    # -------------------------------------------------------------------------
    # Exception & Error Handling
    # -------------------------------------------------------------------------

    def _handle_exception(
        self,
        exception: Exception,
        operation: str,
        entity_ref: Optional[Any] = None,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        additional_context: Optional[Dict[str, Any]] = None,
    ) -> ServiceResult:
        """
        Convert exception to a ServiceResult failure with logging.

        Args:
            exception: The caught exception
            operation: Description of the operation that failed
            entity_ref: Reference to the booking involved (id or row)
            severity: Error severity level
            additional_context: Extra context for logging

        Returns:
            ServiceResult with failure status and error details
        """
        context = {
            "operation": operation,
            "entity_ref": str(entity_ref) if entity_ref is not None else None,
            "exception_type": type(exception).__name__,
        }

        if additional_context:
            context.update(additional_context)

        error_code = self._map_exception_to_error_code(exception)

        # Remote failures are expected and recoverable; no traceback needed
        self._logger.error(
            f"Error during {operation}: {exception}",
            exc_info=error_code not in (ErrorCode.EXTERNAL_SERVICE_ERROR, ErrorCode.TIMEOUT),
            extra=context,
        )

        return ServiceResult.failure(
            ServiceError(
                code=error_code,
                message=self._describe_failure(operation, exception, error_code),
                details={
                    "error": str(exception),
                    "entity_ref": str(entity_ref) if entity_ref is not None else None,
                    "context": additional_context,
                },
                severity=severity,
            )
        )

    def _map_exception_to_error_code(self, exception: Exception) -> ErrorCode:
        """Map exception types to error codes."""
        exception_mapping = {
            httpx.TimeoutException: ErrorCode.TIMEOUT,
            RemoteStoreError: ErrorCode.EXTERNAL_SERVICE_ERROR,
            ValidationError: ErrorCode.VALIDATION_ERROR,
            DuplicateOperationError: ErrorCode.CONFLICT,
            ConfigurationError: ErrorCode.CONFIGURATION_ERROR,
            ValueError: ErrorCode.VALIDATION_ERROR,
            KeyError: ErrorCode.NOT_FOUND,
        }

        # RemoteStoreError wraps httpx errors; a wrapped timeout stays a timeout
        if isinstance(exception, RemoteStoreError) and isinstance(exception.__cause__, httpx.TimeoutException):
            return ErrorCode.TIMEOUT

        for exc_type, error_code in exception_mapping.items():
            if isinstance(exception, exc_type):
                return error_code

        return ErrorCode.INTERNAL_ERROR

    @staticmethod
    def _describe_failure(operation: str, exception: Exception, error_code: ErrorCode) -> str:
        if error_code == ErrorCode.EXTERNAL_SERVICE_ERROR:
            return f"Failed to {operation}: could not reach the booking store. Please try again."
        if error_code == ErrorCode.TIMEOUT:
            return f"Failed to {operation}: the booking store did not answer in time."
        if error_code == ErrorCode.CONFLICT:
            return str(getattr(exception, "message", exception))
        return f"Failed to {operation}"

    # -------------------------------------------------------------------------
    # In-flight guard
    # -------------------------------------------------------------------------

    @contextmanager
    def in_flight(self, operation: str, booking_key: str, scope: Optional[str] = None):
        """
        Claim (scope, booking_key) for the duration of the block.

        Operations sharing a scope exclude each other on the same booking;
        without a scope the operation is its own scope.

        Raises:
            DuplicateOperationError: an operation of the same scope is
                already running for this booking; it names that operation.

        Example:
            with self.in_flight("approve", booking.key, scope="booking"):
                await self._client.send(...)
        """
        token = (scope or operation, booking_key)
        running = self._in_flight.get(token)
        if running is not None:
            self._logger.warning(
                f"Rejected {operation} for {booking_key}: {running} in progress",
                extra={"operation": operation, "booking_key": booking_key},
            )
            raise DuplicateOperationError(running, booking_key)

        self._in_flight[token] = operation
        try:
            yield
        finally:
            self._in_flight.pop(token, None)

    def is_in_flight(self, scope: str, booking_key: str) -> bool:
        return (scope, booking_key) in self._in_flight
