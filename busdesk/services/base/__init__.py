"""
Base services module for the booking engine.

Provides the foundational service layer components:
- ServiceResult / ServiceError result handling
- BaseService with error mapping, logging and the in-flight guard
"""

from busdesk.services.base.service_result import (
    ServiceResult,
    ServiceError,
    ErrorCode,
    ErrorSeverity,
)

from busdesk.services.base.base_service import BaseService

__all__ = [
    "ServiceResult",
    "ServiceError",
    "ErrorCode",
    "ErrorSeverity",
    "BaseService",
]
