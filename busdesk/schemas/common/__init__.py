from busdesk.schemas.common.base import BaseSchema, BaseCreateSchema, BaseUpdateSchema
from busdesk.schemas.common.enums import Stage, BookingStatus, PaymentStatus

__all__ = [
    "BaseSchema",
    "BaseCreateSchema",
    "BaseUpdateSchema",
    "Stage",
    "BookingStatus",
    "PaymentStatus",
]
