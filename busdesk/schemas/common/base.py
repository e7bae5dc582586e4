"""
Base schema classes with common configuration.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

__all__ = [
    "BaseSchema",
    "BaseCreateSchema",
    "BaseUpdateSchema",
]


class BaseSchema(BaseModel):
    """
    Base schema with common Pydantic configuration.

    All engine schemas inherit from this to get consistent validation.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        # Keep enums as Enum instances; callers can still use `.value`.
        use_enum_values=False,
        str_strip_whitespace=True,
        validate_assignment=True,
    )


class BaseCreateSchema(BaseSchema):
    """Base schema for create operations."""
    pass


class BaseUpdateSchema(BaseSchema):
    """
    Base schema for update operations.

    Note:
        Subclasses intended for partial updates declare their fields as
        Optional[...] and are read with `model_dump(exclude_unset=True)`.
    """
    pass
