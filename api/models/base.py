# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Base entity models with common fields and validation.
"""

from datetime import datetime, timezone
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict


def utcnow() -> datetime:
    """Current UTC instant as a naive datetime, matching what the registry stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive values are assumed UTC already."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class RegistryEntity(BaseModel):
    """
    Base for records read from the population registry.

    Registry records are owned by the CRUD layer; the analytics core only
    ever reads them, so instances are frozen.
    """

    model_config = ConfigDict(
        # Allow population by field name or alias
        populate_by_name=True,
        # Use enum values instead of enum objects
        use_enum_values=True,
        frozen=True
    )

    id: str = Field(..., description="Unique identifier")
    created_at: datetime = Field(default_factory=utcnow, description="Registration timestamp")
    deleted_at: Optional[datetime] = Field(None, description="Soft delete timestamp")

    def is_deleted(self) -> bool:
        """Check if entity is soft deleted."""
        return self.deleted_at is not None


class ValueObject(BaseModel):
    """Base for derived, serializable report values."""

    model_config = ConfigDict(
        use_enum_values=True,
        frozen=True
    )
