# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Registry entity models consumed by the analytics core.
"""

from datetime import date
from typing import Optional, Dict, Any
from pydantic import BaseModel, Field, field_validator, ConfigDict
from .base import RegistryEntity
from .enums import Sex, OccupationStatus


class Purok(RegistryEntity):
    """Administrative zone, the unit of role-based visibility."""

    name: str = Field(..., min_length=1, max_length=200, description="Purok name")
    code: Optional[str] = Field(None, max_length=50, description="Short purok code")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        """Validate purok name."""
        if not v.strip():
            raise ValueError('Purok name cannot be empty')
        return v.strip()


class Household(RegistryEntity):
    """Household registered under a purok."""

    purok_id: Optional[str] = Field(None, description="Purok the household belongs to")


class Resident(RegistryEntity):
    """Resident record with the fields the classification rules read."""

    household_id: str = Field(..., description="Household the resident belongs to")
    birthdate: date = Field(..., description="Date of birth")
    sex: Sex = Field(..., description="Recorded sex")
    is_pwd: bool = Field(default=False, description="Person with disability flag")
    occupation_status: OccupationStatus = Field(..., description="Occupation status")


class UserContext(BaseModel):
    """Caller identity resolved by the identity provider for one request."""

    user_id: str = Field(..., description="Authenticated user ID")
    role: str = Field(..., description="Caller role")
    assigned_purok_id: Optional[str] = Field(None, description="Purok assigned to a purok leader")
    name: Optional[str] = Field(None, description="User display name")
    token_payload: Optional[Dict[str, Any]] = Field(None, description="Original JWT payload")
    ip_address: Optional[str] = Field(None, description="Client IP address")
    user_agent: Optional[str] = Field(None, description="Client user agent")

    model_config = ConfigDict(
        use_enum_values=True
    )

    @field_validator('role')
    @classmethod
    def normalize_role(cls, v):
        """Normalize role casing and whitespace."""
        return v.strip().lower()
