# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Response envelope models with HAL support.
"""

from typing import List, Optional, Dict, Any
from pydantic import BaseModel, Field


class HalLink(BaseModel):
    """HAL link representation."""

    href: str = Field(..., description="Link URL")
    method: Optional[str] = Field(None, description="HTTP method")
    type: Optional[str] = Field(None, description="Content type")
    title: Optional[str] = Field(None, description="Link title")
    templated: Optional[bool] = Field(None, description="Whether URL is templated")


class ProblemResponse(BaseModel):
    """RFC 7807 problem details body."""

    type: str = Field(..., description="Problem type URI")
    title: str = Field(..., description="Short summary")
    status: int = Field(..., description="HTTP status code")
    detail: str = Field(..., description="Explanation specific to this occurrence")
    instance: str = Field(..., description="Request path")
    retryable: Optional[bool] = Field(None, description="Whether the client may retry")
    errors: Optional[List[Dict[str, Any]]] = Field(None, description="Field validation errors")
