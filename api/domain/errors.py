# SPDX-License-Identifier: Apache-2.0

"""
Error taxonomy shared by the reporting core and its adapters.
"""

from typing import Optional


class ReportingError(Exception):
    """Base class for reporting failures."""
    pass


class InvalidScopeConfiguration(ReportingError):
    """
    Raised when a caller's role cannot be turned into a visibility scope.

    A restricted role without an assigned purok is the typical case. The
    request must fail; it is never widened to unrestricted access.
    """

    def __init__(self, message: str, role: Optional[str] = None):
        super().__init__(message)
        self.role = role


class RegistryUnavailable(ReportingError):
    """Raised when the registry store could not be queried. Safe to retry."""

    retryable = True

    def __init__(self, message: str, operation: Optional[str] = None):
        super().__init__(message)
        self.operation = operation


class CacheUnavailable(ReportingError):
    """Raised by cache backends; absorbed by ReportCache, never surfaced."""
    pass
