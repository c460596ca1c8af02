# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Services package - External integrations and side effects.
"""

from .registry import MongoRegistryStore, get_registry_store, close_registry_store
from .cache import (
    ReportCache,
    ReportCacheKey,
    InMemoryCacheBackend,
    RedisCacheBackend,
    NullCacheBackend,
    create_cache_backend,
    create_report_cache
)
from .reporting import ReportingService, ReportTTLs

__all__ = [
    "MongoRegistryStore",
    "get_registry_store",
    "close_registry_store",
    "ReportCache",
    "ReportCacheKey",
    "InMemoryCacheBackend",
    "RedisCacheBackend",
    "NullCacheBackend",
    "create_cache_backend",
    "create_report_cache",
    "ReportingService",
    "ReportTTLs"
]
