# SPDX-License-Identifier: Apache-2.0

"""
Report cache with typed keys and pluggable backends.

This module memoizes report value objects keyed by report kind, caller role
and caller purok. Backends store serialized JSON strings; the cache layer
owns serialization and absorbs every backend failure so a broken cache only
costs speed, never correctness.
"""

import os
import time
import logging
import threading
from dataclasses import dataclass
from typing import Optional, List, Dict, Callable, Union, Type, Iterable, Tuple, Any

import redis
from opentelemetry import trace
from pydantic import BaseModel, ValidationError

from domain.errors import CacheUnavailable
from domain.scope import Scope
from models.enums import ReportKind
from models.reports import SummaryReport, AnalyticsReport, TrendSeries, AgeDistributionReport

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "report"
ALL_ZONES = "all"

REPORT_MODELS: Dict[str, Type[BaseModel]] = {
    ReportKind.SUMMARY.value: SummaryReport,
    ReportKind.ANALYTICS.value: AnalyticsReport,
    ReportKind.MONTHLY_REGISTRATIONS.value: TrendSeries,
    ReportKind.VULNERABLE_TRENDS.value: TrendSeries,
    ReportKind.AGE_DISTRIBUTION.value: AgeDistributionReport,
}

TTL = Union[int, Callable[[BaseModel], int]]


@dataclass(frozen=True)
class ReportCacheKey:
    """
    Identity of one cached report.

    The purok is part of the key, so a restricted caller can never be served
    another purok's entry or an unrestricted one.
    """
    kind: str
    role: str
    zone_id: Optional[str] = None
    variant: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "kind", ReportKind(self.kind).value)
        object.__setattr__(self, "role", self.role.strip().lower())

    @classmethod
    def for_scope(cls, kind: Union[str, ReportKind], role: str, scope: Scope,
                  variant: Optional[str] = None) -> "ReportCacheKey":
        return cls(kind=kind, role=role, zone_id=scope.zone_id, variant=variant)

    @property
    def is_unrestricted(self) -> bool:
        return self.zone_id is None

    def render(self, prefix: str = DEFAULT_PREFIX) -> str:
        parts = [prefix, self.kind, self.role, self.zone_id or ALL_ZONES]
        if self.variant:
            parts.append(self.variant)
        return ":".join(parts)

    @classmethod
    def parse(cls, raw: str, prefix: str = DEFAULT_PREFIX) -> Optional["ReportCacheKey"]:
        """Inverse of render; returns None for strings this cache did not produce."""
        parts = raw.split(":")
        if len(parts) not in (4, 5) or parts[0] != prefix:
            return None
        try:
            return cls(
                kind=parts[1],
                role=parts[2],
                zone_id=None if parts[3] == ALL_ZONES else parts[3],
                variant=parts[4] if len(parts) == 5 else None
            )
        except ValueError:
            return None


# Backends

class InMemoryCacheBackend:
    """Process-local backend; expired entries are dropped on access."""

    name = "memory"

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._entries: Dict[str, Tuple[str, float]] = {}
        self._lock = threading.RLock()
        self._clock = clock

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at <= self._clock():
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        with self._lock:
            self._entries[key] = (value, self._clock() + ttl_seconds)

    def delete(self, keys: Iterable[str]) -> int:
        with self._lock:
            removed = 0
            for key in keys:
                if self._entries.pop(key, None) is not None:
                    removed += 1
            return removed

    def keys(self) -> List[str]:
        with self._lock:
            now = self._clock()
            expired = [k for k, (_v, expires_at) in self._entries.items() if expires_at <= now]
            for key in expired:
                del self._entries[key]
            return list(self._entries)

    def clear(self) -> int:
        with self._lock:
            removed = len(self._entries)
            self._entries.clear()
            return removed

    def health_check(self) -> Dict[str, Any]:
        return {"status": "healthy", "backend": self.name, "entries": len(self.keys())}


class RedisCacheBackend:
    """
    Redis backend using SETEX plus an index set of every key written.

    Enumeration goes through the index set rather than KEYS or SCAN pattern
    matching. Index members whose entry has expired are pruned on clear and
    on invalidation.
    """

    name = "redis"

    def __init__(self, redis_url: Optional[str] = None, prefix: str = DEFAULT_PREFIX,
                 client: Optional[redis.Redis] = None):
        self.redis_url = redis_url or os.getenv("REDIS_URL", "redis://localhost:6379")
        self.index_key = f"{prefix}:__index__"
        self.client = client or redis.from_url(self.redis_url, decode_responses=True)
        logger.info(f"Redis cache backend configured at {self.redis_url}")

    def _fail(self, operation: str, error: Exception) -> CacheUnavailable:
        logger.error(f"Redis {operation} failed: {str(error)}")
        return CacheUnavailable(f"Redis {operation} failed: {error}")

    def get(self, key: str) -> Optional[str]:
        try:
            return self.client.get(key)
        except redis.RedisError as e:
            raise self._fail("get", e) from e

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        try:
            pipeline = self.client.pipeline()
            pipeline.setex(key, ttl_seconds, value)
            pipeline.sadd(self.index_key, key)
            pipeline.execute()
        except redis.RedisError as e:
            raise self._fail("set", e) from e

    def delete(self, keys: Iterable[str]) -> int:
        keys = list(keys)
        if not keys:
            return 0
        try:
            pipeline = self.client.pipeline()
            pipeline.delete(*keys)
            pipeline.srem(self.index_key, *keys)
            removed, _ = pipeline.execute()
            return int(removed)
        except redis.RedisError as e:
            raise self._fail("delete", e) from e

    def keys(self) -> List[str]:
        try:
            return sorted(self.client.smembers(self.index_key))
        except redis.RedisError as e:
            raise self._fail("smembers", e) from e

    def clear(self) -> int:
        keys = self.keys()
        if not keys:
            return 0
        removed = self.delete(keys)
        try:
            self.client.delete(self.index_key)
        except redis.RedisError as e:
            raise self._fail("delete", e) from e
        return removed

    def health_check(self) -> Dict[str, Any]:
        try:
            self.client.ping()
            return {"status": "healthy", "backend": self.name}
        except redis.RedisError as e:
            logger.error(f"Redis health check failed: {str(e)}")
            return {"status": "unhealthy", "backend": self.name, "error": str(e)}


class NullCacheBackend:
    """Backend that stores nothing; every lookup is a miss."""

    name = "none"

    def get(self, key: str) -> Optional[str]:
        return None

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        return None

    def delete(self, keys: Iterable[str]) -> int:
        return 0

    def keys(self) -> List[str]:
        return []

    def clear(self) -> int:
        return 0

    def health_check(self) -> Dict[str, Any]:
        return {"status": "healthy", "backend": self.name}


CacheBackend = Union[InMemoryCacheBackend, RedisCacheBackend, NullCacheBackend]


class ReportCache:
    """
    Memoizes report value objects by ReportCacheKey.

    Backend errors are logged and absorbed: a failed read falls back to
    computing the report, a failed write just skips caching. Two concurrent
    misses for the same key both compute and the last write wins; the values
    are identical because reports are deterministic.
    """

    def __init__(self, backend: Optional[CacheBackend] = None, prefix: str = DEFAULT_PREFIX):
        self.backend = backend if backend is not None else InMemoryCacheBackend()
        self.prefix = prefix

    @property
    def backend_name(self) -> str:
        return getattr(self.backend, "name", type(self.backend).__name__)

    def _read(self, key: ReportCacheKey, model: Type[BaseModel]) -> Optional[BaseModel]:
        raw_key = key.render(self.prefix)
        try:
            payload = self.backend.get(raw_key)
        except CacheUnavailable as e:
            logger.warning(f"Cache read skipped for {raw_key}: {e}")
            return None

        if payload is None:
            return None

        try:
            return model.model_validate_json(payload)
        except ValidationError:
            logger.warning(f"Discarding unreadable cache entry {raw_key}")
            self._delete([raw_key])
            return None

    def _write(self, key: ReportCacheKey, value: BaseModel, ttl_seconds: int) -> None:
        raw_key = key.render(self.prefix)
        try:
            self.backend.set(raw_key, value.model_dump_json(), ttl_seconds)
        except CacheUnavailable as e:
            logger.warning(f"Cache write skipped for {raw_key}: {e}")

    def _delete(self, raw_keys: List[str]) -> int:
        try:
            return self.backend.delete(raw_keys)
        except CacheUnavailable as e:
            logger.warning(f"Cache delete failed: {e}")
            return 0

    def _keys(self) -> List[ReportCacheKey]:
        try:
            raw_keys = self.backend.keys()
        except CacheUnavailable as e:
            logger.warning(f"Cache enumeration failed: {e}")
            return []
        parsed = (ReportCacheKey.parse(raw, self.prefix) for raw in raw_keys)
        return [key for key in parsed if key is not None]

    def get_or_compute(self, key: ReportCacheKey, compute_fn: Callable[[], BaseModel],
                       ttl_seconds: TTL) -> BaseModel:
        """
        Return the cached report for key, computing and storing it on a miss.

        Args:
            key: Typed cache key
            compute_fn: Zero-argument callable producing the report
            ttl_seconds: Lifetime in seconds, or a callable deriving it from the report

        Returns:
            The report value object

        Raises:
            Whatever compute_fn raises; cache failures are never raised
        """
        model = REPORT_MODELS[key.kind]

        with tracer.start_as_current_span("report_cache.get_or_compute") as span:
            span.set_attributes({
                "report.kind": key.kind,
                "cache.backend": self.backend_name
            })

            cached = self._read(key, model)
            if cached is not None:
                span.set_attribute("cache.result", "hit")
                logger.debug(f"Cache hit for {key.render(self.prefix)}")
                return cached

            span.set_attribute("cache.result", "miss")
            value = compute_fn()
            ttl = ttl_seconds(value) if callable(ttl_seconds) else ttl_seconds
            if ttl and ttl > 0:
                self._write(key, value, int(ttl))
            return value

    def invalidate(self, key: ReportCacheKey) -> int:
        """Drop a single entry."""
        return self._delete([key.render(self.prefix)])

    def invalidate_caller(self, role: str, zone_id: Optional[str] = None) -> int:
        """Drop every entry cached for one (role, purok) caller identity."""
        role = role.strip().lower()
        targets = [k.render(self.prefix) for k in self._keys()
                   if k.role == role and k.zone_id == zone_id]
        removed = self._delete(targets) if targets else 0
        logger.info(f"Invalidated {removed} report cache entries for {role}:{zone_id or ALL_ZONES}")
        return removed

    def invalidate_zone(self, zone_id: str) -> int:
        """
        Drop entries affected by a registry change in one purok.

        Unrestricted entries aggregate every purok, so they are dropped too.
        """
        targets = [k.render(self.prefix) for k in self._keys()
                   if k.zone_id == zone_id or k.is_unrestricted]
        removed = self._delete(targets) if targets else 0
        logger.info(f"Invalidated {removed} report cache entries for purok {zone_id}")
        return removed

    def invalidate_all(self) -> int:
        """Drop every cached report."""
        try:
            removed = self.backend.clear()
        except CacheUnavailable as e:
            logger.warning(f"Cache clear failed: {e}")
            return 0
        logger.info(f"Invalidated all {removed} report cache entries")
        return removed

    def health_check(self) -> Dict[str, Any]:
        return self.backend.health_check()


def create_cache_backend(backend_name: Optional[str] = None,
                         redis_url: Optional[str] = None,
                         prefix: str = DEFAULT_PREFIX) -> CacheBackend:
    """
    Factory function to create the configured cache backend.

    REPORT_CACHE_BACKEND selects redis, memory or none; without it, redis is
    used when REDIS_URL is set and memory otherwise.
    """
    redis_url = redis_url or os.getenv("REDIS_URL")
    backend_name = (backend_name or os.getenv("REPORT_CACHE_BACKEND")
                    or ("redis" if redis_url else "memory")).strip().lower()

    if backend_name == "redis":
        return RedisCacheBackend(redis_url=redis_url, prefix=prefix)
    if backend_name == "memory":
        return InMemoryCacheBackend()
    if backend_name == "none":
        return NullCacheBackend()
    raise ValueError(f"Unknown report cache backend: {backend_name}")


def create_report_cache() -> ReportCache:
    """Build a ReportCache from environment configuration."""
    prefix = os.getenv("REPORT_CACHE_PREFIX", DEFAULT_PREFIX)
    return ReportCache(create_cache_backend(prefix=prefix), prefix=prefix)
