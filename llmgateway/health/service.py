"""Health and readiness checks, with cached executor health results."""

from __future__ import annotations

import logging
import os
import re
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol

from .repository import HealthRepository

logger = logging.getLogger(__name__)

APP_VERSION = "0.1.0"
DEPENDENCIES_UNAVAILABLE = "Service dependencies unavailable"
DEFAULT_TIMEOUT_SECS = 2
DEFAULT_CACHE_TTL_SECS = 5

_UNSIGNED = re.compile(r"\+?[0-9]+")


class ExecutorLike(Protocol):
    """What the health service needs from an LLM executor."""

    def vendor_count(self) -> int: ...

    async def check_all_vendors_health(self, timeout_secs: int) -> Any: ...


def _now_rfc3339() -> str:
    return datetime.now(timezone.utc).isoformat()


def _env_unsigned(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not _UNSIGNED.fullmatch(raw):
        return default
    return int(raw)


def _without_none(data: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}


@dataclass
class HealthResponse:
    """Body of the health endpoint."""

    status: str
    timestamp: str
    version: str | None = None
    uptime_seconds: int | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form, leaving out empty optional fields."""
        return _without_none(
            {
                "status": self.status,
                "timestamp": self.timestamp,
                "version": self.version,
                "uptime_seconds": self.uptime_seconds,
            }
        )


@dataclass
class DependencyStatus:
    """Status of a dependency such as the executor service."""

    status: str
    vendor_count: int | None = None
    latency_ms: int | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form, leaving out empty optional fields."""
        return _without_none(
            {
                "status": self.status,
                "vendor_count": self.vendor_count,
                "latency_ms": self.latency_ms,
                "error": self.error,
            }
        )


@dataclass
class ReadinessResponse:
    """Body of the readiness endpoint."""

    status: str
    timestamp: str
    dependencies: DependencyStatus

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form."""
        return {
            "status": self.status,
            "timestamp": self.timestamp,
            "dependencies": self.dependencies.to_dict(),
        }


@dataclass
class HealthConfig:
    """Health check timeout and cache lifetime, both in seconds."""

    timeout: int = DEFAULT_TIMEOUT_SECS
    cache_ttl_secs: int = DEFAULT_CACHE_TTL_SECS

    @classmethod
    def from_env(cls) -> HealthConfig:
        """Read the configuration, falling back to defaults on missing or bad values."""
        return cls(
            timeout=_env_unsigned("HEALTH_CHECK_TIMEOUT", DEFAULT_TIMEOUT_SECS),
            cache_ttl_secs=_env_unsigned(
                "HEALTH_CHECK_CACHE_TTL_SECS", DEFAULT_CACHE_TTL_SECS
            ),
        )


@dataclass
class _CachedSuccess:
    cached_at: float = field(default_factory=time.monotonic)


class HealthService:
    """Determines service health and readiness."""

    def __init__(self, executor_service: ExecutorLike | None = None) -> None:
        self.repository = HealthRepository()
        self.executor_service = executor_service
        self.config = HealthConfig.from_env()
        self._start_time = time.monotonic()
        self._cache: _CachedSuccess | None = None

    @classmethod
    def with_executor(cls, executor_service: ExecutorLike) -> HealthService:
        """Create a service whose readiness depends on the given executor."""
        return cls(executor_service)

    async def check_health(self) -> HealthResponse:
        """Report liveness; raises HealthError if the system status check fails."""
        system_status = await self.repository.get_system_status()
        return HealthResponse(
            status="healthy" if system_status.is_healthy else "unhealthy",
            timestamp=_now_rfc3339(),
            version=APP_VERSION,
            uptime_seconds=int(time.monotonic() - self._start_time),
        )

    def _cache_is_valid(self, cached: _CachedSuccess) -> bool:
        return int(time.monotonic() - cached.cached_at) < self.config.cache_ttl_secs

    async def _check_executor_health(self) -> str | None:
        """Return None when healthy, otherwise a client-safe error message.

        Only successes are cached, so a failing dependency is rechecked every time.
        """
        if self._cache is not None and self._cache_is_valid(self._cache):
            return None
        if self.executor_service is None:
            return "No executor service configured"
        try:
            await self.executor_service.check_all_vendors_health(self.config.timeout)
        except Exception as exc:  # any vendor failure makes the dependency unavailable
            logger.warning("Health check failed for executor service: %s", exc)
            return DEPENDENCIES_UNAVAILABLE
        self._cache = _CachedSuccess()
        return None

    async def check_readiness(self) -> ReadinessResponse:
        """Report whether the service and its executor can take traffic."""
        timestamp = _now_rfc3339()
        executor = self.executor_service
        if executor is None:
            return ReadinessResponse(
                status="ready",
                timestamp=timestamp,
                dependencies=DependencyStatus(status="healthy"),
            )

        start = time.monotonic()
        error = await self._check_executor_health()
        latency_ms = int((time.monotonic() - start) * 1000)
        vendor_count = executor.vendor_count()

        if error is None:
            return ReadinessResponse(
                status="ready",
                timestamp=timestamp,
                dependencies=DependencyStatus(
                    status="healthy",
                    vendor_count=vendor_count,
                    latency_ms=latency_ms,
                ),
            )
        return ReadinessResponse(
            status="not_ready",
            timestamp=timestamp,
            dependencies=DependencyStatus(
                status="unhealthy",
                vendor_count=vendor_count,
                latency_ms=latency_ms,
                error=error,
            ),
        )