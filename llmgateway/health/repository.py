"""Data access for health checks."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SystemStatus:
    """Overall health state of the system."""

    is_healthy: bool


class HealthRepository:
    """Reports system status; currently every check passes."""

    async def get_system_status(self) -> SystemStatus:
        """Return the current system status.

        Raises HealthError(SYSTEM_STATUS_CHECK_FAILED) when a critical check fails.
        """
        return SystemStatus(is_healthy=True)