"""Directory health checks for the upload service.

A directory is unhealthy when uploads cannot be written to it at all and
degraded when free space drops below LOW_DISK_SPACE_BYTES.
"""

import os
import shutil
import time
from dataclasses import asdict, dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from .logging_config import get_logger

logger = get_logger(__name__)

LOW_DISK_SPACE_BYTES = 100 * 1024 * 1024


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    DEGRADED = "degraded"


@dataclass
class ComponentHealth:
    """Health status for a single directory."""
    status: HealthStatus
    message: Optional[str] = None
    latency_ms: Optional[float] = None
    free_bytes: Optional[int] = None

    def as_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        return data


def check_directory_health(path: Path) -> ComponentHealth:
    """Check that path is a writable directory with free space.

    Args:
        path: Directory to check

    Returns:
        ComponentHealth: UNHEALTHY if missing, unwritable or unreadable by
            statvfs; DEGRADED on low space; HEALTHY otherwise
    """
    started = time.perf_counter()

    if not path.is_dir():
        return ComponentHealth(HealthStatus.UNHEALTHY, f"Directory missing: {path}")
    if not os.access(path, os.W_OK | os.X_OK):
        return ComponentHealth(HealthStatus.UNHEALTHY, f"Directory not writable: {path}")

    try:
        free_bytes = shutil.disk_usage(path).free
    except OSError as e:
        logger.error(f"Disk usage check failed for {path}: {e}", exc_info=True)
        return ComponentHealth(HealthStatus.UNHEALTHY, f"Disk usage error: {e}")

    latency_ms = round((time.perf_counter() - started) * 1000, 2)
    if free_bytes < LOW_DISK_SPACE_BYTES:
        return ComponentHealth(HealthStatus.DEGRADED, "Low disk space", latency_ms, free_bytes)
    return ComponentHealth(HealthStatus.HEALTHY, "Directory OK", latency_ms, free_bytes)


def get_overall_health(components: Dict[str, ComponentHealth]) -> HealthStatus:
    """Worst status wins: any UNHEALTHY, else any DEGRADED, else HEALTHY."""
    statuses = {c.status for c in components.values()}
    if HealthStatus.UNHEALTHY in statuses:
        return HealthStatus.UNHEALTHY
    if HealthStatus.DEGRADED in statuses:
        return HealthStatus.DEGRADED
    return HealthStatus.HEALTHY
