"""
Health and metrics endpoints.

- /health: aggregate status of every registered check (503 when any fails)
- /health/ready: readiness check, same checks, boolean answer
- /health/live: liveness check, always 200 while the process answers
- /metrics: in-process request counters
"""

from __future__ import annotations

import logging
import sqlite3
import time
from contextlib import closing
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Protocol

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    DEGRADED = "degraded"


@dataclass
class CheckResult:
    name: str
    status: HealthStatus
    message: str = ""
    latency_ms: float = 0.0
    details: dict[str, Any] = field(default_factory=dict)


class HealthCheck(Protocol):
    name: str

    def check(self) -> CheckResult: ...


class StartupTracker:
    """Process start time, set once the lifespan hook has finished booting."""

    _start_time: float | None = None

    @classmethod
    def mark_started(cls) -> None:
        cls._start_time = time.time()

    @classmethod
    def reset(cls) -> None:
        cls._start_time = None

    @classmethod
    def is_started(cls) -> bool:
        return cls._start_time is not None

    @classmethod
    def uptime_seconds(cls) -> float:
        if cls._start_time is None:
            return 0.0
        return time.time() - cls._start_time


class MetricsCollector:
    """Request counters kept in memory; reset on restart."""

    def __init__(self) -> None:
        self.request_count = 0
        self.error_count = 0
        self._total_ms = 0.0

    def record_request(self, response_time_ms: float, is_error: bool = False) -> None:
        self.request_count += 1
        self._total_ms += response_time_ms
        if is_error:
            self.error_count += 1

    def snapshot(self) -> dict[str, float]:
        avg = self._total_ms / self.request_count if self.request_count else 0.0
        return {
            "request_count": self.request_count,
            "error_count": self.error_count,
            "avg_response_time_ms": round(avg, 3),
            "uptime_seconds": StartupTracker.uptime_seconds(),
        }

    def reset(self) -> None:
        self.request_count = 0
        self.error_count = 0
        self._total_ms = 0.0


class HealthCheckRegistry:
    def __init__(self) -> None:
        self._checks: list[HealthCheck] = []

    def register(self, check: HealthCheck) -> None:
        self._checks.append(check)

    def run_all(self) -> list[CheckResult]:
        return [c.check() for c in self._checks]

    def clear(self) -> None:
        self._checks = []


_metrics = MetricsCollector()
_registry = HealthCheckRegistry()


def get_metrics_collector() -> MetricsCollector:
    return _metrics


def get_health_registry() -> HealthCheckRegistry:
    return _registry


# --- Checks ---


class ProcessCheck:
    name = "process"

    def check(self) -> CheckResult:
        return CheckResult(self.name, HealthStatus.HEALTHY, "Process is running")


class StartupCheck:
    name = "startup"

    def check(self) -> CheckResult:
        if StartupTracker.is_started():
            return CheckResult(
                self.name,
                HealthStatus.HEALTHY,
                "Startup complete",
                details={"uptime_seconds": StartupTracker.uptime_seconds()},
            )
        return CheckResult(self.name, HealthStatus.UNHEALTHY, "Startup not complete")


class DatabaseCheck:
    """Opens the SQLite file and runs ``SELECT 1``."""

    name = "database"

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = str(db_path)

    def check(self) -> CheckResult:
        start = time.perf_counter()
        try:
            with closing(sqlite3.connect(self.db_path)) as conn:
                conn.execute("SELECT 1").fetchone()
        except sqlite3.Error as e:
            logger.warning("Database health check failed: %s", e)
            return CheckResult(
                self.name,
                HealthStatus.UNHEALTHY,
                f"Database error: {e}",
                latency_ms=(time.perf_counter() - start) * 1000,
            )
        return CheckResult(
            self.name,
            HealthStatus.HEALTHY,
            "Database connected",
            latency_ms=(time.perf_counter() - start) * 1000,
        )


def overall_status(results: list[CheckResult]) -> HealthStatus:
    if all(r.status == HealthStatus.HEALTHY for r in results):
        return HealthStatus.HEALTHY
    if any(r.status == HealthStatus.UNHEALTHY for r in results):
        return HealthStatus.UNHEALTHY
    return HealthStatus.DEGRADED


def _check_json(r: CheckResult) -> dict[str, Any]:
    return {
        "name": r.name,
        "status": r.status.value,
        "message": r.message,
        "latency_ms": round(r.latency_ms, 3),
    }


def create_health_router(
    version: str = "0.0.0",
    registry: HealthCheckRegistry | None = None,
    metrics: MetricsCollector | None = None,
) -> APIRouter:
    router = APIRouter(tags=["health"])
    reg = registry or get_health_registry()
    met = metrics or get_metrics_collector()

    @router.get("/health", response_model=None)
    def health_check() -> JSONResponse:
        results = reg.run_all()
        overall = overall_status(results)
        code = (
            status.HTTP_200_OK
            if overall == HealthStatus.HEALTHY
            else status.HTTP_503_SERVICE_UNAVAILABLE
        )
        return JSONResponse(
            status_code=code,
            content={
                "status": overall.value,
                "version": version,
                "uptime_seconds": StartupTracker.uptime_seconds(),
                "checks": [_check_json(r) for r in results],
            },
        )

    @router.get("/health/ready", response_model=None)
    def readiness_check() -> JSONResponse:
        results = reg.run_all()
        ready = overall_status(results) == HealthStatus.HEALTHY
        return JSONResponse(
            status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"ready": ready, "checks": [_check_json(r) for r in results]},
        )

    @router.get("/health/live", response_model=None)
    def liveness_check() -> JSONResponse:
        return JSONResponse(
            content={"alive": True, "uptime_seconds": StartupTracker.uptime_seconds()}
        )

    @router.get("/metrics", response_model=None)
    def metrics_endpoint() -> JSONResponse:
        return JSONResponse(content=met.snapshot())

    return router


def setup_default_health_checks(
    db_path: str | Path, registry: HealthCheckRegistry | None = None
) -> HealthCheckRegistry:
    """Replace the registry's checks with process, startup and database."""
    reg = registry or get_health_registry()
    reg.clear()
    reg.register(ProcessCheck())
    reg.register(StartupCheck())
    reg.register(DatabaseCheck(db_path))
    return reg
