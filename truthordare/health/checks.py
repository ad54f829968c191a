"""Health checks for the job host.

Provides checks for:
- Database connectivity
- AI provider configuration
- Scheduler state

Usage:
    checker = HealthChecker(database=db, provider=client, scheduler=scheduler)
    report = await checker.check_all()
"""

import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError

from truthordare.models.scheduler import JobStatus
from truthordare.scheduling.scheduler import JobScheduler
from truthordare.services.ai.base import ContentProvider
from truthordare.storage.database import Database

logger = structlog.get_logger()


class HealthStatus(str, Enum):
    """Overall health status."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class CheckStatus(str, Enum):
    """Individual check status."""

    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"


@dataclass
class CheckResult:
    """Result of a single health check."""

    name: str
    status: CheckStatus
    message: str
    duration_ms: float = 0.0
    details: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status.value,
            "message": self.message,
            "duration_ms": round(self.duration_ms, 2),
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class HealthReport:
    """Complete health report with all check results."""

    status: HealthStatus
    checks: List[CheckResult]
    timestamp: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "checks": [c.to_dict() for c in self.checks],
            "timestamp": self.timestamp.isoformat(),
        }


class HealthChecker:
    """Health checker for the scheduler host.

    The database is critical (FAIL when unreachable). A missing AI key or
    a stopped scheduler only degrade the service.
    """

    def __init__(
        self,
        database: Database,
        provider: Optional[ContentProvider] = None,
        scheduler: Optional[JobScheduler] = None,
        check_timeout_seconds: float = 5.0,
    ):
        self.database = database
        self.provider = provider
        self.scheduler = scheduler
        self.check_timeout_seconds = check_timeout_seconds

    async def check_all(self) -> HealthReport:
        """Run all health checks and return a report."""
        checks = [
            await self.check_database(),
            self.check_ai_provider(),
            self.check_scheduler(),
        ]
        return HealthReport(status=self._determine_overall_status(checks), checks=checks)

    def _determine_overall_status(self, checks: List[CheckResult]) -> HealthStatus:
        if any(c.status == CheckStatus.FAIL for c in checks):
            return HealthStatus.UNHEALTHY
        if any(c.status == CheckStatus.WARN for c in checks):
            return HealthStatus.DEGRADED
        return HealthStatus.HEALTHY

    async def check_database(self) -> CheckResult:
        start = time.time()
        name = "database"

        try:
            await asyncio.wait_for(self.database.ping(), self.check_timeout_seconds)
        except asyncio.TimeoutError:
            return CheckResult(
                name=name,
                status=CheckStatus.FAIL,
                message="Database ping timed out",
                duration_ms=(time.time() - start) * 1000,
            )
        except (SQLAlchemyError, OSError) as e:
            logger.error("database_check_failed", error=str(e))
            return CheckResult(
                name=name,
                status=CheckStatus.FAIL,
                message=f"Database unreachable: {e}",
                duration_ms=(time.time() - start) * 1000,
            )

        return CheckResult(
            name=name,
            status=CheckStatus.PASS,
            message="Database reachable",
            duration_ms=(time.time() - start) * 1000,
            details={"dialect": self.database.dialect},
        )

    def check_ai_provider(self) -> CheckResult:
        name = "ai_provider"
        if self.provider is not None and self.provider.is_configured():
            return CheckResult(
                name=name, status=CheckStatus.PASS, message="AI provider configured"
            )
        return CheckResult(
            name=name,
            status=CheckStatus.WARN,
            message="AI provider not configured; content generation is skipped",
        )

    def check_scheduler(self) -> CheckResult:
        name = "scheduler"
        if self.scheduler is None:
            return CheckResult(
                name=name, status=CheckStatus.WARN, message="No scheduler attached"
            )

        jobs = self.scheduler.get_jobs()
        details = {
            "jobs": [j.name for j in jobs],
            "running_jobs": self.scheduler.running_jobs,
            "failed_jobs": [j.name for j in jobs if j.last_status == JobStatus.FAILED],
        }

        if not self.scheduler.is_running:
            return CheckResult(
                name=name,
                status=CheckStatus.WARN,
                message="Scheduler is not running",
                details=details,
            )
        return CheckResult(
            name=name,
            status=CheckStatus.PASS,
            message=f"Scheduler running with {len(jobs)} jobs",
            details=details,
        )

    async def is_ready(self) -> bool:
        """Ready when the database answers."""
        result = await self.check_database()
        return result.status != CheckStatus.FAIL

    async def is_alive(self) -> bool:
        return True
