"""Health endpoints for the scheduler host.

Usage:
    from truthordare.health import HealthChecker, create_health_app

    app = create_health_app(HealthChecker(database, provider, scheduler))
"""

from truthordare.health.checks import (
    CheckResult,
    CheckStatus,
    HealthChecker,
    HealthReport,
    HealthStatus,
)
from truthordare.health.server import create_health_app, create_health_server

__all__ = [
    "CheckResult",
    "CheckStatus",
    "HealthChecker",
    "HealthReport",
    "HealthStatus",
    "create_health_app",
    "create_health_server",
]
