"""Scheduler data models."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class JobStatus(str, Enum):
    NEVER_RUN = "never_run"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


class JobInfo(BaseModel):
    """Point-in-time snapshot of a registered job."""

    name: str
    description: str
    schedule: str
    enabled: bool
    next_run_at: Optional[datetime] = None
    last_run_at: Optional[datetime] = None
    last_status: JobStatus = JobStatus.NEVER_RUN
    last_error: Optional[str] = None
    run_count: int = 0
    skipped_count: int = 0
    is_running: bool = False
