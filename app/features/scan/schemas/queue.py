import enum
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class JobStatus(str, enum.Enum):
    """In-memory crawl job state machine"""
    pending = "pending"
    processing = "processing"
    completed = "completed"
    failed = "failed"


TERMINAL_JOB_STATUSES = (JobStatus.completed, JobStatus.failed)


class CrawlRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    seed_url: str
    session_id: str


class Job(BaseModel):
    id: str
    request: CrawlRequest
    status: JobStatus = JobStatus.pending
    created_at: datetime
    # Arrival order; breaks created_at ties and survives retries
    sequence: int
    attempts: int = 0
    finished_at: Optional[datetime] = None
    last_error: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_JOB_STATUSES


class QueueStats(BaseModel):
    total: int = 0
    pending: int = 0
    processing: int = 0
    completed: int = 0
    failed: int = 0
