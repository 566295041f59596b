import asyncio
import itertools
import uuid
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Dict, Optional, Protocol

from app.features.scan.schemas.queue import CrawlRequest, Job, JobStatus, QueueStats
from app.platform.exceptions import InvalidSeedURLError
from app.platform.logger import get_logger

logger = get_logger(__name__)


class CrawlRunner(Protocol):
    async def run(self, seed_url: str, session_id: str): ...

    async def mark_failed(self, session_id: str, reason: str) -> None: ...


class JobScheduler:
    """
    Single-flight crawl queue.

    Jobs live in an instance-held table. One asyncio task works through the
    pending jobs in arrival order, one crawl at a time, and exits when none
    are left; the next submit() starts it again. A failed crawl goes back to
    pending after `retry_delay` seconds until it has failed `max_attempts`
    times; an InvalidSeedURLError fails the job at once. Terminal jobs stay
    visible until evict_stale() removes them.
    """

    def __init__(
        self,
        crawler: CrawlRunner,
        *,
        max_attempts: int = 3,
        retry_delay: float = 5.0,
        retention: timedelta = timedelta(hours=1),
        clock: Callable[[], datetime] = datetime.utcnow,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.crawler = crawler
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self.retention = retention
        self._clock = clock
        self._sleep = sleep
        self._jobs: Dict[str, Job] = {}
        self._sequence = itertools.count()
        self._processing = False
        self._worker: Optional[asyncio.Task] = None

    def submit(self, request: CrawlRequest) -> str:
        """Queue a crawl and make sure the worker is running. Never blocks."""
        # Raises RuntimeError outside the event loop, before anything is queued
        loop = asyncio.get_running_loop()

        job = Job(
            id=str(uuid.uuid4()),
            request=request,
            status=JobStatus.pending,
            created_at=self._clock(),
            sequence=next(self._sequence),
        )
        self._jobs[job.id] = job
        logger.info(f"Queued job {job.id} for URL: {request.seed_url} (session: {request.session_id})")

        if not self._processing:
            self._processing = True
            self._worker = loop.create_task(self._process_queue())

        return job.id

    def get_job(self, job_id: str) -> Optional[Job]:
        return self._jobs.get(job_id)

    def stats(self) -> QueueStats:
        stats = QueueStats(total=len(self._jobs))
        for job in self._jobs.values():
            setattr(stats, job.status.value, getattr(stats, job.status.value) + 1)
        return stats

    @property
    def is_processing(self) -> bool:
        return self._processing

    def evict_stale(self, now: Optional[datetime] = None) -> int:
        """Drop completed/failed jobs that finished more than `retention` ago."""
        now = now or self._clock()
        cutoff = now - self.retention
        stale = [
            job_id
            for job_id, job in list(self._jobs.items())
            if job.is_terminal and (job.finished_at or job.created_at) <= cutoff
        ]
        for job_id in stale:
            self._jobs.pop(job_id, None)
        if stale:
            logger.info(f"Evicted {len(stale)} finished jobs from the queue")
        return len(stale)

    async def wait_idle(self) -> None:
        """Wait for the current worker, if any, to drain the queue."""
        if self._worker is not None:
            await asyncio.shield(self._worker)

    async def shutdown(self) -> None:
        if self._worker is not None and not self._worker.done():
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
        self._processing = False

    def _next_pending(self) -> Optional[Job]:
        pending = [job for job in self._jobs.values() if job.status == JobStatus.pending]
        if not pending:
            return None
        return min(pending, key=lambda job: (job.created_at, job.sequence))

    async def _process_queue(self) -> None:
        try:
            while True:
                job = self._next_pending()
                if job is None:
                    break
                await self._execute(job)
        finally:
            self._processing = False
            logger.info("Queue processing completed")

    async def _execute(self, job: Job) -> None:
        job.status = JobStatus.processing
        logger.info(f"Processing job {job.id} for URL: {job.request.seed_url}")

        try:
            await self.crawler.run(job.request.seed_url, job.request.session_id)
        except Exception as e:
            job.attempts += 1
            job.last_error = str(e) or e.__class__.__name__
            logger.error(f"Job {job.id} failed (attempt {job.attempts}): {job.last_error}", exc_info=True)

            if job.attempts < self.max_attempts and not isinstance(e, InvalidSeedURLError):
                job.status = JobStatus.pending
                logger.info(f"Retrying job {job.id} in {self.retry_delay} seconds...")
                await self._sleep(self.retry_delay)
                return

            job.status = JobStatus.failed
            job.finished_at = self._clock()
            logger.error(f"Job {job.id} failed permanently after {job.attempts} attempts")
            await self._report_failure(job)
            return

        job.status = JobStatus.completed
        job.finished_at = self._clock()
        logger.info(f"Job {job.id} completed successfully")

    async def _report_failure(self, job: Job) -> None:
        try:
            await self.crawler.mark_failed(job.request.session_id, job.last_error or "Scan failed")
        except Exception as e:
            logger.error(f"Could not record failure of job {job.id}: {e}")
