import asyncio
from datetime import datetime, timedelta

import pytest

from app.features.scan.schemas.queue import CrawlRequest, JobStatus
from app.features.scan.services.queue.job_scheduler import JobScheduler
from app.platform.exceptions import InvalidSeedURLError


class FakeCrawler:
    """Fails the first `failures` runs, optionally waiting on `gate` each run."""

    def __init__(self, failures: int = 0, gate: asyncio.Event = None):
        self.failures = failures
        self.gate = gate
        self.calls = []
        self.failed_sessions = []
        self.running = 0
        self.max_running = 0

    async def run(self, seed_url, session_id):
        self.calls.append(seed_url)
        self.running += 1
        self.max_running = max(self.max_running, self.running)
        try:
            if self.gate is not None:
                await self.gate.wait()
            if len(self.calls) <= self.failures:
                raise RuntimeError("browser crashed")
        finally:
            self.running -= 1

    async def mark_failed(self, session_id, reason):
        self.failed_sessions.append((session_id, reason))


class FakeClock:
    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now


def request(n: int) -> CrawlRequest:
    return CrawlRequest(seed_url=f"https://site-{n}.example.com", session_id=f"session-{n}")


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def make_scheduler(sleeps):
    async def fake_sleep(delay):
        sleeps.append(delay)

    def _make(crawler, **kwargs):
        kwargs.setdefault("sleep", fake_sleep)
        return JobScheduler(crawler, **kwargs)

    return _make


@pytest.mark.asyncio
async def test_job_succeeds_after_two_transient_failures(make_scheduler, sleeps):
    crawler = FakeCrawler(failures=2)
    scheduler = make_scheduler(crawler)

    job_id = scheduler.submit(request(1))
    await scheduler.wait_idle()

    job = scheduler.get_job(job_id)
    assert job.status == JobStatus.completed
    assert job.attempts == 2
    assert job.finished_at is not None
    assert sleeps == [5.0, 5.0]
    assert crawler.failed_sessions == []


@pytest.mark.asyncio
async def test_job_fails_after_max_attempts(make_scheduler, sleeps):
    crawler = FakeCrawler(failures=10)
    scheduler = make_scheduler(crawler, max_attempts=3, retry_delay=1.5)

    job_id = scheduler.submit(request(1))
    await scheduler.wait_idle()

    job = scheduler.get_job(job_id)
    assert job.status == JobStatus.failed
    assert job.attempts == 3
    assert job.last_error == "browser crashed"
    assert len(crawler.calls) == 3
    assert sleeps == [1.5, 1.5]
    assert crawler.failed_sessions == [("session-1", "browser crashed")]


@pytest.mark.asyncio
async def test_invalid_seed_fails_without_retry(make_scheduler, sleeps):
    class RejectingCrawler(FakeCrawler):
        async def run(self, seed_url, session_id):
            self.calls.append(seed_url)
            raise InvalidSeedURLError(f"Cannot crawl non-http(s) URL: {seed_url}")

    crawler = RejectingCrawler()
    scheduler = make_scheduler(crawler, max_attempts=3)

    job_id = scheduler.submit(CrawlRequest(seed_url="ftp://example.com", session_id="session-1"))
    await scheduler.wait_idle()

    job = scheduler.get_job(job_id)
    assert job.status == JobStatus.failed
    assert job.attempts == 1
    assert sleeps == []
    assert crawler.calls == ["ftp://example.com"]
    assert crawler.failed_sessions == [("session-1", "Cannot crawl non-http(s) URL: ftp://example.com")]


@pytest.mark.asyncio
async def test_second_job_waits_for_the_first(make_scheduler):
    gate = asyncio.Event()
    crawler = FakeCrawler(gate=gate)
    scheduler = make_scheduler(crawler)

    first = scheduler.submit(request(1))
    second = scheduler.submit(request(2))
    await asyncio.sleep(0)

    assert scheduler.is_processing is True
    assert scheduler.get_job(first).status == JobStatus.processing
    assert scheduler.get_job(second).status == JobStatus.pending
    stats = scheduler.stats()
    assert (stats.total, stats.processing, stats.pending) == (2, 1, 1)

    gate.set()
    await scheduler.wait_idle()

    assert crawler.max_running == 1
    assert scheduler.stats().completed == 2
    assert scheduler.is_processing is False


@pytest.mark.asyncio
async def test_jobs_run_in_arrival_order(make_scheduler):
    crawler = FakeCrawler()
    clock = FakeClock(datetime(2026, 1, 1, 12, 0))
    scheduler = make_scheduler(crawler, clock=clock)

    for n in (1, 2, 3):
        scheduler.submit(request(n))
    await scheduler.wait_idle()

    assert crawler.calls == [request(n).seed_url for n in (1, 2, 3)]


@pytest.mark.asyncio
async def test_retried_job_keeps_its_place(make_scheduler):
    crawler = FakeCrawler(failures=1)
    scheduler = make_scheduler(crawler)

    scheduler.submit(request(1))
    scheduler.submit(request(2))
    await scheduler.wait_idle()

    assert crawler.calls == [request(1).seed_url, request(1).seed_url, request(2).seed_url]


@pytest.mark.asyncio
async def test_worker_restarts_after_draining(make_scheduler):
    crawler = FakeCrawler()
    scheduler = make_scheduler(crawler)

    scheduler.submit(request(1))
    await scheduler.wait_idle()
    assert scheduler.is_processing is False

    job_id = scheduler.submit(request(2))
    await scheduler.wait_idle()

    assert scheduler.get_job(job_id).status == JobStatus.completed


@pytest.mark.asyncio
async def test_evict_stale_uses_finish_time(make_scheduler):
    clock = FakeClock(datetime(2026, 1, 1, 12, 0))
    scheduler = make_scheduler(FakeCrawler(), clock=clock, retention=timedelta(hours=1))

    job_id = scheduler.submit(request(1))
    await scheduler.wait_idle()

    assert scheduler.evict_stale(datetime(2026, 1, 1, 12, 30)) == 0
    assert scheduler.get_job(job_id) is not None

    clock.now = datetime(2026, 1, 1, 13, 0)
    assert scheduler.evict_stale() == 1
    assert scheduler.get_job(job_id) is None
    assert scheduler.stats().total == 0


@pytest.mark.asyncio
async def test_evict_stale_keeps_unfinished_jobs(make_scheduler):
    gate = asyncio.Event()
    scheduler = make_scheduler(FakeCrawler(gate=gate))

    scheduler.submit(request(1))
    scheduler.submit(request(2))
    await asyncio.sleep(0)

    assert scheduler.evict_stale(datetime.utcnow() + timedelta(days=7)) == 0

    gate.set()
    await scheduler.wait_idle()


@pytest.mark.asyncio
async def test_shutdown_cancels_running_job(make_scheduler):
    scheduler = make_scheduler(FakeCrawler(gate=asyncio.Event()))

    scheduler.submit(request(1))
    await asyncio.sleep(0)
    await scheduler.shutdown()

    assert scheduler.is_processing is False


def test_submit_needs_a_running_loop():
    scheduler = JobScheduler(FakeCrawler())

    with pytest.raises(RuntimeError):
        scheduler.submit(request(1))

    assert scheduler.stats().total == 0
    assert scheduler.is_processing is False
