"""
Periodic maintenance for the in-process scan backend.

Runs as an asyncio task for the lifetime of the app and, once per interval,
deletes expired scan sessions and evicts finished jobs and cached reports.
"""
import asyncio

from app.features.scan.services.scan.scan_service import ScanService
from app.platform.logger import get_logger

logger = get_logger(__name__)


async def run_cleanup_once(service: ScanService) -> None:
    try:
        result = await service.cleanup()
    except Exception as e:
        logger.error(f"Periodic cleanup failed: {e}", exc_info=True)
        return
    logger.info(
        f"Periodic cleanup completed: {result.deleted_sessions} sessions deleted, "
        f"{result.evicted_jobs} jobs and {result.evicted_reports} reports evicted"
    )


async def run_periodic_cleanup(service: ScanService, interval_seconds: float) -> None:
    """Loop until cancelled; a failed pass is logged and the next one still runs."""
    logger.info(f"Periodic cleanup scheduled every {interval_seconds} seconds")
    while True:
        await asyncio.sleep(interval_seconds)
        await run_cleanup_once(service)
