import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import HTTPException

from app.features.scan.schemas.scan import CleanupResponse
from app.features.scan.workers.maintenance import run_cleanup_once, run_periodic_cleanup


@pytest.mark.asyncio
async def test_cleanup_failure_is_logged_not_raised():
    service = MagicMock()
    service.cleanup = AsyncMock(side_effect=HTTPException(status_code=500, detail="Cleanup failed"))

    await run_cleanup_once(service)

    service.cleanup.assert_awaited_once()


@pytest.mark.asyncio
async def test_periodic_cleanup_runs_until_cancelled():
    service = MagicMock()
    service.cleanup = AsyncMock(return_value=CleanupResponse(deleted_sessions=1))

    task = asyncio.create_task(run_periodic_cleanup(service, interval_seconds=0.01))
    await asyncio.sleep(0.1)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert service.cleanup.await_count >= 2
