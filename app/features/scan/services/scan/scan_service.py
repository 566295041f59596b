import uuid
from typing import Optional

from fastapi import HTTPException, status

from app.features.reports.services.report_generator import ReportGenerator
from app.features.scan.models.scan_session import ScanSession, ScanSessionStatus
from app.features.scan.schemas.page_signal import ScanResult
from app.features.scan.schemas.queue import CrawlRequest, QueueStats
from app.features.scan.schemas.scan import (
    CleanupResponse,
    ScanResultsResponse,
    ScanStartRequest,
    ScanStartResponse,
    ScanStatusResponse,
)
from app.features.scan.services.queue.job_scheduler import JobScheduler
from app.features.scan.services.session.session_store import SessionStore
from app.platform.exceptions import SessionStoreError
from app.platform.logger import get_logger
from app.platform.utils.url_validator import validate_url

logger = get_logger(__name__)


def validate_session_id(session_id: str) -> str:
    try:
        return str(uuid.UUID(session_id))
    except (ValueError, TypeError, AttributeError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid session ID format")


class ScanService:
    """Operations behind the scan, queue and admin endpoints."""

    def __init__(
        self,
        store: SessionStore,
        scheduler: JobScheduler,
        reports: Optional[ReportGenerator] = None,
    ):
        self.store = store
        self.scheduler = scheduler
        self.reports = reports

    async def start_scan(self, payload: ScanStartRequest) -> ScanStartResponse:
        is_valid, url_str, error_message = validate_url(payload.url)
        if not is_valid:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Invalid URL: {error_message}"
            )

        report_config = {}
        if payload.brand_colors:
            report_config["brand_colors"] = payload.brand_colors.model_dump(exclude_none=True)

        try:
            session = await self.store.create(url_str, report_config=report_config)
        except SessionStoreError as e:
            logger.error(f"Database error: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to create scan session"
            )

        try:
            job_id = self.scheduler.submit(CrawlRequest(seed_url=url_str, session_id=session.id))
        except RuntimeError as e:
            logger.error(f"Queue error: {e}")
            await self._mark_session_failed(session.id)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to queue scan"
            )

        logger.info(f"Scan started for {url_str} (session: {session.id}, job: {job_id})")
        return ScanStartResponse(
            session_id=session.id,
            job_id=job_id,
            message="Scan started successfully",
        )

    async def get_status(self, session_id: str) -> ScanStatusResponse:
        session = await self._get_session_or_404(session_id)
        scan_data = session.scan_data or {}
        processed = scan_data.get("pages_processed", 0)
        skipped = scan_data.get("pages_skipped", 0)

        return ScanStatusResponse(
            session_id=session.id,
            status=session.status,
            pages_processed=processed,
            total_pages=scan_data.get("total_pages") or processed + skipped,
            current_page=scan_data.get("current_page"),
            errors=len(scan_data.get("errors") or []),
        )

    async def get_results(self, session_id: str) -> ScanResultsResponse:
        session = await self._get_session_or_404(session_id)

        if session.status != ScanSessionStatus.completed.value:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"message": "Scan not completed", "status": session.status},
            )

        scan_data = ScanResult.model_validate(session.scan_data or {})
        return ScanResultsResponse(
            session_id=session.id,
            url=session.url,
            status=session.status,
            scan_data=scan_data,
            created_at=session.created_at,
            completed_at=scan_data.completed_at,
        )

    def get_queue_stats(self) -> QueueStats:
        return self.scheduler.stats()

    async def cleanup(self) -> CleanupResponse:
        """Delete expired sessions and evict finished jobs and expired reports."""
        try:
            deleted_sessions = await self.store.delete_expired()
        except SessionStoreError as e:
            logger.error(f"Cleanup error: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Cleanup failed"
            )

        return CleanupResponse(
            deleted_sessions=deleted_sessions,
            evicted_jobs=self.scheduler.evict_stale(),
            evicted_reports=self.reports.evict_stale() if self.reports else 0,
        )

    async def _get_session_or_404(self, session_id: str) -> ScanSession:
        session_id = validate_session_id(session_id)
        try:
            session = await self.store.get(session_id)
        except SessionStoreError as e:
            logger.error(f"Status check error: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to get scan session"
            )
        if not session:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
        return session

    async def _mark_session_failed(self, session_id: str) -> None:
        try:
            await self.store.update(session_id, status=ScanSessionStatus.failed)
        except SessionStoreError as e:
            logger.error(f"Failed to mark session {session_id} as failed: {e}")
