from fastapi import APIRouter, Depends, status

from app.features.scan.dependencies.scan import get_scan_service
from app.features.scan.schemas.scan import ScanStartRequest
from app.features.scan.services.scan.scan_service import ScanService
from app.platform.logger import get_logger
from app.platform.response import api_response

logger = get_logger(__name__)

router = APIRouter(prefix="/scan", tags=["scan"])


@router.post("/start", status_code=status.HTTP_202_ACCEPTED)
async def start_scan(
    payload: ScanStartRequest,
    service: ScanService = Depends(get_scan_service),
):
    """
    Validate the URL, create a scan session and queue the crawl.
    The crawl itself runs in the background; poll the status endpoint.
    """
    result = await service.start_scan(payload)
    return api_response(
        data=result,
        message=result.message,
        status_code=status.HTTP_202_ACCEPTED,
    )


@router.get("/{session_id}/status")
async def get_scan_status(
    session_id: str,
    service: ScanService = Depends(get_scan_service),
):
    result = await service.get_status(session_id)
    return api_response(data=result, message="Scan status retrieved")


@router.get("/{session_id}/results")
async def get_scan_results(
    session_id: str,
    service: ScanService = Depends(get_scan_service),
):
    """Full crawl results; only available once the scan has completed."""
    result = await service.get_results(session_id)
    return api_response(data=result, message="Scan results retrieved")


queue_router = APIRouter(prefix="/queue", tags=["queue"])


@queue_router.get("/stats")
async def get_queue_stats(service: ScanService = Depends(get_scan_service)):
    return api_response(data=service.get_queue_stats(), message="Queue statistics retrieved")
