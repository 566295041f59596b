from fastapi import APIRouter, Depends, status

from app.features.scan.dependencies.scan import get_scan_service
from app.features.scan.services.scan.scan_service import ScanService
from app.platform.response import api_response


router = APIRouter()

@router.get("/health", tags=["health"])
async def health_check(service: ScanService = Depends(get_scan_service)):
    return api_response(
        data={"status": "ok", "service": "SEO Tag Helper", "queue": service.get_queue_stats()},
        message="Service is healthy",
        status_code=status.HTTP_200_OK,
    )
