from fastapi import APIRouter, Depends

from app.features.scan.dependencies.scan import get_scan_service
from app.features.scan.services.scan.scan_service import ScanService
from app.platform.response import api_response

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/cleanup")
async def cleanup(service: ScanService = Depends(get_scan_service)):
    """Delete expired sessions and evict finished jobs and expired reports now."""
    result = await service.cleanup()
    return api_response(data=result, message="Cleanup completed")
