from fastapi import APIRouter

from app.features.admin.routes.cleanup import router as admin_router
from app.features.reports.routes.reports import router as reports_router
from app.features.scan.routes.scan import queue_router
from app.features.scan.routes.scan import router as scan_router

api_router = APIRouter()

api_router.include_router(scan_router)
api_router.include_router(queue_router)
api_router.include_router(reports_router)
api_router.include_router(admin_router)
