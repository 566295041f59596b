from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import HTMLResponse

from app.features.reports.schemas.report import ReportGenerateRequest, ReportGenerateResponse
from app.features.reports.services.report_generator import ReportGenerator
from app.features.scan.dependencies.scan import get_report_generator
from app.features.scan.services.scan.scan_service import validate_session_id
from app.platform.config import settings
from app.platform.logger import get_logger
from app.platform.response import api_response

logger = get_logger(__name__)

router = APIRouter(prefix="/report", tags=["Reports"])


@router.post("/generate")
async def generate_report(
    payload: ReportGenerateRequest,
    reports: ReportGenerator = Depends(get_report_generator),
):
    session_id = validate_session_id(payload.session_id)
    report = await reports.generate(session_id, payload.brand_colors)
    return api_response(
        data=ReportGenerateResponse(
            report_id=report.report_id,
            download_url=f"{settings.API_V1_PREFIX}/report/{report.report_id}/download",
            expires_at=report.expires_at,
        ),
        message="Report generated",
    )


@router.get("/{report_id}/download")
async def download_report(
    report_id: str,
    reports: ReportGenerator = Depends(get_report_generator),
):
    report = reports.get_report(report_id)
    if not report:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Report not found or expired")

    filename = f"seo-report-{report.generated_at.date().isoformat()}.html"
    logger.info(f"Report downloaded: {report_id}")
    return HTMLResponse(
        content=report.html,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
