from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from app.features.scan.schemas.scan import BrandColors


class ReportGenerateRequest(BaseModel):
    session_id: str
    brand_colors: Optional[BrandColors] = None


class ReportGenerateResponse(BaseModel):
    report_id: str
    download_url: str
    expires_at: datetime


class CachedReport(BaseModel):
    report_id: str
    site_url: str
    html: str
    generated_at: datetime
    expires_at: datetime
