"""
Scan Schemas

Request and response models for the scan API endpoints.
"""
import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from app.features.scan.schemas.page_signal import ScanResult

HEX_COLOR = re.compile(r"^#?([0-9a-fA-F]{3}|[0-9a-fA-F]{4}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")


class BrandColors(BaseModel):
    """Report colours. Invalid values are dropped rather than rejected."""
    primary: Optional[str] = None
    secondary: Optional[str] = None
    tertiary: Optional[str] = None

    @field_validator("primary", "secondary", "tertiary", mode="before")
    @classmethod
    def keep_valid_hex(cls, value):
        if not isinstance(value, str):
            return None
        value = value.strip()
        if not HEX_COLOR.match(value):
            return None
        return value if value.startswith("#") else f"#{value}"


class ScanStartRequest(BaseModel):
    """Request to start a crawl of a website."""
    url: str
    brand_colors: Optional[BrandColors] = None

    class Config:
        json_schema_extra = {
            "example": {
                "url": "https://example.com",
                "brand_colors": {"primary": "#2563eb"}
            }
        }


class ScanStartResponse(BaseModel):
    session_id: str
    job_id: str
    message: str


class ScanStatusResponse(BaseModel):
    session_id: str
    status: str
    pages_processed: int = 0
    total_pages: int = 0
    current_page: Optional[str] = None
    errors: int = 0


class ScanResultsResponse(BaseModel):
    session_id: str
    url: str
    status: str
    scan_data: ScanResult
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class CleanupResponse(BaseModel):
    deleted_sessions: int = 0
    evicted_jobs: int = 0
    evicted_reports: int = 0
