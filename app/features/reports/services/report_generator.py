"""Renders completed scans into a downloadable HTML report."""
import os
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from fastapi import HTTPException, status
from jinja2 import Environment, FileSystemLoader, select_autoescape

from app.features.reports.schemas.report import CachedReport
from app.features.scan.models.scan_session import ScanSessionStatus
from app.features.scan.schemas.page_signal import Priority, ScanResult
from app.features.scan.schemas.scan import BrandColors
from app.features.scan.services.session.session_store import SessionStore
from app.platform.logger import get_logger

logger = get_logger(__name__)

current_dir = os.path.dirname(os.path.abspath(__file__))
report_template_dir = os.path.join(current_dir, "../template")

env = Environment(
    loader=FileSystemLoader(report_template_dir),
    autoescape=select_autoescape(["html"]),
)

DEFAULT_COLORS = {"primary": "#2563eb", "secondary": "#7c3aed", "tertiary": "#059669"}
MAX_IMAGES_PER_PAGE = 10
MAX_SRC_LENGTH = 80


def resolve_colors(brand_colors: Optional[BrandColors]) -> Dict[str, str]:
    colors = dict(DEFAULT_COLORS)
    if brand_colors:
        colors.update(brand_colors.model_dump(exclude_none=True))
    return colors


def build_summary(result: ScanResult) -> dict:
    pages = result.pages
    total_images = sum(len(page.images) for page in pages)
    images_missing_alt = sum(1 for page in pages for image in page.images if not image.current_alt)
    return {
        "pages_analyzed": result.pages_processed,
        "pages_skipped": result.pages_skipped,
        "high_priority": sum(1 for page in pages if page.recommendations.priority == Priority.high),
        "medium_priority": sum(1 for page in pages if page.recommendations.priority == Priority.medium),
        "low_priority": sum(1 for page in pages if page.recommendations.priority == Priority.low),
        "total_images": total_images,
        "images_missing_alt": images_missing_alt,
        "pages_with_title_issues": sum(1 for page in pages if len(page.title) < 30),
        "pages_with_description_issues": sum(1 for page in pages if len(page.meta_description) < 120),
        "pages_missing_h1": sum(1 for page in pages if not page.headings.h1),
    }


def shorten(value: str, limit: int = MAX_SRC_LENGTH) -> str:
    return value if len(value) <= limit else value[:limit] + "..."


env.filters["shorten"] = shorten


def render_report_html(
    site_url: str,
    result: ScanResult,
    brand_colors: Optional[BrandColors] = None,
    generated_at: Optional[datetime] = None,
) -> str:
    template = env.get_template("seo_report.html")
    return template.render(
        site_url=site_url,
        generated_on=(generated_at or datetime.utcnow()).strftime("%B %d, %Y"),
        colors=resolve_colors(brand_colors),
        summary=build_summary(result),
        pages=result.pages,
        max_images=MAX_IMAGES_PER_PAGE,
    )


class ReportGenerator:
    """Builds reports for completed sessions and keeps them for `ttl`."""

    def __init__(
        self,
        store: SessionStore,
        ttl: timedelta = timedelta(hours=3),
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.store = store
        self.ttl = ttl
        self._clock = clock
        self._cache: Dict[str, CachedReport] = {}

    async def generate(self, session_id: str, brand_colors: Optional[BrandColors] = None) -> CachedReport:
        cached = self.get_report(session_id)
        if cached:
            return cached

        session = await self.store.get(session_id)
        if not session:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")

        if session.status != ScanSessionStatus.completed.value:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail={"message": "Scan must be completed before generating report", "status": session.status},
            )

        result = ScanResult.model_validate(session.scan_data or {})
        if not result.pages:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No scan data available for report")

        if brand_colors is None and session.report_config:
            brand_colors = BrandColors.model_validate(session.report_config.get("brand_colors") or {})

        logger.info(f"Generating report for session {session_id} with {len(result.pages)} pages")
        now = self._clock()
        report = CachedReport(
            report_id=session_id,
            site_url=session.url,
            html=render_report_html(session.url, result, brand_colors, now),
            generated_at=now,
            expires_at=now + self.ttl,
        )
        self._cache[session_id] = report
        logger.info(f"Report generated successfully for session {session_id}")
        return report

    def get_report(self, report_id: str) -> Optional[CachedReport]:
        report = self._cache.get(report_id)
        if report and report.expires_at <= self._clock():
            return None
        return report

    def evict_stale(self, now: Optional[datetime] = None) -> int:
        now = now or self._clock()
        stale = [report_id for report_id, report in list(self._cache.items()) if report.expires_at <= now]
        for report_id in stale:
            self._cache.pop(report_id, None)
        if stale:
            logger.info(f"Report cache cleaned up for {len(stale)} sessions")
        return len(stale)
