from fastapi import Request

from app.features.reports.services.report_generator import ReportGenerator
from app.features.scan.services.scan.scan_service import ScanService


def get_scan_service(request: Request) -> ScanService:
    """The ScanService wired up by the app lifespan."""
    return request.app.state.scan_service


def get_report_generator(request: Request) -> ReportGenerator:
    return request.app.state.report_generator
