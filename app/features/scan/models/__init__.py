"""
Scan models package.
"""
from app.features.scan.models.scan_session import ScanSession, ScanSessionStatus

__all__ = ["ScanSession", "ScanSessionStatus"]
