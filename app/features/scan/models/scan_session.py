from sqlalchemy import Column, String, DateTime, JSON, Index
from datetime import datetime, timedelta
import enum

from app.platform.db.base import BaseModel


class ScanSessionStatus(str, enum.Enum):
    """Lifecycle of one crawl-and-report session"""
    pending = "pending"
    scanning = "scanning"
    completed = "completed"
    failed = "failed"


def default_expiry(ttl_hours: int = 3) -> datetime:
    return datetime.utcnow() + timedelta(hours=ttl_hours)


class ScanSession(BaseModel):

    __tablename__ = "scan_sessions"

    url = Column(String(2048), nullable=False)

    status = Column(String(20), default=ScanSessionStatus.pending.value, nullable=False, index=True)

    # Whole ScanResult document, replaced on every write
    scan_data = Column(JSON, default=dict, nullable=False)

    # Brand colours used when rendering the report
    report_config = Column(JSON, default=dict, nullable=False)

    expires_at = Column(DateTime, default=default_expiry, nullable=False, index=True)

    __table_args__ = (
        Index('idx_scan_sessions_created', 'created_at'),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "url": self.url,
            "status": self.status,
            "scan_data": self.scan_data or {},
            "report_config": self.report_config or {},
            "created_at": self.created_at,
            "expires_at": self.expires_at,
        }
