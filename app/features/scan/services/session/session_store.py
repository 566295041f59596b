from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.features.scan.models.scan_session import ScanSession, ScanSessionStatus
from app.platform.exceptions import SessionStoreError
from app.platform.logger import get_logger

logger = get_logger(__name__)


class SessionStore:
    """
    Key-value access to scan sessions.

    Every update replaces whole top-level fields inside one transaction, so
    readers polling a session always see a complete scan_data document.
    """

    UPDATABLE_FIELDS = {"url", "status", "scan_data", "report_config", "expires_at"}

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], ttl_hours: int = 3):
        self._session_factory = session_factory
        self.ttl_hours = ttl_hours

    async def create(self, url: str, report_config: Optional[dict] = None) -> ScanSession:
        record = ScanSession(
            url=url,
            status=ScanSessionStatus.pending.value,
            scan_data={},
            report_config=report_config or {},
            expires_at=datetime.utcnow() + timedelta(hours=self.ttl_hours),
        )
        try:
            async with self._session_factory() as db:
                db.add(record)
                await db.commit()
                await db.refresh(record)
        except SQLAlchemyError as e:
            raise SessionStoreError(f"Failed to create scan session for {url}: {e}") from e

        logger.info(f"Created scan session {record.id} for {url}")
        return record

    async def get(self, session_id: str) -> Optional[ScanSession]:
        try:
            async with self._session_factory() as db:
                result = await db.execute(select(ScanSession).where(ScanSession.id == session_id))
                return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise SessionStoreError(f"Failed to read scan session {session_id}: {e}") from e

    async def update(self, session_id: str, **fields) -> bool:
        """
        Merge `fields` into the stored record. Returns False when the session
        does not exist.
        """
        unknown = set(fields) - self.UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown scan session fields: {sorted(unknown)}")

        if isinstance(fields.get("status"), ScanSessionStatus):
            fields["status"] = fields["status"].value

        try:
            async with self._session_factory() as db:
                result = await db.execute(select(ScanSession).where(ScanSession.id == session_id))
                record = result.scalar_one_or_none()
                if record is None:
                    return False
                for key, value in fields.items():
                    setattr(record, key, value)
                await db.commit()
                return True
        except SQLAlchemyError as e:
            raise SessionStoreError(f"Failed to update scan session {session_id}: {e}") from e

    async def delete_expired(self, now: Optional[datetime] = None) -> int:
        now = now or datetime.utcnow()
        try:
            async with self._session_factory() as db:
                result = await db.execute(delete(ScanSession).where(ScanSession.expires_at < now))
                await db.commit()
                deleted = result.rowcount or 0
        except SQLAlchemyError as e:
            raise SessionStoreError(f"Failed to delete expired scan sessions: {e}") from e

        if deleted:
            logger.info(f"Deleted {deleted} expired scan sessions")
        return deleted
