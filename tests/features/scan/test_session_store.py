from datetime import datetime, timedelta
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from app.features.scan.models.scan_session import ScanSessionStatus
from app.features.scan.services.session.session_store import SessionStore
from app.platform.exceptions import SessionStoreError


@pytest.mark.asyncio
async def test_create_and_get(store):
    session = await store.create("https://example.com", report_config={"brand_colors": {"primary": "#111111"}})

    fetched = await store.get(session.id)

    assert fetched.url == "https://example.com"
    assert fetched.status == ScanSessionStatus.pending.value
    assert fetched.scan_data == {}
    assert fetched.report_config == {"brand_colors": {"primary": "#111111"}}
    assert fetched.created_at is not None
    remaining = fetched.expires_at - datetime.utcnow()
    assert timedelta(hours=2, minutes=59) < remaining <= timedelta(hours=3)


@pytest.mark.asyncio
async def test_get_unknown_session_returns_none(store):
    assert await store.get("0192f0c4-0000-7000-8000-000000000000") is None


@pytest.mark.asyncio
async def test_update_replaces_fields(store):
    session = await store.create("https://example.com")

    updated = await store.update(
        session.id,
        status=ScanSessionStatus.scanning,
        scan_data={"pages_processed": 2, "pages": []},
    )

    assert updated is True
    fetched = await store.get(session.id)
    assert fetched.status == "scanning"
    assert fetched.scan_data == {"pages_processed": 2, "pages": []}

    await store.update(session.id, scan_data={"pages_processed": 3})
    fetched = await store.get(session.id)
    assert fetched.scan_data == {"pages_processed": 3}
    assert fetched.status == "scanning"


@pytest.mark.asyncio
async def test_update_missing_session_returns_false(store):
    assert await store.update("0192f0c4-0000-7000-8000-000000000000", status="failed") is False


@pytest.mark.asyncio
async def test_update_rejects_unknown_fields(store):
    session = await store.create("https://example.com")

    with pytest.raises(ValueError):
        await store.update(session.id, owner="someone")


@pytest.mark.asyncio
async def test_delete_expired(store):
    fresh = await store.create("https://fresh.example.com")
    stale = await store.create("https://stale.example.com")
    await store.update(stale.id, expires_at=datetime.utcnow() - timedelta(minutes=1))

    deleted = await store.delete_expired()

    assert deleted == 1
    assert await store.get(stale.id) is None
    assert await store.get(fresh.id) is not None


@pytest.mark.asyncio
async def test_database_errors_are_wrapped():
    failing_factory = MagicMock(side_effect=OperationalError("SELECT 1", {}, Exception("disk I/O error")))
    store = SessionStore(failing_factory)

    with pytest.raises(SessionStoreError):
        await store.get("any")
