"""
Test configuration and fixtures for the SEO Tag Helper API.

The environment is set before anything under `app` is imported so the
settings singleton, engine and loggers pick up the test values.
"""

import os
import tempfile
from typing import Dict, Generator, List, Optional

test_db_path = tempfile.mktemp(suffix=".db")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{test_db_path}"
os.environ["LOG_TO_FILE"] = "false"
os.environ["WHITELIST_IPS"] = '["testclient"]'
os.environ["CLEANUP_INTERVAL_SECONDS"] = "3600"

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.features.scan.schemas.rendering import RawPageFacts, RenderOptions
from app.features.scan.services.crawl.crawler import Crawler
from app.features.scan.services.session.session_store import SessionStore
from app.platform.db.session import build_engine, init_models
from app.platform.exceptions import NavigationError

SITE = "https://example.com"


class FakeRenderer:
    """Stands in for SeleniumRenderer; serves canned pages keyed by URL."""

    def __init__(self, pages: Dict[str, RawPageFacts], failures: Optional[Dict[str, Exception]] = None):
        self.pages = pages
        self.failures = failures or {}
        self.visited: List[str] = []
        self.opened = False
        self.closed = False

    def open(self):
        self.opened = True

    def render(self, url, options=None):
        self.visited.append(url)
        if url in self.failures:
            raise self.failures[url]
        if url not in self.pages:
            raise NavigationError(url, "Navigation timeout after 30000ms")
        return self.pages[url]

    def close(self):
        self.closed = True


def make_page(
    url: str,
    title: str = "A descriptive page title for testing purposes",
    description: str = "",
    h1: Optional[List[str]] = None,
    images: Optional[List[dict]] = None,
    links: Optional[List[str]] = None,
    word_count: int = 120,
) -> RawPageFacts:
    return RawPageFacts(
        url=url,
        final_url=url,
        title=title,
        meta_description=description,
        headings={"h1": h1 if h1 is not None else ["Heading"], "h2": [], "h3": []},
        images=images or [],
        word_count=word_count,
        links=links or [],
    )


@pytest.fixture
def page():
    return make_page


@pytest.fixture
def renderer_cls():
    return FakeRenderer


@pytest_asyncio.fixture
async def store(tmp_path):
    """SessionStore on its own SQLite file."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'sessions.db'}")
    await init_models(engine)
    yield SessionStore(async_sessionmaker(engine, expire_on_commit=False, autoflush=False))
    await engine.dispose()


@pytest.fixture
def site_pages() -> Dict[str, RawPageFacts]:
    """A three-page site served to the crawler behind the API."""
    return {
        SITE: make_page(
            SITE,
            title="Home",
            h1=["Welcome"],
            images=[{"src": f"{SITE}/img/hero_banner.jpg", "alt": ""}],
            links=[f"{SITE}/about", f"{SITE}/contact", "https://other.org/"],
        ),
        f"{SITE}/about": make_page(f"{SITE}/about", links=[SITE]),
        f"{SITE}/contact": make_page(f"{SITE}/contact", word_count=10),
    }


@pytest.fixture(scope="session")
def test_app():
    """Create FastAPI test application."""
    from app.main import app

    return app


@pytest.fixture(scope="function")
def client(test_app, site_pages) -> Generator[TestClient, None, None]:
    """
    TestClient with the lifespan running and the crawler behind the queue
    swapped for one that renders `site_pages` instead of starting Chrome.
    """
    with TestClient(test_app) as test_client:
        scheduler = test_app.state.scheduler
        scheduler.crawler = Crawler(
            test_app.state.scan_service.store,
            renderer_factory=lambda: FakeRenderer(site_pages),
            render_options=RenderOptions(settle_seconds=0),
        )
        scheduler.retry_delay = 0
        yield test_client


@pytest.fixture
def wait_for_queue(client, test_app):
    """Block until the background worker has drained the queue."""

    def _wait():
        client.portal.call(test_app.state.scheduler.wait_idle)

    return _wait
