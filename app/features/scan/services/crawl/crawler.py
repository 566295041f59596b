import asyncio
from collections import deque
from datetime import datetime
from typing import Callable, Deque, Optional, Set, Tuple

from app.features.scan.models.scan_session import ScanSessionStatus
from app.features.scan.schemas.page_signal import PageReport, PageSignal, ScanError, ScanResult
from app.features.scan.schemas.rendering import RenderOptions
from app.features.scan.services.analysis.recommendation_engine import RecommendationEngine
from app.features.scan.services.extraction.page_signal_extractor import (
    PageSignalExtractor,
    normalize_page_url,
    origin_of,
)
from app.features.scan.services.scraping.page_renderer import SeleniumRenderer
from app.features.scan.services.session.session_store import SessionStore
from app.platform.exceptions import InvalidSeedURLError, NavigationError, SessionStoreError
from app.platform.logger import get_logger

logger = get_logger(__name__)

RendererFactory = Callable[[], SeleniumRenderer]


class Crawler:
    """
    Bounded breadth-first crawl of one site.

    The frontier is a queue of (url, depth) pairs. A URL is rendered at most
    once per crawl; links are only followed from pages shallower than
    `link_expansion_depth`, and the crawl stops once `max_pages` pages have
    been either processed or skipped.
    """

    def __init__(
        self,
        store: SessionStore,
        renderer_factory: Optional[RendererFactory] = None,
        *,
        engine: Optional[RecommendationEngine] = None,
        render_options: Optional[RenderOptions] = None,
        max_pages: int = 50,
        max_depth: int = 3,
        link_expansion_depth: int = 2,
        links_per_page: int = 5,
        progress_interval: int = 3,
    ):
        if min(max_pages, links_per_page, progress_interval) < 1:
            raise ValueError("max_pages, links_per_page and progress_interval must be at least 1")

        self.store = store
        self.render_options = render_options or RenderOptions()
        self.renderer_factory = renderer_factory or (lambda: SeleniumRenderer(self.render_options))
        self.engine = engine or RecommendationEngine()
        self.max_pages = max_pages
        self.max_depth = max_depth
        self.link_expansion_depth = link_expansion_depth
        self.links_per_page = links_per_page
        self.progress_interval = progress_interval

    async def run(self, seed_url: str, session_id: str) -> ScanResult:
        """
        Crawl from `seed_url` and persist the final ScanResult on the session.

        Page-level failures are recorded in the result. A non-http(s) seed
        raises InvalidSeedURLError, which is not retried. Anything else
        raised from here (browser cannot start, unexpected traversal error)
        is a job-level failure for the scheduler to retry.
        """
        seed = normalize_page_url(seed_url)
        if origin_of(seed) is None:
            raise InvalidSeedURLError(f"Cannot crawl non-http(s) URL: {seed_url}")

        logger.info(f"Starting scan for {seed} (session: {session_id})")
        await self._update_session(session_id, status=ScanSessionStatus.scanning)

        renderer = self.renderer_factory()
        try:
            await asyncio.to_thread(renderer.open)
            result = await self._traverse(renderer, seed, session_id)
        finally:
            await asyncio.to_thread(renderer.close)

        result.current_page = None
        result.total_pages = result.pages_processed + result.pages_skipped
        result.completed_at = datetime.utcnow()

        await self._update_session(
            session_id,
            status=ScanSessionStatus.completed,
            scan_data=result.to_document(),
        )
        logger.info(
            f"Scan completed for {seed}. Processed: {result.pages_processed}, "
            f"Skipped: {result.pages_skipped}, Errors: {len(result.errors)}"
        )
        return result

    async def mark_failed(self, session_id: str, reason: str) -> None:
        """Persist the minimal error aggregate once a job has given up."""
        await self._update_session(
            session_id,
            status=ScanSessionStatus.failed,
            scan_data=ScanResult.failed(reason).to_document(),
        )

    async def _traverse(self, renderer, seed: str, session_id: str) -> ScanResult:
        result = ScanResult()
        visited: Set[str] = set()
        frontier: Deque[Tuple[str, int]] = deque([(seed, 0)])
        # Taken from where the seed actually loads, so a redirect to another
        # host (example.com -> www.example.com) keeps its links internal
        origin: Optional[str] = None

        while frontier:
            if result.pages_processed + result.pages_skipped >= self.max_pages:
                logger.info(f"Reached max pages limit ({self.max_pages})")
                break

            url, depth = frontier.popleft()
            if url in visited or depth > self.max_depth:
                continue
            visited.add(url)
            result.current_page = url

            visit = await self._visit(renderer, url, origin, result)
            if visit is None:
                continue
            signal, loaded_url = visit

            if origin is None:
                origin = origin_of(loaded_url) or origin_of(url)
                visited.add(loaded_url)

            if result.pages_processed % self.progress_interval == 0:
                await self._save_progress(session_id, result)

            if depth < self.link_expansion_depth:
                for link in signal.internal_links[: self.links_per_page]:
                    if link not in visited:
                        frontier.append((link, depth + 1))

        return result

    async def _visit(
        self, renderer, url: str, origin: Optional[str], result: ScanResult
    ) -> Optional[Tuple[PageSignal, str]]:
        """
        Render and analyse one page. Returns the signal and the URL the page
        finally loaded at, or None when the page was skipped. With no `origin`
        yet, links are filtered against the loaded URL's own origin.
        """
        logger.info(f"Scanning page {result.pages_processed + 1}: {url}")
        try:
            facts = await asyncio.to_thread(renderer.render, url, self.render_options)
            loaded_url = normalize_page_url(facts.final_url or url)
            page_origin = origin or origin_of(loaded_url) or origin_of(url)
            signal = PageSignalExtractor.extract(facts, page_origin)
            recommendation = self.engine.recommend(signal)
        except NavigationError as e:
            self._skip(result, url, e.reason)
            return None
        except Exception as e:
            self._skip(result, url, str(e) or e.__class__.__name__)
            return None

        result.pages.append(PageReport.build(signal, recommendation))
        result.pages_processed += 1
        return signal, loaded_url

    @staticmethod
    def _skip(result: ScanResult, url: str, reason: str) -> None:
        logger.warning(f"Error scanning {url}: {reason}")
        result.errors.append(ScanError(url=url, reason=reason))
        result.pages_skipped += 1

    async def _save_progress(self, session_id: str, result: ScanResult) -> None:
        result.last_update = datetime.utcnow()
        await self._update_session(session_id, scan_data=result.to_document())
        logger.info(f"Progress update: {result.pages_processed} pages processed")

    async def _update_session(self, session_id: str, **fields) -> None:
        """Session writes are best-effort; a failed write never stops the crawl."""
        try:
            updated = await self.store.update(session_id, **fields)
        except SessionStoreError as e:
            logger.error(f"Failed to update session {session_id}: {e}")
            return
        if not updated:
            logger.warning(f"Scan session {session_id} no longer exists; update dropped")
