import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api_routers.v1 import api_router
from app.features.health.routes.health import router as health_router
from app.features.reports.services.report_generator import ReportGenerator
from app.features.scan.schemas.rendering import RenderOptions
from app.features.scan.services.analysis.recommendation_engine import RecommendationEngine
from app.features.scan.services.crawl.crawler import Crawler
from app.features.scan.services.queue.job_scheduler import JobScheduler
from app.features.scan.services.scan.scan_service import ScanService
from app.features.scan.services.scraping.page_renderer import SeleniumRenderer
from app.features.scan.services.session.session_store import SessionStore
from app.features.scan.workers.maintenance import run_periodic_cleanup
from app.middlewares.rate_limit import RateLimitMiddleware
from app.platform.config import settings
from app.platform.db.session import SessionLocal, engine, init_models
from app.platform.exceptions import add_exception_handlers
from app.platform.logger import LOG_FORMAT, get_logger

# Configure logging to show INFO level messages
logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)

logger = get_logger(__name__)


def build_render_options() -> RenderOptions:
    return RenderOptions(
        navigation_timeout_ms=settings.NAVIGATION_TIMEOUT_MS,
        viewport=(settings.VIEWPORT_WIDTH, settings.VIEWPORT_HEIGHT),
        settle_seconds=settings.PAGE_SETTLE_SECONDS,
    )


def build_services(app: FastAPI) -> ScanService:
    """Wire store -> crawler -> scheduler -> service onto app.state."""
    store = SessionStore(SessionLocal, ttl_hours=settings.SESSION_TTL_HOURS)
    render_options = build_render_options()

    crawler = Crawler(
        store,
        renderer_factory=lambda: SeleniumRenderer(
            render_options,
            chromedriver_path=settings.CHROMEDRIVER_PATH,
            chrome_binary_path=settings.CHROME_BINARY_PATH,
        ),
        engine=RecommendationEngine(brand_name=settings.BRAND_NAME),
        render_options=render_options,
        max_pages=settings.CRAWL_MAX_PAGES,
        max_depth=settings.CRAWL_MAX_DEPTH,
        link_expansion_depth=settings.CRAWL_LINK_EXPANSION_DEPTH,
        links_per_page=settings.CRAWL_LINKS_PER_PAGE,
        progress_interval=settings.CRAWL_PROGRESS_INTERVAL,
    )
    scheduler = JobScheduler(
        crawler,
        max_attempts=settings.QUEUE_MAX_ATTEMPTS,
        retry_delay=settings.QUEUE_RETRY_DELAY_SECONDS,
        retention=timedelta(seconds=settings.QUEUE_RETENTION_SECONDS),
    )
    reports = ReportGenerator(store, ttl=timedelta(seconds=settings.REPORT_TTL_SECONDS))
    service = ScanService(store, scheduler, reports)

    app.state.scheduler = scheduler
    app.state.report_generator = reports
    app.state.scan_service = service
    return service


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.CREATE_TABLES_ON_STARTUP:
        await init_models()

    service = build_services(app)
    cleanup_task = asyncio.create_task(
        run_periodic_cleanup(service, settings.CLEANUP_INTERVAL_SECONDS)
    )
    logger.info(f"{settings.APP_NAME} started ({settings.ENVIRONMENT})")

    try:
        yield
    finally:
        cleanup_task.cancel()
        try:
            await cleanup_task
        except asyncio.CancelledError:
            pass
        await service.scheduler.shutdown()
        await engine.dispose()
        logger.info(f"{settings.APP_NAME} stopped")


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        description="Crawls a website and suggests SEO fixes for titles, descriptions and alt text",
        version="1.0.0",
        debug=settings.DEBUG,
        lifespan=lifespan,
    )

    # Root endpoint for basic info
    @app.get("/", tags=["Info"])
    def root():
        return {
            "app_name": settings.APP_NAME,
            "description": "Crawls a website and suggests SEO fixes for titles, descriptions and alt text.",
            "version": "1.0.0",
            "docs_url": "/docs",
            "api_base": settings.API_V1_PREFIX,
        }

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RateLimitMiddleware)

    add_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(api_router, prefix=settings.API_V1_PREFIX)
    return app


app = create_app()
