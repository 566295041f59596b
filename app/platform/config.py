from pathlib import Path
from typing import List, Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # ── App ─────────────────────────────────────
    APP_NAME: str = "SEO Tag Helper API"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    DEBUG: bool = True
    API_V1_PREFIX: str = "/api/v1"
    CORS_ORIGINS: List[str] = ["*"]

    # ── Database ────────────────────────────────
    DATABASE_URL: str = "sqlite+aiosqlite:///./seo_tag_helper.db"
    CREATE_TABLES_ON_STARTUP: bool = True
    SESSION_TTL_HOURS: int = Field(default=3, ge=1)

    # ── Rendering (headless Chrome) ─────────────
    CHROMEDRIVER_PATH: Optional[str] = None
    CHROME_BINARY_PATH: Optional[str] = None
    NAVIGATION_TIMEOUT_MS: int = 30000
    PAGE_SETTLE_SECONDS: float = 2.0
    VIEWPORT_WIDTH: int = 1200
    VIEWPORT_HEIGHT: int = 800

    # ── Crawl limits ────────────────────────────
    CRAWL_MAX_PAGES: int = Field(default=50, ge=1)
    CRAWL_MAX_DEPTH: int = Field(default=3, ge=0)
    CRAWL_LINK_EXPANSION_DEPTH: int = Field(default=2, ge=0)
    CRAWL_LINKS_PER_PAGE: int = Field(default=5, ge=1)
    CRAWL_PROGRESS_INTERVAL: int = Field(default=3, ge=1)

    # ── Job queue ───────────────────────────────
    QUEUE_MAX_ATTEMPTS: int = Field(default=3, ge=1)
    QUEUE_RETRY_DELAY_SECONDS: float = Field(default=5.0, ge=0)
    QUEUE_RETENTION_SECONDS: int = 3600

    # ── Reports ─────────────────────────────────
    REPORT_TTL_SECONDS: int = 3 * 60 * 60
    BRAND_NAME: str = "Your Brand"

    # ── Maintenance ─────────────────────────────
    CLEANUP_INTERVAL_SECONDS: int = Field(default=3600, ge=1)

    # ── Rate limiting ───────────────────────────
    RATE_LIMIT_MAX_REQUESTS: int = Field(default=20, ge=1)
    RATE_LIMIT_WINDOW_SECONDS: int = Field(default=60, ge=1)
    RATE_LIMIT_EXEMPT_PATHS: List[str] = ["/", "/health"]
    WHITELIST_IPS: List[str] = []
    REDIS_URL: Optional[str] = None
    FORCE_IN_MEMORY_RATE_LIMITER: bool = False

    # ── Logging ─────────────────────────────────
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    LOG_TO_FILE: bool = True

    class Config:
        env_file = str(Path(__file__).parent.parent.parent / ".env")
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"


settings = Settings()
