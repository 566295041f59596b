from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.platform.logger import get_logger
from app.platform.response import api_response

logger = get_logger(__name__)


class RendererUnavailableError(Exception):
    """The headless browser could not be started for a crawl."""


class InvalidSeedURLError(Exception):
    """The crawl request itself is unusable; retrying cannot help."""


class NavigationError(Exception):
    """A single page could not be loaded or read."""

    def __init__(self, url: str, reason: str):
        super().__init__(reason)
        self.url = url
        self.reason = reason


class SessionStoreError(Exception):
    """A read or write against the scan session table failed."""


def add_exception_handlers(app):
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        detail = exc.detail
        data = None
        if isinstance(detail, dict):
            data = detail
            message = str(detail.get("message") or "Error")
        else:
            message = str(detail) or "Error"
        return api_response(
            message=message,
            status_code=exc.status_code,
            data=data,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return api_response(
            message="Validation failed",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            data={"errors": exc.errors()},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled exception on {request.method} {request.url.path}: {exc}")
        return api_response(
            message="Internal server error",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
