"""
FastAPI application factory.

create_app() builds (or receives) the service container, installs CORS and
the {"success": false, "error": ...} exception handlers, and mounts the
routers. Unknown /api/* paths answer 404 with the path echoed back.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend_alpacalotto import __version__
from backend_alpacalotto.api_server import referrals, routes, session_keys
from backend_alpacalotto.api_server.dependencies import Services, build_services
from backend_alpacalotto.config import Settings, get_settings
from backend_alpacalotto.core.exceptions import AlpacaLottoError
from backend_alpacalotto.lotto_logging import get_logger

logger = get_logger(__name__)


def _error(status_code: int, message: str, **extra: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message, **extra})


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Warn about unset production settings on startup; release the DB pool on shutdown."""
    services: Services = app.state.services
    for name in services.settings.missing():
        logger.warning("setting_missing", setting=name)
    logger.info("api_started", version=__version__, environment=services.settings.environment)
    yield
    services.db.dispose()
    logger.info("api_stopped")


def _install_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AlpacaLottoError)
    async def domain_error_handler(request: Request, exc: AlpacaLottoError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("request_failed", path=request.url.path, error=exc.message, error_class=type(exc).__name__)
        else:
            logger.info("request_rejected", path=request.url.path, status=exc.status_code, error=exc.message)
        return _error(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        if errors:
            first = errors[0]
            loc = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
            message = f"Invalid request: {loc} {first.get('msg', '')}".strip() if loc else f"Invalid request: {first.get('msg', '')}"
        else:
            message = "Invalid request"
        return _error(400, message)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        path = request.url.path
        if exc.status_code == 404 and path.startswith("/api"):
            return _error(404, "API endpoint not found", path=path)
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("request_unhandled_error", path=request.url.path, error=str(exc))
        return _error(500, "Internal server error")


def create_app(settings: Settings | None = None, services: Services | None = None) -> FastAPI:
    """
    Build the API. Pass services to inject fakes (tests); otherwise they are
    built from settings (default: environment via get_settings()).
    """
    if services is None:
        services = build_services(settings or get_settings())
    settings = services.settings

    app = FastAPI(
        title="AlpacaLotto API",
        description="Lottery reads, gas-token optimization, session keys and referral rewards.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    _install_exception_handlers(app)

    @app.get("/")
    def root() -> dict[str, Any]:
        return {
            "message": "AlpacaLotto API Server is running",
            "version": __version__,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.get("/health")
    def health() -> dict[str, Any]:
        """Liveness probe: API is up."""
        return routes.health_payload()

    app.include_router(routes.router)
    app.include_router(session_keys.router)
    app.include_router(referrals.router)
    return app
