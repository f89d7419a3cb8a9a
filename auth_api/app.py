from __future__ import annotations

from contextlib import asynccontextmanager
import logging
import time

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from auth_api.core.config import Settings, get_settings, validate_runtime_config
from auth_api.core.errors import ApiError
from auth_api.core.mailer import Mailer
from auth_api.core.tokens import TokenService
from auth_api.db.session import Database
from auth_api.routers import auth as auth_router
from auth_api.routers import user as user_router
from auth_api.services.federated_service import (
    FacebookIdentityProvider,
    GoogleIdentityProvider,
    IdentityProvider,
)

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log method, path, status and latency of every request (development only)."""

    async def dispatch(self, request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info("%s %s %s %.1fms", request.method, request.url.path, response.status_code, elapsed_ms)
        return response


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _first_validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid value")
    return f"{location}: {message}" if location else message


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        return JSONResponse({"error": exc.message}, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse({"error": _first_validation_message(exc)}, status_code=400)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse({"error": exc.detail}, status_code=exc.status_code, headers=exc.headers)

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return PlainTextResponse("Server Error", status_code=500)


def create_app(
    settings: Settings | None = None,
    *,
    mailer: Mailer | None = None,
    google: IdentityProvider | None = None,
    facebook: IdentityProvider | None = None,
) -> FastAPI:
    """Factory compatible with ``uvicorn auth_api.app:create_app --factory``."""
    settings = settings or get_settings()
    configure_logging(settings)
    validate_runtime_config(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        database = Database(settings.database_url)
        database.create_all()
        app.state.database = database
        app.state.mailer = mailer or Mailer(settings)
        app.state.google = google or GoogleIdentityProvider(settings.google_client_id)
        app.state.facebook = facebook or FacebookIdentityProvider(settings.facebook_graph_url)
        logger.info("Account service started (%s)", settings.app_env)
        try:
            yield
        finally:
            for handle in (app.state.facebook, app.state.mailer):
                close = getattr(handle, "close", None)
                if close:
                    close()
            database.dispose()
            logger.info("Account service stopped")

    app = FastAPI(title="Account API", lifespan=lifespan)
    app.state.settings = settings
    app.state.tokens = TokenService.from_settings(settings)

    origins = list(settings.cors_origins) or ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["GET", "POST", "PUT", "OPTIONS"],
        allow_headers=["*"],
    )
    if settings.app_env == "development":
        app.add_middleware(RequestLoggingMiddleware)

    _register_error_handlers(app)
    app.include_router(auth_router.router)
    app.include_router(user_router.router)

    @app.get("/")
    def root():
        return {"status": "Account API running"}

    return app
