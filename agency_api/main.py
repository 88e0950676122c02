"""Agency API - FastAPI application factory.

There is no module-level app: the configuration is loaded once at process
start and handed to ``create_app``. Run with::

    uvicorn agency_api.main:create_app --factory
"""

import logging
import time
import uuid
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from agency_api import __version__
from agency_api.auth.identity import IdentityResolver
from agency_api.auth.platform import PlatformTokenVerifier
from agency_api.auth.session_store import Clock, utc_now
from agency_api.config import AppConfig, load_config
from agency_api.context import agency_id_var, auth_mode_var, request_id_var
from agency_api.db.engine import build_engine, build_sessionmaker
from agency_api.db.models import Base
from agency_api.errors import INTERNAL_MESSAGE, AgencyAPIError
from agency_api.middleware import EdgeCorsMiddleware
from agency_api.routers import health, identity, onboarding, renewals, reports, team
from agency_api.supabase_client import build_token_verifier
from agency_api.utils import configure_json_logging

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


def _get_title_for_status(status_code: int) -> str:
    """Get human-readable title for HTTP status code."""
    titles = {
        400: "Bad Request",
        401: "Unauthorized",
        403: "Forbidden",
        404: "Not Found",
        405: "Method Not Allowed",
        409: "Conflict",
        500: "Internal Server Error",
        503: "Service Unavailable",
    }
    return titles.get(status_code, f"HTTP {status_code}")


def _validation_message(exc: RequestValidationError) -> str:
    """Render the first validation error as one sentence naming the field."""
    errors = exc.errors()
    first_error = errors[0] if errors else {}
    loc = [str(part) for part in first_error.get("loc", ()) if part != "body"]
    error_type = first_error.get("type", "")

    if error_type == "json_invalid":
        return "Request body must be valid JSON"

    field = ".".join(loc)
    if error_type == "missing":
        return f"Missing required field: {field}" if field else "Request body is required"

    msg = str(first_error.get("msg", "Validation error"))
    msg = msg.removeprefix("Value error, ")
    return f"Invalid field '{field}': {msg}" if field else msg


def register_exception_handlers(app: FastAPI) -> None:
    """Render every error as ``{"error": message}``."""

    @app.exception_handler(AgencyAPIError)
    async def agency_error_handler(request: Request, exc: AgencyAPIError) -> JSONResponse:
        return _error(exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _error(
            exc.status_code,
            _get_title_for_status(exc.status_code),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        message = _validation_message(exc)
        logger.info(
            "Request validation failed",
            extra={"event": "http.request.invalid", "path": request.url.path, "error": message},
        )
        return _error(status.HTTP_400_BAD_REQUEST, message)

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
        logger.warning(
            "Integrity constraint violated",
            extra={"event": "db.error", "error_type": type(exc).__name__, "path": request.url.path},
        )
        return _error(status.HTTP_409_CONFLICT, "Request conflicts with existing data")

    @app.exception_handler(SQLAlchemyError)
    async def db_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.error(
            f"Database error: {exc}",
            exc_info=True,
            extra={"event": "db.error", "error_type": type(exc).__name__, "path": request.url.path},
        )
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_MESSAGE)

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_MESSAGE)


def register_middlewares(app: FastAPI, config: AppConfig) -> None:
    """Install middlewares; the last one registered is the outermost."""

    app.add_middleware(EdgeCorsMiddleware, staff_session_header=config.staff_session_header)

    @app.middleware("http")
    async def http_completion_logging_middleware(request: Request, call_next):
        """Log every HTTP request completion, and reset per-request tenant context."""
        agency_id_var.set("")
        auth_mode_var.set("")

        start_time = time.perf_counter()
        status_code = 500

        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.info(
                "http.request.completed",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": status_code,
                    "duration_ms": round(duration_ms, 2),
                },
            )
            agency_id_var.set("")
            auth_mode_var.set("")

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        """Accept or generate X-Request-ID and echo it on the response."""
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request_id_var.set(request_id)

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


def create_app(
    config: Optional[AppConfig] = None,
    *,
    verifier: Optional[PlatformTokenVerifier] = None,
    engine: Optional[Engine] = None,
    clock: Clock = utc_now,
) -> FastAPI:
    """Build the application.

    Args:
        config: Process configuration (loaded from the environment when omitted)
        verifier: Platform token verifier (built from ``config`` when omitted)
        engine: Database engine (built from ``config`` when omitted)
        clock: Time source for staff session expiry

    Returns:
        Configured FastAPI application
    """
    if config is None:
        config = load_config()

    if config.json_logs:
        configure_json_logging(log_level=config.log_level)
        logger.info("Structured JSON logging enabled")

    if engine is None:
        engine = build_engine(config)
        if engine.dialect.name == "sqlite" and not config.is_production:
            # Local development database; the managed database owns its schema
            Base.metadata.create_all(engine)

    if verifier is None:
        verifier = build_token_verifier(config)

    app = FastAPI(
        title="Agency API",
        description="Tenant-scoped back-office functions for insurance agencies, "
        "callable by platform users and staff sessions.",
        version=__version__,
    )

    app.state.config = config
    app.state.engine = engine
    app.state.session_factory = build_sessionmaker(engine)
    app.state.identity_resolver = IdentityResolver(verifier, clock=clock)

    register_middlewares(app, config)
    register_exception_handlers(app)

    app.include_router(health.router, tags=["health"])
    app.include_router(identity.router)
    app.include_router(team.router)
    app.include_router(onboarding.router)
    app.include_router(renewals.router)
    app.include_router(reports.router)

    logger.info("Agency API initialized", extra={"env": config.env, "version": __version__})
    return app
