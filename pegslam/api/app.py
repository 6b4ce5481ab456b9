"""
FastAPI application factory.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from pegslam.api.middleware import setup_compression, setup_cors, setup_request_size_limit, setup_security_headers
from pegslam.api.observability import ObservabilityMiddleware, generate_request_id, get_request_id
from pegslam.api.routes import anglers as anglers_routes
from pegslam.api.routes import auth as auth_routes
from pegslam.api.routes import competitions as competitions_routes
from pegslam.api.routes import content as content_routes
from pegslam.api.routes import dashboard as dashboard_routes
from pegslam.api.routes import leaderboard as leaderboard_routes
from pegslam.api.routes import staff as staff_routes
from pegslam.api.routes import teams as teams_routes
from pegslam.api.routes import uploads as uploads_routes
from pegslam.api.state import AppState
from pegslam.config import Settings, get_settings
from pegslam.exceptions import PegSlamError, RateLimitError, exception_to_http_status
from pegslam.logging_config import get_logger, log_event
from pegslam.mailer import Mailer
from pegslam.repository import PegSlamRepo
from pegslam.security import RateLimitConfig, SQLiteRateLimiter

logger = get_logger(__name__)


def create_app(
    *,
    db_path: Path | str | None = None,
    upload_dir: Path | str | None = None,
    mailer: Mailer | None = None,
    settings: Settings | None = None,
    rate_limiter: SQLiteRateLimiter | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    upload_path = Path(upload_dir or settings.upload_dir)
    upload_path.mkdir(parents=True, exist_ok=True)

    state = AppState(
        repo=PegSlamRepo(db_path or settings.db_path),
        mailer=mailer or Mailer(settings),
        rate_limiter=rate_limiter
        or SQLiteRateLimiter(
            settings.rate_limit_db_path,
            RateLimitConfig(
                requests_per_window=settings.login_rate_limit_requests,
                window_seconds=settings.login_rate_limit_window_seconds,
            ),
        ),
        settings=settings,
        upload_dir=upload_path,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        purged = state.repo.purge_expired_sessions()
        log_event("app_started", db_path=str(state.repo.db_path), expired_sessions_purged=purged)
        yield

    app = FastAPI(
        title="Peg Slam API",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.state = state
    app.state.settings = settings

    setup_compression(app)
    setup_cors(app, settings)
    setup_security_headers(app)
    setup_request_size_limit(app, settings)

    # Observability middleware (must be added last to wrap all others)
    app.add_middleware(ObservabilityMiddleware)

    @app.get("/api/health")
    def health(response: Response) -> dict:
        response.headers["Cache-Control"] = "no-store"
        return {"ok": True}

    app.include_router(auth_routes.router)
    app.include_router(staff_routes.router)
    app.include_router(anglers_routes.router)
    app.include_router(competitions_routes.router)
    app.include_router(teams_routes.router)
    app.include_router(leaderboard_routes.router)
    app.include_router(content_routes.router)
    app.include_router(dashboard_routes.router)
    app.include_router(uploads_routes.router)

    app.mount(settings.upload_url_prefix, StaticFiles(directory=str(upload_path)), name="uploads")

    def _error_headers(request: Request) -> dict[str, str]:
        # Ensure clients always get a request id for correlation, even on errors.
        rid = request.headers.get("x-request-id") or get_request_id() or generate_request_id()
        return {"X-Request-ID": rid, "Cache-Control": "no-store"}

    @app.exception_handler(PegSlamError)
    def _pegslam_error(request: Request, exc: PegSlamError) -> JSONResponse:
        headers = _error_headers(request)
        if isinstance(exc, RateLimitError) and exc.retry_after:
            headers["Retry-After"] = str(exc.retry_after)
        status_code = exception_to_http_status(exc)
        if status_code >= 500:
            logger.error("request_error", extra={"error_code": exc.error_code, "detail": exc.detail})
            return JSONResponse(
                status_code=status_code,
                content={"message": "Internal server error", "error": exc.error_code},
                headers=headers,
            )
        return JSONResponse(status_code=status_code, content=exc.to_dict(), headers=headers)

    @app.exception_handler(RequestValidationError)
    def _request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = [
            {"path": [str(part) for part in err.get("loc", ()) if part != "body"], "message": err.get("msg", "")}
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content={"message": "Invalid data", "error": "validation_error", "errors": errors},
            headers=_error_headers(request),
        )

    @app.exception_handler(StarletteHTTPException)
    def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        headers = {**_error_headers(request), **(exc.headers or {})}
        return JSONResponse(status_code=exc.status_code, content={"message": exc.detail}, headers=headers)

    @app.exception_handler(Exception)
    def _unhandled(request: Request, exc: Exception) -> JSONResponse:
        # ObservabilityMiddleware logs the exception; we still return a safe, stable envelope.
        _ = exc
        return JSONResponse(
            status_code=500,
            content={"message": "Internal server error", "error": "internal_error"},
            headers=_error_headers(request),
        )

    return app


app = create_app()
