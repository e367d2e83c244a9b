import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse

from pulse import __version__
from pulse.api.routes import health, hello, metrics as metrics_routes
from pulse.core.config import Settings, get_settings
from pulse.core.limiter import build_limiter
from pulse.core.metrics import Metrics
from pulse.middleware.metrics import MetricsMiddleware
from pulse.middleware.request_context import request_context

logger = logging.getLogger("app")


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.ready = True
    logger.info("Application ready")
    yield
    logger.info("Shutting down server...")


def _error(request: Request, status_code: int, code: str, message: str, **extra) -> JSONResponse:
    error = {
        "code": code,
        "message": message,
        "request_id": getattr(request.state, "request_id", None),
    }
    error.update(extra)
    return JSONResponse(status_code=status_code, content={"error": error})


def _register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.exception(
            "Unhandled exception",
            extra={
                "event": {
                    "method": request.method,
                    "path": request.url.path,
                    "request_id": getattr(request.state, "request_id", None),
                }
            },
        )
        message = "Internal server error"
        details = None
        if settings.environment.lower() != "production":
            message = f"{exc.__class__.__name__}: {exc}"
            details = [{"type": exc.__class__.__name__}]
        return _error(
            request,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "internal_server_error",
            message,
            details=details,
        )

    @app.exception_handler(RateLimitExceeded)
    def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        response = _error(
            request, status.HTTP_429_TOO_MANY_REQUESTS, "rate_limited", "Too many requests"
        )
        limit = getattr(exc, "limit", None)
        if limit is not None:
            response.headers["Retry-After"] = str(limit.limit.get_expiry())
        return response

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return _error(
            request,
            422,
            "validation_error",
            "Validation error",
            details=exc.errors(),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            return _error(request, exc.status_code, "not_found", "Resource not found")
        return _error(request, exc.status_code, f"http_{exc.status_code}", str(exc.detail))


def create_app(settings: Settings | None = None, metrics: Metrics | None = None) -> FastAPI:
    settings = settings or get_settings()
    metrics = metrics or Metrics()

    app = FastAPI(title=settings.app_name, version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.metrics = metrics
    app.state.started_at = datetime.now(timezone.utc)
    app.state.ready = False

    _register_exception_handlers(app, settings)

    limiter = build_limiter(settings)
    app.state.limiter = limiter

    # Last added runs first: request context, metrics, gzip, CORS.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_origin_regex=settings.allowed_origin_regex,
        allow_methods=settings.allowed_methods,
        allow_headers=settings.allowed_headers,
        expose_headers=settings.exposed_headers,
        allow_credentials=False,
        max_age=settings.cors_max_age,
    )
    app.add_middleware(GZipMiddleware, minimum_size=settings.gzip_minimum_size)
    app.add_middleware(MetricsMiddleware, metrics=metrics)
    app.middleware("http")(request_context)

    app.include_router(health.router)
    app.include_router(metrics_routes.router)
    app.include_router(hello.build_router(limiter, settings.rate_limit), prefix="/api/v1")
    return app
