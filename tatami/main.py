import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from starlette.exceptions import HTTPException
from starlette.middleware.gzip import GZipMiddleware

from tatami.api.routes import account, health
from tatami.core.config import get_settings
from tatami.core.errors import default_code_for_status
from tatami.core.limiter import limiter
from tatami.core.logging_config import setup_logging
from tatami.services.security_context import AUTH_TOKEN_HEADER


def _setup_observability(app: FastAPI, settings) -> None:
    if settings.sentry_dsn:
        try:
            import sentry_sdk
            from sentry_sdk.integrations.fastapi import FastApiIntegration

            sentry_sdk.init(
                dsn=settings.sentry_dsn,
                traces_sample_rate=settings.sentry_traces_sample_rate,
                environment=settings.environment,
                integrations=[FastApiIntegration()],
            )
        except Exception as e:
            logger.warning(f"Sentry initialization failed: {e}")

    if settings.enable_prometheus_metrics:
        try:
            from prometheus_fastapi_instrumentator import Instrumentator

            Instrumentator().instrument(app).expose(app, include_in_schema=False, endpoint="/metrics")
        except Exception as e:
            logger.warning(f"Prometheus instrumentation failed: {e}")


def _run_startup_checks(settings) -> None:
    if settings.is_production and settings.is_default_jwt_secret:
        raise RuntimeError("Insecure JWT_SECRET in production. Configure a strong value in the environment.")

    from tatami.core import database

    db = database.SessionLocal()
    try:
        db.execute(text("SELECT 1"))
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    setup_logging(settings.environment)
    _run_startup_checks(settings)

    from tatami.core.database import init_db

    init_db()
    logger.info(f"Tatami account API started ({settings.environment})")
    yield


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title="Tatami - Account API",
        description="Profile, preferences and password management for Tatami users",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    @app.exception_handler(HTTPException)
    async def handle_http_exception(request: Request, exc: HTTPException):
        request_id = getattr(request.state, "request_id", "unknown")
        if isinstance(exc.detail, dict) and "code" in exc.detail and "message" in exc.detail:
            payload = exc.detail
            code = payload.get("code")
            message = payload.get("message")
            details = payload.get("details")
        else:
            code = default_code_for_status(exc.status_code)
            message = str(exc.detail) if exc.detail else "Error"
            details = None
        return JSONResponse(
            status_code=exc.status_code,
            content={"code": code, "message": message, "details": details, "request_id": request_id},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        request_id = getattr(request.state, "request_id", "unknown")
        return JSONResponse(
            status_code=422,
            content={
                "code": "validation_error",
                "message": "Invalid request",
                "details": {"errors": exc.errors()},
                "request_id": request_id,
            },
        )

    @app.exception_handler(Exception)
    async def handle_500(request: Request, exc: Exception):
        logger.exception("Internal server error")
        request_id = getattr(request.state, "request_id", "unknown")
        return JSONResponse(
            status_code=500,
            content={
                "code": "internal_error",
                "message": "Internal server error",
                "details": None,
                "request_id": request_id,
            },
        )

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        request_id = str(uuid.uuid4())[:8]
        request.state.request_id = request_id
        request.state.start_time = time.time()
        with logger.contextualize(request_id=request_id):
            response = await call_next(request)
            elapsed = time.time() - request.state.start_time
            if elapsed > 0.5 and "/rest/" in request.url.path:
                logger.info(f"Slow request {request.method} {request.url.path} {elapsed:.2f}s")
        response.headers["X-Request-ID"] = request_id
        if settings.is_production:
            response.headers["X-Content-Type-Options"] = "nosniff"
            response.headers["X-Frame-Options"] = "DENY"
            response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[AUTH_TOKEN_HEADER, "X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    _setup_observability(app, settings)

    app.include_router(health.router)
    app.include_router(account.router)

    return app


app = create_app()
