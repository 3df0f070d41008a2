"""
Talk-to-My-Lawyer Backend - Main FastAPI Application
"""

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, UTC

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import settings
from app.api.routes import admin, auth, letters, referrals, subscriptions
from app.exceptions import AppError, TooManyAttemptsError
from app.services.database_service import database_service
from app.utils.rate_limit import limiter, rate_limit_exceeded_handler

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "Content-Security-Policy": (
        "default-src 'self'; style-src 'self' 'unsafe-inline'; "
        "script-src 'self'; img-src 'self' data: https:"
    ),
    "Cross-Origin-Resource-Policy": "cross-origin",
    "X-DNS-Prefetch-Control": "off",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan handler for startup and shutdown events"""
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(f"Environment: {settings.ENVIRONMENT}")

    try:
        connections = await database_service.health_check()
        for tenant, healthy in connections.items():
            if healthy:
                logger.info(f"Database {tenant}: connected")
            else:
                logger.warning(f"Database {tenant}: unavailable")
    except Exception as e:
        logger.error(f"Database health check failed on startup: {e}")

    yield

    logger.info(f"Shutting down {settings.APP_NAME}")
    database_service.close_all()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Talk-to-My-Lawyer API - Legal letters, subscriptions and referrals",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_middleware(SlowAPIMiddleware)


@app.middleware("http")
async def limit_request_size(request: Request, call_next):
    """Reject bodies larger than MAX_REQUEST_SIZE_BYTES"""
    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit():
        if int(content_length) > settings.MAX_REQUEST_SIZE_BYTES:
            return JSONResponse(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                content={"success": False, "message": "Request too large"},
            )
    return await call_next(request)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    for header, value in SECURITY_HEADERS.items():
        response.headers.setdefault(header, value)
    if settings.is_production:
        response.headers["Strict-Transport-Security"] = "max-age=15552000; includeSubDomains"
    return response


# Request timing middleware
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    """Add processing time to response headers"""
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    return response


# Configure CORS (added last so it wraps every other middleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_origin_regex=settings.ALLOWED_ORIGIN_REGEX,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With", "X-CSRF-Token"],
)


def _error(status_code: int, message: str, headers=None, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, **extra},
        headers=headers,
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render HTTP errors in the API envelope"""
    message = exc.detail
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        message = "API endpoint not found"
    return _error(exc.status_code, str(message), headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part != "body"]
        errors.append({"field": ".".join(loc), "message": error.get("msg", "Invalid value")})
    return _error(status.HTTP_400_BAD_REQUEST, "Validation failed", errors=errors)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if isinstance(exc, TooManyAttemptsError):
        return _error(
            exc.status_code,
            exc.message,
            headers={"Retry-After": str(exc.retry_after)},
            retryAfter=exc.retry_after,
        )
    return _error(exc.status_code, exc.message)


app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions"""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    message = "Internal server error" if settings.is_production else str(exc)
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, message)


app.include_router(auth.router)
app.include_router(letters.router)
app.include_router(subscriptions.router)
app.include_router(referrals.router)
app.include_router(admin.router)


@app.get("/health", tags=["Health"])
@limiter.exempt
async def health_check():
    """Liveness check"""
    return {
        "success": True,
        "message": "Talk-to-My-Lawyer API is running",
        "timestamp": datetime.now(UTC).isoformat(),
        "environment": settings.ENVIRONMENT,
    }


@app.get("/health/db", tags=["Health"])
@limiter.exempt
async def database_health_check():
    """Connectivity of every tenant database"""
    connections = await database_service.health_check()
    healthy = all(connections.values())
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "success": healthy,
            "message": "All databases connected" if healthy else "Some databases are unavailable",
            "connections": connections,
            "timestamp": datetime.now(UTC).isoformat(),
        },
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG
    )
