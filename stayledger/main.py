from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from contextlib import asynccontextmanager
from slowapi.errors import RateLimitExceeded
import uuid

from .config import settings
from .database import create_tables
from .errors import ConflictError, DomainError, ValidationError
from .utils.logging_config import setup_logging, get_logger, set_request_context, clear_request_context
from .utils.rate_limiter import limiter

from .routers import properties, rate_plans, add_ons, reservations, availability, health

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    setup_logging(level=settings.log_level, json_format=settings.log_json)

    logger.info(f"Starting stayledger ({settings.environment})")
    logger.info(f"CORS origins: {settings.cors_origins}")

    create_tables()

    yield

    logger.info("Shutting down stayledger")


app = FastAPI(
    title="stayledger",
    description="Property booking and availability engine",
    version=health.VERSION,
    lifespan=lifespan
)

# Rate limiter state
app.state.limiter = limiter


# ================================
# CORS MIDDLEWARE - MUST BE FIRST!
# ================================
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        if settings.is_production:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Tags every request (and its log lines) with a request id"""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4())[:8])
        request.state.request_id = request_id
        set_request_context(
            request_id,
            tenant=request.headers.get("X-Tenant-ID"),
            actor_id=request.headers.get("X-Actor-ID"),
        )
        try:
            response = await call_next(request)
        finally:
            clear_request_context()
        response.headers["X-Request-ID"] = request_id
        return response


app.add_middleware(RequestIdMiddleware)
app.add_middleware(SecurityHeadersMiddleware)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    content = {"detail": exc.message, "code": exc.code}
    headers = None

    if isinstance(exc, ConflictError) and exc.dates:
        content["dates"] = [d.isoformat() for d in exc.dates]
    if isinstance(exc, ValidationError) and exc.field:
        content["field"] = exc.field
    if exc.retryable:
        headers = {"Retry-After": "1"}

    if exc.http_status >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")

    return JSONResponse(status_code=exc.http_status, content=content, headers=headers)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=429,
        content={"detail": "Too many requests, try again later", "code": "RATE_LIMITED"}
    )


# Include routers
app.include_router(health.router)
app.include_router(properties.router)
app.include_router(rate_plans.router)
app.include_router(add_ons.router)
app.include_router(reservations.router)
app.include_router(availability.router)


@app.get("/")
async def root():
    return {
        "message": "stayledger API",
        "version": health.VERSION,
        "docs": "/docs",
        "status": "running"
    }
