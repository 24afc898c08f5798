"""
TH-Drive Payments - Main FastAPI Application
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from thdrive.core.config import settings
from thdrive.core.logging import setup_logging, get_logger
from thdrive.core.middleware import setup_middleware, setup_exception_handlers
from thdrive.api.routes import router as api_router
from thdrive.db.database import engine, Base
from thdrive.db import models  # noqa: F401  registers tables on Base.metadata

# Setup logging before anything else
setup_logging(
    level="DEBUG" if settings.DEBUG else "INFO",
    json_format=not settings.DEBUG,
    app_name=settings.APP_NAME
)

logger = get_logger(__name__)


def _parse_allowed_origins(raw: str) -> list[str]:
    """Parse comma-separated CORS origins string into a clean list."""
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


_OPENAPI_TAGS = [
    {"name": "payments", "description": "Cash-ride commission and QR code payments."},
    {"name": "wallets", "description": "Wallet balance, top-ups and transaction history."},
    {"name": "drivers", "description": "Driver dashboard and earnings withdrawals."},
    {"name": "notifications", "description": "Per-account notification inbox."},
    {"name": "rides", "description": "Fare estimation."},
]


app = FastAPI(
    title=settings.APP_NAME,
    version="1.0.0",
    description="Settlement service for ride payments, commissions and wallets.",
    openapi_tags=_OPENAPI_TAGS,
)

setup_middleware(app)
setup_exception_handlers(app)

allowed_origins = _parse_allowed_origins(settings.ALLOWED_ORIGINS)

# Local frontend defaults in DEBUG only
if not allowed_origins and settings.DEBUG:
    allowed_origins = [
        "http://localhost",
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

if allowed_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Correlation-ID"],
    )

app.include_router(api_router, prefix="/api")


@app.on_event("startup")
async def startup() -> None:
    """Initialize database tables on startup"""
    logger.info("Starting application", extra_data={"app_name": settings.APP_NAME})
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialized")


@app.on_event("shutdown")
async def shutdown() -> None:
    """Cleanup on shutdown"""
    logger.info("Shutting down application")
    from thdrive.core.redis_client import close_redis
    await close_redis()
    await engine.dispose()
    logger.info("Database connections disposed")


@app.get("/health", tags=["health"], summary="Liveness check")
async def health_check() -> dict[str, str]:
    """The process is up; dependencies are not checked."""
    return {"status": "healthy"}
