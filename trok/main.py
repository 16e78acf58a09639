"""
trok/main.py

Purpose: Application entry point

- Initializes FastAPI app
- Loads configuration and logging
- Registers API routes (auth, plaid, stripe, uploads, procedures)
- Starts the background scheduler
- Manages application lifecycle (startup/shutdown)
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import time

from trok.core.config import settings, validate_settings
from trok.core.errors import add_exception_handlers
from trok.core.logging import setup_logging, get_logger
from trok.core.middleware import add_middleware
from trok.db.mongo import connect_to_mongo, close_mongo_connection, check_database_health
from trok.db.indexes import create_indexes
from trok.services import scheduler as scheduler_module
from trok.services.scheduler import start_scheduler, shutdown_scheduler
from trok.api import auth, plaid, rpc, stripe, uploads
from trok.utils.constants import PING_MESSAGE, WELCOME_MESSAGE
from trok.utils.time_utils import format_http_date

# Initialize logging first
setup_logging()
logger = get_logger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    logger.info("🚀 Starting trok backend...")

    try:
        validate_settings()
        logger.info("✅ Configuration validated")

        await connect_to_mongo()
        await create_indexes()
        logger.info("✅ Database indexes created")

        if not await check_database_health():
            logger.warning("⚠️ Database health check failed during startup")

        if settings.SCHEDULER_ENABLED:
            start_scheduler()

        logger.info(f"🎉 trok backend started ({settings.ENVIRONMENT}, debug={settings.DEBUG})")

    except Exception as e:
        logger.critical(f"Failed to start application: {str(e)}", exc_info=True)
        raise

    yield

    logger.info("🛑 Shutting down trok backend...")

    try:
        shutdown_scheduler()
        await close_mongo_connection()
        logger.info("👋 trok backend shut down")

    except Exception as e:
        logger.error(f"Error during shutdown: {str(e)}", exc_info=True)


app = FastAPI(
    title="trok",
    description="Fuel card and invoicing backend for fleet businesses",
    version=VERSION,
    lifespan=lifespan,
    debug=settings.DEBUG,
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

add_middleware(app)
add_exception_handlers(app)

app.include_router(auth.router, prefix=f"{settings.API_PREFIX}/auth", tags=["Auth"])
app.include_router(plaid.router, prefix=f"{settings.API_PREFIX}/plaid", tags=["Plaid"])
app.include_router(stripe.router, prefix=f"{settings.API_PREFIX}/stripe", tags=["Stripe"])
app.include_router(uploads.router, prefix=settings.API_PREFIX, tags=["Uploads"])
app.include_router(rpc.router, prefix=f"{settings.API_PREFIX}/trpc", tags=["Procedures"])


@app.get(settings.API_PREFIX, tags=["Health"])
async def root():
    return {"message": WELCOME_MESSAGE}


@app.api_route("/ping", methods=["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"], tags=["Health"])
async def ping():
    return {"message": PING_MESSAGE.format(timestamp=format_http_date())}


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Checks database connectivity and reports the scheduler state.
    """
    health_status = {
        "status": "healthy",
        "timestamp": time.time(),
        "environment": settings.ENVIRONMENT,
        "version": VERSION,
        "checks": {}
    }

    db_healthy = await check_database_health()
    health_status["checks"]["database"] = "healthy" if db_healthy else "unhealthy"
    if not db_healthy:
        health_status["status"] = "degraded"

    health_status["checks"]["scheduler"] = (
        "running" if scheduler_module.scheduler is not None else "stopped"
    )

    status_code = 200 if health_status["status"] == "healthy" else 503
    return JSONResponse(content=health_status, status_code=status_code)


@app.get("/ready", tags=["Health"])
async def readiness_check():
    """
    Readiness probe - indicates if app is ready to receive traffic.
    """
    if await check_database_health():
        return {"status": "ready"}
    return JSONResponse(
        status_code=503,
        content={"status": "not_ready", "reason": "database_unavailable"}
    )


@app.get("/live", tags=["Health"])
async def liveness_check():
    return {"status": "alive"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "trok.main:app",
        host="0.0.0.0",
        port=settings.PORT,
        reload=settings.is_development,
        log_level=settings.LOG_LEVEL.lower()
    )
