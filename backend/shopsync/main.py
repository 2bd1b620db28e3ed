"""
ShopSync - Backend API
Multi-tenant Shopify catalog ingestion and reconciliation
"""
import time
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Load environment variables
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(env_path)

from shopsync.api import events, sync, tenants, webhooks  # noqa: E402
from shopsync.core.config import settings  # noqa: E402
from shopsync.core.database import check_database, init_db  # noqa: E402
from shopsync.services.sync_scheduler import SyncScheduler  # noqa: E402

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.DB_AUTO_CREATE:
        init_db()

    app.state.scheduler = None
    if settings.SYNC_SCHEDULER_ENABLED:
        app.state.scheduler = SyncScheduler()
        app.state.scheduler.start()

    yield

    if app.state.scheduler is not None:
        await app.state.scheduler.stop()


# Crear aplicación FastAPI
app = FastAPI(
    title=settings.API_TITLE,
    version=settings.API_VERSION,
    description=settings.API_DESCRIPTION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(tenants.router)
app.include_router(events.router)
app.include_router(sync.router)
app.include_router(webhooks.router)


@app.get("/")
async def root():
    """Root endpoint - API status"""
    return {
        "message": "ShopSync API",
        "status": "online",
        "version": settings.API_VERSION,
        "description": settings.API_DESCRIPTION,
    }


@app.get("/health")
async def health():
    """Health check endpoint for monitoring - tests database connectivity"""
    start_time = time.time()

    db_latency_ms = None
    db_error = None

    try:
        db_latency_ms = check_database()
        db_status = "connected"
    except Exception as e:
        db_status = "disconnected"
        db_error = str(e)

    scheduler = getattr(app.state, 'scheduler', None)

    return {
        "status": "healthy" if db_status == "connected" else "degraded",
        "service": "shopsync-api",
        "version": settings.API_VERSION,
        "database": {
            "status": db_status,
            "latency_ms": db_latency_ms,
            "error": db_error,
        },
        "scheduler": {
            "running": bool(scheduler and scheduler.running),
        },
        "total_latency_ms": round((time.time() - start_time) * 1000, 2),
    }
