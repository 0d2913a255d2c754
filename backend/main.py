import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.app.api import api_router
from backend.app.core.config import settings
from backend.app.core.deps import Services, get_services, init_services
from backend.app.core.kv import RedisDelegate, connect_redis_delegate

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting up Litter Map API...")

    delegate = None
    if settings.STORAGE_BACKEND == "redis":
        delegate = await connect_redis_delegate(settings.REDIS_URL)
    init_services(delegate)

    yield

    logger.info("Shutting down Litter Map API...")
    if isinstance(delegate, RedisDelegate):
        await delegate.close()


# --- App Initialization ---
app = FastAPI(
    title="Litter Map API",
    description="Photograph litter, locate it, and keep a record of where it was found",
    version="1.0.0",
    debug=settings.DEBUG,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


# --- API Endpoints ---
@app.get("/")
async def root():
    """Root endpoint."""
    return {"message": "Litter Map API", "version": "1.0.0"}


@app.get("/health")
async def health_check(services: Services = Depends(get_services)):
    """Health check endpoint with storage status."""
    status = {"status": "healthy", "storage": services.store.backend}

    if isinstance(services.delegate, RedisDelegate):
        if await services.delegate.ping():
            status["redis"] = "connected"
        else:
            status["redis"] = "unreachable"
            status["status"] = "degraded"

    return status
