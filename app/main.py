"""
FastAPI application main module.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.config import get_settings
from app.routers import parking, reservations

settings = get_settings()

logging.basicConfig(
    level=logging.DEBUG if settings.debug else settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    logger.info("%s ready", settings.app_name)
    yield


app = FastAPI(
    title=settings.app_name,
    description=(
        "Stateless engine for lot geometry, space registry upkeep, "
        "recurring reservation expansion and occupancy resolution"
    ),
    version=settings.api_version,
    lifespan=lifespan,
)

# Lot editors and occupancy dashboards call from the browser
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(parking.router)
app.include_router(reservations.router)


@app.get("/")
async def root():
    """Service name, version and the engine's route prefixes."""
    return {
        "name": settings.app_name,
        "version": settings.api_version,
        "routes": [parking.router.prefix, reservations.router.prefix],
    }


@app.get("/health")
async def health_check():
    """Liveness probe for the deployment."""
    return {"status": "ok"}
