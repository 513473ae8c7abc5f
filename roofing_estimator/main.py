from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from . import __version__
from .catalogs import catalog_counts
from .config import settings
from .routers import catalog, estimates

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("roofing_estimator")

app = FastAPI(
    title=settings.APP_NAME,
    description="Material and cost estimation for commercial roofing systems",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routes
app.include_router(catalog.router, prefix="/api")
app.include_router(estimates.router, prefix="/api")


@app.get("/health")
def health():
    return {"status": "ok", "app": "roofing-estimator", "catalogs": catalog_counts()}


@app.on_event("startup")
def warm_catalogs():
    """Load every catalog once so a broken data file fails at startup, not mid-request."""
    counts = catalog_counts()
    logger.info("Catalogs loaded: %s", ", ".join(f"{k}={v}" for k, v in counts.items()))
