from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from flightwatch.api import flights, health, reference, watchlist
from flightwatch.config import get_settings
from flightwatch.database import engine, Base, ensure_sqlite_columns, ensure_sqlite_dir, is_sqlite
from flightwatch.models import WatchedFlight, PriceHistory  # noqa: F401 - registers tables

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting flightwatch")

    if is_sqlite:
        ensure_sqlite_dir()
    Base.metadata.create_all(bind=engine)
    if is_sqlite:
        ensure_sqlite_columns()

    if not settings.has_amadeus_credentials:
        logger.warning("AMADEUS_API_KEY/AMADEUS_API_SECRET not set - searches will return no offers")
    else:
        logger.info(f"Amadeus environment: {settings.amadeus_env} ({settings.amadeus_base_url})")

    yield

    logger.info("Shutting down flightwatch")


app = FastAPI(
    title="flightwatch",
    description="Round-trip fare search and price watchlist backed by Amadeus",
    version="0.1.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix="/api", tags=["health"])
app.include_router(flights.router, prefix="/api/flights", tags=["flights"])
app.include_router(reference.router, prefix="/api/reference", tags=["reference"])
app.include_router(watchlist.router, prefix="/api/watchlist", tags=["watchlist"])


@app.get("/ping")
async def ping():
    """Simple ping endpoint for health checks."""
    return {"status": "ok"}
