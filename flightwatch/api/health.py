from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import func
from flightwatch.config import get_settings
from flightwatch.database import get_db
from flightwatch.models import WatchedFlight

router = APIRouter()


@router.get("/health")
async def health_check(db: Session = Depends(get_db)):
    """Database probe plus whether Amadeus can be reached at all."""
    settings = get_settings()
    watched = None
    try:
        watched = db.query(func.count(WatchedFlight.id)).scalar()
        db_status = "healthy"
    except Exception as e:
        db_status = f"unhealthy: {e}"

    return {
        "status": "ok" if db_status == "healthy" else "degraded",
        "database": db_status,
        "watched_flights": watched,
        "amadeus_env": settings.amadeus_env,
        "amadeus_configured": settings.has_amadeus_credentials,
    }
