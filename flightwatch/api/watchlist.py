from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session
from typing import List
import logging

from flightwatch.config import get_settings
from flightwatch.database import get_db
from flightwatch.schemas import (
    PriceHistoryResponse,
    RefreshResponse,
    WatchCreate,
    WatchedFlightResponse,
)
from flightwatch.services import watchlist as watchlist_service
from flightwatch.services.amadeus_client import AmadeusClient, get_amadeus_client

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=WatchedFlightResponse, status_code=201)
async def add_to_watchlist(
    watch: WatchCreate,
    db: Session = Depends(get_db),
):
    watched = watchlist_service.add_watch(db, watch)
    return watchlist_service.to_response_dict(db, watched)


@router.get("", response_model=List[WatchedFlightResponse])
async def list_watchlist(db: Session = Depends(get_db)):
    return [
        watchlist_service.to_response_dict(db, wf)
        for wf in watchlist_service.list_watched(db)
    ]


@router.get("/{watched_id}/history", response_model=List[PriceHistoryResponse])
async def get_price_history(
    watched_id: int,
    db: Session = Depends(get_db),
):
    if watchlist_service.get_watched(db, watched_id) is None:
        raise HTTPException(status_code=404, detail="Watched flight not found")
    return watchlist_service.get_history(db, watched_id)


@router.post("/refresh", response_model=RefreshResponse)
async def refresh_watchlist(
    db: Session = Depends(get_db),
    client: AmadeusClient = Depends(get_amadeus_client),
):
    refreshed = await watchlist_service.refresh_all(db, client, flex_days=get_settings().flex_days)
    return {
        "count": len(refreshed),
        "refreshed": [r.__dict__ for r in refreshed],
    }


@router.delete("/{watched_id}", status_code=204)
async def delete_watched_flight(
    watched_id: int,
    db: Session = Depends(get_db),
):
    if not watchlist_service.delete_watch(db, watched_id):
        raise HTTPException(status_code=404, detail="Watched flight not found")
    return Response(status_code=204)
