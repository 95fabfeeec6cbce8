from fastapi import APIRouter, Depends, HTTPException, Query
from datetime import date
from typing import Optional
import logging

from flightwatch.config import get_settings
from flightwatch.schemas import FlightSearchResponse, PriceConfirmRequest, PriceConfirmResponse
from flightwatch.services.amadeus_client import AmadeusClient, AmadeusError, SearchQuery, get_amadeus_client
from flightwatch.services.pricing import fetch_all_prices

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/search", response_model=FlightSearchResponse)
async def search_flights(
    depart: Optional[date] = Query(None, description="Departure date (YYYY-MM-DD)"),
    return_: Optional[date] = Query(None, alias="return", description="Return date (YYYY-MM-DD)"),
    origin: str = Query("CLT", min_length=3, max_length=3),
    destination: str = Query("DXB", min_length=3, max_length=3),
    airline: Optional[str] = Query(None, max_length=3),
    adults: int = Query(1, ge=1, le=9),
    client: AmadeusClient = Depends(get_amadeus_client),
):
    if not depart or not return_:
        raise HTTPException(status_code=400, detail="depart and return query params are required (YYYY-MM-DD)")
    if return_ < depart:
        raise HTTPException(status_code=400, detail="return must not be before depart")

    query = SearchQuery(
        origin=origin.upper(),
        destination=destination.upper(),
        depart_date=depart,
        return_date=return_,
        adults=adults,
        airline=airline,
    )
    try:
        result = await fetch_all_prices(client, query, flex_days=get_settings().flex_days)
    except AmadeusError as e:
        logger.error(f"Search error: {e}")
        raise HTTPException(status_code=502, detail="Failed to fetch prices")

    return {
        "origin": query.origin,
        "destination": query.destination,
        "depart_date": depart,
        "return_date": return_,
        "adults": adults,
        "searched_depart_date": result.outcome.depart_date,
        "searched_return_date": result.outcome.return_date,
        "degraded": result.outcome.degraded,
        "results": [o.to_dict() for o in result.results],
        "grouped": {code: [o.to_dict() for o in offers] for code, offers in result.groups.items()},
    }


@router.post("/price-confirm", response_model=PriceConfirmResponse)
async def confirm_price(
    request: PriceConfirmRequest,
    client: AmadeusClient = Depends(get_amadeus_client),
):
    if not request.offer:
        raise HTTPException(status_code=400, detail="offer is required")
    try:
        priced = await client.price_flight_offer(request.offer)
    except AmadeusError as e:
        logger.error(f"Price confirm error: {e}")
        raise HTTPException(status_code=502, detail="Failed to confirm price")
    return priced
