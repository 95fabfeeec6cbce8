from fastapi import APIRouter, Depends, HTTPException, Query
from typing import List
import logging

from flightwatch.schemas import AirlineResponse, LocationResponse
from flightwatch.services.amadeus_client import AmadeusClient, AmadeusError, get_amadeus_client

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/locations", response_model=List[LocationResponse])
async def search_locations(
    keyword: str = Query("", max_length=64),
    client: AmadeusClient = Depends(get_amadeus_client),
):
    try:
        return await client.search_locations(keyword)
    except AmadeusError as e:
        logger.error(f"Locations lookup error: {e}")
        raise HTTPException(status_code=502, detail="Failed to search locations")


@router.get("/airlines", response_model=List[AirlineResponse])
async def search_airlines(
    query: str = Query("", max_length=16),
    client: AmadeusClient = Depends(get_amadeus_client),
):
    try:
        return await client.search_airlines(query)
    except AmadeusError as e:
        logger.error(f"Airlines lookup error: {e}")
        raise HTTPException(status_code=502, detail="Failed to search airlines")
