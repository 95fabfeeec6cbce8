from pydantic import BaseModel
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional


class CarrierOfferResponse(BaseModel):
    airline: str
    code: str
    price: int
    currency: str
    details: Dict[str, Any]
    raw: Dict[str, Any]
    fingerprint: Optional[str] = None
    offer_id: Optional[str] = None
    depart_date: Optional[date] = None
    return_date: Optional[date] = None

    class Config:
        from_attributes = True


class FlightSearchResponse(BaseModel):
    origin: str
    destination: str
    depart_date: date
    return_date: date
    adults: int
    # Dates the offers were actually found for (differ from the request after a flex hit)
    searched_depart_date: Optional[date] = None
    searched_return_date: Optional[date] = None
    degraded: bool = False
    results: List[CarrierOfferResponse]
    grouped: Dict[str, List[CarrierOfferResponse]]


class PriceConfirmRequest(BaseModel):
    offer: Optional[Dict[str, Any]] = None


class PriceConfirmResponse(BaseModel):
    base: Decimal
    grand_total: Decimal
    taxes: Decimal
    currency: str
    offer: Dict[str, Any]

    class Config:
        from_attributes = True


class LocationResponse(BaseModel):
    id: Optional[str] = None
    iata_code: Optional[str] = None
    name: Optional[str] = None
    sub_type: Optional[str] = None
    address: Dict[str, Any] = {}


class AirlineResponse(BaseModel):
    code: Optional[str] = None
    name: str = ""
