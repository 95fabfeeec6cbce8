from pydantic import BaseModel, Field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional


class WatchCreate(BaseModel):
    airline: str = Field(min_length=1, max_length=50)
    flight_number: str = Field(min_length=1, max_length=100)
    origin: str = Field(min_length=3, max_length=10)
    destination: str = Field(min_length=3, max_length=10)
    depart_date: date
    return_date: date
    price: Decimal = Field(ge=0)
    currency: str = "USD"
    details: Optional[Dict[str, Any]] = None
    offer_id: Optional[str] = None
    offer: Optional[Dict[str, Any]] = None


class WatchedFlightResponse(BaseModel):
    id: int
    airline: str
    flight_number: str
    origin: str
    destination: str
    depart_date: date
    return_date: date
    offer_id: Optional[str] = None
    offer_fingerprint: Optional[str] = None
    offer: Optional[Dict[str, Any]] = None
    details: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    min_price: Optional[Decimal] = None
    last_price: Optional[Decimal] = None

    class Config:
        from_attributes = True


class PriceHistoryResponse(BaseModel):
    id: int
    price: Decimal
    currency: str
    fetched_at: datetime

    class Config:
        from_attributes = True


class RefreshedFlightResponse(BaseModel):
    id: int
    price: Optional[int] = None
    currency: Optional[str] = None
    matched_by: str


class RefreshResponse(BaseModel):
    count: int
    refreshed: List[RefreshedFlightResponse]
