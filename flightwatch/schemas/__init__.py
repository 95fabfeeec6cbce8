from flightwatch.schemas.flight import (
    CarrierOfferResponse,
    FlightSearchResponse,
    PriceConfirmRequest,
    PriceConfirmResponse,
    LocationResponse,
    AirlineResponse,
)
from flightwatch.schemas.watchlist import (
    WatchCreate,
    WatchedFlightResponse,
    PriceHistoryResponse,
    RefreshedFlightResponse,
    RefreshResponse,
)

__all__ = [
    "CarrierOfferResponse",
    "FlightSearchResponse",
    "PriceConfirmRequest",
    "PriceConfirmResponse",
    "LocationResponse",
    "AirlineResponse",
    "WatchCreate",
    "WatchedFlightResponse",
    "PriceHistoryResponse",
    "RefreshedFlightResponse",
    "RefreshResponse",
]
