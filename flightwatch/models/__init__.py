# SQLAlchemy models
from flightwatch.models.watched_flight import WatchedFlight
from flightwatch.models.price_history import PriceHistory

__all__ = [
    "WatchedFlight",
    "PriceHistory",
]
