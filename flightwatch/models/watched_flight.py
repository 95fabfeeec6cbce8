from sqlalchemy import Column, Integer, String, Date, DateTime, JSON, Index
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from flightwatch.database import Base


class WatchedFlight(Base):
    """
    An itinerary the user chose to follow over time.

    Rows are keyed by a surrogate id. When the watch came from a provider offer,
    the offer's fingerprint is stored and must be unique: watching the same
    offer again updates this row instead of creating a second one.
    """
    __tablename__ = "watched_flights"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)

    airline = Column(String(50), nullable=False)
    flight_number = Column(String(100), nullable=False)  # e.g. "EK 202"

    origin = Column(String(10), nullable=False)
    destination = Column(String(10), nullable=False)
    depart_date = Column(Date, nullable=False)
    return_date = Column(Date, nullable=False)

    # Link back to the provider offer this watch was created from
    offer_id = Column(String(128), nullable=True)
    offer_fingerprint = Column(String(1024), nullable=True)
    offer = Column(JSON, nullable=True)
    details = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    prices = relationship(
        "PriceHistory",
        back_populates="watched_flight",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="PriceHistory.fetched_at",
    )

    __table_args__ = (
        Index("uniq_watched_offer_fingerprint", "offer_fingerprint", unique=True),
    )

    @property
    def carrier_code(self) -> str:
        """Airline code taken from the flight number's first token ("EK 202" -> "EK")."""
        parts = (self.flight_number or "").split(" ")
        return (parts[0] or "").upper()

    def __repr__(self) -> str:
        return f"<WatchedFlight {self.id}: {self.flight_number} {self.origin}-{self.destination}>"
