from sqlalchemy import Column, Integer, String, DateTime, Numeric, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from flightwatch.database import Base


class PriceHistory(Base):
    """
    One observed price for a watched flight.

    Append-only: a row is written on every watch and every refresh, and only
    goes away when its watched flight is deleted.
    """
    __tablename__ = "price_history"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)

    watched_flight_id = Column(
        Integer,
        ForeignKey("watched_flights.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    price = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(10), default="USD", nullable=False)
    fetched_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    watched_flight = relationship("WatchedFlight", back_populates="prices")

    def __repr__(self) -> str:
        return f"<PriceHistory {self.id}: {self.price} {self.currency} on {self.fetched_at}>"
