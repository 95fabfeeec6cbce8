"""
Watched flights and their price history.

Watching an offer stores a snapshot of it plus the submitted price; refreshing
re-searches each watched route and appends whichever offer best matches the
original pick.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from flightwatch.models import PriceHistory, WatchedFlight
from flightwatch.schemas.watchlist import WatchCreate
from flightwatch.services.amadeus_client import AmadeusError, SearchQuery
from flightwatch.services.flex_search import OfferSearcher
from flightwatch.services.offers import compute_offer_fingerprint
from flightwatch.services.pricing import fetch_all_prices
from flightwatch.services.reconcile import UNAVAILABLE, select_refresh_offer

logger = logging.getLogger(__name__)


@dataclass
class RefreshedFlight:
    id: int
    price: Optional[int]
    currency: Optional[str]
    matched_by: str


def _price_summary(db: Session, watched_flight_id: int) -> Dict[str, Optional[Decimal]]:
    min_price = db.query(func.min(PriceHistory.price)).filter(
        PriceHistory.watched_flight_id == watched_flight_id
    ).scalar()
    last = db.query(PriceHistory.price).filter(
        PriceHistory.watched_flight_id == watched_flight_id
    ).order_by(PriceHistory.fetched_at.desc(), PriceHistory.id.desc()).first()
    return {"min_price": min_price, "last_price": last[0] if last else None}


def to_response_dict(db: Session, wf: WatchedFlight) -> Dict[str, Any]:
    return {
        "id": wf.id,
        "airline": wf.airline,
        "flight_number": wf.flight_number,
        "origin": wf.origin,
        "destination": wf.destination,
        "depart_date": wf.depart_date,
        "return_date": wf.return_date,
        "offer_id": wf.offer_id,
        "offer_fingerprint": wf.offer_fingerprint,
        "offer": wf.offer,
        "details": wf.details,
        "created_at": wf.created_at,
        **_price_summary(db, wf.id),
    }


def add_watch(db: Session, payload: WatchCreate) -> WatchedFlight:
    """Watch an itinerary and record its current price.

    A snapshot whose fingerprint is already watched updates that row instead
    of inserting a duplicate.
    """
    fingerprint = compute_offer_fingerprint(payload.offer) if payload.offer else None

    watched = None
    if fingerprint:
        watched = db.query(WatchedFlight).filter(
            WatchedFlight.offer_fingerprint == fingerprint
        ).first()

    if watched is not None:
        logger.info(f"Offer already watched as #{watched.id}, updating snapshot")
        watched.offer = payload.offer
        watched.details = payload.details
        if payload.offer_id:
            watched.offer_id = payload.offer_id
    else:
        watched = WatchedFlight(
            airline=payload.airline,
            flight_number=payload.flight_number,
            origin=payload.origin.upper(),
            destination=payload.destination.upper(),
            depart_date=payload.depart_date,
            return_date=payload.return_date,
            offer_id=payload.offer_id,
            offer_fingerprint=fingerprint,
            offer=payload.offer,
            details=payload.details,
        )
        db.add(watched)
        db.flush()

    db.add(PriceHistory(
        watched_flight_id=watched.id,
        price=payload.price,
        currency=payload.currency.upper(),
    ))
    db.commit()
    db.refresh(watched)
    return watched


def list_watched(db: Session) -> List[WatchedFlight]:
    return db.query(WatchedFlight).order_by(
        WatchedFlight.created_at.desc(), WatchedFlight.id.desc()
    ).all()


def get_watched(db: Session, watched_flight_id: int) -> Optional[WatchedFlight]:
    return db.query(WatchedFlight).filter(WatchedFlight.id == watched_flight_id).first()


def get_history(db: Session, watched_flight_id: int) -> List[PriceHistory]:
    return db.query(PriceHistory).filter(
        PriceHistory.watched_flight_id == watched_flight_id
    ).order_by(PriceHistory.fetched_at.asc(), PriceHistory.id.asc()).all()


def delete_watch(db: Session, watched_flight_id: int) -> bool:
    watched = get_watched(db, watched_flight_id)
    if watched is None:
        return False
    db.delete(watched)
    db.commit()
    return True


def _fingerprint_taken(db: Session, fingerprint: str, own_id: int) -> bool:
    return db.query(WatchedFlight.id).filter(
        WatchedFlight.offer_fingerprint == fingerprint,
        WatchedFlight.id != own_id,
    ).first() is not None


async def refresh_all(db: Session, client: OfferSearcher, flex_days: int = 1) -> List[RefreshedFlight]:
    """Re-price every watched flight, one search at a time.

    A provider error on one flight marks that flight unavailable and the
    refresh moves on to the next.
    """
    refreshed: List[RefreshedFlight] = []

    for wf in db.query(WatchedFlight).order_by(WatchedFlight.id).all():
        query = SearchQuery(
            origin=wf.origin,
            destination=wf.destination,
            depart_date=wf.depart_date,
            return_date=wf.return_date,
            adults=1,
        )
        try:
            result = await fetch_all_prices(client, query, flex_days=flex_days)
        except AmadeusError as e:
            logger.error(f"Refresh search failed for watched flight #{wf.id}: {e}")
            refreshed.append(RefreshedFlight(id=wf.id, price=None, currency=None, matched_by=UNAVAILABLE))
            continue
        outcome = select_refresh_offer(wf, result.results)

        if not outcome.available:
            logger.info(f"No price available for watched flight #{wf.id}")
            refreshed.append(RefreshedFlight(id=wf.id, price=None, currency=None, matched_by=outcome.matched_by))
            continue

        best = outcome.offer
        db.add(PriceHistory(watched_flight_id=wf.id, price=best.price, currency=best.currency))
        wf.details = best.details
        wf.offer = best.raw
        if best.fingerprint and best.fingerprint != wf.offer_fingerprint:
            if _fingerprint_taken(db, best.fingerprint, wf.id):
                logger.warning(
                    f"Fingerprint of refreshed offer already belongs to another watch; "
                    f"keeping the old one on #{wf.id}"
                )
            else:
                wf.offer_fingerprint = best.fingerprint
        if best.offer_id:
            wf.offer_id = best.offer_id
        db.commit()

        logger.info(f"Refreshed #{wf.id}: {best.price} {best.currency} ({outcome.matched_by})")
        refreshed.append(RefreshedFlight(
            id=wf.id, price=best.price, currency=best.currency, matched_by=outcome.matched_by
        ))

    return refreshed
