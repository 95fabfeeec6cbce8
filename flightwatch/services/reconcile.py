import logging
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

from flightwatch.services.pricing import CarrierOffer

logger = logging.getLogger(__name__)

MATCH_OFFER_ID = "offer_id"
MATCH_FINGERPRINT = "fingerprint"
MATCH_AIRLINE = "airline"
MATCH_CHEAPEST = "cheapest"
UNAVAILABLE = "unavailable"


class WatchedRecord(Protocol):
    offer_id: Optional[str]
    offer_fingerprint: Optional[str]

    @property
    def carrier_code(self) -> str:
        ...


@dataclass
class RefreshOutcome:
    offer: Optional[CarrierOffer]
    matched_by: str

    @property
    def available(self) -> bool:
        return self.offer is not None


def select_refresh_offer(watched: WatchedRecord, offers: Sequence[CarrierOffer]) -> RefreshOutcome:
    """Pick the one offer to record as a watched flight's new price.

    Order of preference: the stored provider offer id, the stored fingerprint,
    the first offer from the same airline, then the cheapest offer overall.
    """
    if not offers:
        return RefreshOutcome(offer=None, matched_by=UNAVAILABLE)

    if watched.offer_id:
        for o in offers:
            if o.offer_id == watched.offer_id or o.fingerprint == watched.offer_id:
                return RefreshOutcome(offer=o, matched_by=MATCH_OFFER_ID)

    if watched.offer_fingerprint:
        for o in offers:
            if o.fingerprint == watched.offer_fingerprint:
                return RefreshOutcome(offer=o, matched_by=MATCH_FINGERPRINT)

    code = (watched.carrier_code or "").upper()
    if code:
        for o in offers:
            if (o.code or "").upper() == code:
                return RefreshOutcome(offer=o, matched_by=MATCH_AIRLINE)

    cheapest = min(offers, key=lambda o: o.price)
    # May point the watch at an itinerary the user never picked
    logger.warning(
        f"No identifying match for {watched!r}; falling back to cheapest offer "
        f"{cheapest.code} at {cheapest.price} {cheapest.currency}"
    )
    return RefreshOutcome(offer=cheapest, matched_by=MATCH_CHEAPEST)
