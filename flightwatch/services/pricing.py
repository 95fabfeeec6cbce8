import logging
from dataclasses import dataclass, field, asdict
from datetime import date
from typing import Any, Dict, List, Optional

from flightwatch.services.amadeus_client import SearchQuery
from flightwatch.services.flex_search import OfferSearcher, SearchOutcome, search_with_flex
from flightwatch.services.offers import (
    FINGERPRINT_KEY,
    normalize_offer,
    offer_carrier_codes,
    tag_offer,
)

logger = logging.getLogger(__name__)

TOP_PER_CARRIER = 5


@dataclass
class CarrierOffer:
    airline: str
    code: str
    price: int
    currency: str
    details: Dict[str, Any]
    raw: Dict[str, Any]
    fingerprint: Optional[str]
    offer_id: Optional[str]
    depart_date: Optional[date]
    return_date: Optional[date]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class PriceSearchResult:
    outcome: SearchOutcome
    groups: Dict[str, List[CarrierOffer]] = field(default_factory=dict)
    results: List[CarrierOffer] = field(default_factory=list)


def group_by_carrier(
    offers: List[Dict[str, Any]],
    carriers: Optional[Dict[str, str]],
    depart_date: Optional[date] = None,
    return_date: Optional[date] = None,
    limit: int = TOP_PER_CARRIER,
) -> Dict[str, List[CarrierOffer]]:
    """Bucket offers per carrier code, cheapest first, at most *limit* each.

    An offer touching several carriers (interline, codeshare) lands in every
    one of their buckets.
    """
    carriers = carriers or {}
    groups: Dict[str, List[CarrierOffer]] = {}

    for offer in offers:
        tagged = tag_offer(offer)
        details = normalize_offer(tagged)
        offer_id = tagged.get("id")
        for code in offer_carrier_codes(tagged):
            groups.setdefault(code, []).append(CarrierOffer(
                airline=carriers.get(code) or code,
                code=code,
                price=details["price"],
                currency=details["currency"],
                details=details,
                raw=tagged,
                fingerprint=tagged.get(FINGERPRINT_KEY),
                offer_id=str(offer_id) if offer_id else None,
                depart_date=depart_date,
                return_date=return_date,
            ))

    for code in groups:
        groups[code] = sorted(groups[code], key=lambda o: o.price)[:limit]
    return groups


def rank_offers(groups: Dict[str, List[CarrierOffer]]) -> List[CarrierOffer]:
    """Flatten per-carrier lists into one list sorted by price (duplicates kept)."""
    flat: List[CarrierOffer] = []
    for offers in groups.values():
        flat.extend(offers)
    return sorted(flat, key=lambda o: o.price)


async def fetch_all_prices(client: OfferSearcher, query: SearchQuery, flex_days: int = 1) -> PriceSearchResult:
    outcome = await search_with_flex(client, query, flex_days=flex_days)
    groups = group_by_carrier(
        outcome.offers,
        outcome.carriers,
        depart_date=query.depart_date,
        return_date=query.return_date,
    )
    results = rank_offers(groups)
    logger.info(
        f"{query.origin}-{query.destination}: {len(outcome.offers)} offers, "
        f"{len(groups)} carriers, {len(results)} ranked"
    )
    return PriceSearchResult(outcome=outcome, groups=groups, results=results)
