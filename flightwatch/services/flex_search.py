"""
Flexible-date offer search.

An exact-date search runs first. Only when it comes back empty are the four
+/- day combinations tried, in a fixed order, and the first one with offers
wins.
"""
import logging
from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Protocol, Tuple

from flightwatch.services.amadeus_client import AmadeusError, SearchQuery, SearchResponse
from flightwatch.services.offers import tag_offer

logger = logging.getLogger(__name__)

# (depart offset sign, return offset sign), in the order they are tried
FLEX_COMBINATIONS: Tuple[Tuple[int, int], ...] = ((-1, -1), (-1, 1), (1, -1), (1, 1))


class OfferSearcher(Protocol):
    async def search_flight_offers(self, query: SearchQuery) -> SearchResponse:
        ...


@dataclass
class SearchOutcome:
    offers: List[Dict[str, Any]] = field(default_factory=list)
    carriers: Dict[str, str] = field(default_factory=dict)
    depart_date: Optional[date] = None
    return_date: Optional[date] = None
    attempts: int = 0
    errors: List[str] = field(default_factory=list)
    flexed: bool = False

    @property
    def degraded(self) -> bool:
        """True when at least one attempt failed rather than returning nothing."""
        return bool(self.errors)


def shift_dates(query: SearchQuery, dep_offset: int, ret_offset: int) -> SearchQuery:
    return replace(
        query,
        depart_date=query.depart_date + timedelta(days=dep_offset),
        return_date=query.return_date + timedelta(days=ret_offset) if query.return_date else None,
    )


async def _attempt(client: OfferSearcher, query: SearchQuery, outcome: SearchOutcome) -> SearchResponse:
    outcome.attempts += 1
    response = await client.search_flight_offers(query)
    return SearchResponse(
        offers=[tag_offer(o) for o in response.offers or []],
        carriers=dict(response.carriers or {}),
    )


def _accept(outcome: SearchOutcome, query: SearchQuery, response: SearchResponse) -> SearchOutcome:
    outcome.offers = response.offers
    outcome.carriers = response.carriers
    outcome.depart_date = query.depart_date
    outcome.return_date = query.return_date
    return outcome


async def search_with_flex(client: OfferSearcher, query: SearchQuery, flex_days: int = 1) -> SearchOutcome:
    """Search *query*, falling back to nearby dates when nothing is found.

    With ``flex_days=0`` only the exact search runs and its provider error, if
    any, reaches the caller. Otherwise every failure is logged, recorded on the
    outcome and treated as "no offers".
    """
    outcome = SearchOutcome()

    if flex_days <= 0:
        response = await _attempt(client, query, outcome)
        return _accept(outcome, query, response)

    try:
        response = await _attempt(client, query, outcome)
        if response.offers:
            return _accept(outcome, query, response)
    except AmadeusError as e:
        logger.warning(f"Exact search {query.depart_date}/{query.return_date} failed: {e}")
        outcome.errors.append(str(e))

    logger.info(f"No offers for exact dates, trying flex +/-{flex_days} day(s)")

    for dep_sign, ret_sign in FLEX_COMBINATIONS:
        alt = shift_dates(query, dep_sign * flex_days, ret_sign * flex_days)
        logger.info(f"Flex attempt {alt.depart_date}/{alt.return_date}")
        try:
            response = await _attempt(client, alt, outcome)
        except AmadeusError as e:
            logger.warning(f"Flex attempt {alt.depart_date}/{alt.return_date} failed: {e}")
            outcome.errors.append(str(e))
            continue
        if response.offers:
            logger.info(
                f"Flex found {len(response.offers)} offers with {alt.depart_date}/{alt.return_date}"
            )
            outcome.flexed = True
            return _accept(outcome, alt, response)

    logger.info("No offers found after flex attempts")
    return outcome
