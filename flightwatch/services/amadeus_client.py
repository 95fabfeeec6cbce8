"""
Amadeus Self-Service API client.

Covers the endpoints the app needs: Flight Offers Search, Flight Offers Price,
and the airport/city and airline reference lookups. OAuth2 tokens are handled
by a ``TokenProvider`` so the cache can be swapped out in tests.
"""
import httpx
import logging
import re
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

from flightwatch.config import Settings, get_settings
from flightwatch.services.offers import compute_tax_approx, parse_decimal, tag_offer, DEFAULT_CURRENCY

logger = logging.getLogger(__name__)

TOKEN_REFRESH_MARGIN_SECONDS = 60


class AmadeusError(Exception):
    """Any failure talking to Amadeus (transport, auth or API)."""


class AmadeusAuthError(AmadeusError):
    pass


class AmadeusApiError(AmadeusError):
    def __init__(self, status_code: int, payload: Any):
        super().__init__(f"Amadeus API error {status_code}: {str(payload)[:500]}")
        self.status_code = status_code
        self.payload = payload


@dataclass
class OAuthToken:
    access_token: str
    token_type: str
    expires_at_epoch: float

    @property
    def is_expired(self) -> bool:
        return time.time() >= (self.expires_at_epoch - TOKEN_REFRESH_MARGIN_SECONDS)


class TokenProvider(ABC):
    """Hands out bearer tokens for outbound Amadeus calls."""

    @abstractmethod
    async def get_token(self) -> str:
        pass


class AmadeusTokenProvider(TokenProvider):
    """Client-credentials token, cached until 60s before it expires.

    Concurrent refreshes are harmless: both fetch a valid token and the last
    one written is kept.
    """

    def __init__(self, settings: Optional[Settings] = None, http_client: Optional[httpx.AsyncClient] = None):
        self.settings = settings or get_settings()
        self.base_url = self.settings.amadeus_base_url.rstrip("/")
        self._http_client = http_client
        self._token: Optional[OAuthToken] = None

    @property
    def token(self) -> Optional[OAuthToken]:
        return self._token

    def invalidate(self) -> None:
        self._token = None

    async def _fetch_token(self) -> OAuthToken:
        if not self.settings.has_amadeus_credentials:
            raise AmadeusAuthError("Amadeus API credentials are not set")

        data = {
            "grant_type": "client_credentials",
            "client_id": self.settings.amadeus_api_key,
            "client_secret": self.settings.amadeus_api_secret,
        }
        url = f"{self.base_url}/v1/security/oauth2/token"
        try:
            if self._http_client is not None:
                response = await self._http_client.post(url, data=data, timeout=15.0)
            else:
                async with httpx.AsyncClient(timeout=15.0) as client:
                    response = await client.post(url, data=data)
        except httpx.HTTPError as e:
            raise AmadeusAuthError(f"Amadeus auth request failed: {e}") from e

        if response.status_code != 200:
            raise AmadeusAuthError(f"Amadeus auth failed: {response.status_code} {response.text[:300]}")

        try:
            payload = response.json()
            return OAuthToken(
                access_token=payload["access_token"],
                token_type=payload.get("token_type", "Bearer"),
                expires_at_epoch=time.time() + float(payload.get("expires_in", 0)),
            )
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise AmadeusAuthError(f"Malformed Amadeus token response: {e}") from e

    async def get_token(self) -> str:
        if self._token is None or self._token.is_expired:
            self._token = await self._fetch_token()
            logger.debug("Fetched new Amadeus access token")
        return self._token.access_token


@dataclass
class SearchQuery:
    origin: str
    destination: str
    depart_date: date
    return_date: Optional[date]
    adults: int = 1
    airline: Optional[str] = None


@dataclass
class SearchResponse:
    offers: List[Dict[str, Any]] = field(default_factory=list)
    carriers: Dict[str, str] = field(default_factory=dict)


@dataclass
class PricedOffer:
    base: Decimal
    grand_total: Decimal
    taxes: Decimal
    currency: str
    offer: Dict[str, Any]


def sanitize_keyword(value: Optional[str]) -> str:
    if not value:
        return ""
    cleaned = re.sub(r"[^a-zA-Z0-9\s]", " ", str(value))
    return re.sub(r"\s+", " ", cleaned).strip().upper()


def sanitize_airline_code(value: Optional[str]) -> str:
    if not value:
        return ""
    return re.sub(r"[^a-zA-Z]", "", str(value)).upper()[:3]


def _json(response: httpx.Response) -> Dict[str, Any]:
    try:
        data = response.json()
    except ValueError as e:
        raise AmadeusApiError(response.status_code, f"invalid JSON body: {e}") from e
    if not isinstance(data, dict):
        raise AmadeusApiError(response.status_code, "unexpected response body")
    return data


def _sample_carriers(offers: List[Dict[str, Any]], limit: int = 10) -> List[str]:
    seen: List[str] = []
    for offer in offers[:limit]:
        for itinerary in offer.get("itineraries") or []:
            for segment in itinerary.get("segments") or []:
                for code in (segment.get("carrierCode"), segment.get("marketingCarrier")):
                    if code and code not in seen:
                        seen.append(code)
    return seen


class AmadeusClient:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        token_provider: Optional[TokenProvider] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings or get_settings()
        self.base_url = self.settings.amadeus_base_url.rstrip("/")
        self.token_provider = token_provider or AmadeusTokenProvider(self.settings)
        self._http_client = http_client

    # ---------- HTTP ----------
    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
        timeout: float = 30.0,
    ) -> httpx.Response:
        token = await self.token_provider.get_token()
        headers = {"Authorization": f"Bearer {token}", "Accept": "application/json"}
        url = f"{self.base_url}{path}"
        try:
            if self._http_client is not None:
                return await self._http_client.request(
                    method, url, headers=headers, params=params, json=json, timeout=timeout
                )
            async with httpx.AsyncClient(timeout=timeout) as client:
                return await client.request(method, url, headers=headers, params=params, json=json)
        except httpx.HTTPError as e:
            raise AmadeusError(f"Amadeus request to {path} failed: {e}") from e

    # ---------- Flight Offers Search ----------
    async def search_flight_offers(self, query: SearchQuery) -> SearchResponse:
        params: Dict[str, Any] = {
            "originLocationCode": query.origin,
            "destinationLocationCode": query.destination,
            "departureDate": query.depart_date.isoformat(),
            "adults": str(query.adults),
            "currencyCode": self.settings.amadeus_currency,
            "max": str(self.settings.amadeus_max_results),
        }
        if query.return_date:
            params["returnDate"] = query.return_date.isoformat()
        airline = (query.airline or "").strip()
        if airline:
            params["includedAirlineCodes"] = airline.upper()

        logger.info(
            f"Amadeus search ({self.settings.amadeus_env}): {query.origin}-{query.destination} "
            f"{params['departureDate']}/{params.get('returnDate')} adults={query.adults} "
            f"airline={airline or None}"
        )

        response = await self._request("GET", "/v2/shopping/flight-offers", params=params)
        if response.status_code >= 400:
            logger.warning(f"Amadeus search error {response.status_code}: {response.text[:500]}")
            raise AmadeusApiError(response.status_code, response.text)

        data = _json(response)
        offers = [tag_offer(o) for o in data.get("data") or []]
        carriers = (data.get("dictionaries") or {}).get("carriers") or {}

        logger.info(f"Amadeus returned {len(offers)} offers, carriers sample: {_sample_carriers(offers)}")
        return SearchResponse(offers=offers, carriers=carriers)

    # ---------- Flight Offers Price ----------
    async def price_flight_offer(self, offer: Dict[str, Any]) -> PricedOffer:
        """Confirm the live price of an offer returned by a search."""
        submitted = {k: v for k, v in offer.items() if not k.startswith("_")}
        body = {
            "data": {
                "type": "flight-offers-pricing",
                "flightOffers": [submitted],
            }
        }
        logger.info("Amadeus pricing request")
        response = await self._request("POST", "/v1/shopping/flight-offers/pricing", json=body)
        if response.status_code >= 400:
            logger.warning(f"Amadeus pricing error {response.status_code}: {response.text[:500]}")
            raise AmadeusApiError(response.status_code, response.text)

        data = _json(response)
        priced_offers = (data.get("data") or {}).get("flightOffers") or []
        priced = priced_offers[0] if priced_offers else submitted

        taxes: Optional[Decimal] = None
        traveler_pricings = priced.get("travelerPricings")
        if isinstance(traveler_pricings, list):
            taxes = Decimal("0")
            for tp in traveler_pricings:
                if not isinstance(tp, dict):
                    continue
                for tax in (tp.get("price") or {}).get("taxes") or []:
                    amount = parse_decimal(tax.get("amount")) if isinstance(tax, dict) else None
                    taxes += amount or Decimal("0")

        price_obj = priced.get("price") or {}
        approx = compute_tax_approx(price_obj)
        return PricedOffer(
            base=approx.base,
            grand_total=approx.grand_total,
            taxes=taxes if taxes is not None else approx.taxes,
            currency=price_obj.get("currency") or DEFAULT_CURRENCY,
            offer=tag_offer(priced),
        )

    # ---------- Reference data ----------
    async def search_locations(self, keyword: str) -> List[Dict[str, Any]]:
        q = sanitize_keyword(keyword)
        if len(q) < 2:
            return []
        params = {"subType": "CITY,AIRPORT", "keyword": q, "page[limit]": "20"}
        response = await self._request("GET", "/v1/reference-data/locations", params=params, timeout=15.0)
        if response.status_code >= 400:
            logger.warning(f"Amadeus locations error {response.status_code}: {response.text[:300]}")
            # Bad input or rate limited: nothing to suggest
            if response.status_code in (400, 429):
                return []
            raise AmadeusApiError(response.status_code, response.text)

        return [
            {
                "id": item.get("id"),
                "iata_code": item.get("iataCode"),
                "name": item.get("name"),
                "sub_type": item.get("subType"),
                "address": item.get("address") or {},
            }
            for item in _json(response).get("data") or []
        ]

    async def search_airlines(self, query: str) -> List[Dict[str, str]]:
        code = sanitize_airline_code(query)
        if len(code) < 2:
            return []
        response = await self._request(
            "GET", "/v1/reference-data/airlines", params={"airlineCodes": code}, timeout=15.0
        )
        if response.status_code >= 400:
            logger.warning(f"Amadeus airlines error {response.status_code}: {response.text[:300]}")
            if response.status_code in (400, 429):
                return []
            raise AmadeusApiError(response.status_code, response.text)

        return [
            {
                "code": a.get("iataCode"),
                "name": a.get("businessName") or a.get("commonName") or a.get("legalName") or "",
            }
            for a in _json(response).get("data") or []
        ]


_client: Optional[AmadeusClient] = None


def get_amadeus_client() -> AmadeusClient:
    """FastAPI dependency: one client (and so one token cache) per process."""
    global _client
    if _client is None:
        _client = AmadeusClient()
    return _client
