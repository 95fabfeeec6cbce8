"""
Offer identity and display normalization for Amadeus flight offers.

Everything here is pure: offers in, strings/dicts out, no I/O.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

FINGERPRINT_KEY = "_fingerprint"
DEFAULT_CURRENCY = "USD"


def parse_decimal(value: Any) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not result.is_finite():
        return None
    return result


def compute_offer_fingerprint(offer: Dict[str, Any]) -> Optional[str]:
    """Stable identity for an offer.

    The provider ``id`` wins when present. Otherwise every segment contributes
    ``DEP-ARR-depAt-arrAt-carrier-number`` in itinerary order, followed by a
    ``price:<grandTotal|total>:<currency>`` token, all joined with ``|``.

    Returns None when the offer has neither price nor itineraries, or when its
    shape can't be read.
    """
    try:
        if offer.get("id"):
            return str(offer["id"])

        price = offer.get("price") or {}
        itineraries = offer.get("itineraries") or []
        if not price and not itineraries:
            return None

        parts = []
        for itinerary in itineraries:
            for seg in itinerary.get("segments") or []:
                departure = seg["departure"]
                arrival = seg["arrival"]
                carrier = seg.get("carrierCode") or seg["marketingCarrier"]
                parts.append(
                    f"{departure['iataCode']}-{arrival['iataCode']}-"
                    f"{departure['at']}-{arrival['at']}-{carrier}-{seg['number']}"
                )
        total = price.get("grandTotal") or price.get("total") or ""
        parts.append(f"price:{total}:{price.get('currency') or ''}")
        return "|".join(parts)
    except (AttributeError, KeyError, TypeError) as e:
        logger.debug(f"Could not fingerprint offer: {e!r}")
        return None


def tag_offer(offer: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of *offer* carrying its fingerprint under ``_fingerprint``."""
    if FINGERPRINT_KEY in offer:
        return offer
    tagged = dict(offer)
    tagged[FINGERPRINT_KEY] = compute_offer_fingerprint(offer)
    return tagged


@dataclass
class TaxBreakdown:
    base: Decimal
    grand_total: Decimal
    taxes: Decimal
    fees_sum: Decimal


def compute_tax_approx(price: Optional[Dict[str, Any]]) -> TaxBreakdown:
    """Work out base, grand total and taxes from an offer's price object.

    Taxes come from ``totalTaxes`` when the provider states it. Otherwise they
    are what is left of the grand total after base fare and itemized fees,
    floored at zero.
    """
    price = price or {}
    base = parse_decimal(price.get("base")) or Decimal("0")
    grand = parse_decimal(price.get("grandTotal")) or parse_decimal(price.get("total")) or Decimal("0")

    fees_sum = Decimal("0")
    fees = price.get("fees")
    if isinstance(fees, list):
        for fee in fees:
            amount = parse_decimal((fee or {}).get("amount")) if isinstance(fee, dict) else None
            fees_sum += amount or Decimal("0")

    total_taxes = parse_decimal(price.get("totalTaxes"))
    if total_taxes is not None:
        taxes = max(Decimal("0"), total_taxes)
    else:
        taxes = max(Decimal("0"), grand - base - fees_sum)

    return TaxBreakdown(base=base, grand_total=grand, taxes=taxes, fees_sum=fees_sum)


def round_price(amount: Decimal) -> int:
    """Round half-up to a whole currency unit (Python's round() is half-even)."""
    return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _carrier_of(value: Any) -> Optional[str]:
    if isinstance(value, dict):
        return value.get("carrierCode")
    return value or None


def _normalize_segment(seg: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "departure": seg.get("departure") or {},
        "arrival": seg.get("arrival") or {},
        "marketingCarrier": seg.get("marketingCarrier") or seg.get("carrierCode"),
        "operatingCarrier": _carrier_of(seg.get("operatingCarrier")) or _carrier_of(seg.get("operating")),
        "flightNumber": seg.get("number"),
        "duration": seg.get("duration"),
    }


def _layovers(segments: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    layovers = []
    for i in range(len(segments) - 1):
        arr = segments[i]["arrival"]
        dep = segments[i + 1]["departure"]
        layovers.append({
            "airport": arr.get("iataCode"),
            "from": arr.get("at"),
            "to": dep.get("at"),
        })
    return layovers


def normalize_offer(offer: Dict[str, Any]) -> Dict[str, Any]:
    """Display-ready view of a raw offer.

    The result only holds JSON types so it can be stored as a snapshot on a
    watched flight.
    """
    price_obj = offer.get("price") or {}
    breakdown = compute_tax_approx(price_obj)
    currency = price_obj.get("currency") or DEFAULT_CURRENCY

    itineraries = []
    for itinerary in offer.get("itineraries") or []:
        segments = [_normalize_segment(s) for s in itinerary.get("segments") or []]
        itineraries.append({
            "segments": segments,
            "stops": max(0, len(segments) - 1),
            "layovers": _layovers(segments),
        })

    return {
        "price": round_price(breakdown.grand_total),
        "currency": currency,
        "base": float(breakdown.base),
        "grandTotal": float(breakdown.grand_total),
        "taxes": float(breakdown.taxes),
        "itineraries": itineraries,
    }


def offer_carrier_codes(offer: Dict[str, Any]) -> List[str]:
    """Every carrier code an offer touches (marketing and operating), first-seen order."""
    codes: List[str] = []
    for itinerary in offer.get("itineraries") or []:
        for seg in itinerary.get("segments") or []:
            for code in (
                seg.get("carrierCode"),
                seg.get("marketingCarrier"),
                _carrier_of(seg.get("operating")),
                _carrier_of(seg.get("operatingCarrier")),
            ):
                if code and code not in codes:
                    codes.append(code)
    return codes
