"""Tests for choosing which fresh offer re-prices a watched flight."""
from datetime import date

import pytest

from flightwatch.models import WatchedFlight
from flightwatch.services.pricing import CarrierOffer
from flightwatch.services.reconcile import (
    MATCH_AIRLINE,
    MATCH_CHEAPEST,
    MATCH_FINGERPRINT,
    MATCH_OFFER_ID,
    UNAVAILABLE,
    select_refresh_offer,
)


def _carrier_offer(code, price, fingerprint=None, offer_id=None):
    return CarrierOffer(
        airline=code,
        code=code,
        price=price,
        currency="USD",
        details={"price": price},
        raw={},
        fingerprint=fingerprint,
        offer_id=offer_id,
        depart_date=date(2026, 11, 10),
        return_date=date(2026, 11, 20),
    )


def _watched(flight_number="EK 202", fingerprint=None, offer_id=None):
    return WatchedFlight(
        airline="Emirates",
        flight_number=flight_number,
        origin="CLT",
        destination="DXB",
        depart_date=date(2026, 11, 10),
        return_date=date(2026, 11, 20),
        offer_fingerprint=fingerprint,
        offer_id=offer_id,
    )


@pytest.fixture
def fresh_offers():
    # Cheapest first, the way rank_offers hands them over
    return [
        _carrier_offer("QR", 300, fingerprint="F3"),
        _carrier_offer("EK", 500, fingerprint="F2"),
        _carrier_offer("EK", 650, fingerprint="F1"),
    ]


class TestSelectRefreshOffer:
    def test_fingerprint_beats_cheaper_offers(self, fresh_offers):
        outcome = select_refresh_offer(_watched(fingerprint="F1"), fresh_offers)

        assert outcome.matched_by == MATCH_FINGERPRINT
        assert outcome.offer.price == 650

    def test_offer_id_checked_first(self, fresh_offers):
        fresh_offers.append(_carrier_offer("EK", 720, fingerprint="77", offer_id="77"))

        outcome = select_refresh_offer(_watched(fingerprint="F1", offer_id="77"), fresh_offers)

        assert outcome.matched_by == MATCH_OFFER_ID
        assert outcome.offer.price == 720

    def test_unknown_offer_id_falls_through_to_fingerprint(self, fresh_offers):
        outcome = select_refresh_offer(_watched(fingerprint="F2", offer_id="gone"), fresh_offers)

        assert outcome.matched_by == MATCH_FINGERPRINT
        assert outcome.offer.price == 500

    def test_airline_code_from_flight_number(self, fresh_offers):
        outcome = select_refresh_offer(_watched(flight_number="ek 999", fingerprint="stale"), fresh_offers)

        assert outcome.matched_by == MATCH_AIRLINE
        assert outcome.offer.code == "EK"
        assert outcome.offer.price == 500

    def test_cheapest_as_last_resort(self, fresh_offers):
        outcome = select_refresh_offer(_watched(flight_number="LH 400"), fresh_offers)

        assert outcome.matched_by == MATCH_CHEAPEST
        assert outcome.offer.price == 300

    def test_no_offers_is_unavailable(self):
        outcome = select_refresh_offer(_watched(fingerprint="F1"), [])

        assert outcome.matched_by == UNAVAILABLE
        assert outcome.offer is None
        assert not outcome.available

    def test_listing_order_does_not_matter(self):
        offers = [
            _carrier_offer("EK", 500, fingerprint="F2"),
            _carrier_offer("EK", 650, fingerprint="F1"),
            _carrier_offer("QR", 300, fingerprint="F3"),
        ]

        outcome = select_refresh_offer(_watched(fingerprint="F1"), offers)

        assert outcome.matched_by == MATCH_FINGERPRINT
        assert outcome.offer.fingerprint == "F1"
        assert outcome.offer.price == 650


class TestCarrierCode:
    @pytest.mark.parametrize("flight_number,code", [
        ("EK 202", "EK"),
        ("qr 1", "QR"),
        ("EK", "EK"),
        ("", ""),
    ])
    def test_first_token(self, flight_number, code):
        assert _watched(flight_number=flight_number).carrier_code == code
