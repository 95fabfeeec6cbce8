"""
Test fixtures for flightwatch tests.
"""
import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from httpx import AsyncClient, ASGITransport

from flightwatch.database import Base, get_db
from flightwatch.main import app
from flightwatch.services.amadeus_client import AmadeusError, SearchResponse, get_amadeus_client


# Create test database engine (SQLite in-memory, one shared connection)
TEST_DATABASE_URL = "sqlite:///:memory:"

test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


# Enable foreign key constraints for SQLite
@event.listens_for(test_engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


def _segment(dep, arr, dep_at, arr_at, carrier, number, operating=None, duration="PT3H"):
    seg = {
        "departure": {"iataCode": dep, "at": dep_at},
        "arrival": {"iataCode": arr, "at": arr_at},
        "carrierCode": carrier,
        "number": number,
        "duration": duration,
    }
    if operating:
        seg["operating"] = {"carrierCode": operating}
    return seg


def _offer(
    carrier="EK",
    price="650.00",
    currency="USD",
    number="202",
    offer_id=None,
    base=None,
    outbound=None,
    inbound=None,
):
    """Round-trip offer shaped like the Flight Offers Search response."""
    outbound = outbound or [
        _segment("CLT", "JFK", "2026-11-10T08:00:00", "2026-11-10T10:00:00", carrier, number),
        _segment("JFK", "DXB", "2026-11-10T12:30:00", "2026-11-11T08:45:00", carrier, str(int(number) + 1)),
    ]
    inbound = inbound or [
        _segment("DXB", "CLT", "2026-11-20T02:00:00", "2026-11-20T14:00:00", carrier, str(int(number) + 2)),
    ]
    offer = {
        "type": "flight-offer",
        "price": {
            "currency": currency,
            "total": price,
            "base": base if base is not None else str(round(float(price) * 0.8, 2)),
            "grandTotal": price,
        },
        "itineraries": [
            {"duration": "PT20H45M", "segments": outbound},
            {"duration": "PT12H", "segments": inbound},
        ],
    }
    if offer_id is not None:
        offer["id"] = offer_id
    return offer


@pytest.fixture
def make_segment():
    return _segment


@pytest.fixture
def make_offer():
    return _offer


class FakeOfferSearcher:
    """Stands in for AmadeusClient.search_flight_offers.

    ``responses`` maps (depart_date, return_date) ISO strings to either a
    SearchResponse or an exception to raise. Unknown dates return no offers.
    """

    def __init__(self, responses=None):
        self.responses = dict(responses or {})
        self.calls = []

    async def search_flight_offers(self, query):
        key = (query.depart_date.isoformat(), query.return_date.isoformat() if query.return_date else None)
        self.calls.append(key)
        result = self.responses.get(key)
        if isinstance(result, Exception):
            raise result
        return result or SearchResponse()


@pytest.fixture
def fake_searcher():
    return FakeOfferSearcher


@pytest.fixture
def provider_error():
    return AmadeusError("Amadeus API error 500: upstream exploded")


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    Creates all tables before the test and drops them after.
    """
    Base.metadata.create_all(bind=test_engine)

    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture(scope="function")
def override_get_db(db_session):
    """
    Override the get_db dependency to use the test database session.
    """
    def _override_get_db():
        try:
            yield db_session
        finally:
            pass

    return _override_get_db


@pytest.fixture(scope="function")
def searcher():
    """Provider fake used by the API client fixture; tests fill in responses."""
    return FakeOfferSearcher()


@pytest.fixture(scope="function")
async def client(override_get_db, searcher):
    """
    Create an async test client with the database and provider dependencies overridden.
    """
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_amadeus_client] = lambda: searcher

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    # Clear overrides after test
    app.dependency_overrides.clear()
