"""Tests for the additive SQLite schema upgrade."""
import pytest
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.pool import StaticPool

from flightwatch.database import ensure_sqlite_columns


@pytest.fixture
def legacy_engine():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    with engine.connect() as conn:
        conn.execute(text(
            "CREATE TABLE watched_flights ("
            "id INTEGER PRIMARY KEY, airline VARCHAR(50) NOT NULL, flight_number VARCHAR(100) NOT NULL, "
            "origin VARCHAR(10) NOT NULL, destination VARCHAR(10) NOT NULL, "
            "depart_date DATE NOT NULL, return_date DATE NOT NULL)"
        ))
        conn.execute(text(
            "INSERT INTO watched_flights (airline, flight_number, origin, destination, depart_date, return_date) "
            "VALUES ('Emirates', 'EK 202', 'CLT', 'DXB', '2026-11-10', '2026-11-20')"
        ))
        conn.commit()
    yield engine
    engine.dispose()


def test_missing_columns_added(legacy_engine):
    added = ensure_sqlite_columns(bind=legacy_engine)

    columns = {c["name"] for c in inspect(legacy_engine).get_columns("watched_flights")}
    assert {"offer_id", "offer_fingerprint", "offer", "details", "created_at"} <= columns
    assert added == 5


def test_existing_rows_survive(legacy_engine):
    ensure_sqlite_columns(bind=legacy_engine)

    with legacy_engine.connect() as conn:
        row = conn.execute(text("SELECT flight_number, offer_fingerprint FROM watched_flights")).one()
    assert row.flight_number == "EK 202"
    assert row.offer_fingerprint is None


def test_fingerprint_index_created(legacy_engine):
    ensure_sqlite_columns(bind=legacy_engine)

    indexes = {i["name"]: i for i in inspect(legacy_engine).get_indexes("watched_flights")}
    assert indexes["uniq_watched_offer_fingerprint"]["unique"]


def test_second_run_is_a_no_op(legacy_engine):
    ensure_sqlite_columns(bind=legacy_engine)

    assert ensure_sqlite_columns(bind=legacy_engine) == 0
