"""
Pytest configuration and shared fixtures.
"""

from datetime import time

import pytest

from tests.fakes import FIXED_NOW, MONDAY, VENDOR_ID, InMemoryDatabase, InMemoryStore


@pytest.fixture
def now():
    """Fixed 'now' well before every seeded slot."""
    return FIXED_NOW


@pytest.fixture
def db():
    """Empty in-memory database."""
    return InMemoryDatabase()


@pytest.fixture
def store(db):
    """One session on the in-memory database."""
    return InMemoryStore(db)


@pytest.fixture
def storefront(db):
    """UTC storefront that only serves on site."""
    return db.add_storefront(vendor_id=VENDOR_ID, timezone="UTC", location_type="fixed")


@pytest.fixture
def service(db, storefront):
    """30 minute service without buffer."""
    return db.add_service(storefront.id, duration_minutes=30, buffer_time_minutes=0)


@pytest.fixture
def monday_hours(db, storefront):
    """Open Mondays 09:00-17:00, one appointment at a time."""
    return db.add_rule(
        storefront.id,
        start_time=time(9, 0),
        end_time=time(17, 0),
        rule_type="weekly",
        day_of_week=MONDAY,
        priority=1,
        max_concurrent_appointments=1,
    )
