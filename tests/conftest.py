"""
Shared fixtures: a fresh engine per test, backed by an in-process
fake Redis for the update feed.
"""

from datetime import datetime, timedelta, timezone

import fakeredis
import pytest
from fastapi.testclient import TestClient

from lifeline.config import Settings
from lifeline.dispatch import DispatchService
from lifeline.feed import UpdateFeed
from lifeline.main import create_app
from lifeline.store import IncidentStore
from lifeline.ticker import SimulationTicker

T0 = datetime(2025, 8, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def fake_redis():
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture
def feed(fake_redis):
    return UpdateFeed(fake_redis)


@pytest.fixture
def store():
    return IncidentStore()


@pytest.fixture
def service(store, feed):
    return DispatchService(store, feed)


@pytest.fixture
def ticker(store, feed):
    return SimulationTicker(store, feed)


@pytest.fixture
def clock():
    """Simulated seconds since T0 -> aware datetime."""
    return lambda seconds: T0 + timedelta(seconds=seconds)


@pytest.fixture
def test_settings():
    return Settings(
        ticker_enabled=False,
        seed_danger_zones=False,
        feed_enabled=True,
        log_level="WARNING",
    )


@pytest.fixture
def app(test_settings, fake_redis):
    return create_app(test_settings, redis_client=fake_redis)


@pytest.fixture
def client(app):
    return TestClient(app)
