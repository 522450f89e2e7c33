"""
Simulation ticker tests. Ticks are driven with explicit simulated
timestamps; one tick per simulated second.
"""

import asyncio
import math

import pytest

from lifeline.models import SOSSubmit
from lifeline.ticker import SimulationTicker


def _gap(sos):
    team = sos.assigned_team
    return math.hypot(sos.lat - team.lat, sos.lng - team.lng)


def _dispatched(service):
    sos = service.ingest_sos(SOSSubmit(lat=28.6139, lng=77.2090, message="need help")).sos
    return service.assign_team(sos.id, "ALPHA-1")


def _run_until_rescued(ticker, store, sos_id, clock, limit=400):
    for second in range(limit):
        ticker.tick(now=clock(second))
        if store.get_sos(sos_id).status == "Rescued":
            return second
    raise AssertionError("team never arrived")


def test_team_closes_in_monotonically_then_arrives(service, ticker, store, clock):
    sos = _dispatched(service)
    assert sos.assigned_team.status == "En-route"

    last_gap = _gap(sos)
    second = 0
    while True:
        report = ticker.tick(now=clock(second))
        current = store.get_sos(sos.id)

        if report.arrived:
            assert report.arrived == [sos.id]
            assert current.status == "Rescued"
            assert current.assigned_team.status == "On-site"
            assert current.resolved_at == clock(second)
            break

        assert current.status == "Assigned"
        assert current.assigned_team.status == "En-route"
        gap = _gap(current)
        assert gap < last_gap
        last_gap = gap

        second += 1
        assert second < 400

    # 0.05 deg start, 5% per tick, 0.0002 deg threshold
    assert 100 < second < 120


def test_movement_updates_eta(service, ticker, store, clock):
    sos = _dispatched(service)

    ticker.tick(now=clock(0))
    team = store.get_sos(sos.id).assigned_team

    # first tick uses the starting gap of 0.05 deg on both axes
    expected = math.ceil(math.hypot(0.05, 0.05) * 111 * 2)
    assert team.eta == f"{expected} mins"
    assert team.lat == pytest.approx(sos.lat - 0.05 * 0.95)
    assert team.lng == pytest.approx(sos.lng - 0.05 * 0.95)


def test_rescued_signal_is_purged_after_ten_seconds(service, ticker, store, clock):
    sos = _dispatched(service)
    rescued_at = _run_until_rescued(ticker, store, sos.id, clock)

    for offset in range(1, 10):
        report = ticker.tick(now=clock(rescued_at + offset))
        assert report.purged == []
        assert store.get_sos(sos.id) is not None

    report = ticker.tick(now=clock(rescued_at + 10))
    assert report.purged == [sos.id]
    assert store.get_sos(sos.id) is None
    assert all(s.id != sos.id for s in store.list_sos())


def test_rescued_without_timestamp_gets_stamped(store, ticker, clock):
    sos = store.add_sos(
        {"lat": 1.0, "lng": 1.0, "message": "x", "priority": "Low", "category": "General Assistance"}
    )
    store.update_sos(sos.id, {"status": "Rescued"})

    ticker.tick(now=clock(0))
    assert store.get_sos(sos.id).resolved_at == clock(0)

    ticker.tick(now=clock(9))
    assert store.get_sos(sos.id) is not None

    ticker.tick(now=clock(10))
    assert store.get_sos(sos.id) is None


def test_resolved_signals_are_never_purged(service, ticker, store, clock):
    sos = service.ingest_sos(SOSSubmit(lat=1.0, lng=1.0, message="hungry")).sos
    service.resolve(sos.id)

    for second in (0, 30, 3600):
        ticker.tick(now=clock(second))

    assert store.get_sos(sos.id).status == "Resolved"


def test_purge_only_touches_expired_signals(service, ticker, store, clock):
    rescued = _dispatched(service)
    waiting = service.ingest_sos(SOSSubmit(lat=2.0, lng=2.0, message="food")).sos

    rescued_at = _run_until_rescued(ticker, store, rescued.id, clock)
    ticker.tick(now=clock(rescued_at + 10))

    assert [s.id for s in store.list_sos()] == [waiting.id]


def test_tick_publishes_feed_updates(service, ticker, feed, clock):
    _dispatched(service)
    before = feed.length()

    ticker.tick(now=clock(0))

    types = [u["type"] for u in feed.read(before, -1)]
    assert types == ["team_moved"]


def test_tick_counts(ticker, clock):
    ticker.tick(now=clock(0))
    ticker.tick(now=clock(1))
    assert ticker.ticks == 2


@pytest.mark.asyncio
async def test_start_and_stop(store):
    ticker = SimulationTicker(store, interval_sec=0.01)

    ticker.start()
    ticker.start()  # already running: no second task
    assert ticker.running

    await asyncio.sleep(0.05)
    await ticker.stop()

    assert not ticker.running
    assert ticker.ticks >= 1

    # stopping twice is harmless
    await ticker.stop()
