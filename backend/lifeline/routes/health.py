# lifeline/routes/health.py
# ------------------------------------------------------------
# Health & metrics endpoint
#
# Purpose:
# - quick liveness check
# - counts for the dashboard stat bricks
# - ticker and feed state
# ------------------------------------------------------------

from fastapi import APIRouter, Depends
from datetime import datetime, timezone
import time

from ..feed import UpdateFeed
from ..models import iso_utc
from ..store import IncidentStore
from ..ticker import SimulationTicker
from ._common import get_feed, get_store, get_ticker

router = APIRouter(tags=["health"])

# server start reference (module load time)
STARTED_AT = datetime.now(timezone.utc)


@router.get("/api/health")
def health(
    store: IncidentStore = Depends(get_store),
    ticker: SimulationTicker = Depends(get_ticker),
    feed: UpdateFeed = Depends(get_feed),
):
    """
    Health status for the dashboard.

    Returns:
    - ok, utc
    - started_at, uptime_seconds
    - counts (by status / priority)
    - ticker (running, ticks)
    - feed (enabled, ok, backlog)
    - latency_ms (server-measured for this handler)
    """
    t0 = time.perf_counter()

    feed_info = {"enabled": feed.enabled, "ok": False, "backlog": None}
    if feed.enabled and feed.ping():
        feed_info["ok"] = True
        feed_info["backlog"] = feed.length()

    now = datetime.now(timezone.utc)
    uptime_seconds = int((now - STARTED_AT).total_seconds())

    latency_ms = round((time.perf_counter() - t0) * 1000, 2)

    # ok reflects the API itself; feed.ok carries the Redis state
    return {
        "ok": True,
        "utc": iso_utc(now),
        "started_at": iso_utc(STARTED_AT),
        "uptime_seconds": uptime_seconds,
        "counts": store.counts(),
        "ticker": {
            "running": ticker.running,
            "ticks": ticker.ticks,
            "interval_sec": ticker.interval_sec,
        },
        "feed": feed_info,
        "latency_ms": latency_ms,
    }
