# lifeline/ticker.py
# ------------------------------------------------------------
# Simulation ticker: the only time-driven part of the engine.
#
# Every tick, in one pass over all signals:
# - Rescued signals are purged once resolved_at is older than
#   `purge_after_sec`
# - En-route teams close 5% of the remaining gap to the victim,
#   or arrive (team On-site, signal Rescued) inside the threshold
#
# One asyncio task drives tick() sequentially, so ticks never overlap.
# ------------------------------------------------------------

from __future__ import annotations

import asyncio
import contextlib
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from .feed import UpdateFeed
from .geo import degree_distance_km
from .logging_setup import get_logger
from .models import SOSSignal, utcnow
from .store import IncidentStore

log = get_logger("ticker")


@dataclass
class TickReport:
    at: datetime
    moved: List[str] = field(default_factory=list)
    arrived: List[str] = field(default_factory=list)
    purged: List[str] = field(default_factory=list)


class SimulationTicker:
    def __init__(
        self,
        store: IncidentStore,
        feed: Optional[UpdateFeed] = None,
        interval_sec: float = 1.0,
        purge_after_sec: float = 10.0,
        arrival_threshold_deg: float = 0.0002,
        speed_fraction: float = 0.05,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.feed = feed
        self.interval_sec = interval_sec
        self.purge_after_sec = purge_after_sec
        self.arrival_threshold_deg = arrival_threshold_deg
        self.speed_fraction = speed_fraction
        self._clock = clock
        self._task: Optional[asyncio.Task] = None
        self.ticks = 0

    # -------------------------------
    # One simulation step
    # -------------------------------
    def tick(self, now: Optional[datetime] = None) -> TickReport:
        now = now or self._clock()
        report, updates = self.store.mutate_signals(lambda signals: self._advance(signals, now))
        self.ticks += 1

        for sid in report.arrived:
            log.info("[SAR] Team reached victim {}", sid)
        for sid in report.purged:
            log.info("[AUTO-PURGE] Removing rescued incident {}", sid)

        if self.feed is not None:
            for type_, data in updates:
                self.feed.publish(type_, data)

        return report

    def _advance(
        self,
        signals: Dict[str, SOSSignal],
        now: datetime,
    ) -> Tuple[TickReport, List[Tuple[str, Dict[str, Any]]]]:
        report = TickReport(at=now)
        updates: List[Tuple[str, Dict[str, Any]]] = []

        for sos in signals.values():
            # purge check uses the status the signal had when the tick started
            if sos.status == "Rescued":
                if sos.resolved_at is None:
                    sos.resolved_at = now
                elif (now - sos.resolved_at).total_seconds() >= self.purge_after_sec:
                    report.purged.append(sos.id)

            team = sos.assigned_team
            if team is None or team.status != "En-route":
                continue

            d_lat = sos.lat - team.lat
            d_lng = sos.lng - team.lng

            if abs(d_lat) < self.arrival_threshold_deg and abs(d_lng) < self.arrival_threshold_deg:
                team.status = "On-site"
                sos.status = "Rescued"
                sos.resolved_at = now
                report.arrived.append(sos.id)
                updates.append(("team_arrived", sos.model_dump(mode="json", by_alias=True)))
            else:
                team.lat += d_lat * self.speed_fraction
                team.lng += d_lng * self.speed_fraction
                # 0.5 km/min
                team.eta = f"{math.ceil(degree_distance_km(d_lat, d_lng) * 2)} mins"
                report.moved.append(sos.id)
                updates.append(("team_moved", sos.model_dump(mode="json", by_alias=True)))

        for sid in report.purged:
            signals.pop(sid, None)
            updates.append(("sos_purged", {"id": sid}))

        return report, updates

    # -------------------------------
    # Background loop
    # -------------------------------
    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """
        Schedule the loop on the running event loop (idempotent).
        """
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name="simulation-ticker")

    async def _run(self) -> None:
        log.info("ticker started (every {}s)", self.interval_sec)
        while True:
            try:
                self.tick()
            except Exception:
                log.exception("tick failed, retrying next interval")
            await asyncio.sleep(self.interval_sec)

    async def stop(self) -> None:
        """
        Cancel the loop and wait until it has fully exited.
        """
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        log.info("ticker stopped after {} ticks", self.ticks)
