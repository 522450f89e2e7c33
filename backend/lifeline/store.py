# lifeline/store.py
# ------------------------------------------------------------
# In-memory incident store: the single owner of SOS signals and
# danger zones for the lifetime of the process.
#
# Storage model:
# - signals: id -> SOSSignal, ordered newest first
# - zones:   id -> DangerZone, ordered by insertion
#
# Request handlers (thread pool) and the simulation ticker (event
# loop) both mutate these maps, so every operation runs under one
# re-entrant lock. Reads hand out deep copies.
#
# Unknown ids are reported with None / False, never by raising.
# ------------------------------------------------------------

from __future__ import annotations

import threading
from collections import Counter, OrderedDict
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, TypeVar

from .models import DangerZone, SOSSignal, new_id, utcnow

T = TypeVar("T")

# Fields fixed at creation time
IMMUTABLE_SOS_FIELDS = frozenset({"id", "timestamp", "priority", "category"})


class IncidentStore:
    def __init__(self, clock: Callable[[], datetime] = utcnow):
        self._lock = threading.RLock()
        self._signals: "OrderedDict[str, SOSSignal]" = OrderedDict()
        self._zones: "OrderedDict[str, DangerZone]" = OrderedDict()
        self._clock = clock

    # -------------------------------
    # SOS signals
    # -------------------------------
    def list_sos(self) -> List[SOSSignal]:
        with self._lock:
            return [s.model_copy(deep=True) for s in self._signals.values()]

    def get_sos(self, signal_id: str) -> Optional[SOSSignal]:
        with self._lock:
            sos = self._signals.get(signal_id)
            return sos.model_copy(deep=True) if sos else None

    def add_sos(self, fields: Mapping[str, Any]) -> SOSSignal:
        """
        Create a signal with a fresh id, timestamp=now and status=New,
        and put it at the front of the list.
        """
        data = {k: v for k, v in fields.items() if k not in ("id", "timestamp", "status")}
        sos = SOSSignal(
            **data,
            id=new_id("SIGNAL"),
            timestamp=self._clock(),
            status="New",
        )
        with self._lock:
            self._signals[sos.id] = sos
            self._signals.move_to_end(sos.id, last=False)
            return sos.model_copy(deep=True)

    def update_sos(self, signal_id: str, fields: Mapping[str, Any]) -> Optional[SOSSignal]:
        """
        Merge `fields` into an existing signal.

        Status legality is not checked here; see DispatchService.
        Creation-time fields (id, timestamp, priority, category) are ignored.
        """
        changes = {k: v for k, v in fields.items() if k not in IMMUTABLE_SOS_FIELDS}
        with self._lock:
            current = self._signals.get(signal_id)
            if current is None:
                return None

            merged = current.model_dump()
            merged.update(changes)
            updated = SOSSignal.model_validate(merged)

            self._signals[signal_id] = updated
            return updated.model_copy(deep=True)

    def delete_sos(self, signal_id: str) -> bool:
        with self._lock:
            return self._signals.pop(signal_id, None) is not None

    def locked(self) -> "threading.RLock":
        """
        The store lock, for callers that read-then-write in one step.
        """
        return self._lock

    def mutate_signals(self, fn: Callable[["OrderedDict[str, SOSSignal]"], T]) -> T:
        """
        Run `fn` over the live signal map while holding the lock.
        Used by the simulation ticker for its single pass per tick.
        """
        with self._lock:
            return fn(self._signals)

    # -------------------------------
    # Danger zones
    # -------------------------------
    def list_danger_zones(self) -> List[DangerZone]:
        with self._lock:
            return [z.model_copy(deep=True) for z in self._zones.values()]

    def add_danger_zone(self, fields: Mapping[str, Any]) -> DangerZone:
        data = {k: v for k, v in fields.items() if k not in ("id", "timestamp")}
        zone = DangerZone(**data, id=new_id("ZONE"), timestamp=self._clock())
        with self._lock:
            self._zones[zone.id] = zone
            return zone.model_copy(deep=True)

    def remove_danger_zone(self, zone_id: str) -> bool:
        with self._lock:
            return self._zones.pop(zone_id, None) is not None

    # -------------------------------
    # Housekeeping
    # -------------------------------
    def counts(self) -> Dict[str, Any]:
        with self._lock:
            signals = list(self._signals.values())
            return {
                "sos": len(signals),
                "danger_zones": len(self._zones),
                "by_status": dict(Counter(s.status for s in signals)),
                "by_priority": dict(Counter(s.priority for s in signals)),
                "offline": sum(1 for s in signals if s.is_offline),
            }

    def clear(self) -> None:
        with self._lock:
            self._signals.clear()
            self._zones.clear()

    def close(self) -> None:
        # Nothing durable to flush; drop state so a closed store is empty.
        self.clear()
