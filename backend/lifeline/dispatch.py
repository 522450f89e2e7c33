# lifeline/dispatch.py
# ------------------------------------------------------------
# Triage / dispatch orchestration on top of the incident store.
#
# - ingest: classify -> store -> optional RED ALERT zone -> broadcast
# - update: team assignment, status changes (checked against the
#   SOS state machine), audio attachments
# - zones: community reports, normalisation, proximity checks
# - roster: rescue units ranked by distance to an incident
#
# Broadcasts are a stub (log + feed message). They never fail the
# operation that triggered them.
# ------------------------------------------------------------

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Sequence, Tuple

from .classifier import KEYWORD_TIERS, KeywordTier, classify
from .errors import InvalidTransitionError
from .feed import UpdateFeed
from .geo import distance_km
from .logging_setup import get_logger
from .models import (
    AssignedTeam,
    DangerZone,
    DangerZoneSubmit,
    RescueUnit,
    SOSSignal,
    SOSSubmit,
    new_id,
)
from .store import IncidentStore

log = get_logger("dispatch")

DISASTER_PHRASE = "NATURAL DISASTER"
AUTO_TRIAGE_AUTHOR = "SYSTEM_AUTO_TRIAGE"
DEFAULT_ZONE_AUTHOR = "Dashboard"
INITIAL_TEAM_ETA = "12 mins"

# status -> statuses a request may move it to (same status is always fine)
ALLOWED_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    "New": frozenset({"Assigned", "Resolved"}),
    "Assigned": frozenset({"Resolved"}),
    "Rescued": frozenset(),
    "Resolved": frozenset(),
}

# Historical zones loaded at startup (Delhi demo area)
SEED_DANGER_ZONES: Tuple[Dict[str, Any], ...] = (
    {
        "lat": 28.6139,
        "lng": 77.2090,
        "radius": 500,
        "severity": "High",
        "description": "Frequent Flooding Zone - Avoid in Monsoon",
        "author": "Admin",
    },
    {
        "lat": 28.6250,
        "lng": 77.2200,
        "radius": 300,
        "severity": "Fatal",
        "description": "Structural Instability Reported",
        "author": "Gov_Audit",
    },
)

# Rescue roster: (id, name, type, vehicle, personnel, d_lat, d_lng)
RESCUE_UNITS: Tuple[Tuple[str, str, str, str, int, float, float], ...] = (
    ("t1", "NDRF UNIT-01", "Natural Disaster", "Amphibious Truck", 12, 0.012, 0.008),
    ("t2", "APOLLO ICU RED", "Medical Emergency", "Advanced ACLS Ambulance", 4, -0.009, -0.004),
    ("t3", "TRAFFIC PATROL-07", "Road Accident", "Rapid Response Unit", 2, 0.005, -0.015),
    ("t4", "PINK SQUAD DELTA", "Women Safety", "Elite Response Van", 3, -0.015, 0.010),
    ("t5", "AERIAL DRONE-X", "Surveillance", "Quad-Copter UAV", 0, 0.002, 0.002),
)
ROSTER_BASE = (28.6139, 77.2090)


@dataclass
class IngestResult:
    sos: SOSSignal
    auto_danger_zone: bool
    broadcast_count: int
    zone: Optional[DangerZone] = None


class DispatchService:
    def __init__(
        self,
        store: IncidentStore,
        feed: Optional[UpdateFeed] = None,
        *,
        tiers: Sequence[KeywordTier] = KEYWORD_TIERS,
        auto_zone_radius_m: int = 1000,
        community_zone_radius_m: int = 500,
        team_start_offset_deg: float = 0.05,
        proximity_factor: float = 1.5,
        broadcast_nearby_users: int = 42,
    ):
        self.store = store
        self.feed = feed
        self.tiers = tiers
        self.auto_zone_radius_m = auto_zone_radius_m
        self.community_zone_radius_m = community_zone_radius_m
        self.team_start_offset_deg = team_start_offset_deg
        self.proximity_factor = proximity_factor
        self.broadcast_nearby_users = broadcast_nearby_users

    # -------------------------------
    # Reads
    # -------------------------------
    def list_sos(self, feed: str = "all") -> List[SOSSignal]:
        """
        Signals newest first, optionally narrowed to a dashboard feed:
        - critical: Critical or High priority
        - mesh: sent over an offline/mesh path
        """
        signals = self.store.list_sos()
        if feed == "critical":
            return [s for s in signals if s.priority in ("Critical", "High")]
        if feed == "mesh":
            return [s for s in signals if s.is_offline]
        return signals

    def list_danger_zones(self) -> List[DangerZone]:
        return self.store.list_danger_zones()

    # -------------------------------
    # Ingestion
    # -------------------------------
    def ingest_sos(self, payload: SOSSubmit) -> IngestResult:
        result = classify(payload.message, self.tiers)

        sos = self.store.add_sos(
            {
                **payload.model_dump(),
                "priority": result.priority,
                "category": result.category,
            }
        )
        self._publish("sos_created", sos.model_dump(mode="json", by_alias=True))

        is_disaster = self.is_disaster(payload.message, result.category)
        zone: Optional[DangerZone] = None

        if is_disaster:
            zone = self.store.add_danger_zone(
                {
                    "lat": payload.lat,
                    "lng": payload.lng,
                    "radius": self.auto_zone_radius_m,
                    "severity": "Fatal",
                    "description": f"RED ALERT: {payload.message.upper()}",
                    "author": AUTO_TRIAGE_AUTHOR,
                }
            )
            self._publish("zone_created", zone.model_dump(mode="json", by_alias=True))

        try:
            broadcast_count = self._broadcast(sos, is_disaster)
        except Exception:
            log.exception("[BROADCAST] notification failed for {}", sos.id)
            broadcast_count = 0

        return IngestResult(
            sos=sos,
            auto_danger_zone=is_disaster,
            broadcast_count=broadcast_count,
            zone=zone,
        )

    @staticmethod
    def is_disaster(message: str, category: str) -> bool:
        return DISASTER_PHRASE in message.upper() or "Trapped" in category

    def _broadcast(self, sos: SOSSignal, is_disaster: bool) -> int:
        """
        Simulated fan-out. Returns the nominal recipient count.
        """
        if not is_disaster:
            log.info(
                "[ALERT] SOS triggered at ({}, {}). Notifying emergency contacts and nearby responders.",
                sos.lat,
                sos.lng,
            )
            return 0

        count = self.broadcast_nearby_users
        log.warning("[BROADCAST] NATURAL DISASTER DETECTED at ({}, {}).", sos.lat, sos.lng)
        log.warning("[BROADCAST] Notification sent to {} potential victims in the 10km radius.", count)
        self._publish(
            "broadcast",
            {
                "sosId": sos.id,
                "lat": sos.lat,
                "lng": sos.lng,
                "recipients": count,
                "message": (
                    "CRITICAL: A natural disaster has been reported in your vicinity. "
                    "Please move to higher ground or seek immediate shelter. Stay safe."
                ),
            },
        )
        return count

    # -------------------------------
    # Updates
    # -------------------------------
    def update_sos(
        self,
        signal_id: str,
        status: Optional[str] = None,
        team_name: Optional[str] = None,
        audio_url: Optional[str] = None,
    ) -> Optional[SOSSignal]:
        """
        Apply a dashboard update. Returns None for an unknown id.

        status="Assigned" together with a team name dispatches a team.
        Raises InvalidTransitionError for moves the state machine forbids.
        """
        # check + write in one critical section so a tick cannot slip in between
        with self.store.locked():
            current = self.store.get_sos(signal_id)
            if current is None:
                return None

            changes: Dict[str, Any] = {}
            if status:
                self._check_transition(current, status)
                changes["status"] = status
            if audio_url:
                changes["audio_url"] = audio_url

            if status == "Assigned" and team_name:
                changes["assigned_team"] = self._new_team(current, team_name)

            updated = self.store.update_sos(signal_id, changes)

        if updated is not None:
            if "assigned_team" in changes:
                log.info("[DISPATCH] {} assigned to {}", team_name, signal_id)
            self._publish("sos_updated", updated.model_dump(mode="json", by_alias=True))
        return updated

    def assign_team(
        self,
        signal_id: str,
        team_name: str,
        audio_url: Optional[str] = None,
    ) -> Optional[SOSSignal]:
        return self.update_sos(signal_id, status="Assigned", team_name=team_name, audio_url=audio_url)

    def resolve(self, signal_id: str) -> Optional[SOSSignal]:
        """Mark safe. Resolved signals stay until deleted."""
        return self.update_sos(signal_id, status="Resolved")

    def delete_sos(self, signal_id: str) -> bool:
        deleted = self.store.delete_sos(signal_id)
        if deleted:
            self._publish("sos_deleted", {"id": signal_id})
        return deleted

    def _check_transition(self, current: SOSSignal, requested: str) -> None:
        if requested == current.status:
            return
        if requested not in ALLOWED_TRANSITIONS.get(current.status, frozenset()):
            raise InvalidTransitionError(current.id, current.status, requested)

    def _new_team(self, sos: SOSSignal, team_name: str) -> AssignedTeam:
        # start a few km south-west of the victim
        return AssignedTeam(
            id=new_id("TEAM"),
            name=team_name,
            lat=sos.lat - self.team_start_offset_deg,
            lng=sos.lng - self.team_start_offset_deg,
            status="En-route",
            eta=INITIAL_TEAM_ETA,
        )

    # -------------------------------
    # Danger zones
    # -------------------------------
    def report_danger(self, payload: DangerZoneSubmit) -> DangerZone:
        """
        Community / dashboard report. The author label is taken as given.
        """
        zone = self.store.add_danger_zone(
            {
                "lat": payload.lat,
                "lng": payload.lng,
                "radius": payload.radius or self.community_zone_radius_m,
                "severity": payload.severity,
                "description": payload.description,
                "author": payload.author or DEFAULT_ZONE_AUTHOR,
            }
        )
        log.info("[ZONE] {} reported by {} ({}m, {})", zone.id, zone.author, zone.radius, zone.severity)
        self._publish("zone_created", zone.model_dump(mode="json", by_alias=True))
        return zone

    def normalize_zone(self, zone_id: str) -> bool:
        removed = self.store.remove_danger_zone(zone_id)
        if removed:
            log.info("[ZONE] {} normalized", zone_id)
            self._publish("zone_removed", {"id": zone_id})
        return removed

    def find_nearby_zone(
        self,
        lat: float,
        lng: float,
        zones: Optional[Sequence[DangerZone]] = None,
    ) -> Optional[DangerZone]:
        """
        First zone whose centre is within proximity_factor x its radius.
        """
        if zones is None:
            zones = self.store.list_danger_zones()
        for zone in zones:
            if distance_km(lat, lng, zone.lat, zone.lng) <= (zone.radius / 1000) * self.proximity_factor:
                return zone
        return None

    def seed_danger_zones(self) -> List[DangerZone]:
        return [self.store.add_danger_zone(z) for z in SEED_DANGER_ZONES]

    # -------------------------------
    # Rescue roster
    # -------------------------------
    def rank_rescue_units(
        self,
        lat: Optional[float] = None,
        lng: Optional[float] = None,
    ) -> List[RescueUnit]:
        """
        Roster placed around the incident (or the default base),
        nearest first. Distances are only filled in for an incident.
        """
        has_target = lat is not None and lng is not None
        base_lat, base_lng = (lat, lng) if has_target else ROSTER_BASE

        units = [
            RescueUnit(
                id=uid,
                name=name,
                unit_type=unit_type,
                vehicle=vehicle,
                personnel=personnel,
                lat=base_lat + d_lat,
                lng=base_lng + d_lng,
            )
            for uid, name, unit_type, vehicle, personnel, d_lat, d_lng in RESCUE_UNITS
        ]
        if not has_target:
            return units

        for unit in units:
            unit.distance_km = round(distance_km(lat, lng, unit.lat, unit.lng), 3)
        return sorted(units, key=lambda u: u.distance_km)

    # -------------------------------
    # Helpers
    # -------------------------------
    def _publish(self, type_: str, data: Mapping[str, Any]) -> None:
        if self.feed is not None:
            self.feed.publish(type_, dict(data))
