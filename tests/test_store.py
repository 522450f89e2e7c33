"""
Incident store tests: ordering, ids, sentinels, snapshot isolation.
"""

from lifeline.store import IncidentStore


def _sos_fields(**overrides):
    fields = {
        "lat": 28.6139,
        "lng": 77.2090,
        "message": "need help",
        "battery": 80,
        "is_offline": False,
        "priority": "Low",
        "category": "General Assistance",
    }
    fields.update(overrides)
    return fields


def _zone_fields(**overrides):
    fields = {
        "lat": 28.6,
        "lng": 77.2,
        "radius": 300,
        "severity": "High",
        "description": "Collapsed bridge",
        "author": "tester",
    }
    fields.update(overrides)
    return fields


def test_add_sos_defaults_and_front_insertion(store):
    first = store.add_sos(_sos_fields(message="first"))
    second = store.add_sos(_sos_fields(message="second"))

    assert second.status == "New"
    assert second.id.startswith("SIGNAL-")
    assert second.timestamp is not None

    listed = store.list_sos()
    assert [s.id for s in listed] == [second.id, first.id]


def test_add_sos_ids_are_unique(store):
    ids = {store.add_sos(_sos_fields()).id for _ in range(200)}
    assert len(ids) == 200


def test_add_sos_ignores_caller_identity_fields(store):
    sos = store.add_sos(_sos_fields(id="SIGNAL-MINE", status="Rescued"))
    assert sos.id != "SIGNAL-MINE"
    assert sos.status == "New"


def test_add_sos_is_not_idempotent(store):
    a = store.add_sos(_sos_fields())
    b = store.add_sos(_sos_fields())
    assert a.id != b.id
    assert len(store.list_sos()) == 2


def test_update_sos_merges_fields(store):
    sos = store.add_sos(_sos_fields())

    updated = store.update_sos(sos.id, {"status": "Assigned", "audio_url": "blob:voice-1"})

    assert updated.status == "Assigned"
    assert updated.audio_url == "blob:voice-1"
    assert updated.message == sos.message
    assert store.get_sos(sos.id).status == "Assigned"


def test_update_sos_keeps_creation_fields(store):
    sos = store.add_sos(_sos_fields())

    updated = store.update_sos(
        sos.id,
        {"id": "SIGNAL-X", "priority": "Critical", "category": "Other", "timestamp": None},
    )

    assert updated.id == sos.id
    assert updated.priority == "Low"
    assert updated.category == "General Assistance"
    assert updated.timestamp == sos.timestamp


def test_update_sos_unknown_id_leaves_store_unchanged(store):
    store.add_sos(_sos_fields())
    before = [s.model_dump() for s in store.list_sos()]

    assert store.update_sos("SIGNAL-NOPE", {"status": "Resolved"}) is None
    assert [s.model_dump() for s in store.list_sos()] == before


def test_update_does_not_enforce_transitions(store):
    sos = store.add_sos(_sos_fields())
    assert store.update_sos(sos.id, {"status": "Rescued"}).status == "Rescued"


def test_delete_sos(store):
    sos = store.add_sos(_sos_fields())
    assert store.delete_sos(sos.id) is True
    assert store.delete_sos(sos.id) is False
    assert store.list_sos() == []


def test_snapshots_are_isolated(store):
    sos = store.add_sos(_sos_fields())

    snapshot = store.list_sos()[0]
    snapshot.status = "Resolved"

    assert store.get_sos(sos.id).status == "New"


def test_danger_zones_keep_insertion_order(store):
    a = store.add_danger_zone(_zone_fields(description="a"))
    b = store.add_danger_zone(_zone_fields(description="b"))

    assert a.id.startswith("ZONE-")
    assert [z.id for z in store.list_danger_zones()] == [a.id, b.id]


def test_remove_danger_zone(store):
    a = store.add_danger_zone(_zone_fields())
    store.add_danger_zone(_zone_fields())

    assert store.remove_danger_zone(a.id) is True
    assert len(store.list_danger_zones()) == 1

    assert store.remove_danger_zone("ZONE-NOPE") is False
    assert len(store.list_danger_zones()) == 1


def test_counts(store):
    store.add_sos(_sos_fields(priority="Critical", category="Major Injury", is_offline=True))
    sos = store.add_sos(_sos_fields())
    store.update_sos(sos.id, {"status": "Resolved"})
    store.add_danger_zone(_zone_fields())

    counts = store.counts()

    assert counts["sos"] == 2
    assert counts["danger_zones"] == 1
    assert counts["by_status"] == {"New": 1, "Resolved": 1}
    assert counts["by_priority"] == {"Critical": 1, "Low": 1}
    assert counts["offline"] == 1


def test_close_drops_state():
    store = IncidentStore()
    store.add_sos(_sos_fields())
    store.add_danger_zone(_zone_fields())

    store.close()

    assert store.list_sos() == []
    assert store.list_danger_zones() == []
