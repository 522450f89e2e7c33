# lifeline/routes/sos.py
# ------------------------------------------------------------
# SOS API (single resource, verb-shaped like the dashboards expect)
#
# GET    /api/sos                  -> signals, newest first
# GET    /api/sos?type=danger-zones -> danger zones
# POST   /api/sos                  -> new SOS, or a zone when type=danger-zone
# PATCH  /api/sos                  -> status / team / audio update
# DELETE /api/sos                  -> delete signal, or zone when type=danger-zone
# ------------------------------------------------------------

from typing import Any, Dict, Literal, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from ..dispatch import DispatchService
from ..models import DangerZoneSubmit, DeleteRequest, SOSSubmit, SOSUpdate
from ._common import dump, dump_all, get_dispatch

router = APIRouter(tags=["sos"])


@router.get("/api/sos")
def list_sos(
    type_: Optional[str] = Query(None, alias="type"),
    feed: Literal["all", "critical", "mesh"] = Query("all"),
    service: DispatchService = Depends(get_dispatch),
):
    """
    List signals (newest first).

    `type=danger-zones` returns the zone list instead, as the
    victim app polls it from the same resource.
    """
    if type_ == "danger-zones":
        return {"success": True, "data": dump_all(service.list_danger_zones())}

    items = service.list_sos(feed)
    return {"success": True, "count": len(items), "data": dump_all(items)}


@router.post("/api/sos")
def submit(
    payload: Dict[str, Any] = Body(...),
    service: DispatchService = Depends(get_dispatch),
):
    """
    Submit an SOS signal, or a danger zone when `type == "danger-zone"`.
    """
    try:
        if payload.get("type") == "danger-zone":
            zone = service.report_danger(DangerZoneSubmit.model_validate(payload))
            return {"success": True, "data": dump(zone)}

        sos_in = SOSSubmit.model_validate(payload)
    except ValidationError as exc:
        raise RequestValidationError(exc.errors())

    result = service.ingest_sos(sos_in)
    return {
        "success": True,
        "data": dump(result.sos),
        "autoDangerZone": result.auto_danger_zone,
        "broadcastCount": result.broadcast_count,
    }


@router.patch("/api/sos")
def update(body: SOSUpdate, service: DispatchService = Depends(get_dispatch)):
    """
    Update a signal. status=Assigned + teamName dispatches a rescue team.
    """
    updated = service.update_sos(
        body.id,
        status=body.status,
        team_name=body.team_name,
        audio_url=body.audio_url,
    )
    if updated is None:
        raise HTTPException(status_code=404, detail="Not Found")
    return {"success": True, "data": dump(updated)}


@router.delete("/api/sos")
def delete(body: DeleteRequest, service: DispatchService = Depends(get_dispatch)):
    if body.type == "danger-zone":
        if not service.normalize_zone(body.id):
            raise HTTPException(status_code=404, detail="Zone Not Found")
        return {"success": True}

    if not service.delete_sos(body.id):
        raise HTTPException(status_code=404, detail="Incident Not Found")
    return {"success": True}
