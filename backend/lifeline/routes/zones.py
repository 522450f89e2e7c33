# lifeline/routes/zones.py
# ------------------------------------------------------------
# Danger zones API
#
# Zones are also reachable through /api/sos (type=danger-zone);
# these endpoints give them a resource of their own plus the
# victim-side proximity check.
# ------------------------------------------------------------

from fastapi import APIRouter, Depends, HTTPException, Query

from ..dispatch import DispatchService
from ..models import DangerZoneSubmit
from ._common import dump, dump_all, get_dispatch

router = APIRouter(tags=["danger-zones"])


@router.get("/api/danger-zones")
def list_zones(service: DispatchService = Depends(get_dispatch)):
    items = service.list_danger_zones()
    return {"success": True, "count": len(items), "data": dump_all(items)}


@router.get("/api/danger-zones/nearby")
def nearby_zone(
    lat: float = Query(..., ge=-90.0, le=90.0),
    lng: float = Query(..., ge=-180.0, le=180.0),
    service: DispatchService = Depends(get_dispatch),
):
    """
    First zone within 1.5x its radius of (lat, lng), or null.
    """
    zone = service.find_nearby_zone(lat, lng)
    return {
        "success": True,
        "nearby": zone is not None,
        "data": dump(zone) if zone else None,
    }


@router.post("/api/danger-zones")
def report_zone(body: DangerZoneSubmit, service: DispatchService = Depends(get_dispatch)):
    zone = service.report_danger(body)
    return {"success": True, "data": dump(zone)}


@router.delete("/api/danger-zones/{zone_id}")
def normalize_zone(zone_id: str, service: DispatchService = Depends(get_dispatch)):
    if not service.normalize_zone(zone_id):
        raise HTTPException(status_code=404, detail="Zone Not Found")
    return {"success": True}
