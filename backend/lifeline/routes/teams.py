# lifeline/routes/teams.py
# ------------------------------------------------------------
# Rescue roster API
#
# Used by the dispatch portal to pick the closest unit.
# ------------------------------------------------------------

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ..dispatch import DispatchService
from ._common import dump_all, get_dispatch

router = APIRouter(tags=["teams"])


@router.get("/api/teams")
def list_teams(
    lat: Optional[float] = Query(None, ge=-90.0, le=90.0),
    lng: Optional[float] = Query(None, ge=-180.0, le=180.0),
    service: DispatchService = Depends(get_dispatch),
):
    """
    Rescue units, nearest first when an incident location is given.
    """
    units = service.rank_rescue_units(lat, lng)
    return {"success": True, "data": dump_all(units)}
