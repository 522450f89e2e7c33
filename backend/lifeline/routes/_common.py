# lifeline/routes/_common.py
# ------------------------------------------------------------
# Shared helpers for route modules:
# - dependency getters for the engine objects on app.state
# - JSON dumping in the dashboards' camelCase shape
# ------------------------------------------------------------

from typing import Any, Dict, Iterable, List

from fastapi import Request
from pydantic import BaseModel

from ..dispatch import DispatchService
from ..feed import UpdateFeed
from ..store import IncidentStore
from ..ticker import SimulationTicker


def get_dispatch(request: Request) -> DispatchService:
    return request.app.state.dispatch


def get_store(request: Request) -> IncidentStore:
    return request.app.state.store


def get_feed(request: Request) -> UpdateFeed:
    return request.app.state.feed


def get_ticker(request: Request) -> SimulationTicker:
    return request.app.state.ticker


def dump(obj: BaseModel) -> Dict[str, Any]:
    return obj.model_dump(mode="json", by_alias=True)


def dump_all(items: Iterable[BaseModel]) -> List[Dict[str, Any]]:
    return [dump(x) for x in items]
