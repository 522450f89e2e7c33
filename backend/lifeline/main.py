# lifeline/main.py
# ------------------------------------------------------------
# FastAPI entrypoint for the incident lifecycle engine.
#
# Responsibilities:
# - Engine wiring (store, feed, dispatch service, ticker)
# - App initialization & middleware
# - Error envelopes (400 / 404 / 409 / 500)
# - Route registration
# - Ticker start / stop with the app lifecycle
# ------------------------------------------------------------

from typing import Optional

import redis
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .classifier import KEYWORD_TIERS, load_tiers
from .config import Settings, settings
from .dispatch import DispatchService
from .errors import InvalidTransitionError
from .feed import UpdateFeed
from .logging_setup import get_logger, setup_logging
from .redis_client import get_redis
from .routes import health, sos, stream, teams, zones
from .store import IncidentStore
from .ticker import SimulationTicker

log = get_logger("api")


def create_app(cfg: Settings = settings, redis_client: Optional[redis.Redis] = None) -> FastAPI:
    """
    Build the API around a fresh engine.

    `redis_client` overrides the feed connection (tests pass a fake).
    """
    setup_logging(cfg.log_level)

    app = FastAPI(
        title="Lifeline Incident API",
        version="0.1.0",
        description="SOS triage, dispatch simulation and danger zones for disaster-response demos",
    )

    # --------------------------------------------------------
    # CORS configuration
    # --------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_list(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --------------------------------------------------------
    # Engine
    # --------------------------------------------------------
    if redis_client is None and cfg.feed_enabled:
        redis_client = get_redis(cfg.redis_url)
    feed = UpdateFeed(redis_client, max_len=cfg.feed_max_len)

    tiers = load_tiers(cfg.classifier_keywords_file) if cfg.classifier_keywords_file else KEYWORD_TIERS

    store = IncidentStore()
    dispatch = DispatchService(
        store,
        feed,
        tiers=tiers,
        auto_zone_radius_m=cfg.auto_zone_radius_m,
        community_zone_radius_m=cfg.community_zone_radius_m,
        team_start_offset_deg=cfg.team_start_offset_deg,
        proximity_factor=cfg.proximity_factor,
        broadcast_nearby_users=cfg.broadcast_nearby_users,
    )
    ticker = SimulationTicker(
        store,
        feed,
        interval_sec=cfg.tick_interval_sec,
        purge_after_sec=cfg.rescued_purge_sec,
        arrival_threshold_deg=cfg.arrival_threshold_deg,
        speed_fraction=cfg.team_speed_fraction,
    )

    if cfg.seed_danger_zones:
        dispatch.seed_danger_zones()

    app.state.settings = cfg
    app.state.store = store
    app.state.feed = feed
    app.state.dispatch = dispatch
    app.state.ticker = ticker

    # --------------------------------------------------------
    # Error envelopes
    # --------------------------------------------------------
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        details = [
            {"loc": list(err.get("loc", ())), "msg": err.get("msg", "")}
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": "Invalid Data", "details": details},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(InvalidTransitionError)
    async def transition_exception_handler(request: Request, exc: InvalidTransitionError):
        return JSONResponse(
            status_code=409,
            content={
                "success": False,
                "error": "Invalid Transition",
                "from": exc.current,
                "to": exc.requested,
            },
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        log.opt(exception=exc).error("Unhandled exception on {} {}", request.method, request.url)
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": str(exc), "path": str(request.url)},
        )

    # --------------------------------------------------------
    # API routes
    # --------------------------------------------------------
    app.include_router(sos.router)
    app.include_router(zones.router)
    app.include_router(teams.router)
    app.include_router(stream.router)
    app.include_router(health.router)

    # --------------------------------------------------------
    # Lifecycle
    # --------------------------------------------------------
    @app.on_event("startup")
    async def startup():
        if not cfg.ticker_enabled:
            # static demo mode: state only changes through requests
            return
        ticker.start()

    @app.on_event("shutdown")
    async def shutdown():
        await ticker.stop()
        feed.close()
        store.close()

    return app


app = create_app()
