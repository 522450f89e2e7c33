# lifeline/config.py
# ------------------------------------------------------------
# Central configuration using pydantic-settings.
#
# All values can be overridden via environment variables
# (or a local .env file).
# ------------------------------------------------------------

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional


class Settings(BaseSettings):
    """
    Runtime configuration for the incident engine.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # --------------------------------------------------------
    # Infrastructure (update feed only, incidents stay in memory)
    # --------------------------------------------------------
    redis_url: str = "redis://localhost:6379/0"
    feed_enabled: bool = True
    feed_max_len: int = 500

    # --------------------------------------------------------
    # CORS / Frontend integration
    # --------------------------------------------------------
    api_cors_origins: str = (
        "http://localhost:5173,"
        "http://localhost:3000"
    )

    # --------------------------------------------------------
    # Simulation ticker
    # --------------------------------------------------------
    ticker_enabled: bool = True
    tick_interval_sec: float = 1.0
    rescued_purge_sec: float = 10.0
    arrival_threshold_deg: float = 0.0002   # ~22m
    team_speed_fraction: float = 0.05       # share of remaining delta per tick

    # --------------------------------------------------------
    # Triage / dispatch
    # --------------------------------------------------------
    team_start_offset_deg: float = 0.05
    auto_zone_radius_m: int = 1000
    community_zone_radius_m: int = 500
    proximity_factor: float = 1.5
    broadcast_nearby_users: int = 42
    seed_danger_zones: bool = True

    # JSON file replacing the built-in keyword tiers (optional)
    classifier_keywords_file: Optional[str] = None

    # --------------------------------------------------------
    # Logging
    # --------------------------------------------------------
    log_level: str = "INFO"

    # --------------------------------------------------------
    # Helpers
    # --------------------------------------------------------
    def cors_list(self) -> List[str]:
        """
        Parse comma-separated CORS origins into a clean list.
        """
        return [
            x.strip()
            for x in self.api_cors_origins.split(",")
            if x.strip()
        ]


# Singleton settings object
settings = Settings()
