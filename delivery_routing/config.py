"""Centralised application settings loaded from environment / .env file."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Road routing (OSRM)
    osrm_base_url: str = "https://router.project-osrm.org"
    osrm_timeout_seconds: float = 10.0
    default_profile: str = "driving"

    # Redis route cache
    redis_url: str = "redis://localhost:6379/0"
    route_cache_enabled: bool = True
    route_cache_ttl_seconds: int = 300  # 5 minutes

    # Route planning estimates
    average_speed_kmh: float = 30.0
    stop_dwell_minutes: float = 5.0
    eta_refresh_interval_seconds: float = 30.0

    # Map tiles (Carto Voyager, no API key)
    tile_url_template: str = (
        "https://basemaps.cartocdn.com/rastertiles/voyager/{z}/{x}/{y}@2x.png"
    )
    tile_max_zoom: int = 19
    tile_size: int = 256

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
