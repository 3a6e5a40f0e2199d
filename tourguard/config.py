"""Application configuration loaded from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "tourguard"
    log_level: str = "INFO"

    # Immobility hazard
    static_threshold_seconds: int = 300
    static_cooldown_seconds: int = 60
    movement_threshold_meters: float = 100.0

    # Danger-zone dwell hazard
    zone_threshold_seconds: int = 120
    zone_cooldown_seconds: int = 60

    # Location provider
    location_high_accuracy: bool = True
    location_timeout_ms: int = 10_000
    location_max_age_ms: int = 0

    # Feature flags
    ai_sos_default_enabled: bool = False

    # Incident-derived danger zones
    incident_zone_radius_meters: float = 500.0
    incident_zone_window_hours: int = 24

    # Backend collaborators
    supabase_url: str = ""
    supabase_key: str = ""
    http_timeout_seconds: float = 10.0
    state_dir: str = ".tourguard"

    model_config = {"env_prefix": "TOURGUARD_"}


settings = Settings()
