"""Configuration management using Pydantic settings."""

from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Service settings loaded from environment variables (or ``.env``)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "CIRCLE-SURVIVAL"
    debug: bool = False
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Play area (pixels); clients resize via /api/game/resize
    play_area_width: float = 800.0
    play_area_height: float = 600.0

    # Frame loop
    frame_rate: float = 60.0       # frame callbacks per second
    max_frame_dt: float = 0.25     # largest step applied from one frame
    snapshot_rate: float = 30.0    # WebSocket frame snapshots per second

    # Reproducible sessions
    random_seed: Optional[int] = None

    # Best-level persistence; unset keeps it in memory only
    best_level_path: Optional[Path] = None


settings = Settings()
