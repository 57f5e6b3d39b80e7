"""Application configuration.

Runtime knobs for the editor core, the assistant and the video exporter.
"""
from __future__ import annotations

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings loaded from .env and environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"
    openai_base_url: str = ""
    openai_timeout: float = 180.0
    database_url: str = Field(
        default="sqlite:///./motiongen.db",
        validation_alias=AliasChoices("DATABASE_URL"),
    )
    output_dir: str = "outputs"

    # Timeline / playback
    default_scene_duration: float = 5.0
    timeline_pixels_per_second: float = 100.0
    min_track_duration: float = 0.1
    playback_frame_interval: float = 1 / 60

    # Export
    export_fps: int = 30
    export_width: int = 1920
    export_height: int = 1080
    export_settle_ms: int = 500
    render_server_url: str = ""
    ffmpeg_binary: str = ""


settings = Settings()
