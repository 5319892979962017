"""Application-wide configuration loading and validation."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Centralized environment configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    environment: Literal["local", "dev", "prod"] = Field(default="local")
    log_level: str = Field(default="INFO")
    port: int = Field(default=3000, description="Port the HTTP/WebSocket server listens on.")

    # OpenAI
    openai_api_key: str | None = Field(default=None)
    realtime_url: str = Field(default="wss://api.openai.com/v1/realtime")
    realtime_model: str = Field(default="gpt-4o-realtime-preview-2024-10-01")
    realtime_voice: str = Field(default="alloy")
    realtime_temperature: float = Field(default=0.8, ge=0.0, le=2.0)
    realtime_transcription_model: str = Field(default="whisper-1")
    session_update_delay_seconds: float = Field(
        default=0.25,
        ge=0.0,
        description="Delay between upstream connect and the session.update message.",
    )
    completion_model: str = Field(
        default="gpt-4o-2024-08-06",
        description="Chat model used to extract customer details after the call.",
    )

    # Post-call delivery
    webhook_url: str | None = Field(
        default=None,
        description="Receives the extracted customer details as JSON once a call ends.",
    )

    # Twilio (Voice)
    public_base_url: str | None = Field(
        default=None,
        description="Public base URL for Twilio webhooks (e.g. https://<ngrok>.ngrok-free.app).",
    )
    greeting: str = Field(
        default="Hi, you have called to BoSar Agency. How can we help you today?",
        description="Spoken by Twilio before the media stream is connected.",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    return Settings()
