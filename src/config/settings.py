"""Application-wide configuration loading and validation."""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from sqlalchemy.engine import make_url


class Settings(BaseSettings):
    """Centralized environment configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    log_level: str = Field(default="INFO")

    # HTTP server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3001)
    frontend_url: str = Field(
        default="http://localhost:3000",
        description="Origin of the web softphone, allowed by CORS with credentials.",
    )

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./data/voice_gateway.db",
        description="SQLAlchemy connection string for the call-event log.",
    )
    auto_create_db_schema: bool = Field(
        default=True,
        description="If true, creates tables automatically on startup (useful for local/dev).",
    )

    # Twilio REST credentials
    twilio_account_sid: str | None = Field(default=None)
    twilio_auth_token: str | None = Field(default=None)

    # Twilio access tokens (browser softphone)
    twilio_api_key: str | None = Field(default=None, description="API key SID (SK...).")
    twilio_api_secret: str | None = Field(default=None)
    twilio_twiml_app_sid: str | None = Field(
        default=None,
        description="TwiML App SID whose voice URL points at POST /voice.",
    )
    twilio_token_ttl_seconds: int = Field(default=3600, ge=60, le=86400)
    twilio_incoming_allow: bool = Field(default=True)
    default_identity: str = Field(
        default="employee1",
        description="Identity used by the legacy GET token route when none is supplied.",
    )

    # Outbound dialing
    twilio_phone_number: str | None = Field(
        default=None, description="Caller ID for outbound dials, E.164, e.g. +1415..."
    )
    twilio_dial_timeout_seconds: int = Field(default=30, ge=5, le=600)
    twilio_dial_record: str = Field(default="do-not-record")
    public_base_url: str | None = Field(
        default=None,
        description="Public base URL for Twilio webhooks (e.g. https://<ngrok>.ngrok-free.app).",
    )
    twilio_validate_signatures: bool = Field(
        default=False,
        description="If true, webhook routes reject requests without a valid X-Twilio-Signature.",
    )

    # Call history
    call_history_limit: int = Field(default=50, ge=1, le=1000)
    call_history_statuses: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["completed", "in-progress", "ringing"],
        description="Comma-separated (completed,ringing) or JSON list of call statuses.",
    )

    @field_validator("call_history_statuses", mode="before")
    @classmethod
    def split_statuses(cls, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        text = value.strip()
        if text.startswith("["):
            return json.loads(text)
        return [item.strip() for item in text.split(",") if item.strip()]

    @field_validator("database_url")
    @classmethod
    def ensure_sqlite_dir(cls, value: str) -> str:
        url = make_url(value)
        if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
        return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    return Settings()
