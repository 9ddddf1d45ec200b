"""API-facing Pydantic models."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TokenRequest(BaseModel):
    identity: str | None = Field(default=None, description="Softphone user identity.")


class TokenResponse(BaseModel):
    identity: str
    token: str = Field(description="Signed Twilio access token (JWT) with a Voice grant.")


class CallSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    sid: str
    to: str | None = None
    from_: str | None = Field(default=None, alias="from")
    status: str | None = None
    duration: str | None = None
    date_created: datetime | None = Field(default=None, alias="dateCreated")


class VerifyNumberRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    phone_number: str | None = Field(default=None, alias="phoneNumber")


class VerificationResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str = "Verification call sent"
    validation_request_sid: str | None = Field(default=None, alias="validationRequestSid")
    validation_code: str | None = Field(
        default=None,
        alias="validationCode",
        description="Code the callee enters on the verification call.",
    )
    phone_number: str = Field(alias="phoneNumber")


class CallEventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    call_sid: str
    kind: str
    status: str
    to_number: str | None = None
    from_number: str | None = None
    direction: str | None = None
    duration_seconds: int | None = None
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        # SQLite hands back naive timestamps; rows are always written in UTC.
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
