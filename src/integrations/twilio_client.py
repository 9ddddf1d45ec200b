from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from twilio.base.exceptions import TwilioException, TwilioRestException
from twilio.jwt.access_token import AccessToken
from twilio.jwt.access_token.grants import VoiceGrant
from twilio.request_validator import RequestValidator

from calls.errors import TwilioConfigurationError, TwilioServiceError
from config.settings import get_settings

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class TwilioConfig:
    account_sid: str
    auth_token: str


@dataclass(frozen=True)
class TwilioTokenConfig:
    account_sid: str
    api_key: str
    api_secret: str
    twiml_app_sid: str
    ttl_seconds: int
    incoming_allow: bool


def get_twilio_config() -> TwilioConfig:
    settings = get_settings()
    if not settings.twilio_account_sid or not settings.twilio_auth_token:
        raise TwilioConfigurationError("Twilio account SID and auth token are not configured")

    return TwilioConfig(
        account_sid=settings.twilio_account_sid,
        auth_token=settings.twilio_auth_token,
    )


def get_token_config() -> TwilioTokenConfig:
    settings = get_settings()
    missing = [
        name
        for name, value in (
            ("TWILIO_ACCOUNT_SID", settings.twilio_account_sid),
            ("TWILIO_API_KEY", settings.twilio_api_key),
            ("TWILIO_API_SECRET", settings.twilio_api_secret),
            ("TWILIO_TWIML_APP_SID", settings.twilio_twiml_app_sid),
        )
        if not value
    ]
    if missing:
        raise TwilioConfigurationError(f"Missing Twilio token settings: {', '.join(missing)}")

    return TwilioTokenConfig(
        account_sid=settings.twilio_account_sid,
        api_key=settings.twilio_api_key,
        api_secret=settings.twilio_api_secret,
        twiml_app_sid=settings.twilio_twiml_app_sid,
        ttl_seconds=settings.twilio_token_ttl_seconds,
        incoming_allow=settings.twilio_incoming_allow,
    )


def build_twilio_client():
    from twilio.rest import Client

    cfg = get_twilio_config()
    return Client(cfg.account_sid, cfg.auth_token)


class AccessTokenIssuer:
    """Signs Voice access tokens for the browser softphone."""

    def __init__(self, config_factory: Callable[[], TwilioTokenConfig] = get_token_config) -> None:
        self._config_factory = config_factory

    def issue(self, identity: str) -> str:
        # Configuration is resolved here so callers can validate input first.
        cfg = self._config_factory()
        token = AccessToken(
            cfg.account_sid,
            cfg.api_key,
            cfg.api_secret,
            identity=identity,
            ttl=cfg.ttl_seconds,
        )
        token.add_grant(
            VoiceGrant(
                outgoing_application_sid=cfg.twiml_app_sid,
                incoming_allow=cfg.incoming_allow,
            )
        )
        jwt = token.to_jwt()
        return jwt.decode("utf-8") if isinstance(jwt, bytes) else str(jwt)


@dataclass(frozen=True)
class VerificationReceipt:
    call_sid: str | None
    validation_code: str | None
    phone_number: str


_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _created_at(call: Any) -> datetime:
    value = getattr(call, "date_created", None)
    if value is None:
        return _EPOCH
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class TwilioCallService:
    """Thin wrapper over the REST client used by the call-history and verification routes.

    The underlying client is built on first use so that request validation can
    run (and fail) without credentials being present.
    """

    def __init__(self, client_factory: Callable[[], Any] = build_twilio_client) -> None:
        self._client_factory = client_factory
        self._client: Any | None = None

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = self._client_factory()
        return self._client

    def list_recent_calls(self, *, limit: int, statuses: Iterable[str]) -> list[Any]:
        calls: dict[str, Any] = {}
        try:
            for status in statuses:
                for call in self.client.calls.list(status=status, limit=limit):
                    calls[str(call.sid)] = call
        except TwilioRestException as exc:
            LOGGER.error("Fetching call history failed: %s", exc)
            raise TwilioServiceError(f"Failed to fetch call history: {exc.msg}") from exc
        except TwilioException as exc:
            LOGGER.error("Fetching call history failed: %s", exc)
            raise TwilioServiceError(f"Failed to fetch call history: {exc}") from exc

        ordered = sorted(calls.values(), key=_created_at, reverse=True)
        return ordered[:limit]

    def request_number_verification(self, phone_number: str) -> VerificationReceipt:
        try:
            validation = self.client.validation_requests.create(
                phone_number=phone_number,
                friendly_name=f"Customer {phone_number}",
            )
        except TwilioRestException as exc:
            LOGGER.error("Verification request for %s failed: %s", phone_number, exc)
            raise TwilioServiceError(f"Failed to send verification: {exc.msg}") from exc
        except TwilioException as exc:
            LOGGER.error("Verification request for %s failed: %s", phone_number, exc)
            raise TwilioServiceError(f"Failed to send verification: {exc}") from exc

        code = getattr(validation, "validation_code", None)
        return VerificationReceipt(
            call_sid=getattr(validation, "call_sid", None),
            validation_code=None if code is None else str(code),
            phone_number=getattr(validation, "phone_number", None) or phone_number,
        )


def is_valid_twilio_request(
    auth_token: str,
    *,
    url: str,
    params: Mapping[str, str],
    signature: str | None,
) -> bool:
    if not signature:
        return False
    validator = RequestValidator(auth_token)
    return bool(validator.validate(url, dict(params), signature))
