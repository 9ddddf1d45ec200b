"""Shared FastAPI dependencies.

Separated to avoid circular imports between route modules.
"""

from __future__ import annotations

import logging

from fastapi import Request

from calls.errors import InvalidTwilioSignatureError
from calls.events import GLOBAL_CALL_STATUS_HUB, CallStatusHub
from config.settings import get_settings
from db.repository import CallEventRepository
from integrations.twilio_client import (
    AccessTokenIssuer,
    TwilioCallService,
    get_twilio_config,
    is_valid_twilio_request,
)

LOGGER = logging.getLogger(__name__)


def get_token_issuer() -> AccessTokenIssuer:
    return AccessTokenIssuer()


def get_call_service() -> TwilioCallService:
    return TwilioCallService()


def get_event_repository() -> CallEventRepository:
    return CallEventRepository()


def get_status_hub() -> CallStatusHub:
    return GLOBAL_CALL_STATUS_HUB


def _signed_url(request: Request) -> str:
    # Twilio signs the public URL it called, which differs from request.url behind a proxy.
    settings = get_settings()
    if not settings.public_base_url:
        return str(request.url)
    url = settings.public_base_url.rstrip("/") + request.url.path
    if request.url.query:
        url += "?" + request.url.query
    return url


async def verify_twilio_signature(request: Request) -> None:
    settings = get_settings()
    if not settings.twilio_validate_signatures:
        return

    form = await request.form()
    params = {key: str(value) for key, value in form.items()}
    valid = is_valid_twilio_request(
        get_twilio_config().auth_token,
        url=_signed_url(request),
        params=params,
        signature=request.headers.get("X-Twilio-Signature"),
    )
    if not valid:
        LOGGER.warning("Rejected webhook %s with invalid Twilio signature", request.url.path)
        raise InvalidTwilioSignatureError()
