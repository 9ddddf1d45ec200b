"""Twilio Voice webhooks.

This module provides:
- Voice webhook (TwiML) that bridges the browser leg to the dialed customer.
- Dial-status callback, which also tells the agent how the dial ended.
- Call-status callback, relayed to logs, the call-event log and live subscribers.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import PlainTextResponse
from sqlalchemy.exc import SQLAlchemyError

from api.dependencies import get_event_repository, get_status_hub, verify_twilio_signature
from calls import twiml
from calls.events import CallStatusEvent, CallStatusHub
from calls.numbers import dial_target
from calls.status import call_status_description, dial_status_message
from config.settings import get_settings
from db.repository import CallEventRepository

LOGGER = logging.getLogger(__name__)

router = APIRouter(tags=["twilio"], dependencies=[Depends(verify_twilio_signature)])


def _twiml_response(xml: str) -> Response:
    # Twilio expects application/xml
    return Response(content=xml, media_type="application/xml")


def _form_value(form, key: str) -> str | None:
    value = form.get(key)
    if value is None:
        return None
    return str(value).strip() or None


def _parse_seconds(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        LOGGER.warning("Ignoring non-numeric duration %r", value)
        return None


def _dial_status_url(request: Request) -> str:
    settings = get_settings()
    if settings.public_base_url:
        return f"{settings.public_base_url.rstrip('/')}/dial-status"
    return str(request.url_for("twilio_dial_status_webhook"))


async def _relay(
    event: CallStatusEvent,
    repository: CallEventRepository,
    hub: CallStatusHub,
) -> None:
    try:
        await repository.add_event(event)
    except SQLAlchemyError:
        # A storage failure never changes the webhook response.
        LOGGER.exception("Recording %s event for %s failed", event.kind, event.call_sid)
    await hub.publish(event)


@router.post("/voice")
async def twilio_voice_webhook(request: Request) -> Response:
    settings = get_settings()
    form = await request.form()

    to = _form_value(form, "To")
    LOGGER.info(
        "Voice webhook for call %s: To=%s From=%s",
        _form_value(form, "CallSid") or "unknown",
        to,
        _form_value(form, "From"),
    )

    try:
        target = dial_target(to)
        if target is None:
            xml = twiml.say(twiml.WELCOME_MESSAGE)
        elif not target:
            xml = twiml.say(twiml.NO_NUMBER_MESSAGE)
        else:
            xml = twiml.outbound_dial(
                target,
                caller_id=settings.twilio_phone_number,
                action_url=_dial_status_url(request),
                timeout=settings.twilio_dial_timeout_seconds,
                record=settings.twilio_dial_record,
            )
    except Exception as exc:
        LOGGER.exception("TwiML generation failed: %s", exc)
        xml = twiml.fallback()

    return _twiml_response(xml)


@router.post("/dial-status")
async def twilio_dial_status_webhook(
    request: Request,
    repository: CallEventRepository = Depends(get_event_repository),
    hub: CallStatusHub = Depends(get_status_hub),
) -> Response:
    form = await request.form()
    call_sid = _form_value(form, "CallSid") or "unknown"
    status = _form_value(form, "DialCallStatus")
    duration = _form_value(form, "DialCallDuration")

    LOGGER.info("Dial completed for %s: status=%s duration=%ss", call_sid, status, duration)

    await _relay(
        CallStatusEvent(
            kind="dial",
            call_sid=call_sid,
            status=status or "unknown",
            to_number=_form_value(form, "To"),
            from_number=_form_value(form, "From"),
            direction=_form_value(form, "Direction"),
            duration_seconds=_parse_seconds(duration),
        ),
        repository,
        hub,
    )
    return _twiml_response(twiml.say(dial_status_message(status)))


@router.post("/call-status")
async def twilio_call_status_webhook(
    request: Request,
    repository: CallEventRepository = Depends(get_event_repository),
    hub: CallStatusHub = Depends(get_status_hub),
) -> Response:
    form = await request.form()
    call_sid = _form_value(form, "CallSid") or "unknown"
    status = _form_value(form, "CallStatus")
    to = _form_value(form, "To")
    from_ = _form_value(form, "From")
    direction = _form_value(form, "Direction")

    LOGGER.info("Call %s status: %s", call_sid, status)
    LOGGER.info("From: %s, To: %s, Direction: %s", from_, to, direction)
    description = call_status_description(status)
    if description:
        LOGGER.info("Call %s: %s", call_sid, description)

    await _relay(
        CallStatusEvent(
            kind="call",
            call_sid=call_sid,
            status=status or "unknown",
            to_number=to,
            from_number=from_,
            direction=direction,
            duration_seconds=_parse_seconds(_form_value(form, "CallDuration")),
        ),
        repository,
        hub,
    )
    return PlainTextResponse("OK")
