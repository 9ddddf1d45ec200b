"""Routes used by the web softphone: tokens, call history, verification and live status."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, Query, WebSocket, WebSocketDisconnect
from starlette.concurrency import run_in_threadpool

from api.dependencies import get_call_service, get_event_repository, get_status_hub, get_token_issuer
from api.schemas import (
    CallEventResponse,
    CallSummary,
    TokenRequest,
    TokenResponse,
    VerificationResponse,
    VerifyNumberRequest,
)
from calls.errors import MissingInputError
from calls.events import CallStatusHub
from calls.numbers import sanitize_phone_number
from config.settings import get_settings
from db.repository import CallEventRepository
from integrations.twilio_client import AccessTokenIssuer, TwilioCallService

LOGGER = logging.getLogger(__name__)

router = APIRouter(tags=["softphone"])


def _optional_str(value: Any) -> str | None:
    return None if value is None else str(value)


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@router.post("/token", response_model=TokenResponse)
async def create_token(
    payload: TokenRequest | None = Body(default=None),
    issuer: AccessTokenIssuer = Depends(get_token_issuer),
) -> TokenResponse:
    identity = ((payload.identity if payload else None) or "").strip()
    if not identity:
        raise MissingInputError("Identity is required")

    token = issuer.issue(identity)
    LOGGER.info("Issued voice access token for %s", identity)
    return TokenResponse(identity=identity, token=token)


@router.get("/get-twilio-token", response_model=TokenResponse)
async def create_token_legacy(
    emp: str | None = Query(default=None, description="Employee identity."),
    issuer: AccessTokenIssuer = Depends(get_token_issuer),
) -> TokenResponse:
    identity = (emp or "").strip() or get_settings().default_identity
    token = issuer.issue(identity)
    LOGGER.info("Issued voice access token for %s (legacy route)", identity)
    return TokenResponse(identity=identity, token=token)


@router.get("/calls", response_model=list[CallSummary])
async def list_calls(
    service: TwilioCallService = Depends(get_call_service),
) -> list[CallSummary]:
    settings = get_settings()
    calls = await run_in_threadpool(
        service.list_recent_calls,
        limit=settings.call_history_limit,
        statuses=settings.call_history_statuses,
    )
    return [
        CallSummary(
            sid=str(call.sid),
            to=_optional_str(call.to),
            from_=_optional_str(call.from_),
            status=_optional_str(call.status),
            duration=_optional_str(call.duration),
            date_created=call.date_created,
        )
        for call in calls
    ]


@router.post("/verify-number", response_model=VerificationResponse)
async def verify_number(
    payload: VerifyNumberRequest | None = Body(default=None),
    service: TwilioCallService = Depends(get_call_service),
) -> VerificationResponse:
    phone_number = sanitize_phone_number(payload.phone_number if payload else None)
    if not phone_number:
        raise MissingInputError("Phone number is required")

    receipt = await run_in_threadpool(service.request_number_verification, phone_number)
    LOGGER.info("Verification call requested for %s", receipt.phone_number)
    return VerificationResponse(
        validation_request_sid=receipt.call_sid,
        validation_code=receipt.validation_code,
        phone_number=receipt.phone_number,
    )


@router.get("/call-events", response_model=list[CallEventResponse])
async def list_recent_call_events(
    limit: int = Query(default=50, ge=1, le=500),
    repository: CallEventRepository = Depends(get_event_repository),
) -> list[CallEventResponse]:
    events = await repository.list_recent(limit=limit)
    return [CallEventResponse.model_validate(event) for event in events]


@router.get("/call-events/{call_sid}", response_model=list[CallEventResponse])
async def list_call_events(
    call_sid: str,
    repository: CallEventRepository = Depends(get_event_repository),
) -> list[CallEventResponse]:
    events = await repository.list_events(call_sid)
    return [CallEventResponse.model_validate(event) for event in events]


async def _forward_events(queue: asyncio.Queue, websocket: WebSocket) -> None:
    while True:
        message = await queue.get()
        await websocket.send_json(message)


@router.websocket("/ws/call-status")
async def call_status_stream(
    websocket: WebSocket,
    hub: CallStatusHub = Depends(get_status_hub),
) -> None:
    # Subscribed before the handshake completes.
    queue = await hub.subscribe()
    sender: asyncio.Task | None = None
    try:
        await websocket.accept()
        sender = asyncio.create_task(_forward_events(queue, websocket))
        # Inbound frames, text or binary, are ignored; receiving only detects the disconnect.
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                return
    except WebSocketDisconnect:
        return
    finally:
        if sender is not None:
            sender.cancel()
            try:
                await sender
            except asyncio.CancelledError:
                pass
            except Exception:
                LOGGER.warning("Call-status forwarder stopped with an error", exc_info=True)
        await hub.unsubscribe(queue)
