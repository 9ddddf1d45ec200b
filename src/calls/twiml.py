"""TwiML documents returned to Twilio's voice webhooks."""

from __future__ import annotations

from twilio.twiml.voice_response import VoiceResponse

WELCOME_MESSAGE = "Welcome to our calling system."
NO_NUMBER_MESSAGE = "No number provided"
FALLBACK_MESSAGE = "An error occurred. Please try again."


def outbound_dial(
    number: str,
    *,
    caller_id: str | None,
    action_url: str | None,
    timeout: int,
    record: str,
) -> str:
    """Bridge the browser leg to ``number``.

    Attributes left as ``None`` are omitted from the document.
    """

    response = VoiceResponse()
    dial = response.dial(
        caller_id=caller_id,
        action=action_url,
        method="POST" if action_url else None,
        timeout=timeout,
        record=record,
    )
    dial.number(number)
    return str(response)


def say(text: str) -> str:
    response = VoiceResponse()
    response.say(text)
    return str(response)


def fallback() -> str:
    return say(FALLBACK_MESSAGE)
