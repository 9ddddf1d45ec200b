"""Call and dial status values reported by Twilio webhooks."""

from __future__ import annotations

from enum import Enum


class DialStatus(str, Enum):
    """``DialCallStatus`` values that get a dedicated spoken message."""

    COMPLETED = "completed"
    BUSY = "busy"
    NO_ANSWER = "no-answer"
    FAILED = "failed"
    CANCELED = "canceled"


class CallStatus(str, Enum):
    """``CallStatus`` values sent to the status callback."""

    QUEUED = "queued"
    INITIATED = "initiated"
    RINGING = "ringing"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    BUSY = "busy"
    NO_ANSWER = "no-answer"
    FAILED = "failed"
    CANCELED = "canceled"


DEFAULT_DIAL_MESSAGE = "Call ended."

_DIAL_MESSAGES: dict[str, str] = {
    DialStatus.COMPLETED.value: "Call completed. Thank you.",
    DialStatus.BUSY.value: "The customer line is busy. Please try again later.",
    DialStatus.NO_ANSWER.value: "The customer did not answer. Please try again later.",
    DialStatus.FAILED.value: "The call failed. Please check the number and try again.",
    DialStatus.CANCELED.value: "The call was canceled.",
}

_CALL_DESCRIPTIONS: dict[str, str] = {
    CallStatus.RINGING.value: "Customer phone is ringing",
    CallStatus.IN_PROGRESS.value: "Customer answered, call is in progress",
    CallStatus.COMPLETED.value: "Call completed successfully",
    CallStatus.BUSY.value: "Customer line is busy",
    CallStatus.NO_ANSWER.value: "Customer did not answer",
    CallStatus.FAILED.value: "Call failed",
    CallStatus.CANCELED.value: "Call was canceled",
}


def _normalize(status: str | DialStatus | CallStatus | None) -> str:
    if isinstance(status, Enum):
        return str(status.value)
    return (status or "").strip()


def dial_status_message(status: str | DialStatus | None) -> str:
    """Return what the caller hears once a ``<Dial>`` finishes.

    Unknown, missing or unlisted values (``answered`` included) get the
    default message.
    """

    return _DIAL_MESSAGES.get(_normalize(status), DEFAULT_DIAL_MESSAGE)


def call_status_description(status: str | CallStatus | None) -> str | None:
    return _CALL_DESCRIPTIONS.get(_normalize(status))
