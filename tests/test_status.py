from __future__ import annotations

import pytest

from calls.status import (
    DEFAULT_DIAL_MESSAGE,
    CallStatus,
    DialStatus,
    call_status_description,
    dial_status_message,
)


@pytest.mark.parametrize(
    ("status", "expected"),
    [
        ("completed", "Call completed. Thank you."),
        ("busy", "The customer line is busy. Please try again later."),
        ("no-answer", "The customer did not answer. Please try again later."),
        ("failed", "The call failed. Please check the number and try again."),
        ("canceled", "The call was canceled."),
    ],
)
def test_dial_status_message_for_enumerated_statuses(status, expected):
    assert dial_status_message(status) == expected


@pytest.mark.parametrize("status", [None, "", "answered", "COMPLETED", "no_answer", "ringing", "garbage"])
def test_dial_status_message_falls_through_to_default(status):
    assert dial_status_message(status) == DEFAULT_DIAL_MESSAGE


def test_dial_status_message_accepts_enum_members():
    assert dial_status_message(DialStatus.BUSY) == dial_status_message("busy")


def test_every_dial_status_has_its_own_message():
    messages = {dial_status_message(status) for status in DialStatus}
    assert len(messages) == len(DialStatus)
    assert DEFAULT_DIAL_MESSAGE not in messages


def test_call_status_description_covers_progress_and_terminal_states():
    assert call_status_description("ringing") == "Customer phone is ringing"
    assert call_status_description(CallStatus.IN_PROGRESS) == "Customer answered, call is in progress"
    assert call_status_description(" canceled ") == "Call was canceled"


@pytest.mark.parametrize("status", [None, "queued", "initiated", "unknown"])
def test_call_status_description_is_none_for_unlisted_values(status):
    assert call_status_description(status) is None
