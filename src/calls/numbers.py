"""Helpers for turning caller-supplied targets into dialable numbers."""

from __future__ import annotations

import re

CLIENT_PREFIX = "client:"

_NON_DIALABLE = re.compile(r"[^\d+]")


def sanitize_phone_number(raw: str | None) -> str:
    """Strip everything except digits and a leading ``+``.

    >>> sanitize_phone_number("+1 (415) 555-0100")
    '+14155550100'
    >>> sanitize_phone_number("0041+79 123")
    '004179123'
    """

    cleaned = _NON_DIALABLE.sub("", raw or "")
    digits = cleaned.replace("+", "")
    if cleaned.startswith("+") and digits:
        return "+" + digits
    return digits


def strip_client_prefix(value: str) -> str:
    if value.startswith(CLIENT_PREFIX):
        return value[len(CLIENT_PREFIX):]
    return value


def dial_target(to: str | None) -> str | None:
    """Resolve the ``To`` parameter of the voice webhook.

    ``None`` means there is nothing to dial (no target or the bare ``client``
    marker). An empty string means a target was given but held no digits.
    """

    value = (to or "").strip()
    if not value or value == "client":
        return None
    return sanitize_phone_number(strip_client_prefix(value))
