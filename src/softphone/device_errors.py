from __future__ import annotations

from typing import Final

NUMBER_NOT_VERIFIED: Final[int] = 21218
NUMBER_NOT_REACHABLE: Final[int] = 21606

_KNOWN_ERRORS: Final[dict[int, str]] = {
    NUMBER_NOT_VERIFIED: "Error: Number not verified (Trial Account)",
    NUMBER_NOT_REACHABLE: "Error: Number not reachable",
}


def describe_device_error(code: int | str | None, message: str | None = None) -> str:
    """Status text shown to the agent for a device ``error`` event.

    Trial accounts can only dial verified numbers, hence the dedicated text for
    those codes.
    """

    try:
        numeric = int(code) if code is not None else None
    except (TypeError, ValueError):
        numeric = None

    if numeric in _KNOWN_ERRORS:
        return _KNOWN_ERRORS[numeric]
    return f"Error: {message or 'Unknown device error'}"
