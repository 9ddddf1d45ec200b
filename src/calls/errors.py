"""Domain-specific exceptions for the voice gateway.

Each error carries the HTTP status it maps to; a single exception handler in
``main`` turns them into ``{"detail": ...}`` responses.
"""

from __future__ import annotations


class VoiceGatewayError(Exception):
    status_code: int = 500
    default_detail: str = "Voice gateway error"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.default_detail)
        self.detail = detail or self.default_detail


class MissingInputError(VoiceGatewayError):
    status_code = 400
    default_detail = "Required input is missing."


class InvalidTwilioSignatureError(VoiceGatewayError):
    status_code = 403
    default_detail = "Invalid Twilio request signature."


class TwilioConfigurationError(VoiceGatewayError):
    status_code = 500
    default_detail = "Twilio credentials are not configured."


class TwilioServiceError(VoiceGatewayError):
    status_code = 500
    default_detail = "Twilio request failed."
