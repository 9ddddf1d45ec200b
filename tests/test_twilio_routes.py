from __future__ import annotations

import xml.etree.ElementTree as ET

from sqlalchemy.exc import SQLAlchemyError
from twilio.request_validator import RequestValidator


class RecordingHub:
    def __init__(self) -> None:
        self.events = []

    async def publish(self, event) -> int:
        self.events.append(event)
        return 1


class FailingRepository:
    async def add_event(self, event):
        raise SQLAlchemyError("database is locked")


def _use_hub(app) -> RecordingHub:
    import api.dependencies as deps

    hub = RecordingHub()
    app.dependency_overrides[deps.get_status_hub] = lambda: hub
    return hub


def test_voice_webhook_dials_sanitized_number(client):
    resp = client.post(
        "/voice",
        data={"To": "client:+1 (415) 555-0100", "From": "client:alice", "CallSid": "CA100"},
    )

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("application/xml")
    dial = ET.fromstring(resp.text).find("Dial")
    assert dial.find("Number").text == "+14155550100"
    assert dial.get("callerId") == "+15005550006"
    assert dial.get("timeout") == "30"
    assert dial.get("record") == "do-not-record"
    assert dial.get("action") == "http://testserver/dial-status"


def test_voice_webhook_uses_public_base_url_for_dial_action(client, override_settings):
    override_settings(public_base_url="https://voice.example.com/")

    resp = client.post("/voice", data={"To": "+14155550100"})

    dial = ET.fromstring(resp.text).find("Dial")
    assert dial.get("action") == "https://voice.example.com/dial-status"


def test_voice_webhook_welcomes_when_there_is_no_target(client):
    for data in ({}, {"To": "client"}):
        resp = client.post("/voice", data=data)
        assert resp.status_code == 200
        assert ET.fromstring(resp.text).find("Say").text == "Welcome to our calling system."


def test_voice_webhook_reports_missing_digits(client):
    resp = client.post("/voice", data={"To": "client:alice"})
    assert ET.fromstring(resp.text).find("Say").text == "No number provided"


def test_voice_webhook_falls_back_when_twiml_building_fails(client, monkeypatch):
    from calls import twiml

    def _boom(*args, **kwargs):
        raise ValueError("bad attribute")

    monkeypatch.setattr(twiml, "outbound_dial", _boom)

    resp = client.post("/voice", data={"To": "+14155550100"})

    assert resp.status_code == 200
    assert ET.fromstring(resp.text).find("Say").text == "An error occurred. Please try again."


def test_dial_status_speaks_outcome_and_records_event(app, client):
    hub = _use_hub(app)

    resp = client.post(
        "/dial-status",
        data={"CallSid": "CA200", "DialCallStatus": "busy", "DialCallDuration": "0"},
    )

    assert resp.status_code == 200
    assert ET.fromstring(resp.text).find("Say").text == (
        "The customer line is busy. Please try again later."
    )
    assert [(e.kind, e.status, e.duration_seconds) for e in hub.events] == [("dial", "busy", 0)]

    events = client.get("/call-events/CA200").json()
    assert len(events) == 1
    assert events[0]["kind"] == "dial"
    assert events[0]["status"] == "busy"


def test_dial_status_unknown_value_uses_default_message(app, client):
    _use_hub(app)
    resp = client.post("/dial-status", data={"CallSid": "CA201", "DialCallStatus": "answered"})
    assert ET.fromstring(resp.text).find("Say").text == "Call ended."


def test_call_status_returns_ok_and_records_event(app, client):
    hub = _use_hub(app)

    resp = client.post(
        "/call-status",
        data={
            "CallSid": "CA300",
            "CallStatus": "in-progress",
            "To": "+14155550100",
            "From": "client:alice",
            "Direction": "outbound-dial",
        },
    )

    assert resp.status_code == 200
    assert resp.text == "OK"
    assert hub.events[0].status == "in-progress"

    events = client.get("/call-events/CA300").json()
    assert events[0]["to_number"] == "+14155550100"
    assert events[0]["from_number"] == "client:alice"
    assert events[0]["direction"] == "outbound-dial"


def test_call_status_ignores_non_numeric_duration(app, client):
    hub = _use_hub(app)
    client.post("/call-status", data={"CallSid": "CA301", "CallStatus": "completed", "CallDuration": "n/a"})
    assert hub.events[0].duration_seconds is None


def test_call_status_still_succeeds_when_recording_fails(app, client):
    import api.dependencies as deps

    hub = _use_hub(app)
    app.dependency_overrides[deps.get_event_repository] = lambda: FailingRepository()

    resp = client.post("/call-status", data={"CallSid": "CA302", "CallStatus": "failed"})

    assert resp.status_code == 200
    assert len(hub.events) == 1


def test_recent_call_events_lists_newest_first(client):
    client.post("/call-status", data={"CallSid": "CA400", "CallStatus": "ringing"})
    client.post("/call-status", data={"CallSid": "CA400", "CallStatus": "completed"})

    recent = client.get("/call-events", params={"limit": 2}).json()
    assert [event["status"] for event in recent] == ["completed", "ringing"]

    history = client.get("/call-events/CA400").json()
    assert [event["status"] for event in history] == ["ringing", "completed"]


def test_call_status_is_broadcast_over_websocket(client):
    with client.websocket_connect("/ws/call-status") as ws:
        client.post(
            "/call-status",
            data={"CallSid": "CA500", "CallStatus": "ringing", "To": "+14155550100"},
        )
        message = ws.receive_json()

    assert message["type"] == "call-status"
    assert message["callSid"] == "CA500"
    assert message["status"] == "ringing"
    assert message["to"] == "+14155550100"


def test_webhooks_reject_missing_signature_when_validation_enabled(client, override_settings):
    override_settings(twilio_validate_signatures="true")

    resp = client.post("/call-status", data={"CallSid": "CA600", "CallStatus": "ringing"})

    assert resp.status_code == 403
    assert resp.json()["detail"] == "Invalid Twilio request signature."


def test_webhooks_accept_valid_signature(client, override_settings):
    override_settings(twilio_validate_signatures="true")
    params = {"CallSid": "CA601", "CallStatus": "ringing"}
    signature = RequestValidator("test-auth-token").compute_signature(
        "http://testserver/call-status", params
    )

    resp = client.post("/call-status", data=params, headers={"X-Twilio-Signature": signature})

    assert resp.status_code == 200


def test_voice_webhook_falls_back_on_any_error(client, monkeypatch):
    from calls import twiml

    def _boom(*args, **kwargs):
        raise KeyError("x")

    monkeypatch.setattr(twiml, "outbound_dial", _boom)

    resp = client.post("/voice", data={"To": "+14155550100"})

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("application/xml")
    assert ET.fromstring(resp.text).find("Say").text == "An error occurred. Please try again."


def test_websocket_ignores_binary_frames(client):
    with client.websocket_connect("/ws/call-status") as ws:
        ws.send_bytes(b"\x00")
        ws.send_text("ping")
        client.post("/call-status", data={"CallSid": "CA501", "CallStatus": "completed"})
        message = ws.receive_json()

    assert message["callSid"] == "CA501"
    assert message["status"] == "completed"


def test_call_events_timestamps_are_utc(client):
    client.post("/call-status", data={"CallSid": "CA700", "CallStatus": "ringing"})

    created_at = client.get("/call-events/CA700").json()[0]["created_at"]

    assert created_at.endswith(("Z", "+00:00"))
