"""Webhook surface tests with FastAPI's TestClient."""

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from twilio.request_validator import RequestValidator

from api.main import app, settings
from services.conversation.call_flow import get_call_flow
from services.conversation.receptionist import get_chat_receptionist

CALLER = "+15550001111"


@pytest.fixture
def client(call_flow, chat_receptionist):
    app.dependency_overrides[get_call_flow] = lambda: call_flow
    app.dependency_overrides[get_chat_receptionist] = lambda: chat_receptionist
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_incoming_call_returns_twiml(client):
    response = client.post("/voice/incoming", data={"CallSid": "CA1", "From": CALLER})
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/xml")
    assert "<Gather" in response.text


def test_handle_without_speech_records_voicemail(client, call_flow):
    client.post("/voice/incoming", data={"CallSid": "CA2", "From": CALLER})
    response = client.post("/voice/handle", data={"CallSid": "CA2", "From": CALLER})
    assert "<Record" in response.text
    assert call_flow.sessions.active_count == 0


def test_handle_fees_question(client, sink):
    response = client.post(
        "/voice/handle",
        data={"CallSid": "CA3", "From": CALLER, "SpeechResult": "What are your fees?"},
    )
    assert "Toddler: $900/month" in response.text
    assert sink.entries[0].channel == "voice"


def test_final_and_status(client, call_flow):
    client.post("/voice/handle", data={"CallSid": "CA4", "From": CALLER, "SpeechResult": "What are your hours?"})
    response = client.post("/voice/final", data={"CallSid": "CA4", "From": CALLER, "SpeechResult": ""})
    assert "Goodbye" in response.text

    assert client.post("/voice/status", data={"CallSid": "CA4", "CallStatus": "completed"}).status_code == 204
    assert "CA4" not in call_flow.sessions


def test_transfer_status(client):
    client.post("/voice/handle", data={"CallSid": "CA5", "From": CALLER, "SpeechResult": "urgent"})
    response = client.post(
        "/voice/transfer-status",
        data={"CallSid": "CA5", "From": CALLER, "DialCallStatus": "no-answer"},
    )
    assert "unavailable" in response.text


def test_voicemail_transcription(client, sink):
    response = client.post(
        "/voice/voicemail-transcribed",
        data={"From": CALLER, "TranscriptionText": "Please call me back"},
    )
    assert response.status_code == 200
    assert sink.entries[0].intent == "voicemail"


def test_whatsapp_message(client, sink):
    response = client.post(
        "/whatsapp",
        data={"Body": "What are your fees?", "From": "whatsapp:+15550001111", "ProfileName": "Maya"},
    )
    assert "<Message>" in response.text
    assert "Toddler: $900/month" in response.text
    assert sink.entries[0].name == "Maya"
    assert sink.entries[0].channel == "chat"


def test_voice_error_falls_back_to_apology(client, call_flow, monkeypatch):
    async def broken(call_sid, caller):
        raise RuntimeError("boom")

    monkeypatch.setattr(call_flow, "greet", broken)
    response = client.post("/voice/incoming", data={"CallSid": "CA6", "From": CALLER})
    assert response.status_code == 200
    assert "trouble" in response.text
    assert "<Hangup" in response.text


def test_audio_served_from_cache(client, call_flow):
    token = call_flow.renderer.cache.put(b"ID3audio")
    response = client.get(f"/audio/{token}.mp3")
    assert response.status_code == 200
    assert response.content == b"ID3audio"
    assert client.get("/audio/missing.mp3").status_code == 404


def test_stats(client):
    client.post("/voice/incoming", data={"CallSid": "CA7", "From": CALLER})
    body = client.get("/api/stats").json()
    assert body["active_calls"] == 1


def test_stats_skip_abandoned_calls(client, call_flow):
    client.post("/voice/incoming", data={"CallSid": "CA10", "From": CALLER})
    call_flow.sessions.get("CA10").started_at -= timedelta(seconds=call_flow.options.session_max_age() + 1)
    assert client.get("/api/stats").json()["active_calls"] == 0


class TestSignature:
    @pytest.fixture(autouse=True)
    def strict(self, monkeypatch):
        monkeypatch.setattr(settings, "validate_twilio_signature", True)
        monkeypatch.setattr(settings, "twilio_auth_token", "secret")
        monkeypatch.setattr(settings, "public_base_url", "https://example.test")

    def test_missing_signature_rejected(self, client):
        response = client.post("/voice/incoming", data={"CallSid": "CA8", "From": CALLER})
        assert response.status_code == 403

    def test_valid_signature_accepted(self, client):
        params = {"CallSid": "CA9", "From": CALLER}
        signature = RequestValidator("secret").compute_signature("https://example.test/voice/incoming", params)
        response = client.post("/voice/incoming", data=params, headers={"X-Twilio-Signature": signature})
        assert response.status_code == 200

    def test_health_is_open(self, client):
        assert client.get("/health").status_code == 200
