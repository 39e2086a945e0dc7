"""Tests for settings loading and validation."""

import pytest
from pydantic import ValidationError

from config.settings import Settings


def test_defaults():
    settings = Settings(_env_file=None)
    assert settings.speech_mode == "say"
    assert settings.transfer_ring_timeout == 20
    assert settings.openai_max_tokens == 120
    assert settings.openai_temperature == 0.7
    assert settings.greeting_gather_timeout == 3
    assert settings.follow_up_gather_timeout == 10


def test_env_aliases(monkeypatch):
    monkeypatch.setenv("SPEECH_MODE", "Play")
    monkeypatch.setenv("OWNER_FALLBACK_NUMBER", "+17801234567")
    monkeypatch.setenv("DEFAULT_FROM_NUMBER", "+17809990000")
    settings = Settings(_env_file=None)
    assert settings.speech_mode == "play"
    assert settings.owner_fallback_number == "+17801234567"
    assert settings.twilio_phone_number == "+17809990000"


def test_invalid_speech_mode():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, speech_mode="sing")


def test_invalid_temperature():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, openai_temperature=3.5)


def test_callback_url():
    settings = Settings(_env_file=None, public_base_url="https://abc.ngrok.io/")
    assert settings.callback_url("/voice/handle") == "https://abc.ngrok.io/voice/handle"


def test_model_dump_uses_field_names():
    config = Settings(_env_file=None).model_dump()
    assert "twilio_phone_number" in config
    assert "log_backup_path" in config
