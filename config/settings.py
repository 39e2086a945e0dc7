"""
=====================================================
AI Receptionist - Configuration Module
=====================================================
Centralized configuration management using pydantic-settings
"""

from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # =====================================================
    # APPLICATION
    # =====================================================
    app_name: str = "AI Receptionist"
    app_version: str = "1.0.0"
    environment: str = Field(default="development", alias="ENVIRONMENT")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_file: str = Field(default="logs/ai-receptionist.log", alias="LOG_FILE")
    debug: bool = False

    # API
    api_host: str = "0.0.0.0"
    api_port: int = Field(default=3000, alias="PORT")
    # Public URL Twilio uses to reach the webhooks (ngrok / render domain)
    public_base_url: str = Field(default="http://localhost:3000", alias="PUBLIC_BASE_URL")

    # =====================================================
    # TWILIO
    # =====================================================
    twilio_account_sid: str = Field(default="", alias="TWILIO_ACCOUNT_SID")
    twilio_auth_token: str = Field(default="", alias="TWILIO_AUTH_TOKEN")
    twilio_phone_number: str = Field(default="", alias="DEFAULT_FROM_NUMBER")
    validate_twilio_signature: bool = Field(default=False, alias="VALIDATE_TWILIO_SIGNATURE")

    # =====================================================
    # ESCALATION
    # =====================================================
    owner_fallback_number: str = Field(default="", alias="OWNER_FALLBACK_NUMBER")
    owner_email: str = Field(default="", alias="OWNER_EMAIL")
    transfer_ring_timeout: int = Field(default=20, alias="TRANSFER_RING_TIMEOUT")

    # =====================================================
    # OPENAI
    # =====================================================
    openai_api_key: str = Field(default="", alias="OPENAI_API_KEY")
    openai_model: str = Field(default="gpt-4o-mini", alias="OPENAI_MODEL")
    openai_temperature: float = 0.7
    openai_max_tokens: int = 120  # Voice replies are 1-2 sentences

    # =====================================================
    # EMAIL (Microsoft Graph)
    # =====================================================
    msgraph_tenant_id: str = Field(default="", alias="MSGRAPH_TENANT_ID")
    msgraph_client_id: str = Field(default="", alias="MSGRAPH_CLIENT_ID")
    msgraph_client_secret: str = Field(default="", alias="MSGRAPH_CLIENT_SECRET")
    msgraph_sender_email: str = Field(default="", alias="MSGRAPH_SENDER_EMAIL")

    # =====================================================
    # INTERACTION LOG (Google Sheets + local backup)
    # =====================================================
    sheet_id: str = Field(default="", alias="SHEET_ID")
    sheet_worksheet: str = Field(default="", alias="SHEET_WORKSHEET")
    google_service_account_file: str = Field(default="", alias="GOOGLE_SERVICE_ACCOUNT_FILE")
    google_service_account_json: str = Field(default="", alias="GOOGLE_SERVICE_ACCOUNT_JSON")
    log_backup_path: str = Field(default="data/interactions.jsonl", alias="LOG_BACKUP_PATH")
    log_mirror_locally: bool = Field(default=False, alias="LOG_MIRROR_LOCALLY")
    log_sink_timeout_seconds: float = 5.0

    # =====================================================
    # CALL FLOW
    # =====================================================
    greeting_gather_timeout: int = 3  # Seconds of silence before voicemail
    follow_up_gather_timeout: int = 10  # "Anything else?" window
    voicemail_max_length: int = 120
    speech_mode: str = Field(default="say", alias="SPEECH_MODE")  # "say" (Polly) or "play" (ElevenLabs audio)
    offer_filler: bool = Field(default=True, alias="OFFER_FILLER")
    offer_goodbye: bool = Field(default=True, alias="OFFER_GOODBYE")
    send_follow_up_sms: bool = Field(default=True, alias="SEND_FOLLOW_UP_SMS")

    # =====================================================
    # ELEVENLABS TTS (speech_mode = "play")
    # =====================================================
    elevenlabs_api_key: str = Field(default="", alias="ELEVENLABS_API_KEY")
    elevenlabs_voice_id: str = Field(default="Rachel", alias="ELEVENLABS_VOICE_ID")
    elevenlabs_model: str = "eleven_multilingual_v2"
    elevenlabs_output_format: str = "mp3_22050_32"

    # =====================================================
    # BUSINESS PROFILE
    # =====================================================
    business_profile_path: Optional[str] = Field(default=None, alias="BUSINESS_PROFILE_PATH")

    @field_validator("speech_mode")
    @classmethod
    def _check_speech_mode(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in ("say", "play"):
            raise ValueError(f"SPEECH_MODE must be 'say' or 'play', got {value!r}")
        return value

    @field_validator("openai_temperature")
    @classmethod
    def _check_temperature(cls, value: float) -> float:
        if not 0.0 <= value <= 2.0:
            raise ValueError(f"openai_temperature must be between 0.0 and 2.0, got {value}")
        return value

    # =====================================================
    # PROPERTIES
    # =====================================================
    def callback_url(self, path: str) -> str:
        """Absolute webhook URL for the next call stage"""
        return f"{self.public_base_url.rstrip('/')}/{path.lstrip('/')}"


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get settings instance (for dependency injection)"""
    return settings
