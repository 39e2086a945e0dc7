"""
=====================================================
AI Receptionist - ElevenLabs TTS Service
=====================================================
Text-to-Speech for "play" speech mode: each reply is synthesized
to an MP3 that the call plays with <Play>.
"""

import asyncio
from typing import Optional

from elevenlabs.client import ElevenLabs
from loguru import logger

from .tts_base import TTSRequest, TTSResponse, TTSServiceBase


class ElevenLabsTTS(TTSServiceBase):
    """
    ElevenLabs TTS Service

    The multilingual model speaks both English and French with the
    same voice, so one voice covers every caller.
    """

    # Voice names accepted in ELEVENLABS_VOICE_ID
    VOICE_IDS = {
        "Rachel": "21m00Tcm4TlvDq8ikWAM",
        "Charlotte": "XB0fDUnXU5powFXDhCwa",
    }

    def __init__(
        self,
        api_key: str,
        default_voice_id: str = "Rachel",
        model: str = "eleven_multilingual_v2",
        output_format: str = "mp3_22050_32",
    ):
        """
        Initialize ElevenLabs TTS service

        Args:
            api_key: ElevenLabs API key
            default_voice_id: Default voice name (will be mapped to voice_id)
            model: Model to use (eleven_multilingual_v2 for English + French)
            output_format: Audio output format (MP3 so Twilio can <Play> it)
        """
        super().__init__(api_key, default_voice_id)

        self.model = model
        self.output_format = output_format

        # Reuse ElevenLabs client (don't recreate per call)
        self._client = ElevenLabs(api_key=self.api_key)

    def _get_voice_id(self, voice_name: str) -> str:
        """Convert voice name to voice_id"""
        return self.VOICE_IDS.get(voice_name, voice_name)  # Otherwise already a voice_id

    def _convert_sync(self, text: str, voice_id: str) -> bytes:
        audio = self._client.text_to_speech.convert(
            text=text,
            voice_id=voice_id,
            model_id=self.model,
            output_format=self.output_format,
        )
        if isinstance(audio, bytes):
            return audio
        # Generator of chunks
        buffer = bytearray()
        for chunk in audio:
            buffer.extend(chunk)
        return bytes(buffer)

    async def synthesize(self, request: TTSRequest) -> TTSResponse:
        voice_id = self._get_voice_id(request.voice_id or self.default_voice_id)
        logger.info(f"ElevenLabs: Synthesizing '{request.text[:50]}...' with voice {voice_id}")

        try:
            audio_data = await asyncio.to_thread(self._convert_sync, request.text, voice_id)
        except Exception as e:
            logger.error(f"ElevenLabs: Synthesis error: {e}")
            raise

        return TTSResponse(
            audio_data=audio_data,
            format="mp3",
            text=request.text,
            metadata={"voice_id": voice_id, "language": request.language},
        )


# Factory function
def create_elevenlabs_tts(config: dict) -> Optional[ElevenLabsTTS]:
    """
    Factory function to create ElevenLabs TTS service from config

    Args:
        config: Configuration dictionary (from Settings)

    Returns:
        Configured ElevenLabsTTS instance or None if no API key is set
    """
    if not config.get("elevenlabs_api_key"):
        logger.warning("ElevenLabs: No API key configured, play mode will fall back to <Say>")
        return None

    try:
        return ElevenLabsTTS(
            api_key=config.get("elevenlabs_api_key"),
            default_voice_id=config.get("elevenlabs_voice_id", "Rachel"),
            model=config.get("elevenlabs_model", "eleven_multilingual_v2"),
            output_format=config.get("elevenlabs_output_format", "mp3_22050_32"),
        )
    except Exception as e:
        logger.error(f"Failed to initialize ElevenLabs TTS: {e}")
        return None
