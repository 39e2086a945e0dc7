"""
=====================================================
AI Receptionist - Speech Renderer
=====================================================
Puts spoken lines into TwiML in one of two ways:
- "say":  <Say> with an Amazon Polly voice per language
- "play": ElevenLabs audio, cached in memory and played with <Play>

Play mode falls back to <Say> when synthesis fails, so a TTS
outage never leaves the caller in silence.
"""

import uuid
from collections import OrderedDict
from typing import Callable, Dict, Optional, Tuple

from loguru import logger

from services.language.language_detector import Language
from services.tts.tts_base import TTSRequest, TTSServiceBase

SAY_MODE = "say"
PLAY_MODE = "play"

# Polly voice + locale per caller language
POLLY_VOICES: Dict[Language, Tuple[str, str]] = {
    Language.ENGLISH: ("Polly.Joanna", "en-US"),
    Language.FRENCH: ("Polly.Celine", "fr-CA"),
}

TTS_LANGUAGE_CODES: Dict[Language, str] = {
    Language.ENGLISH: "en",
    Language.FRENCH: "fr",
}


class AudioCache:
    """
    Synthesized clips waiting to be fetched by Twilio.

    Oldest clips are evicted once max_items is reached.
    """

    def __init__(self, max_items: int = 200):
        self.max_items = max_items
        self._clips: "OrderedDict[str, bytes]" = OrderedDict()

    def put(self, audio: bytes) -> str:
        token = uuid.uuid4().hex
        self._clips[token] = audio
        while len(self._clips) > self.max_items:
            self._clips.popitem(last=False)
        return token

    def get(self, token: str) -> Optional[bytes]:
        return self._clips.get(token)

    def __len__(self) -> int:
        return len(self._clips)


class SpeechRenderer:
    """
    Appends speech to a VoiceResponse or a nested verb (e.g. Gather)

    Args:
        mode: "say" or "play"
        url_for: Builds the absolute URL for a path (play mode)
        tts: Synthesis service (play mode)
        cache: Where synthesized clips are held until fetched
    """

    def __init__(
        self,
        mode: str = SAY_MODE,
        url_for: Optional[Callable[[str], str]] = None,
        tts: Optional[TTSServiceBase] = None,
        cache: Optional[AudioCache] = None,
    ):
        self.mode = mode
        self.url_for = url_for or (lambda path: path)
        self.tts = tts
        self.cache = cache or AudioCache()

        if self.mode == PLAY_MODE and self.tts is None:
            logger.warning("Speech: Play mode without a TTS service, using <Say>")

    @property
    def plays_audio(self) -> bool:
        return self.mode == PLAY_MODE and self.tts is not None

    async def speak(self, verb, text: str, language: Language = Language.ENGLISH) -> None:
        """Append one spoken line to the TwiML verb"""
        if self.plays_audio:
            try:
                response = await self.tts.synthesize(
                    TTSRequest(text=text, language=TTS_LANGUAGE_CODES[language])
                )
                token = self.cache.put(response.audio_data)
                verb.play(self.url_for(f"/audio/{token}.mp3"))
                return
            except Exception as e:
                logger.error(f"Speech: Synthesis failed, using <Say>: {e}")

        voice, locale = POLLY_VOICES[language]
        verb.say(text, voice=voice, language=locale)
