"""
=====================================================
AI Receptionist - TTS Service Base Interface
=====================================================
Abstract base class for Text-to-Speech providers
(used when replies are played as audio instead of <Say>)
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class TTSRequest:
    """Request for TTS synthesis"""
    text: str
    language: str = "en"
    voice_id: Optional[str] = None
    metadata: Dict[str, Any] = None

    def __post_init__(self):
        if self.metadata is None:
            self.metadata = {}


@dataclass
class TTSResponse:
    """Response from TTS synthesis"""
    audio_data: bytes
    format: str  # mp3, ulaw, etc.
    text: str
    content_type: str = "audio/mpeg"
    metadata: Dict[str, Any] = None

    def __post_init__(self):
        if self.metadata is None:
            self.metadata = {}


class TTSServiceBase(ABC):
    """
    Abstract base class for Text-to-Speech services

    Providers must implement this interface for swapability.
    """

    def __init__(self, api_key: str, default_voice_id: str):
        """
        Initialize TTS service

        Args:
            api_key: Provider API key
            default_voice_id: Default voice to use
        """
        self.api_key = api_key
        self.default_voice_id = default_voice_id

    @abstractmethod
    async def synthesize(self, request: TTSRequest) -> TTSResponse:
        """
        Synthesize speech from text

        Args:
            request: TTS request with text and options

        Returns:
            TTS response with audio data
        """
        pass
