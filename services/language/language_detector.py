"""
=====================================================
AI Receptionist - Language Detector
=====================================================
Classifies an utterance as English or French.
"""

from enum import Enum
from typing import Callable, Optional, Tuple

from langdetect import DetectorFactory, detect
from langdetect.lang_detect_exception import LangDetectException
from loguru import logger

# langdetect is non-deterministic unless seeded
DetectorFactory.seed = 0


class Language(Enum):
    """Languages the receptionist answers in"""
    ENGLISH = "English"
    FRENCH = "French"


FRENCH_GREETINGS: Tuple[str, ...] = ("bonjour", "salut")


def _langdetect_guess(text: str) -> Optional[str]:
    """ISO 639-1 guess from langdetect, None when it cannot decide"""
    try:
        return detect(text)
    except LangDetectException:
        return None


class LanguageDetector:
    """
    Statistical guess plus a French greeting override.

    Never raises: anything it cannot classify is English.
    """

    def __init__(
        self,
        guess: Callable[[str], Optional[str]] = _langdetect_guess,
        french_tokens: Tuple[str, ...] = FRENCH_GREETINGS,
    ):
        self._guess = guess
        self._french_tokens = french_tokens

    def detect(self, text: str) -> Language:
        if not text or not text.strip():
            return Language.ENGLISH

        lower = text.lower()
        if any(token in lower for token in self._french_tokens):
            return Language.FRENCH

        try:
            code = self._guess(text)
        except Exception as e:
            logger.warning(f"LanguageDetector: guess failed, defaulting to English: {e}")
            return Language.ENGLISH

        return Language.FRENCH if code == "fr" else Language.ENGLISH


# Global instance
_language_detector: Optional[LanguageDetector] = None


def get_language_detector() -> LanguageDetector:
    """Get global language detector instance"""
    global _language_detector
    if _language_detector is None:
        _language_detector = LanguageDetector()
    return _language_detector
