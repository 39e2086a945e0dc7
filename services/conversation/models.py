"""
=====================================================
AI Receptionist - Conversation Models
=====================================================
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Channel(Enum):
    """Inbound channel of a turn"""
    VOICE = "voice"
    CHAT = "chat"


@dataclass
class Turn:
    """One inbound utterance or message"""
    text: str
    channel: Channel
    caller: str
    caller_name: Optional[str] = None

    @property
    def display_name(self) -> str:
        if self.caller_name:
            return self.caller_name
        return "Caller" if self.channel == Channel.VOICE else "Unknown"
