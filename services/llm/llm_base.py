"""
=====================================================
AI Receptionist - Text Completion Service Interface
=====================================================
Abstract base class for LLM (Large Language Model) providers
"""

from abc import ABC, abstractmethod
from typing import Optional, List, Dict, Any
from dataclasses import dataclass, field
from enum import Enum


class LLMRole(Enum):
    """Roles in conversation"""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class Message:
    """Conversation message"""
    role: LLMRole
    content: str

    def to_dict(self) -> dict:
        """Convert to dictionary for API calls"""
        return {
            "role": self.role.value,
            "content": self.content
        }


@dataclass
class LLMRequest:
    """Request for LLM completion"""
    messages: List[Message]
    temperature: float = 0.7
    max_tokens: int = 120
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def single_turn(cls, system: str, user: str, temperature: float = 0.7,
                    max_tokens: int = 120) -> "LLMRequest":
        """System instruction plus one user utterance"""
        return cls(
            messages=[
                Message(role=LLMRole.SYSTEM, content=system),
                Message(role=LLMRole.USER, content=user),
            ],
            temperature=temperature,
            max_tokens=max_tokens,
        )


@dataclass
class LLMResponse:
    """Response from LLM"""
    content: str
    role: LLMRole = LLMRole.ASSISTANT
    finish_reason: Optional[str] = None
    tokens_used: int = 0
    metadata: Dict[str, Any] = field(default_factory=dict)


class LLMServiceBase(ABC):
    """
    Abstract base class for LLM services

    The receptionist treats the provider as an opaque text-completion
    service: one request in, one reply string out, or an exception.
    """

    def __init__(self, api_key: str, model: str):
        """
        Initialize LLM service

        Args:
            api_key: Provider API key
            model: Model identifier
        """
        self.api_key = api_key
        self.model = model

    @abstractmethod
    async def chat(self, request: LLMRequest) -> LLMResponse:
        """
        Non-streaming chat completion

        Args:
            request: LLM request

        Returns:
            Complete LLM response
        """
        pass
