"""
=====================================================
AI Receptionist - OpenAI Text Completion Service
=====================================================
Chat completions used for the AI-fallback replies
"""

from typing import Optional
from loguru import logger
from openai import AsyncOpenAI

from .llm_base import (
    LLMServiceBase,
    LLMRequest,
    LLMResponse,
    LLMRole
)


class OpenAILLM(LLMServiceBase):
    """
    OpenAI chat completion service

    Errors (timeout, quota, malformed response) propagate to the
    caller; the Response Composer decides how to recover.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        base_url: Optional[str] = None,
        timeout: float = 15.0
    ):
        """
        Initialize OpenAI LLM service

        Args:
            api_key: OpenAI API key
            model: Model to use
            base_url: Optional custom base URL
            timeout: Request timeout in seconds
        """
        super().__init__(api_key, model)

        self._client: Optional[AsyncOpenAI] = None
        self._base_url = base_url
        self._timeout = timeout

    def _get_client(self) -> AsyncOpenAI:
        """Get or create OpenAI client"""
        if self._client is None:
            kwargs = {"api_key": self.api_key, "timeout": self._timeout}
            if self._base_url:
                kwargs["base_url"] = self._base_url
            self._client = AsyncOpenAI(**kwargs)
        return self._client

    async def chat(self, request: LLMRequest) -> LLMResponse:
        """
        Non-streaming chat completion

        Args:
            request: LLM request

        Returns:
            Complete LLM response
        """
        client = self._get_client()

        try:
            messages = [msg.to_dict() for msg in request.messages]

            logger.info(f"OpenAI: Sending {len(messages)} messages to {self.model}")

            response = await client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=request.temperature,
                max_tokens=request.max_tokens,
                stream=False,
            )

            choice = response.choices[0]
            content = choice.message.content or ""
            usage = getattr(response, "usage", None)

            return LLMResponse(
                content=content,
                role=LLMRole.ASSISTANT,
                finish_reason=choice.finish_reason,
                tokens_used=usage.total_tokens if usage else 0,
                metadata={"model": response.model}
            )

        except Exception as e:
            logger.error(f"OpenAI: Chat error: {e}")
            raise


# Factory function
def create_openai_llm(config: dict) -> OpenAILLM:
    """
    Factory function to create OpenAI LLM service from config

    Args:
        config: Configuration dictionary (from Settings)

    Returns:
        Configured OpenAILLM instance
    """
    return OpenAILLM(
        api_key=config.get('openai_api_key'),
        model=config.get('openai_model', 'gpt-4o-mini'),
    )
