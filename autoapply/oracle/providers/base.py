"""Abstract base class for LLM providers and shared logic.

Screening answers are one line, so every provider defaults to a small
completion budget and a low temperature. Each provider instance builds its
SDK client once, on first use, and reuses it for every later question.
"""

import logging
import os
import re
from abc import ABC, abstractmethod
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = (
    "You are a job applicant filling in screening questions on a job portal. "
    "Answer in the first person, truthfully and briefly. "
    "Always answer in short, crisp, one-line responses like a real applicant."
)

ANSWER_MAX_TOKENS = 128
ANSWER_TEMPERATURE = 0.2


def clean_response(raw_text: str | None) -> str:
    """Normalize a model reply: drop markdown fences and surrounding quotes.

    Returns "" for a missing or whitespace-only reply.
    """
    if not raw_text:
        return ""
    cleaned = re.sub(r"^```(?:\w+)?\s*\n?", "", raw_text.strip())
    cleaned = re.sub(r"\n?```\s*$", "", cleaned)
    return cleaned.strip().strip('"').strip()


class LLMProvider(ABC):
    """Base class that every LLM provider must implement.

    Subclasses supply the SDK client and the single request shape; key
    lookup, client reuse and the answer-sized defaults live here.
    """

    def __init__(
        self,
        *,
        max_tokens: int = ANSWER_MAX_TOKENS,
        temperature: float = ANSWER_TEMPERATURE,
    ) -> None:
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._client: Any = None

    @property
    @abstractmethod
    def provider_id(self) -> str:
        """Unique identifier for this provider (e.g. 'gemini')."""

    @property
    @abstractmethod
    def default_model(self) -> str:
        """The default model ID used when no override is specified."""

    @property
    @abstractmethod
    def env_var(self) -> str | None:
        """Environment variable name for the API key, or None if not needed."""

    @abstractmethod
    def _create_client(self, api_key: str | None) -> Any:
        """Import the SDK and build a client.

        Raises:
            ImportError: With an install hint when the SDK is missing.
        """

    @abstractmethod
    def _request(
        self,
        client: Any,
        model: str,
        system: str,
        prompt: str,
        max_tokens: int,
    ) -> str | None:
        """Send one system + user turn and return the reply text."""

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = self._create_client(self._api_key())
            logger.debug("Created %s client", self.provider_id)
        return self._client

    def _api_key(self) -> str | None:
        if self.env_var is None:
            return None
        api_key = os.environ.get(self.env_var)
        if not api_key:
            msg = f"{self.env_var} environment variable is required"
            raise ValueError(msg)
        return api_key

    def complete(
        self,
        prompt: str,
        model: str | None = None,
        *,
        system: str | None = None,
        max_tokens: int | None = None,
    ) -> str:
        """Send a prompt to the LLM and return the raw response text.

        Args:
            prompt: User turn text.
            model: Override the provider's default model. None uses default.
            system: System instruction. None falls back to DEFAULT_SYSTEM_PROMPT.
            max_tokens: Completion budget. None uses the instance default.

        Returns:
            Raw text response from the LLM ("" when the reply has no text).
        """
        use_model = model or self.default_model
        use_system = system if system is not None else DEFAULT_SYSTEM_PROMPT
        logger.debug("Asking %s (%s)", self.provider_id, use_model)
        reply = self._request(
            self.client, use_model, use_system, prompt, max_tokens or self.max_tokens,
        )
        return reply or ""
