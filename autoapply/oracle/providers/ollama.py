"""Ollama local LLM provider (OpenAI-compatible API)."""

import os
from typing import Any

from autoapply.oracle.providers.openai import OpenAIProvider, import_openai

_OLLAMA_BASE_URL = "http://localhost:11434/v1"


class OllamaProvider(OpenAIProvider):
    """A local Ollama server spoken to through the OpenAI client. No key needed."""

    @property
    def provider_id(self) -> str:
        return "ollama"

    @property
    def default_model(self) -> str:
        return "llama3"

    @property
    def env_var(self) -> None:
        return None

    def _create_client(self, api_key: str | None) -> Any:
        openai = import_openai("Ollama (OpenAI-compatible API)")
        base_url = os.environ.get("OLLAMA_BASE_URL", _OLLAMA_BASE_URL)
        return openai.OpenAI(base_url=base_url, api_key="ollama")
