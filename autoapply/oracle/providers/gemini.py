"""Google Gemini LLM provider (google-genai SDK)."""

from typing import Any

from autoapply.oracle.providers.base import LLMProvider


class GeminiProvider(LLMProvider):
    """Gemini via ``google-genai``; the profile goes in ``system_instruction``."""

    _types: Any = None

    @property
    def provider_id(self) -> str:
        return "gemini"

    @property
    def default_model(self) -> str:
        return "gemini-2.0-flash"

    @property
    def env_var(self) -> str:
        return "GOOGLE_API_KEY"

    def _create_client(self, api_key: str | None) -> Any:
        try:
            from google import genai
            from google.genai import types as genai_types
        except ImportError:
            msg = (
                "google-genai is required for the Gemini oracle. "
                "Install with: pip install 'autoapply-engine[gemini]'"
            )
            raise ImportError(msg) from None
        self._types = genai_types
        return genai.Client(api_key=api_key)

    def _request(
        self,
        client: Any,
        model: str,
        system: str,
        prompt: str,
        max_tokens: int,
    ) -> str | None:
        response = client.models.generate_content(
            model=model,
            contents=prompt,
            config=self._types.GenerateContentConfig(
                system_instruction=system,
                max_output_tokens=max_tokens,
                temperature=self.temperature,
            ),
        )
        return response.text  # type: ignore[no-any-return]
