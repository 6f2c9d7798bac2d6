"""Anthropic Claude LLM provider."""

from typing import Any

from autoapply.oracle.providers.base import LLMProvider


class AnthropicProvider(LLMProvider):
    """Claude via the Messages API; the applicant profile is the system block."""

    @property
    def provider_id(self) -> str:
        return "anthropic"

    @property
    def default_model(self) -> str:
        return "claude-3-5-haiku-latest"

    @property
    def env_var(self) -> str:
        return "ANTHROPIC_API_KEY"

    def _create_client(self, api_key: str | None) -> Any:
        try:
            import anthropic
        except ImportError:
            msg = (
                "anthropic is required for the Anthropic oracle. "
                "Install with: pip install 'autoapply-engine[anthropic]'"
            )
            raise ImportError(msg) from None
        return anthropic.Anthropic(api_key=api_key)

    def _request(
        self,
        client: Any,
        model: str,
        system: str,
        prompt: str,
        max_tokens: int,
    ) -> str | None:
        message = client.messages.create(
            model=model,
            max_tokens=max_tokens,
            temperature=self.temperature,
            system=system,
            messages=[{"role": "user", "content": prompt}],
        )
        # Replies may lead with non-text blocks; the answer is the first text one.
        texts = [block.text for block in message.content if getattr(block, "text", None)]
        return texts[0] if texts else None
