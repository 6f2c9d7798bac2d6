"""OpenAI chat-completions provider; also the transport for Ollama."""

from typing import Any

from autoapply.oracle.providers.base import LLMProvider


def chat_messages(system: str, prompt: str) -> list[dict[str, str]]:
    return [
        {"role": "system", "content": system},
        {"role": "user", "content": prompt},
    ]


def import_openai(hint: str) -> Any:
    try:
        import openai
    except ImportError:
        msg = f"openai is required for {hint}. Install with: pip install 'autoapply-engine[openai]'"
        raise ImportError(msg) from None
    return openai


class OpenAIProvider(LLMProvider):
    """OpenAI chat completions with a one-line answer budget."""

    @property
    def provider_id(self) -> str:
        return "openai"

    @property
    def default_model(self) -> str:
        return "gpt-4o-mini"

    @property
    def env_var(self) -> str | None:
        return "OPENAI_API_KEY"

    def _create_client(self, api_key: str | None) -> Any:
        return import_openai("the OpenAI oracle").OpenAI(api_key=api_key)

    def _request(
        self,
        client: Any,
        model: str,
        system: str,
        prompt: str,
        max_tokens: int,
    ) -> str | None:
        response = client.chat.completions.create(
            model=model,
            messages=chat_messages(system, prompt),
            max_tokens=max_tokens,
            temperature=self.temperature,
        )
        if not response.choices:
            return None
        return response.choices[0].message.content  # type: ignore[no-any-return]
