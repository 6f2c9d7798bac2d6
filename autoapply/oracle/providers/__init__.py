"""LLM provider registry with lazy loading.

Usage:
    from autoapply.oracle.providers import get_provider

    provider = get_provider("gemini")
    answer = provider.complete("Are you willing to relocate?", system=instruction)
"""

import importlib

from autoapply.oracle.providers.base import LLMProvider, clean_response

__all__ = ["LLMProvider", "available_providers", "clean_response", "get_provider"]

# Lazy registry: maps provider name → (module_path, class_name)
_REGISTRY: dict[str, tuple[str, str]] = {
    "anthropic": ("autoapply.oracle.providers.anthropic", "AnthropicProvider"),
    "openai": ("autoapply.oracle.providers.openai", "OpenAIProvider"),
    "gemini": ("autoapply.oracle.providers.gemini", "GeminiProvider"),
    "ollama": ("autoapply.oracle.providers.ollama", "OllamaProvider"),
}


def get_provider(name: str) -> LLMProvider:
    """Instantiate and return an LLM provider by name.

    Raises:
        ValueError: If the provider name is unknown.
    """
    if name not in _REGISTRY:
        valid = ", ".join(sorted(_REGISTRY))
        msg = f"Unknown LLM provider '{name}'. Available: {valid}"
        raise ValueError(msg)

    module_path, class_name = _REGISTRY[name]
    module = importlib.import_module(module_path)
    cls = getattr(module, class_name)
    return cls()  # type: ignore[no-any-return]


def available_providers() -> list[str]:
    """Return sorted list of registered provider names."""
    return sorted(_REGISTRY)
