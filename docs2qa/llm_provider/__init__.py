"""
llm_provider - Adaptador LLM para docs2qa.

El orquestador depende solo de la interfaz LLMProvider; cada proveedor
es una variante con nombre. El backend se elige con LLM_PROVIDER:

    - anthropic (default): API de Anthropic (requiere ANTHROPIC_API_KEY).
      Soporta la API de batches.
    - openai: API de OpenAI (requiere OPENAI_API_KEY). Solo modo secuencial.

Si el backend falla, se lanza LLMProviderError. Nunca hay fallback
automatico a otro proveedor para evitar costes inesperados.

Uso:
    from docs2qa.llm_provider import get_llm_provider

    provider = get_llm_provider()
    text = provider.generate_response("Explica que es un store.")
"""

from ._backends import (
    AnthropicProvider,
    BatchLLMProvider,
    LLMProvider,
    OpenAIProvider,
    get_llm_provider,
)
from ._config import Provider, get_active_provider, get_defaults
from ._types import (
    BatchRequest,
    BatchResult,
    BatchStatus,
    LLMProviderError,
    LLMResponse,
)

__all__ = [
    "LLMProvider",
    "BatchLLMProvider",
    "AnthropicProvider",
    "OpenAIProvider",
    "Provider",
    "get_llm_provider",
    "get_active_provider",
    "get_defaults",
    "LLMResponse",
    "LLMProviderError",
    "BatchRequest",
    "BatchResult",
    "BatchStatus",
]
