"""
Configuracion del proveedor LLM.

Lee LLM_PROVIDER del entorno y proporciona los defaults por proveedor.
"""

import os
from enum import Enum

from ._types import LLMProviderError


class Provider(Enum):
    ANTHROPIC = "anthropic"
    OPENAI = "openai"


PROVIDER_DEFAULTS = {
    Provider.ANTHROPIC: {
        "model": "claude-3-7-sonnet-20250219",
        "temperature": 0.7,
        "max_tokens": 16384,
    },
    Provider.OPENAI: {
        "model": "gpt-4o",
        "temperature": 0.7,
        "max_tokens": 16384,
    },
}

AVAILABLE_MODELS = {
    Provider.ANTHROPIC: [
        "claude-3-7-sonnet-20250219",
        "claude-3-5-sonnet-20241022",  # 3.5 v2
        "claude-3-5-sonnet-20240620",  # 3.5
        "claude-3-5-haiku-20241022",
        "claude-3-opus-20240229",
    ],
    Provider.OPENAI: [
        "gpt-4o",
        "o3-mini",
    ],
}


def get_active_provider(name: str | None = None) -> Provider:
    """Resuelve el proveedor (argumento o LLM_PROVIDER). Default: anthropic."""
    raw = (name or os.getenv("LLM_PROVIDER", "anthropic")).lower().strip()
    try:
        return Provider(raw)
    except ValueError:
        valid = ", ".join(p.value for p in Provider)
        raise LLMProviderError(
            f"LLM_PROVIDER='{raw}' no reconocido. Opciones: {valid}"
        )


def get_defaults(provider: Provider) -> dict:
    """Devuelve los defaults (model, temperature, max_tokens) del provider."""
    return PROVIDER_DEFAULTS[provider]
