"""
Tipos para el adaptador LLM.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional

BATCH_OUTCOMES = ("succeeded", "errored", "canceled", "expired")


@dataclass
class LLMResponse:
    """Respuesta unificada de cualquier backend LLM."""

    content: str
    model: str
    provider: str
    tokens_input: int = 0
    tokens_output: int = 0
    latency_ms: float = 0.0
    error: str | None = None

    @property
    def ok(self) -> bool:
        """True si la respuesta no contiene errores y tiene contenido."""
        return self.error is None and len(self.content) > 0


@dataclass
class BatchRequest:
    """Una peticion dentro de un batch, identificada por custom_id."""

    custom_id: str
    prompt: str
    temperature: Optional[float] = None


@dataclass
class BatchStatus:
    """Estado de un batch en el proveedor."""

    id: str
    processing_status: str  # "in_progress" | "canceling" | "ended"
    request_counts: Dict[str, int] = field(default_factory=dict)
    results_url: Optional[str] = None

    @property
    def ended(self) -> bool:
        return self.processing_status == "ended"


@dataclass
class BatchResult:
    """Resultado individual de un batch."""

    custom_id: str
    outcome: str  # uno de BATCH_OUTCOMES
    text: Optional[str] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.outcome == "succeeded"


class LLMProviderError(Exception):
    """
    Error del proveedor LLM configurado.

    Nunca se realiza fallback automatico a otro proveedor.
    """

    pass
