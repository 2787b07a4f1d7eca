"""
Implementaciones de backends LLM.

Cada proveedor es una variante con nombre de LLMProvider. Los que ademas
soportan la API de batches implementan BatchLLMProvider.
"""

import json
import logging
import os
import time
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

import httpx

from ._config import AVAILABLE_MODELS, Provider, get_active_provider, get_defaults
from ._types import (
    BATCH_OUTCOMES,
    BatchRequest,
    BatchResult,
    BatchStatus,
    LLMProviderError,
    LLMResponse,
)

logger = logging.getLogger(__name__)

ANTHROPIC_API_VERSION = "2023-06-01"


class LLMProvider(ABC):
    """Interfaz comun de todos los proveedores."""

    name: str = ""
    provider: Provider
    supports_batch: bool = False

    def __init__(self, model: Optional[str] = None):
        defaults = get_defaults(self.provider)
        self.model_id = model or defaults["model"]
        self.default_temperature = defaults["temperature"]
        self.max_tokens = defaults["max_tokens"]

    @abstractmethod
    def complete(
        self, prompt: str, temperature: Optional[float] = None
    ) -> LLMResponse:
        """Envia un prompt y devuelve la respuesta completa con metadatos."""

    def generate_response(
        self, prompt: str, temperature: Optional[float] = None
    ) -> str:
        """
        Genera texto a partir de un prompt.

        Raises:
            LLMProviderError: Si la llamada falla o la respuesta viene vacia.
        """
        resp = self.complete(prompt, temperature=temperature)
        if not resp.ok:
            raise LLMProviderError(
                f"{self.provider.value}: respuesta vacia o con error: "
                f"{resp.error or 'sin contenido'}"
            )
        return resp.content

    def get_models(self) -> List[str]:
        """Modelos disponibles para este proveedor."""
        return list(AVAILABLE_MODELS[self.provider])

    def get_model_identifier(self) -> str:
        """Modelo usado para generar."""
        return self.model_id


class BatchLLMProvider(LLMProvider):
    """Proveedor con API de batches asincronos."""

    supports_batch = True

    @abstractmethod
    def create_batch(self, requests: List[BatchRequest]) -> BatchStatus:
        """Envia todas las peticiones como un unico batch."""

    @abstractmethod
    def get_batch_status(self, batch_id: str) -> BatchStatus:
        """Consulta el estado de un batch."""

    @abstractmethod
    def get_batch_results(self, results_url: str) -> List[BatchResult]:
        """Descarga los resultados de un batch terminado."""


# ============================================================================
# Anthropic
# ============================================================================

class AnthropicProvider(BatchLLMProvider):
    """Backend: Anthropic Messages API + Message Batches API."""

    name = "Anthropic"
    provider = Provider.ANTHROPIC

    def __init__(self, model: Optional[str] = None, api_key: Optional[str] = None):
        super().__init__(model)
        self.api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        if not self.api_key:
            raise LLMProviderError(
                "LLM_PROVIDER=anthropic pero ANTHROPIC_API_KEY no esta configurada."
            )
        self._client = None

    def _init_client(self):
        """Inicializa cliente de Anthropic."""
        if self._client is not None:
            return

        from anthropic import Anthropic

        self._client = Anthropic(api_key=self.api_key, timeout=900.0)

    def _params(self, prompt: str, temperature: Optional[float]) -> Dict:
        return {
            "model": self.model_id,
            "max_tokens": self.max_tokens,
            "messages": [
                {
                    "role": "user",
                    "content": [{"type": "text", "text": prompt}],
                }
            ],
            "temperature": (
                temperature if temperature is not None else self.default_temperature
            ),
        }

    def complete(
        self, prompt: str, temperature: Optional[float] = None
    ) -> LLMResponse:
        self._init_client()
        start = time.time()

        try:
            resp = self._client.messages.create(**self._params(prompt, temperature))
        except Exception as e:
            raise LLMProviderError(f"anthropic: {e}") from e

        content = "".join(
            getattr(block, "text", "")
            for block in resp.content or []
            if getattr(block, "type", None) == "text"
        )
        usage = getattr(resp, "usage", None)

        return LLMResponse(
            content=content,
            model=self.model_id,
            provider=self.provider.value,
            tokens_input=getattr(usage, "input_tokens", 0) or 0,
            tokens_output=getattr(usage, "output_tokens", 0) or 0,
            latency_ms=(time.time() - start) * 1000,
        )

    # ------------------------------------------------------------------
    # Batches
    # ------------------------------------------------------------------

    def create_batch(self, requests: List[BatchRequest]) -> BatchStatus:
        self._init_client()
        payload = [
            {
                "custom_id": req.custom_id,
                "params": self._params(req.prompt, req.temperature),
            }
            for req in requests
        ]

        try:
            batch = self._client.messages.batches.create(requests=payload)
        except Exception as e:
            raise LLMProviderError(f"anthropic: error creando batch: {e}") from e

        status = self._to_status(batch)
        logger.info(f"Batch creado: {status.id} ({len(payload)} peticiones)")
        return status

    def get_batch_status(self, batch_id: str) -> BatchStatus:
        self._init_client()
        try:
            batch = self._client.messages.batches.retrieve(batch_id)
        except Exception as e:
            raise LLMProviderError(
                f"anthropic: error consultando batch {batch_id}: {e}"
            ) from e
        return self._to_status(batch)

    def get_batch_results(self, results_url: str) -> List[BatchResult]:
        try:
            response = httpx.get(
                results_url,
                headers={
                    "x-api-key": self.api_key,
                    "anthropic-version": ANTHROPIC_API_VERSION,
                },
                timeout=120.0,
                follow_redirects=True,
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise LLMProviderError(
                f"anthropic: error descargando resultados del batch: {e}"
            ) from e

        results = []
        for line in response.text.splitlines():
            if not line.strip():
                continue
            try:
                results.append(self._to_result(json.loads(line)))
            except (json.JSONDecodeError, KeyError) as e:
                raise LLMProviderError(
                    f"anthropic: linea de resultados invalida: {e}"
                ) from e
        return results

    @staticmethod
    def _to_status(batch) -> BatchStatus:
        counts = getattr(batch, "request_counts", None)
        request_counts = {
            key: getattr(counts, key, 0) or 0
            for key in ("processing",) + BATCH_OUTCOMES
        }
        return BatchStatus(
            id=batch.id,
            processing_status=batch.processing_status,
            request_counts=request_counts,
            results_url=getattr(batch, "results_url", None),
        )

    @staticmethod
    def _to_result(raw: Dict) -> BatchResult:
        result = raw["result"]
        outcome = result.get("type", "errored")

        text = None
        message = result.get("message")
        if message:
            text = "".join(
                block.get("text", "")
                for block in message.get("content", [])
                if block.get("type") == "text"
            )

        error = None
        error_info = result.get("error")
        if error_info:
            # El error puede venir anidado: {"type": "error", "error": {...}}
            nested = error_info.get("error", error_info)
            error = f"{nested.get('type', 'error')}: {nested.get('message', '')}"

        return BatchResult(
            custom_id=raw["custom_id"],
            outcome=outcome,
            text=text,
            error=error,
        )


# ============================================================================
# OpenAI
# ============================================================================

class OpenAIProvider(LLMProvider):
    """Backend: OpenAI Chat Completions (sin batches)."""

    name = "OpenAI"
    provider = Provider.OPENAI

    def __init__(self, model: Optional[str] = None, api_key: Optional[str] = None):
        super().__init__(model)
        self.api_key = api_key or os.getenv("OPENAI_API_KEY")
        if not self.api_key:
            raise LLMProviderError(
                "LLM_PROVIDER=openai pero OPENAI_API_KEY no esta configurada."
            )
        self._client = None

    def _init_client(self):
        """Inicializa cliente de OpenAI."""
        if self._client is not None:
            return

        from openai import OpenAI

        self._client = OpenAI(api_key=self.api_key)

    def complete(
        self, prompt: str, temperature: Optional[float] = None
    ) -> LLMResponse:
        self._init_client()

        kwargs: dict = {
            "model": self.model_id,
            "messages": [
                {"role": "system", "content": "You are a helpful assistant."},
                {"role": "user", "content": prompt},
            ],
        }
        # Los modelos de razonamiento (o1/o3) no aceptan temperature
        if not self.model_id.startswith("o"):
            kwargs["temperature"] = (
                temperature if temperature is not None else self.default_temperature
            )

        start = time.time()

        try:
            resp = self._client.chat.completions.create(**kwargs)
        except Exception as e:
            raise LLMProviderError(f"openai: {e}") from e

        content = resp.choices[0].message.content or ""
        usage = getattr(resp, "usage", None)

        return LLMResponse(
            content=content,
            model=self.model_id,
            provider=self.provider.value,
            tokens_input=getattr(usage, "prompt_tokens", 0) if usage else len(prompt) // 4,
            tokens_output=getattr(usage, "completion_tokens", 0) if usage else len(content) // 4,
            latency_ms=(time.time() - start) * 1000,
        )


# Dispatch table
_PROVIDERS = {
    Provider.ANTHROPIC: AnthropicProvider,
    Provider.OPENAI: OpenAIProvider,
}


def get_llm_provider(
    name: str | None = None, model: str | None = None
) -> LLMProvider:
    """
    Instancia el proveedor pedido (o el de LLM_PROVIDER).

    Raises:
        LLMProviderError: Proveedor desconocido o sin API key.
    """
    provider = get_active_provider(name)
    cls = _PROVIDERS[provider]
    instance = cls(model=model or os.getenv("LLM_MODEL") or None)
    logger.info(
        f"LLM provider: {provider.value} (model: {instance.get_model_identifier()})"
    )
    return instance
