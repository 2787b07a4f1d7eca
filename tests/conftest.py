# tests/conftest.py
"""
Pytest fixtures compartidos para docs2qa tests.
"""

import re
from typing import Dict, List, Optional

import pytest

from docs2qa.config import GenerationConfig
from docs2qa.llm_provider import (
    BatchLLMProvider,
    BatchRequest,
    BatchResult,
    BatchStatus,
    LLMProvider,
    LLMProviderError,
    LLMResponse,
    Provider,
)


# ============================================================================
# Sample Data Fixtures
# ============================================================================

LONG_TEXT = (
    "Runes are symbols that you use in .svelte files to control the compiler. "
    "If you think of Svelte as a language, runes are part of the syntax."
)


@pytest.fixture
def sample_documentation():
    """Bundle de documentación con tres páginas (una demasiado corta)."""
    return f"""<SYSTEM>This is the full developer documentation for Svelte.</SYSTEM>

# Start of Svelte documentation

## docs/svelte/overview

{LONG_TEXT}

```svelte
<script>
  let count = $state(0);
</script>
```

## docs/svelte/short

Too short.

## docs/svelte/$state

The $state rune allows you to create reactive state. {LONG_TEXT}
"""


def make_reply(count: int, prefix: str = "Pregunta") -> str:
    """Respuesta del modelo en el formato que pide el prompt."""
    blocks = [f"{prefix} {k}?\nA{k}: Respuesta {k}." for k in range(1, count + 1)]
    return "Aquí están los pares:\n\n" + "\n\n".join(
        f"Q{k}: {block}" for k, block in enumerate(blocks, 1)
    )


# ============================================================================
# Mock Providers
# ============================================================================

class StubProvider(LLMProvider):
    """
    Proveedor determinista: devuelve tantos pares como pida el prompt
    ("create N question and answer pairs").
    """

    name = "Stub"
    provider = Provider.ANTHROPIC

    def __init__(self, fail_on: Optional[List[str]] = None, replies: Optional[Dict[str, str]] = None):
        super().__init__(model="stub-model")
        self.fail_on = fail_on or []
        self.replies = replies or {}
        self.prompts: List[str] = []

    @staticmethod
    def requested_count(prompt: str) -> int:
        return int(re.search(r"create (\d+) question and answer pairs", prompt).group(1))

    def complete(self, prompt: str, temperature: Optional[float] = None) -> LLMResponse:
        self.prompts.append(prompt)
        for entry_id in self.fail_on:
            if f"Documentation path: {entry_id}\n" in prompt:
                raise LLMProviderError(f"stub: fallo simulado para {entry_id}")
        for entry_id, reply in self.replies.items():
            if f"Documentation path: {entry_id}\n" in prompt:
                return LLMResponse(content=reply, model=self.model_id, provider="stub")
        return LLMResponse(
            content=make_reply(self.requested_count(prompt)),
            model=self.model_id,
            provider="stub",
        )


class StubBatchProvider(BatchLLMProvider):
    """Proveedor batch en memoria con resultados configurables por entrada."""

    name = "StubBatch"
    provider = Provider.ANTHROPIC

    def __init__(self, outcomes: Optional[Dict[str, str]] = None, polls_until_end: int = 1):
        super().__init__(model="stub-model")
        self.outcomes = outcomes or {}
        self.polls_until_end = polls_until_end
        self.requests: List[BatchRequest] = []
        self.status_calls = 0

    def complete(self, prompt: str, temperature: Optional[float] = None) -> LLMResponse:
        raise AssertionError("El modo batch no debe llamar a complete()")

    def create_batch(self, requests: List[BatchRequest]) -> BatchStatus:
        self.requests = list(requests)
        return BatchStatus(id="batch_1", processing_status="in_progress",
                           request_counts={"processing": len(requests)})

    def get_batch_status(self, batch_id: str) -> BatchStatus:
        self.status_calls += 1
        if self.status_calls < self.polls_until_end:
            return BatchStatus(id=batch_id, processing_status="in_progress")
        return BatchStatus(
            id=batch_id,
            processing_status="ended",
            request_counts={"succeeded": len(self.requests)},
            results_url="https://example.test/results",
        )

    def get_batch_results(self, results_url: str) -> List[BatchResult]:
        results = []
        for req in self.requests:
            outcome = "succeeded"
            for entry_id, configured in self.outcomes.items():
                if f"Documentation path: {entry_id}\n" in req.prompt:
                    outcome = configured
            if outcome == "succeeded":
                results.append(BatchResult(
                    custom_id=req.custom_id,
                    outcome="succeeded",
                    text=make_reply(StubProvider.requested_count(req.prompt)),
                ))
            else:
                results.append(BatchResult(
                    custom_id=req.custom_id,
                    outcome=outcome,
                    error="invalid_request_error: simulado",
                ))
        return results


@pytest.fixture
def stub_provider():
    return StubProvider()


@pytest.fixture
def stub_batch_provider():
    return StubBatchProvider()


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def generation_config(tmp_path, sample_documentation) -> GenerationConfig:
    """GenerationConfig aislado en tmp_path con el documento de ejemplo."""
    source = tmp_path / "documentation.txt"
    source.write_text(sample_documentation, encoding="utf-8")
    return GenerationConfig(
        source_path=source,
        output_path=tmp_path / "training-set.jsonl",
        progress_path=tmp_path / "progress.txt",
        questions_per_entry=3,
        min_content_length=100,
        poll_interval=0.01,
    )


@pytest.fixture
def no_sleep():
    """Sustituto de time.sleep que registra las esperas."""
    calls: List[float] = []

    def _sleep(seconds: float):
        calls.append(seconds)

    _sleep.calls = calls
    return _sleep
