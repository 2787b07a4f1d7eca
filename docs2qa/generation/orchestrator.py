"""
Orquestador de generación — Convierte entradas de documentación en
registros QA persistidos, de forma reanudable.

Modos:
- Secuencial (run): una llamada por entrada, append inmediato y
  actualización de progreso tras cada entrada. Un fallo pierde como mucho
  la entrada en curso.
- Batch (run_batch): un único batch con todas las entradas pendientes,
  polling a intervalo fijo y escritura de todos los resultados exitosos
  en una pasada.

Política de errores:
- Fallo de una entrada (red, proveedor, parseo vacío): warning y se sigue.
  En estrategia count la entrada se reintenta en la siguiente ejecución.
- Fallo leyendo el documento o escribiendo la salida: aborta.
"""

import logging
import time
from typing import Callable, List, Optional, Tuple

from tqdm import tqdm

from ..config import GenerationConfig
from ..exceptions import BatchJobError, SourceDocumentError
from ..ingestion import filter_entries, read_documentation, split_documentation
from ..llm_provider import BatchLLMProvider, BatchRequest, LLMProvider, LLMProviderError
from ..models import DocEntry, QAPair, QARecord
from ..utils.jsonl import append_jsonl
from ..utils.logging_config import GenerationMetrics, log_execution_time, trace_context
from .correlation import build_correlation_map
from .progress import ProgressMarker, count_records_by_source
from .prompt_builder import build_qa_prompt
from .response_parser import parse_qa_pairs

logger = logging.getLogger(__name__)

# (entrada, pares que faltan)
PlanItem = Tuple[DocEntry, int]


class GenerationOrchestrator:
    """
    Dirige el pipeline completo sobre un proveedor abstracto.

    Args:
        provider: Cualquier LLMProvider. El modo batch exige BatchLLMProvider.
        config: Rutas, contadores y estrategia de reanudación.
        sleep: Función de espera entre polls (inyectable en tests).
    """

    def __init__(
        self,
        provider: LLMProvider,
        config: GenerationConfig,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.provider = provider
        self.config = config
        self.sleep = sleep
        self.marker = ProgressMarker(config.progress_path)

    # ------------------------------------------------------------------
    # Entradas y plan
    # ------------------------------------------------------------------

    def load_entries(self) -> List[DocEntry]:
        """
        Lee y divide el documento fuente, filtrando entradas cortas.

        Raises:
            SourceDocumentError: Documento ilegible, o vacío.
        """
        text = read_documentation(self.config.source_path)
        if not text.strip():
            raise SourceDocumentError(
                f"El documento fuente está vacío: {self.config.source_path}"
            )

        entries = list(split_documentation(text, self.config.entry_prefix))
        kept = list(filter_entries(entries, self.config.min_content_length))

        logger.info(
            f"{len(entries)} entradas en la documentación, "
            f"{len(kept)} con al menos {self.config.min_content_length} caracteres"
        )
        return kept

    def plan(self, entries: List[DocEntry], strategy: Optional[str] = None) -> List[PlanItem]:
        """
        Calcula qué entradas necesitan pares y cuántos.

        - count: max(0, objetivo - existentes) por source; solo las > 0.
        - index: entradas desde el marcador, con el objetivo completo.
        """
        strategy = strategy or self.config.resume_strategy
        target = self.config.questions_per_entry

        if strategy == "index":
            start = self.marker.load()
            if start > len(entries):
                logger.warning(
                    f"Marcador ({start}) mayor que el número de entradas ({len(entries)})"
                )
            return [(entry, target) for entry in entries[start:]]

        existing = count_records_by_source(self.config.output_path)
        self._report_stale_sources(existing, entries)

        items = []
        for entry in entries:
            needed = max(0, target - existing.get(entry.id, 0))
            if needed > 0:
                items.append((entry, needed))
        return items

    @staticmethod
    def _report_stale_sources(existing, entries: List[DocEntry]):
        current = {entry.id for entry in entries}
        stale = [source for source in existing if source not in current]
        if stale:
            logger.warning(
                f"{len(stale)} sources en la salida no existen en la documentación actual "
                f"(no se modifican)"
            )

    # ------------------------------------------------------------------
    # Generación por entrada
    # ------------------------------------------------------------------

    def _build_prompt(self, entry: DocEntry, count: int) -> str:
        return build_qa_prompt(
            entry.id,
            entry.content,
            count,
            topic=self.config.topic,
            code_language=self.config.code_language,
        )

    def generate_for_entry(self, entry: DocEntry, count: int) -> List[QAPair]:
        """
        Pide `count` pares para una entrada.

        Raises:
            LLMProviderError: Si el proveedor falla.
        """
        logger.info(
            f"Usando {self.provider.name} ({self.provider.get_model_identifier()}) "
            f"para generar {count} preguntas de {entry.id}"
        )
        text = self.provider.generate_response(
            self._build_prompt(entry, count),
            temperature=self.config.temperature,
        )
        return parse_qa_pairs(text)[:count]

    def _persist(self, records: List[QARecord]) -> int:
        return append_jsonl(self.config.output_path, (r.to_dict() for r in records))

    # ------------------------------------------------------------------
    # Modo secuencial
    # ------------------------------------------------------------------

    @log_execution_time("sequential_generation")
    def run(self) -> GenerationMetrics:
        """
        Modo secuencial con la estrategia configurada.

        Returns:
            Métricas de la ejecución.
        """
        strategy = self.config.resume_strategy
        metrics = GenerationMetrics(mode=f"sequential-{strategy}")

        with trace_context(run_id=metrics.run_id, mode=metrics.mode):
            entries = self.load_entries()
            metrics.entries_total = len(entries)

            plan = self.plan(entries, strategy)
            metrics.entries_planned = len(plan)
            metrics.entries_skipped = len(entries) - len(plan)

            start = len(entries) - len(plan) if strategy == "index" else 0
            if start:
                logger.info(f"Reanudando desde la entrada {start}")

            for offset, (entry, needed) in enumerate(
                tqdm(plan, desc="Generando preguntas", disable=not plan)
            ):
                metrics.pairs_requested += needed
                self._process_entry(entry, needed, metrics)

                if strategy == "index":
                    self.marker.save(start + offset + 1)

            if strategy == "index":
                self.marker.clear()

            metrics.finish()
            metrics.log()

        logger.info(
            f"Generación completada: {metrics.pairs_written} pares escritos, "
            f"{metrics.requests_failed} entradas fallidas"
        )
        return metrics

    def _process_entry(self, entry: DocEntry, needed: int, metrics: GenerationMetrics):
        try:
            pairs = self.generate_for_entry(entry, needed)
        except LLMProviderError as e:
            metrics.requests_failed += 1
            logger.warning(f"Error generando preguntas para {entry.id}: {e}")
            return

        if not pairs:
            metrics.requests_failed += 1
            logger.warning(f"No se pudieron extraer pares de la respuesta para {entry.id}")
            return

        if len(pairs) < needed:
            logger.info(f"{entry.id}: pedidos {needed} pares, recibidos {len(pairs)}")

        # Un fallo de escritura es fatal y se propaga
        written = self._persist([QARecord.from_pair(entry.id, p) for p in pairs])
        metrics.requests_succeeded += 1
        metrics.pairs_written += written
        logger.info(f"✓ {written} pares guardados para {entry.id}")

    # ------------------------------------------------------------------
    # Modo batch
    # ------------------------------------------------------------------

    @log_execution_time("batch_generation")
    def run_batch(self) -> GenerationMetrics:
        """
        Modo batch: siempre con estrategia count.

        Raises:
            LLMProviderError: El proveedor no soporta batches, o falla el
                envío o el polling.
            BatchJobError: El batch terminó sin resultados o se agotaron
                los polls.
        """
        if not isinstance(self.provider, BatchLLMProvider) or not self.provider.supports_batch:
            raise LLMProviderError(
                f"El proveedor {self.provider.name} no soporta el modo batch"
            )

        metrics = GenerationMetrics(mode="batch")

        with trace_context(run_id=metrics.run_id, mode=metrics.mode):
            entries = self.load_entries()
            metrics.entries_total = len(entries)

            plan = self.plan(entries, strategy="count")
            metrics.entries_planned = len(plan)
            metrics.entries_skipped = len(entries) - len(plan)

            if not plan:
                logger.info("Todas las entradas tienen ya los pares necesarios")
                metrics.finish()
                metrics.log()
                return metrics

            lookup = build_correlation_map(plan, self.config.max_correlation_id_length)
            requests = [
                BatchRequest(
                    custom_id=cid,
                    prompt=self._build_prompt(entry, needed),
                    temperature=self.config.temperature,
                )
                for cid, (entry, needed) in lookup.items()
            ]
            metrics.pairs_requested = sum(needed for _, needed in plan)

            status = self.provider.create_batch(requests)
            status = self._wait_for_batch(status)

            if not status.results_url:
                raise BatchJobError(
                    f"El batch {status.id} terminó sin URL de resultados", batch_id=status.id
                )

            results = self.provider.get_batch_results(status.results_url)
            records = self._collect_batch_records(results, lookup, metrics)

            # Todos los registros exitosos en una sola pasada
            metrics.pairs_written = self._persist(records)

            metrics.finish()
            metrics.log()

        logger.info(
            f"Batch {status.id} procesado: {metrics.pairs_written} pares escritos "
            f"de {metrics.requests_succeeded} entradas"
        )
        return metrics

    def _wait_for_batch(self, status):
        polls = 0
        while not status.ended:
            if self.config.max_polls is not None and polls >= self.config.max_polls:
                raise BatchJobError(
                    f"El batch {status.id} no terminó tras {polls} consultas",
                    batch_id=status.id,
                )
            counts = status.request_counts
            logger.info(
                f"Batch {status.id}: {status.processing_status} "
                f"(procesando={counts.get('processing', 0)}, "
                f"ok={counts.get('succeeded', 0)}, "
                f"errores={counts.get('errored', 0)})"
            )
            self.sleep(self.config.poll_interval)
            status = self.provider.get_batch_status(status.id)
            polls += 1
        return status

    def _collect_batch_records(self, results, lookup, metrics: GenerationMetrics) -> List[QARecord]:
        records: List[QARecord] = []

        for result in results:
            metrics.batch_outcomes[result.outcome] = (
                metrics.batch_outcomes.get(result.outcome, 0) + 1
            )

            item = lookup.get(result.custom_id)
            if item is None:
                logger.warning(f"Resultado con custom_id desconocido: {result.custom_id}")
                continue
            entry, needed = item

            if not result.succeeded:
                metrics.requests_failed += 1
                logger.warning(
                    f"Batch: {entry.id} terminó como '{result.outcome}'"
                    + (f": {result.error}" if result.error else "")
                )
                continue

            pairs = parse_qa_pairs(result.text or "")[:needed]
            if not pairs:
                metrics.requests_failed += 1
                logger.warning(f"No se pudieron extraer pares de la respuesta para {entry.id}")
                continue

            metrics.requests_succeeded += 1
            records.extend(QARecord.from_pair(entry.id, p) for p in pairs)

        return records
