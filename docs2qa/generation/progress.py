"""
Progreso de generación.

Dos estrategias de reanudación, excluyentes entre sí para un mismo
archivo de salida:

- index: un archivo marcador con el índice de la siguiente entrada a
  despachar. Asume pasadas secuenciales completas sobre el corpus.
- count: se recuentan los registros existentes por `source` en el archivo
  de salida y solo se pide lo que falta. O(tamaño del archivo) por
  ejecución, pero tolera ejecuciones parciales y batches.
"""

import logging
from collections import Counter
from pathlib import Path

from ..exceptions import StorageError
from ..utils.jsonl import iter_jsonl

logger = logging.getLogger(__name__)


class ProgressMarker:
    """Marcador de progreso en texto plano: un entero en base 10."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> int:
        """Índice de la siguiente entrada a procesar (0 si no hay marcador)."""
        if not self.path.exists():
            return 0

        raw = self.path.read_text(encoding="utf-8").strip()
        try:
            index = int(raw)
        except ValueError:
            logger.warning(
                f"Marcador de progreso ilegible en {self.path} ({raw!r}), empezando desde 0"
            )
            return 0

        if index < 0:
            logger.warning(f"Marcador de progreso negativo ({index}), empezando desde 0")
            return 0
        return index

    def save(self, index: int):
        """Guarda el índice de la siguiente entrada a procesar."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(str(index), encoding="utf-8")
        except OSError as e:
            raise StorageError(f"No se pudo guardar el progreso en {self.path}: {e}") from e

    def clear(self):
        """Elimina el marcador (corpus completado)."""
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"No se pudo borrar el marcador {self.path}: {e}") from e


def count_records_by_source(path: Path) -> Counter:
    """
    Cuenta registros existentes por `source` en un archivo JSONL.

    Un archivo inexistente equivale a cero registros. Líneas sin `source`
    se ignoran con un warning, igual que una última línea a medio escribir
    (proceso interrumpido durante un append).

    Raises:
        StorageError: Si hay una línea corrupta que no es la última.
    """
    path = Path(path)
    counts: Counter = Counter()
    if not path.exists():
        return counts

    missing = 0
    for record in iter_jsonl(path, skip_partial_tail=True):
        source = record.get("source") if isinstance(record, dict) else None
        if not source:
            missing += 1
            continue
        counts[source] += 1

    if missing:
        logger.warning(f"{missing} registros sin 'source' en {path}")
    return counts
