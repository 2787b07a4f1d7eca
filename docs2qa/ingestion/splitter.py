"""
Splitter — Divide el bundle de documentación en entradas.

Cada página empieza con una línea marcador "## <id>", donde el id empieza
por un prefijo fijo (por defecto "docs/"). El contenido de una entrada es
todo lo que hay entre su marcador y el siguiente. El texto anterior al
primer marcador se descarta.
"""

import logging
import re
from typing import Iterable, Iterator

from ..models import DocEntry

logger = logging.getLogger(__name__)

DEFAULT_ENTRY_PREFIX = "docs/"


def _marker_pattern(prefix: str) -> re.Pattern:
    return re.compile(rf"^## ({re.escape(prefix)}[^\n]*)$", re.MULTILINE)


def split_documentation(
    text: str, prefix: str = DEFAULT_ENTRY_PREFIX
) -> Iterator[DocEntry]:
    """
    Genera las entradas del documento en orden.

    Es perezoso: cada llamada recorre el texto desde el principio.
    Entradas con id o contenido vacío (tras strip) se descartan.
    Un documento sin marcadores no produce entradas y emite un warning.
    """
    matches = list(_marker_pattern(prefix).finditer(text))

    if not matches:
        logger.warning(
            f"No se encontraron marcadores '## {prefix}...' en la documentación"
        )
        return

    for i, match in enumerate(matches):
        end = matches[i + 1].start() if i + 1 < len(matches) else len(text)
        entry_id = match.group(1).strip()
        content = text[match.end():end].strip()

        if not entry_id or not content:
            continue

        yield DocEntry(id=entry_id, content=content)


def filter_entries(
    entries: Iterable[DocEntry], min_length: int = 100
) -> Iterator[DocEntry]:
    """Descarta entradas con contenido más corto que `min_length`."""
    for entry in entries:
        if len(entry.content) < min_length:
            logger.debug(
                f"Entrada descartada por tamaño ({len(entry.content)} < {min_length}): {entry.id}"
            )
            continue
        yield entry
