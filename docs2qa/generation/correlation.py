"""
Identificadores de correlación para batches.

El proveedor limita los custom_id a [a-zA-Z0-9_-] y 64 caracteres. La
unicidad dentro del batch la da el índice de posición que se añade al
final, no el contenido; por eso se puede recortar el id saneado.
"""

import re
from typing import Dict, Iterable, Tuple

from ..models import DocEntry

MAX_CORRELATION_ID_LENGTH = 64

_INVALID_CHARS = re.compile(r"[^a-zA-Z0-9_-]")


def sanitize_id(entry_id: str) -> str:
    """Sustituye cualquier carácter fuera de [a-zA-Z0-9_-] por '_'."""
    return _INVALID_CHARS.sub("_", entry_id)


def make_correlation_id(
    entry_id: str, index: int, max_length: int = MAX_CORRELATION_ID_LENGTH
) -> str:
    """
    Construye un custom_id válido: <id saneado>_<índice>.

    Si no cabe, se recorta el centro del id saneado (se conservan inicio
    y final, unidos por '-') manteniendo siempre el índice final.
    """
    suffix = f"_{index}"
    available = max_length - len(suffix)
    if available < 3:
        raise ValueError(f"max_length={max_length} demasiado corto para el índice {index}")

    sanitized = sanitize_id(entry_id)
    if len(sanitized) > available:
        head = (available - 1) // 2
        tail = available - 1 - head
        sanitized = f"{sanitized[:head]}-{sanitized[-tail:]}"

    return f"{sanitized}{suffix}"


def build_correlation_map(
    items: Iterable[Tuple[DocEntry, int]],
    max_length: int = MAX_CORRELATION_ID_LENGTH,
) -> Dict[str, Tuple[DocEntry, int]]:
    """
    Asigna un custom_id a cada (entrada, pares pedidos) del plan.

    Returns:
        Mapa custom_id -> (entrada, pares pedidos), para recuperar la
        entrada original aunque el recorte haya perdido información.
    """
    lookup: Dict[str, Tuple[DocEntry, int]] = {}
    for index, (entry, needed) in enumerate(items):
        cid = make_correlation_id(entry.id, index, max_length)
        if cid in lookup:
            raise ValueError(f"custom_id duplicado: {cid}")
        lookup[cid] = (entry, needed)
    return lookup
