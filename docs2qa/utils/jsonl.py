"""
Lectura y escritura de archivos JSON-Lines.

Un objeto JSON por linea, UTF-8. Las escrituras de registros QA son
siempre append: un solo proceso escribe a la vez.
"""

import json
import os
import logging
from pathlib import Path
from typing import Dict, Iterable, Iterator, List

from ..exceptions import StorageError

logger = logging.getLogger(__name__)


def iter_jsonl(path: Path, skip_partial_tail: bool = False) -> Iterator[Dict]:
    """
    Itera los objetos de un archivo JSONL, ignorando lineas vacias.

    Args:
        path: Archivo JSONL.
        skip_partial_tail: Si es True, una ultima linea ilegible (escritura
            interrumpida) se descarta con un warning en vez de fallar.

    Raises:
        FileNotFoundError: Si el archivo no existe.
        StorageError: Si una linea no es JSON valido.
    """
    path = Path(path)
    broken = None
    with open(path, "r", encoding="utf-8") as f:
        for line_num, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            if broken is not None:
                # La linea rota no era la ultima
                raise broken
            try:
                item = json.loads(line)
            except json.JSONDecodeError as e:
                broken = StorageError(f"{path}:{line_num}: JSON invalido: {e}")
                broken.__cause__ = e
                if not skip_partial_tail:
                    raise broken
                continue
            yield item

    if broken is not None:
        logger.warning(f"Descartada la ultima linea incompleta de {broken}")


def read_jsonl(path: Path) -> List[Dict]:
    """Lee un archivo JSONL completo."""
    return list(iter_jsonl(path))


def _close_partial_tail(path: Path):
    """
    Deja el archivo terminado en salto de linea antes de un append.

    Una ultima linea sin salto de linea es una escritura interrumpida: si
    no es JSON valido se trunca; si lo es, solo se le añade el salto.
    """
    with open(path, "rb+") as f:
        f.seek(0, os.SEEK_END)
        size = f.tell()
        if size == 0:
            return
        f.seek(size - 1)
        if f.read(1) == b"\n":
            return

        f.seek(0)
        data = f.read()
        start = data.rfind(b"\n") + 1
        try:
            json.loads(data[start:].decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            logger.warning(f"Truncando linea incompleta al final de {path}")
            f.truncate(start)
            return
        f.write(b"\n")


def append_jsonl(path: Path, items: Iterable[Dict]) -> int:
    """
    Añade objetos al final de un archivo JSONL (lo crea si no existe).

    Returns:
        Numero de lineas escritas.

    Raises:
        StorageError: Si no se puede escribir.
    """
    path = Path(path)
    written = 0
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        if path.exists():
            _close_partial_tail(path)
        with open(path, "a", encoding="utf-8") as f:
            for item in items:
                f.write(json.dumps(item, ensure_ascii=False) + "\n")
                written += 1
    except OSError as e:
        raise StorageError(f"No se pudo escribir en {path}: {e}") from e
    return written


def write_jsonl(path: Path, items: Iterable[Dict]) -> int:
    """Sobrescribe un archivo JSONL con los objetos dados."""
    path = Path(path)
    written = 0
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            for item in items:
                f.write(json.dumps(item, ensure_ascii=False) + "\n")
                written += 1
    except OSError as e:
        raise StorageError(f"No se pudo escribir en {path}: {e}") from e
    logger.info(f"Escritas {written} lineas en {path}")
    return written
