"""
Fetcher — Descarga del bundle de documentación.

El bundle es un único archivo de texto con todas las páginas concatenadas
(formato llms-full.txt). Se guarda en disco y se reutiliza en ejecuciones
posteriores salvo que se fuerce la descarga.
"""

import logging
from pathlib import Path

import httpx

from ..exceptions import SourceDocumentError, StorageError
from ..utils.logging_config import log_execution_time

logger = logging.getLogger(__name__)


@log_execution_time("fetch_documentation")
def fetch_documentation(
    url: str,
    destination: Path,
    force: bool = False,
    timeout: float = 60.0,
) -> Path:
    """
    Descarga la documentación a `destination`.

    Args:
        url: URL del bundle.
        destination: Archivo local de caché.
        force: Descargar aunque ya exista la caché.
        timeout: Timeout HTTP en segundos.

    Returns:
        Ruta al archivo descargado.

    Raises:
        SourceDocumentError: Error de red o respuesta HTTP no exitosa.
        StorageError: No se pudo escribir el archivo.
    """
    destination = Path(destination)

    if destination.exists() and not force:
        logger.info(f"Usando documentación en caché: {destination}")
        return destination

    logger.info(f"Descargando documentación desde {url}...")
    try:
        response = httpx.get(url, timeout=timeout, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPError as e:
        raise SourceDocumentError(f"No se pudo descargar {url}: {e}") from e

    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_text(response.text, encoding="utf-8")
    except OSError as e:
        raise StorageError(f"No se pudo guardar {destination}: {e}") from e

    logger.info(f"Documentación guardada: {destination} ({len(response.text)} caracteres)")
    return destination


def read_documentation(path: Path) -> str:
    """
    Lee el bundle de documentación.

    Raises:
        SourceDocumentError: Si el archivo no existe o no se puede leer.
    """
    path = Path(path)
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise SourceDocumentError(f"No se pudo leer la documentación {path}: {e}") from e
