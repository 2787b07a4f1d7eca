"""
ingestion — Obtención y división de la documentación.

Módulos:
- fetcher: Descarga el bundle de documentación (un único archivo de texto)
- splitter: Divide el bundle en entradas (id, contenido)
"""

from .fetcher import fetch_documentation, read_documentation
from .splitter import filter_entries, split_documentation

__all__ = [
    "fetch_documentation",
    "read_documentation",
    "split_documentation",
    "filter_entries",
]
