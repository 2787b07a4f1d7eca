"""
Excepciones de docs2qa.

Jerarquia:
    Docs2QAError
    ├── ConfigError          - Configuracion invalida
    ├── SourceDocumentError  - No se pudo obtener o leer la documentacion
    ├── StorageError         - Fallo creando directorios o escribiendo salida
    └── BatchJobError        - Batch terminado sin resultados o sin completar

Los errores de proveedor LLM viven en docs2qa.llm_provider (LLMProviderError).
"""


class Docs2QAError(Exception):
    """Error base para docs2qa. Siempre aborta la ejecucion."""
    pass


class ConfigError(Docs2QAError):
    """Valor de configuracion invalido (entorno o settings.yaml)."""
    pass


class SourceDocumentError(Docs2QAError):
    """No se pudo descargar, leer o interpretar el documento fuente."""
    pass


class StorageError(Docs2QAError):
    """Fallo de escritura en disco. Riesgo de perdida de datos."""
    pass


class BatchJobError(Docs2QAError):
    """El batch no termino correctamente o no expuso resultados."""

    def __init__(self, message: str, batch_id: str | None = None):
        super().__init__(message)
        self.batch_id = batch_id
