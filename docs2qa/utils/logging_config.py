"""
Logging Estructurado para docs2qa.

Implementa logging con structlog para:
- Tracing de ejecuciones (run_id, modo)
- Métricas de generación por ejecución
- Tiempos de operaciones largas (descarga, generación, batch)

Los módulos de librería usan logging estándar; structlog se configura
sobre la misma jerarquía de loggers, así que ambos salen por el mismo
handler.

Uso:
    from docs2qa.utils.logging_config import get_logger, trace_context

    logger = get_logger(__name__)

    with trace_context(mode="batch"):
        logger.info("batch_submitted", requests=42)
"""

import logging
import sys
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import wraps
from pathlib import Path
from typing import Any, Callable, Dict, Optional

import structlog


# =============================================================================
# Configuración de Logging
# =============================================================================

@dataclass
class LogConfig:
    """Configuración del sistema de logging."""
    level: str = "INFO"
    format: str = "console"  # "json" o "console"
    log_file: Optional[Path] = None


# Context variables para tracing
_trace_context: Dict[str, Any] = {}


def get_trace_context() -> Dict[str, Any]:
    """Obtiene el contexto de tracing actual."""
    return _trace_context.copy()


@contextmanager
def trace_context(**kwargs):
    """
    Context manager para establecer contexto de tracing.

    Ejemplo:
        with trace_context(mode="sequential"):
            # Todos los logs estructurados dentro tendrán run_id y mode
            logger.info("entry_done")
    """
    global _trace_context
    old_context = _trace_context.copy()

    if "run_id" not in _trace_context and "run_id" not in kwargs:
        kwargs["run_id"] = str(uuid.uuid4())[:8]

    _trace_context.update(kwargs)
    try:
        yield _trace_context
    finally:
        _trace_context = old_context


# =============================================================================
# Processors para structlog
# =============================================================================

def add_trace_context(logger, method_name, event_dict):
    """Añade contexto de tracing a cada log."""
    for key, value in get_trace_context().items():
        if key not in event_dict:
            event_dict[key] = value
    return event_dict


def add_timestamp(logger, method_name, event_dict):
    """Añade timestamp ISO 8601."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def format_for_humans(logger, method_name, event_dict):
    """Formatea logs para lectura humana en consola."""
    timestamp = event_dict.pop("timestamp", "")
    event = event_dict.pop("event", "")
    level = event_dict.pop("level", "INFO")
    run_id = event_dict.pop("run_id", "")
    event_dict.pop("logger", None)

    colors = {
        "debug": "\033[36m",
        "info": "\033[32m",
        "warning": "\033[33m",
        "error": "\033[31m",
        "critical": "\033[35m",
    }
    reset = "\033[0m"
    color = colors.get(level.lower(), "")

    extras = " ".join(f"{k}={v}" for k, v in event_dict.items())
    run_str = f"[{run_id}] " if run_id else ""
    extras_str = f" | {extras}" if extras else ""

    return f"{timestamp[:19]} {color}{level.upper():8}{reset} {run_str}{event}{extras_str}"


# =============================================================================
# Configuración de structlog
# =============================================================================

def configure_logging(config: Optional[LogConfig] = None):
    """
    Configura el sistema de logging estructurado.

    Args:
        config: Configuración de logging (usa defaults si None)
    """
    if config is None:
        config = LogConfig()

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        add_trace_context,
        add_timestamp,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if config.format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(format_for_humans)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        level=getattr(logging, config.level.upper()),
        format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )

    if config.log_file:
        config.log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(config.log_file, encoding="utf-8")
        file_handler.setLevel(getattr(logging, config.level.upper()))
        logging.getLogger().addHandler(file_handler)


def get_logger(name: str = None):
    """
    Obtiene un logger estructurado.

    Args:
        name: Nombre del módulo (usa __name__ normalmente)
    """
    return structlog.get_logger(name)


# =============================================================================
# Decoradores de Logging
# =============================================================================

def log_execution_time(operation: str = None, log_result: bool = False):
    """
    Decorador para loguear tiempo de ejecución de funciones.

    Args:
        operation: Nombre de la operación (usa nombre de función si None)
        log_result: Si loguear tipo/tamaño del resultado

    Ejemplo:
        @log_execution_time("fetch_documentation")
        def fetch_documentation(url, destination):
            ...
    """
    def decorator(func: Callable):
        @wraps(func)
        def wrapper(*args, **kwargs):
            logger = get_logger(func.__module__)
            op_name = operation or func.__name__
            log_context = {"operation": op_name}

            start_time = time.perf_counter()

            try:
                result = func(*args, **kwargs)
            except Exception as e:
                elapsed_ms = (time.perf_counter() - start_time) * 1000
                log_context["duration_ms"] = round(elapsed_ms, 2)
                log_context["status"] = "error"
                log_context["error_type"] = type(e).__name__
                log_context["error_message"] = str(e)[:200]
                logger.error(f"{op_name}_failed", **log_context)
                raise

            elapsed_ms = (time.perf_counter() - start_time) * 1000
            log_context["duration_ms"] = round(elapsed_ms, 2)
            log_context["status"] = "success"

            if log_result and result is not None:
                log_context["result_type"] = type(result).__name__
                if hasattr(result, "__len__"):
                    log_context["result_length"] = len(result)

            logger.info(f"{op_name}_completed", **log_context)
            return result

        return wrapper
    return decorator


# =============================================================================
# Métricas de generación
# =============================================================================

@dataclass
class GenerationMetrics:
    """Métricas de una ejecución del orquestador."""
    run_id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    mode: str = "sequential"

    # Entradas
    entries_total: int = 0
    entries_planned: int = 0
    entries_skipped: int = 0  # ya completas o antes del marcador

    # Peticiones
    requests_succeeded: int = 0
    requests_failed: int = 0

    # Resultados
    pairs_requested: int = 0
    pairs_written: int = 0

    # Batch (por tipo de resultado)
    batch_outcomes: Dict[str, int] = field(default_factory=dict)

    started_at: float = field(default_factory=time.perf_counter)
    total_time_ms: float = 0.0

    def finish(self):
        self.total_time_ms = round((time.perf_counter() - self.started_at) * 1000, 2)

    def to_dict(self) -> Dict[str, Any]:
        """Convierte a diccionario para logging."""
        return {
            "run_id": self.run_id,
            "mode": self.mode,
            "entries": {
                "total": self.entries_total,
                "planned": self.entries_planned,
                "skipped": self.entries_skipped,
            },
            "requests": {
                "succeeded": self.requests_succeeded,
                "failed": self.requests_failed,
            },
            "pairs": {
                "requested": self.pairs_requested,
                "written": self.pairs_written,
            },
            "batch_outcomes": dict(self.batch_outcomes),
            "total_time_ms": self.total_time_ms,
        }

    def log(self, logger=None):
        """Loguea las métricas."""
        if logger is None:
            logger = get_logger("docs2qa.metrics")
        logger.info("generation_metrics", **self.to_dict())
