"""
generation — Generación de pares pregunta/respuesta.

Módulos:
- prompt_builder: Template del prompt de generación
- response_parser: Extrae pares Q/A de la respuesta del modelo
- progress: Marcador de progreso y recuento por source
- correlation: custom_id para batches
- orchestrator: Pipeline reanudable (secuencial y batch)
"""

from .orchestrator import GenerationOrchestrator
from .prompt_builder import build_qa_prompt
from .response_parser import parse_qa_pairs

__all__ = ["GenerationOrchestrator", "build_qa_prompt", "parse_qa_pairs"]
