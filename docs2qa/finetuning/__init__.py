"""
finetuning — Preparación del dataset para fine-tuning.

Módulos:
- formatter: Merge, conversión (OpenAI / Unsloth), validación y split
"""

from .formatter import FORMATS, FineTuneFormatter

__all__ = ["FineTuneFormatter", "FORMATS"]
