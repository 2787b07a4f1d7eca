"""
docs2qa - Generador de datasets pregunta/respuesta a partir de documentación.

Módulos:
- ingestion: Descarga y división del bundle de documentación
- generation: Prompts, parsing de respuestas y orquestación reanudable
- llm_provider: Adaptadores para proveedores LLM (Anthropic, OpenAI)
- finetuning: Merge y conversión a formatos de fine-tuning
- visualization: Visor HTML del dataset
- cli: Interfaz de línea de comandos
"""

__version__ = "1.0.0"

from pathlib import Path

# Rutas del proyecto
PROJECT_ROOT = Path(__file__).parent.parent
CONFIG_DIR = PROJECT_ROOT / "config"
OUTPUT_DIR = PROJECT_ROOT / "output"
LOGS_DIR = PROJECT_ROOT / "logs"
