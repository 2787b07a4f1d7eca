"""
Configuración de docs2qa.

Prioridad (de menor a mayor):
1. Defaults del dataclass Settings
2. config/settings.yaml (opcional)
3. Variables de entorno (el CLI carga .env con python-dotenv)

El resultado es un objeto explícito que se pasa al orquestador; ningún
módulo lee rutas o contadores de variables globales.
"""

import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Dict, Optional

import yaml

from . import CONFIG_DIR, OUTPUT_DIR
from .exceptions import ConfigError

logger = logging.getLogger(__name__)

RESUME_STRATEGIES = ("index", "count")
PROVIDERS = ("anthropic", "openai")

# Variable de entorno -> campo de Settings
ENV_KEYS = {
    "LLM_PROVIDER": "provider",
    "LLM_MODEL": "model",
    "DOCS_URL": "docs_url",
    "OUTPUT_DIR": "output_dir",
    "QUESTIONS_PER_ENTRY": "questions_per_entry",
    "MIN_CONTENT_LENGTH": "min_content_length",
    "RESUME_STRATEGY": "resume_strategy",
    "BATCH_POLL_INTERVAL": "poll_interval",
    "BATCH_MAX_POLLS": "max_polls",
    "DATASET_TOPIC": "topic",
    "CODE_LANGUAGE": "code_language",
    "ENTRY_PREFIX": "entry_prefix",
}


@dataclass
class GenerationConfig:
    """Configuración que recibe el orquestador."""
    source_path: Path
    output_path: Path
    progress_path: Path
    questions_per_entry: int = 5
    min_content_length: int = 100
    entry_prefix: str = "docs/"
    resume_strategy: str = "count"
    temperature: Optional[float] = None
    poll_interval: float = 30.0
    max_polls: Optional[int] = None
    max_correlation_id_length: int = 64
    topic: str = "Svelte 5"
    code_language: str = "svelte"


@dataclass
class Settings:
    """Settings globales del pipeline."""
    provider: str = "anthropic"
    model: Optional[str] = None
    docs_url: str = "https://svelte.dev/llms-full.txt"
    output_dir: Path = field(default_factory=lambda: OUTPUT_DIR)
    source_filename: str = "documentation.txt"
    training_set_filename: str = "training-set.jsonl"
    progress_filename: str = "progress.txt"
    merged_filename: str = "merged.jsonl"
    questions_per_entry: int = 5
    min_content_length: int = 100
    entry_prefix: str = "docs/"
    resume_strategy: str = "count"
    temperature: Optional[float] = None
    poll_interval: float = 30.0
    max_polls: Optional[int] = None
    topic: str = "Svelte 5"
    code_language: str = "svelte"

    def __post_init__(self):
        self.output_dir = Path(self.output_dir)
        self.validate()

    def validate(self):
        """Valida rangos y valores enumerados."""
        if self.provider not in PROVIDERS:
            raise ConfigError(
                f"provider='{self.provider}' no reconocido. "
                f"Opciones: {', '.join(PROVIDERS)}"
            )
        if self.questions_per_entry < 1:
            raise ConfigError(
                f"questions_per_entry debe ser >= 1 (recibido {self.questions_per_entry})"
            )
        if self.min_content_length < 0:
            raise ConfigError(
                f"min_content_length debe ser >= 0 (recibido {self.min_content_length})"
            )
        if self.resume_strategy not in RESUME_STRATEGIES:
            raise ConfigError(
                f"resume_strategy='{self.resume_strategy}' no reconocido. "
                f"Opciones: {', '.join(RESUME_STRATEGIES)}"
            )
        if self.poll_interval <= 0:
            raise ConfigError("poll_interval debe ser > 0")
        if self.max_polls is not None and self.max_polls < 1:
            raise ConfigError("max_polls debe ser >= 1")

    # ------------------------------------------------------------------
    # Rutas derivadas
    # ------------------------------------------------------------------

    @property
    def source_path(self) -> Path:
        return self.output_dir / self.source_filename

    @property
    def training_set_path(self) -> Path:
        return self.output_dir / self.training_set_filename

    @property
    def progress_path(self) -> Path:
        return self.output_dir / self.progress_filename

    @property
    def merged_path(self) -> Path:
        return self.output_dir / self.merged_filename

    def generation_config(self) -> GenerationConfig:
        """Deriva la configuración del orquestador."""
        return GenerationConfig(
            source_path=self.source_path,
            output_path=self.training_set_path,
            progress_path=self.progress_path,
            questions_per_entry=self.questions_per_entry,
            min_content_length=self.min_content_length,
            entry_prefix=self.entry_prefix,
            resume_strategy=self.resume_strategy,
            temperature=self.temperature,
            poll_interval=self.poll_interval,
            max_polls=self.max_polls,
            topic=self.topic,
            code_language=self.code_language,
        )


def _coerce(name: str, raw) -> object:
    """Convierte un valor crudo (str del entorno o YAML) al tipo del campo."""
    if raw is None:
        return None
    try:
        if name in ("questions_per_entry", "min_content_length", "max_polls"):
            return int(raw)
        if name in ("poll_interval", "temperature"):
            return float(raw)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Valor invalido para {name}: {raw!r}") from e
    if name == "output_dir":
        return Path(raw)
    if name in ("provider", "resume_strategy"):
        return str(raw).lower().strip()
    return raw


def load_yaml_settings(config_path: Path) -> Dict:
    """Carga settings.yaml. Devuelve {} si no existe."""
    config_path = Path(config_path)
    if not config_path.exists():
        return {}

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"YAML invalido en {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"{config_path} debe contener un mapeo clave: valor")
    return data


def load_settings(
    config_path: Optional[Path] = None,
    environ: Optional[Dict[str, str]] = None,
) -> Settings:
    """
    Construye Settings combinando defaults, YAML y entorno.

    Args:
        config_path: Ruta a settings.yaml (default: config/settings.yaml).
        environ: Entorno a usar (default: os.environ).

    Raises:
        ConfigError: Si algún valor es inválido.
    """
    environ = os.environ if environ is None else environ
    valid_fields = {f.name for f in fields(Settings)}

    values: Dict = {}

    yaml_data = load_yaml_settings(config_path or CONFIG_DIR / "settings.yaml")
    for key, raw in yaml_data.items():
        if key not in valid_fields:
            logger.warning(f"Clave desconocida en settings.yaml: {key}")
            continue
        values[key] = _coerce(key, raw)

    for env_key, name in ENV_KEYS.items():
        raw = environ.get(env_key)
        if raw is not None and raw.strip() != "":
            values[name] = _coerce(name, raw)

    return Settings(**values)
