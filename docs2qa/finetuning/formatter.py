"""
Fine-tune Formatter — Merge y conversión del dataset QA.

Soporta:
- Merge de varios JSONL {source, question, answer} ordenado por source
- Conversión a formato OpenAI ({"messages": [...]})
- Conversión a formato Unsloth ({"conversations": [...]})
- Validación de formato
- Split train/validation
"""

import hashlib
import json
import logging
import random
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from ..models import QARecord
from ..utils.jsonl import read_jsonl, write_jsonl

logger = logging.getLogger(__name__)

FORMATS = ("openai", "unsloth")

# Archivos que produce este módulo y que no deben re-mezclarse
DERIVED_FILENAMES = {"merged.jsonl", "openai.jsonl", "unsloth.jsonl"}
DERIVED_SUFFIXES = ("_train.jsonl", "_val.jsonl")

RECORD_FIELDS = ("source", "question", "answer")


def is_derived_file(path: Path) -> bool:
    """Salidas de merge/convert/split: no son QARecords."""
    return path.name in DERIVED_FILENAMES or path.name.endswith(DERIVED_SUFFIXES)


def is_qa_record(item) -> bool:
    return isinstance(item, dict) and all(
        isinstance(item.get(key), str) for key in RECORD_FIELDS
    )


def default_system_prompt(topic: str) -> str:
    return (
        f"You are an expert in {topic} and web development, providing helpful "
        f"and accurate answers to questions about {topic}."
    )


class FineTuneFormatter:
    """
    Transforma el stream de QARecord en los formatos de fine-tuning.

    Formato openai:
    {"messages": [{"role": "system", ...}, {"role": "user", ...}, {"role": "assistant", ...}]}

    Formato unsloth:
    {"conversations": [{"role": "user", ...}, {"role": "assistant", ...}]}
    """

    def __init__(self, topic: str = "Svelte 5", system_prompt: Optional[str] = None):
        self.topic = topic
        self.system_prompt = system_prompt or default_system_prompt(topic)

    # ------------------------------------------------------------------
    # Merge
    # ------------------------------------------------------------------

    def merge_files(self, input_dir: Path, output_path: Path) -> Dict:
        """
        Une todos los JSONL de `input_dir` (salvo los derivados) en uno,
        ordenado por source. El orden dentro de un mismo source se mantiene.

        Returns:
            Estadísticas del merge.
        """
        input_dir = Path(input_dir)
        output_path = Path(output_path)

        files = sorted(
            p for p in input_dir.glob("*.jsonl")
            if not is_derived_file(p) and p.resolve() != output_path.resolve()
        )
        logger.info(f"Encontrados {len(files)} archivos JSONL para merge")

        stats = {
            "files": [str(p) for p in files],
            "total_records": 0,
            "skipped": 0,
            "output_file": str(output_path),
        }
        if not files:
            logger.warning("No hay archivos JSONL para merge")
            return stats

        records: List[QARecord] = []
        for path in files:
            logger.info(f"Leyendo {path}...")
            skipped = 0
            for item in read_jsonl(path):
                if not is_qa_record(item):
                    skipped += 1
                    continue
                records.append(QARecord.from_dict(item))
            if skipped:
                logger.warning(f"{path}: {skipped} líneas sin {'/'.join(RECORD_FIELDS)}, omitidas")
                stats["skipped"] += skipped

        records.sort(key=lambda r: r.source)
        stats["total_records"] = write_jsonl(output_path, (r.to_dict() for r in records))

        logger.info(f"Merge completado: {stats['total_records']} registros → {output_path}")
        return stats

    # ------------------------------------------------------------------
    # Conversión
    # ------------------------------------------------------------------

    def to_openai(self, record: QARecord) -> Dict:
        return {
            "messages": [
                {"role": "system", "content": self.system_prompt},
                {"role": "user", "content": record.question},
                {"role": "assistant", "content": record.answer},
            ]
        }

    @staticmethod
    def to_unsloth(record: QARecord) -> Dict:
        return {
            "conversations": [
                {"role": "user", "content": record.question},
                {"role": "assistant", "content": record.answer},
            ]
        }

    def convert_records(self, records: Iterable[QARecord], fmt: str) -> List[Dict]:
        """Convierte registros al formato pedido."""
        if fmt not in FORMATS:
            raise ValueError(f"Formato '{fmt}' no soportado. Opciones: {', '.join(FORMATS)}")

        convert = self.to_openai if fmt == "openai" else self.to_unsloth
        return [convert(r) for r in records]

    def convert_file(
        self,
        input_paths: Sequence[Path],
        output_path: Path,
        fmt: str,
    ) -> Dict:
        """
        Convierte el primer archivo legible de `input_paths`.

        Normalmente [merged.jsonl, training-set.jsonl]: se prefiere el merge
        y se cae al dataset crudo si no existe.

        Raises:
            FileNotFoundError: Si ninguno de los archivos existe.
        """
        records = None
        used_path = None
        for path in input_paths:
            path = Path(path)
            if not path.exists():
                logger.info(f"No existe {path}, probando el siguiente...")
                continue
            items = read_jsonl(path)
            records = [QARecord.from_dict(item) for item in items if is_qa_record(item)]
            if len(records) < len(items):
                logger.warning(
                    f"{path}: {len(items) - len(records)} líneas sin "
                    f"{'/'.join(RECORD_FIELDS)}, omitidas"
                )
            used_path = path
            break

        if records is None:
            raise FileNotFoundError(
                "Ningún archivo de entrada disponible: "
                + ", ".join(str(p) for p in input_paths)
            )

        logger.info(f"Leídos {len(records)} registros de {used_path}")
        converted = self.convert_records(records, fmt)
        total = write_jsonl(output_path, converted)

        logger.info(f"Convertidos {total} registros a formato {fmt} → {output_path}")
        return {
            "input_file": str(used_path),
            "output_file": str(output_path),
            "format": fmt,
            "total": total,
        }

    # ------------------------------------------------------------------
    # Validación
    # ------------------------------------------------------------------

    @staticmethod
    def _detect_turns(entry: Dict):
        """Devuelve (formato, turnos) o (None, None) si no es un formato conocido."""
        for fmt, key in (("openai", "messages"), ("unsloth", "conversations")):
            if key in entry:
                return fmt, entry[key]
        return None, None

    @staticmethod
    def _turns_error(turns) -> Optional[str]:
        if not isinstance(turns, list) or not turns:
            return "Lista de turnos vacía"
        if not all(isinstance(t, dict) for t in turns):
            return "Turnos que no son objetos"
        roles = {t.get("role") for t in turns}
        if not {"user", "assistant"} <= roles:
            return "Faltan turnos user/assistant"
        if any(not t.get("content") for t in turns):
            return "Campos vacíos"
        return None

    def validate_format(self, file_path: Path) -> Dict:
        """
        Valida un archivo convertido (openai o unsloth).

        Cada línea debe ser un objeto con `messages` o `conversations`, con
        al menos un turno user y uno assistant, sin contenidos vacíos, y
        todas en el mismo formato. Las líneas repetidas cuentan como
        duplicados, no como errores.
        """
        file_path = Path(file_path)
        if not file_path.exists():
            return {"valid": False, "error": "Archivo no encontrado"}

        stats = {
            "valid": True,
            "total_lines": 0,
            "valid_lines": 0,
            "errors": [],
            "duplicates": 0,
            "format_detected": None,
        }
        errors = stats["errors"]
        seen = set()

        with open(file_path, "r", encoding="utf-8") as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                stats["total_lines"] += 1

                try:
                    entry = json.loads(line)
                except json.JSONDecodeError as e:
                    errors.append(f"Línea {line_num}: JSON inválido: {e}")
                    continue
                if not isinstance(entry, dict):
                    errors.append(f"Línea {line_num}: No es un objeto JSON")
                    continue

                fmt, turns = self._detect_turns(entry)
                if fmt is None:
                    errors.append(f"Línea {line_num}: Campos desconocidos: {list(entry.keys())}")
                    continue

                detected = stats["format_detected"] or fmt
                stats["format_detected"] = detected
                if fmt != detected:
                    errors.append(f"Línea {line_num}: Formato mixto ({fmt} vs {detected})")

                problem = self._turns_error(turns)
                if problem:
                    errors.append(f"Línea {line_num}: {problem}")
                    continue

                digest = hashlib.sha256(line.encode()).hexdigest()
                if digest in seen:
                    stats["duplicates"] += 1
                seen.add(digest)
                stats["valid_lines"] += 1

        stats["valid"] = not errors
        return stats

    # ------------------------------------------------------------------
    # Split train/val
    # ------------------------------------------------------------------

    def split_train_val(
        self,
        input_path: Path,
        train_path: Path,
        val_path: Path,
        val_fraction: float = 0.1,
        seed: int = 42,
    ) -> Dict:
        """
        Reparte las líneas de un JSONL entre train y validation.

        El barajado depende solo de `seed`, así que dos ejecuciones sobre el
        mismo archivo dan el mismo reparto. Con dos o más líneas, ambos lados
        reciben al menos una.

        Raises:
            ValueError: Si val_fraction no está en (0, 1).
        """
        if not 0 < val_fraction < 1:
            raise ValueError(f"val_fraction debe estar entre 0 y 1 (recibido {val_fraction})")

        items = read_jsonl(input_path)
        random.Random(seed).shuffle(items)

        n_val = 0
        if len(items) > 1:
            n_val = min(len(items) - 1, max(1, round(len(items) * val_fraction)))
        elif items:
            n_val = 1

        train_total = write_jsonl(train_path, items[n_val:])
        val_total = write_jsonl(val_path, items[:n_val])

        return {
            "total": len(items),
            "train": train_total,
            "val": val_total,
            "val_fraction_actual": val_total / len(items) if items else 0,
            "train_path": str(train_path),
            "val_path": str(val_path),
        }
