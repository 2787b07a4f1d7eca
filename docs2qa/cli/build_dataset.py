#!/usr/bin/env python3
"""
build_dataset - CLI del pipeline documentación → dataset QA.

Uso:
    python -m docs2qa.cli.build_dataset fetch [--force]
    python -m docs2qa.cli.build_dataset generate
    python -m docs2qa.cli.build_dataset generate-batch
    python -m docs2qa.cli.build_dataset merge
    python -m docs2qa.cli.build_dataset convert {openai,unsloth}
    python -m docs2qa.cli.build_dataset visualize
    python -m docs2qa.cli.build_dataset validate <archivo>
    python -m docs2qa.cli.build_dataset split <archivo>

La configuración (proveedor, API keys, pares por entrada, tamaño mínimo,
estrategia de reanudación) viene del entorno (.env) y de
config/settings.yaml. Los flags solo sobrescriben rutas y formato.
"""

import argparse
import logging
import sys
from pathlib import Path

from .. import LOGS_DIR, PROJECT_ROOT
from ..config import Settings, load_settings
from ..exceptions import Docs2QAError, StorageError
from ..llm_provider import LLMProviderError
from ..utils.logging_config import LogConfig, configure_logging

logger = logging.getLogger(__name__)


def load_env():
    """Carga variables de entorno desde .env."""
    from dotenv import load_dotenv

    env_path = PROJECT_ROOT / ".env"
    if env_path.exists():
        load_dotenv(env_path)


def ensure_output_dir(settings: Settings) -> Path:
    """Crea el directorio de salida. Un fallo aquí es fatal."""
    try:
        settings.output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise StorageError(f"No se pudo crear {settings.output_dir}: {e}") from e
    return settings.output_dir


def build_orchestrator(settings: Settings):
    """Instancia proveedor + orquestador a partir de Settings."""
    from ..generation import GenerationOrchestrator
    from ..llm_provider import get_llm_provider

    provider = get_llm_provider(settings.provider, settings.model)
    return GenerationOrchestrator(provider, settings.generation_config())


def print_metrics(metrics):
    print(f"\nEjecución {metrics.run_id} ({metrics.mode}):")
    print(f"  Entradas: {metrics.entries_total} (pendientes: {metrics.entries_planned}, "
          f"omitidas: {metrics.entries_skipped})")
    print(f"  Peticiones: {metrics.requests_succeeded} ok, {metrics.requests_failed} fallidas")
    print(f"  Pares: {metrics.pairs_written} escritos de {metrics.pairs_requested} pedidos")
    if metrics.batch_outcomes:
        outcomes = ", ".join(f"{k}={v}" for k, v in sorted(metrics.batch_outcomes.items()))
        print(f"  Resultados batch: {outcomes}")


def cmd_fetch(args, settings: Settings):
    """Descarga el bundle de documentación."""
    from ..ingestion import fetch_documentation

    ensure_output_dir(settings)
    path = fetch_documentation(settings.docs_url, settings.source_path, force=args.force)
    print(f"Documentación disponible en: {path}")


def cmd_generate(args, settings: Settings):
    """Generación secuencial."""
    from ..ingestion import fetch_documentation

    ensure_output_dir(settings)
    fetch_documentation(settings.docs_url, settings.source_path)

    orchestrator = build_orchestrator(settings)
    metrics = orchestrator.run()
    print_metrics(metrics)
    print(f"\nDataset: {settings.training_set_path}")


def cmd_generate_batch(args, settings: Settings):
    """Generación con la API de batches."""
    from ..ingestion import fetch_documentation

    ensure_output_dir(settings)
    fetch_documentation(settings.docs_url, settings.source_path)

    orchestrator = build_orchestrator(settings)
    metrics = orchestrator.run_batch()
    print_metrics(metrics)
    print(f"\nDataset: {settings.training_set_path}")


def cmd_merge(args, settings: Settings):
    """Une todos los JSONL del directorio de salida."""
    from ..finetuning import FineTuneFormatter

    input_dir = Path(args.input_dir) if args.input_dir else settings.output_dir
    output_path = Path(args.output) if args.output else settings.merged_path

    stats = FineTuneFormatter(topic=settings.topic).merge_files(input_dir, output_path)
    print(f"\nArchivos: {len(stats['files'])}")
    print(f"Registros: {stats['total_records']}")
    print(f"Salida: {stats['output_file']}")


def cmd_convert(args, settings: Settings):
    """Convierte el dataset a formato de fine-tuning."""
    from ..finetuning import FineTuneFormatter

    if args.input:
        inputs = [Path(args.input)]
    else:
        inputs = [settings.merged_path, settings.training_set_path]
    output_path = Path(args.output) if args.output else (
        settings.output_dir / f"{args.format}.jsonl"
    )

    try:
        stats = FineTuneFormatter(topic=settings.topic).convert_file(
            inputs, output_path, args.format
        )
    except FileNotFoundError as e:
        print(f"Error: {e}")
        sys.exit(1)

    print(f"\nEntrada: {stats['input_file']}")
    print(f"Convertidos: {stats['total']} registros ({stats['format']})")
    print(f"Salida: {stats['output_file']}")


def cmd_visualize(args, settings: Settings):
    """Genera el visor HTML del dataset."""
    from ..visualization import write_visualization

    input_path = Path(args.input) if args.input else settings.training_set_path
    output_path = Path(args.output) if args.output else (
        settings.output_dir / "visualization.html"
    )

    if not input_path.exists():
        print(f"No existe {input_path}. Ejecuta generate primero.")
        sys.exit(1)

    stats = write_visualization(input_path, output_path, topic=settings.topic)
    print(f"\nVisualización: {stats['output_file']}")
    print(f"Pares: {stats['records']} en {stats['sources']} páginas")


def cmd_validate(args, settings: Settings):
    """Valida un archivo convertido."""
    from ..finetuning import FineTuneFormatter

    stats = FineTuneFormatter(topic=settings.topic).validate_format(Path(args.file))

    if "error" in stats:
        print(f"Error: {stats['error']}")
        sys.exit(1)

    print("\nResultado de validación:")
    print(f"  Válido: {'Sí' if stats['valid'] else 'No'}")
    print(f"  Líneas totales: {stats['total_lines']}")
    print(f"  Líneas válidas: {stats['valid_lines']}")
    print(f"  Duplicados: {stats['duplicates']}")
    print(f"  Formato: {stats['format_detected']}")

    if stats["errors"]:
        print(f"\n  Errores ({len(stats['errors'])}):")
        for err in stats["errors"][:10]:
            print(f"    - {err}")
        sys.exit(1)


def cmd_split(args, settings: Settings):
    """Divide un archivo en train/val."""
    from ..finetuning import FineTuneFormatter

    input_path = Path(args.file)
    parent = input_path.parent
    train_path = parent / f"{input_path.stem}_train.jsonl"
    val_path = parent / f"{input_path.stem}_val.jsonl"

    try:
        stats = FineTuneFormatter(topic=settings.topic).split_train_val(
            input_path, train_path, val_path,
            val_fraction=args.val_fraction,
            seed=args.seed,
        )
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    print(f"\nSplit completado:")
    print(f"  Train: {stats['train']} ({train_path})")
    print(f"  Val: {stats['val']} ({val_path})")
    print(f"  Fracción val: {stats['val_fraction_actual']:.1%}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docs2qa",
        description="Genera un dataset pregunta/respuesta a partir de documentación",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Ejemplos:
  %(prog)s fetch --force         Descargar de nuevo la documentación
  %(prog)s generate              Generar pares (una llamada por página)
  %(prog)s generate-batch        Generar pares con la API de batches
  %(prog)s convert openai        Convertir a formato OpenAI
""",
    )
    parser.add_argument("--config", type=Path, help="Ruta a settings.yaml")
    parser.add_argument("--verbose", "-v", action="store_true", help="Modo verboso")
    parser.add_argument("--log-format", choices=["console", "json"], default="console")

    subparsers = parser.add_subparsers(dest="command", help="Subcomando")

    # fetch
    p_fet = subparsers.add_parser("fetch", help="Descargar la documentación")
    p_fet.add_argument("--force", "-f", action="store_true", help="Ignorar la caché")

    # generate / generate-batch
    subparsers.add_parser("generate", help="Generar pares en modo secuencial")
    subparsers.add_parser("generate-batch", help="Generar pares con un batch asíncrono")

    # merge
    p_mer = subparsers.add_parser("merge", help="Unir los JSONL ordenando por source")
    p_mer.add_argument("--input-dir", help="Directorio con los JSONL")
    p_mer.add_argument("--output", "-o", help="Archivo de salida")

    # convert
    p_con = subparsers.add_parser("convert", help="Convertir a formato de fine-tuning")
    p_con.add_argument("format", choices=["openai", "unsloth"])
    p_con.add_argument("--input", "-i", help="JSONL de entrada (default: merged, luego training-set)")
    p_con.add_argument("--output", "-o", help="Archivo de salida")

    # visualize
    p_vis = subparsers.add_parser("visualize", help="Generar visor HTML")
    p_vis.add_argument("--input", "-i", help="JSONL de entrada")
    p_vis.add_argument("--output", "-o", help="Archivo HTML de salida")

    # validate
    p_val = subparsers.add_parser("validate", help="Validar un archivo convertido")
    p_val.add_argument("file", help="Archivo JSONL")

    # split
    p_spl = subparsers.add_parser("split", help="Dividir en train/val")
    p_spl.add_argument("file", help="Archivo JSONL de entrada")
    p_spl.add_argument("--val-fraction", type=float, default=0.1)
    p_spl.add_argument("--seed", type=int, default=42)

    return parser


def main(argv=None):
    """Punto de entrada principal."""
    load_env()

    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    configure_logging(LogConfig(
        level="DEBUG" if args.verbose else "INFO",
        format=args.log_format,
        log_file=LOGS_DIR / "docs2qa.log",
    ))

    cmd_map = {
        "fetch": cmd_fetch,
        "generate": cmd_generate,
        "generate-batch": cmd_generate_batch,
        "merge": cmd_merge,
        "convert": cmd_convert,
        "visualize": cmd_visualize,
        "validate": cmd_validate,
        "split": cmd_split,
    }

    try:
        settings = load_settings(args.config)
        cmd_map[args.command](args, settings)
    except (Docs2QAError, LLMProviderError) as e:
        logger.error(f"{type(e).__name__}: {e}")
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
