# tests/__init__.py
"""
docs2qa Test Suite.

Estructura de tests:
- test_splitter.py: División del bundle en entradas
- test_response_parser.py: Prompt de generación y parser Q/A
- test_correlation.py: custom_id de batches
- test_progress.py: Marcador de progreso, recuento por source y JSONL
- test_orchestrator.py: Pipeline reanudable (secuencial y batch)
- test_llm_provider.py: Adaptadores Anthropic / OpenAI
- test_finetuning.py: Merge, conversión, validación y split
- test_visualization.py: Visor HTML
- test_config.py / test_fetcher.py / test_cli.py
- conftest.py: Fixtures y proveedores stub compartidos

Ejecutar todos los tests:
    pytest tests/ -v

Ejecutar con cobertura:
    pytest tests/ --cov=docs2qa --cov-report=html
"""
