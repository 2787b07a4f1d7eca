"""
HTML Report — Visor estático del dataset QA.

Agrupa los registros por source (una pestaña por página de documentación)
y muestra cada pregunta con su respuesta desplegable. Las respuestas se
renderizan con un subconjunto mínimo de Markdown:

- Bloques ```lang ... ``` → <pre><code class="language-lang">
- `código en línea` → <code>
- Párrafos separados por línea en blanco → <p>

Todo el texto se escapa antes de insertarse en el HTML.
"""

import html
import logging
import re
from collections import OrderedDict
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List

from ..exceptions import StorageError
from ..models import QARecord
from ..utils.jsonl import read_jsonl

logger = logging.getLogger(__name__)

_FENCED_CODE = re.compile(r"```([A-Za-z0-9_+-]*)(.*?)```", re.DOTALL)
_INLINE_CODE = re.compile(r"`([^`]+)`")


def _escape(text: str) -> str:
    return html.escape(text, quote=True)


def _format_text(text: str) -> str:
    paragraphs = []
    for para in text.split("\n\n"):
        para = para.strip()
        if not para:
            continue
        escaped = _INLINE_CODE.sub(r"<code>\1</code>", _escape(para))
        paragraphs.append(f"<p>{escaped}</p>")
    return "".join(paragraphs)


def format_markdown(text: str) -> str:
    """Convierte el Markdown mínimo de una respuesta en HTML seguro."""
    parts: List[str] = []
    pos = 0
    for match in _FENCED_CODE.finditer(text):
        parts.append(_format_text(text[pos:match.start()]))
        language, code = match.group(1), match.group(2)
        lang_class = f' class="language-{language}"' if language else ""
        parts.append(f"<pre><code{lang_class}>{_escape(code.strip())}</code></pre>")
        pos = match.end()
    parts.append(_format_text(text[pos:]))
    return "".join(parts)


def group_by_source(records: Iterable[QARecord]) -> Dict[str, List[QARecord]]:
    """Agrupa registros por source, ordenados alfabéticamente."""
    groups: Dict[str, List[QARecord]] = {}
    for record in records:
        groups.setdefault(record.source, []).append(record)
    return OrderedDict(sorted(groups.items()))


def _tab_label(source: str) -> str:
    return source.rstrip("/").split("/")[-1] or source


PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{title}</title>
  <style>
    :root {{
      --primary-color: #ff3e00;
      --text-color: #333;
      --light-gray: #f5f5f5;
      --border-color: #ddd;
      --answer-bg: #f9f9f9;
    }}
    body {{
      font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, Helvetica, Arial, sans-serif;
      line-height: 1.6;
      color: var(--text-color);
      max-width: 1200px;
      margin: 0 auto;
      padding: 20px;
    }}
    header {{ margin-bottom: 30px; text-align: center; }}
    h1, h2 {{ color: var(--primary-color); }}
    .tabs {{ display: flex; flex-wrap: wrap; gap: 2px; border-bottom: 1px solid var(--border-color); margin-bottom: 20px; }}
    .tab-button {{ background: var(--light-gray); border: 1px solid var(--border-color); border-bottom: none;
                   border-radius: 5px 5px 0 0; padding: 10px 15px; cursor: pointer; font-size: 14px; }}
    .tab-button.active {{ background: var(--primary-color); color: white; border-color: var(--primary-color); }}
    .tab-content {{ display: none; }}
    .tab-content.active {{ display: block; }}
    .qa-list {{ display: flex; flex-direction: column; gap: 15px; }}
    .qa-pair {{ border: 1px solid var(--border-color); border-radius: 5px; overflow: hidden; }}
    .question {{ padding: 15px; cursor: pointer; }}
    .question-header {{ display: flex; align-items: flex-start; }}
    .q-marker, .a-marker {{ font-weight: bold; color: var(--primary-color); margin-right: 10px; }}
    h3 {{ flex-grow: 1; font-size: 1.1rem; font-weight: 500; margin: 0; }}
    .answer {{ display: none; }}
    .answer.expanded {{ display: block; }}
    .answer-content {{ padding: 15px; display: flex; background: var(--answer-bg); border-top: 1px solid var(--border-color); }}
    .answer-text {{ flex-grow: 1; }}
    code {{ font-family: Menlo, Monaco, "Courier New", monospace; background: #f0f0f0; padding: 2px 4px; border-radius: 3px; }}
    pre {{ background: #282c34; color: #abb2bf; padding: 15px; border-radius: 5px; overflow-x: auto; }}
    pre code {{ background: transparent; padding: 0; color: inherit; display: block; }}
    .meta-info {{ margin-top: 30px; color: #666; font-size: 0.9rem; text-align: center; }}
  </style>
</head>
<body>
  <header>
    <h1>{title}</h1>
    <p>{subtitle}</p>
  </header>

  <div class="tabs">
{tabs}
  </div>

{contents}

  <div class="meta-info">
    <p>Generated on {generated_at}</p>
  </div>

  <script>
    function openTab(evt, tabId) {{
      for (const el of document.getElementsByClassName("tab-content")) el.classList.remove("active");
      for (const el of document.getElementsByClassName("tab-button")) el.classList.remove("active");
      document.getElementById(tabId).classList.add("active");
      evt.currentTarget.classList.add("active");
    }}
    function toggleAnswer(answerId) {{
      document.getElementById(answerId).classList.toggle("expanded");
    }}
  </script>
</body>
</html>
"""


def render_html(records: Iterable[QARecord], topic: str = "Svelte 5") -> str:
    """
    Genera la página HTML completa para un conjunto de registros.

    Args:
        records: Registros QA (cualquier orden).
        topic: Tecnología documentada, usada en título y subtítulo.
    """
    groups = group_by_source(records)

    tabs = []
    contents = []
    for index, (source, items) in enumerate(groups.items()):
        active = " active" if index == 0 else ""
        source_id = f"source-{index}"

        tabs.append(
            f'    <button class="tab-button{active}" '
            f"onclick=\"openTab(event, '{source_id}')\">"
            f"{_escape(_tab_label(source))}</button>"
        )

        pairs = []
        for qa_index, record in enumerate(items):
            qa_id = f"qa-{index}-{qa_index}"
            pairs.append(
                f'      <div class="qa-pair">\n'
                f'        <div class="question" onclick="toggleAnswer(\'{qa_id}\')">\n'
                f'          <div class="question-header"><span class="q-marker">Q:</span>'
                f"<h3>{_escape(record.question)}</h3></div>\n"
                f"        </div>\n"
                f'        <div id="{qa_id}" class="answer">\n'
                f'          <div class="answer-content"><span class="a-marker">A:</span>'
                f'<div class="answer-text">{format_markdown(record.answer)}</div></div>\n'
                f"        </div>\n"
                f"      </div>"
            )

        contents.append(
            f'  <div id="{source_id}" class="tab-content{active}">\n'
            f"    <h2>{_escape(source)}</h2>\n"
            f'    <div class="qa-list">\n' + "\n".join(pairs) + "\n    </div>\n  </div>"
        )

    return PAGE_TEMPLATE.format(
        title=_escape(f"{topic} Training Data Visualization"),
        subtitle=_escape(f"Interactive viewer for the {topic} training set"),
        tabs="\n".join(tabs),
        contents="\n".join(contents),
        generated_at=datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
    )


def write_visualization(input_path: Path, output_path: Path, topic: str = "Svelte 5") -> Dict:
    """
    Lee un JSONL de QARecord y escribe la página HTML.

    Raises:
        FileNotFoundError: Si no existe el archivo de entrada.
        StorageError: Si no se puede escribir el HTML.
    """
    input_path = Path(input_path)
    output_path = Path(output_path)

    records = [QARecord.from_dict(item) for item in read_jsonl(input_path)]
    page = render_html(records, topic=topic)

    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(page, encoding="utf-8")
    except OSError as e:
        raise StorageError(f"No se pudo escribir {output_path}: {e}") from e

    sources = len({r.source for r in records})
    logger.info(f"Visualización generada: {output_path} ({len(records)} pares, {sources} sources)")
    return {
        "input_file": str(input_path),
        "output_file": str(output_path),
        "records": len(records),
        "sources": sources,
    }
