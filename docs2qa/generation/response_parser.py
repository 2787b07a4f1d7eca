"""
Response Parser - Extrae pares Q/A de la respuesta del modelo.

Formato esperado (ver prompt_builder):

    Q1: pregunta
    A1: respuesta
    Q2: ...
"""

import re
from typing import List

from ..models import QAPair

_QUESTION_SPLIT = re.compile(r"\nQ\d+:")
_ANSWER_SPLIT = re.compile(r"\nA\d+:")


def parse_qa_pairs(text: str) -> List[QAPair]:
    """
    Parsea los pares de una respuesta en texto plano.

    Bloques sin marcador de respuesta se descartan en silencio. Si una
    respuesta contiene otro marcador "A<n>:" a inicio de línea, el resto
    se vuelve a unir con "\\nA:" y sigue perteneciendo a la misma pregunta.

    Returns:
        Lista ordenada de QAPair. Puede tener menos pares de los pedidos.
    """
    if not text:
        return []

    # Un "Q1:" al inicio del texto también cuenta como marcador
    blocks = _QUESTION_SPLIT.split("\n" + text)

    pairs = []
    # El fragmento 0 es lo anterior al primer marcador
    for block in blocks[1:]:
        parts = _ANSWER_SPLIT.split(block.strip())
        if len(parts) < 2:
            continue

        question = parts[0].strip()
        answer = "\nA:".join(parts[1:]).strip()
        pairs.append(QAPair(question=question, answer=answer))

    return pairs
