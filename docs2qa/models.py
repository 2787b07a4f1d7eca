"""
Modelos de datos del pipeline.

Todos son inmutables: un DocEntry sale del splitter, un QAPair del parser
y un QARecord es la unidad persistida en JSON-Lines.
"""

from dataclasses import dataclass, asdict
from typing import Dict


@dataclass(frozen=True)
class DocEntry:
    """Una página de documentación: identificador + contenido."""
    id: str
    content: str


@dataclass(frozen=True)
class QAPair:
    """Pregunta y respuesta extraídas de una respuesta del modelo."""
    question: str
    answer: str


@dataclass(frozen=True)
class QARecord:
    """Registro persistido: {source, question, answer}."""
    source: str
    question: str
    answer: str

    @classmethod
    def from_pair(cls, source: str, pair: QAPair) -> "QARecord":
        return cls(source=source, question=pair.question, answer=pair.answer)

    @classmethod
    def from_dict(cls, data: Dict) -> "QARecord":
        return cls(
            source=data["source"],
            question=data["question"],
            answer=data["answer"],
        )

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)
