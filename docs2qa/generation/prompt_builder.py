"""
Prompt Builder - Prompt de generación de pares pregunta/respuesta.

El formato de salida que pide el template ("Q<k>: ... A<k>: ...") es el
contrato del que depende response_parser. Cambiar uno obliga a cambiar
el otro.
"""

QA_PROMPT_TEMPLATE = """
You are an expert in {topic} and web development. Based on the following {topic} documentation,
create {count} question and answer pairs that would be useful for training an AI to answer
questions about {topic} development. Each question should be challenging but answerable
from the provided documentation. Feel free to use large parts of the documentation and answer at length
with many code examples, however, you may ONLY use direct code examples from the documentation, you may NEVER invent
new code examples - this is crucial!

Use ```{code_language} code blocks to highlight code examples, and use ``` to mark the end of the code block.

Focus on questions that:
- Cover key concepts from the documentation
- Include practical code examples where appropriate
- Vary in difficulty (some basic, some advanced)
- Demonstrate understanding of the unique features described in the documentation

Documentation path: {entry_id}

Documentation content:
{content}

Format your response as follows:

Q1: [Question text]
A1: [Detailed answer with code examples when relevant]

Q2: [Question text]
A2: [Detailed answer with code examples when relevant]

...and so on until Q{count}.
"""


def build_qa_prompt(
    entry_id: str,
    content: str,
    count: int,
    topic: str = "Svelte 5",
    code_language: str = "svelte",
) -> str:
    """
    Construye el prompt para generar `count` pares de una entrada.

    Args:
        entry_id: Identificador de la página (ruta).
        content: Contenido de la página.
        count: Número de pares pedidos (>= 1).
        topic: Tecnología documentada, aparece en las instrucciones.
        code_language: Lenguaje de los bloques de código.
    """
    if count < 1:
        raise ValueError(f"count debe ser >= 1 (recibido {count})")

    return QA_PROMPT_TEMPLATE.format(
        topic=topic,
        count=count,
        code_language=code_language,
        entry_id=entry_id,
        content=content,
    )
