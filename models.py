"""Modelos de datos producidos por el lector OMR.

Se utilizan dataclasses para mantener el código simple y facilitar su
conversión a estructuras tabulares cuando se exportan los resultados.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List


class AnswerState(str, Enum):
    BLANK = "SIN RESPUESTA"
    VALID = "OK"
    MULTIPLE = "RESPUESTA MULTIPLE"


@dataclass(frozen=True)
class AnswerResult:
    """Resultado de una pregunta individual.

    Attributes
    ----------
    question:
        Número de pregunta (comienza en 1, único dentro de la página).
    selected:
        Letra marcada (A-E) o ``None`` si la pregunta quedó en blanco o es
        múltiple.
    confidence:
        Valor en [0, 1]. Siempre 0 para los estados en blanco y múltiple.
    state:
        Estado de la lectura.
    """

    question: int
    selected: str | None = None
    confidence: float = 0.0
    state: AnswerState = AnswerState.BLANK

    def to_dict(self, pagina: int, dni: str) -> dict:
        """Devuelve la respuesta en formato listo para pandas."""

        return {
            "pagina": pagina,
            "dni": dni,
            "pregunta": self.question,
            "respuesta": self.selected or "-",
            "estado": self.state.value,
            "confianza": self.confidence,
        }


@dataclass
class PageResult:
    """Información procesada de una sola hoja de respuestas."""

    page: int
    dni: str
    answers: List[AnswerResult] = field(default_factory=list)

    @property
    def blanks(self) -> int:
        return sum(1 for ans in self.answers if ans.state is AnswerState.BLANK)

    @property
    def multiples(self) -> int:
        return sum(1 for ans in self.answers if ans.state is AnswerState.MULTIPLE)

    @property
    def dni_complete(self) -> bool:
        return "?" not in self.dni

    def to_records(self) -> List[dict]:
        """Expande todas las respuestas en una lista de diccionarios."""

        return [ans.to_dict(self.page, self.dni) for ans in self.answers]


__all__ = ["AnswerResult", "AnswerState", "PageResult"]
