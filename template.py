"""Plantilla de proporciones fijas (modo alternativo, sin marcas ancla).

Esta plantilla modela la hoja de la academia mediante rectángulos normalizados
(0..1 respecto al ancho y alto de la página). No detecta marcas inferiores:
el bloque de DNI y cada columna de preguntas se dividen en partes iguales.
Sólo se usa cuando ``OMRSettings.use_fixed_template`` está activo.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Tuple


PixelRect = Tuple[int, int, int, int]


@dataclass(frozen=True)
class NormalizedRect:
    """Rectángulo en coordenadas relativas ``(x, y, ancho, alto)``."""

    x: float
    y: float
    width: float
    height: float

    def to_pixel_rect(self, page_width: int, page_height: int) -> PixelRect:
        x = int(round(self.x * page_width))
        y = int(round(self.y * page_height))
        x = max(0, min(x, page_width - 1))
        y = max(0, min(y, page_height - 1))
        w = int(round(self.width * page_width))
        h = int(round(self.height * page_height))
        w = max(1, min(w, page_width - x))
        h = max(1, min(h, page_height - y))
        return x, y, w, h


@dataclass(frozen=True)
class AnswerColumnTemplate:
    question_start: int
    questions: int
    region: NormalizedRect


def _default_columns() -> Tuple[AnswerColumnTemplate, ...]:
    # Cuatro columnas de 20 preguntas con las alternativas A–E en horizontal
    return tuple(
        AnswerColumnTemplate(
            question_start=1 + idx * 20,
            questions=20,
            region=NormalizedRect(x, 0.16, 0.13, 0.70),
        )
        for idx, x in enumerate((0.335, 0.480, 0.625, 0.770))
    )


@dataclass(frozen=True)
class TemplateGeometry:
    """Parámetros geométricos de la hoja en modo de proporciones fijas.

    El rectángulo del DNI abarca únicamente las columnas de burbujas (no los
    cuadros donde se escribe el número a mano), de modo que las 10 filas del
    bloque se obtienen dividiendo la región en partes iguales.
    """

    dni_region: NormalizedRect = NormalizedRect(0.055, 0.23, 0.24, 0.34)
    dni_digits: int = 8
    answer_columns: Tuple[AnswerColumnTemplate, ...] = field(default_factory=_default_columns)
    options_per_question: int = 5

    # Umbrales sobre la fracción de píxeles con tinta (0..1)
    selection_threshold: float = 0.25
    ambiguity_margin: float = 0.08
    dni_threshold: float = 0.15
    # Margen mínimo entre el mejor y el segundo dígito; no configurable en la hoja original
    dni_ambiguity_margin: float = 0.02

    @property
    def question_count(self) -> int:
        return sum(col.questions for col in self.answer_columns)

    @classmethod
    def from_dict(cls, data: dict) -> "TemplateGeometry":
        values = dict(data)
        unknown = set(values) - {f.name for f in fields(cls)}
        if unknown:
            raise ValueError(f"Claves de plantilla desconocidas: {sorted(unknown)}")
        if "dni_region" in values and not isinstance(values["dni_region"], NormalizedRect):
            values["dni_region"] = NormalizedRect(*values["dni_region"])
        if "answer_columns" in values:
            values["answer_columns"] = tuple(
                col
                if isinstance(col, AnswerColumnTemplate)
                else AnswerColumnTemplate(
                    question_start=int(col["question_start"]),
                    questions=int(col["questions"]),
                    region=NormalizedRect(*col["region"]),
                )
                for col in values["answer_columns"]
            )
        return cls(**values)


__all__ = ["AnswerColumnTemplate", "NormalizedRect", "PixelRect", "TemplateGeometry"]
