"""Parámetros del algoritmo OMR para la hoja de la academia.

Los valores se calibran sobre una digitalización de referencia:

- ``dni_band_height_ratio`` (hDni) es la distancia vertical, relativa al alto
  de la página, entre las marcas inferiores del DNI y la primera fila de
  burbujas.
- ``QuestionBlockSettings.height_ratio`` (hRespCol) es la distancia desde la
  parte superior de cada bloque de preguntas hasta sus marcas A–E.
- Los umbrales de intensidad (0-255) se ubican a mitad de camino entre el
  promedio de una burbuja rellenada y el de una vacía.

Los ajustes son inmutables: el pipeline nunca los modifica y pueden
compartirse entre hilos.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Tuple

from template import TemplateGeometry


@dataclass(frozen=True)
class QuestionBlockSettings:
    start_question: int
    question_count: int
    height_ratio: float = 0.63


def _default_blocks() -> Tuple[QuestionBlockSettings, ...]:
    return tuple(QuestionBlockSettings(start, 25, 0.63) for start in (1, 26, 51, 76))


@dataclass(frozen=True)
class OMRSettings:
    # --- Bloque de DNI ---
    dni_digits: int = 8
    dni_rows: int = 10
    dni_band_height_ratio: float = 0.24
    dni_roi_size_ratio: float = 0.012
    dni_intensity_threshold: float = 140

    # --- Respuestas ---
    options_per_question: int = 5
    answer_roi_size_ratio: float = 0.013
    answer_intensity_threshold: float = 150
    answer_multiple_margin: float = 12
    question_blocks: Tuple[QuestionBlockSettings, ...] = field(default_factory=_default_blocks)

    # --- Marcas rectangulares inferiores ---
    min_bottom_mark_area_ratio: float = 0.00025
    max_bottom_mark_area_ratio: float = 0.0045
    min_bottom_mark_aspect_ratio: float = 2.2
    max_bottom_mark_aspect_ratio: float = 10.0
    bottom_mark_band_height_ratio: float = 0.22
    dni_max_x_ratio: float = 0.32
    answers_min_x_ratio: float = 0.35

    # Separación (relativa al ancho) entre bloques de preguntas y entre
    # detecciones duplicadas de una misma marca
    answer_block_split_gap_ratio: float = 0.035
    answer_column_merge_gap_ratio: float = 0.008

    # --- Preprocesado ---
    skew_tolerance_deg: float = 0.2
    blur_kernel: int = 5
    min_roi_size_px: int = 5

    export_debug_images: bool = False

    # Modo alternativo sin marcas ancla (rectángulos normalizados fijos)
    use_fixed_template: bool = False
    template: TemplateGeometry = field(default_factory=TemplateGeometry)

    @property
    def question_count(self) -> int:
        if self.use_fixed_template:
            return self.template.question_count
        return sum(block.question_count for block in self.question_blocks)

    @property
    def answer_labels(self) -> Tuple[str, ...]:
        options = (
            self.template.options_per_question
            if self.use_fixed_template
            else self.options_per_question
        )
        return tuple(chr(ord("A") + idx) for idx in range(options))

    @property
    def dni_length(self) -> int:
        return self.template.dni_digits if self.use_fixed_template else self.dni_digits

    @classmethod
    def from_dict(cls, data: dict) -> "OMRSettings":
        """Construye los ajustes desde un diccionario plano (por ejemplo, JSON)."""

        values = dict(data)
        unknown = set(values) - {f.name for f in fields(cls)}
        if unknown:
            raise ValueError(f"Claves de configuración desconocidas: {sorted(unknown)}")

        if "question_blocks" in values:
            values["question_blocks"] = tuple(
                block
                if isinstance(block, QuestionBlockSettings)
                else QuestionBlockSettings(
                    start_question=int(block["start_question"]),
                    question_count=int(block["question_count"]),
                    height_ratio=float(block.get("height_ratio", 0.63)),
                )
                for block in values["question_blocks"]
            )
        if "template" in values and not isinstance(values["template"], TemplateGeometry):
            values["template"] = TemplateGeometry.from_dict(values["template"])
        return cls(**values)


__all__ = ["OMRSettings", "QuestionBlockSettings"]
