"""Lectura con la plantilla de proporciones fijas (sin marcas ancla).

Trabaja sobre la imagen binaria: el nivel de relleno de cada celda es la
fracción de píxeles con tinta. Las regiones se dividen en partes iguales.
"""

from __future__ import annotations

from typing import List, Sequence

import numpy as np

from answers_reader import AnswersReading
from bubble_reader import Rect, fill_level
from dni_reader import DNIReading
from models import AnswerResult, AnswerState
from template import AnswerColumnTemplate, TemplateGeometry


def _best_two(scores: Sequence[float]) -> tuple[int, float, float]:
    best_idx = int(np.argmax(scores))
    ordered = sorted(scores, reverse=True)
    second = ordered[1] if len(ordered) > 1 else 0.0
    return best_idx, float(scores[best_idx]), float(second)


def read_dni_fixed(binary: np.ndarray, template: TemplateGeometry) -> DNIReading:
    h, w = binary.shape[:2]
    rx, ry, rw, rh = template.dni_region.to_pixel_rect(w, h)
    digits = max(1, template.dni_digits)
    column_width = max(1, rw // digits)
    cell_height = max(1, rh // 10)

    result: List[str] = []
    rois: List[Rect] = []
    for col in range(digits):
        x = rx + min(rw - 1, col * column_width)
        width = min(column_width, rx + rw - x)
        scores = []
        cells = []
        for digit in range(10):
            y = ry + min(rh - 1, digit * cell_height)
            cell = (x, y, width, min(cell_height, ry + rh - y))
            cells.append(cell)
            scores.append(fill_level(binary, cell))

        best_idx, best, second = _best_two(scores)
        rois.append(cells[best_idx])
        if best < template.dni_threshold or best - second < template.dni_ambiguity_margin:
            result.append("?")
        else:
            result.append(str(best_idx))

    return DNIReading(digits="".join(result), rois=rois)


def _read_column(
    binary: np.ndarray,
    column: AnswerColumnTemplate,
    template: TemplateGeometry,
    labels: Sequence[str],
    rois: List[Rect],
) -> List[AnswerResult]:
    h, w = binary.shape[:2]
    cx, cy, cw, ch = column.region.to_pixel_rect(w, h)
    questions = max(1, column.questions)
    options = max(1, template.options_per_question)
    row_height = max(1, ch // questions)
    option_width = max(1, cw // options)

    answers: List[AnswerResult] = []
    for i in range(questions):
        y = cy + min(ch - 1, i * row_height)
        height = min(row_height, cy + ch - y)
        cells = []
        for opt in range(options):
            x = cx + min(cw - 1, opt * option_width)
            cells.append((x, y, min(option_width, cx + cw - x), height))
        scores = [fill_level(binary, cell) for cell in cells]

        best_idx, best, second = _best_two(scores)
        rois.append(cells[best_idx])
        question = column.question_start + i
        if best < template.selection_threshold:
            answers.append(AnswerResult(question=question))
        elif best - second < template.ambiguity_margin:
            answers.append(AnswerResult(question=question, state=AnswerState.MULTIPLE))
        else:
            answers.append(
                AnswerResult(
                    question=question,
                    selected=labels[best_idx],
                    confidence=min(1.0, max(0.0, best)),
                    state=AnswerState.VALID,
                )
            )
    return answers


def read_answers_fixed(binary: np.ndarray, template: TemplateGeometry, labels: Sequence[str]) -> AnswersReading:
    rois: List[Rect] = []
    answers: List[AnswerResult] = []
    for column in template.answer_columns:
        answers.extend(_read_column(binary, column, template, labels, rois))
    return AnswersReading(answers=answers, rois=rois)


__all__ = ["read_answers_fixed", "read_dni_fixed"]
