"""Lector de respuestas agrupadas en bloques de alternativas A–E."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

import numpy as np

from alignment import AnchorMark
from bubble_reader import Rect, centered_roi, compute_confidence, roi_size, sample_intensity
from models import AnswerResult, AnswerState
from settings import OMRSettings, QuestionBlockSettings

logger = logging.getLogger(__name__)


@dataclass
class AnswersReading:
    answers: List[AnswerResult]
    rois: List[Rect] = field(default_factory=list)


def select_answer_marks(marks: Sequence[AnchorMark], width: int, settings: OMRSettings) -> List[AnchorMark]:
    limit = width * settings.answers_min_x_ratio
    return sorted((m for m in marks if m.cx >= limit), key=lambda m: m.cx)


# ---------------------------------------------------------------------------
# Agrupación de marcas en bloques
# ---------------------------------------------------------------------------


def _normalize_group(group: List[AnchorMark], options: int, merge_gap: float) -> List[AnchorMark]:
    """Fusiona detecciones duplicadas y limita el grupo a ``options`` marcas."""

    if not group:
        return []

    ordered = sorted(group, key=lambda m: m.cx)
    merged: List[AnchorMark] = [ordered[0]]
    for mark in ordered[1:]:
        previous = merged[-1]
        if mark.cx - previous.cx <= merge_gap:
            # Nos quedamos con la barra más grande del par
            merged[-1] = mark if mark.area > previous.area else previous
        else:
            merged.append(mark)

    return merged[:options]


def _merge_closest_groups(groups: List[List[AnchorMark]], options: int, merge_gap: float) -> None:
    if len(groups) <= 1:
        return

    index = -1
    min_gap = float("inf")
    for i in range(1, len(groups)):
        left, right = groups[i - 1], groups[i]
        if not left or not right:
            index = i - 1
            break
        gap = right[0].cx - left[-1].cx
        if gap < min_gap:
            min_gap = gap
            index = i - 1

    if index < 0:
        return

    combined = groups[index] + groups[index + 1]
    groups[index] = _normalize_group(combined, options, merge_gap)
    del groups[index + 1]


def build_answer_blocks(
    marks: Sequence[AnchorMark],
    width: int,
    options: int,
    target_blocks: int,
    split_gap_ratio: float,
    merge_gap_ratio: float,
) -> List[List[AnchorMark]]:
    """Reparte las marcas de respuestas en exactamente ``target_blocks`` grupos.

    Se corta la secuencia (ordenada por X) donde el hueco entre marcas
    consecutivas supera ``split_gap_ratio`` del ancho. Si salen más grupos de
    los esperados se fusionan los dos más cercanos hasta cuadrar; si salen
    menos se completan con grupos vacíos.
    """

    if target_blocks <= 0:
        return []

    ordered = sorted(marks, key=lambda m: m.cx)
    if not ordered:
        return [[] for _ in range(target_blocks)]

    split_gap = split_gap_ratio * width
    merge_gap = merge_gap_ratio * width

    groups: List[List[AnchorMark]] = []
    current: List[AnchorMark] = [ordered[0]]
    for previous, mark in zip(ordered, ordered[1:]):
        if mark.cx - previous.cx > split_gap:
            groups.append(_normalize_group(current, options, merge_gap))
            current = []
        current.append(mark)
    groups.append(_normalize_group(current, options, merge_gap))

    while len(groups) > target_blocks:
        before = len(groups)
        _merge_closest_groups(groups, options, merge_gap)
        if len(groups) == before:
            break

    while len(groups) < target_blocks:
        groups.append([])

    return groups[:target_blocks]


# ---------------------------------------------------------------------------
# Clasificación
# ---------------------------------------------------------------------------


def classify_options(
    question: int,
    intensities: Sequence[float],
    threshold: float,
    multiple_margin: float,
    labels: Sequence[str],
) -> AnswerResult:
    """Decide la alternativa marcada a partir de la intensidad de cada opción.

    Sólo cuentan las opciones con intensidad <= ``threshold``. Si las dos más
    oscuras están a menos de ``multiple_margin`` la pregunta es múltiple.
    """

    candidates: List[Tuple[float, int]] = sorted(
        (value, idx) for idx, value in enumerate(intensities) if value <= threshold
    )

    if not candidates:
        return AnswerResult(question=question)

    if len(candidates) >= 2 and candidates[1][0] - candidates[0][0] < multiple_margin:
        return AnswerResult(question=question, state=AnswerState.MULTIPLE)

    best_value, best_idx = candidates[0]
    return AnswerResult(
        question=question,
        selected=labels[best_idx],
        confidence=compute_confidence(best_value, threshold),
        state=AnswerState.VALID,
    )


def blank_block(block: QuestionBlockSettings) -> List[AnswerResult]:
    return [AnswerResult(question=block.start_question + i) for i in range(block.question_count)]


def read_answers(gray: np.ndarray, marks: Sequence[AnchorMark], settings: OMRSettings) -> AnswersReading:
    h, w = gray.shape[:2]
    options = settings.options_per_question
    labels = settings.answer_labels
    groups = build_answer_blocks(
        select_answer_marks(marks, w, settings),
        w,
        options,
        len(settings.question_blocks),
        settings.answer_block_split_gap_ratio,
        settings.answer_column_merge_gap_ratio,
    )
    size = roi_size(settings.answer_roi_size_ratio, h, settings.min_roi_size_px)

    answers: List[AnswerResult] = []
    rois: List[Rect] = []
    for block_idx, (block, group) in enumerate(zip(settings.question_blocks, groups), start=1):
        if len(group) != options:
            logger.warning(
                "[respuestas] bloque %d con %d marcas (se esperaban %d); se deja en blanco",
                block_idx,
                len(group),
                options,
            )
            answers.extend(blank_block(block))
            continue

        y_base = float(np.mean([m.cy for m in group]))
        block_height = block.height_ratio * h
        y_top = max(0.0, y_base - block_height)
        step = block_height / block.question_count

        for q in range(block.question_count):
            y_center = y_top + (q + 0.5) * step
            intensities = []
            for mark in group:
                roi = centered_roi(mark.cx, y_center, size, w, h)
                rois.append(roi)
                intensities.append(sample_intensity(gray, roi))

            answers.append(
                classify_options(
                    block.start_question + q,
                    intensities,
                    settings.answer_intensity_threshold,
                    settings.answer_multiple_margin,
                    labels,
                )
            )

    return AnswersReading(answers=answers, rois=rois)


__all__ = [
    "AnswersReading",
    "blank_block",
    "build_answer_blocks",
    "classify_options",
    "read_answers",
    "select_answer_marks",
]
