"""Lector específico del bloque de DNI."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Sequence

import numpy as np

from alignment import AnchorMark
from bubble_reader import Rect, centered_roi, roi_size, sample_intensity
from settings import OMRSettings

logger = logging.getLogger(__name__)


@dataclass
class DNIReading:
    digits: str
    rois: List[Rect] = field(default_factory=list)


def select_dni_marks(marks: Sequence[AnchorMark], width: int, settings: OMRSettings) -> List[AnchorMark]:
    limit = width * settings.dni_max_x_ratio
    return sorted((m for m in marks if m.cx <= limit), key=lambda m: m.cx)


def read_dni(gray: np.ndarray, marks: Sequence[AnchorMark], settings: OMRSettings) -> DNIReading:
    """Lee los dígitos del DNI a partir de las barras inferiores de la izquierda.

    Cada barra marca el centro X de una columna de dígitos; la rejilla vertical
    cubre ``dni_band_height_ratio`` del alto de la página por encima de la
    media Y de las barras, dividida en ``dni_rows`` filas iguales (0 arriba).
    Si faltan barras el DNI se devuelve como ``?`` en todas las posiciones.
    """

    h, w = gray.shape[:2]
    dni_marks = select_dni_marks(marks, w, settings)
    if len(dni_marks) < settings.dni_digits:
        logger.warning(
            "[dni] marcas insuficientes: %d de %d", len(dni_marks), settings.dni_digits
        )
        return DNIReading(digits="?" * settings.dni_digits)

    columns = dni_marks[: settings.dni_digits]
    y_base = float(np.mean([m.cy for m in columns]))
    band_height = settings.dni_band_height_ratio * h
    y_top = max(0.0, y_base - band_height)
    step = band_height / settings.dni_rows
    size = roi_size(settings.dni_roi_size_ratio, h, settings.min_roi_size_px)

    digits: List[str] = []
    rois: List[Rect] = []
    for mark in columns:
        intensities = []
        for row in range(settings.dni_rows):
            roi = centered_roi(mark.cx, y_top + (row + 0.5) * step, size, w, h)
            rois.append(roi)
            intensities.append(sample_intensity(gray, roi))

        best_row = int(np.argmin(intensities))
        if intensities[best_row] <= settings.dni_intensity_threshold:
            digits.append(str(best_row))
        else:
            digits.append("?")

    logger.debug("[dni] y_top=%.1f, paso=%.1f, roi=%d, dni=%s", y_top, step, size, "".join(digits))
    return DNIReading(digits="".join(digits), rois=rois)


__all__ = ["DNIReading", "read_dni", "select_dni_marks"]
