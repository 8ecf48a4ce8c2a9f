"""Detección de las marcas inferiores y corrección de inclinación."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Sequence, Tuple

import cv2  # type: ignore
import numpy as np

from settings import OMRSettings

logger = logging.getLogger(__name__)

Point = Tuple[float, float]


@dataclass(frozen=True)
class AnchorMark:
    """Barra rectangular impresa debajo de cada columna de la hoja."""

    bbox: Tuple[int, int, int, int]
    center: Point
    area: int

    @property
    def cx(self) -> float:
        return self.center[0]

    @property
    def cy(self) -> float:
        return self.center[1]


def detect_bottom_marks(
    binary: np.ndarray,
    page_size: Tuple[int, int],
    settings: OMRSettings,
) -> List[AnchorMark]:
    """Detecta las barras de sincronización en la banda inferior.

    ``page_size`` es ``(ancho, alto)``. Sólo se aceptan contornos externos
    cuyo rectángulo envolvente cumpla área, posición y relación de aspecto
    configuradas. Devuelve las marcas ordenadas de izquierda a derecha.
    """

    w, h = page_size
    page_area = w * h
    min_area = settings.min_bottom_mark_area_ratio * page_area
    max_area = settings.max_bottom_mark_area_ratio * page_area
    min_y = h * (1.0 - settings.bottom_mark_band_height_ratio)

    contours, _ = cv2.findContours(binary, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)

    marks: List[AnchorMark] = []
    for cnt in contours:
        x, y, rw, rh = cv2.boundingRect(cnt)
        area = rw * rh
        if area < min_area or area > max_area:
            continue
        if y < min_y:
            continue
        aspect = rw / rh if rh else 0.0
        if not (settings.min_bottom_mark_aspect_ratio <= aspect <= settings.max_bottom_mark_aspect_ratio):
            continue
        center = (x + rw / 2.0, y + rh / 2.0)
        marks.append(AnchorMark(bbox=(x, y, rw, rh), center=center, area=area))

    marks.sort(key=lambda m: m.cx)
    logger.debug("[marcas] contornos=%d, aceptadas=%d", len(contours), len(marks))
    return marks


def estimate_skew_angle(marks: Sequence[AnchorMark]) -> float:
    """Ángulo (grados) de la recta que pasa por los centros de las marcas.

    Con menos de dos marcas no se puede estimar y se devuelve 0.
    """

    if len(marks) < 2:
        return 0.0

    points = np.array([m.center for m in marks], dtype=np.float32)
    vx, vy, _, _ = cv2.fitLine(points, cv2.DIST_L2, 0, 0.01, 0.01).flatten()
    angle = math.degrees(math.atan2(float(vy), float(vx)))

    # fitLine no fija el sentido del vector director
    if angle > 90.0:
        angle -= 180.0
    elif angle <= -90.0:
        angle += 180.0
    return angle


def needs_rotation(angle: float, settings: OMRSettings) -> bool:
    return abs(angle) > settings.skew_tolerance_deg


def rotate_page(color: np.ndarray, angle: float) -> np.ndarray:
    """Gira la página sobre su centro para anular ``angle``; el borde queda blanco."""

    h, w = color.shape[:2]
    # En coordenadas de imagen (y hacia abajo) un ángulo positivo se anula
    # con una rotación antihoraria, que es el sentido positivo de OpenCV.
    # El signo es +angle a propósito: con -angle la inclinación se duplica.
    matrix = cv2.getRotationMatrix2D((w / 2.0, h / 2.0), angle, 1.0)
    return cv2.warpAffine(
        color,
        matrix,
        (w, h),
        flags=cv2.INTER_LINEAR,
        borderMode=cv2.BORDER_CONSTANT,
        borderValue=(255, 255, 255),
    )


__all__ = [
    "AnchorMark",
    "Point",
    "detect_bottom_marks",
    "estimate_skew_angle",
    "needs_rotation",
    "rotate_page",
]
