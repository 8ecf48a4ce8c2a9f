"""Muestreo de regiones de interés (ROI) sobre la página."""

from __future__ import annotations

from typing import Tuple

import numpy as np


Rect = Tuple[int, int, int, int]


def centered_roi(cx: float, cy: float, size: int, width: int, height: int) -> Rect:
    """Cuadrado de lado ``size`` centrado en ``(cx, cy)`` y recortado a la imagen."""

    half = size / 2.0
    x = int(round(cx - half))
    y = int(round(cy - half))
    x = max(0, min(x, max(0, width - 1)))
    y = max(0, min(y, max(0, height - 1)))
    w = max(1, min(size, width - x))
    h = max(1, min(size, height - y))
    return x, y, w, h


def roi_size(ratio: float, page_height: int, min_size: int = 5) -> int:
    return max(min_size, int(round(ratio * page_height)))


def _crop(image: np.ndarray, roi: Rect) -> np.ndarray:
    x, y, w, h = roi
    return image[y : y + h, x : x + w]


def sample_intensity(gray: np.ndarray, roi: Rect) -> float:
    """Intensidad media (0-255) de la región; más oscuro => más tinta."""

    region = _crop(gray, roi)
    if region.size == 0:
        return 255.0
    return float(region.mean())


def fill_level(binary: np.ndarray, roi: Rect) -> float:
    """Fracción de píxeles con tinta en una región de la imagen binaria."""

    region = _crop(binary, roi)
    if region.size == 0:
        return 0.0
    return float(np.count_nonzero(region)) / float(region.size)


def compute_confidence(intensity: float, threshold: float) -> float:
    if threshold <= 0:
        return 0.0
    value = (threshold - intensity) / threshold
    return float(min(1.0, max(0.0, value)))


__all__ = [
    "Rect",
    "centered_roi",
    "compute_confidence",
    "fill_level",
    "roi_size",
    "sample_intensity",
]
