"""Carga, validación y binarizado de las páginas escaneadas."""

from __future__ import annotations

from pathlib import Path
from typing import Tuple

import cv2  # type: ignore
import numpy as np


class PageImageError(ValueError):
    """La imagen de la página no cumple el contrato de entrada."""


def load_image(path: str | Path) -> np.ndarray:
    img = cv2.imread(str(path), cv2.IMREAD_COLOR)
    if img is None:
        raise FileNotFoundError(f"No se pudo cargar la imagen: {path}")
    return img


def validate_page_image(image: np.ndarray) -> None:
    if not isinstance(image, np.ndarray):
        raise PageImageError(f"Se esperaba un np.ndarray, se recibió {type(image).__name__}")
    if image.ndim not in (2, 3):
        raise PageImageError(f"Dimensiones de imagen no soportadas: {image.shape}")
    if image.dtype != np.uint8:
        raise PageImageError(f"Se esperaba una imagen de 8 bits (uint8), se recibió {image.dtype}")
    h, w = image.shape[:2]
    if h == 0 or w == 0:
        raise PageImageError(f"Imagen vacía: {w}x{h}")
    channels = 1 if image.ndim == 2 else image.shape[2]
    if channels not in (1, 3, 4):
        raise PageImageError(f"Número de canales no soportado: {channels}")


def ensure_color(image: np.ndarray) -> np.ndarray:
    """Devuelve siempre una copia BGR de 3 canales."""

    validate_page_image(image)
    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)

    channels = image.shape[2]
    if channels == 3:
        return image.copy()
    if channels == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
    return cv2.cvtColor(image[:, :, 0], cv2.COLOR_GRAY2BGR)


def to_grayscale(image: np.ndarray) -> np.ndarray:
    if len(image.shape) == 3:
        return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    return image.copy()


def binarize(gray: np.ndarray, blur_kernel: int = 5) -> np.ndarray:
    """Suaviza y umbraliza con Otsu; la tinta queda a 255."""

    k = max(1, blur_kernel) | 1
    blur = cv2.GaussianBlur(gray, (k, k), 0)
    _, binary = cv2.threshold(blur, 0, 255, cv2.THRESH_BINARY_INV + cv2.THRESH_OTSU)
    return binary


def preprocess_image(image: np.ndarray, blur_kernel: int = 5) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Devuelve ``(color, gris, binaria)`` sin modificar la imagen original."""

    color = ensure_color(image)
    gray = to_grayscale(color)
    return color, gray, binarize(gray, blur_kernel)


__all__ = [
    "PageImageError",
    "binarize",
    "ensure_color",
    "load_image",
    "preprocess_image",
    "to_grayscale",
    "validate_page_image",
]
