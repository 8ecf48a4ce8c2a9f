"""
Procesamiento de exámenes completos en PDF.

Cada página se renderiza con PyMuPDF a la resolución pedida (300 dpi por
defecto), se convierte a BGR (formato OpenCV) y se entrega a ``OMRSystem``.
El renderizado es perezoso: las páginas se generan de una en una.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Tuple

import cv2  # type: ignore
import fitz  # PyMuPDF
import numpy as np

from models import PageResult
from omr_system import OMRSystem
from settings import OMRSettings

logger = logging.getLogger(__name__)

DEFAULT_DPI = 300


def _render_page(page: fitz.Page, dpi: int) -> np.ndarray:
    """Renderiza una página en imagen BGR."""
    zoom = dpi / 72
    pix = page.get_pixmap(matrix=fitz.Matrix(zoom, zoom), alpha=False)
    arr = np.frombuffer(pix.samples, dtype=np.uint8)
    image = arr.reshape(pix.h, pix.w, pix.n)
    if pix.n == 1:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    if pix.n == 4:
        image = image[:, :, :3]
    return cv2.cvtColor(image, cv2.COLOR_RGB2BGR)


def count_pages(pdf_path: str | Path) -> int:
    if not Path(pdf_path).exists():
        raise FileNotFoundError(f"No existe el PDF: {pdf_path}")
    with fitz.open(str(pdf_path)) as doc:
        return len(doc)


def render_pdf_pages(pdf_path: str | Path, dpi: int = DEFAULT_DPI) -> Iterator[Tuple[int, np.ndarray]]:
    """Genera ``(numero_de_pagina, imagen_bgr)`` empezando en 1."""

    pdf_path = Path(pdf_path)
    if not pdf_path.exists():
        raise FileNotFoundError(f"No existe el PDF: {pdf_path}")

    with fitz.open(str(pdf_path)) as doc:
        for index, page in enumerate(doc, start=1):
            yield index, _render_page(page, dpi)


def procesar_pdf(
    pdf_path: str | Path,
    settings: OMRSettings | None = None,
    dpi: int = DEFAULT_DPI,
    debug_dir: str | Path | None = None,
    progress_callback: Optional[Callable[[int, int], None]] = None,
    max_workers: int | None = None,
) -> List[PageResult]:
    """Procesa todas las páginas de un PDF y devuelve un ``PageResult`` por página."""

    system = OMRSystem(settings, debug_dir=debug_dir)
    total_paginas = count_pages(pdf_path)
    logger.info("Procesando %s (%d páginas, %d dpi)", pdf_path, total_paginas, dpi)

    if progress_callback is not None:
        progress_callback(0, total_paginas)

    resultados: List[PageResult] = []
    pages = render_pdf_pages(pdf_path, dpi)
    for resultado in system.process_pages(pages, max_workers=max_workers):
        resultados.append(resultado)
        if progress_callback is not None:
            progress_callback(len(resultados), total_paginas)

    return resultados


__all__ = ["DEFAULT_DPI", "count_pages", "procesar_pdf", "render_pdf_pages"]
