"""Sistema OMR completo basado en las marcas inferiores de la hoja.

Flujo por página: validación de la imagen, preprocesado (gris, blur,
binarizado Otsu), detección de marcas ancla, corrección de inclinación (una
única pasada) y lectura de DNI y respuestas a partir de los centros
detectados, sin coordenadas absolutas.

Ejemplo::

    system = OMRSystem(OMRSettings())
    result = system.process_page(image, page_number=1)

    for result in system.process_pages(render_pdf_pages("examen.pdf")):
        ...
"""

from __future__ import annotations

import logging
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from itertools import islice
from pathlib import Path
from typing import Deque, Dict, Iterable, Iterator, Sequence, Tuple

import numpy as np

from alignment import AnchorMark, detect_bottom_marks, estimate_skew_angle, needs_rotation, rotate_page
from answers_reader import read_answers
from bubble_reader import Rect
from debug_images import DebugImageExporter
from dni_reader import read_dni
from models import PageResult
from scanner_input import binarize, ensure_color, to_grayscale, validate_page_image
from settings import OMRSettings
from template_reader import read_answers_fixed, read_dni_fixed

logger = logging.getLogger(__name__)


class PreprocessedPage:
    """Buffers derivados de una página; se liberan al salir del bloque ``with``."""

    def __init__(
        self,
        color: np.ndarray,
        gray: np.ndarray,
        binary: np.ndarray,
        marks: Sequence[AnchorMark] = (),
    ) -> None:
        self._buffers: Dict[str, np.ndarray] | None = {
            "color": color,
            "gray": gray,
            "binary": binary,
        }
        self.marks: Tuple[AnchorMark, ...] = tuple(marks)

    def _buffer(self, name: str) -> np.ndarray:
        if self._buffers is None:
            raise RuntimeError("La página preprocesada ya fue liberada")
        return self._buffers[name]

    @property
    def color(self) -> np.ndarray:
        return self._buffer("color")

    @property
    def gray(self) -> np.ndarray:
        return self._buffer("gray")

    @property
    def binary(self) -> np.ndarray:
        return self._buffer("binary")

    @property
    def released(self) -> bool:
        return self._buffers is None

    def release(self) -> None:
        self._buffers = None
        self.marks = ()

    def __enter__(self) -> "PreprocessedPage":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()


def _prepare(color: np.ndarray, settings: OMRSettings, detect: bool) -> PreprocessedPage:
    gray = to_grayscale(color)
    binary = binarize(gray, settings.blur_kernel)
    marks = detect_bottom_marks(binary, (color.shape[1], color.shape[0]), settings) if detect else []
    return PreprocessedPage(color, gray, binary, marks)


def preprocess_page(image: np.ndarray, settings: OMRSettings) -> PreprocessedPage:
    """Preprocesa la página y, si está inclinada, la endereza una sola vez.

    En modo de plantilla fija no se buscan marcas ni se corrige la
    inclinación.
    """

    color = ensure_color(image)
    if settings.use_fixed_template:
        return _prepare(color, settings, detect=False)

    page = _prepare(color, settings, detect=True)
    angle = estimate_skew_angle(page.marks)
    logger.debug("[preprocesado] marcas=%d, angulo=%.3f", len(page.marks), angle)
    if not needs_rotation(angle, settings):
        return page

    with page:
        rotated = rotate_page(page.color, angle)
    page = _prepare(rotated, settings, detect=True)
    logger.debug(
        "[preprocesado] página girada %.3f grados; marcas tras el giro=%d",
        angle,
        len(page.marks),
    )
    return page


class OMRSystem:
    def __init__(
        self,
        settings: OMRSettings | None = None,
        debug_dir: str | Path | None = None,
    ) -> None:
        self.settings = settings or OMRSettings()
        self.debug_exporter = DebugImageExporter(debug_dir) if debug_dir is not None else None

    def process_page(self, image: np.ndarray, page_number: int) -> PageResult:
        validate_page_image(image)
        settings = self.settings

        with preprocess_page(image, settings) as page:
            if settings.use_fixed_template:
                dni = read_dni_fixed(page.binary, settings.template)
                answers = read_answers_fixed(page.binary, settings.template, settings.answer_labels)
            else:
                dni = read_dni(page.gray, page.marks, settings)
                answers = read_answers(page.gray, page.marks, settings)

            if settings.export_debug_images:
                self._export_debug(page.color, dni.rois, answers.rois, page_number)

        logger.info(
            "[pagina %d] dni=%s, respuestas=%d", page_number, dni.digits, len(answers.answers)
        )
        return PageResult(page=page_number, dni=dni.digits, answers=answers.answers)

    def _export_debug(
        self,
        color: np.ndarray,
        dni_rois: Sequence[Rect],
        answer_rois: Sequence[Rect],
        page_number: int,
    ) -> None:
        if self.debug_exporter is None:
            return
        try:
            self.debug_exporter.save_dni(color, dni_rois, page_number)
            self.debug_exporter.save_answers(color, answer_rois, page_number)
        except Exception as exc:  # noqa: BLE001
            logger.debug("[debug] exportación descartada en la página %d: %s", page_number, exc)

    def process_pages(
        self,
        pages: Iterable[Tuple[int, np.ndarray]],
        max_workers: int | None = None,
    ) -> Iterator[PageResult]:
        """Procesa un lote de páginas ``(numero, imagen)`` en el orden de entrada.

        Los resultados se generan de forma perezosa. Con ``max_workers > 1``
        las páginas se reparten entre hilos; los ajustes son de sólo lectura.
        Como mucho ``2 * max_workers`` páginas quedan pendientes a la vez.
        """

        if not max_workers or max_workers <= 1:
            for page_number, image in pages:
                yield self.process_page(image, page_number)
            return

        source = iter(pages)
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            window: Deque[Future] = deque(
                executor.submit(self.process_page, image, page_number)
                for page_number, image in islice(source, max_workers * 2)
            )
            try:
                while window:
                    result = window.popleft().result()
                    for page_number, image in islice(source, 1):
                        window.append(executor.submit(self.process_page, image, page_number))
                    yield result
            finally:
                # Si el consumidor abandona el lote no se procesa lo pendiente
                for future in window:
                    future.cancel()


__all__ = ["OMRSystem", "PreprocessedPage", "preprocess_page"]
