"""Exportación opcional de imágenes de depuración.

Dibuja sobre una copia de la página las regiones muestreadas (DNI o
respuestas) y la guarda en un directorio indicado por quien llama. Cualquier
error se registra y se descarta: la depuración nunca afecta a la lectura.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

import cv2  # type: ignore
import numpy as np

from bubble_reader import Rect

logger = logging.getLogger(__name__)

HIGHLIGHT_COLOR = (0, 255, 0)
DNI_DIR_NAME = "DNI"
ANSWERS_DIR_NAME = "respuestas"


class DebugImageExporter:
    def __init__(self, base_dir: str | Path) -> None:
        self.base_dir = Path(base_dir)

    def save_dni(self, page: np.ndarray, rois: Sequence[Rect], page_number: int) -> Path | None:
        return self._save(page, rois, page_number, DNI_DIR_NAME, "dni")

    def save_answers(self, page: np.ndarray, rois: Sequence[Rect], page_number: int) -> Path | None:
        return self._save(page, rois, page_number, ANSWERS_DIR_NAME, "respuestas")

    def _save(
        self,
        page: np.ndarray,
        rois: Sequence[Rect],
        page_number: int,
        dir_name: str,
        prefix: str,
    ) -> Path | None:
        if not rois:
            return None

        try:
            target_dir = self.base_dir / dir_name
            target_dir.mkdir(parents=True, exist_ok=True)
            canvas = cv2.cvtColor(page, cv2.COLOR_GRAY2BGR) if page.ndim == 2 else page.copy()
            for x, y, w, h in rois:
                cv2.rectangle(canvas, (x, y), (x + w - 1, y + h - 1), HIGHLIGHT_COLOR, 2)

            destination = target_dir / f"{prefix}_pagina_{page_number:03d}.png"
            if not cv2.imwrite(str(destination), canvas):
                logger.debug("[debug] no se pudo escribir %s", destination)
                return None
            return destination
        except Exception as exc:  # noqa: BLE001
            logger.debug("[debug] error exportando %s de la página %d: %s", prefix, page_number, exc)
            return None


__all__ = ["DebugImageExporter"]
