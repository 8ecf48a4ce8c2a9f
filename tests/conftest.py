from __future__ import annotations

from typing import Iterable

import cv2
import numpy as np
import pytest

from alignment import AnchorMark
from settings import OMRSettings, QuestionBlockSettings

PAGE_W = 1200
PAGE_H = 1600

MARK_W = 30
MARK_H = 12
MARK_TOP = 1449
MARK_CY = MARK_TOP + MARK_H / 2.0

DNI_XS = [50 + 50 * k for k in range(8)]
BLOCK1_XS = [600, 640, 680, 720, 760]
BLOCK2_XS = [900, 940, 980, 1020, 1060]

# Rejilla derivada de los ajustes de prueba: banda de 800 px sobre las marcas
GRID_TOP = MARK_CY - 800
ROW_STEP = 80


def row_center(row: int) -> float:
    return GRID_TOP + (row + 0.5) * ROW_STEP


@pytest.fixture
def settings() -> OMRSettings:
    return OMRSettings(
        dni_band_height_ratio=0.5,
        dni_roi_size_ratio=0.02,
        answer_roi_size_ratio=0.02,
        question_blocks=(
            QuestionBlockSettings(1, 10, 0.5),
            QuestionBlockSettings(11, 10, 0.5),
        ),
        min_bottom_mark_area_ratio=0.00005,
        max_bottom_mark_area_ratio=0.005,
        min_bottom_mark_aspect_ratio=1.5,
        max_bottom_mark_aspect_ratio=10.0,
        bottom_mark_band_height_ratio=0.15,
        dni_max_x_ratio=0.4,
        answers_min_x_ratio=0.45,
        answer_block_split_gap_ratio=0.06,
        answer_column_merge_gap_ratio=0.01,
    )


def blank_page(width: int = PAGE_W, height: int = PAGE_H) -> np.ndarray:
    return np.full((height, width, 3), 255, dtype=np.uint8)


def draw_marks(page: np.ndarray, xs: Iterable[int], top: int = MARK_TOP) -> np.ndarray:
    for cx in xs:
        x0 = cx - MARK_W // 2
        cv2.rectangle(page, (x0, top), (x0 + MARK_W - 1, top + MARK_H - 1), (0, 0, 0), -1)
    return page


def darken(page: np.ndarray, cx: float, cy: float, value: int, half: int = 19) -> np.ndarray:
    x, y = int(round(cx)), int(round(cy))
    cv2.rectangle(page, (x - half, y - half), (x + half, y + half), (value, value, value), -1)
    return page


def sheet(dni_xs=DNI_XS, block1=BLOCK1_XS, block2=BLOCK2_XS) -> np.ndarray:
    page = blank_page()
    draw_marks(page, list(dni_xs) + list(block1) + list(block2))
    return page


def make_mark(cx: float, cy: float = MARK_CY, w: int = MARK_W, h: int = MARK_H, area: int | None = None) -> AnchorMark:
    x = int(round(cx - w / 2))
    y = int(round(cy - h / 2))
    return AnchorMark(bbox=(x, y, w, h), center=(float(cx), float(cy)), area=area if area is not None else w * h)
