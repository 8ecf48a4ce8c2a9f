from dataclasses import replace

import cv2
import numpy as np

from conftest import blank_page
from models import AnswerState
from omr_system import OMRSystem
from settings import OMRSettings
from template import NormalizedRect, TemplateGeometry

W, H = 1000, 1400


def _fill(page, rect):
    x, y, w, h = rect
    cv2.rectangle(page, (x, y), (x + w - 1, y + h - 1), (0, 0, 0), -1)


def _dni_cell(template, column, digit):
    rx, ry, rw, rh = template.dni_region.to_pixel_rect(W, H)
    cw, ch = rw // template.dni_digits, rh // 10
    return rx + column * cw, ry + digit * ch, cw, ch


def _answer_cell(template, column_idx, question, option):
    cx, cy, cw, ch = template.answer_columns[column_idx].region.to_pixel_rect(W, H)
    rh = ch // template.answer_columns[column_idx].questions
    ow = cw // template.options_per_question
    return cx + option * ow, cy + question * rh, ow, rh


def test_normalized_rect_is_clamped():
    assert NormalizedRect(0.5, 0.5, 1.0, 1.0).to_pixel_rect(100, 200) == (50, 100, 50, 100)
    assert NormalizedRect(-0.1, 0.0, 0.2, 0.1).to_pixel_rect(100, 100) == (0, 0, 20, 10)


def test_fixed_template_reads_filled_cells():
    settings = OMRSettings(use_fixed_template=True)
    template = settings.template
    page = blank_page(W, H)
    _fill(page, _dni_cell(template, 0, 3))
    _fill(page, _answer_cell(template, 0, 0, 1))
    # Dos alternativas llenas en la pregunta 22 (columna 2, fila 1)
    _fill(page, _answer_cell(template, 1, 1, 0))
    _fill(page, _answer_cell(template, 1, 1, 4))

    result = OMRSystem(settings).process_page(page, 1)

    assert result.dni == "3???????"
    assert len(result.answers) == template.question_count == 80
    answers = {a.question: a for a in result.answers}
    assert answers[1].state is AnswerState.VALID
    assert answers[1].selected == "B"
    assert 0.5 < answers[1].confidence <= 1.0
    assert answers[22].state is AnswerState.MULTIPLE
    assert answers[22].selected is None
    assert answers[2].state is AnswerState.BLANK


def test_fixed_template_ignores_bottom_marks():
    settings = OMRSettings(
        use_fixed_template=True,
        template=replace(TemplateGeometry(), dni_digits=4),
    )
    page = blank_page(W, H)
    for x in range(60, 900, 60):
        cv2.rectangle(page, (x, 1300), (x + 30, 1310), (0, 0, 0), -1)
    result = OMRSystem(settings).process_page(page, 3)
    assert result.dni == "????"
    assert all(a.state is AnswerState.BLANK for a in result.answers)


def test_template_from_dict():
    template = TemplateGeometry.from_dict(
        {
            "dni_region": [0.1, 0.2, 0.3, 0.4],
            "answer_columns": [{"question_start": 1, "questions": 10, "region": [0.5, 0.1, 0.2, 0.8]}],
        }
    )
    assert template.dni_region == NormalizedRect(0.1, 0.2, 0.3, 0.4)
    assert template.question_count == 10
    assert np.isclose(template.answer_columns[0].region.x, 0.5)
