import dataclasses

import pytest

from models import AnswerResult, AnswerState, PageResult
from settings import OMRSettings, QuestionBlockSettings
from template import TemplateGeometry


def test_default_settings_describe_academy_sheet():
    settings = OMRSettings()
    assert settings.dni_digits == 8
    assert settings.question_count == 100
    assert [b.start_question for b in settings.question_blocks] == [1, 26, 51, 76]
    assert settings.answer_labels == ("A", "B", "C", "D", "E")
    assert settings.dni_length == 8


def test_settings_are_immutable():
    with pytest.raises(dataclasses.FrozenInstanceError):
        OMRSettings().dni_digits = 9


def test_fixed_template_mode_uses_template_counts():
    settings = OMRSettings(use_fixed_template=True, template=TemplateGeometry(dni_digits=6))
    assert settings.question_count == 80
    assert settings.dni_length == 6


def test_from_dict_builds_nested_values():
    settings = OMRSettings.from_dict(
        {
            "dni_digits": 7,
            "question_blocks": [
                {"start_question": 1, "question_count": 30},
                {"start_question": 31, "question_count": 30, "height_ratio": 0.5},
            ],
            "template": {"dni_digits": 7},
        }
    )
    assert settings.dni_digits == 7
    assert settings.question_blocks == (
        QuestionBlockSettings(1, 30, 0.63),
        QuestionBlockSettings(31, 30, 0.5),
    )
    assert settings.template.dni_digits == 7
    assert settings.question_count == 60


def test_from_dict_rejects_unknown_keys():
    with pytest.raises(ValueError):
        OMRSettings.from_dict({"umbral_magico": 3})
    with pytest.raises(ValueError):
        TemplateGeometry.from_dict({"columnas": []})


def test_page_result_counters_and_records():
    result = PageResult(
        page=2,
        dni="1234567?",
        answers=[
            AnswerResult(1, "A", 0.7, AnswerState.VALID),
            AnswerResult(2),
            AnswerResult(3, state=AnswerState.MULTIPLE),
        ],
    )
    assert result.blanks == 1
    assert result.multiples == 1
    assert not result.dni_complete
    records = result.to_records()
    assert records[0] == {
        "pagina": 2,
        "dni": "1234567?",
        "pregunta": 1,
        "respuesta": "A",
        "estado": "OK",
        "confianza": 0.7,
    }
    assert records[1]["respuesta"] == "-"
    assert records[2]["estado"] == "RESPUESTA MULTIPLE"
