"""Exportadores de resultados a DataFrame, JSON y CSV."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Sequence

import pandas as pd

from models import PageResult

COLUMNS = ["pagina", "dni", "pregunta", "respuesta", "estado", "confianza"]


def results_to_dataframe(results: Sequence[PageResult]) -> pd.DataFrame:
    """Una fila por respuesta, en el orden de las páginas."""

    registros = [registro for hoja in results for registro in hoja.to_records()]
    return pd.DataFrame(registros, columns=COLUMNS)


def export_to_json(path: str | Path, results: Sequence[PageResult]) -> None:
    data = [
        {
            "pagina": hoja.page,
            "dni": hoja.dni,
            "preguntas_en_blanco": hoja.blanks,
            "preguntas_multiples": hoja.multiples,
            "respuestas": [
                {
                    "pregunta": ans.question,
                    "respuesta": ans.selected,
                    "estado": ans.state.value,
                    "confianza": ans.confidence,
                }
                for ans in hoja.answers
            ],
        }
        for hoja in results
    ]
    Path(path).write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")


def export_to_csv(path: str | Path, results: Sequence[PageResult]) -> None:
    results_to_dataframe(results).to_csv(path, index=False, encoding="utf-8")


__all__ = ["export_to_csv", "export_to_json", "results_to_dataframe"]
