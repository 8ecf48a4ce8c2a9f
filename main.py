"""Punto de entrada de línea de comandos del lector OMR."""

from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path
from typing import Optional

import typer
from rich import print as rprint

from exporter import export_to_csv, export_to_json
from omr_processor import DEFAULT_DPI, procesar_pdf
from omr_system import OMRSystem
from scanner_input import load_image
from settings import OMRSettings

app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help="Lector OMR: DNI y respuestas A–E de hojas escaneadas en PDF.",
)


@app.command()
def procesar(
    entrada: Path = typer.Argument(
        ..., exists=True, dir_okay=False, help="PDF con las hojas escaneadas o imagen de una hoja"
    ),
    dpi: int = typer.Option(DEFAULT_DPI, "--dpi", help="Resolución de renderizado del PDF"),
    salida_json: Optional[Path] = typer.Option(None, "--salida-json", help="Guardar resultados en JSON"),
    salida_csv: Optional[Path] = typer.Option(None, "--salida-csv", help="Guardar resultados en CSV"),
    debug_dir: Optional[Path] = typer.Option(
        None, "--debug-dir", help="Directorio para las imágenes de depuración"
    ),
    plantilla_fija: bool = typer.Option(
        False, "--plantilla-fija", help="Usar la plantilla de proporciones fijas (sin marcas ancla)"
    ),
    workers: int = typer.Option(1, "--workers", min=1, help="Hilos para procesar páginas"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log de depuración"),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    settings = replace(
        OMRSettings(),
        use_fixed_template=plantilla_fija,
        export_debug_images=debug_dir is not None,
    )
    if entrada.suffix.lower() == ".pdf":
        resultados = procesar_pdf(entrada, settings, dpi=dpi, debug_dir=debug_dir, max_workers=workers)
    else:
        # Imagen suelta (PNG, JPG, TIFF...): una sola página
        system = OMRSystem(settings, debug_dir=debug_dir)
        resultados = [system.process_page(load_image(entrada), 1)]

    for hoja in resultados:
        estado = "[green]OK[/green]" if hoja.dni_complete else "[yellow]REVISAR[/yellow]"
        rprint(
            f"Página {hoja.page:03d}  DNI {hoja.dni}  {estado}  "
            f"en blanco={hoja.blanks}  múltiples={hoja.multiples}"
        )

    if salida_json is not None:
        export_to_json(salida_json, resultados)
        rprint(f"[bold]JSON:[/bold] {salida_json}")
    if salida_csv is not None:
        export_to_csv(salida_csv, resultados)
        rprint(f"[bold]CSV:[/bold] {salida_csv}")


def main() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover - punto de entrada
    main()
