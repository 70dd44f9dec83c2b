from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from adapters.excalidraw.repository import FileSystemExcalidrawRepository
from adapters.filesystem.diagram_repository import FileSystemDiagramRepository
from adapters.filesystem.request_repository import FileSystemRequestRepository
from app.config import AppSettings, load_settings
from app.wiring import build_diagram_layout, build_request_builder
from domain.errors import BehaviorLayoutError
from domain.models import BehaviorDiagram
from domain.services.convert_scene_to_excalidraw import SceneToExcalidrawConverter

app = typer.Typer(no_args_is_help=True)
console = Console()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _load(input_path: Path, config_path: Optional[Path]) -> tuple[AppSettings, BehaviorDiagram]:
    if not input_path.exists():
        console.print(f"[red]File not found:[/] {input_path}")
        raise typer.Exit(code=1)
    try:
        settings = load_settings(config_path)
    except (FileNotFoundError, ValidationError) as exc:
        console.print(f"[red]Invalid settings:[/] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc
    try:
        diagram = FileSystemDiagramRepository().load_by_path(input_path)
    except (ValidationError, ValueError) as exc:
        console.print(f"[red]Invalid diagram:[/] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc
    return settings, diagram


@app.command("layout")
def layout(
    input_path: Path = typer.Argument(..., help="Behavior diagram JSON file."),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Excalidraw scene to write (defaults next to input)."
    ),
    config: Optional[Path] = typer.Option(None, "--config", help="YAML settings file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    _configure_logging(verbose)
    settings, diagram = _load(input_path, config)
    pipeline = build_diagram_layout(settings)
    try:
        scene = asyncio.run(pipeline.run(diagram))
    except BehaviorLayoutError as exc:
        console.print(f"[red]Layout failed:[/] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc

    document = SceneToExcalidrawConverter(font_size=settings.layout.font_size).convert(scene)
    target_path = output or input_path.with_suffix(".excalidraw")
    FileSystemExcalidrawRepository().save(document, target_path)
    console.print(f"[green]Wrote[/] {target_path}")
    for skipped in scene.skipped:
        console.print(f"[yellow]Skipped edge[/] {skipped.edge_id}: {skipped.reason}")


@app.command("request")
def request(
    input_path: Path = typer.Argument(..., help="Behavior diagram JSON file."),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Where to write the ELK graph (defaults next to input)."
    ),
    config: Optional[Path] = typer.Option(None, "--config", help="YAML settings file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    _configure_logging(verbose)
    settings, diagram = _load(input_path, config)
    try:
        layout_pass = build_request_builder(settings).build(diagram)
    except BehaviorLayoutError as exc:
        console.print(f"[red]Invalid diagram:[/] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc
    target_path = output or input_path.with_suffix(".elk.json")
    FileSystemRequestRepository().save(layout_pass.request.to_payload(), target_path)
    console.print(f"[green]Wrote[/] {target_path}")


@app.command("validate")
def validate(
    input_path: Path = typer.Argument(..., help="Behavior diagram JSON file to validate."),
    config: Optional[Path] = typer.Option(None, "--config", help="YAML settings file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    _configure_logging(verbose)
    settings, diagram = _load(input_path, config)
    try:
        layout_pass = build_request_builder(settings).build(diagram)
    except BehaviorLayoutError as exc:
        console.print(f"[red]Validation failed:[/] {escape(str(exc))}")
        raise typer.Exit(code=1) from exc
    console.print(
        f"[green]Valid diagram:[/] {input_path} "
        f"({len(layout_pass.geometries)} behaviors, {len(layout_pass.registry)} ports, "
        f"{len(layout_pass.edges)} edges)"
    )


if __name__ == "__main__":
    app()
