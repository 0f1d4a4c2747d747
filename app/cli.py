from __future__ import annotations

import logging
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.tree import Tree

from app.config import AppSettings, load_settings
from app.editor_wiring import build_block_catalog, build_editor_services, build_workspace_repository
from domain.models import Block
from domain.services.chain_layout import align_all
from domain.services.chain_walker import chain_from
from domain.services.connection_orchestrator import DragEvent, DragSessionError
from domain.services.workspace_codec import export_workspace, load_workspace
from domain.services.workspace_health import find_invariant_violations
from domain.workspace import BlockGraph

app = typer.Typer(no_args_is_help=True)
console = Console()


def _configure(config_path: Path | None) -> AppSettings:
    try:
        settings = load_settings(config_path)
    except (FileNotFoundError, ValidationError) as exc:
        console.print(f"[red]Invalid configuration:[/] {exc}")
        raise typer.Exit(code=1) from exc
    logging.basicConfig(
        level=settings.workspace.log_level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )
    return settings


def _load_graph(settings: AppSettings, path: Path) -> BlockGraph:
    repository = build_workspace_repository(settings)
    try:
        document = repository.load(path)
    except ValueError as exc:
        console.print(f"[red]Cannot read workspace:[/] {exc}")
        raise typer.Exit(code=1) from exc
    return load_workspace(document, build_block_catalog(settings), settings.geometry.to_geometry_config())


def _save_graph(settings: AppSettings, graph: BlockGraph, path: Path) -> None:
    document = export_workspace(graph)
    build_workspace_repository(settings).save(document, path)
    console.print(f"[green]Wrote[/] {path} ({len(document.blocks)} blocks)")


def _describe(block: Block) -> str:
    return f"{block.opcode or block.kind} [dim]{block.id}[/] ({block.x:.0f}, {block.y:.0f}) h={block.height:.0f}"


def _add_chain(graph: BlockGraph, node: Tree, head: Block | None) -> None:
    for block in chain_from(graph, head):
        child = node.add(_describe(block))
        if block.is_container and block.first_child:
            _add_chain(graph, child, graph.get(block.first_child))


@app.command("inspect")
def inspect(
    workspace_path: Path | None = typer.Argument(None, help="Workspace JSON file; defaults to workspace.path."),
    config_path: Path | None = typer.Option(None, "--config", help="YAML settings file."),
) -> None:
    settings = _configure(config_path)
    path = workspace_path or settings.workspace.path
    graph = _load_graph(settings, path)
    tree = Tree(f"[bold]{path}[/] ({len(graph)} blocks)")
    for head in graph.top_level_blocks():
        _add_chain(graph, tree.add(f"chain {head.id}"), head)
    console.print(tree)


@app.command("validate")
def validate(
    workspace_path: Path | None = typer.Argument(None, help="Workspace JSON file; defaults to workspace.path."),
    config_path: Path | None = typer.Option(None, "--config", help="YAML settings file."),
) -> None:
    settings = _configure(config_path)
    path = workspace_path or settings.workspace.path
    graph = _load_graph(settings, path)
    services = build_editor_services(settings, graph)
    violations = find_invariant_violations(graph, services.resizer)
    if not violations:
        console.print(f"[green]Workspace is consistent:[/] {path}")
        return
    table = Table("code", "block", "message", title=f"{len(violations)} violations")
    for violation in violations:
        table.add_row(violation.code, violation.block_id, violation.message)
    console.print(table)
    raise typer.Exit(code=1)


@app.command("sync")
def sync(
    workspace_path: Path | None = typer.Argument(None, help="Workspace JSON file; defaults to workspace.path."),
    config_path: Path | None = typer.Option(None, "--config", help="YAML settings file."),
) -> None:
    settings = _configure(config_path)
    path = workspace_path or settings.workspace.path
    graph = _load_graph(settings, path)
    changed = build_editor_services(settings, graph).resizer.sync_all()
    console.print(f"Resized {changed} containers")
    _save_graph(settings, graph, path)


@app.command("align")
def align(
    workspace_path: Path | None = typer.Argument(None, help="Workspace JSON file; defaults to workspace.path."),
    grid_size: float | None = typer.Option(None, "--grid-size", help="Grid step; defaults to workspace.grid_size."),
    config_path: Path | None = typer.Option(None, "--config", help="YAML settings file."),
) -> None:
    settings = _configure(config_path)
    path = workspace_path or settings.workspace.path
    graph = _load_graph(settings, path)
    try:
        result = align_all(graph, grid_size or settings.workspace.grid_size)
    except ValueError as exc:
        console.print(f"[red]Alignment failed:[/] {exc}")
        raise typer.Exit(code=1) from exc
    console.print(f"Aligned {result.aligned} of {result.total} chains to a {result.grid_size:g} grid")
    _save_graph(settings, graph, path)


@app.command("drop")
def drop(
    block_id: str = typer.Argument(..., help="Block to drag; its chain below moves with it."),
    x: float = typer.Option(..., "--x", help="Drop x coordinate of the dragged block."),
    y: float = typer.Option(..., "--y", help="Drop y coordinate of the dragged block."),
    workspace_path: Path | None = typer.Option(None, "--workspace", help="Workspace JSON file."),
    config_path: Path | None = typer.Option(None, "--config", help="YAML settings file."),
) -> None:
    settings = _configure(config_path)
    path = workspace_path or settings.workspace.path
    graph = _load_graph(settings, path)
    events: list[DragEvent] = []
    orchestrator = build_editor_services(settings, graph, observer=events.append).orchestrator
    try:
        orchestrator.begin_preview(block_id)
    except DragSessionError as exc:
        console.print(f"[red]Cannot drag:[/] {exc}")
        raise typer.Exit(code=1) from exc
    orchestrator.update_preview(x, y)
    outcome = orchestrator.commit()
    for event in events:
        console.print(f"[dim]{event.phase}[/] {event.match.target_id if event.match else '-'}")
    if outcome.applied and outcome.match is not None:
        console.print(
            f"[green]Connected[/] {block_id} to {outcome.match.target_id} ({outcome.match.target_slot})"
        )
    else:
        console.print(f"[yellow]Nothing snapped;[/] {block_id} left floating at ({x:g}, {y:g})")
    _save_graph(settings, graph, path)


@app.command("catalog")
def catalog(config_path: Path | None = typer.Option(None, "--config", help="YAML settings file.")) -> None:
    settings = _configure(config_path)
    block_catalog = build_block_catalog(settings)
    table = Table("opcode", "category", "kind", "fields")
    for template in block_catalog.templates():
        fields = ", ".join(f"{item.id}={item.default}" for item in template.fields)
        table.add_row(template.opcode, template.category, str(template.kind), fields or "-")
    console.print(table)


if __name__ == "__main__":
    app()
