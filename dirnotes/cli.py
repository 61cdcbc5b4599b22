"""CLI entry point for dirnotes."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Annotated

import typer
from rich import print as rprint
from rich.logging import RichHandler
from rich.panel import Panel
from rich.syntax import Syntax
from rich.tree import Tree

from dirnotes_core.annotator import DirectoryAnnotator
from dirnotes_core.config import DirnotesConfig, load_config
from dirnotes_core.config.loader import DEFAULT_CONFIG_TEMPLATE
from dirnotes_core.llm import LabelerError, create_labeler
from dirnotes_core.tree import DirectoryNode, is_excluded
from dirnotes_core.workspace import AnnotationWorkspace

app = typer.Typer(
    name="dirnotes",
    help="Keep one-line directory annotations in sync with your file tree.",
)

config_app = typer.Typer(help="Manage dirnotes configuration.")
app.add_typer(config_app, name="config")

# Global state
_config: DirnotesConfig | None = None

_LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


class _JsonFormatter(logging.Formatter):
    """One JSON object per log record."""

    def format(self, record: logging.LogRecord) -> str:
        data = {
            "time": self.formatTime(record),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            data["exc"] = self.formatException(record.exc_info)
        return json.dumps(data, ensure_ascii=False)


def _configure_logging(cfg: DirnotesConfig) -> None:
    if cfg.log_format == "json":
        handler: logging.Handler = logging.StreamHandler()
        handler.setFormatter(_JsonFormatter())
    else:
        handler = RichHandler(show_path=False, rich_tracebacks=True)
    logging.basicConfig(
        level=_LOG_LEVELS[cfg.log_level],
        format="%(message)s",
        handlers=[handler],
        force=True,
    )


def _get_config() -> DirnotesConfig:
    if _config is None:
        return load_config()
    return _config


@app.callback()
def main(
    config: Annotated[
        str | None, typer.Option("--config", "-c", help="Path to dirnotes.yaml")
    ] = None,
) -> None:
    """Global options."""
    global _config
    try:
        _config = load_config(config)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    _configure_logging(_config)


def _workspace(root: str, cfg: DirnotesConfig) -> AnnotationWorkspace:
    path = Path(root)
    if not path.is_dir():
        rprint(f"[red]Error:[/red] not a directory: {root}")
        raise typer.Exit(1)
    return AnnotationWorkspace(path, cfg)


def _count(nodes: list[DirectoryNode]) -> tuple[int, int]:
    """(directories, annotated directories) under *nodes*."""
    total = annotated = 0
    for node in nodes:
        total += 1
        annotated += 1 if node.comment else 0
        sub_total, sub_annotated = _count(node.children)
        total += sub_total
        annotated += sub_annotated
    return total, annotated


@app.command()
def init(
    root: str = typer.Argument(".", help="Workspace root"),
    ai: Annotated[
        bool | None,
        typer.Option("--annotate/--no-annotate", help="Fill empty comments with the LLM"),
    ] = None,
) -> None:
    """Create or update directory-config.json for ROOT."""
    cfg = _get_config()
    ws = _workspace(root, cfg)

    use_ai = cfg.annotator.enabled if ai is None else ai
    if use_ai:
        try:
            ws.comment_provider = DirectoryAnnotator(create_labeler(cfg.llm), cfg.annotator)
        except ValueError as e:
            rprint(f"[red]Error:[/red] {e}")
            raise typer.Exit(1)

    async def _run() -> tuple[bool, int]:
        try:
            ok = await ws.initialize()
            if ok and use_ai:
                return ok, await ws.annotate_missing()
            return ok, 0
        finally:
            await ws.close()

    try:
        ok, generated = asyncio.run(_run())
    except LabelerError as e:
        rprint(f"[red]Annotation failed:[/red] {e}")
        raise typer.Exit(1)
    if not ok:
        rprint(f"[red]Error:[/red] could not write {ws.store.path}")
        raise typer.Exit(1)
    if use_ai:
        rprint(f"[dim]Generated {generated} comments[/dim]")

    total, annotated = _count(ws.document.directories if ws.document else [])
    rprint(Panel(
        f"[dim]File:[/dim]         {ws.store.path}\n"
        f"[dim]Directories:[/dim]  {total}\n"
        f"[dim]Annotated:[/dim]    {annotated}",
        title="Annotations Synced",
        border_style="green",
    ))


def _add_entries(
    branch: Tree,
    directory: Path,
    ws: AnnotationWorkspace,
    show_files: bool,
) -> None:
    try:
        entries = sorted(directory.iterdir(), key=lambda p: (not p.is_dir(), p.name.lower()))
    except OSError as e:
        branch.add(f"[red]unreadable: {e}[/red]")
        return

    for entry in entries:
        if is_excluded(entry.name, ws.config.exclude):
            continue
        is_dir = entry.is_dir() and not entry.is_symlink()
        if not is_dir and not show_files:
            continue
        comment = ws.resolve(entry)
        label = f"[bold blue]{entry.name}/[/bold blue]" if is_dir else entry.name
        if comment:
            label += f"  [dim]{comment}[/dim]"
        child = branch.add(label)
        if is_dir:
            _add_entries(child, entry, ws, show_files)


@app.command()
def tree(
    root: str = typer.Argument(".", help="Workspace root"),
    files: Annotated[bool, typer.Option("--files", help="Show files as well")] = False,
) -> None:
    """Print the workspace tree with its annotations."""
    cfg = _get_config()
    ws = _workspace(root, cfg)
    if not ws.load():
        rprint(f"[yellow]No annotations yet.[/yellow] Run [bold]dirnotes init {root}[/bold] first.")
        raise typer.Exit(1)

    rendered = Tree(f"[bold]{ws.root.name}[/bold]")
    _add_entries(rendered, ws.root, ws, files)
    rprint(rendered)


@app.command()
def comment(
    path: str = typer.Argument(..., help="Directory, relative to the root"),
    text: str = typer.Argument(..., help="Annotation text (empty string clears it)"),
    root: Annotated[str, typer.Option("--root", "-r", help="Workspace root")] = ".",
) -> None:
    """Set the annotation of one directory."""
    cfg = _get_config()
    ws = _workspace(root, cfg)

    async def _run() -> bool:
        try:
            return await ws.set_comment(path, text)
        finally:
            await ws.close()

    if not asyncio.run(_run()):
        rprint(
            f"[red]Error:[/red] {path!r} is not in {ws.store.path.name}. "
            f"Run [bold]dirnotes init[/bold] to pick up new directories."
        )
        raise typer.Exit(1)
    rprint(f"[green]Saved:[/green] {path}  [dim]{text}[/dim]")


@app.command()
def annotate(
    path: str = typer.Argument(..., help="Directory, relative to the root"),
    root: Annotated[str, typer.Option("--root", "-r", help="Workspace root")] = ".",
) -> None:
    """Generate an annotation for one directory with the configured LLM."""
    cfg = _get_config()
    ws = _workspace(root, cfg)
    if not (ws.root / path).is_dir():
        rprint(f"[red]Error:[/red] not a directory: {path}")
        raise typer.Exit(1)

    try:
        labeler = create_labeler(cfg.llm)
    except ValueError as e:
        rprint(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)
    ws.comment_provider = DirectoryAnnotator(labeler, cfg.annotator)

    async def _run() -> str | None:
        try:
            ws.load()
            return await ws.annotate(path)
        finally:
            await ws.close()

    rprint(f"[bold]Annotating[/bold] {path} (llm: {cfg.llm.provider})...")
    try:
        result = asyncio.run(_run())
    except (LabelerError, ValueError) as e:
        rprint(f"[red]Annotation failed:[/red] {e}")
        raise typer.Exit(1)

    if not result:
        rprint("[yellow]No annotation generated.[/yellow]")
        raise typer.Exit(1)
    rprint(f"[green]Saved:[/green] {path}  [dim]{result}[/dim]")


@app.command()
def watch(
    root: str = typer.Argument(".", help="Workspace root"),
) -> None:
    """Keep the annotation document in sync until interrupted."""
    cfg = _get_config()
    ws = _workspace(root, cfg)

    def _report() -> None:
        rprint(f"[dim]index updated:[/dim] {len(ws.index)} annotated directories")

    async def _run() -> None:
        await ws.initialize()
        ws.on_index_updated(_report)
        if not ws.start_watching():
            rprint("[yellow]refresh.auto_refresh is off; nothing to watch.[/yellow]")
            await ws.close()
            return
        try:
            while True:
                await asyncio.sleep(3600)
        finally:
            await ws.close()

    rprint(f"[bold]Watching[/bold] {ws.root} (Ctrl-C to stop)")
    try:
        asyncio.run(_run())
    except KeyboardInterrupt:
        rprint("[dim]Stopped.[/dim]")


@config_app.command("init")
def config_init(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config"),
) -> None:
    """Write a default dirnotes.yaml in the current directory."""
    path = Path("dirnotes.yaml")
    if path.exists() and not force:
        rprint(f"[yellow]{path} already exists.[/yellow] Use --force to overwrite.")
        raise typer.Exit(1)
    path.write_text(DEFAULT_CONFIG_TEMPLATE, encoding="utf-8")
    rprint(f"[green]Created[/green] {path}")


@config_app.command("show")
def config_show() -> None:
    """Print the effective configuration."""
    cfg = _get_config()
    rprint(Syntax(json.dumps(cfg.model_dump(), indent=2), "json", theme="monokai"))


if __name__ == "__main__":
    app()
