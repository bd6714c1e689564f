"""CLI entrypoints for the channel directory builder."""

import shutil
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from .config import Config, apply_env_overrides, load_config
from .log import configure_logging
from .site import BuildResult, run_build
from .sync import run_sync

console = Console()
app = typer.Typer(help="Static site builder for channel directories.")

ConfigPathOption = Annotated[
    str,
    typer.Option("--config", "-c", help="Path to a configuration file or project directory."),
]


@app.command()
def build(
    config_path: ConfigPathOption = ".",
    output_dir: Annotated[
        str | None,
        typer.Option("--output-dir", "-o", help="Override the output directory for this build."),
    ] = None,
) -> None:
    """Regenerate every page and auxiliary file from the channel data."""
    config = _load(config_path)
    if output_dir:
        target = Path(output_dir)
        if not target.is_absolute():
            target = (Path.cwd() / target).resolve()
        config = config.model_copy(update={"output_dir": target})

    log = configure_logging(config.log_level, console=console)
    result = run_build(config, log=log.getChild("build"))
    if result is None:
        console.print("[bold red]Build failed[/]; see the log above for details.")
        raise typer.Exit(code=1)
    _print_build_summary(result)


@app.command()
def sync(config_path: ConfigPathOption = ".") -> None:
    """Refresh the channel data file from the configured remote source."""
    config = _load(config_path)
    configure_logging(config.log_level, console=console)
    result = run_sync(config)
    if result is None:
        console.print("[bold red]Sync failed[/]; see the log above for details.")
        raise typer.Exit(code=1)
    console.print(
        "[bold green]Data synchronized[/]: "
        f"{result.count} entry(ies) written to {_display_path(result.path)}"
    )


@app.command()
def clean(config_path: ConfigPathOption = ".") -> None:
    """Remove the generated site directory."""
    config = _load(config_path)
    target = config.output_dir
    if not target.exists():
        console.print(f"[bold yellow]Skipping[/]: site output ({_display_path(target)}) not found")
        return
    console.print(f"[bold green]Removing[/]: site output ({_display_path(target)})")
    shutil.rmtree(target)


def _print_build_summary(result: BuildResult) -> None:
    console.print(
        "[bold green]Pages[/]: "
        f"{result.page_count} page(s) across {len(result.categories)} categor"
        f"{'y' if len(result.categories) == 1 else 'ies'} and {len(result.entries)} channel(s)"
    )
    if result.staging.total:
        console.print(
            "[bold green]Static bundle[/]: "
            f"copied {result.staging.total} file(s) into {_display_path(result.output_dir)}"
        )
    console.print(
        "[bold green]Build complete[/]: "
        f"{_display_path(result.output_dir)} in {result.duration_seconds:.2f}s"
    )


def _display_path(path: Path) -> str:
    try:
        return path.relative_to(Path.cwd()).as_posix()
    except ValueError:
        return path.as_posix()


def _load(path: str) -> Config:
    try:
        config = load_config(path)
    except FileNotFoundError as exc:
        raise typer.BadParameter(f"Config file not found: {path}") from exc
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    try:
        return apply_env_overrides(config)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
