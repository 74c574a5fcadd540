from __future__ import annotations

import sys
from importlib.metadata import PackageNotFoundError, version as package_version
from pathlib import Path
from typing import List

import typer

from opencomposition.core.exceptions import ComposerError
from opencomposition.core.orchestrator import OUTPUT_FORMATS, ConvertConfig, convert
from opencomposition.core.synthesizer import DEFAULT_VOLUME_SIZE
from opencomposition.logging import configure_logging


app = typer.Typer(add_completion=False, help="Open Composition CLI")


@app.command("convert")
def convert_command(
    files: List[Path] = typer.Argument(
        ..., help="Application descriptor files (repeat or comma-separate)"
    ),
    output: str = typer.Option(
        "yaml",
        "--output",
        "-o",
        case_sensitive=False,
        help="Output format: yaml|json|table",
    ),
    default_volume_size: str = typer.Option(
        DEFAULT_VOLUME_SIZE,
        "--default-volume-size",
        help="Size of claims created for volume mounts with no persistentVolumes entry",
    ),
    fail_fast: bool = typer.Option(
        False,
        "--fail-fast/--no-fail-fast",
        help="Stop at the first descriptor that fails instead of skipping it",
    ),
    debug: bool = typer.Option(False, "--debug/--no-debug", help="Enable debug logging"),
):
    """Convert application descriptors to Kubernetes manifests."""
    cfg = ConvertConfig(
        output=output.lower(),
        default_volume_size=default_volume_size,
        fail_fast=fail_fast,
        debug=debug,
    )
    configure_logging(cfg.log_level)

    if cfg.output not in OUTPUT_FORMATS:
        typer.echo("Unknown output format. Use yaml|json|table.", err=True)
        raise typer.Exit(code=2)

    try:
        report = convert([str(p) for p in files], cfg, sys.stdout)
    except ComposerError as exc:
        typer.echo(f"Fatal error: {exc}", err=True)
        raise typer.Exit(code=1)

    for failure in report.failures:
        typer.echo(f"Fatal error: {failure}", err=True)

    raise typer.Exit(code=0 if report.ok else 1)


@app.command("version")
def version_command():
    """Print the package version."""
    try:
        typer.echo(package_version("opencomposition"))
    except PackageNotFoundError:
        typer.echo("unknown")


if __name__ == "__main__":  # pragma: no cover
    app()
