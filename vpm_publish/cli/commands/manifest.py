from __future__ import annotations

from pathlib import Path

import typer

from vpm_publish.cli.commands.common import build_pipeline, exit_publish
from vpm_publish.cli.context import build_context
from vpm_publish.core.result import Err
from vpm_publish.services.pipeline import PublishOptions


def normalize_package_json(
    package_root: Path | None = typer.Option(
        None,
        "--package-root",
        help="Package directory containing package.json (default: current directory)",
    ),
) -> None:
    """Rewrite package.json with the canonical field order."""
    ctx = build_context(package_root)
    result = build_pipeline(ctx, PublishOptions()).normalize_manifest()
    if isinstance(result, Err):
        exit_publish(result.error, console=ctx.console)
    ctx.console.success(f"Normalized {result.value}")
