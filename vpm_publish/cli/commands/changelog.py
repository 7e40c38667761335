from __future__ import annotations

from pathlib import Path

import typer

from vpm_publish.cli.commands.common import build_pipeline, exit_publish
from vpm_publish.cli.context import build_context
from vpm_publish.core.result import Err
from vpm_publish.services.pipeline import PublishOptions


def changelog_draft(
    package_root: Path | None = typer.Option(
        None,
        "--package-root",
        help="Package directory containing package.json (default: current directory)",
    ),
    main_branch: str | None = typer.Option(
        None, "--main-branch", help="Branch releases are made from (default: main)"
    ),
    allow_dirty: bool = typer.Option(
        False, "--allow-dirty", help="Skip the clean working tree check"
    ),
) -> None:
    """Add a draft entry for the current version to CHANGELOG.md from the git log."""
    ctx = build_context(package_root)
    options = PublishOptions(
        main_branch=main_branch or ctx.config.main_branch,
        allow_dirty=allow_dirty,
    )
    result = build_pipeline(ctx, options).changelog_draft()
    if isinstance(result, Err):
        exit_publish(result.error, console=ctx.console)
