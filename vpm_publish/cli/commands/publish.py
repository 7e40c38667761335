from __future__ import annotations

from pathlib import Path

import typer

from vpm_publish.cli.commands.common import build_pipeline, exit_publish
from vpm_publish.cli.context import build_context
from vpm_publish.core.errors import PublishError
from vpm_publish.core.result import Err
from vpm_publish.services.pipeline import PublishOptions
from vpm_publish.services.stages import Terminal


def publish(
    package_root: Path | None = typer.Option(
        None,
        "--package-root",
        help="Package directory containing package.json (default: current directory)",
    ),
    main_branch: str | None = typer.Option(
        None, "--main-branch", help="Branch releases are made from (default: main)"
    ),
    listing_url: str | None = typer.Option(
        None, "--listing-url", help="VCC listing page linked from the release notes"
    ),
    validate_only: bool = typer.Option(
        False, "--validate-only", help="Stop after validating package.json and CHANGELOG.md"
    ),
    package_only: bool = typer.Option(
        False,
        "--package-only",
        help="Stop after building the zip; keep it and print its path and checksum",
    ),
) -> None:
    """Validate, package, tag, release and bump the package version."""
    ctx = build_context(package_root)

    if validate_only and package_only:
        exit_publish(
            PublishError(
                kind="invalid_input",
                message="--validate-only and --package-only are mutually exclusive.",
            ),
            console=ctx.console,
        )

    if validate_only:
        terminal = Terminal.VALIDATED_ONLY
    elif package_only:
        terminal = Terminal.PACKAGED
    else:
        terminal = Terminal.PUBLISHED

    options = PublishOptions(
        main_branch=main_branch or ctx.config.main_branch,
        listing_url=listing_url or ctx.config.listing_url,
    )
    result = build_pipeline(ctx, options).publish(terminal)
    if isinstance(result, Err):
        exit_publish(result.error, console=ctx.console)
