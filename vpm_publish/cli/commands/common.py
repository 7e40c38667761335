from __future__ import annotations

from typing import NoReturn

import typer

from vpm_publish.cli.context import CLIContext
from vpm_publish.core.errors import PublishError
from vpm_publish.git.repository import Repository
from vpm_publish.output.console import ConsoleProtocol
from vpm_publish.output.errors import print_publish_error, publish_error_exit_code
from vpm_publish.services.pipeline import PublishOptions, ReleasePipeline
from vpm_publish.services.release_host import GitHubReleaseHost


def exit_publish(error: PublishError, *, console: ConsoleProtocol) -> NoReturn:
    print_publish_error(error, console)
    raise typer.Exit(code=publish_error_exit_code(error))


def build_pipeline(ctx: CLIContext, options: PublishOptions) -> ReleasePipeline:
    return ReleasePipeline(
        ctx.package_root,
        options=options,
        console=ctx.console,
        repo=Repository(ctx.package_root),
        host=GitHubReleaseHost(ctx.package_root),
    )
