from __future__ import annotations

import typer

from vpm_publish import __version__
from vpm_publish.cli.commands.changelog import changelog_draft
from vpm_publish.cli.commands.listing import generate_vcc_listing
from vpm_publish.cli.commands.manifest import normalize_package_json
from vpm_publish.cli.commands.publish import publish

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
    help="Publish VRChat Package Manager (VPM) packages to GitHub.",
)


# Commands
app.command()(publish)
app.command("changelog-draft")(changelog_draft)
app.command("normalize-package-json")(normalize_package_json)
app.command("generate-vcc-listing")(generate_vcc_listing)


@app.callback(invoke_without_command=True)
def _main(  # pyright: ignore[reportUnusedFunction]
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
) -> None:
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=0)
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(code=0)


def main() -> None:
    app()
