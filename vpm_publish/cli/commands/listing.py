from __future__ import annotations

from pathlib import Path

import typer

from vpm_publish.cli.commands.common import exit_publish
from vpm_publish.cli.context import resolve_package_root
from vpm_publish.core.result import Err
from vpm_publish.output.console import ConsoleProtocol, RichConsole
from vpm_publish.services.listing import ListingMetadata, generate_listing


def build_console() -> ConsoleProtocol:
    return RichConsole()


def generate_vcc_listing(
    packages: list[Path] = typer.Argument(..., help="Package directories to include"),
    name: str = typer.Option(..., "--name", help="Listing name"),
    listing_id: str = typer.Option(..., "--id", help="Listing id (e.g. com.example.listing)"),
    url: str = typer.Option(..., "--url", help="URL the vcc.json is served from (https)"),
    author: str = typer.Option(..., "--author", help="Listing author (e-mail address)"),
    out_dir: Path = typer.Option(..., "--out-dir", help="Directory receiving vcc.json"),
    omit_latest: bool = typer.Option(
        False, "--omit-latest", help="Do not write latest.json"
    ),
) -> None:
    """Build a VCC listing from the release tags of one or more packages."""
    console = build_console()
    result = generate_listing(
        ListingMetadata(name=name, id=listing_id, url=url, author=author),
        out_dir=out_dir,
        package_dirs=[resolve_package_root(p) for p in packages],
        include_latest=not omit_latest,
        console=console,
    )
    if isinstance(result, Err):
        exit_publish(result.error, console=console)
