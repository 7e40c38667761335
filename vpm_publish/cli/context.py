from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import typer

from vpm_publish.core.config import PublishConfig, load_config_or_default
from vpm_publish.core.errors import ErrorCode
from vpm_publish.core.result import Err
from vpm_publish.output.console import ConsoleProtocol, RichConsole


@dataclass(frozen=True, slots=True)
class CLIContext:
    package_root: Path
    config: PublishConfig
    console: ConsoleProtocol


def resolve_package_root(package_root: Path | None) -> Path:
    root = Path.cwd() if package_root is None else package_root
    try:
        return root.expanduser().resolve()
    except OSError as e:
        typer.echo(f"error: invalid --package-root: {e}", err=True)
        raise typer.Exit(code=int(ErrorCode.FAILURE))


def build_context(package_root: Path | None = None) -> CLIContext:
    root = resolve_package_root(package_root)
    if not root.is_dir():
        typer.echo(f"error: --package-root '{root}' is not a directory", err=True)
        raise typer.Exit(code=int(ErrorCode.FAILURE))

    config_result = load_config_or_default(root)
    if isinstance(config_result, Err):
        typer.echo(f"error: {config_result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.FAILURE))

    return CLIContext(package_root=root, config=config_result.value, console=RichConsole())
