"""Typed configuration loading.

A package root may carry an optional ``vpm-publish.toml``:

    main_branch = "main"
    listing_url = "https://example.github.io/vpm-listing/"

Command-line options always win over file values.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from .errors import PublishError
from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_str

__all__ = [
    "CHANGELOG_FILE",
    "CONFIG_FILE",
    "DEFAULT_MAIN_BRANCH",
    "GH_TIMEOUT_SECONDS",
    "GIT_NETWORK_TIMEOUT_SECONDS",
    "GIT_TIMEOUT_SECONDS",
    "IGNORE_FILE",
    "MANIFEST_FILE",
    "PublishConfig",
    "load_config",
    "load_config_or_default",
]

MANIFEST_FILE = "package.json"
CHANGELOG_FILE = "CHANGELOG.md"
IGNORE_FILE = ".vpmignore"
CONFIG_FILE = "vpm-publish.toml"
RELEASE_NOTES_FILE = "release-notes.md"
TEMP_DIR_PREFIX = "vpm-publish-"

DEFAULT_MAIN_BRANCH = "main"

# Local git operations (branch, status, tag, show, log, commit)
GIT_TIMEOUT_SECONDS = 30.0

# Network-bound git operations (fetch, push)
GIT_NETWORK_TIMEOUT_SECONDS = 3 * 60.0

# gh calls, including the release upload
GH_TIMEOUT_SECONDS = 10 * 60.0


@dataclass(frozen=True, slots=True)
class PublishConfig:
    """Settings read from ``vpm-publish.toml``."""

    main_branch: str = DEFAULT_MAIN_BRANCH
    listing_url: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> PublishConfig:
        return cls(
            main_branch=get_str(data, "main_branch") or DEFAULT_MAIN_BRANCH,
            listing_url=get_str(data, "listing_url"),
        )


def _parse_toml(path: Path) -> Result[StrDict, PublishError]:
    import tomllib

    try:
        data_obj: object = tomllib.loads(path.read_bytes().decode("utf-8"))
    except PermissionError:
        return Err(
            PublishError(kind="invalid_config", message=f"Permission denied reading: {path}")
        )
    except tomllib.TOMLDecodeError as e:
        return Err(
            PublishError(kind="invalid_config", message=f"Invalid TOML syntax in {path}: {e}")
        )
    except UnicodeDecodeError as e:
        return Err(PublishError(kind="invalid_config", message=f"Error reading {path}: {e}"))

    data = as_str_dict(data_obj)
    if data is None:
        return Err(PublishError(kind="invalid_config", message=f"{path} must be a TOML table"))
    return Ok(data)


def load_config(path: Path) -> Result[PublishConfig, PublishError]:
    """Load the config file at path.

    Returns:
        Ok(PublishConfig) on success, Err(PublishError) if the file is
        unreadable or not valid TOML.
    """
    parsed = _parse_toml(path)
    if isinstance(parsed, Err):
        return parsed
    return Ok(PublishConfig.from_dict(parsed.value))


def load_config_or_default(package_root: Path) -> Result[PublishConfig, PublishError]:
    """Load ``vpm-publish.toml`` from package_root, or defaults when absent."""
    path = package_root / CONFIG_FILE
    if not path.is_file():
        return Ok(PublishConfig())
    return load_config(path)
