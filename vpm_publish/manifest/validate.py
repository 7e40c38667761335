"""Cross-field consistency checks for ``package.json``.

The download ``url`` and the ``changelogUrl`` both embed the version, and
the download url also embeds the package name. The checks below make sure
those copies agree with each other and with the manifest itself, failing
on the first inconsistency.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from vpm_publish.core.errors import PublishError
from vpm_publish.core.result import Err, Ok, Result
from vpm_publish.manifest.model import PackageManifest
from vpm_publish.manifest.semver import SemVer, parse_semver
from vpm_publish.output.console import ConsoleProtocol

__all__ = [
    "CHANGELOG_URL_PATTERN",
    "DOWNLOAD_URL_PATTERN",
    "RELEASE_HOST",
    "ChangelogUrlMatch",
    "DownloadUrlMatch",
    "UrlMismatch",
    "match_changelog_url",
    "match_download_url",
    "validate_manifest",
]

RELEASE_HOST = "https://github.com"

DOWNLOAD_URL_PATTERN = f"{RELEASE_HOST}/<user>/<repo>/releases/download/v<version>/<name>.zip"
CHANGELOG_URL_PATTERN = f"{RELEASE_HOST}/<user>/<repo>/blob/v<version>/CHANGELOG.md"


@dataclass(frozen=True, slots=True)
class DownloadUrlMatch:
    user: str
    repo: str
    version: str
    name: str


@dataclass(frozen=True, slots=True)
class ChangelogUrlMatch:
    user: str
    repo: str
    version: str


@dataclass(frozen=True, slots=True)
class UrlMismatch:
    pattern: str
    value: str


def _host_segments(url: str, count: int) -> list[str] | None:
    prefix = RELEASE_HOST + "/"
    if not url.startswith(prefix):
        return None
    segments = url[len(prefix) :].split("/")
    if len(segments) != count or any(not s for s in segments):
        return None
    return segments


def _tag_version(segment: str) -> str | None:
    if len(segment) < 2 or not segment.startswith("v"):
        return None
    return segment[1:]


def match_download_url(url: str) -> DownloadUrlMatch | UrlMismatch:
    """Match ``https://github.com/<user>/<repo>/releases/download/v<version>/<name>.zip``."""
    mismatch = UrlMismatch(pattern=DOWNLOAD_URL_PATTERN, value=url)
    segments = _host_segments(url, 6)
    if segments is None:
        return mismatch
    user, repo, releases, download, tag, file_name = segments
    if releases != "releases" or download != "download":
        return mismatch
    version = _tag_version(tag)
    if version is None:
        return mismatch
    if not file_name.endswith(".zip") or len(file_name) == len(".zip"):
        return mismatch
    return DownloadUrlMatch(
        user=user,
        repo=repo,
        version=version,
        name=file_name[: -len(".zip")],
    )


def match_changelog_url(url: str) -> ChangelogUrlMatch | UrlMismatch:
    """Match ``https://github.com/<user>/<repo>/blob/v<version>/CHANGELOG.md``."""
    mismatch = UrlMismatch(pattern=CHANGELOG_URL_PATTERN, value=url)
    segments = _host_segments(url, 5)
    if segments is None:
        return mismatch
    user, repo, blob, tag, file_name = segments
    if blob != "blob" or file_name != "CHANGELOG.md":
        return mismatch
    version = _tag_version(tag)
    if version is None:
        return mismatch
    return ChangelogUrlMatch(user=user, repo=repo, version=version)


def _fail(message: str) -> Err[PublishError]:
    return Err(PublishError(kind="invalid_manifest", message=message))


def validate_manifest(
    manifest_dir: Path,
    manifest: PackageManifest,
    *,
    console: ConsoleProtocol | None = None,
) -> Result[SemVer, PublishError]:
    """Validate name, version, url and changelogUrl of a manifest.

    Args:
        manifest_dir: Directory containing the package.json; its base name
            must equal the package name.
        manifest: The parsed manifest.
        console: Receives a progress line; None validates silently.

    Returns:
        Ok(parsed version) so callers do not parse it again, or the first
        failing check as Err(PublishError).
    """
    if console is not None:
        console.info("Validating the name, version, url and changelogUrl in the package.json.")

    name = manifest.name
    version = manifest.version

    dir_name = manifest_dir.name
    if dir_name != name:
        return _fail(
            f'The package.json "name" ({name}) and the folder name ({dir_name}) must match.'
        )

    parsed = parse_semver(version)
    if isinstance(parsed, Err):
        return _fail(f'The package.json "version" is invalid. {parsed.error}')

    url_match = match_download_url(manifest.url)
    if isinstance(url_match, UrlMismatch):
        return _fail(
            f'The package.json "url" must match the pattern "{url_match.pattern}", '
            f'got "{url_match.value}".'
        )

    if url_match.version != version:
        return _fail(
            f'The package.json "url" contains the version "{url_match.version}" '
            f'while the "version" is "{version}", which is a mismatch.'
        )

    if url_match.name != name:
        return _fail(
            f'The package.json "url" contains the name "{url_match.name}" '
            f'while the "name" is "{name}", which is a mismatch.'
        )

    if manifest.changelog_url is None:
        return _fail(
            'This publish program requires a "changelogUrl" in the package.json '
            f'(note, it has to match the pattern "{CHANGELOG_URL_PATTERN}").'
        )

    changelog_match = match_changelog_url(manifest.changelog_url)
    if isinstance(changelog_match, UrlMismatch):
        return _fail(
            f'The package.json "changelogUrl" must match the pattern '
            f'"{changelog_match.pattern}", got "{changelog_match.value}".'
        )

    if changelog_match.version != version:
        return _fail(
            f'The package.json "changelogUrl" contains the version "{changelog_match.version}" '
            f'while the "version" is "{version}", which is a mismatch.'
        )

    if url_match.user != changelog_match.user:
        return _fail(
            f'The package.json "url" contains the github username "{url_match.user}" '
            f'while the "changelogUrl" contains "{changelog_match.user}", which is a mismatch.'
        )

    if url_match.repo != changelog_match.repo:
        return _fail(
            f'The package.json "url" contains the github repo name "{url_match.repo}" '
            f'while the "changelogUrl" contains "{changelog_match.repo}", which is a mismatch.'
        )

    return Ok(parsed.value)
