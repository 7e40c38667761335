"""VCC listing generation from release tags.

Each published version of a package is an annotated ``v<version>`` tag whose
message carries the archive checksum. The listing is rebuilt from those tags
alone: the package.json snapshot at the tag plus the checksum.

Usage:
    result = generate_listing(
        ListingMetadata(name="My Listing", id="com.me.listing", url=..., author=...),
        out_dir=Path("site"),
        package_dirs=[Path("Packages/com.me.tool")],
        include_latest=True,
        console=console,
    )
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from functools import partial
from pathlib import Path
from typing import Protocol
from urllib.parse import urlsplit

from vpm_publish.core.config import MANIFEST_FILE
from vpm_publish.core.errors import PublishError
from vpm_publish.core.result import Err, Ok, Result
from vpm_publish.core.structured import StrDict
from vpm_publish.git.repository import GitError, Repository, TagInfo
from vpm_publish.manifest.model import PackageManifest, manifest_from_json
from vpm_publish.manifest.semver import SemVer, parse_tag_version
from vpm_publish.manifest.validate import validate_manifest
from vpm_publish.output.console import ConsoleProtocol
from vpm_publish.platform.files import atomic_write_json
from vpm_publish.services.archive import parse_checksum_tag_message
from vpm_publish.services.release_host import ensure_tools_available

__all__ = [
    "LATEST_FILE",
    "LISTING_FILE",
    "Listing",
    "ListingEntry",
    "ListingMetadata",
    "PackageVersions",
    "TagReader",
    "aggregate_listing",
    "generate_listing",
    "latest_versions",
    "looks_like_email",
    "validate_listing_inputs",
    "write_listing",
]

LISTING_FILE = "vcc.json"
LATEST_FILE = "latest.json"
RELEASE_TAG_PATTERN = "v*"


class TagReader(Protocol):
    def list_tags(self, pattern: str = RELEASE_TAG_PATTERN) -> Result[list[str], GitError]: ...

    def tag_info(self, tag: str) -> Result[TagInfo, GitError]: ...

    def show_file(self, rev: str, relative_path: str) -> Result[str, GitError]: ...


@dataclass(frozen=True, slots=True)
class ListingMetadata:
    name: str
    id: str
    url: str
    author: str


@dataclass(frozen=True, slots=True)
class ListingEntry:
    """One published version, as recorded by its tag.

    Attributes:
        manifest: package.json at the tag, with zipSHA256 filled in.
        version: Version string from the manifest.
        semver: Parsed version, for ordering.
        checksum: Archive SHA-256 from the tag message.
        created: Tag creation time, in UTC.
    """

    manifest: PackageManifest
    version: str
    semver: SemVer
    checksum: str
    created: datetime


@dataclass(frozen=True, slots=True)
class PackageVersions:
    name: str
    entries: tuple[ListingEntry, ...]

    @property
    def latest(self) -> ListingEntry:
        return max(self.entries, key=lambda e: e.semver.precedence_key())


@dataclass(frozen=True, slots=True)
class Listing:
    metadata: ListingMetadata
    packages: tuple[PackageVersions, ...]

    def to_dict(self) -> StrDict:
        packages: StrDict = {}
        for package in self.packages:
            versions: StrDict = {}
            for entry in package.entries:
                versions[entry.version] = entry.manifest.to_dict()
            packages[package.name] = {"versions": versions}
        return {
            "name": self.metadata.name,
            "id": self.metadata.id,
            "url": self.metadata.url,
            "author": self.metadata.author,
            "packages": packages,
        }


def looks_like_email(text: str) -> bool:
    """Loose ``local@domain.tld`` shape check; embedded in ``Name <mail>`` is fine."""
    candidate = text.strip()
    if "<" in candidate and candidate.endswith(">"):
        candidate = candidate[candidate.rindex("<") + 1 : -1]
    local, sep, domain = candidate.partition("@")
    if not sep or not local or "@" in domain or any(c.isspace() for c in candidate):
        return False
    host, dot, tld = domain.rpartition(".")
    return bool(dot and host and tld)


def validate_listing_inputs(
    metadata: ListingMetadata,
    out_dir: Path,
    package_dirs: Sequence[Path],
    *,
    console: ConsoleProtocol,
) -> Result[None, PublishError]:
    """Check listing arguments before any git call. Creates out_dir if missing."""
    parts = urlsplit(metadata.url)
    if parts.scheme != "https" or not parts.netloc:
        return Err(
            PublishError(
                kind="invalid_input",
                message=f"The listing url must be an https url, got '{metadata.url}'.",
            )
        )

    if not looks_like_email(metadata.author):
        console.warning(
            f"The listing author '{metadata.author}' does not look like an e-mail address."
        )

    if out_dir.exists() and not out_dir.is_dir():
        return Err(
            PublishError(
                kind="invalid_input",
                message=f"The output path '{out_dir}' exists but is not a directory.",
            )
        )
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        return Err(
            PublishError(kind="io_failed", message=f"Unable to create the output directory: {e}")
        )

    if not package_dirs:
        return Err(PublishError(kind="invalid_input", message="No package directories given."))
    for package_dir in package_dirs:
        if not package_dir.is_dir():
            return Err(
                PublishError(
                    kind="invalid_input",
                    message=f"The package path '{package_dir}' is not a directory.",
                )
            )
        if not (package_dir / MANIFEST_FILE).is_file():
            return Err(
                PublishError(
                    kind="missing_file",
                    message=f"The package directory '{package_dir}' has no {MANIFEST_FILE}.",
                )
            )
    return Ok(None)


def _git_failed(package_dir: Path, error: GitError) -> Err[PublishError]:
    return Err(
        PublishError(
            kind="process_failed",
            message=f"git {error.command} failed in '{package_dir}'.",
            hint=error.describe(),
        )
    )


def _collect_package(package_dir: Path, repo: TagReader) -> Result[PackageVersions, PublishError]:
    tags = repo.list_tags(RELEASE_TAG_PATTERN)
    if isinstance(tags, Err):
        return _git_failed(package_dir, tags.error)

    entries: list[ListingEntry] = []
    for tag in tags.value:
        tag_version = parse_tag_version(tag)
        if tag_version is None:
            continue

        info = repo.tag_info(tag)
        if isinstance(info, Err):
            return _git_failed(package_dir, info.error)
        checksum = parse_checksum_tag_message(info.value.message)
        if checksum is None:
            continue

        shown = repo.show_file(tag, MANIFEST_FILE)
        if isinstance(shown, Err):
            return _git_failed(package_dir, shown.error)
        source = f"{tag}:{MANIFEST_FILE} in '{package_dir}'"
        parsed = manifest_from_json(shown.value, source=source)
        if isinstance(parsed, Err):
            return parsed
        manifest = parsed.value

        validated = validate_manifest(package_dir, manifest)
        if isinstance(validated, Err):
            return Err(
                PublishError(
                    kind="invalid_manifest",
                    message=f"The {source} is invalid. {validated.error.message}",
                )
            )

        if manifest.version != str(tag_version):
            return Err(
                PublishError(
                    kind="history_altered",
                    message=(
                        f"The {source} has the version '{manifest.version}' while the tag "
                        f"says '{tag_version}'. The history was altered after tagging."
                    ),
                )
            )

        entries.append(
            ListingEntry(
                manifest=manifest.with_checksum(checksum),
                version=manifest.version,
                semver=validated.value,
                checksum=checksum,
                created=info.value.created_utc,
            )
        )

    if not entries:
        return Err(
            PublishError(
                kind="invalid_input",
                message=f"The package '{package_dir}' has no published versions.",
                hint="Release tags are 'v<version>' tags whose message carries the zip checksum.",
            )
        )
    entries.sort(key=lambda e: e.semver.precedence_key(), reverse=True)
    return Ok(PackageVersions(name=entries[0].manifest.name, entries=tuple(entries)))


def aggregate_listing(
    metadata: ListingMetadata,
    package_dirs: Sequence[Path],
    *,
    repo_for: Callable[[Path], TagReader] = Repository,
) -> Result[Listing, PublishError]:
    packages: list[PackageVersions] = []
    for package_dir in package_dirs:
        collected = _collect_package(package_dir, repo_for(package_dir))
        if isinstance(collected, Err):
            return collected
        packages.append(collected.value)
    return Ok(Listing(metadata=metadata, packages=tuple(packages)))


def _display_name(entry: ListingEntry) -> str:
    return entry.manifest.display_name or entry.manifest.name


def latest_versions(listing: Listing) -> list[StrDict]:
    """Latest version per package, newest first, ties ordered by display name."""
    latest = [package.latest for package in listing.packages]
    latest.sort(key=_display_name)
    latest.sort(key=lambda e: e.semver.precedence_key(), reverse=True)
    return [
        {
            "name": _display_name(entry),
            "version": entry.version,
            "updateDate": entry.created.strftime("%Y-%m-%dT%H:%M:%SZ"),
        }
        for entry in latest
    ]


def write_listing(
    listing: Listing, out_dir: Path, *, include_latest: bool
) -> Result[list[Path], PublishError]:
    written: list[Path] = []
    try:
        path = out_dir / LISTING_FILE
        # The listing is served to clients; keep it pure ASCII.
        atomic_write_json(path, listing.to_dict(), ensure_ascii=True)
        written.append(path)
        if include_latest:
            path = out_dir / LATEST_FILE
            atomic_write_json(path, latest_versions(listing), ensure_ascii=True)
            written.append(path)
    except OSError as e:
        return Err(PublishError(kind="io_failed", message=f"Unable to write the listing: {e}"))
    return Ok(written)


def generate_listing(
    metadata: ListingMetadata,
    *,
    out_dir: Path,
    package_dirs: Sequence[Path],
    include_latest: bool,
    console: ConsoleProtocol,
    repo_for: Callable[[Path], TagReader] = Repository,
    ensure_tools: Callable[[], Result[None, PublishError]] = partial(
        ensure_tools_available, ("git",)
    ),
) -> Result[list[Path], PublishError]:
    console.info("Ensuring that 'git' is available.")
    tools = ensure_tools()
    if isinstance(tools, Err):
        return tools

    checked = validate_listing_inputs(metadata, out_dir, package_dirs, console=console)
    if isinstance(checked, Err):
        return checked

    console.info("Collecting published versions from the release tags.")
    aggregated = aggregate_listing(metadata, package_dirs, repo_for=repo_for)
    if isinstance(aggregated, Err):
        return aggregated

    written = write_listing(aggregated.value, out_dir, include_latest=include_latest)
    if isinstance(written, Err):
        return written
    for path in written.value:
        console.success(f"Wrote {path}")
    return written
