"""Typed representation of ``package.json``.

Recognized fields are modelled explicitly and written back in one canonical
order. Every other key is kept in ``extra`` exactly as it was read and is
written after the recognized fields, in its original order.

References:
    https://docs.unity3d.com/Manual/upm-manifestPkg.html
    https://vcc.docs.vrchat.com/vpm/packages#vpm-manifest-additions
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from pathlib import Path

from vpm_publish.core.config import MANIFEST_FILE
from vpm_publish.core.errors import PublishError
from vpm_publish.core.result import Err, Ok, Result
from vpm_publish.core.structured import StrDict, as_str_dict, is_str_map
from vpm_publish.platform.files import atomic_write_text

__all__ = [
    "AUTHOR_FIELD_ORDER",
    "MANIFEST_FIELD_ORDER",
    "Author",
    "PackageManifest",
    "dump_manifest",
    "load_manifest",
    "manifest_from_dict",
    "manifest_from_json",
    "write_manifest",
]

# Canonical key order on write.
MANIFEST_FIELD_ORDER: tuple[str, ...] = (
    "name",
    "version",
    "description",
    "displayName",
    "unity",
    "author",
    "dependencies",
    "hideInEditor",
    "keywords",
    "license",
    "samples",
    "type",
    "unityRelease",
    "vpmDependencies",
    "url",
    "legacyFolders",
    "legacyFiles",
    "zipSHA256",
    "changelogUrl",
)

AUTHOR_FIELD_ORDER: tuple[str, ...] = ("name", "email", "url")


def _empty_extra() -> StrDict:
    return {}


@dataclass(frozen=True, slots=True)
class Author:
    name: str | None = None
    email: str | None = None
    url: str | None = None
    extra: StrDict = field(default_factory=_empty_extra)

    def to_dict(self) -> StrDict:
        out: StrDict = {}
        for key, value in (("name", self.name), ("email", self.email), ("url", self.url)):
            if value is not None:
                out[key] = value
        out.update(self.extra)
        return out


@dataclass(frozen=True, slots=True)
class PackageManifest:
    """A package manifest.

    ``zip_sha256`` is only set on historical snapshots rebuilt for the
    listing; a working-copy manifest normally has none.
    """

    name: str
    version: str
    url: str
    display_name: str | None = None
    changelog_url: str | None = None
    author: Author | None = None
    description: str | None = None
    unity: str | None = None
    dependencies: dict[str, str] | None = None
    hide_in_editor: bool | None = None
    keywords: list[str] | None = None
    license: str | None = None
    samples: list[object] | None = None
    type: str | None = None
    unity_release: str | None = None
    vpm_dependencies: dict[str, str] | None = None
    legacy_folders: dict[str, str] | None = None
    legacy_files: dict[str, str] | None = None
    zip_sha256: str | None = None
    extra: StrDict = field(default_factory=_empty_extra)

    def to_dict(self) -> StrDict:
        """Serialize in canonical order, omitting null optional fields."""
        values: dict[str, object] = {
            "name": self.name,
            "version": self.version,
            "description": self.description,
            "displayName": self.display_name,
            "unity": self.unity,
            "author": self.author.to_dict() if self.author is not None else None,
            "dependencies": self.dependencies,
            "hideInEditor": self.hide_in_editor,
            "keywords": self.keywords,
            "license": self.license,
            "samples": self.samples,
            "type": self.type,
            "unityRelease": self.unity_release,
            "vpmDependencies": self.vpm_dependencies,
            "url": self.url,
            "legacyFolders": self.legacy_folders,
            "legacyFiles": self.legacy_files,
            "zipSHA256": self.zip_sha256,
            "changelogUrl": self.changelog_url,
        }
        out: StrDict = {}
        for key in MANIFEST_FIELD_ORDER:
            value = values[key]
            if value is not None:
                out[key] = value
        out.update(self.extra)
        return out

    def with_version(self, new_version: str) -> PackageManifest:
        """Move to new_version, rewriting it inside url and changelogUrl too."""
        old = self.version
        return replace(
            self,
            version=new_version,
            url=self.url.replace(old, new_version),
            changelog_url=(
                self.changelog_url.replace(old, new_version)
                if self.changelog_url is not None
                else None
            ),
        )

    def with_checksum(self, sha256: str) -> PackageManifest:
        return replace(self, zip_sha256=sha256)


def _invalid(message: str) -> Err[PublishError]:
    return Err(PublishError(kind="invalid_manifest", message=message))


def _opt_str(data: StrDict, key: str) -> Result[str | None, PublishError]:
    value = data.get(key)
    if value is None or isinstance(value, str):
        return Ok(value)
    return _invalid(f'The package.json "{key}" must be a string, got {json.dumps(value)}.')


def _opt_str_map(data: StrDict, key: str) -> Result[dict[str, str] | None, PublishError]:
    value = data.get(key)
    if value is None:
        return Ok(None)
    if is_str_map(value):
        return Ok(dict(value))
    return _invalid(f'The package.json "{key}" must be an object mapping strings to strings.')


def _author_from(value: object) -> Result[Author | None, PublishError]:
    if value is None:
        return Ok(None)
    data = as_str_dict(value)
    if data is None:
        return _invalid('The package.json "author" must be an object.')
    fields: dict[str, str | None] = {}
    for key in AUTHOR_FIELD_ORDER:
        raw = data.get(key)
        if raw is not None and not isinstance(raw, str):
            return _invalid(f'The package.json "author.{key}" must be a string.')
        fields[key] = raw
    extra = {k: v for k, v in data.items() if k not in AUTHOR_FIELD_ORDER}
    return Ok(Author(name=fields["name"], email=fields["email"], url=fields["url"], extra=extra))


def manifest_from_dict(data: StrDict) -> Result[PackageManifest, PublishError]:
    """Build a PackageManifest from parsed JSON, type-checking known fields."""
    for required in ("name", "version", "url"):
        if not isinstance(data.get(required), str):
            return _invalid(f'The package.json must contain a string "{required}" field.')

    strings: dict[str, str | None] = {}
    for key in (
        "displayName",
        "changelogUrl",
        "description",
        "unity",
        "license",
        "type",
        "unityRelease",
        "zipSHA256",
    ):
        r = _opt_str(data, key)
        if isinstance(r, Err):
            return r
        strings[key] = r.value

    maps: dict[str, dict[str, str] | None] = {}
    for key in ("dependencies", "vpmDependencies", "legacyFolders", "legacyFiles"):
        r_map = _opt_str_map(data, key)
        if isinstance(r_map, Err):
            return r_map
        maps[key] = r_map.value

    author = _author_from(data.get("author"))
    if isinstance(author, Err):
        return author

    hide = data.get("hideInEditor")
    if hide is not None and not isinstance(hide, bool):
        return _invalid('The package.json "hideInEditor" must be a boolean.')

    keywords_raw = data.get("keywords")
    keywords: list[str] | None = None
    if keywords_raw is not None:
        if not isinstance(keywords_raw, list) or not all(
            isinstance(k, str) for k in keywords_raw
        ):
            return _invalid('The package.json "keywords" must be an array of strings.')
        keywords = [str(k) for k in keywords_raw]

    samples_raw = data.get("samples")
    if samples_raw is not None and not isinstance(samples_raw, list):
        return _invalid('The package.json "samples" must be an array.')

    extra = {k: v for k, v in data.items() if k not in MANIFEST_FIELD_ORDER}

    return Ok(
        PackageManifest(
            name=str(data["name"]),
            version=str(data["version"]),
            url=str(data["url"]),
            display_name=strings["displayName"],
            changelog_url=strings["changelogUrl"],
            author=author.value,
            description=strings["description"],
            unity=strings["unity"],
            dependencies=maps["dependencies"],
            hide_in_editor=hide,
            keywords=keywords,
            license=strings["license"],
            samples=samples_raw,
            type=strings["type"],
            unity_release=strings["unityRelease"],
            vpm_dependencies=maps["vpmDependencies"],
            legacy_folders=maps["legacyFolders"],
            legacy_files=maps["legacyFiles"],
            zip_sha256=strings["zipSHA256"],
            extra=extra,
        )
    )


def manifest_from_json(text: str, *, source: str) -> Result[PackageManifest, PublishError]:
    try:
        obj: object = json.loads(text)
    except json.JSONDecodeError as e:
        return Err(
            PublishError(
                kind="invalid_manifest",
                message=f"Invalid JSON in {source}: {e}",
            )
        )
    data = as_str_dict(obj)
    if data is None:
        return _invalid(f"The {source} root must be a JSON object.")
    return manifest_from_dict(data)


def load_manifest(package_root: Path) -> Result[PackageManifest, PublishError]:
    """Read and parse ``package.json`` directly inside package_root."""
    path = package_root / MANIFEST_FILE
    if not path.is_file():
        return Err(
            PublishError(
                kind="missing_file",
                message="The package.json file should be directly inside the 'package-root'.",
                hint=str(path),
            )
        )
    try:
        text = path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        return Err(PublishError(kind="io_failed", message=f"Unable to read {path}: {e}"))
    return manifest_from_json(text, source=str(path))


def dump_manifest(manifest: PackageManifest) -> str:
    # package.json is edited by humans; keep non-ASCII (and < >) readable.
    return json.dumps(manifest.to_dict(), indent=2, ensure_ascii=False) + "\n"


def write_manifest(package_root: Path, manifest: PackageManifest) -> Result[Path, PublishError]:
    path = package_root / MANIFEST_FILE
    try:
        atomic_write_text(path, dump_manifest(manifest))
    except OSError as e:
        return Err(PublishError(kind="io_failed", message=f"Unable to write {path}: {e}"))
    return Ok(path)
