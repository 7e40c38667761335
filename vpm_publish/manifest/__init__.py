"""Package manifest model, strict versions and consistency validation."""

from .model import (
    Author,
    PackageManifest,
    dump_manifest,
    load_manifest,
    manifest_from_dict,
    manifest_from_json,
    write_manifest,
)
from .semver import SemVer, parse_semver, parse_tag_version
from .validate import match_changelog_url, match_download_url, validate_manifest

__all__ = [
    # model
    "Author",
    "PackageManifest",
    "dump_manifest",
    "load_manifest",
    "manifest_from_dict",
    "manifest_from_json",
    "write_manifest",
    # semver
    "SemVer",
    "parse_semver",
    "parse_tag_version",
    # validate
    "match_changelog_url",
    "match_download_url",
    "validate_manifest",
]
