from __future__ import annotations

import json
from pathlib import Path

import pytest

from ._support import CHANGELOG_TEXT, PackageFactory, manifest_data


@pytest.fixture
def make_package(tmp_path: Path) -> PackageFactory:
    """Create a package directory holding package.json and CHANGELOG.md."""

    def factory(
        name: str = "Foo",
        version: str = "1.0.0",
        *,
        changelog: str | None = CHANGELOG_TEXT,
        manifest: dict[str, object] | None = None,
        dir_name: str | None = None,
    ) -> Path:
        root = tmp_path / (dir_name or name)
        root.mkdir(parents=True)
        data = manifest if manifest is not None else manifest_data(name, version)
        (root / "package.json").write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
        if changelog is not None:
            (root / "CHANGELOG.md").write_bytes(changelog.encode("utf-8"))
        return root

    return factory
