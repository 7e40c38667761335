from __future__ import annotations

from ._utils import iter_python_files, matches_prefix, package_root, parse_imports


def test_direct_rich_imports_are_limited_to_approved_modules() -> None:
    root = package_root()
    allowlist = {
        "output/console.py",
    }

    offenders: list[str] = []
    for file_path in iter_python_files(root):
        rel = file_path.relative_to(root)
        if rel.parts and rel.parts[0] == "test":
            continue
        rel_str = rel.as_posix()

        for item in parse_imports(file_path):
            if not matches_prefix(item.module, "rich"):
                continue
            if rel_str in allowlist:
                continue
            offenders.append(f"{rel}:{item.line}: direct rich import '{item.module}'")

    assert not offenders, "Direct rich usage policy violations:\n" + "\n".join(offenders)
