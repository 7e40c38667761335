"""Strict semantic versions (https://semver.org, 2.0.0).

Only the canonical form is accepted: no ``v`` prefix, no leading zeros in
numeric identifiers, no empty identifiers, no missing components.
"""

from __future__ import annotations

from dataclasses import dataclass

from vpm_publish.core.result import Err, Ok, Result

__all__ = ["SemVer", "parse_semver", "parse_tag_version"]

_IDENT_CHARS = frozenset("0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz-")


@dataclass(frozen=True, slots=True)
class SemVer:
    major: int
    minor: int
    patch: int
    prerelease: tuple[str, ...] = ()
    build: tuple[str, ...] = ()

    def __str__(self) -> str:
        out = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            out += "-" + ".".join(self.prerelease)
        if self.build:
            out += "+" + ".".join(self.build)
        return out

    def to_tag(self) -> str:
        return f"v{self}"

    def with_patch(self, patch: int) -> SemVer:
        return SemVer(self.major, self.minor, patch, self.prerelease, self.build)

    def next_patch(self) -> SemVer:
        return self.with_patch(self.patch + 1)

    def precedence_key(self) -> tuple[object, ...]:
        """Sort key following semver precedence; build metadata is ignored."""
        # A release sorts after every prerelease of the same core version.
        pre = tuple((0, int(p), "") if p.isdigit() else (1, 0, p) for p in self.prerelease)
        return (self.major, self.minor, self.patch, 0 if self.prerelease else 1, pre)

    def __lt__(self, other: SemVer) -> bool:
        return self.precedence_key() < other.precedence_key()

    def __le__(self, other: SemVer) -> bool:
        return self.precedence_key() <= other.precedence_key()

    def __gt__(self, other: SemVer) -> bool:
        return self.precedence_key() > other.precedence_key()

    def __ge__(self, other: SemVer) -> bool:
        return self.precedence_key() >= other.precedence_key()


def _numeric(part: str, label: str) -> Result[int, str]:
    if not part:
        return Err(f"The {label} version number is missing.")
    if not part.isascii() or not part.isdigit():
        return Err(f"The {label} version '{part}' must be a non-negative integer.")
    if len(part) > 1 and part[0] == "0":
        return Err(f"The {label} version '{part}' has a leading zero.")
    return Ok(int(part))


def _identifiers(text: str, label: str, *, numeric_rules: bool) -> Result[tuple[str, ...], str]:
    parts = tuple(text.split("."))
    for p in parts:
        if not p:
            return Err(f"The {label} contains an empty identifier.")
        if any(c not in _IDENT_CHARS for c in p):
            return Err(f"The {label} identifier '{p}' contains invalid characters.")
        if numeric_rules and p.isdigit() and len(p) > 1 and p[0] == "0":
            return Err(f"The {label} identifier '{p}' has a leading zero.")
    return Ok(parts)


def parse_semver(text: str) -> Result[SemVer, str]:
    """Parse a strict semantic version.

    Returns:
        Ok(SemVer), or Err(reason) where reason names what is wrong.
    """
    if text != text.strip() or not text:
        return Err(f"Invalid semantic version '{text}': empty or surrounded by whitespace.")

    core, plus, build_text = text.partition("+")
    core, dash, pre_text = core.partition("-")

    numbers = core.split(".")
    if len(numbers) != 3:
        return Err(
            f"Invalid semantic version '{text}': expected MAJOR.MINOR.PATCH, "
            f"got {len(numbers)} component(s)."
        )

    parsed: list[int] = []
    for part, label in zip(numbers, ("major", "minor", "patch")):
        n = _numeric(part, label)
        if isinstance(n, Err):
            return Err(f"Invalid semantic version '{text}': {n.error}")
        parsed.append(n.value)

    prerelease: tuple[str, ...] = ()
    if dash:
        pre = _identifiers(pre_text, "prerelease", numeric_rules=True)
        if isinstance(pre, Err):
            return Err(f"Invalid semantic version '{text}': {pre.error}")
        prerelease = pre.value

    build: tuple[str, ...] = ()
    if plus:
        meta = _identifiers(build_text, "build metadata", numeric_rules=False)
        if isinstance(meta, Err):
            return Err(f"Invalid semantic version '{text}': {meta.error}")
        build = meta.value

    return Ok(SemVer(parsed[0], parsed[1], parsed[2], prerelease, build))


def parse_tag_version(tag: str) -> SemVer | None:
    """Version of a release tag (``v1.2.3``), or None for unrelated tags."""
    if not tag.startswith("v"):
        return None
    parsed = parse_semver(tag[1:])
    if isinstance(parsed, Err):
        return None
    return parsed.value
