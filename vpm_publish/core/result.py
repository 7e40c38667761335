"""Result type for expected failures.

Every pipeline stage, validator and gateway call returns a Result. An Err
carries a failure that already has an operator-facing message (malformed
manifest, dirty working tree, unreachable remote, ...). Anything that is
not anticipated is a plain Python exception and is allowed to propagate.

Usage:
    def load(path: Path) -> Result[str, PublishError]:
        if not path.is_file():
            return Err(PublishError(kind="missing_file", message=f"missing: {path}"))
        return Ok(path.read_text(encoding="utf-8"))

    match load(path):
        case Ok(text):
            ...
        case Err(error):
            console.error(error.message)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeAlias, TypeVar

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """A successful result.

    Attributes:
        value: The success value.
    """

    value: T

    def unwrap(self) -> T:
        """Returns the contained value."""
        return self.value

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """A failed result carrying an expected, already explained failure.

    Attributes:
        error: The error value.
    """

    error: E

    def unwrap(self) -> None:
        """Raises ValueError; an Err has no value.

        Raises:
            ValueError: Always.
        """
        raise ValueError(f"called unwrap on Err: {self.error}")

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


Result: TypeAlias = Ok[T] | Err[E]
