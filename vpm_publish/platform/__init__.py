"""Platform abstraction layer."""

from .files import (
    atomic_write_json,
    atomic_write_text,
    read_text_exact,
)
from .process import (
    ProcessError,
    output_lines,
    run,
    which,
)

__all__ = [
    # files
    "atomic_write_json",
    "atomic_write_text",
    "read_text_exact",
    # process
    "ProcessError",
    "output_lines",
    "run",
    "which",
]
