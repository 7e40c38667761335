"""Git operations module.

Usage:
    from vpm_publish.git import Repository

    repo = Repository(Path("/path/to/package"))
    tags = repo.list_tags("v*")
"""

from vpm_publish.git.repository import (
    GitError,
    Repository,
    TagInfo,
)

__all__ = [
    "GitError",
    "Repository",
    "TagInfo",
]
