"""Stage ordering and the stage runner shared by every pipeline entry point.

A run walks a linear list of stages. Each handler returns
``Result[None, PublishError]``; the first Err stops the run. Where the walk
ends is chosen up front by a Terminal, so validate-only, package-only and a
full publish are the same machine with different stopping points.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from enum import StrEnum

from vpm_publish.core.errors import PublishError
from vpm_publish.core.result import Err, Ok, Result

__all__ = [
    "CHANGELOG_DRAFT_STAGES",
    "NORMALIZE_STAGES",
    "PUBLISH_STAGES",
    "Stage",
    "StageHandler",
    "Terminal",
    "run_stages",
    "stages_until",
]


class Stage(StrEnum):
    PREFLIGHT = "preflight"
    LOAD_MANIFEST = "load_manifest"
    VALIDATE_MANIFEST = "validate_manifest"
    ENSURE_NO_EXISTING_TAG = "ensure_no_existing_tag"
    LOAD_CHANGELOG = "load_changelog"
    VALIDATE_CHANGELOG = "validate_changelog"
    PREPARE_WORKSPACE = "prepare_workspace"
    BUILD_ARCHIVE = "build_archive"
    COMPUTE_CHECKSUM = "compute_checksum"
    WRITE_RELEASE_NOTES = "write_release_notes"
    CREATE_TAG = "create_tag"
    PUBLISH_RELEASE = "publish_release"
    INCREMENT_VERSION = "increment_version"
    DRAFT_CHANGELOG = "draft_changelog"
    WRITE_MANIFEST = "write_manifest"


class Terminal(StrEnum):
    VALIDATED_ONLY = "validated_only"
    PACKAGED = "packaged"
    PUBLISHED = "published"


PUBLISH_STAGES: tuple[Stage, ...] = (
    Stage.PREFLIGHT,
    Stage.LOAD_MANIFEST,
    Stage.VALIDATE_MANIFEST,
    Stage.ENSURE_NO_EXISTING_TAG,
    Stage.LOAD_CHANGELOG,
    Stage.VALIDATE_CHANGELOG,
    Stage.PREPARE_WORKSPACE,
    Stage.BUILD_ARCHIVE,
    Stage.COMPUTE_CHECKSUM,
    Stage.WRITE_RELEASE_NOTES,
    Stage.CREATE_TAG,
    Stage.PUBLISH_RELEASE,
    Stage.INCREMENT_VERSION,
)

# Last stage run before each terminal.
_TERMINAL_AFTER: dict[Terminal, Stage] = {
    Terminal.VALIDATED_ONLY: Stage.VALIDATE_CHANGELOG,
    Terminal.PACKAGED: Stage.COMPUTE_CHECKSUM,
    Terminal.PUBLISHED: Stage.INCREMENT_VERSION,
}

CHANGELOG_DRAFT_STAGES: tuple[Stage, ...] = (
    Stage.PREFLIGHT,
    Stage.LOAD_MANIFEST,
    Stage.VALIDATE_MANIFEST,
    Stage.ENSURE_NO_EXISTING_TAG,
    Stage.LOAD_CHANGELOG,
    Stage.DRAFT_CHANGELOG,
)

NORMALIZE_STAGES: tuple[Stage, ...] = (
    Stage.LOAD_MANIFEST,
    Stage.VALIDATE_MANIFEST,
    Stage.WRITE_MANIFEST,
)


def stages_until(terminal: Terminal) -> tuple[Stage, ...]:
    last = _TERMINAL_AFTER[terminal]
    return PUBLISH_STAGES[: PUBLISH_STAGES.index(last) + 1]


StageHandler = Callable[[], Result[None, PublishError]]


def run_stages(
    stages: Sequence[Stage], handlers: Mapping[Stage, StageHandler]
) -> Result[None, PublishError]:
    for stage in stages:
        handler = handlers.get(stage)
        if handler is None:
            raise RuntimeError(f"no handler for pipeline stage: {stage}")
        outcome = handler()
        if isinstance(outcome, Err):
            return outcome
    return Ok(None)
