from __future__ import annotations

import pytest

from vpm_publish.core.errors import PublishError
from vpm_publish.core.result import Err, Ok, Result
from vpm_publish.services.stages import (
    PUBLISH_STAGES,
    Stage,
    StageHandler,
    Terminal,
    run_stages,
    stages_until,
)


def test_terminals_truncate_the_same_sequence() -> None:
    validated = stages_until(Terminal.VALIDATED_ONLY)
    packaged = stages_until(Terminal.PACKAGED)
    published = stages_until(Terminal.PUBLISHED)

    assert validated[-1] == Stage.VALIDATE_CHANGELOG
    assert packaged[-1] == Stage.COMPUTE_CHECKSUM
    assert published == PUBLISH_STAGES
    assert packaged[: len(validated)] == validated
    assert published[: len(packaged)] == packaged


def test_validated_only_touches_nothing_external() -> None:
    validated = stages_until(Terminal.VALIDATED_ONLY)
    for stage in (Stage.PREPARE_WORKSPACE, Stage.CREATE_TAG, Stage.PUBLISH_RELEASE):
        assert stage not in validated


def test_packaged_stops_before_side_effects() -> None:
    packaged = stages_until(Terminal.PACKAGED)
    for stage in (Stage.WRITE_RELEASE_NOTES, Stage.CREATE_TAG, Stage.INCREMENT_VERSION):
        assert stage not in packaged


def _recorder(log: list[Stage], stage: Stage, result: Result[None, PublishError]) -> StageHandler:
    def handler() -> Result[None, PublishError]:
        log.append(stage)
        return result

    return handler


def test_run_stages_in_order() -> None:
    log: list[Stage] = []
    stages = (Stage.LOAD_MANIFEST, Stage.VALIDATE_MANIFEST)
    handlers = {s: _recorder(log, s, Ok(None)) for s in stages}

    result = run_stages(stages, handlers)

    assert result == Ok(None)
    assert log == list(stages)


def test_run_stages_stops_at_first_error() -> None:
    log: list[Stage] = []
    error = PublishError(kind="tag_exists", message="exists")
    handlers = {
        Stage.LOAD_MANIFEST: _recorder(log, Stage.LOAD_MANIFEST, Ok(None)),
        Stage.ENSURE_NO_EXISTING_TAG: _recorder(log, Stage.ENSURE_NO_EXISTING_TAG, Err(error)),
        Stage.LOAD_CHANGELOG: _recorder(log, Stage.LOAD_CHANGELOG, Ok(None)),
    }

    result = run_stages(list(handlers), handlers)

    assert result == Err(error)
    assert log == [Stage.LOAD_MANIFEST, Stage.ENSURE_NO_EXISTING_TAG]


def test_run_stages_missing_handler_is_a_fault() -> None:
    log: list[Stage] = []
    handlers = {Stage.LOAD_MANIFEST: _recorder(log, Stage.LOAD_MANIFEST, Ok(None))}

    with pytest.raises(RuntimeError, match="preflight"):
        run_stages((Stage.LOAD_MANIFEST, Stage.PREFLIGHT), handlers)

    assert log == [Stage.LOAD_MANIFEST]
