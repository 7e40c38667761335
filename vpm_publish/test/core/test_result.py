"""Tests for vpm_publish.core.result module."""

import pytest

from vpm_publish.core.errors import PublishError
from vpm_publish.core.result import Err, Ok, Result


class TestOk:
    """Tests for Ok type."""

    def test_create_ok(self) -> None:
        result = Ok(42)
        assert result.value == 42

    def test_ok_unwrap(self) -> None:
        assert Ok(42).unwrap() == 42

    def test_ok_repr(self) -> None:
        assert repr(Ok(42)) == "Ok(42)"

    def test_ok_frozen(self) -> None:
        result = Ok(42)
        with pytest.raises(AttributeError):
            result.value = 0  # type: ignore[misc]

    def test_ok_equality(self) -> None:
        assert Ok(42) == Ok(42)
        assert Ok(42) != Ok(0)
        assert Ok(42) != Err(42)


class TestErr:
    """Tests for Err type."""

    def test_err_unwrap_raises(self) -> None:
        result = Err("something went wrong")
        with pytest.raises(ValueError, match="called unwrap on Err"):
            result.unwrap()

    def test_err_repr(self) -> None:
        assert repr(Err("oops")) == "Err('oops')"


class TestPatternMatching:
    def test_match_publish_error(self) -> None:
        result: Result[int, PublishError] = Err(
            PublishError(kind="dirty_tree", message="The working tree must be clean.")
        )
        match result:
            case Ok(_):
                pytest.fail("Should not match Ok")
            case Err(PublishError(kind=kind, message=message)):
                assert kind == "dirty_tree"
                assert "clean" in message
