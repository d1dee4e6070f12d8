"""Tests for lily.src.core.result."""

from __future__ import annotations

import dataclasses

import pytest

from lily.src.core.result import Degraded, Failure, FailureKind, Ok


class TestFailureKind:
    def test_fatal_kinds(self) -> None:
        assert FailureKind.MISSING_MESSAGE.fatal
        assert FailureKind.GENERATION_FAILED.fatal

    def test_non_fatal_kinds(self) -> None:
        assert not FailureKind.EMBEDDING_UNAVAILABLE.fatal
        assert not FailureKind.SEARCH_UNAVAILABLE.fatal
        assert not FailureKind.EMPTY_GENERATION_RESULT.fatal

    def test_status_hints(self) -> None:
        assert FailureKind.MISSING_MESSAGE.status_hint == 400
        assert FailureKind.GENERATION_FAILED.status_hint == 500

    def test_values_match_taxonomy_names(self) -> None:
        assert [kind.value for kind in FailureKind] == ["MissingMessage", "EmbeddingUnavailable", "SearchUnavailable", "GenerationFailed", "EmptyGenerationResult"]


class TestValues:
    def test_failure_str(self) -> None:
        failure = Failure(FailureKind.SEARCH_UNAVAILABLE, "boom")
        assert str(failure) == "SearchUnavailable: boom"
        assert failure.status is None
        assert not failure.fatal

    def test_failure_is_immutable(self) -> None:
        failure = Failure(FailureKind.GENERATION_FAILED, "x", status=503)
        with pytest.raises(dataclasses.FrozenInstanceError):
            failure.status = 200  # type: ignore[misc]

    def test_ok_defaults_to_no_warnings(self) -> None:
        assert Ok("hi").warnings == ()

    def test_degraded_wraps_reason(self) -> None:
        reason = Failure(FailureKind.EMBEDDING_UNAVAILABLE, "down")
        assert Degraded(reason).reason is reason
