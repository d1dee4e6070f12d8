"""Tests for lily.config.settings."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from lily.config.settings import Settings, settings


class TestDefaults:
    def test_retrieval_policy_defaults(self) -> None:
        assert settings.MATCH_THRESHOLD == 0.5
        assert settings.MATCH_COUNT == 5

    def test_model_defaults(self) -> None:
        assert settings.EMBEDDING_MODEL == "models/text-embedding-004"
        assert settings.LLM_MODEL == "gemini-3-flash-preview"

    def test_api_key_is_secret(self) -> None:
        assert "test-key" not in repr(settings)


class TestValidators:
    @pytest.mark.parametrize("value", [-0.1, 1.5])
    def test_threshold_out_of_range(self, value: float) -> None:
        with pytest.raises(ValidationError):
            Settings(GOOGLE_API_KEY="k", MATCH_THRESHOLD=value)

    @pytest.mark.parametrize("value", [0, 51])
    def test_count_out_of_range(self, value: int) -> None:
        with pytest.raises(ValidationError):
            Settings(GOOGLE_API_KEY="k", MATCH_COUNT=value)

    def test_non_positive_timeout(self) -> None:
        with pytest.raises(ValidationError):
            Settings(GOOGLE_API_KEY="k", GENERATION_TIMEOUT_SECONDS=0)

    def test_dimension_check_can_be_disabled(self) -> None:
        assert Settings(GOOGLE_API_KEY="k", EMBEDDING_DIMENSIONS=None).EMBEDDING_DIMENSIONS is None

    def test_log_level_normalised(self) -> None:
        assert Settings(GOOGLE_API_KEY="k", LOG_LEVEL="info").LOG_LEVEL == "INFO"

    def test_unknown_log_level(self) -> None:
        with pytest.raises(ValidationError):
            Settings(GOOGLE_API_KEY="k", LOG_LEVEL="chatty")
