"""
Unit tests for Prank configuration.
"""

import pytest

from prank.config import ConfigurationError, PrankConfig


class TestPrankConfig:
    """Tests for PrankConfig."""

    def test_defaults_are_valid(self):
        """Test that the default configuration passes validation."""
        config = PrankConfig()
        assert config.validate() == []
        assert config.check() is config

    def test_validate_reports_every_problem(self):
        """Test that all out-of-range parameters are reported."""
        config = PrankConfig(k=0, sample_rate=1.5, chunk_size=0)
        problems = config.validate()

        assert len(problems) == 3
        assert any("k must be" in p for p in problems)
        assert any("sample_rate" in p for p in problems)
        assert any("chunk_size" in p for p in problems)

    def test_check_raises(self):
        """Test that check() raises ConfigurationError."""
        with pytest.raises(ConfigurationError, match="max_rounds"):
            PrankConfig(max_rounds=-1).check()

    def test_configuration_error_is_value_error(self):
        """Test that callers catching ValueError also catch config problems."""
        assert issubclass(ConfigurationError, ValueError)

    def test_from_env(self, monkeypatch):
        """Test reading overrides from environment variables."""
        monkeypatch.setenv("PRANK_K", "12")
        monkeypatch.setenv("PRANK_MAX_ROUNDS", "4")
        monkeypatch.setenv("PRANK_SAMPLE_RATE", "0.25")
        monkeypatch.setenv("PRANK_SEED", "99")
        monkeypatch.setenv("PRANK_MAX_WORKERS", "3")
        monkeypatch.setenv("PRANK_FORCE_SERIAL", "true")
        monkeypatch.setenv("PRANK_CHUNK_SIZE", "64")

        config = PrankConfig.from_env()

        assert config.k == 12
        assert config.max_rounds == 4
        assert config.sample_rate == 0.25
        assert config.seed == 99
        assert config.max_workers == 3
        assert config.force_serial is True
        assert config.chunk_size == 64

    def test_from_env_without_overrides(self, monkeypatch):
        """Test that missing variables keep the defaults."""
        for name in ("PRANK_K", "PRANK_MAX_ROUNDS", "PRANK_SEED", "PRANK_FORCE_SERIAL"):
            monkeypatch.delenv(name, raising=False)

        config = PrankConfig.from_env()

        assert config.k == PrankConfig().k
        assert config.max_rounds is None
        assert config.seed is None
        assert config.force_serial is False
