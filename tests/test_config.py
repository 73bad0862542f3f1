"""Tests for application settings."""

import pytest
from py_tessellate.config import Settings


class TestSettings:
    """Test settings defaults and overrides."""

    def test_defaults(self):
        """Test values used without any environment."""
        config = Settings(_env_file=None)
        assert config.api_port == 8000
        assert config.ray_strategy == "bisector"
        assert config.tolerance == pytest.approx(1e-9)
        assert config.generation_timeout_seconds == pytest.approx(30.0)

    def test_environment_override(self, monkeypatch):
        """Test that environment variables take precedence."""
        monkeypatch.setenv("API_PORT", "9100")
        monkeypatch.setenv("RAY_STRATEGY", "ray")
        config = Settings(_env_file=None)
        assert config.api_port == 9100
        assert config.ray_strategy == "ray"

    def test_tessellation_options(self):
        """Test building pipeline options from settings."""
        config = Settings(_env_file=None, degenerate_retries=7)
        options = config.tessellation_options()
        assert options.degenerate_retries == 7
        assert options.ray_strategy == "bisector"

    def test_option_overrides(self):
        """Test that None overrides are ignored and others applied."""
        config = Settings(_env_file=None)
        assert config.tessellation_options(ray_strategy=None).ray_strategy == "bisector"
        assert config.tessellation_options(ray_strategy="ray").ray_strategy == "ray"

    def test_invalid_strategy(self):
        """Test that an unknown strategy is refused when options are built."""
        config = Settings(_env_file=None, ray_strategy="spiral")
        with pytest.raises(ValueError):
            config.tessellation_options()
