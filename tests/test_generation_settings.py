"""Tests for generation and runtime settings."""

import logging

import pytest
import structlog
from pydantic import ValidationError

from py_watershed.config import (
    EdgeMode, EdgeShape, GenerationSettings, Settings, configure_logging,
)
from py_watershed.core.generator import hydrology_options


class TestGenerationSettings:
    """Test validation of generation settings."""

    def test_defaults(self):
        settings = GenerationSettings(seed=1)
        assert settings.size == 1024
        assert settings.node_size == 8
        assert settings.iterations == 10
        assert settings.edge_mode == EdgeMode.ADD
        assert settings.edge_shape == EdgeShape.PARABOLIC
        assert settings.compensate_erosion is True
        assert settings.skip_final_depose is False

    def test_random_seed(self):
        assert isinstance(GenerationSettings().seed, int)
        assert isinstance(GenerationSettings(seed=None).seed, int)

    def test_camel_case_aliases(self):
        settings = GenerationSettings.model_validate(
            {"seed": 3, "nodeSize": 4, "edgeMode": "replace", "lakeAmount": 0.7})
        assert settings.node_size == 4
        assert settings.edge_mode == EdgeMode.REPLACE
        assert settings.lake_amount == 0.7

    def test_snake_case_names(self):
        settings = GenerationSettings(seed=3, node_size=4, skip_final_depose=True)
        assert settings.node_size == 4
        assert settings.skip_final_depose is True

    @pytest.mark.parametrize("overrides", [
        {"size": 0},
        {"node_size": -1},
        {"node_randomness": 1.5},
        {"lake_amount": 2},
        {"lake_depth": -0.1},
        {"slowing": 1.2},
        {"iterations": -1},
        {"feature_size": 0},
        {"edge_mode": "subtract"},
        {"unknown_option": 1},
    ])
    def test_invalid_values(self, overrides):
        with pytest.raises(ValidationError):
            GenerationSettings(seed=1, **overrides)

    def test_frozen(self):
        settings = GenerationSettings(seed=1)
        with pytest.raises(ValidationError):
            settings.size = 10

    def test_edge_distance(self):
        settings = GenerationSettings(seed=1, size=1000, edge_percentage=10)
        assert settings.edge_distance == pytest.approx(50.0)

    def test_accumulation_slowing(self):
        settings = GenerationSettings(seed=1, slowing=0.9, node_size=2)
        assert settings.accumulation_slowing == pytest.approx(0.81)

    def test_hydrology_options(self):
        settings = GenerationSettings(seed=1, lake_amount=0.6, rainfall=2, cohesion=1.5)
        options = hydrology_options(settings)
        assert options.lake_amount == 0.6
        assert options.rainfall == 2
        assert options.cohesion == 1.5
        assert options.slowing == pytest.approx(settings.accumulation_slowing)


class TestRuntimeSettings:
    """Test environment driven runtime settings."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("WATERSHED_LOG_LEVEL", raising=False)
        monkeypatch.delenv("WATERSHED_STRICT_INVARIANTS", raising=False)
        settings = Settings(_env_file=None)
        assert settings.log_level == "INFO"
        assert settings.strict_invariants is False

    def test_environment(self, monkeypatch):
        monkeypatch.setenv("WATERSHED_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("WATERSHED_STRICT_INVARIANTS", "true")
        settings = Settings(_env_file=None)
        assert settings.log_level == "DEBUG"
        assert settings.strict_invariants is True


class TestLogging:
    """Test structlog configuration."""

    @pytest.fixture(autouse=True)
    def restore_structlog(self):
        yield
        structlog.reset_defaults()

    def test_console_format(self):
        configure_logging(Settings(_env_file=None, log_level="WARNING", log_format="console"))
        assert structlog.is_configured()
        assert logging.getLogger().getEffectiveLevel() <= logging.WARNING
        structlog.get_logger("test").warning("Console logging works", answer=42)

    def test_json_format(self):
        configure_logging(Settings(_env_file=None, log_format="json"))
        assert structlog.is_configured()
        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)
