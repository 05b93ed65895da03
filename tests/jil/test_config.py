"""
Tests for evaluator configuration.
"""

import pytest
from pydantic import ValidationError

from jil import EvaluationLimits, JilConfig, create_context, evaluate, load_config


class TestJilConfig:
    """Tests for the configuration model."""

    def test_defaults_match_limits(self):
        assert JilConfig().to_limits() == EvaluationLimits()

    def test_camel_case(self):
        config = JilConfig.model_validate({"maxSteps": 50, "maxCallArgs": 4})
        assert config.max_steps == 50
        assert config.max_call_args == 4

    def test_snake_case(self):
        assert JilConfig(max_steps=7).max_steps == 7

    def test_rejects_unknown_fields(self):
        with pytest.raises(ValidationError):
            JilConfig.model_validate({"maxStepz": 1})

    def test_rejects_non_positive(self):
        with pytest.raises(ValidationError):
            JilConfig(max_steps=0)

    def test_frozen(self):
        with pytest.raises(ValidationError):
            JilConfig().max_steps = 1

    def test_to_limits(self):
        limits = JilConfig(max_document_depth=3).to_limits()
        assert limits.max_document_depth == 3
        assert limits.max_steps == EvaluationLimits().max_steps


class TestFromEnv:
    """Tests for environment overrides."""

    def test_empty_environment(self):
        assert JilConfig.from_env({}) == JilConfig()

    def test_overrides(self):
        config = JilConfig.from_env(
            {"JIL_MAX_STEPS": "25", "JIL_MAX_COLLECTION_LENGTH": " 8 ", "OTHER": "x"}
        )
        assert config.max_steps == 25
        assert config.max_collection_length == 8

    def test_blank_values_are_ignored(self):
        assert JilConfig.from_env({"JIL_MAX_STEPS": "  "}).max_steps == JilConfig().max_steps

    def test_non_integer(self):
        with pytest.raises(ValueError, match="JIL_MAX_STEPS"):
            JilConfig.from_env({"JIL_MAX_STEPS": "many"})

    def test_non_positive(self):
        with pytest.raises(ValueError):
            JilConfig.from_env({"JIL_MAX_CALL_ARGS": "-1"})

    def test_process_environment(self, monkeypatch):
        monkeypatch.setenv("JIL_MAX_EVALUATION_DEPTH", "12")
        assert JilConfig.from_env().max_evaluation_depth == 12


class TestLoadConfig:
    """Tests for configuration normalization."""

    def test_instance_passes_through(self):
        config = JilConfig(max_steps=3)
        assert load_config(config) is config

    def test_mapping(self):
        assert load_config({"maxSteps": 9}).max_steps == 9

    def test_none_reads_environment(self, monkeypatch):
        monkeypatch.setenv("JIL_MAX_STEPS", "11")
        assert load_config().max_steps == 11


class TestCreateContext:
    """Tests for building evaluation contexts."""

    def test_context(self):
        context = create_context({"maxSteps": 99}, bindings={"x": 1})
        assert context.limits.max_steps == 99
        assert context.bindings == {"x": 1}
        assert context.extension_resolver is None

    def test_context_drives_evaluation(self, monkeypatch):
        monkeypatch.delenv("JIL_MAX_STEPS", raising=False)
        context = create_context(bindings={"x": 20})
        assert evaluate(["+", ["x"], 1], context).value == 21
