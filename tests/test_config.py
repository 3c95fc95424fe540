"""Tests for settings loading and validation."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from devpilot.config import load_config, resolve_api_key
from devpilot.schemas.config import DEFAULT_API_URL, PRESET_MODELS, Settings


class TestSettings:
    """Test the Settings Pydantic model directly."""

    def test_defaults(self) -> None:
        cfg = Settings()
        assert cfg.api_url == DEFAULT_API_URL
        assert cfg.timeout_seconds == 60
        assert cfg.models == PRESET_MODELS
        assert cfg.default_model == PRESET_MODELS[0]
        assert cfg.default_analysis_type == "Explain Code"

    def test_default_model_follows_models(self) -> None:
        cfg = Settings(models=["a/b", "c/d"])
        assert cfg.default_model == "a/b"

    def test_explicit_default_model_kept(self) -> None:
        cfg = Settings(models=["a/b"], default_model="other/model")
        assert cfg.default_model == "other/model"

    def test_requires_models(self) -> None:
        with pytest.raises(ValidationError, match="model"):
            Settings(models=[])

    def test_timeout_must_be_positive(self) -> None:
        with pytest.raises(ValidationError, match="timeout_seconds"):
            Settings(timeout_seconds=0)

    def test_unknown_default_analysis_type(self) -> None:
        with pytest.raises(ValidationError, match="default_analysis_type"):
            Settings(default_analysis_type="Summarize")


class TestLoadConfig:
    """Test YAML file loading."""

    def test_no_path_gives_defaults(self) -> None:
        assert load_config(None) == Settings()

    def test_load_valid_file(self, tmp_config: Path) -> None:
        cfg = load_config(tmp_config)
        assert cfg.timeout_seconds == 30
        assert cfg.models == ["openai/gpt-4o-mini", "x-ai/grok-code-fast-1"]
        assert cfg.default_model == "openai/gpt-4o-mini"

    def test_file_not_found(self) -> None:
        with pytest.raises(FileNotFoundError):
            load_config("/nonexistent/devpilot.yml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        bad = tmp_path / "bad.yml"
        bad.write_text("just a string")
        with pytest.raises(ValueError, match="YAML mapping"):
            load_config(bad)

    def test_empty_file_gives_defaults(self, tmp_path: Path) -> None:
        empty = tmp_path / "empty.yml"
        empty.write_text("")
        assert load_config(empty) == Settings()

    def test_null_models_fall_back_to_presets(self, tmp_path: Path) -> None:
        """A models key with only commented-out entries loads as None."""
        cfg_file = tmp_path / "devpilot.yml"
        cfg_file.write_text(
            """\
models:
  # - "openai/gpt-4o-mini"
"""
        )
        assert load_config(cfg_file).models == PRESET_MODELS

    def test_blank_model_entries_dropped(self, tmp_path: Path) -> None:
        cfg_file = tmp_path / "devpilot.yml"
        cfg_file.write_text('models:\n  - ""\n  - "openai/gpt-4o-mini"\n')
        assert load_config(cfg_file).models == ["openai/gpt-4o-mini"]


class TestResolveApiKey:
    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OPENROUTER_API_KEY", "  sk-or-abc  ")
        assert resolve_api_key() == "sk-or-abc"

    def test_unset(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("OPENROUTER_API_KEY", raising=False)
        assert resolve_api_key() == ""

    def test_blank(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OPENROUTER_API_KEY", "   ")
        assert resolve_api_key() == ""
