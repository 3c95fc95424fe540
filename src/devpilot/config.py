"""Settings loader: devpilot.yml into Settings, and the API key from the environment."""

import os
from pathlib import Path

import yaml

from devpilot.schemas.config import Settings

API_KEY_ENV_VAR = "OPENROUTER_API_KEY"


def load_config(path: str | Path | None = None) -> Settings:
    """Load and validate a settings file, or return defaults when ``path`` is None.

    Raises ``FileNotFoundError`` if the path doesn't exist and
    ``pydantic.ValidationError`` if the YAML content is invalid.
    """
    if path is None:
        return Settings()

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    raw = yaml.safe_load(path.read_text())
    # An empty file is a valid "use all defaults" config
    if raw is None:
        return Settings()
    if not isinstance(raw, dict):
        raise ValueError(f"Config file must be a YAML mapping, got {type(raw).__name__}")

    # A models key with only commented-out entries loads as None.
    # Also strip empty-string or None items from actual lists.
    if "models" in raw:
        if raw["models"] is None:
            del raw["models"]
        elif isinstance(raw["models"], list):
            raw["models"] = [item for item in raw["models"] if item]

    return Settings(**raw)


def resolve_api_key() -> str:
    """Read the OpenRouter key from the environment; ``""`` when unset or blank."""
    return (os.environ.get(API_KEY_ENV_VAR) or "").strip()
