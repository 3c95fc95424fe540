"""Settings schema for devpilot.yml."""

from pydantic import BaseModel, model_validator

from devpilot.schemas.analysis import ANALYSIS_TYPES

DEFAULT_API_URL = "https://openrouter.ai/api/v1"
DEFAULT_TIMEOUT_SECONDS = 60.0

PRESET_MODELS = [
    "nvidia/nemotron-nano-9b-v2:free",
    "openai/gpt-4o-mini",
    "openchat/openchat-7b:free",
    "google/gemini-2.0-flash-001",
    "x-ai/grok-code-fast-1",
]


class Settings(BaseModel):
    """Runtime settings, optionally loaded from a YAML file.

    The API key is deliberately not part of this model; it only ever comes
    from the environment (see ``devpilot.config.resolve_api_key``).
    """

    # OpenAI-compatible base URL; the client appends /chat/completions
    api_url: str = DEFAULT_API_URL
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    # Offered in the session prompt; any other model id is still accepted
    models: list[str] = list(PRESET_MODELS)
    default_model: str = ""
    default_analysis_type: str = "Explain Code"

    @model_validator(mode="after")
    def check_timeout(self) -> "Settings":
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        return self

    @model_validator(mode="after")
    def check_has_models(self) -> "Settings":
        if not self.models:
            raise ValueError("At least one model is required")
        if not self.default_model:
            self.default_model = self.models[0]
        return self

    @model_validator(mode="after")
    def check_default_analysis_type(self) -> "Settings":
        if self.default_analysis_type not in ANALYSIS_TYPES:
            raise ValueError(
                f"default_analysis_type must be one of: {', '.join(ANALYSIS_TYPES)}"
            )
        return self
