"""Shared test fixtures."""

from __future__ import annotations

import json
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from devpilot.analysis.pipeline import AnalysisPipeline
from devpilot.shared.history_store import HistoryStore
from devpilot.shared.openrouter_client import OpenRouterClient

API_KEY = "sk-or-test"


def make_completion_body(content: str) -> str:
    """A chat-completion body shaped like OpenRouter's."""
    return json.dumps({
        "id": "gen-123",
        "model": "m1",
        "choices": [{"index": 0, "message": {"role": "assistant", "content": content}}],
    })


def make_raw_response(body: str, status_code: int = 200) -> SimpleNamespace:
    """Fake of the SDK's raw response wrapper."""
    return SimpleNamespace(status_code=status_code, text=body)


@pytest.fixture
def tmp_config(tmp_path: Path) -> Path:
    """Write a minimal valid settings YAML and return its path."""
    cfg = tmp_path / "devpilot.yml"
    cfg.write_text(
        """\
timeout_seconds: 30
models:
  - "openai/gpt-4o-mini"
  - "x-ai/grok-code-fast-1"
"""
    )
    return cfg


@pytest.fixture
def history() -> HistoryStore:
    return HistoryStore()


@pytest.fixture
def fake_client() -> MagicMock:
    """Transport double whose ``send`` returns a successful body."""
    client = MagicMock()
    client.send = AsyncMock(return_value=make_completion_body("<b>Looks fine.</b>"))
    client.aclose = AsyncMock()
    return client


@pytest.fixture
def pipeline(fake_client: MagicMock, history: HistoryStore) -> AnalysisPipeline:
    return AnalysisPipeline(client=fake_client, history=history, api_key=API_KEY)


@pytest.fixture
def mock_openrouter_client() -> OpenRouterClient:
    """Return an OpenRouterClient with a mocked OpenAI SDK underneath."""
    client = OpenRouterClient()
    client._client = AsyncMock()
    client._client_key = API_KEY
    return client
