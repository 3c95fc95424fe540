"""Tests for the interactive session commands."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from devpilot.analysis.pipeline import AnalysisPipeline
from devpilot.errors import HistoryEntryNotFound, TransportError
from devpilot.schemas.analysis import ANALYSIS_TYPES
from devpilot.schemas.config import Settings
from devpilot.session import SAMPLE_CODE, Session
from devpilot.shared.history_store import HistoryStore
from tests.conftest import API_KEY


@pytest.fixture
def session(pipeline: AnalysisPipeline) -> Session:
    return Session(pipeline, Settings(models=["a/one", "b/two"]))


class TestSession:
    def test_defaults(self, session: Session) -> None:
        assert session.code == SAMPLE_CODE
        assert session.analysis_type == "Explain Code"
        assert session.model == "a/one"

    def test_choose_type_by_number_and_name(self, session: Session) -> None:
        session.choose_type("2")
        assert session.analysis_type == ANALYSIS_TYPES[1]
        session.choose_type("Add Comments")
        assert session.analysis_type == "Add Comments"

    def test_unknown_type_ignored(self, session: Session) -> None:
        session.choose_type("Summarize")
        assert session.analysis_type == "Explain Code"

    def test_choose_model_by_number_or_id(self, session: Session) -> None:
        session.choose_model("2")
        assert session.model == "b/two"
        session.choose_model("x-ai/grok-code-fast-1")
        assert session.model == "x-ai/grok-code-fast-1"

    def test_load(self, session: Session, tmp_path: Path) -> None:
        src = tmp_path / "a.py"
        src.write_text("x = 1\n")
        session.load(str(src))
        assert session.code == "x = 1\n"

    def test_load_undecodable_file_keeps_code(
        self, session: Session, tmp_path: Path, capsys: pytest.CaptureFixture[str],
    ) -> None:
        src = tmp_path / "blob.bin"
        src.write_bytes(b"\xff\xfe\x00\x81\xc3\x28")
        session.load(str(src))
        assert session.code == SAMPLE_CODE
        assert "Could not read" in capsys.readouterr().out

    def test_load_directory_reports_missing_file(self, session: Session, tmp_path: Path) -> None:
        session.load(str(tmp_path))
        assert session.code == SAMPLE_CODE

    @pytest.mark.asyncio
    async def test_analyze_records_history(self, session: Session, pipeline: AnalysisPipeline) -> None:
        session.choose_type("Find Bugs")
        result = await session.analyze()

        assert result.succeeded
        (entry,) = pipeline.get_history()
        assert entry.code == SAMPLE_CODE
        assert entry.analysis_type == "Find Bugs"

    @pytest.mark.asyncio
    async def test_save_exports_entry(self, session: Session, tmp_path: Path) -> None:
        await session.analyze()
        out = tmp_path / "entry.html"
        await session.dispatch("save", f"1 {out}")
        assert "History Entry 1" in out.read_text()

    @pytest.mark.asyncio
    async def test_save_to_missing_directory_reports_error(
        self, session: Session, tmp_path: Path, capsys: pytest.CaptureFixture[str],
    ) -> None:
        await session.analyze()
        out = tmp_path / "missing_dir" / "entry.html"
        await session.dispatch("save", f"1 {out}")
        assert not out.exists()
        assert "Could not write" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_extraction_failure_not_labelled_api_error(
        self, fake_client: MagicMock, history: HistoryStore, capsys: pytest.CaptureFixture[str],
    ) -> None:
        fake_client.send = AsyncMock(return_value='{"error": {"message": "overloaded"}}')
        pipeline = AnalysisPipeline(client=fake_client, history=history, api_key=API_KEY)
        session = Session(pipeline, Settings(models=["a/one"]))

        result = await session.analyze()

        out = capsys.readouterr().out
        assert not result.succeeded
        assert "Error:" in out
        assert "Could not find 'content' key" in out
        assert "API Error" not in out

    @pytest.mark.asyncio
    async def test_transport_failure_labelled_api_error(
        self, fake_client: MagicMock, history: HistoryStore, capsys: pytest.CaptureFixture[str],
    ) -> None:
        fake_client.send = AsyncMock(side_effect=TransportError("connection reset"))
        pipeline = AnalysisPipeline(client=fake_client, history=history, api_key=API_KEY)
        session = Session(pipeline, Settings(models=["a/one"]))

        await session.analyze()

        assert "API Error: connection reset" in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_show_missing_entry(self, session: Session) -> None:
        with pytest.raises(HistoryEntryNotFound):
            await session.dispatch("show", "1")
