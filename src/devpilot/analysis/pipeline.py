"""Analysis pipeline: prompt, transport, extraction and history."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Protocol

from devpilot.analysis.extractor import extract_content
from devpilot.analysis.prompts import build_prompt
from devpilot.config import API_KEY_ENV_VAR
from devpilot.errors import ApiError, ConfigurationError, DevPilotError, ExtractionError
from devpilot.output.html import error_payload, extraction_error_message, wrap_html
from devpilot.schemas.analysis import AnalysisRequest, AnalysisResult
from devpilot.schemas.history import HistoryEntry
from devpilot.shared.history_store import HistoryStore

logger = logging.getLogger(__name__)


class TransportClient(Protocol):
    async def send(self, prompt: str, model: str, api_key: str) -> str: ...

    async def aclose(self) -> None: ...


CompletionCallback = Callable[[AnalysisResult], None]
"""Receives the result of a background analysis on the event loop thread."""


class AnalysisPipeline:
    """Turns (code, analysis type, model) into a displayable result and a history record.

    The transport client and history store are injected so front ends and
    tests each own theirs.  Request failures never escape ``run_analysis``:
    they come back in the result with ``succeeded=False`` and ``error`` set.

    History policy:
    - success: one entry with the extracted answer
    - unextractable response: one entry with ``error=True`` holding the error payload
    - configuration, transport and API errors: nothing recorded
    """

    def __init__(self, client: TransportClient, history: HistoryStore, api_key: str) -> None:
        self.client = client
        self.history = history
        self._api_key = api_key

    async def run_analysis(self, code: str, analysis_type: str, model: str) -> AnalysisResult:
        """Run one analysis to completion and return its result."""
        request = AnalysisRequest(code=code, analysis_type=analysis_type, model=model)

        try:
            self._check_ready(request)
            prompt = build_prompt(request.code, request.analysis_type)
            raw_body = await self.client.send(prompt, request.model, self._api_key)
        except DevPilotError as exc:
            logger.error("Analysis failed (%s, %s): %s", request.analysis_type, request.model, exc)
            return self._failure(request, exc)

        try:
            content = extract_content(raw_body)
        except ExtractionError as exc:
            logger.warning(
                "Could not extract content (%s); recording entry with error flag", exc.reason,
            )
            payload = error_payload(extraction_error_message(exc.reason), raw_body)
            self._record(request, payload, error=True)
            return AnalysisResult(
                request=request,
                raw_response_body=raw_body,
                succeeded=False,
                error_detail=exc.reason,
                error=exc,
                html=wrap_html(payload),
            )

        self._record(request, content)
        logger.info("Analysis complete (%s, %s, %d chars)", request.analysis_type, request.model, len(content))
        return AnalysisResult(
            request=request,
            raw_response_body=raw_body,
            extracted_content=content,
            succeeded=True,
            html=wrap_html(content),
        )

    def submit(
        self,
        code: str,
        analysis_type: str,
        model: str,
        on_complete: CompletionCallback | None = None,
    ) -> asyncio.Task[AnalysisResult]:
        """Start ``run_analysis`` as a background task on the running loop.

        ``on_complete`` is called with the result once the task finishes.
        There is no cancellation: a submitted request runs to completion,
        timeout or failure.
        """
        task = asyncio.create_task(self.run_analysis(code, analysis_type, model))
        if on_complete is not None:

            def _deliver(done: asyncio.Task[AnalysisResult]) -> None:
                if done.cancelled():
                    logger.warning("Analysis task was cancelled before completing")
                    return
                exc = done.exception()
                if exc is not None:
                    logger.error("Analysis task crashed", exc_info=exc)
                    return
                on_complete(done.result())

            task.add_done_callback(_deliver)
        return task

    def get_history(self) -> list[HistoryEntry]:
        return self.history.list()

    def get_history_entry(self, index: int) -> HistoryEntry:
        return self.history.get(index)

    async def aclose(self) -> None:
        """Release the transport's connections; call once no request is in flight."""
        await self.client.aclose()

    # ------------------------------------------------------------------

    def _check_ready(self, request: AnalysisRequest) -> None:
        if not request.code.strip():
            raise ConfigurationError("Please enter some code to analyze.")
        if not self._api_key or not self._api_key.strip():
            raise ConfigurationError(
                f"Please set the {API_KEY_ENV_VAR} environment variable before running."
            )
        if not request.model.strip():
            raise ConfigurationError("Please choose a model.")

    def _record(self, request: AnalysisRequest, response: str, *, error: bool = False) -> None:
        self.history.append(HistoryEntry(
            code=request.code,
            analysis_type=request.analysis_type,
            model=request.model,
            response=response,
            error=error,
        ))

    @staticmethod
    def _failure(request: AnalysisRequest, exc: DevPilotError) -> AnalysisResult:
        if isinstance(exc, ConfigurationError):
            message = str(exc)
        else:
            message = f"API Error: {exc}"
        return AnalysisResult(
            request=request,
            raw_response_body=exc.body if isinstance(exc, ApiError) else "",
            succeeded=False,
            error_detail=str(exc),
            error=exc,
            html=wrap_html(error_payload(message)),
        )
