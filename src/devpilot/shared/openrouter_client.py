"""Async OpenRouter chat-completion client.

OpenRouter speaks the OpenAI wire protocol, so this wraps the OpenAI SDK
pointed at OpenRouter's base URL.  One POST per ``send``; the SDK's own
retries are disabled and every failure is mapped onto ``devpilot.errors``.
"""

from __future__ import annotations

import json
import logging
from types import TracebackType

from openai import APIConnectionError, APIStatusError, APITimeoutError, AsyncOpenAI

from devpilot.errors import ApiError, RequestTimeoutError, TransportError
from devpilot.schemas.config import DEFAULT_API_URL, DEFAULT_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


class OpenRouterClient:
    """Thin async wrapper that returns the raw response body of a chat completion.

    The body is handed back untouched so the caller decides how to extract
    the answer from it.
    """

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self._client: AsyncOpenAI | None = None
        self._client_key: str | None = None

    async def __aenter__(self) -> "OpenRouterClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the SDK client and its connection pool, if one was built."""
        if self._client is not None:
            await self._client.close()
            logger.debug("Closed SDK client for %s", self.base_url)
        self._client = None
        self._client_key = None

    async def _sdk(self, api_key: str) -> AsyncOpenAI:
        """Return an SDK client bound to ``api_key``, building one on first use or key change."""
        if self._client is None or api_key != self._client_key:
            if self._client is not None:
                await self._client.close()
            self._client = AsyncOpenAI(
                api_key=api_key,
                base_url=self.base_url,
                timeout=self.timeout,
                max_retries=0,
            )
            self._client_key = api_key
        return self._client

    async def send(self, prompt: str, model: str, api_key: str) -> str:
        """POST a single user message and return the raw body of a 200 response.

        Raises ``ApiError`` for any other status, ``RequestTimeoutError`` when
        the timeout expires and ``TransportError`` for other network failures.
        """
        sdk = await self._sdk(api_key)
        logger.info("Requesting completion from %s (model=%s, %d chars)", self.base_url, model, len(prompt))

        try:
            raw = await sdk.chat.completions.with_raw_response.create(
                model=model,
                messages=[{"role": "user", "content": prompt}],
            )
        except APITimeoutError as exc:
            logger.warning("Request timed out after %.0fs (model=%s)", self.timeout, model)
            raise RequestTimeoutError(f"Request timed out after {self.timeout:g}s") from exc
        except APIConnectionError as exc:
            cause = str(exc.__cause__ or exc)
            logger.warning("Connection error (model=%s): %s", model, cause)
            raise TransportError(cause) from exc
        except APIStatusError as exc:
            logger.error("API returned HTTP %d (model=%s)", exc.status_code, model)
            raise ApiError(exc.status_code, exc.response.text) from exc

        if raw.status_code != 200:
            logger.error("API returned HTTP %d (model=%s)", raw.status_code, model)
            raise ApiError(raw.status_code, raw.text)

        body = raw.text
        logger.debug("Response body (%d chars): %s", len(body), body[:500])
        return body


# ======================================================================
# Dry-run mock client, zero API calls
# ======================================================================

_DRY_RUN_ANSWER = (
    "<b>Dry run:</b> no request was sent to {model}.<br>"
    "<ul><li>Prompt length: {length} characters</li>"
    "<li>Set <b>OPENROUTER_API_KEY</b> and drop <b>--dry-run</b> for a real analysis.</li></ul>"
)


class DryRunClient:
    """Drop-in replacement for OpenRouterClient that makes zero API calls.

    Returns a canned chat-completion body shaped like OpenRouter's, so the
    extractor, history and rendering all run as they would for real.
    """

    base_url = "dry-run"

    async def aclose(self) -> None:
        pass

    async def send(self, prompt: str, model: str, api_key: str) -> str:
        logger.info("[dry-run] Skipping request (model=%s, %d chars)", model, len(prompt))
        answer = _DRY_RUN_ANSWER.format(model=model, length=len(prompt))
        return json.dumps({
            "id": "dry-run",
            "model": model,
            "choices": [{"index": 0, "message": {"role": "assistant", "content": answer}}],
        })
