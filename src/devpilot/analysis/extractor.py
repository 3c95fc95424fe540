"""Pull the model's answer out of a chat-completion response body.

The body is decoded as JSON and the first string-valued ``content`` field
(depth-first, document order) is returned.  That anchors on the answer
without depending on the wrapper fields around it, which differ between
providers behind OpenRouter.

Bodies that are not valid JSON, such as a response cut off mid-stream, fall
back to scanning for the ``"content":"`` marker directly.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from devpilot.errors import ExtractionError

logger = logging.getLogger(__name__)

CONTENT_KEY = "content"
_CONTENT_MARKER = f'"{CONTENT_KEY}":"'

KEY_NOT_FOUND = "content key not found"
NO_CLOSING_QUOTE = "no closing quote"


def extract_content(raw_body: str) -> str:
    """Return the text of the first ``content`` field in ``raw_body``.

    Raises ``ExtractionError`` (carrying the raw body) when there is no
    such field or its value is unterminated.
    """
    try:
        data = json.loads(raw_body)
    except (json.JSONDecodeError, RecursionError) as exc:
        logger.debug("Response body could not be decoded (%s), scanning for content marker", exc)
        return _scan_for_content(raw_body)

    try:
        content = _find_content(data)
    except RecursionError as exc:
        raise ExtractionError(KEY_NOT_FOUND, raw_body) from exc
    if content is None:
        raise ExtractionError(KEY_NOT_FOUND, raw_body)
    return content


def _find_content(node: Any) -> str | None:
    if isinstance(node, dict):
        for key, value in node.items():
            if key == CONTENT_KEY and isinstance(value, str):
                return value
            found = _find_content(value)
            if found is not None:
                return found
    elif isinstance(node, list):
        for item in node:
            found = _find_content(item)
            if found is not None:
                return found
    return None


def _scan_for_content(raw_body: str) -> str:
    start = raw_body.find(_CONTENT_MARKER)
    if start == -1:
        raise ExtractionError(KEY_NOT_FOUND, raw_body)

    begin = start + len(_CONTENT_MARKER)
    search_from = begin
    while True:
        end = raw_body.find('"', search_from)
        if end == -1:
            raise ExtractionError(NO_CLOSING_QUOTE, raw_body)
        # A quote is escaped only by an odd run of backslashes
        run = 0
        i = end - 1
        while i >= begin and raw_body[i] == "\\":
            run += 1
            i -= 1
        if run % 2 == 0:
            break
        search_from = end + 1

    return _unescape(raw_body[begin:end])


def _unescape(text: str) -> str:
    try:
        return json.loads(f'"{text}"', strict=False)
    except json.JSONDecodeError:
        # Invalid escape sequence somewhere; undo the common ones literally
        return text.replace("\\\\", "\\").replace('\\"', '"').replace("\\n", "\n")
