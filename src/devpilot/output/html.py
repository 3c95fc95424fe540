"""HTML document rendering for analysis results and history exports."""

from __future__ import annotations

from pathlib import Path

from jinja2 import Environment, FileSystemLoader
from markupsafe import Markup

from devpilot.analysis.extractor import KEY_NOT_FOUND, NO_CLOSING_QUOTE
from devpilot.schemas.history import HistoryEntry

_TEMPLATE_DIR = Path(__file__).parent / "templates"

_env = Environment(loader=FileSystemLoader(str(_TEMPLATE_DIR)), autoescape=True)

# User-facing wording for extraction failures
_EXTRACTION_MESSAGES = {
    KEY_NOT_FOUND: "Could not find 'content' key in AI response.",
    NO_CLOSING_QUOTE: "Could not find a closing quote for the content.",
}


def wrap_html(content: str, *, title: str = "") -> str:
    """Wrap a model answer in a styled, self-contained HTML document.

    ``content`` is trusted HTML: the prompt asks the model for a restricted
    tag subset and the answer is rendered as such.
    """
    template = _env.get_template("response.html")
    return template.render(content=Markup(content), title=title, entry=None)


def render_history_entry(entry: HistoryEntry, *, position: int) -> str:
    """Full HTML export of one history entry: metadata, input code, response."""
    template = _env.get_template("response.html")
    return template.render(
        content=Markup(entry.response),
        title=f"History Entry {position}",
        entry=entry,
    )


def error_payload(message: str, raw_body: str = "") -> str:
    """Displayable error fragment; both parts are HTML-escaped."""
    if not raw_body:
        return str(Markup("<b>Error:</b> {}").format(message))
    return str(Markup("<b>Error:</b> {}<br><pre>{}</pre>").format(message, raw_body))


def extraction_error_message(reason: str) -> str:
    return _EXTRACTION_MESSAGES.get(reason, reason)
