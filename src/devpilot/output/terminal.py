"""Render the restricted HTML subset the model emits as Rich renderables."""

from __future__ import annotations

import html
import re

from rich.console import RenderableType
from rich.panel import Panel
from rich.text import Text

_PRE_BLOCK = re.compile(
    r"<pre[^>]*>\s*(?:<code[^>]*>)?(.*?)(?:</code>\s*)?</pre>",
    re.DOTALL | re.IGNORECASE,
)
_TAG = re.compile(r"<(/?)([a-zA-Z][a-zA-Z0-9]*)[^>]*>")

_INLINE_STYLES = {
    "b": "bold",
    "strong": "bold",
    "i": "italic",
    "em": "italic",
    "code": "cyan",
    "h1": "bold underline",
    "h2": "bold underline",
    "h3": "bold",
    "h4": "bold",
}
# Closing any of these ends the line
_BLOCK_TAGS = {"p", "div", "ul", "ol", "h1", "h2", "h3", "h4", "li"}


def html_to_console(content: str) -> list[RenderableType]:
    """Split ``content`` into styled text runs and boxed code blocks."""
    renderables: list[RenderableType] = []
    pos = 0
    for match in _PRE_BLOCK.finditer(content):
        text = _inline_to_text(content[pos:match.start()])
        if text.plain.strip():
            renderables.append(text)
        code = html.unescape(match.group(1)).strip("\n")
        renderables.append(Panel(Text(code), border_style="dim", expand=False))
        pos = match.end()

    text = _inline_to_text(content[pos:])
    if text.plain.strip():
        renderables.append(text)
    return renderables


def _inline_to_text(fragment: str) -> Text:
    text = Text()
    styles: list[str] = []
    pos = 0
    for match in _TAG.finditer(fragment):
        _append_run(text, fragment[pos:match.start()], styles)
        closing, name = match.group(1) == "/", match.group(2).lower()

        style = _INLINE_STYLES.get(name)
        if style and not closing:
            styles.append(style)
        elif style and style in styles:
            # Remove the innermost matching style; unbalanced closers are ignored
            del styles[len(styles) - 1 - styles[::-1].index(style)]

        if name == "li" and not closing:
            _end_line(text)
            text.append("  • ")
        elif name == "br":
            text.append("\n")
        elif closing and name in _BLOCK_TAGS:
            _end_line(text)
        pos = match.end()
    _append_run(text, fragment[pos:], styles)
    text.rstrip()
    return text


def _append_run(text: Text, raw: str, styles: list[str]) -> None:
    run = re.sub(r"\s+", " ", html.unescape(raw))
    if not run.strip():
        return
    if text.plain.endswith(("\n", "• ")) or not text.plain:
        run = run.lstrip()
    text.append(run, style=" ".join(styles) or None)


def _end_line(text: Text) -> None:
    if text.plain and not text.plain.endswith("\n"):
        text.append("\n")
