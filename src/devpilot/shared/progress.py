"""Rich progress display and user input for the terminal front end."""

from __future__ import annotations

import asyncio
import logging

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.prompt import Prompt

from devpilot.schemas.analysis import AnalysisResult

console = Console()


class AnalysisProgress:
    """Spinner shown while an analysis request is in flight."""

    def __init__(self) -> None:
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            TimeElapsedColumn(),
            console=console,
            transient=True,
        )
        self._task_id: int | None = None
        self._label = ""

    def __enter__(self) -> "AnalysisProgress":
        self._progress.__enter__()
        return self

    def __exit__(self, *args: object) -> None:
        self._progress.__exit__(*args)

    def start(self, label: str) -> None:
        """Show the spinner with ``label``."""
        self._label = label
        self._task_id = self._progress.add_task(
            f"[cyan]{label}[/] — Contacting AI...", total=None,
        )

    def complete(self, result: AnalysisResult) -> None:
        """Completion callback: log the outcome above the spinner."""
        if self._task_id is None:
            return
        if result.succeeded:
            description = f"[green]✓ {self._label}[/]"
        else:
            description = f"[red]✗ {self._label}[/]"
        self._progress.update(self._task_id, description=description, completed=True)
        self._progress.console.print(description)


async def ask(question: str, *, default: str | None = None) -> str:
    """Prompt for one line without blocking the event loop.

    Log output is suppressed while waiting so the prompt renders cleanly.
    Raises ``EOFError`` when stdin is closed.
    """
    root_logger = logging.getLogger()
    prev_level = root_logger.level
    root_logger.setLevel(logging.CRITICAL)

    loop = asyncio.get_running_loop()
    try:
        if default is None:
            return await loop.run_in_executor(None, lambda: Prompt.ask(question, console=console))
        return await loop.run_in_executor(
            None, lambda: Prompt.ask(question, default=default, console=console)
        )
    finally:
        root_logger.setLevel(prev_level)


async def read_block(terminator: str = "EOF") -> str:
    """Read pasted lines until one equals ``terminator`` (or stdin closes)."""
    loop = asyncio.get_running_loop()
    lines: list[str] = []
    while True:
        try:
            line = await loop.run_in_executor(None, input)
        except EOFError:
            break
        if line.strip() == terminator:
            break
        lines.append(line)
    return "\n".join(lines)
