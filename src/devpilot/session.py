"""Interactive terminal session: edit code, analyze, browse history."""

from __future__ import annotations

import logging
from pathlib import Path

from rich.console import Group
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from devpilot.analysis.pipeline import AnalysisPipeline
from devpilot.errors import ConfigurationError, ExtractionError, HistoryEntryNotFound
from devpilot.output.html import extraction_error_message, render_history_entry
from devpilot.output.terminal import html_to_console
from devpilot.schemas.analysis import ANALYSIS_TYPES, AnalysisResult
from devpilot.schemas.config import Settings
from devpilot.shared.progress import AnalysisProgress, ask, console, read_block

logger = logging.getLogger(__name__)

SAMPLE_CODE = """\
// Paste any code here! Try Python, Java, JavaScript, etc.
function factorial(n) {
  if (n < 0) {
    return "Number must be non-negative.";
  }
  if (n === 0 || n === 1) {
    return 1;
  }
  return n * factorial(n - 1);
}"""

HELP_TEXT = """\
[bold]Commands[/]
  [cyan]code[/]             paste new code (finish with a line containing only EOF)
  [cyan]load[/] PATH        load code from a file
  [cyan]view[/]             show the current code
  [cyan]type[/] [N|NAME]    choose the analysis type
  [cyan]model[/] [N|ID]     choose a preset model by number, or any model id
  [cyan]analyze[/]          send the current code for analysis
  [cyan]history[/]          list this session's analyses
  [cyan]show[/] N           show history entry N in full
  [cyan]save[/] N PATH      export history entry N as an HTML file
  [cyan]help[/]             show this help
  [cyan]quit[/]             leave the session"""


def print_result(result: AnalysisResult) -> None:
    """Render an AnalysisResult to the console."""
    if result.succeeded:
        console.print(Panel(
            Group(*html_to_console(result.extracted_content)),
            title="[bold]AI Feedback[/]",
            border_style="green",
        ))
        return

    if isinstance(result.error, ConfigurationError):
        console.print(f"[red]Configuration Error:[/] {escape(result.error_detail or '')}")
        return

    if isinstance(result.error, ExtractionError):
        message = extraction_error_message(result.error.reason)
        console.print(f"[red]Error:[/] {escape(message)}")
    else:
        console.print(f"[red]API Error:[/] {escape(result.error_detail or '')}")
    if result.raw_response_body:
        console.print(Panel(
            Text(result.raw_response_body),
            title="[dim]Raw response[/]",
            border_style="red",
        ))


def print_history(pipeline: AnalysisPipeline) -> None:
    entries = pipeline.get_history()
    if not entries:
        console.print(Panel(
            "[italic yellow]No history available yet.",
            title="[bold]History",
            border_style="yellow",
        ))
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("No.", style="dim", width=5, justify="center")
    table.add_column("Time", style="green")
    table.add_column("Type", style="cyan")
    table.add_column("Model", style="yellow")
    table.add_column("Code")
    table.add_column("Status", justify="center")

    for i, entry in enumerate(entries, 1):
        snippet = entry.code[:50].replace("\n", " ")
        table.add_row(
            str(i),
            f"{entry.timestamp:%Y-%m-%d %H:%M:%S}",
            entry.analysis_type,
            entry.model,
            f"{snippet}...",
            "[red]error[/]" if entry.error else "[green]ok[/]",
        )

    console.print(Panel(table, title="[bold cyan]Chat History", border_style="cyan"))


def print_entry(pipeline: AnalysisPipeline, position: int) -> None:
    """Detail view of the 1-based history ``position``."""
    entry = pipeline.get_history_entry(position - 1)
    console.print(
        f"[bold]History Entry {position}[/]  "
        f"Type: {escape(entry.analysis_type)} | Model: {escape(entry.model)} | "
        f"Time: {entry.timestamp:%Y-%m-%d %H:%M:%S}"
    )
    console.print(Panel(Text(entry.code), title="Input Code", border_style="dim"))
    console.print(Panel(Group(*html_to_console(entry.response)), title="AI Response", border_style="cyan"))


class Session:
    """State of one interactive session: current code, type and model."""

    def __init__(self, pipeline: AnalysisPipeline, settings: Settings) -> None:
        self.pipeline = pipeline
        self.settings = settings
        self.code = SAMPLE_CODE
        self.analysis_type = settings.default_analysis_type
        self.model = settings.default_model

    async def run(self) -> None:
        console.print(HELP_TEXT)
        self._print_status()
        while True:
            try:
                line = (await ask("\n[bold]devpilot[/]")).strip()
            except (EOFError, KeyboardInterrupt):
                console.print()
                return
            if not line:
                continue
            command, _, arg = line.partition(" ")
            if command in ("quit", "exit", "q"):
                return
            try:
                await self.dispatch(command.lower(), arg.strip())
            except HistoryEntryNotFound as exc:
                console.print(f"[red]{escape(str(exc))}[/]")

    async def dispatch(self, command: str, arg: str) -> None:
        if command == "help":
            console.print(HELP_TEXT)
        elif command == "code":
            console.print("[dim]Paste your code, then a line containing only EOF.[/]")
            self.code = await read_block()
        elif command == "load":
            self.load(arg)
        elif command == "view":
            console.print(Panel(Text(self.code), title="Your Code", border_style="dim"))
        elif command == "type":
            self.choose_type(arg)
        elif command == "model":
            self.choose_model(arg)
        elif command in ("analyze", "a"):
            await self.analyze()
        elif command in ("history", "h"):
            print_history(self.pipeline)
        elif command == "show":
            position = _parse_position(arg)
            if position is not None:
                print_entry(self.pipeline, position)
        elif command == "save":
            self.save(arg)
        else:
            console.print(f"[yellow]Unknown command:[/] {escape(command)} (type [cyan]help[/])")

    def load(self, arg: str) -> None:
        path = Path(arg).expanduser()
        if not arg or not path.is_file():
            console.print(f"[red]No such file:[/] {escape(arg or '(none)')}")
            return
        try:
            code = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            console.print(f"[red]Could not read[/] {escape(str(path))}: {escape(str(exc))}")
            return
        self.code = code
        console.print(f"[green]Loaded[/] {escape(str(path))} ({len(self.code)} chars)")

    def choose_type(self, arg: str) -> None:
        if not arg:
            for i, name in enumerate(ANALYSIS_TYPES, 1):
                marker = "*" if name == self.analysis_type else " "
                console.print(f" {marker} {i}. {name}")
            return
        if arg.isdigit() and 1 <= int(arg) <= len(ANALYSIS_TYPES):
            self.analysis_type = ANALYSIS_TYPES[int(arg) - 1]
        elif arg in ANALYSIS_TYPES:
            self.analysis_type = arg
        else:
            console.print(f"[red]Unknown analysis type:[/] {escape(arg)}")
            return
        self._print_status()

    def choose_model(self, arg: str) -> None:
        models = self.settings.models
        if not arg:
            for i, name in enumerate(models, 1):
                marker = "*" if name == self.model else " "
                console.print(f" {marker} {i}. {name}")
            return
        if arg.isdigit() and 1 <= int(arg) <= len(models):
            self.model = models[int(arg) - 1]
        else:
            self.model = arg
        self._print_status()

    async def analyze(self) -> AnalysisResult:
        with AnalysisProgress() as progress:
            progress.start(f"{self.analysis_type} ({self.model})")
            result = await self.pipeline.submit(
                self.code, self.analysis_type, self.model, on_complete=progress.complete,
            )
        print_result(result)
        return result

    def save(self, arg: str) -> None:
        position_arg, _, path_arg = arg.partition(" ")
        position = _parse_position(position_arg)
        if position is None:
            return
        if not path_arg.strip():
            console.print("[red]Usage:[/] save N PATH")
            return
        entry = self.pipeline.get_history_entry(position - 1)
        path = Path(path_arg.strip()).expanduser()
        try:
            path.write_text(render_history_entry(entry, position=position))
        except OSError as exc:
            console.print(f"[red]Could not write[/] {escape(str(path))}: {escape(str(exc))}")
            return
        console.print(f"[green]History entry {position} written to:[/] {escape(str(path))}")

    def _print_status(self) -> None:
        console.print(
            f"[dim]Analysis type:[/] {escape(self.analysis_type)}  "
            f"[dim]Model:[/] {escape(self.model)}"
        )


def _parse_position(arg: str) -> int | None:
    if not arg.isdigit():
        console.print(f"[red]Expected an entry number, got:[/] {escape(arg or '(none)')}")
        return None
    return int(arg)
