"""Typer CLI: ``devpilot analyze``, ``session``, ``models`` and ``validate`` commands."""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape

from devpilot.config import API_KEY_ENV_VAR, load_config, resolve_api_key

# Load .env file from the working directory (if it exists)
load_dotenv()

app = typer.Typer(
    name="devpilot",
    help="DevPilot: send code to an LLM for explanation, bug finding, refactoring and more.",
    no_args_is_help=True,
)
console = Console()


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
    )
    # httpx and the OpenAI SDK log every HTTP request at INFO/DEBUG
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)


def _load_settings(config: Path | None) -> "Settings":  # noqa: F821
    try:
        return load_config(config)
    except Exception as exc:
        console.print(f"[red]Config validation failed:[/] {exc}")
        raise typer.Exit(code=1)


def _build_pipeline(settings: "Settings", *, dry_run: bool) -> "AnalysisPipeline":  # noqa: F821
    """Wire a pipeline with a fresh history store; the key is read once here."""
    from devpilot.analysis.pipeline import AnalysisPipeline
    from devpilot.shared.history_store import HistoryStore

    api_key = resolve_api_key()
    if dry_run:
        from devpilot.shared.openrouter_client import DryRunClient
        client = DryRunClient()
        api_key = api_key or "dry-run"
    else:
        from devpilot.shared.openrouter_client import OpenRouterClient
        client = OpenRouterClient(base_url=settings.api_url, timeout=settings.timeout_seconds)
        if not api_key:
            console.print(
                f"[yellow]Warning:[/] {API_KEY_ENV_VAR} is not set; analyses will be refused until it is."
            )

    return AnalysisPipeline(client=client, history=HistoryStore(), api_key=api_key)


@app.command()
def analyze(
    file: Path = typer.Argument(None, help="Source file to analyze (reads stdin when omitted)."),
    analysis_type: str = typer.Option(None, "--type", "-t", help="Analysis type, e.g. \"Find Bugs\"."),
    model: str = typer.Option(None, "--model", "-m", help="Model id (defaults to the first preset)."),
    html_out: Path = typer.Option(None, "--html", "-o", help="Also write the result as an HTML document."),
    config: Path = typer.Option(None, "--config", "-c", help="Path to devpilot.yml"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Run the pipeline with a canned response (no API calls)."),
) -> None:
    """Analyze one piece of code and print the AI feedback."""
    from devpilot.schemas.analysis import ANALYSIS_TYPES
    from devpilot.session import print_result

    _setup_logging(verbose)
    settings = _load_settings(config)

    analysis_type = analysis_type or settings.default_analysis_type
    if analysis_type not in ANALYSIS_TYPES:
        console.print(
            f"[red]Unknown analysis type:[/] {analysis_type}. "
            f"Choose one of: {', '.join(ANALYSIS_TYPES)}"
        )
        raise typer.Exit(code=2)

    if file is not None:
        if not file.is_file():
            console.print(f"[red]No such file:[/] {file}")
            raise typer.Exit(code=1)
        try:
            code = file.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            console.print(f"[red]Could not read[/] {escape(str(file))}: {escape(str(exc))}")
            raise typer.Exit(code=1)
    else:
        code = sys.stdin.read()

    if dry_run:
        console.print("[yellow]DRY-RUN mode, no API calls will be made.[/]\n")

    pipeline = _build_pipeline(settings, dry_run=dry_run)
    result = asyncio.run(_run_once(pipeline, code, analysis_type, model or settings.default_model))

    print_result(result)
    if html_out:
        try:
            html_out.write_text(result.html)
        except OSError as exc:
            console.print(f"[red]Could not write[/] {escape(str(html_out))}: {escape(str(exc))}")
            raise typer.Exit(code=1)
        console.print(f"[green]HTML written to:[/] {html_out}")
    if not result.succeeded:
        raise typer.Exit(code=1)


async def _run_once(
    pipeline: "AnalysisPipeline",  # noqa: F821
    code: str,
    analysis_type: str,
    model: str,
) -> "AnalysisResult":  # noqa: F821
    from devpilot.shared.progress import AnalysisProgress

    try:
        with AnalysisProgress() as progress:
            progress.start(f"{analysis_type} ({model})")
            return await pipeline.submit(code, analysis_type, model, on_complete=progress.complete)
    finally:
        await pipeline.aclose()


async def _run_session(session: "Session") -> None:  # noqa: F821
    try:
        await session.run()
    finally:
        await session.pipeline.aclose()


@app.command()
def session(
    config: Path = typer.Option(None, "--config", "-c", help="Path to devpilot.yml"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Use canned responses (no API calls)."),
) -> None:
    """Start an interactive session with in-memory history."""
    from devpilot.session import Session

    _setup_logging(verbose)
    settings = _load_settings(config)

    if dry_run:
        console.print("[yellow]DRY-RUN mode, no API calls will be made.[/]\n")

    pipeline = _build_pipeline(settings, dry_run=dry_run)
    console.print("[bold]DevPilot[/]: history is kept for this session only.\n")
    asyncio.run(_run_session(Session(pipeline, settings)))


@app.command()
def models(
    config: Path = typer.Option(None, "--config", "-c", help="Path to devpilot.yml"),
) -> None:
    """List the analysis types and preset models."""
    from devpilot.schemas.analysis import ANALYSIS_TYPES

    settings = _load_settings(config)
    console.print("[bold]Analysis types:[/]")
    for name in ANALYSIS_TYPES:
        marker = "*" if name == settings.default_analysis_type else " "
        console.print(f" {marker} {name}")
    console.print("\n[bold]Preset models[/] (any OpenRouter model id is accepted):")
    for name in settings.models:
        marker = "*" if name == settings.default_model else " "
        console.print(f" {marker} {name}")


@app.command()
def validate(
    config: Path = typer.Option(..., "--config", "-c", help="Path to devpilot.yml"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Validate a settings file without running an analysis."""
    _setup_logging(verbose)
    settings = _load_settings(config)

    console.print("[green]Config is valid![/]\n")
    console.print(f"  API URL:        {settings.api_url}")
    console.print(f"  Timeout:        {settings.timeout_seconds:g}s")
    console.print(f"  Default type:   {settings.default_analysis_type}")
    console.print(f"  Default model:  {settings.default_model}")
    console.print(f"  Models:         {len(settings.models)}")
    for m in settings.models:
        console.print(f"    - {m}")
    key_state = "set" if resolve_api_key() else "[yellow]not set[/]"
    console.print(f"  {API_KEY_ENV_VAR}: {key_state}")
