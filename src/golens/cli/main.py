"""GoLens CLI: interface implementation analysis for Go repositories."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, NoReturn, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn

from golens import __version__
from golens.config.settings import AnalysisConfig
from golens.core.errors import GoLensError
from golens.core.graph.model import AnalysisResult, StructInfo

if TYPE_CHECKING:
    from golens.core.ingestion.pipeline import PipelineResult

console = Console()

RESULT_DIR = ".golens"
RESULT_FILE = "analysis.json"

app = typer.Typer(
    name="golens",
    help="GoLens: find which Go structs implement which interfaces.",
    no_args_is_help=True,
)

def _version_callback(value: bool) -> None:
    """Print the version and exit."""
    if value:
        console.print(f"GoLens v{__version__}")
        raise typer.Exit()

@app.callback()
def main(
    version: Optional[bool] = typer.Option(  # noqa: N803
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Log analysis details to stderr."),
) -> None:
    """GoLens: find which Go structs implement which interfaces."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        )

def _fail(message: str) -> NoReturn:
    console.print(f"[red]Error:[/red] {escape(message)}")
    raise typer.Exit(code=1)

def _run_analysis(repo_path: Path, config: AnalysisConfig) -> tuple[AnalysisResult, PipelineResult]:
    from golens.core.ingestion.pipeline import run_pipeline

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("Starting...", total=None)

        def on_progress(phase: str, pct: float) -> None:
            progress.update(task, description=f"{phase} ({pct:.0%})")

        return run_pipeline(repo_path, config, progress_callback=on_progress)

def _obtain_result(path: Path, input_file: Path | None) -> AnalysisResult:
    """Load a saved result when *input_file* is given, otherwise analyse *path*."""
    from golens.core.portable import load_result

    try:
        if input_file is not None:
            if not input_file.is_file():
                _fail(f"{input_file} is not a file.")
            return load_result(input_file)

        repo_path = path.resolve()
        if not repo_path.is_dir():
            _fail(f"{repo_path} is not a directory.")
        result, _ = _run_analysis(repo_path, AnalysisConfig())
        return result
    except GoLensError as exc:
        _fail(str(exc))

def _print_struct(struct: StructInfo) -> None:
    console.print(f"[bold]{escape(struct.name)}[/bold]  {struct.position}")
    if struct.embedded_types:
        console.print(f"  Embeds:      {escape(', '.join(struct.embedded_types))}")
    for decl in struct.implemented_interfaces:
        console.print(f"  Implements:  {escape(decl.name)} ({decl.position})")
    for method in struct.methods:
        params = ", ".join(f"{p.name} {p.type}".strip() for p in method.parameters)
        returns = ", ".join(method.return_types)
        if len(method.return_types) > 1:
            returns = f"({returns})"
        console.print(f"  {escape(method.name)}({escape(params)}) {escape(returns)}".rstrip())
        for decl in method.implemented_from:
            console.print(f"      from {escape(decl.name)} ({decl.position})")

@app.command()
def analyze(
    path: Path = typer.Argument(Path("."), help="Path to the repository to analyse."),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Where to write the result JSON (default: .golens/analysis.json)."
    ),
    tests: bool = typer.Option(False, "--tests", help="Include _test.go files."),
    segments: int = typer.Option(3, "--segments", min=1, help="Path segments kept in positions."),
) -> None:
    """Analyse a repository and write the implementation graph as JSON."""
    from golens.core.portable import dump_result

    repo_path = path.resolve()
    if not repo_path.is_dir():
        _fail(f"{repo_path} is not a directory.")

    console.print(f"[bold]Analysing[/bold] {repo_path}")
    config = AnalysisConfig(include_tests=tests, position_segments=segments)
    try:
        result, summary = _run_analysis(repo_path, config)
    except GoLensError as exc:
        _fail(str(exc))

    if output is None:
        output = repo_path / RESULT_DIR / RESULT_FILE
        output.parent.mkdir(parents=True, exist_ok=True)
    dump_result(result, output)

    console.print()
    console.print("[bold green]Analysis complete.[/bold green]")
    console.print(f"  Files:            {summary.files}")
    console.print(f"  Packages:         {summary.packages}")
    console.print(f"  Interfaces:       {summary.interfaces}")
    console.print(f"  Structs:          {summary.structs}")
    console.print(f"  Implementations:  {summary.implementations}")
    if summary.skipped_packages > 0:
        console.print(f"  [yellow]Skipped packages: {summary.skipped_packages}[/yellow]")
        for diagnostic in summary.diagnostics:
            console.print(f"    {escape(str(diagnostic))}")
    console.print(f"  Duration:         {summary.duration_seconds:.2f}s")
    console.print(f"  Written to:       {output}")

@app.command()
def struct(
    name: str = typer.Argument(..., help="Struct name; a generic [...] suffix is ignored."),
    path: Path = typer.Option(Path("."), "--path", "-p", help="Repository to analyse."),
    input_file: Optional[Path] = typer.Option(None, "--input", "-i", help="Read a saved result instead."),
    as_json: bool = typer.Option(False, "--json", help="Print the struct summary as JSON."),
) -> None:
    """Show a struct's method set and the interfaces it implements."""
    from golens.core.ingestion.symbol_lookup import find_struct
    from golens.core.summary import summarize_struct

    result = _obtain_result(path, input_file)
    found = find_struct(result, name)
    if found is None:
        _fail(f"No struct named {name}.")
    if as_json:
        console.print_json(data=summarize_struct(found))
        return
    _print_struct(found)

@app.command()
def summary(
    path: Path = typer.Option(Path("."), "--path", "-p", help="Repository to analyse."),
    input_file: Optional[Path] = typer.Option(None, "--input", "-i", help="Read a saved result instead."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the summary JSON here."),
) -> None:
    """Print every struct with its interfaces and per-method origins as JSON."""
    from golens.core.summary import summarize_structs

    summaries = summarize_structs(_obtain_result(path, input_file))
    if output is None:
        console.print_json(data=summaries)
        return
    output.write_text(json.dumps(summaries, indent=2) + "\n", encoding="utf-8")
    console.print(f"Wrote {len(summaries)} struct summaries to {output}")

@app.command()
def implementors(
    name: str = typer.Argument(..., help="Interface name."),
    path: Path = typer.Option(Path("."), "--path", "-p", help="Repository to analyse."),
    input_file: Optional[Path] = typer.Option(None, "--input", "-i", help="Read a saved result instead."),
) -> None:
    """List the structs implementing an interface."""
    from golens.core.ingestion.symbol_lookup import find_implementors, find_interface

    result = _obtain_result(path, input_file)
    iface = find_interface(result, name)
    if iface is None:
        _fail(f"No interface named {name}.")
    structs = find_implementors(result, name)
    if not structs:
        console.print(f"No structs implement {escape(iface.name)} ({iface.position}).")
        return
    console.print(
        f"[bold]{len(structs)}[/bold] struct(s) implement {escape(iface.name)} ({iface.position}):"
    )
    for found in structs:
        console.print(f"  {escape(found.name)}  {found.position}")

@app.command()
def verify(
    file: Path = typer.Argument(..., help="Saved result JSON to re-resolve."),
    reset: bool = typer.Option(False, "--reset", help="Drop existing links before resolving."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the re-resolved result here."),
) -> None:
    """Re-resolve a saved result with the portable string matcher."""
    from golens.core.portable import dump_result, load_result, reresolve

    if not file.is_file():
        _fail(f"{file} is not a file.")

    try:
        before = load_result(file)
        after = reresolve(before, reset=reset)
    except GoLensError as exc:
        _fail(str(exc))

    links_before = sum(len(s.implemented_interfaces) for s in before.structs)
    links_after = sum(len(s.implemented_interfaces) for s in after.structs)

    console.print(f"[bold]Verified[/bold] {file}")
    console.print(f"  Interfaces:       {len(after.interfaces)}")
    console.print(f"  Structs:          {len(after.structs)}")
    console.print(f"  Links before:     {links_before}")
    console.print(f"  Links after:      {links_after}")

    if output is not None:
        dump_result(after, output)
        console.print(f"  Written to:       {output}")
