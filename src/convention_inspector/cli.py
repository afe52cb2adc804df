"""Command-line entry point for the convention inspector.

Commands
--------
* ``check ROOT``               -- scan a source tree and report problems
* ``suggest ROOT CLASS_NAME``  -- show the identifier suggestion for one type

``check`` exits with 1 when problems were found and 2 when the scan was
cancelled (e.g. ``--timeout`` elapsed).
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from src.convention_inspector.services.cancellation import CancellationToken
from src.convention_inspector.services.engine import IdentifierEngine
from src.convention_inspector.services.project_scanner import ProjectScanner
from src.shared.config import InspectorConfig, load_inspector_config
from src.shared.constants import INSPECTOR_SERVICE_NAME, VERSION
from src.shared.errors import InspectorError
from src.shared.logging import setup_logging
from src.shared.models.inspection import (
    ProblemSeverity,
    QueryStatus,
    ScanReport,
    SuggestionResult,
)

app = typer.Typer(
    name=INSPECTOR_SERVICE_NAME,
    help="Check Java sources for message-identifier and documentation conventions.",
    no_args_is_help=True,
)

_console = Console()

EXIT_PROBLEMS = 1
EXIT_CANCELLED = 2


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"{INSPECTOR_SERVICE_NAME} {VERSION}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None, "--version", callback=_version_callback, is_eager=True,
        help="Show the version and exit.",
    ),
) -> None:
    """Convention inspector."""


def _load_config(config_path: Optional[Path]) -> InspectorConfig:
    try:
        config = load_inspector_config(config_path)
    except InspectorError as exc:
        _console.print(f"[red]Error:[/red] {escape(exc.detail)}")
        raise typer.Exit(code=EXIT_PROBLEMS) from exc
    setup_logging(INSPECTOR_SERVICE_NAME, config.log_level, logger_name="src")
    return config


# ---------------------------------------------------------------------------
# check
# ---------------------------------------------------------------------------


@app.command()
def check(
    root: Path = typer.Argument(..., help="Root directory of the Java sources."),
    only: Optional[List[Path]] = typer.Option(
        None, "--only", help="Only check entities declared in these files (repeatable)."
    ),
    config_path: Optional[Path] = typer.Option(None, "--config", help="YAML config file."),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", min=0.001, help="Cancel the whole scan after this many seconds."
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the report as JSON."),
) -> None:
    """Scan ROOT and report convention problems."""
    config = _load_config(config_path)
    signal = CancellationToken.with_timeout(timeout) if timeout is not None else None

    try:
        report = ProjectScanner(config).scan(root, only=only or None, signal=signal)
    except InspectorError as exc:
        _console.print(f"[red]Error:[/red] {escape(exc.detail)}")
        raise typer.Exit(code=EXIT_PROBLEMS) from exc

    if as_json:
        typer.echo(json.dumps(report.model_dump(mode="json"), indent=2))
    else:
        _print_report(report)

    if report.status == QueryStatus.CANCELLED:
        raise typer.Exit(code=EXIT_CANCELLED)
    if report.has_problems:
        raise typer.Exit(code=EXIT_PROBLEMS)


def _print_report(report: ScanReport) -> None:
    if report.problems:
        table = Table(title="Convention Problems", show_header=True, header_style="bold magenta")
        table.add_column("Location", style="cyan")
        table.add_column("Rule")
        table.add_column("Element")
        table.add_column("Problem")
        table.add_column("Fix")
        for problem in report.problems:
            style = "yellow" if problem.severity == ProblemSeverity.WARNING else "dim"
            location = f"{problem.file_path or '?'}:{problem.line}"
            if problem.has_suggestion:
                fix = f"{problem.suggested_value} (from {problem.suggestion_source})"
            else:
                fix = problem.template or ""
            table.add_row(
                location, f"[{style}]{problem.rule.value}[/{style}]",
                problem.element_name, problem.description, fix,
            )
        _console.print(table)

    for skipped in report.files_skipped:
        _console.print(f"[yellow]Skipped unparseable file:[/yellow] {skipped}")
    if report.status == QueryStatus.CANCELLED:
        _console.print("[red]Scan cancelled; results are incomplete.[/red]")

    _console.print(
        f"{report.files_scanned} files, {report.entities_checked} entities checked, "
        f"{len(report.problems)} problems"
    )


# ---------------------------------------------------------------------------
# suggest
# ---------------------------------------------------------------------------


@app.command()
def suggest(
    root: Path = typer.Argument(..., help="Root directory of the Java sources."),
    class_name: str = typer.Argument(..., help="Simple or qualified name of the type."),
    config_path: Optional[Path] = typer.Option(None, "--config", help="YAML config file."),
) -> None:
    """Show the identifier suggestion for CLASS_NAME."""
    config = _load_config(config_path)
    try:
        index, _skipped = ProjectScanner(config).build_index(root)
    except InspectorError as exc:
        _console.print(f"[red]Error:[/red] {escape(exc.detail)}")
        raise typer.Exit(code=EXIT_PROBLEMS) from exc

    entity = index.find_entity(class_name)
    if entity is None:
        _console.print(f"[red]Error:[/red] type '{escape(class_name)}' not found or ambiguous")
        raise typer.Exit(code=EXIT_PROBLEMS)

    engine = IdentifierEngine.for_index(index, config)
    roles = engine.classify(entity)
    _console.print(
        f"[bold]{entity.qualified_name}[/bold] "
        f"handler={roles.is_web_handler} "
        f"service_interface={roles.is_service_interface} "
        f"service_impl={roles.is_service_implementation}"
    )

    if roles.is_web_handler:
        for method in entity.methods:
            if engine.classifier.is_api_method(method):
                _print_suggestion(
                    f"{entity.name}#{method.name}",
                    engine.suggest_identifiers_used_by(method),
                    engine.generate_identifier_template(method),
                )
    else:
        _print_suggestion(
            entity.name,
            engine.suggest_identifiers_for(entity),
            engine.generate_class_identifier_template(entity),
        )


def _print_suggestion(label: str, result: SuggestionResult, template: str) -> None:
    if not result.is_ok:
        _console.print(f"{label}: [red]{result.status.value}[/red] {escape(result.detail or '')}")
        return
    if not result.suggestions:
        _console.print(f"{label}: no existing identifier; template {template}")
        return
    for source, identifier in result.suggestions.items():
        _console.print(f"{label}: {identifier} [dim](from {source})[/dim]")


if __name__ == "__main__":
    app()
