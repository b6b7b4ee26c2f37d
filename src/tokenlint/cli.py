"""
tokenlint CLI.

Commands:
    lint      Report cycles, hierarchy inversions, dangling references, unknown tiers
    resolve   Show the resolved value of every token under every scope
    tokens    List tokens with their tier, scope and dependencies
    export    Write a DTCG tokens.json for one scope
    init      Write a default tokenlint.yaml
"""

from __future__ import annotations

import json
import logging
import os
import platform
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__
from .core.config import LintConfig, resolve_config, write_default_config
from .core.dtcg_export import export_dtcg_file
from .core.errors import ConfigError
from .core.ir import Diagnostic, DiagnosticKind, Severity, Tier
from .core.lint import (
    Analysis,
    LintReport,
    SourceInput,
    analyze,
    lint_sources,
    read_sources,
)
from .core.resolver import ResolvedTable, resolve_themes

logger = logging.getLogger(__name__)

console = Console()
err_console = Console(stderr=True)

LINT_FORMATS = ("human", "json", "vscode")
RESOLVE_FORMATS = ("table", "json")

_SEVERITY_STYLE = {Severity.ERROR: "bold red", Severity.WARNING: "yellow"}


def version_callback(value: bool) -> None:
    """Display version and environment information."""
    if value:
        typer.echo(f"tokenlint version {__version__}")
        typer.echo(f"  Python:        {platform.python_implementation()} {platform.python_version()}")
        typer.echo(f"  Platform:      {platform.system()} {platform.release()}")
        raise typer.Exit()


def _setup_logging(verbose: bool) -> None:
    if verbose:
        level = logging.DEBUG
    else:
        level_name = os.getenv("LOG_LEVEL", "WARNING").upper()
        level = getattr(logging, level_name, logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


# =============================================================================
# Main Application
# =============================================================================

app = typer.Typer(
    help="""tokenlint – design-token linter and theme resolver

Checks CSS custom properties against a primitive → semantic → component
hierarchy and resolves their values under theme override scopes.
""",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and environment information",
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging"),
) -> None:
    """tokenlint CLI main callback for global options."""
    _setup_logging(verbose)


# =============================================================================
# Shared helpers
# =============================================================================


def _load_config(config: Path | None, strict: bool = False) -> LintConfig:
    try:
        cfg = resolve_config(config)
    except ConfigError as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(code=2)
    return cfg.with_strict_hierarchy() if strict else cfg


def _read_inputs(files: list[str]) -> list[SourceInput]:
    try:
        return read_sources(files)
    except (OSError, UnicodeDecodeError) as e:
        typer.echo(f"Cannot read input: {e}", err=True)
        raise typer.Exit(code=2)


def _load_analysis(files: list[str], cfg: LintConfig) -> Analysis:
    return analyze(_read_inputs(files), cfg)


def _parse_errors(analysis: Analysis) -> list[Diagnostic]:
    """ParseError diagnostics of an analysis; the tokens after them are missing."""
    return [d for d in analysis.diagnostics if d.kind == DiagnosticKind.PARSE_ERROR]


def _print_errors(diagnostics: list[Diagnostic]) -> None:
    for diag in diagnostics:
        err_console.print(
            f"[bold red]error[/bold red] {escape(diag.location.format())}: {escape(diag.message)}",
            soft_wrap=True,
        )


def _check_format(format: str, allowed: tuple[str, ...]) -> None:
    if format not in allowed:
        typer.echo(
            f"Unknown format '{format}' (expected one of: {', '.join(allowed)})", err=True
        )
        raise typer.Exit(code=2)


def _print_human_diagnostics(report: LintReport) -> None:
    """Print diagnostics in human-readable format."""
    for diag in report.diagnostics:
        style = _SEVERITY_STYLE[diag.severity]
        scope = f" in {escape(diag.location.scope)}" if diag.location.scope else ""
        console.print(
            f"{escape(diag.location.format())}{scope}: [{style}]{diag.severity}[/{style}] "
            f"{diag.kind}: {escape(diag.message)}",
            soft_wrap=True,
        )

    if not report.diagnostics:
        console.print(f"[green]OK[/green]: {report.token_count} tokens, no problems found.")
    else:
        console.print(
            f"\n{report.error_count} error(s), {report.warning_count} warning(s) "
            f"in {len(report.files)} file(s)"
        )


def _print_vscode_diagnostics(diagnostics: list[Diagnostic]) -> None:
    """
    Print diagnostics in VS Code format: file:line:col: severity: message
    """
    for diag in diagnostics:
        loc = diag.location
        typer.echo(f"{loc.file}:{loc.line}:{loc.column}: {diag.severity}: {diag.message}")


def _print_resolved_table(table: ResolvedTable) -> None:
    grid = Table(title="Resolved tokens", show_lines=False)
    grid.add_column("Token", style="cyan", no_wrap=True)
    for scope in table.scopes:
        grid.add_column(escape(scope))

    for identifier in table.identifiers():
        row = [f"--{identifier}"]
        for scope in table.scopes:
            entry = table.values[scope].get(identifier)
            if entry is None:
                row.append("")
            elif entry.value is None:
                row.append("[red]✗ unresolved[/red]")
            else:
                row.append(escape(entry.value))
        grid.add_row(*row)

    console.print(grid)


# =============================================================================
# Commands
# =============================================================================


@app.command(name="lint")
def lint_command(
    files: list[str] = typer.Argument(..., help="CSS files to lint ('-' for stdin)"),
    config: Path | None = typer.Option(None, "--config", "-c", help="Path to tokenlint.yaml"),
    format: str = typer.Option("human", "--format", "-f", help="Output: human, json or vscode"),
    strict: bool = typer.Option(False, "--strict", help="Report hierarchy inversions as errors"),
    jobs: int = typer.Option(1, "--jobs", "-j", min=1, help="Worker threads for per-file work"),
    isolated: bool = typer.Option(
        False, "--isolated", help="Analyse each file on its own (no cross-file references)"
    ),
) -> None:
    """
    Lint design tokens: cycles, hierarchy inversions, dangling references, unknown tiers.
    """
    _check_format(format, LINT_FORMATS)
    cfg = _load_config(config, strict)
    report = lint_sources(_read_inputs(files), cfg, jobs=jobs, isolated=isolated)

    if format == "json":
        typer.echo(report.model_dump_json(indent=2))
    elif format == "vscode":
        _print_vscode_diagnostics(report.diagnostics)
    else:
        _print_human_diagnostics(report)

    raise typer.Exit(code=report.exit_code)


@app.command(name="resolve")
def resolve_command(
    files: list[str] = typer.Argument(..., help="CSS files ('-' for stdin)"),
    config: Path | None = typer.Option(None, "--config", "-c", help="Path to tokenlint.yaml"),
    scope: list[str] | None = typer.Option(
        None, "--scope", "-s", help="Scope to resolve (repeatable; default: all scopes)"
    ),
    stack: list[str] | None = typer.Option(
        None, "--stack", help="Overlay these scopes in order and resolve the combination"
    ),
    format: str = typer.Option("table", "--format", "-f", help="Output: table or json"),
) -> None:
    """
    Resolve every token to its literal value under each scope.
    """
    _check_format(format, RESOLVE_FORMATS)
    cfg = _load_config(config)
    analysis = _load_analysis(files, cfg)
    parse_errors = _parse_errors(analysis)

    try:
        table = resolve_themes(
            analysis.graph,
            scopes=scope or None,
            stacks=[stack] if stack else None,
        )
    except KeyError as e:
        known = ", ".join(s.selector for s in analysis.graph.scopes) or "none"
        typer.echo(f"Unknown scope {e} (declared scopes: {known})", err=True)
        raise typer.Exit(code=2)

    if format == "json":
        payload = {
            "scopes": {
                label: {identifier: entry.value for identifier, entry in values.items()}
                for label, values in table.values.items()
            },
            "diagnostics": [
                d.model_dump(mode="json") for d in parse_errors + table.diagnostics
            ],
        }
        typer.echo(json.dumps(payload, indent=2))
    else:
        _print_resolved_table(table)
        _print_errors(parse_errors)
        for diag in table.diagnostics:
            err_console.print(
                f"[bold red]error[/bold red] {escape(diag.location.scope or '')}: "
                f"{escape(diag.message)}",
                soft_wrap=True,
            )

    if parse_errors or table.diagnostics:
        raise typer.Exit(code=1)


@app.command(name="tokens")
def tokens_command(
    files: list[str] = typer.Argument(..., help="CSS files ('-' for stdin)"),
    config: Path | None = typer.Option(None, "--config", "-c", help="Path to tokenlint.yaml"),
    tier: Tier | None = typer.Option(None, "--tier", "-t", help="Only show this tier"),
) -> None:
    """
    List tokens with their tier, scope, value and dependency counts.
    """
    cfg = _load_config(config)
    analysis = _load_analysis(files, cfg)
    graph = analysis.graph

    grid = Table(title=f"{len(graph)} tokens")
    grid.add_column("Token", style="cyan", no_wrap=True)
    grid.add_column("Tier")
    grid.add_column("Scope")
    grid.add_column("Value")
    grid.add_column("Deps", justify="right")
    grid.add_column("Overrides", justify="right")

    for node, token in enumerate(graph.tokens):
        if tier is not None and token.tier != tier:
            continue
        grid.add_row(
            f"--{token.identifier}",
            token.tier.value,
            escape(token.location.scope or ""),
            escape(token.value),
            str(len(graph.edges[node])),
            str(len(graph.overrides.get(node, []))),
        )

    console.print(grid)

    parse_errors = _parse_errors(analysis)
    if parse_errors:
        _print_errors(parse_errors)
        raise typer.Exit(code=1)


@app.command(name="export")
def export_command(
    files: list[str] = typer.Argument(..., help="CSS files ('-' for stdin)"),
    output: Path = typer.Option(Path("tokens.json"), "--output", "-o", help="Output file"),
    scope: str | None = typer.Option(None, "--scope", "-s", help="Scope to export (default: base)"),
    config: Path | None = typer.Option(None, "--config", "-c", help="Path to tokenlint.yaml"),
) -> None:
    """
    Export resolved tokens of one scope as a DTCG tokens.json.
    """
    cfg = _load_config(config)
    analysis = _load_analysis(files, cfg)
    graph = analysis.graph

    if scope is None:
        if not graph.scopes:
            typer.echo("No tokens declared; nothing to export", err=True)
            raise typer.Exit(code=1)
        base = graph.base_scope
        scope = base.selector if base is not None else graph.scopes[0].selector

    try:
        table = resolve_themes(graph, scopes=[scope])
    except KeyError:
        typer.echo(f"Unknown scope '{scope}'", err=True)
        raise typer.Exit(code=2)

    path = export_dtcg_file(graph, table, scope, output)
    typer.echo(f"Wrote {path}")

    parse_errors = _parse_errors(analysis)
    if parse_errors:
        _print_errors(parse_errors)
        raise typer.Exit(code=1)


@app.command(name="init")
def init_command(
    directory: Path = typer.Option(Path("."), "--dir", "-d", help="Where to write tokenlint.yaml"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file"),
) -> None:
    """
    Write a default tokenlint.yaml.
    """
    try:
        path = write_default_config(directory, overwrite=force)
    except ConfigError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Created {path}")


# =============================================================================
# Main Entry Point
# =============================================================================


def main() -> None:
    app()


if __name__ == "__main__":
    main()
