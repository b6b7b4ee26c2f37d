"""
Lint pipeline: scan -> graph -> classify -> validate.

All inputs of one run are treated as one stylesheet in input order, so tokens
declared in one file may be used in another. ``isolated`` analyses every file
on its own instead. Scanning (or isolated analysis) of several files can run
on a thread pool; results are always merged in input order.
"""

from __future__ import annotations

import logging
import sys
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, TypeVar

from pydantic import BaseModel, Field

from .config import LintConfig
from .graph import TokenGraph, build_graph
from .ir import Diagnostic, ScanResult, Severity, sort_diagnostics
from .scanner import scan
from .tiers import TierClassifier, classify_graph
from .validator import validate_graph

logger = logging.getLogger(__name__)

STDIN_LABEL = "<stdin>"

T = TypeVar("T")
R = TypeVar("R")


@dataclass
class SourceInput:
    """CSS text plus the label used for it in diagnostics."""

    label: str
    text: str


@dataclass
class Analysis:
    """Everything one pipeline run produced."""

    scans: list[ScanResult]
    graph: TokenGraph
    diagnostics: list[Diagnostic] = field(default_factory=list)


class LintReport(BaseModel):
    """Ordered diagnostics of a lint run plus summary counts."""

    files: list[str] = Field(default_factory=list)
    token_count: int = 0
    diagnostics: list[Diagnostic] = Field(default_factory=list)

    @property
    def error_count(self) -> int:
        return sum(1 for d in self.diagnostics if d.severity == Severity.ERROR)

    @property
    def warning_count(self) -> int:
        return sum(1 for d in self.diagnostics if d.severity == Severity.WARNING)

    @property
    def has_errors(self) -> bool:
        return self.error_count > 0

    @property
    def exit_code(self) -> int:
        return 1 if self.has_errors else 0


def read_sources(paths: list[str]) -> list[SourceInput]:
    """
    Read CSS inputs; ``-`` reads standard input.

    Raises:
        FileNotFoundError: If a path does not exist
        UnicodeDecodeError: If a file is not valid UTF-8
    """
    sources = []
    for raw in paths:
        if raw == "-":
            sources.append(SourceInput(STDIN_LABEL, sys.stdin.read()))
            continue
        path = Path(raw)
        sources.append(SourceInput(str(path), path.read_text(encoding="utf-8")))
    return sources


def _run_pool(func: Callable[[T], R], items: list[T], jobs: int) -> list[R]:
    """Apply func to each item, on a thread pool when jobs > 1; keeps input order."""
    if jobs <= 1 or len(items) <= 1:
        return [func(item) for item in items]

    results: list[R | None] = [None] * len(items)
    with ThreadPoolExecutor(max_workers=min(jobs, len(items))) as executor:
        futures = {executor.submit(func, item): i for i, item in enumerate(items)}
        for future in as_completed(futures):
            results[futures[future]] = future.result()
    return results  # type: ignore[return-value]


def scan_sources(sources: list[SourceInput], jobs: int = 1) -> list[ScanResult]:
    """Scan each source independently."""
    return _run_pool(lambda s: scan(s.text, s.label), sources, jobs)


def analyze_scans(scans: list[ScanResult], config: LintConfig) -> Analysis:
    """Build, classify and validate the graph for already-scanned sources."""
    declarations = [decl for result in scans for decl in result.declarations]
    usages = [usage for result in scans for usage in result.usages]

    graph, graph_diagnostics = build_graph(declarations, usages, config.base_selectors)
    classify_graph(graph, TierClassifier.from_config(config))

    diagnostics = [d for result in scans for d in result.diagnostics]
    diagnostics.extend(graph_diagnostics)
    diagnostics.extend(validate_graph(graph, config))

    return Analysis(scans=scans, graph=graph, diagnostics=sort_diagnostics(diagnostics))


def analyze(sources: list[SourceInput], config: LintConfig, jobs: int = 1) -> Analysis:
    """Run the full pipeline over sources treated as one stylesheet."""
    scans = scan_sources(sources, jobs)
    return analyze_scans(scans, config)


def lint_sources(
    sources: list[SourceInput],
    config: LintConfig,
    jobs: int = 1,
    isolated: bool = False,
) -> LintReport:
    """
    Lint CSS sources and collect every diagnostic.

    Args:
        sources: Inputs in cascade order
        config: Lint configuration
        jobs: Worker threads for per-file work
        isolated: Analyse each file on its own (no cross-file references)

    Returns:
        LintReport with diagnostics sorted by file, line, column and kind
    """
    if isolated:
        analyses = _run_pool(lambda s: analyze([s], config), sources, jobs)
        diagnostics = [d for a in analyses for d in a.diagnostics]
        token_count = sum(len(a.graph) for a in analyses)
    else:
        analysis = analyze(sources, config, jobs)
        diagnostics = analysis.diagnostics
        token_count = len(analysis.graph)

    report = LintReport(
        files=[s.label for s in sources],
        token_count=token_count,
        diagnostics=sort_diagnostics(diagnostics),
    )
    logger.info(
        "Linted %d file(s), %d tokens: %d errors, %d warnings",
        len(sources),
        report.token_count,
        report.error_count,
        report.warning_count,
    )
    return report


def lint_text(text: str, config: LintConfig | None = None, label: str = STDIN_LABEL) -> LintReport:
    """Convenience wrapper: lint a single CSS string."""
    return lint_sources([SourceInput(label, text)], config or LintConfig())
