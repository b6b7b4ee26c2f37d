"""
Semantic validation of a tiered token graph.

- Reference cycles in the base-scope graph (CycleError)
- Hierarchy inversions: a lower tier depending on a higher one (HierarchyInversion)
- Tokens no tier pattern recognises (UnknownTier)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .errors import CycleError, ErrorContext
from .graph import TokenGraph
from .ir import Diagnostic, DiagnosticKind, Severity, SourceLocation, Tier

if TYPE_CHECKING:
    from .config import LintConfig

logger = logging.getLogger(__name__)

WHITE, GRAY, BLACK = 0, 1, 2


def format_path(path: list[str]) -> str:
    return " → ".join(path)


def find_cycles(graph: TokenGraph, nodes: list[int] | None = None) -> list[list[int]]:
    """
    Find reference cycles with a white/gray/black depth-first search.

    Nodes are visited in node order and neighbours in ascending order, so the
    result is deterministic. Every back edge yields one closed path
    ``[n0, n1, ..., n0]`` without repeated inner nodes; rotations of an
    already reported cycle are skipped.

    Args:
        graph: Token graph
        nodes: Restrict the search to the subgraph induced by these nodes
            (default: every node)

    Returns:
        List of closed node paths
    """
    allowed = set(range(len(graph))) if nodes is None else set(nodes)
    color = [WHITE] * len(graph)
    cycles: list[list[int]] = []
    seen: set[tuple[int, ...]] = set()

    def neighbours(node: int):
        return iter(sorted(n for n in graph.edges[node] if n in allowed))

    for root in sorted(allowed):
        if color[root] != WHITE:
            continue

        path: list[int] = [root]
        position = {root: 0}
        stack = [neighbours(root)]
        color[root] = GRAY

        while stack:
            node = path[-1]
            nxt = next(stack[-1], None)
            if nxt is None:
                color[node] = BLACK
                stack.pop()
                path.pop()
                del position[node]
                continue

            if color[nxt] == WHITE:
                color[nxt] = GRAY
                position[nxt] = len(path)
                path.append(nxt)
                stack.append(neighbours(nxt))
            elif color[nxt] == GRAY:
                cycle = path[position[nxt] :]
                # Normalize rotation so [a, b] and [b, a] count once
                start = cycle.index(min(cycle))
                key = tuple(cycle[start:] + cycle[:start])
                if key not in seen:
                    seen.add(key)
                    cycles.append(cycle + [nxt])

    return cycles


def detect_cycles(graph: TokenGraph) -> list[Diagnostic]:
    """
    Report every reference cycle in the base-scope graph as a CycleError.

    Only nodes declared in the base scope and the edges between them are
    searched. Loops formed through override declarations surface when the
    override scope is resolved.
    """
    diagnostics = []
    for cycle in find_cycles(graph, graph.base_nodes()):
        names = [graph.tokens[n].identifier for n in cycle]
        start = graph.tokens[cycle[0]]
        loc = start.location
        error = CycleError(
            f"Reference cycle detected: {format_path(names)}",
            ErrorContext(file=loc.file, line=loc.line, column=loc.column, scope=loc.scope),
            path=names,
        )
        diagnostics.append(
            Diagnostic.from_error(
                error, DiagnosticKind.CYCLE, location=loc, identifier=start.identifier
            )
        )
    return diagnostics


def _inversion(consumer: Tier, dependency: Tier) -> bool:
    if consumer.rank is None or dependency.rank is None:
        return False
    return consumer.rank < dependency.rank


def check_hierarchy(
    graph: TokenGraph, severity: Severity = Severity.WARNING
) -> list[Diagnostic]:
    """
    Report every edge where a lower tier references a higher tier.

    Edges of the base graph and references made by override declarations are
    both checked. ``unknown`` tokens are exempt.
    """
    diagnostics: list[Diagnostic] = []
    reported: set[tuple[str, int, str, str]] = set()

    def check(consumer_id: str, dep_id: str, location: SourceLocation) -> None:
        consumer = graph.tokens[graph.index[consumer_id]]
        dependency = graph.tokens[graph.index[dep_id]]
        if not _inversion(consumer.tier, dependency.tier):
            return
        key = (location.file, location.line, consumer_id, dep_id)
        if key in reported:
            return
        reported.add(key)
        diagnostics.append(
            Diagnostic(
                severity=severity,
                kind=DiagnosticKind.HIERARCHY_INVERSION,
                location=location,
                identifier=consumer_id,
                message=(
                    f"{consumer.tier} token --{consumer_id} references "
                    f"{dependency.tier} token --{dep_id}; references must point "
                    f"to the same or a lower tier"
                ),
            )
        )

    for node, token in enumerate(graph.tokens):
        for dep in sorted(graph.edges[node]):
            check(token.identifier, graph.tokens[dep].identifier, token.location)

    for node in sorted(graph.overrides):
        consumer_id = graph.tokens[node].identifier
        for decl in graph.overrides[node]:
            for ref in decl.references:
                if ref.identifier in graph.index:
                    check(consumer_id, ref.identifier, decl.location)

    return diagnostics


def check_unknown_tiers(graph: TokenGraph) -> list[Diagnostic]:
    """Warn once per token that no tier pattern or annotation classified."""
    return [
        Diagnostic(
            severity=Severity.WARNING,
            kind=DiagnosticKind.UNKNOWN_TIER,
            location=token.location,
            identifier=token.identifier,
            message=(
                f"Token --{token.identifier} matches no tier pattern; "
                f"rename it or annotate it with /* @tier <name> */"
            ),
        )
        for token in graph.tokens
        if token.tier == Tier.UNKNOWN
    ]


def validate_graph(graph: TokenGraph, config: LintConfig | None = None) -> list[Diagnostic]:
    """
    Run all graph checks.

    Args:
        graph: Classified token graph
        config: Controls hierarchy severity and unknown-tier reporting

    Returns:
        Diagnostics from cycle, hierarchy and unknown-tier checks
    """
    severity = config.hierarchy_severity if config else Severity.WARNING
    report_unknown = config.report_unknown_tier if config else True

    diagnostics = detect_cycles(graph)
    diagnostics.extend(check_hierarchy(graph, severity))
    if report_unknown:
        diagnostics.extend(check_unknown_tiers(graph))

    logger.debug("Validation produced %d diagnostics", len(diagnostics))
    return diagnostics
