"""
Reference graph construction.

Nodes are stored densely: ``tokens[i]`` is node ``i``, ``index`` maps an
identifier to its node number and ``edges[i]`` holds the node numbers that
node ``i`` references. Each identifier is one node, represented by its
base-scope declaration (or, failing that, its first declaration); the
declarations of other scopes are kept as override candidates.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .errors import make_unresolved_error
from .ir import (
    Declaration,
    Diagnostic,
    DiagnosticKind,
    Scope,
    Token,
    Usage,
    VarReference,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_SELECTORS = (":root",)


def split_selector_list(selector: str) -> list[str]:
    """Split a selector list on top-level commas."""
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    for ch in selector:
        if ch in "([":
            depth += 1
        elif ch in ")]":
            depth = max(0, depth - 1)
        elif ch == "," and depth == 0:
            parts.append("".join(current).strip())
            current = []
            continue
        current.append(ch)
    parts.append("".join(current).strip())
    return [p for p in parts if p]


def is_base_selector(selector: str, base_selectors: tuple[str, ...] | list[str]) -> bool:
    """True if any selector of the list is one of the base selectors."""
    return any(part in base_selectors for part in split_selector_list(selector))


@dataclass
class TokenGraph:
    """
    Dense reference graph over token identifiers.

    Attributes:
        tokens: Node tokens, indexed by node number
        index: Identifier -> node number
        edges: Node number -> set of referenced node numbers
        scopes: Merged scopes in first-appearance order, base scope first
        overrides: Node number -> declarations from non-node scopes
        usages: Ordinary property usages (not nodes)
    """

    tokens: list[Token] = field(default_factory=list)
    index: dict[str, int] = field(default_factory=dict)
    edges: list[set[int]] = field(default_factory=list)
    scopes: list[Scope] = field(default_factory=list)
    overrides: dict[int, list[Declaration]] = field(default_factory=dict)
    usages: list[Usage] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.tokens)

    def __contains__(self, identifier: str) -> bool:
        return identifier in self.index

    def add_node(self, token: Token) -> int:
        node = len(self.tokens)
        self.tokens.append(token)
        self.index[token.identifier] = node
        self.edges.append(set())
        return node

    def token(self, identifier: str) -> Token | None:
        node = self.index.get(identifier)
        return None if node is None else self.tokens[node]

    def dependencies(self, identifier: str) -> list[str]:
        """Identifiers referenced by a token, in node order."""
        node = self.index[identifier]
        return [self.tokens[j].identifier for j in sorted(self.edges[node])]

    def dependents(self, identifier: str) -> list[str]:
        """Identifiers whose node references this token, in node order."""
        target = self.index[identifier]
        return [self.tokens[i].identifier for i, deps in enumerate(self.edges) if target in deps]

    def edge_count(self) -> int:
        return sum(len(deps) for deps in self.edges)

    @property
    def base_scope(self) -> Scope | None:
        for scope in self.scopes:
            if scope.is_base:
                return scope
        return None

    def base_nodes(self) -> list[int]:
        """Node numbers represented by a base-scope declaration."""
        base = self.base_scope
        if base is None:
            return []
        return sorted(self.index[identifier] for identifier in base.declarations)

    @property
    def override_scopes(self) -> list[Scope]:
        return [scope for scope in self.scopes if not scope.is_base]

    def scope(self, selector: str) -> Scope | None:
        for scope in self.scopes:
            if scope.selector == selector:
                return scope
        return None


def _merge_scopes(
    declarations: list[Declaration], base_selectors: tuple[str, ...] | list[str]
) -> list[Scope]:
    """Group declarations by scope; a later declaration replaces an earlier one."""
    base_label = base_selectors[0]
    grouped: dict[str, dict[str, Declaration]] = {}
    is_base: dict[str, bool] = {}

    for decl in declarations:
        base = is_base_selector(decl.scope, base_selectors)
        key = base_label if base else decl.scope
        grouped.setdefault(key, {})[decl.identifier] = decl
        is_base[key] = base

    scopes = [
        Scope(selector=selector, is_base=is_base[selector], declarations=decls)
        for selector, decls in grouped.items()
    ]
    # Base scope first, the rest in first-appearance order
    return sorted(scopes, key=lambda s: not s.is_base)


def _unresolved(
    references: list[VarReference], declared: dict[str, int], where: Declaration | Usage
) -> list[Diagnostic]:
    diagnostics = []
    for ref in references:
        if ref.identifier in declared or ref.has_fallback:
            continue
        loc = where.location
        error = make_unresolved_error(
            ref.identifier, file=loc.file, line=loc.line, column=loc.column, scope=loc.scope
        )
        diagnostics.append(
            Diagnostic.from_error(error, DiagnosticKind.UNRESOLVED_REFERENCE, location=loc)
        )
    return diagnostics


def build_graph(
    declarations: list[Declaration],
    usages: list[Usage] | None = None,
    base_selectors: tuple[str, ...] | list[str] = DEFAULT_BASE_SELECTORS,
) -> tuple[TokenGraph, list[Diagnostic]]:
    """
    Build the reference graph from scanned declarations.

    Args:
        declarations: Declarations in source order (all files, all scopes)
        usages: Ordinary property usages whose references are checked too
        base_selectors: Selectors forming the base scope

    Returns:
        Tuple of (graph, diagnostics) where diagnostics holds one
        UnresolvedReferenceError per var() occurrence naming an identifier
        declared nowhere and carrying no fallback.
    """
    usages = usages or []
    graph = TokenGraph(scopes=_merge_scopes(declarations, base_selectors), usages=list(usages))

    for scope in graph.scopes:
        for identifier, decl in scope.declarations.items():
            if identifier in graph.index:
                graph.overrides.setdefault(graph.index[identifier], []).append(decl)
            else:
                graph.add_node(Token.from_declaration(decl))

    for node, token in enumerate(graph.tokens):
        for ref in token.references:
            target = graph.index.get(ref.identifier)
            if target is not None:
                graph.edges[node].add(target)

    diagnostics: list[Diagnostic] = []
    for decl in declarations:
        diagnostics.extend(_unresolved(decl.references, graph.index, decl))
    for usage in usages:
        diagnostics.extend(_unresolved(usage.references, graph.index, usage))

    logger.debug(
        "Built graph: %d nodes, %d edges, %d scopes, %d unresolved references",
        len(graph),
        graph.edge_count(),
        len(graph.scopes),
        len(diagnostics),
    )
    return graph, diagnostics
