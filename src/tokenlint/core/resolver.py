"""
Theme override resolution.

Computes the literal value of every token under every scope. The context of
an override scope is the base scope's declarations overlaid with that
scope's own; explicit stacks overlay several scopes in order, later scopes
winning on conflict. Every ``var()`` in a value is substituted recursively,
falling back to the ``var()`` fallback when the referenced token is missing
from the context or sits on a reference cycle.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict, Field

from .errors import (
    CycleError,
    UnresolvedReferenceError,
    make_unresolved_error,
)
from .graph import TokenGraph
from .ir import Declaration, Diagnostic, DiagnosticKind, SourceLocation
from .scanner import CUSTOM_PROPERTY_RE, find_closing_paren, search_var

logger = logging.getLogger(__name__)

STACK_SEPARATOR = " + "


class ResolvedValue(BaseModel):
    """Resolution outcome for one (scope, identifier) pair."""

    model_config = ConfigDict(frozen=True)

    identifier: str
    scope: str
    value: str | None = Field(default=None, description="Literal value, None if unresolved")
    raw: str = Field(description="Declared value of the winning declaration")
    declared_in: str = Field(description="Scope of the winning declaration")
    error: str | None = None

    @property
    def resolved(self) -> bool:
        return self.value is not None


class ResolvedTable(BaseModel):
    """Resolved values per scope, in resolution order."""

    scopes: list[str] = Field(default_factory=list)
    values: dict[str, dict[str, ResolvedValue]] = Field(default_factory=dict)
    diagnostics: list[Diagnostic] = Field(default_factory=list)

    def get(self, scope: str, identifier: str) -> str | None:
        entry = self.values.get(scope, {}).get(identifier)
        return entry.value if entry else None

    def identifiers(self) -> list[str]:
        """All identifiers in first-seen order across scopes."""
        seen: dict[str, None] = {}
        for scope in self.scopes:
            for identifier in self.values[scope]:
                seen.setdefault(identifier, None)
        return list(seen)


class Resolver:
    """
    Resolves values against one scope context.

    Finished values are memoized per identifier, except values that took a
    fallback because of a cycle: those depend on the resolution chain.
    """

    def __init__(self, context: dict[str, Declaration], scope: str):
        self.context = context
        self.scope = scope
        self._done: dict[str, str] = {}
        self._cycle_fallbacks = 0

    def resolve(self, identifier: str, chain: list[str] | None = None) -> str:
        """
        Resolve a token to a literal value.

        Raises:
            UnresolvedReferenceError: Token missing from the context
            CycleError: Token already on the resolution chain
        """
        chain = chain or []
        if identifier in chain:
            path = chain[chain.index(identifier) :] + [identifier]
            raise CycleError(f"Reference cycle: {' → '.join(path)}", path=path)
        if identifier in self._done:
            return self._done[identifier]

        decl = self.context.get(identifier)
        if decl is None:
            raise make_unresolved_error(identifier, chain=chain, scope=self.scope)

        fallbacks_before = self._cycle_fallbacks
        value = self.substitute(decl.value, chain + [identifier])
        if self._cycle_fallbacks == fallbacks_before:
            self._done[identifier] = value
        return value

    def substitute(self, value: str, chain: list[str]) -> str:
        """Replace every top-level var() call in value by its resolution."""
        parts: list[str] = []
        pos = 0
        while match := search_var(value, pos):
            close = find_closing_paren(value, match.end() - 1)
            if close == -1:
                break
            name, sep, fallback = value[match.end() : close].partition(",")
            name = name.strip()
            if not CUSTOM_PROPERTY_RE.match(name):
                break

            try:
                replacement = self.resolve(name[2:], chain)
            except (UnresolvedReferenceError, CycleError) as e:
                if not sep:
                    raise
                if isinstance(e, CycleError):
                    self._cycle_fallbacks += 1
                replacement = self.substitute(fallback.strip(), chain)

            parts.append(value[pos : match.start()])
            parts.append(replacement)
            pos = close + 1
        parts.append(value[pos:])
        return "".join(parts)


def scope_context(graph: TokenGraph, selectors: list[str]) -> dict[str, Declaration]:
    """Base declarations overlaid with each selector's declarations, in order."""
    context: dict[str, Declaration] = {}
    base = graph.base_scope
    if base is not None:
        context.update(base.declarations)
    for selector in selectors:
        scope = graph.scope(selector)
        if scope is None:
            raise KeyError(selector)
        if not scope.is_base:
            context.update(scope.declarations)
    return context


def resolve_context(
    context: dict[str, Declaration], label: str
) -> tuple[dict[str, ResolvedValue], list[Diagnostic]]:
    """Resolve every identifier of a context."""
    resolver = Resolver(context, label)
    values: dict[str, ResolvedValue] = {}
    diagnostics: list[Diagnostic] = []

    for identifier, decl in context.items():
        error_message = None
        value = None
        try:
            value = resolver.resolve(identifier)
        except UnresolvedReferenceError as e:
            error_message = e.message
        except CycleError as e:
            error_message = (
                f"Cannot resolve --{identifier}: reference cycle {' → '.join(e.path)}"
            )

        if error_message is not None:
            logger.debug("Resolution failed in %s: %s", label, error_message)
            location = SourceLocation(
                file=decl.location.file,
                scope=label,
                line=decl.location.line,
                column=decl.location.column,
            )
            diagnostics.append(
                Diagnostic.from_error(
                    UnresolvedReferenceError(error_message, identifier=identifier),
                    DiagnosticKind.UNRESOLVED_REFERENCE,
                    location=location,
                    identifier=identifier,
                )
            )

        values[identifier] = ResolvedValue(
            identifier=identifier,
            scope=label,
            value=value,
            raw=decl.value,
            declared_in=decl.scope,
            error=error_message,
        )
    return values, diagnostics


def resolve_themes(
    graph: TokenGraph,
    scopes: list[str] | None = None,
    stacks: list[list[str]] | None = None,
) -> ResolvedTable:
    """
    Resolve token values for each scope.

    Args:
        graph: Token graph (tiers are not needed)
        scopes: Scopes to resolve; default is the base scope followed by every
            override scope in declaration order
        stacks: Additional scope combinations, each overlaid in the given order;
            reported under the selectors joined with " + "

    Returns:
        ResolvedTable with values and UnresolvedReferenceError diagnostics

    Raises:
        KeyError: If a requested scope is not declared in the graph
    """
    if scopes is None:
        scopes = [scope.selector for scope in graph.scopes]

    table = ResolvedTable()
    requests = [(selector, [selector]) for selector in scopes]
    requests += [(STACK_SEPARATOR.join(stack), stack) for stack in stacks or []]

    for label, selectors in requests:
        context = scope_context(graph, selectors)
        values, diagnostics = resolve_context(context, label)
        table.scopes.append(label)
        table.values[label] = values
        table.diagnostics.extend(diagnostics)

    logger.debug(
        "Resolved %d scopes, %d failures", len(table.scopes), len(table.diagnostics)
    )
    return table
