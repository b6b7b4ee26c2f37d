"""
IR types for design-token analysis.

Scanned declarations, graph tokens, scopes and the diagnostic records every
pipeline stage produces. All models are frozen; stages build new instances
instead of mutating shared ones.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

from .errors import TokenLintError

# =============================================================================
# Enums
# =============================================================================


class Tier(StrEnum):
    """Position of a token in the primitive -> semantic -> component hierarchy."""

    PRIMITIVE = "primitive"
    SEMANTIC = "semantic"
    COMPONENT = "component"
    UNKNOWN = "unknown"

    @property
    def rank(self) -> int | None:
        """Ordering rank, or None for tokens exempt from hierarchy checks."""
        return TIER_RANKS.get(self)


# Lower rank = closer to raw values
TIER_RANKS: dict[Tier, int] = {
    Tier.PRIMITIVE: 0,
    Tier.SEMANTIC: 1,
    Tier.COMPONENT: 2,
}


class Severity(StrEnum):
    """Diagnostic severity."""

    ERROR = "error"
    WARNING = "warning"


class DiagnosticKind(StrEnum):
    """Diagnostic kinds reported by the pipeline."""

    PARSE_ERROR = "ParseError"
    UNRESOLVED_REFERENCE = "UnresolvedReferenceError"
    CYCLE = "CycleError"
    HIERARCHY_INVERSION = "HierarchyInversion"
    UNKNOWN_TIER = "UnknownTier"


# Stable ordering for diagnostics on the same source position
_KIND_ORDER: dict[DiagnosticKind, int] = {kind: i for i, kind in enumerate(DiagnosticKind)}


# =============================================================================
# Source model
# =============================================================================


class SourceLocation(BaseModel):
    """Where something was declared: file label, enclosing selector and position."""

    model_config = ConfigDict(frozen=True)

    file: str = Field(default="<stdin>", description="File label used in reports")
    scope: str | None = Field(default=None, description="Selector of the enclosing block")
    line: int = Field(default=1, ge=1)
    column: int = Field(default=1, ge=1)

    def format(self) -> str:
        return f"{self.file}:{self.line}:{self.column}"


class VarReference(BaseModel):
    """A single ``var(--name[, fallback])`` occurrence."""

    model_config = ConfigDict(frozen=True)

    identifier: str = Field(description="Referenced token name without the leading --")
    fallback: str | None = Field(default=None, description="Raw fallback text, if any")

    @property
    def has_fallback(self) -> bool:
        return self.fallback is not None


class Declaration(BaseModel):
    """A scanned ``--name: value`` custom-property declaration."""

    model_config = ConfigDict(frozen=True)

    scope: str
    identifier: str
    value: str
    references: list[VarReference] = Field(default_factory=list)
    location: SourceLocation = Field(default_factory=SourceLocation)
    annotation: Tier | None = Field(
        default=None, description="Tier given explicitly with a /* @tier ... */ comment"
    )

    @property
    def name(self) -> str:
        return f"--{self.identifier}"


class Usage(BaseModel):
    """An ordinary property declaration whose value references tokens."""

    model_config = ConfigDict(frozen=True)

    scope: str
    property: str
    value: str
    references: list[VarReference] = Field(default_factory=list)
    location: SourceLocation = Field(default_factory=SourceLocation)


class Token(BaseModel):
    """A graph node: the declaration that represents an identifier."""

    model_config = ConfigDict(frozen=True)

    identifier: str
    value: str
    tier: Tier = Tier.UNKNOWN
    location: SourceLocation = Field(default_factory=SourceLocation)
    references: list[VarReference] = Field(default_factory=list)
    annotation: Tier | None = None

    @classmethod
    def from_declaration(cls, decl: Declaration) -> Token:
        return cls(
            identifier=decl.identifier,
            value=decl.value,
            location=decl.location,
            references=decl.references,
            annotation=decl.annotation,
        )


class Scope(BaseModel):
    """A selector context owning identifier -> declaration mappings."""

    model_config = ConfigDict(frozen=True)

    selector: str
    is_base: bool = False
    declarations: dict[str, Declaration] = Field(default_factory=dict)


class ScanResult(BaseModel):
    """Everything the scanner found in one source."""

    file: str
    declarations: list[Declaration] = Field(default_factory=list)
    usages: list[Usage] = Field(default_factory=list)
    diagnostics: list[Diagnostic] = Field(default_factory=list)


# =============================================================================
# Diagnostics
# =============================================================================


class Diagnostic(BaseModel):
    """A single reported problem."""

    model_config = ConfigDict(frozen=True)

    severity: Severity
    kind: DiagnosticKind
    location: SourceLocation = Field(default_factory=SourceLocation)
    message: str
    identifier: str | None = None
    path: list[str] = Field(default_factory=list, description="Cycle path, closed")

    @classmethod
    def from_error(
        cls,
        error: TokenLintError,
        kind: DiagnosticKind,
        severity: Severity = Severity.ERROR,
        location: SourceLocation | None = None,
        identifier: str | None = None,
    ) -> Diagnostic:
        """Build a diagnostic from a raised error, taking the location from its context."""
        if location is None and error.context is not None:
            location = SourceLocation(
                file=error.context.file,
                scope=error.context.scope,
                line=error.context.line,
                column=error.context.column,
            )
        return cls(
            severity=severity,
            kind=kind,
            location=location or SourceLocation(),
            message=error.message,
            identifier=identifier or getattr(error, "identifier", None),
            path=list(getattr(error, "path", []) or []),
        )

    def sort_key(self) -> tuple[str, int, int, int, str]:
        return (
            self.location.file,
            self.location.line,
            self.location.column,
            _KIND_ORDER[self.kind],
            self.message,
        )

    def format(self) -> str:
        return f"{self.location.format()}: {self.severity}: [{self.kind}] {self.message}"


def sort_diagnostics(diagnostics: list[Diagnostic]) -> list[Diagnostic]:
    """Return diagnostics in report order (file, line, column, kind)."""
    return sorted(diagnostics, key=Diagnostic.sort_key)


ScanResult.model_rebuild()
