"""Core tokenlint functionality: scanner, graph, tier classifier, validator, resolver."""

from . import ir
from .config import LintConfig, load_config, resolve_config
from .errors import (
    ConfigError,
    CycleError,
    ErrorContext,
    ParseError,
    TokenLintError,
    UnresolvedReferenceError,
)
from .graph import TokenGraph, build_graph
from .lint import Analysis, LintReport, SourceInput, analyze, lint_sources, lint_text
from .resolver import ResolvedTable, resolve_themes
from .scanner import extract_references, scan, scan_file
from .tiers import TierClassifier, classify_graph
from .validator import validate_graph

__all__ = [
    "ir",
    "TokenLintError",
    "ParseError",
    "UnresolvedReferenceError",
    "CycleError",
    "ConfigError",
    "ErrorContext",
    "LintConfig",
    "load_config",
    "resolve_config",
    "scan",
    "scan_file",
    "extract_references",
    "TokenGraph",
    "build_graph",
    "TierClassifier",
    "classify_graph",
    "validate_graph",
    "ResolvedTable",
    "resolve_themes",
    "SourceInput",
    "Analysis",
    "LintReport",
    "analyze",
    "lint_sources",
    "lint_text",
]
