"""
Error types for token scanning, graph building, validation and resolution.
"""

from dataclasses import dataclass
from typing import Optional


class TokenLintError(Exception):
    """Base exception for all tokenlint errors."""

    def __init__(self, message: str, context: Optional["ErrorContext"] = None):
        self.message = message
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format error message with context if available."""
        if self.context:
            return f"{self.context.format()}\n{self.message}"
        return self.message


class ParseError(TokenLintError):
    """
    Raised when CSS source cannot be scanned.

    Examples:
    - Unterminated block, comment or string
    - Unexpected closing brace
    - Declaration without a colon
    - Unbalanced parentheses in a value
    """

    pass


class UnresolvedReferenceError(TokenLintError):
    """
    Raised when a var() reference cannot be resolved.

    Examples:
    - Reference to a token declared nowhere, without a fallback
    - Resolution chain that ends without a literal value
    """

    def __init__(
        self,
        message: str,
        context: Optional["ErrorContext"] = None,
        identifier: str | None = None,
        chain: list[str] | None = None,
    ):
        self.identifier = identifier
        self.chain = chain or []
        super().__init__(message, context)


class CycleError(TokenLintError):
    """
    Raised when tokens reference each other in a loop.

    The ``path`` starts and ends with the same identifier.
    """

    def __init__(
        self,
        message: str,
        context: Optional["ErrorContext"] = None,
        path: list[str] | None = None,
    ):
        self.path = path or []
        super().__init__(message, context)


class ConfigError(TokenLintError):
    """Raised when tokenlint.yaml is missing, malformed or invalid."""

    pass


@dataclass
class ErrorContext:
    """
    Context information for an error, including source location.

    Attributes:
        file: Label of the source file where the error occurred
        line: Line number (1-indexed)
        column: Column number (1-indexed)
        scope: Optional selector of the enclosing block
        snippet: Optional source line showing the error location
    """

    file: str
    line: int
    column: int
    scope: str | None = None
    snippet: str | None = None

    def format(self) -> str:
        """
        Format error context as a human-readable string.

        Returns:
            Formatted string like: "tokens.css:10:5 in :root"
        """
        location = f"{self.file}:{self.line}:{self.column}"
        if self.scope:
            location += f" in {self.scope}"

        if self.snippet:
            return f"{location}\n{self._format_snippet()}"
        return location

    def _format_snippet(self) -> str:
        """Format the source line with its number and an error marker."""
        if not self.snippet:
            return ""

        prefix = f"{self.line:4d} | "
        marker = " " * (len(prefix) + self.column - 1) + "^^^"
        return f"{prefix}{self.snippet}\n{marker}"


def make_parse_error(
    message: str,
    file: str,
    line: int,
    column: int,
    scope: str | None = None,
    snippet: str | None = None,
) -> ParseError:
    """
    Helper to create a ParseError with context.

    Args:
        message: Error description
        file: Source file label
        line: Line number (1-indexed)
        column: Column number (1-indexed)
        scope: Optional enclosing selector
        snippet: Optional source line

    Returns:
        ParseError with context attached
    """
    context = ErrorContext(file=file, line=line, column=column, scope=scope, snippet=snippet)
    return ParseError(message, context)


def make_unresolved_error(
    identifier: str,
    chain: list[str] | None = None,
    file: str | None = None,
    line: int | None = None,
    column: int | None = None,
    scope: str | None = None,
) -> UnresolvedReferenceError:
    """
    Helper to create an UnresolvedReferenceError with optional context.

    Args:
        identifier: Token name (without ``--``) that could not be resolved
        chain: Resolution chain leading to the missing token
        file: Optional source file label
        line: Optional line number
        column: Optional column number
        scope: Optional scope being resolved

    Returns:
        UnresolvedReferenceError with context if location provided
    """
    chain = chain or []
    if chain:
        via = " → ".join(chain + [identifier])
        message = f"Unresolved reference --{identifier} (via {via}) has no declaration and no fallback"
    else:
        message = f"Unresolved reference --{identifier} has no declaration and no fallback"

    context = None
    if file and line and column:
        context = ErrorContext(file=file, line=line, column=column, scope=scope)
    return UnresolvedReferenceError(message, context, identifier=identifier, chain=chain)
