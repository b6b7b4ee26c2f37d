"""
Scanner for CSS custom properties.

Walks CSS source character by character with line/column tracking and
extracts custom-property declarations (``--name: value;``), ordinary
declarations that use ``var()``, and every referenced identifier, including
those nested inside ``var()`` fallbacks.

The scanner only understands blocks and declarations. Selectors and at-rule
preludes are kept as opaque scope strings.

Malformed input never stops a scan: each problem becomes a ParseError
diagnostic and scanning resumes at the next ``;`` or ``}``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path

from .errors import ParseError, make_parse_error
from .ir import (
    Declaration,
    Diagnostic,
    DiagnosticKind,
    ScanResult,
    SourceLocation,
    Tier,
    Usage,
    VarReference,
)

logger = logging.getLogger(__name__)

CUSTOM_PROPERTY_RE = re.compile(r"^--[A-Za-z0-9_-]+$")
PROPERTY_RE = re.compile(r"^-?[A-Za-z_][A-Za-z0-9_-]*$")
IMPORTANT_RE = re.compile(r"\s*!\s*important\s*$", re.IGNORECASE)
TIER_ANNOTATION_RE = re.compile(r"@tier\s+(primitive|semantic|component|unknown)\b", re.IGNORECASE)
VAR_OPEN_RE = re.compile(r"(?<![\w-])var\(", re.IGNORECASE)


# =============================================================================
# var() extraction
# =============================================================================


def find_closing_paren(text: str, open_pos: int) -> int:
    """Return the index of the ``)`` matching the ``(`` at open_pos, or -1."""
    depth = 0
    quote: str | None = None
    i = open_pos
    while i < len(text):
        ch = text[i]
        if quote:
            if ch == "\\":
                i += 1
            elif ch == quote:
                quote = None
        elif ch in "\"'":
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return -1


def search_var(text: str, pos: int = 0) -> re.Match[str] | None:
    """Find the next ``var(`` at or after pos that is not inside a quoted string."""
    quote: str | None = None
    i = pos
    while i < len(text):
        ch = text[i]
        if quote:
            if ch == "\\":
                i += 1
            elif ch == quote:
                quote = None
        elif ch in "\"'":
            quote = ch
        elif match := VAR_OPEN_RE.match(text, i):
            return match
        i += 1
    return None


def extract_references(value: str) -> list[VarReference]:
    """
    Extract every ``var()`` reference in a value, in source order.

    Fallbacks are searched recursively, so ``var(--a, var(--b, red))`` yields
    ``a`` (fallback ``var(--b, red)``) followed by ``b`` (fallback ``red``).

    Raises:
        ValueError: If a ``var()`` call is unclosed or has no custom property name.
    """
    refs: list[VarReference] = []
    pos = 0
    while match := search_var(value, pos):
        close = find_closing_paren(value, match.end() - 1)
        if close == -1:
            raise ValueError(f"Unclosed var() call in '{value}'")

        args = value[match.end() : close]
        name, sep, fallback = args.partition(",")
        name = name.strip()
        if not CUSTOM_PROPERTY_RE.match(name):
            raise ValueError(f"var() expects a custom property name, got '{name or args.strip()}'")

        fallback_text = fallback.strip() if sep else None
        refs.append(VarReference(identifier=name[2:], fallback=fallback_text))
        if fallback_text:
            refs.extend(extract_references(fallback_text))
        pos = close + 1
    return refs


# =============================================================================
# Scanner
# =============================================================================


@dataclass
class _Block:
    """An open ``{`` waiting for its ``}``."""

    prelude: str
    line: int
    column: int


class Scanner:
    """
    Scanner for CSS custom-property declarations.

    Produces declarations, usages and recoverable parse diagnostics.
    """

    def __init__(self, text: str, file: str = "<stdin>"):
        """
        Initialize scanner.

        Args:
            text: CSS source text
            file: Label used in source locations and diagnostics
        """
        self.text = text
        self.file = file
        self.pos = 0
        self.line = 1
        self.column = 1
        self.blocks: list[_Block] = []
        self.result = ScanResult(file=file)
        self._lines = text.splitlines()
        self._annotation: Tier | None = None

    def current_char(self) -> str | None:
        """Get current character or None if at end."""
        if self.pos >= len(self.text):
            return None
        return self.text[self.pos]

    def peek_char(self, offset: int = 1) -> str | None:
        """Peek ahead at character."""
        pos = self.pos + offset
        if pos >= len(self.text):
            return None
        return self.text[pos]

    def advance(self) -> None:
        """Move to next character, updating line/column."""
        if self.pos < len(self.text):
            if self.text[self.pos] == "\n":
                self.line += 1
                self.column = 1
            else:
                self.column += 1
            self.pos += 1

    def skip_whitespace(self) -> None:
        while (ch := self.current_char()) is not None and ch.isspace():
            self.advance()

    @property
    def scope(self) -> str:
        """Selector of the innermost open block, joined with its parents."""
        return " ".join(block.prelude for block in self.blocks)

    def _error(self, message: str, line: int, column: int) -> ParseError:
        snippet = self._lines[line - 1] if 0 < line <= len(self._lines) else None
        return make_parse_error(
            message, self.file, line, column, scope=self.scope or None, snippet=snippet
        )

    def _record(self, error: ParseError) -> None:
        logger.debug("Parse error in %s: %s", self.file, error.message)
        self.result.diagnostics.append(
            Diagnostic.from_error(error, DiagnosticKind.PARSE_ERROR)
        )

    def read_comment(self) -> str:
        """Read a ``/* ... */`` comment and return its body."""
        start_line, start_col = self.line, self.column
        self.advance()
        self.advance()
        chars = []
        while True:
            ch = self.current_char()
            if ch is None:
                raise self._error("Unterminated comment", start_line, start_col)
            if ch == "*" and self.peek_char() == "/":
                self.advance()
                self.advance()
                return "".join(chars)
            chars.append(ch)
            self.advance()

    def read_string(self) -> str:
        """Read a quoted string, returning it with its quotes."""
        start_line, start_col = self.line, self.column
        quote = self.current_char()
        chars = [quote or ""]
        self.advance()
        while True:
            ch = self.current_char()
            if ch is None or ch == "\n":
                raise self._error("Unterminated string literal", start_line, start_col)
            chars.append(ch)
            self.advance()
            if ch == "\\":
                escaped = self.current_char()
                if escaped is not None:
                    chars.append(escaped)
                    self.advance()
            elif ch == quote:
                return "".join(chars)

    def read_chunk(self) -> tuple[str, str | None]:
        """
        Read up to the next ``;``, ``{`` or ``}`` outside parentheses and strings.

        Comments inside the chunk are dropped. The terminator is not consumed.

        Returns:
            Tuple of (chunk text, terminator) with terminator None at end of input.
        """
        chars: list[str] = []
        parens: list[tuple[int, int]] = []
        while True:
            ch = self.current_char()
            if ch is None:
                if parens:
                    raise self._error("Unclosed '(' in value", *parens[-1])
                return "".join(chars), None
            if ch == "/" and self.peek_char() == "*":
                self.read_comment()
                continue
            if ch in "\"'":
                chars.append(self.read_string())
                continue
            if ch == "(":
                parens.append((self.line, self.column))
            elif ch == ")":
                if not parens:
                    raise self._error("Unbalanced ')' in value", self.line, self.column)
                parens.pop()
            elif ch in ";{}":
                if parens:
                    raise self._error("Unclosed '(' in value", *parens[-1])
                return "".join(chars), ch
            chars.append(ch)
            self.advance()

    def recover(self) -> None:
        """Skip past the next ``;``, or up to the next ``}``."""
        while (ch := self.current_char()) is not None:
            if ch == ";":
                self.advance()
                return
            if ch == "}":
                return
            self.advance()

    def handle_statement(self, text: str, line: int, column: int) -> None:
        """Turn a ``;``-terminated chunk into a declaration or usage."""
        text = text.strip()
        if not text:
            return

        if text.startswith("@"):
            # @import, @charset, @apply ... carry no custom properties
            return

        if not self.blocks:
            raise self._error("Declaration outside of a rule block", line, column)

        if ":" not in text:
            raise self._error(f"Expected ':' in declaration '{text}'", line, column)

        name, _, value = text.partition(":")
        name = name.strip()
        value = IMPORTANT_RE.sub("", value).strip()
        location = SourceLocation(file=self.file, scope=self.scope, line=line, column=column)

        try:
            references = extract_references(value)
        except ValueError as e:
            raise self._error(str(e), line, column) from e

        if name.startswith("--"):
            if not CUSTOM_PROPERTY_RE.match(name):
                raise self._error(f"Invalid custom property name '{name}'", line, column)
            self.result.declarations.append(
                Declaration(
                    scope=self.scope,
                    identifier=name[2:],
                    value=value,
                    references=references,
                    location=location,
                    annotation=self._annotation,
                )
            )
            return

        if not PROPERTY_RE.match(name):
            raise self._error(f"Invalid property name '{name}'", line, column)
        if references:
            self.result.usages.append(
                Usage(
                    scope=self.scope,
                    property=name.lower(),
                    value=value,
                    references=references,
                    location=location,
                )
            )

    def scan(self) -> ScanResult:
        """
        Scan the whole source.

        Returns:
            ScanResult with declarations, usages and parse diagnostics
        """
        while True:
            self.skip_whitespace()
            ch = self.current_char()
            if ch is None:
                break

            if ch == "/" and self.peek_char() == "*":
                try:
                    comment = self.read_comment()
                except ParseError as e:
                    self._record(e)
                    break
                if match := TIER_ANNOTATION_RE.search(comment):
                    self._annotation = Tier(match.group(1).lower())
                continue

            if ch == "}":
                if self.blocks:
                    self.blocks.pop()
                else:
                    self._record(self._error("Unexpected '}'", self.line, self.column))
                self.advance()
                self._annotation = None
                continue

            start_line, start_col = self.line, self.column
            try:
                text, terminator = self.read_chunk()
            except ParseError as e:
                self._record(e)
                self.recover()
                self._annotation = None
                continue

            if terminator == "{":
                prelude = " ".join(text.split())
                self.blocks.append(_Block(prelude, start_line, start_col))
                self.advance()
                self._annotation = None
                continue

            # Statement is consumed through its terminator from here on
            if terminator == ";":
                self.advance()
            try:
                if terminator is None and not self.blocks and text.strip():
                    raise self._error("Expected '{' after selector", start_line, start_col)
                self.handle_statement(text, start_line, start_col)
            except ParseError as e:
                self._record(e)
            self._annotation = None

        for block in reversed(self.blocks):
            self._record(
                make_parse_error(
                    f"Unterminated block '{block.prelude}' (missing '}}')",
                    self.file,
                    block.line,
                    block.column,
                    scope=block.prelude,
                )
            )
        self.blocks.clear()

        logger.debug(
            "Scanned %s: %d declarations, %d usages, %d parse errors",
            self.file,
            len(self.result.declarations),
            len(self.result.usages),
            len(self.result.diagnostics),
        )
        return self.result


def scan(text: str, file: str = "<stdin>") -> ScanResult:
    """
    Convenience function to scan CSS text.

    Args:
        text: CSS source text
        file: Label used in locations

    Returns:
        ScanResult
    """
    return Scanner(text, file).scan()


def scan_file(path: Path, label: str | None = None) -> ScanResult:
    """Read a UTF-8 CSS file and scan it."""
    text = path.read_text(encoding="utf-8")
    return scan(text, label or str(path))
