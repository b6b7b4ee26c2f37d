"""
W3C Design Token Community Group (DTCG) tokens.json export.

Writes the tokens of one resolved scope as a DTCG document grouped by tier.
See: https://design-tokens.github.io/community-group/format/
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any

from .graph import TokenGraph
from .resolver import ResolvedTable

logger = logging.getLogger(__name__)

_ALIAS_RE = re.compile(r"^var\(\s*--([A-Za-z0-9_-]+)\s*\)$", re.IGNORECASE)
_COLOR_RE = re.compile(r"^(#[0-9a-fA-F]{3,8}|(rgba?|hsla?|oklch|oklab|lab|lch|hwb)\(.*\))$")
_DIMENSION_RE = re.compile(r"^-?(\d+\.?\d*|\.\d+)(px|rem|em|%|vh|vw|vmin|vmax|ch|ex|pt)$")
_DURATION_RE = re.compile(r"^-?(\d+\.?\d*|\.\d+)(ms|s)$")
_NUMBER_RE = re.compile(r"^-?(\d+\.?\d*|\.\d+)$")


def infer_type(value: str) -> str | None:
    """Guess the DTCG $type of a literal value."""
    value = value.strip()
    if _COLOR_RE.match(value):
        return "color"
    if _DIMENSION_RE.match(value):
        return "dimension"
    if _DURATION_RE.match(value):
        return "duration"
    if _NUMBER_RE.match(value):
        return "number"
    return None


def generate_dtcg_tokens(graph: TokenGraph, table: ResolvedTable, scope: str) -> dict[str, Any]:
    """Generate DTCG tokens for one scope of a resolved table.

    Tokens are grouped by tier. A value that is exactly one ``var()`` without
    fallback becomes a DTCG alias (``{tier.name}``); everything else is
    exported as its resolved literal. Unresolved tokens are skipped.

    Args:
        graph: Classified token graph.
        table: Resolution table containing ``scope``.
        scope: Scope label to export.

    Returns:
        DTCG-formatted dict suitable for writing as tokens.json.
    """
    if scope not in table.values:
        raise KeyError(scope)

    dtcg: dict[str, Any] = {}
    for identifier, resolved in table.values[scope].items():
        if not resolved.resolved:
            logger.warning("Skipping unresolved token --%s in %s", identifier, scope)
            continue

        token = graph.token(identifier)
        tier = token.tier.value if token else "unknown"
        entry: dict[str, Any] = {}

        alias = _ALIAS_RE.match(resolved.raw.strip())
        target = graph.token(alias.group(1)) if alias else None
        if alias and target is not None and table.get(scope, target.identifier) is not None:
            entry["$value"] = f"{{{target.tier.value}.{target.identifier}}}"
        else:
            entry["$value"] = resolved.value

        token_type = infer_type(resolved.value or "")
        if token_type:
            entry["$type"] = token_type

        dtcg.setdefault(tier, {})[identifier] = entry

    return dtcg


def export_dtcg_file(
    graph: TokenGraph, table: ResolvedTable, scope: str, output_path: Path
) -> Path:
    """Generate DTCG tokens and write to a JSON file.

    Args:
        graph: Classified token graph.
        table: Resolution table containing ``scope``.
        scope: Scope label to export.
        output_path: Path to write tokens.json.

    Returns:
        Path to the written file.
    """
    tokens = generate_dtcg_tokens(graph, table, scope)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(
        json.dumps(tokens, indent=2),
        encoding="utf-8",
    )

    return output_path
