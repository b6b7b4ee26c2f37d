"""
Tier classification by naming convention.

Each tier owns an ordered list of patterns; tiers are tried in configuration
order and the first matching pattern wins. Tokens matching nothing are
``unknown`` so misclassification shows up as a diagnostic instead of being
guessed. A ``/* @tier ... */`` annotation on the declaration overrides the
patterns.
"""

from __future__ import annotations

import fnmatch
import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .errors import ConfigError
from .ir import Tier

if TYPE_CHECKING:
    from .config import LintConfig
    from .graph import TokenGraph

logger = logging.getLogger(__name__)

REGEX_PREFIX = "re:"


@dataclass(frozen=True)
class PatternMatcher:
    """A compiled glob or regex tier pattern."""

    source: str
    regex: re.Pattern[str]
    is_glob: bool

    def matches(self, identifier: str) -> bool:
        if self.is_glob:
            return self.regex.fullmatch(identifier) is not None
        return self.regex.search(identifier) is not None


def parse_pattern(pattern: str) -> PatternMatcher:
    """
    Compile a tier pattern.

    ``re:<regex>`` is searched in the identifier; anything else is a glob that
    must match the whole identifier. A leading ``--`` is ignored in both.

    Raises:
        ConfigError: If the pattern is empty or the regex does not compile
    """
    if pattern.startswith(REGEX_PREFIX):
        body = pattern[len(REGEX_PREFIX) :]
        if body.startswith("^--"):
            body = "^" + body[3:]
        if not body:
            raise ConfigError(f"Empty regex pattern: {pattern!r}")
        try:
            return PatternMatcher(pattern, re.compile(body), is_glob=False)
        except re.error as e:
            raise ConfigError(f"Invalid regex pattern {pattern!r}: {e}") from e

    body = pattern.removeprefix("--")
    if not body:
        raise ConfigError(f"Empty glob pattern: {pattern!r}")
    return PatternMatcher(pattern, re.compile(fnmatch.translate(body)), is_glob=True)


class TierClassifier:
    """First-match-wins classifier over ordered tier patterns."""

    def __init__(self, patterns: dict[Tier, list[str]]):
        self.rules: list[tuple[Tier, PatternMatcher]] = [
            (tier, parse_pattern(pattern))
            for tier, tier_patterns in patterns.items()
            for pattern in tier_patterns
        ]

    @classmethod
    def from_config(cls, config: LintConfig) -> TierClassifier:
        return cls(config.tiers)

    def classify(self, identifier: str, annotation: Tier | None = None) -> Tier:
        """Return the tier for an identifier (without ``--``)."""
        if annotation is not None:
            return annotation
        for tier, matcher in self.rules:
            if matcher.matches(identifier):
                return tier
        return Tier.UNKNOWN


def classify_graph(graph: TokenGraph, classifier: TierClassifier) -> TokenGraph:
    """Assign a tier to every node of the graph, in place."""
    for i, token in enumerate(graph.tokens):
        tier = classifier.classify(token.identifier, token.annotation)
        if tier != token.tier:
            graph.tokens[i] = token.model_copy(update={"tier": tier})

    if logger.isEnabledFor(logging.DEBUG):
        counts = {tier: 0 for tier in Tier}
        for token in graph.tokens:
            counts[token.tier] += 1
        logger.debug(
            "Classified %d tokens: %s",
            len(graph.tokens),
            ", ".join(f"{tier}={n}" for tier, n in counts.items()),
        )
    return graph
