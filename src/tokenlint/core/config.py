"""
Configuration for tokenlint.

Reads ``tokenlint.yaml`` from the working directory (or an explicit path) and
validates it into a frozen LintConfig. A missing file means defaults.

Example:

    base_selectors: [":root"]
    hierarchy_severity: warning
    report_unknown_tier: true
    tiers:
      primitive: ["re:^color-[a-z]+-\\d+$", "spacing-*"]
      semantic: ["color-bg-*", "color-text-*"]
      component: ["button-*", "card-*"]

Tier entries prefixed ``re:`` are regular expressions, anything else is a glob.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigError
from .ir import Severity, Tier
from .tiers import parse_pattern

logger = logging.getLogger(__name__)

CONFIG_FILE = "tokenlint.yaml"

DEFAULT_TIER_PATTERNS: dict[Tier, list[str]] = {
    Tier.PRIMITIVE: [
        r"re:^color-(?!(bg|text|border|surface|action|status)-)[a-z]+-\d+$",
        "spacing-*",
        "font-size-*",
        "font-weight-*",
        "line-height-*",
        "radius-*",
        "shadow-*",
        "duration-*",
    ],
    Tier.SEMANTIC: [
        "color-bg-*",
        "color-text-*",
        "color-border-*",
        "color-surface-*",
        "color-action-*",
        "color-status-*",
        "space-*",
    ],
    Tier.COMPONENT: [
        "button-*",
        "card-*",
        "input-*",
        "modal-*",
        "nav-*",
        "badge-*",
    ],
}


class LintConfig(BaseModel):
    """Validated tokenlint configuration."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    base_selectors: list[str] = Field(
        default_factory=lambda: [":root"],
        min_length=1,
        description="Selectors whose declarations form the base scope",
    )
    hierarchy_severity: Severity = Field(
        default=Severity.WARNING,
        description="Severity of hierarchy inversions (warning or error)",
    )
    report_unknown_tier: bool = Field(
        default=True, description="Warn about tokens matching no tier pattern"
    )
    tiers: dict[Tier, list[str]] = Field(
        default_factory=lambda: {tier: list(p) for tier, p in DEFAULT_TIER_PATTERNS.items()},
        description="Ordered tier -> pattern list, first match wins",
    )

    @field_validator("tiers")
    @classmethod
    def _check_tiers(cls, value: dict[Tier, list[str]]) -> dict[Tier, list[str]]:
        if Tier.UNKNOWN in value:
            raise ValueError("'unknown' is the fallback tier and takes no patterns")
        for patterns in value.values():
            for pattern in patterns:
                parse_pattern(pattern)
        return value

    def with_strict_hierarchy(self) -> LintConfig:
        """Copy of this config with hierarchy inversions promoted to errors."""
        return self.model_copy(update={"hierarchy_severity": Severity.ERROR})


DEFAULT_CONFIG_YAML = """\
# tokenlint configuration
#
# Declarations in these selectors form the base scope; every other
# selector is treated as an override scope (themes, media queries).
base_selectors:
  - ":root"

# warning | error
hierarchy_severity: warning

# Warn about tokens that match no tier pattern
report_unknown_tier: true

# Tier patterns, evaluated top to bottom, first match wins. Primitive
# patterns are tried first, so they must not match semantic names such as
# color-bg-100; the palette regex below excludes the semantic color groups.
# Plain entries are globs; entries prefixed with "re:" are regular expressions.
tiers:
  primitive:
    - "re:^color-(?!(bg|text|border|surface|action|status)-)[a-z]+-\\\\d+$"
    - "spacing-*"
    - "font-size-*"
    - "font-weight-*"
    - "line-height-*"
    - "radius-*"
    - "shadow-*"
    - "duration-*"
  semantic:
    - "color-bg-*"
    - "color-text-*"
    - "color-border-*"
    - "color-surface-*"
    - "color-action-*"
    - "color-status-*"
    - "space-*"
  component:
    - "button-*"
    - "card-*"
    - "input-*"
    - "modal-*"
    - "nav-*"
    - "badge-*"
"""


# =============================================================================
# Path helpers
# =============================================================================


def get_config_path(project_root: Path) -> Path:
    """Get the tokenlint.yaml file path."""
    return project_root / CONFIG_FILE


def config_exists(project_root: Path) -> bool:
    """Check if a tokenlint.yaml exists in the directory."""
    return get_config_path(project_root).exists()


# =============================================================================
# Loading
# =============================================================================


def parse_config_data(data: dict[str, Any]) -> LintConfig:
    """Validate raw YAML data into a LintConfig."""
    try:
        return LintConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
    except TypeError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def load_config(path: Path) -> LintConfig:
    """
    Load configuration from a YAML file.

    Args:
        path: Path to tokenlint.yaml

    Returns:
        Validated LintConfig

    Raises:
        ConfigError: If the file is missing, is not valid YAML or fails validation
    """
    if not path.exists():
        raise ConfigError(f"Configuration file not found: {path}")

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping, got {type(data).__name__}")

    config = parse_config_data(data)
    logger.debug("Loaded configuration from %s", path)
    return config


def resolve_config(path: Path | None = None, project_root: Path | None = None) -> LintConfig:
    """
    Load an explicit config, else the project's tokenlint.yaml, else defaults.

    Args:
        path: Explicit configuration file (must exist)
        project_root: Directory searched for tokenlint.yaml (default: cwd)
    """
    if path is not None:
        return load_config(path)

    root = project_root or Path.cwd()
    if config_exists(root):
        return load_config(get_config_path(root))

    logger.debug("No %s in %s, using defaults", CONFIG_FILE, root)
    return LintConfig()


def write_default_config(project_root: Path, *, overwrite: bool = False) -> Path:
    """Write the commented default configuration file."""
    path = get_config_path(project_root)
    if path.exists() and not overwrite:
        raise ConfigError(f"{path} already exists")
    path.write_text(DEFAULT_CONFIG_YAML, encoding="utf-8")
    return path
