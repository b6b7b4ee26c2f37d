"""Shared pytest fixtures for tokenlint tests."""

from collections.abc import Callable
from pathlib import Path

import pytest

from tokenlint.core.config import LintConfig
from tokenlint.core.lint import Analysis, SourceInput, analyze


@pytest.fixture
def fixtures_dir() -> Path:
    """Return path to fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def css_fixtures_dir(fixtures_dir: Path) -> Path:
    """Return path to CSS fixtures directory."""
    return fixtures_dir / "css"


@pytest.fixture
def theme_css(css_fixtures_dir: Path) -> Path:
    """A clean three-tier token file with a dark theme override."""
    return css_fixtures_dir / "theme.css"


@pytest.fixture
def broken_css(css_fixtures_dir: Path) -> Path:
    """A token file with a cycle, an inversion, a dangling ref and a parse error."""
    return css_fixtures_dir / "broken.css"


@pytest.fixture
def default_config() -> LintConfig:
    return LintConfig()


@pytest.fixture
def write_css(tmp_path: Path) -> Callable[[str, str], Path]:
    """Factory writing CSS text into tmp_path and returning the file path."""

    def _write(text: str, name: str = "tokens.css") -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def analyze_css() -> Callable[..., Analysis]:
    """Return a helper running the full pipeline over one CSS string."""

    def _analyze(text: str, config: LintConfig | None = None) -> Analysis:
        return analyze([SourceInput("test.css", text)], config or LintConfig())

    return _analyze
