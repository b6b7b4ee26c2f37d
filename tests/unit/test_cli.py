"""Tests for CLI commands."""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from tokenlint import __version__
from tokenlint.cli import app

DARK = '[data-theme="dark"]'


@pytest.fixture
def cli_runner():
    """Return a CLI test runner."""
    return CliRunner()


@pytest.fixture
def inversion_css(write_css) -> Path:
    """A file whose only problem is a hierarchy inversion."""
    return write_css(":root {\n  --color-bg-primary: #fff;\n  --color-neutral-0: var(--color-bg-primary);\n}\n")


def test_version(cli_runner: CliRunner):
    result = cli_runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert f"tokenlint version {__version__}" in result.stdout


def test_lint_clean_file(cli_runner: CliRunner, theme_css: Path):
    result = cli_runner.invoke(app, ["lint", str(theme_css)])
    assert result.exit_code == 0
    assert "OK: 21 tokens, no problems found." in result.stdout


def test_lint_broken_file(cli_runner: CliRunner, broken_css: Path):
    result = cli_runner.invoke(app, ["lint", str(broken_css)])
    assert result.exit_code == 1
    assert "3 error(s), 1 warning(s) in 1 file(s)" in result.stdout
    assert "color-bg-primary → color-text-primary → color-bg-primary" in result.stdout


def test_lint_json_output(cli_runner: CliRunner, broken_css: Path):
    result = cli_runner.invoke(app, ["lint", str(broken_css), "--format", "json"])
    assert result.exit_code == 1

    data = json.loads(result.stdout)
    assert data["files"] == [str(broken_css)]
    assert [d["kind"] for d in data["diagnostics"]] == [
        "HierarchyInversion",
        "CycleError",
        "UnresolvedReferenceError",
        "ParseError",
    ]
    assert [d["severity"] for d in data["diagnostics"]] == ["warning", "error", "error", "error"]
    assert data["diagnostics"][0]["location"]["line"] == 2


def test_lint_vscode_output(cli_runner: CliRunner, broken_css: Path):
    result = cli_runner.invoke(app, ["lint", str(broken_css), "-f", "vscode"])
    assert result.exit_code == 1

    lines = result.stdout.strip().splitlines()
    assert len(lines) == 4
    assert lines[0].startswith(f"{broken_css}:2:3: warning: primitive token")
    assert lines[2].startswith(f"{broken_css}:5:3: error: Unresolved reference --missing-token")


def test_lint_strict(cli_runner: CliRunner, inversion_css: Path):
    assert cli_runner.invoke(app, ["lint", str(inversion_css)]).exit_code == 0
    assert cli_runner.invoke(app, ["lint", str(inversion_css), "--strict"]).exit_code == 1


def test_lint_config_file(cli_runner: CliRunner, inversion_css: Path, tmp_path: Path):
    config = tmp_path / "strict.yaml"
    config.write_text("hierarchy_severity: error\n", encoding="utf-8")

    result = cli_runner.invoke(app, ["lint", str(inversion_css), "--config", str(config)])
    assert result.exit_code == 1


def test_lint_invalid_config(cli_runner: CliRunner, theme_css: Path, tmp_path: Path):
    config = tmp_path / "bad.yaml"
    config.write_text("tiers:\n  unknown: ['x-*']\n", encoding="utf-8")

    result = cli_runner.invoke(app, ["lint", str(theme_css), "-c", str(config)])
    assert result.exit_code == 2
    assert "Configuration error" in result.output


def test_lint_missing_file(cli_runner: CliRunner, tmp_path: Path):
    result = cli_runner.invoke(app, ["lint", str(tmp_path / "nope.css")])
    assert result.exit_code == 2
    assert "Cannot read input" in result.output


def test_lint_unknown_format(cli_runner: CliRunner, theme_css: Path):
    result = cli_runner.invoke(app, ["lint", str(theme_css), "--format", "xml"])
    assert result.exit_code == 2


def test_lint_stdin(cli_runner: CliRunner):
    result = cli_runner.invoke(app, ["lint", "-", "-f", "vscode"], input=":root{--x: var(--y);}")
    assert result.exit_code == 1
    assert "<stdin>:1:7: error: Unresolved reference --y" in result.stdout


def test_lint_multiple_files(cli_runner: CliRunner, write_css):
    primitives = write_css(":root { --color-neutral-0: #fff; }", "primitives.css")
    semantics = write_css(":root { --color-bg-primary: var(--color-neutral-0); }", "semantic.css")

    joined = cli_runner.invoke(app, ["lint", str(primitives), str(semantics), "-j", "2"])
    assert joined.exit_code == 0

    isolated = cli_runner.invoke(app, ["lint", str(primitives), str(semantics), "--isolated"])
    assert isolated.exit_code == 1


def test_resolve_json(cli_runner: CliRunner, theme_css: Path):
    result = cli_runner.invoke(app, ["resolve", str(theme_css), "--format", "json"])
    assert result.exit_code == 0

    data = json.loads(result.stdout)
    assert list(data["scopes"]) == [":root", DARK]
    assert data["scopes"][":root"]["color-bg-primary"] == "#ffffff"
    assert data["scopes"][DARK]["color-bg-primary"] == "#18181b"
    assert data["scopes"][":root"]["button-padding"] == "8px 16px"
    assert data["diagnostics"] == []


def test_resolve_single_scope(cli_runner: CliRunner, theme_css: Path):
    result = cli_runner.invoke(app, ["resolve", str(theme_css), "-s", DARK, "-f", "json"])
    assert result.exit_code == 0
    assert list(json.loads(result.stdout)["scopes"]) == [DARK]


def test_resolve_stack(cli_runner: CliRunner, write_css):
    css = write_css(":root { --a: 1; }\n.x { --a: 2; }\n.y { --a: 3; }")
    result = cli_runner.invoke(
        app, ["resolve", str(css), "--stack", ".y", "--stack", ".x", "-f", "json"]
    )
    assert result.exit_code == 0
    assert json.loads(result.stdout)["scopes"][".y + .x"]["a"] == "2"


def test_resolve_unknown_scope(cli_runner: CliRunner, theme_css: Path):
    result = cli_runner.invoke(app, ["resolve", str(theme_css), "--scope", ".nope"])
    assert result.exit_code == 2
    assert "Unknown scope" in result.output


def test_resolve_unresolved(cli_runner: CliRunner, write_css):
    css = write_css(":root { --x: var(--y); }")
    result = cli_runner.invoke(app, ["resolve", str(css), "-f", "json"])
    assert result.exit_code == 1

    data = json.loads(result.stdout)
    assert data["scopes"][":root"]["x"] is None
    assert data["diagnostics"][0]["kind"] == "UnresolvedReferenceError"


def test_resolve_table(cli_runner: CliRunner, write_css):
    css = write_css(":root { --a: 1px; }")
    result = cli_runner.invoke(app, ["resolve", str(css)])
    assert result.exit_code == 0
    assert "1px" in result.stdout


def test_resolve_reports_parse_errors(cli_runner: CliRunner, broken_css: Path):
    result = cli_runner.invoke(app, ["resolve", str(broken_css)])
    assert result.exit_code == 1
    assert "Expected ':'" in result.output


def test_resolve_parse_error_alone_fails(cli_runner: CliRunner, write_css):
    css = write_css(":root { --a: 1px;")
    result = cli_runner.invoke(app, ["resolve", str(css), "-f", "json"])
    assert result.exit_code == 1

    data = json.loads(result.stdout)
    assert data["scopes"][":root"]["a"] == "1px"
    assert [d["kind"] for d in data["diagnostics"]] == ["ParseError"]


def test_tokens_command(cli_runner: CliRunner, write_css):
    css = write_css(":root { --spacing-1: 4px; --space-sm: var(--spacing-1); }")
    result = cli_runner.invoke(app, ["tokens", str(css), "--tier", "semantic"])
    assert result.exit_code == 0
    assert "--space-sm" in result.stdout
    assert "semantic" in result.stdout
    assert "primitive" not in result.stdout


def test_export_command(cli_runner: CliRunner, theme_css: Path, tmp_path: Path):
    output = tmp_path / "tokens.json"
    result = cli_runner.invoke(app, ["export", str(theme_css), "-o", str(output)])
    assert result.exit_code == 0
    assert "Wrote" in result.stdout

    data = json.loads(output.read_text(encoding="utf-8"))
    assert data["semantic"]["color-bg-primary"]["$value"] == "{primitive.color-neutral-0}"


def test_export_override_scope(cli_runner: CliRunner, theme_css: Path, tmp_path: Path):
    output = tmp_path / "dark.json"
    result = cli_runner.invoke(app, ["export", str(theme_css), "-o", str(output), "-s", DARK])
    assert result.exit_code == 0

    data = json.loads(output.read_text(encoding="utf-8"))
    assert data["semantic"]["color-bg-primary"]["$value"] == "{primitive.color-neutral-900}"


def test_export_unknown_scope(cli_runner: CliRunner, theme_css: Path, tmp_path: Path):
    result = cli_runner.invoke(
        app, ["export", str(theme_css), "-o", str(tmp_path / "t.json"), "-s", ".nope"]
    )
    assert result.exit_code == 2


def test_init_command(cli_runner: CliRunner, tmp_path: Path):
    result = cli_runner.invoke(app, ["init", "--dir", str(tmp_path)])
    assert result.exit_code == 0
    assert (tmp_path / "tokenlint.yaml").exists()

    again = cli_runner.invoke(app, ["init", "--dir", str(tmp_path)])
    assert again.exit_code == 1
    assert "already exists" in again.output

    forced = cli_runner.invoke(app, ["init", "--dir", str(tmp_path), "--force"])
    assert forced.exit_code == 0


def test_tokens_reports_parse_errors(cli_runner: CliRunner, write_css):
    css = write_css(":root { --a: 1px; --b 2px; }")
    result = cli_runner.invoke(app, ["tokens", str(css)])
    assert result.exit_code == 1
    assert "--a" in result.stdout
    assert "Expected ':'" in result.output


def test_export_reports_parse_errors(cli_runner: CliRunner, write_css, tmp_path: Path):
    css = write_css(":root { --a: 1px; --b 2px; }")
    output = tmp_path / "tokens.json"
    result = cli_runner.invoke(app, ["export", str(css), "-o", str(output)])
    assert result.exit_code == 1
    assert output.exists()
    assert "Expected ':'" in result.output
