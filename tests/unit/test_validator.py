"""Tests for cycle detection, hierarchy checks and unknown-tier warnings."""

from tokenlint.core.config import LintConfig
from tokenlint.core.graph import TokenGraph
from tokenlint.core.ir import DiagnosticKind, Severity, Token
from tokenlint.core.validator import find_cycles, format_path


def _of_kind(diagnostics, kind):
    return [d for d in diagnostics if d.kind == kind]


def _graph(edges: dict[str, list[str]]) -> TokenGraph:
    graph = TokenGraph()
    for identifier in edges:
        graph.add_node(Token(identifier=identifier, value="x"))
    for identifier, deps in edges.items():
        graph.edges[graph.index[identifier]] = {graph.index[d] for d in deps}
    return graph


class TestFindCycles:
    def test_acyclic(self):
        assert find_cycles(_graph({"a": ["b"], "b": ["c"], "c": []})) == []

    def test_two_node_cycle(self):
        assert find_cycles(_graph({"a": ["b"], "b": ["a"]})) == [[0, 1, 0]]

    def test_self_loop(self):
        assert find_cycles(_graph({"a": ["a"]})) == [[0, 0]]

    def test_figure_eight_reports_both_cycles(self):
        graph = _graph({"a": ["b", "c"], "b": ["a"], "c": ["a"]})
        assert find_cycles(graph) == [[0, 1, 0], [0, 2, 0]]

    def test_cycle_behind_acyclic_prefix(self):
        graph = _graph({"entry": ["x"], "x": ["y"], "y": ["z"], "z": ["x"]})
        assert find_cycles(graph) == [[1, 2, 3, 1]]

    def test_paths_have_no_repeated_inner_nodes(self):
        graph = _graph({"a": ["b"], "b": ["c", "a"], "c": ["a"]})
        for cycle in find_cycles(graph):
            assert len(set(cycle[:-1])) == len(cycle) - 1
            assert cycle[0] == cycle[-1]

    def test_search_limited_to_given_nodes(self):
        graph = _graph({"a": ["b"], "b": ["a"], "c": ["d"], "d": ["c"]})
        assert find_cycles(graph, [0, 2, 3]) == [[2, 3, 2]]

    def test_format_path(self):
        assert format_path(["a", "b", "a"]) == "a → b → a"


class TestDetectCycles:
    def test_two_token_cycle(self, analyze_css):
        analysis = analyze_css(":root{--a: var(--b); --b: var(--a);}")

        cycles = _of_kind(analysis.diagnostics, DiagnosticKind.CYCLE)
        assert len(cycles) == 1
        assert cycles[0].path == ["a", "b", "a"]
        assert cycles[0].severity == Severity.ERROR
        assert "a → b → a" in cycles[0].message
        assert cycles[0].identifier == "a"

    def test_self_reference(self, analyze_css):
        analysis = analyze_css(":root { --a: var(--a); }")

        cycles = _of_kind(analysis.diagnostics, DiagnosticKind.CYCLE)
        assert [c.path for c in cycles] == [["a", "a"]]

    def test_override_scopes_do_not_form_cycles(self, analyze_css):
        analysis = analyze_css(
            ":root { --a: 1px; --b: var(--a); }\n.alt { --a: var(--b); }"
        )
        assert _of_kind(analysis.diagnostics, DiagnosticKind.CYCLE) == []

    def test_loop_inside_a_theme_is_not_a_base_cycle(self, analyze_css):
        analysis = analyze_css(
            ":root{--ok:1px} [data-theme=\"dark\"]{--x:var(--y);--y:var(--x)}"
        )
        assert _of_kind(analysis.diagnostics, DiagnosticKind.CYCLE) == []

    def test_base_token_closing_a_loop_through_an_override_scope(self, analyze_css):
        analysis = analyze_css(":root{--a:var(--b)} .alt{--b:var(--a)}")
        assert _of_kind(analysis.diagnostics, DiagnosticKind.CYCLE) == []


class TestCheckHierarchy:
    def test_primitive_referencing_semantic(self, analyze_css):
        analysis = analyze_css(
            ":root{--color-bg-primary: #fff; --color-neutral-900: var(--color-bg-primary);}"
        )

        inversions = _of_kind(analysis.diagnostics, DiagnosticKind.HIERARCHY_INVERSION)
        assert len(inversions) == 1
        diag = inversions[0]
        assert diag.severity == Severity.WARNING
        assert diag.identifier == "color-neutral-900"
        assert "primitive token --color-neutral-900" in diag.message
        assert "semantic token --color-bg-primary" in diag.message

    def test_downward_references_are_fine(self, analyze_css):
        analysis = analyze_css(
            ":root {\n"
            "  --color-blue-500: #3b82f6;\n"
            "  --color-action-primary: var(--color-blue-500);\n"
            "  --button-bg: var(--color-action-primary);\n"
            "  --button-border: var(--color-blue-500);\n"
            "  --card-bg: var(--button-bg);\n"
            "}"
        )
        assert analysis.diagnostics == []

    def test_strict_mode_promotes_to_error(self, analyze_css):
        config = LintConfig().with_strict_hierarchy()
        analysis = analyze_css(
            ":root { --button-bg: #000; --color-text-primary: var(--button-bg); }", config
        )

        inversions = _of_kind(analysis.diagnostics, DiagnosticKind.HIERARCHY_INVERSION)
        assert [d.severity for d in inversions] == [Severity.ERROR]

    def test_override_declarations_are_checked(self, analyze_css):
        analysis = analyze_css(
            ":root {\n"
            "  --color-neutral-900: #18181b;\n"
            "  --color-bg-primary: #ffffff;\n"
            "}\n"
            '[data-theme="dark"] {\n'
            "  --color-neutral-900: var(--color-bg-primary);\n"
            "}"
        )

        inversions = _of_kind(analysis.diagnostics, DiagnosticKind.HIERARCHY_INVERSION)
        assert len(inversions) == 1
        assert inversions[0].location.line == 6
        assert inversions[0].location.scope == '[data-theme="dark"]'

    def test_unknown_tier_is_exempt(self, analyze_css):
        analysis = analyze_css(
            ":root { --brand: var(--button-bg); --button-bg: #000; --color-neutral-0: var(--brand); }"
        )
        assert _of_kind(analysis.diagnostics, DiagnosticKind.HIERARCHY_INVERSION) == []


class TestUnknownTier:
    def test_unknown_tier_warning(self, analyze_css):
        analysis = analyze_css(":root { --brand: #f00; }")

        unknown = _of_kind(analysis.diagnostics, DiagnosticKind.UNKNOWN_TIER)
        assert len(unknown) == 1
        assert unknown[0].severity == Severity.WARNING
        assert unknown[0].identifier == "brand"

    def test_annotation_silences_warning(self, analyze_css):
        analysis = analyze_css(":root {\n  /* @tier primitive */\n  --brand: #f00;\n}")
        assert analysis.diagnostics == []

    def test_can_be_disabled(self, analyze_css):
        config = LintConfig(report_unknown_tier=False)
        analysis = analyze_css(":root { --brand: #f00; }", config)
        assert analysis.diagnostics == []
