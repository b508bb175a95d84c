"""Tests for compindex.enrich: metadata enrichment."""

from __future__ import annotations

import pytest

from compindex.enrich import (
    analyze_ui_properties,
    assess_quality,
    business_function,
    code_metrics,
    content_fingerprint,
    content_quality,
    detect_language,
    detect_ui_framework,
    detect_ui_pattern,
    embedding_context,
    enrich,
    estimate_effort,
    extract_business_context,
    extract_external_apis,
    extract_imports,
    extract_includes,
    generate_labels,
    generate_tags,
    metadata_completeness,
    migration_complexity,
    migration_priority,
    search_keywords,
    semantic_context,
)
from compindex.types import Component

NOW = "2026-01-01T00:00:00+00:00"

# --- Helpers ---


def _make_component(
    name: str = "helper",
    kind: str = "function",
    content: str = "return 0;",
    complexity: float = 1,
    dependencies: tuple[str, ...] = (),
    file_path: str = "src/util.cpp",
    domain: str = "core",
    service: str = "shared",
) -> Component:
    return Component(
        id=f"{file_path}::{name}",
        name=name,
        kind=kind,
        file_path=file_path,
        line_number=10,
        content=content,
        complexity=complexity,
        dependencies=dependencies,
        domain=domain,
        service=service,
    )


def _withdraw(content: str = "void withdraw(double amount) { balance -= amount; }") -> Component:
    return _make_component(
        name="withdraw",
        content=content,
        complexity=9,
        dependencies=tuple(f"dep{i}" for i in range(12)),
        file_path="src/account.cpp",
        domain="banking",
        service="accounts",
    )


# --- Fingerprint & language ---


class TestFingerprint:
    def test_sha256_prefix(self):
        digest = content_fingerprint("int x;")
        assert digest.startswith("sha256:")
        assert len(digest) == len("sha256:") + 64

    def test_same_content_same_hash(self):
        assert content_fingerprint("abc") == content_fingerprint("abc")
        assert content_fingerprint("abc") != content_fingerprint("abd")


class TestDetectLanguage:
    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("a/b.cpp", "cpp"),
            ("a/b.H", "h"),
            ("b.hpp", "hpp"),
            ("b.cc", "cc"),
            ("b.cxx", "cxx"),
            ("README", "cpp"),
            ("", "cpp"),
        ],
    )
    def test_extension_mapping(self, path: str, expected: str):
        assert detect_language(path) == expected


# --- UI classification ---


class TestDetectUIPattern:
    @pytest.mark.parametrize(
        ("content", "expected"),
        [
            ("QDialog *confirm = new QDialog(this);", "form"),
            ("QTableView *view;", "table"),
            ("showPopup();", "modal"),
            ("QMenuBar *bar;", "navigation"),
            ("plot(values);", "chart"),
            ("int add(int a, int b) { return a + b; }", "custom"),
        ],
    )
    def test_patterns(self, content: str, expected: str):
        assert detect_ui_pattern(content) == expected

    def test_first_rule_wins(self):
        # QMessageBox appears in both the form and modal rules.
        assert detect_ui_pattern("QMessageBox::warning(this, title, text);") == "form"

    def test_case_insensitive(self):
        assert detect_ui_pattern("DRAW CHART") == "chart"


class TestDetectUIFramework:
    @pytest.mark.parametrize(
        ("content", "expected"),
        [
            ("QWidget *w = new QWidget();", "qt"),
            ("wx::Frame frame;", "wxwidgets"),
            ("GtkWindow *win;", "gtk"),
            ("Windows::Forms::Show();", "win32"),
            ("NSWindow *window;", "cocoa"),
            ("int x = 0;", None),
        ],
    )
    def test_frameworks(self, content: str, expected: str | None):
        assert detect_ui_framework(content) == expected


class TestUIProperties:
    def test_all_flags(self):
        props = analyze_ui_properties("validate(); setEnabled(true); emit signal; resize(10);")
        assert props.has_validation
        assert props.has_state
        assert props.has_events
        assert props.is_responsive

    def test_no_flags(self):
        props = analyze_ui_properties("int x = 0;")
        assert not any(
            (props.has_validation, props.has_state, props.has_events, props.is_responsive)
        )


# --- Metrics & source references ---


class TestCodeMetrics:
    def test_counts_code_and_comments(self):
        metrics = code_metrics("int a;\n// comment\n\n/* block */ int b;")
        assert metrics.lines_of_code == 2
        assert metrics.comment_ratio == pytest.approx(0.5)

    def test_empty_content(self):
        metrics = code_metrics("")
        assert metrics.lines_of_code == 0
        assert metrics.comment_ratio == 0.0


class TestIncludes:
    def test_system_and_local(self):
        content = '#include <vector>\n#include "account.h"\n#include<map>'
        assert extract_imports(content) == ("vector", "map")
        assert extract_includes(content) == ("account.h",)


# --- Business context ---


class TestBusinessContext:
    def test_domain_from_name(self):
        domain, function, _, _ = extract_business_context(_withdraw())
        assert domain == "banking"
        assert function == "unknown"

    def test_domain_from_content_with_entities_and_apis(self):
        component = _make_component(
            name="Catalog",
            content=(
                "class Order {}; struct Item {};\n"
                "// fetch from https://api.shop.test/v1 via REST"
            ),
        )
        domain, _, entities, apis = extract_business_context(component)
        assert domain == "ecommerce"
        assert entities == ("Order", "Item")
        assert apis[0] == "https://api.shop.test/v1"
        assert "REST" in apis
        assert len(apis) == len(set(apis))

    def test_no_match_defaults(self):
        assert extract_business_context(_make_component()) == ("general", "unknown", (), ())

    def test_business_function(self):
        assert business_function(_make_component(name="loginUser")) == "authentication"
        assert business_function(_make_component(name="grantRole")) == "authorization"
        assert business_function(_make_component(name="convertUnits")) == "data_processing"
        assert business_function(_make_component(name="dailyReport")) == "reporting"
        assert business_function(_make_component(name="openSocket")) == "communication"
        assert business_function(_make_component()) == "unknown"

    def test_external_apis_dedup(self):
        apis = extract_external_apis("curl curl GraphQL graphql")
        assert apis == ("curl", "GraphQL", "graphql")


# --- Migration hints ---


class TestMigrationPriority:
    def test_high_by_complexity(self):
        assert migration_priority(_make_component(complexity=8)) == "high"

    def test_high_by_dependencies(self):
        deps = tuple(f"d{i}" for i in range(11))
        assert migration_priority(_make_component(dependencies=deps)) == "high"

    def test_medium(self):
        assert migration_priority(_make_component(complexity=5)) == "medium"
        deps = tuple(f"d{i}" for i in range(6))
        assert migration_priority(_make_component(dependencies=deps)) == "medium"

    def test_low(self):
        assert migration_priority(_make_component(complexity=4)) == "low"


class TestMigrationComplexity:
    def test_complex_by_complexity(self):
        assert migration_complexity(_make_component(complexity=9)) == "complex"

    def test_complex_by_ui_pattern(self):
        component = _make_component(content="QTableView *view;", complexity=1)
        assert migration_complexity(component) == "complex"

    def test_moderate(self):
        assert migration_complexity(_make_component(complexity=6)) == "moderate"
        deps = tuple(f"d{i}" for i in range(8))
        assert migration_complexity(_make_component(dependencies=deps)) == "moderate"

    def test_simple(self):
        assert migration_complexity(_make_component()) == "simple"


class TestEstimateEffort:
    def test_withdraw_scenario(self):
        assert estimate_effort(_withdraw()) == 24

    def test_ui_multiplier(self):
        component = _withdraw("QDialog confirm; void withdraw(double amount);")
        assert estimate_effort(component) == 36

    def test_rounds_half_up(self):
        component = _make_component(complexity=1, dependencies=("a",))
        # 1*2 + 1*0.5 = 2.5
        assert estimate_effort(component) == 3


# --- Search aids, tags, labels ---


class TestKeywordsTagsLabels:
    def test_keywords_union_dedup(self):
        component = _make_component(
            name="Account",
            kind="class",
            content="class Account { };",
            dependencies=("Money", "ledger"),
            domain="banking",
            service="ledger",
        )
        assert search_keywords(component) == ("Account", "class", "banking", "ledger", "Money")

    def test_keywords_drop_empty(self):
        component = _make_component(domain="", service="")
        assert search_keywords(component) == ("helper", "function")

    def test_tags(self):
        component = _make_component(kind="class", file_path="a.hpp")
        assert generate_tags(component) == ("class", "core", "shared", "hpp")

    def test_tags_ui_component(self):
        component = _make_component(content="QDialog dlg;")
        assert generate_tags(component)[-1] == "ui-component"

    def test_labels_low(self):
        assert generate_labels(_make_component(complexity=1)) == ("low-complexity", "independent")

    def test_labels_high(self):
        deps = tuple(f"d{i}" for i in range(6))
        component = _make_component(complexity=8, dependencies=deps)
        assert generate_labels(component) == ("high-complexity", "high-coupling")

    def test_semantic_context(self):
        assert semantic_context(_withdraw()) == (
            "withdraw is a function in the banking domain, part of accounts service. "
            "unknown functionality."
        )

    def test_embedding_context_truncates_content(self):
        component = _make_component(content="x" * 50, dependencies=("a", "b"))
        text = embedding_context(component, limit=10)
        assert "Component: helper (function)" in text
        assert "Content: " + "x" * 10 + "\n" in text
        assert "Dependencies: a, b" in text
        assert "x" * 11 not in text


# --- Quality ---


class TestQuality:
    def test_perfect(self):
        assert content_quality(_make_component(content="int main() { return 0; }")) == 1.0

    def test_short_content(self):
        assert content_quality(_make_component(content="x")) == pytest.approx(0.5)

    def test_long_and_complex(self):
        component = _make_component(content="x" * 5001, complexity=11)
        assert content_quality(component) == pytest.approx(0.56)

    @pytest.mark.parametrize("length", [0, 5, 10, 5000, 5001, 20000])
    @pytest.mark.parametrize("complexity", [0, 10, 11, 100])
    def test_bounded(self, length: int, complexity: int):
        score = content_quality(_make_component(content="y" * length, complexity=complexity))
        assert 0.1 <= score <= 1.0

    def test_metadata_completeness_full(self):
        metadata = enrich(_make_component(dependencies=("a",)), now=NOW)
        assert metadata_completeness(metadata) == 1.0

    def test_metadata_completeness_partial(self):
        metadata = enrich(_make_component(file_path=""), now=NOW)
        # file_path and dependencies are empty
        assert metadata_completeness(metadata) == pytest.approx(0.8)

    def test_assess_quality(self):
        component = _make_component(content="x")
        quality = assess_quality(component, enrich(component, now=NOW))
        assert quality.embedding_quality == 1.0
        assert quality.content_quality == pytest.approx(0.5)


# --- Full enrichment ---


class TestEnrich:
    def test_withdraw_record(self):
        metadata = enrich(_withdraw(), now=NOW)
        assert metadata.migration_priority == "high"
        assert metadata.migration_complexity == "complex"
        assert metadata.estimated_effort == 24
        assert metadata.business_domain == "banking"
        assert metadata.ui_pattern == "custom"
        assert metadata.ui_framework is None
        assert metadata.language == "cpp"
        assert metadata.created_at == NOW
        assert metadata.updated_at == NOW
        assert metadata.dependents == ()

    def test_deterministic(self):
        assert enrich(_withdraw(), now=NOW) == enrich(_withdraw(), now=NOW)

    def test_content_truncated(self):
        component = _make_component(content="z" * 3000)
        metadata = enrich(component, now=NOW, content_limit=2000)
        assert len(metadata.content) == 2000
        assert metadata.content_length == 3000
        assert metadata.content_hash == content_fingerprint("z" * 3000)

    def test_missing_labels_default_to_unknown(self):
        metadata = enrich(_make_component(domain="", service=""), now=NOW)
        assert metadata.domain == "unknown"
        assert metadata.service == "unknown"

    def test_keywords_and_context_never_empty(self):
        metadata = enrich(_make_component(content=""), now=NOW)
        assert metadata.search_keywords
        assert metadata.semantic_context

    @pytest.mark.parametrize(
        "content",
        ["", "\n\n\n", "/*", "class", "struct 123", "http://", "\x00\udcff", "é" * 100],
    )
    def test_total_on_odd_input(self, content: str):
        component = Component(id="odd", name="", kind="macro", content=content, complexity=-3)
        metadata = enrich(component, now=NOW)
        assert metadata.kind == "macro"

    def test_default_timestamp_is_set(self):
        assert enrich(_make_component()).created_at
