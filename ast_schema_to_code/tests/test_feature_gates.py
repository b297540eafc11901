"""
Tests for feature-gated schema entries.
"""

from __future__ import annotations

import pytest

from ast_schema_to_code.pipeline.config import CodeGeneratorConfig
from ast_schema_to_code.pipeline.errors import SchemaReferenceError


@pytest.mark.parametrize(
    "gate, features, enabled",
    [
        (None, [], True),
        ("decorators", [], False),
        ("decorators", ["decorators"], True),
        ("!modern", [], True),
        ("!modern", ["modern"], False),
        ("!modern", ["decorators"], True),
    ],
)
def test_gate_evaluation(gate, features, enabled):
    assert CodeGeneratorConfig(features=features).is_enabled(gate) is enabled


def test_disabled_kind_is_absent_everywhere(mini_lang_schema, generate):
    code = generate(mini_lang_schema)
    assert "Decorator" not in code
    assert "decorator" not in code
    assert "class LegacyPrint:" in code


def test_enabled_kind_is_present_everywhere(mini_lang_schema, generate):
    code = generate(mini_lang_schema, features=["decorators", "modern"])
    assert "class Decorator:" in code
    assert '    Decorator = "Decorator"' in code
    assert "def as_decorator(self) -> Decorator | None:" in code
    assert "case NodeKind.Decorator:" in code
    assert "def node_from_decorator(node: Decorator) -> Node:" in code
    assert "    Decorator: node_from_decorator," in code
    assert "LegacyPrint" not in code
    assert "legacy_print" not in code


def test_enabled_features_are_listed_in_the_header(mini_lang_schema, generate):
    code = generate(mini_lang_schema, features=["modern", "decorators"])
    assert code.splitlines()[2] == "# Enabled features: decorators, modern"


def test_reference_to_disabled_kind_is_rejected(generate):
    schema = {
        "Decorator": {"feature": "decorators", "span": "Span"},
        "Function": {"span": "Span", "decorators": "Vec<Decorator>"},
    }
    with pytest.raises(SchemaReferenceError, match="refers to Decorator, which is disabled by feature gate 'decorators'"):
        generate(schema)
    assert "class Function:" in generate(schema, features=["decorators"])


def test_gated_sum_variant_payload(generate):
    schema = {
        "Async": {"feature": "async", "span": "Span"},
        "Kind": {"as": "Enum", "Await": "Box<Async>"},
    }
    with pytest.raises(SchemaReferenceError, match=r"Kind::Await: refers to Async"):
        generate(schema)


def test_alias_to_disabled_kind_is_rejected(generate):
    schema = {"Async": {"feature": "async", "span": "Span"}, "Awaits": "Vec<Async>"}
    with pytest.raises(SchemaReferenceError, match="alias Awaits: refers to Async"):
        generate(schema)
