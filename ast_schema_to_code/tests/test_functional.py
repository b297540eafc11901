"""
Functional tests driven by the JSON cases in test_data/functional.

Each case gives an inline schema, an optional config, and the snippets
the generated module must (or must not) contain.
"""

from __future__ import annotations

import ast
import json
from pathlib import Path

import pytest

from ast_schema_to_code.pipeline import CodeGeneratorConfig, PipelineGenerator


def load_all_test_cases():
    """Load all test cases from all JSON files in test_data/functional directory."""
    functional_dir = Path(__file__).parent / "test_data" / "functional"
    test_cases = []

    for json_file in sorted(functional_dir.glob("*_tests.json")):
        with open(json_file) as f:
            data = json.load(f)

        for test_case in data:
            test_case["_source_file"] = json_file.name
            test_cases.append(test_case)

    return test_cases


def _generate_code(schema, config_dict):
    config = CodeGeneratorConfig.from_dict(config_dict or {})
    return PipelineGenerator(schema, config).generate()


@pytest.mark.parametrize("test_case", load_all_test_cases(), ids=lambda tc: tc["name"])
def test_functional_generation(test_case):
    generated_code = _generate_code(test_case["schema"], test_case.get("config"))
    source_file = test_case["_source_file"]

    # Every case must produce a valid module
    ast.parse(generated_code)

    for pattern in test_case.get("expected_contains", []):
        assert pattern in generated_code, f"Expected pattern {pattern!r} not found ({source_file})"

    for pattern in test_case.get("expected_not_contains", []):
        assert pattern not in generated_code, f"Unexpected pattern {pattern!r} found ({source_file})"
