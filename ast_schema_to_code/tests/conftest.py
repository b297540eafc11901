from __future__ import annotations

import importlib.util
import itertools
import sys
from pathlib import Path

import pytest

from ast_schema_to_code.pipeline import CodeGeneratorConfig, PipelineGenerator
from ast_schema_to_code.pipeline.schema_ast import load_schema_file

TEST_DATA = Path(__file__).parent / "test_data"
MINI_LANG = TEST_DATA / "schemas" / "mini_lang.yaml"

_module_counter = itertools.count()


@pytest.fixture
def mini_lang_schema():
    return load_schema_file(MINI_LANG)


@pytest.fixture
def generate():
    """Generate module source from a raw schema mapping."""

    def _generate(schema, **config):
        return PipelineGenerator(schema, CodeGeneratorConfig.from_dict(config)).generate()

    return _generate


@pytest.fixture
def load_generated(tmp_path):
    """Write generated source to disk and import it as a fresh module."""
    names = []

    def _load(code: str):
        name = f"_generated_ast_{next(_module_counter)}"
        path = tmp_path / f"{name}.py"
        path.write_text(code, encoding="utf-8")
        spec = importlib.util.spec_from_file_location(name, path)
        module = importlib.util.module_from_spec(spec)
        # dataclasses resolves string annotations through sys.modules
        sys.modules[name] = module
        names.append(name)
        spec.loader.exec_module(module)
        return module

    yield _load

    for name in names:
        sys.modules.pop(name, None)


@pytest.fixture
def mini_lang(mini_lang_schema, generate, load_generated):
    """The mini_lang schema compiled and imported with default settings."""
    return load_generated(generate(mini_lang_schema))
