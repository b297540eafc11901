"""
Pipeline - schema-driven AST code generator.

This module provides a multi-phase architecture for generating node
types and the polymorphic node view from a declarative AST schema:

1. Phase 1 (Parser): Parse the schema mapping into the Schema AST
2. Phase 2 (Analyzer): Apply feature gates, resolve references, derive
   identity/position accessors and the node view into IR
3. Phase 3 (Backend): Render the IR through jinja2 templates
4. Phase 4 (Formatter): Optional post-processing with ruff
5. Phase 5 (Writer): Validate and atomically write the module
"""

from __future__ import annotations

from .config import CodeGeneratorConfig, FormatterConfig, OutputConfig
from .errors import (
    AstSchemaError,
    EmissionInvariantViolation,
    SchemaLoadError,
    SchemaReferenceError,
)
from .generator import PipelineGenerator
from .writer import AtomicWriter

__all__ = [
    "PipelineGenerator",
    "CodeGeneratorConfig",
    "FormatterConfig",
    "OutputConfig",
    "AtomicWriter",
    "AstSchemaError",
    "SchemaLoadError",
    "SchemaReferenceError",
    "EmissionInvariantViolation",
]
