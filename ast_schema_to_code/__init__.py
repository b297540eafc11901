"""AST Schema to Code Generator

A Python package for generating AST node types, identity and position
accessors, and a closed polymorphic node view from a declarative schema.
"""

__version__ = "0.1.0"

from .pipeline import (
    AstSchemaError,
    AtomicWriter,
    CodeGeneratorConfig,
    EmissionInvariantViolation,
    FormatterConfig,
    OutputConfig,
    PipelineGenerator,
    SchemaLoadError,
    SchemaReferenceError,
)

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
