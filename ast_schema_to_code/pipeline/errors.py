"""
Errors raised by the generator pipeline.

Every error is fatal for a run: the pipeline raises before anything is
written, so a failed run never leaves a partial artifact behind.
"""

from __future__ import annotations


class AstSchemaError(Exception):
    """Base class for all schema and generation errors."""


class SchemaLoadError(AstSchemaError):
    """Raised when the schema resource is missing or structurally unparsable.

    This covers:
    - A missing file or an unsupported file type
    - YAML/JSON syntax errors and duplicate keys
    - Entries that are neither an alias string nor a mapping
    - Malformed type-expressions, child references and names
    """


class SchemaReferenceError(AstSchemaError):
    """Raised when a schema entry refers to something that does not exist.

    This covers type-expressions, child references and identity/position
    delegations that name an undeclared node or field, or a node removed
    by a feature gate.
    """


class EmissionInvariantViolation(AstSchemaError):
    """Raised when a schema entry cannot be emitted consistently.

    This covers a ``self`` children spec on a non-sum node, children that
    do not resolve to a node kind, sum variants with no identity or
    position source, name collisions in the generated module, and output
    that fails validation.
    """
