"""
Analyzer module.

Contains reference resolution, the derivation engine, the node view
builder and the IR they produce.
"""

from __future__ import annotations

from .analyzer import DISCRIMINANT_KINDS, SchemaAnalyzer
from .ir_nodes import (
    IR,
    ChildrenArm,
    ChildrenMode,
    ChildrenPlan,
    ChildStep,
    ChildStepKind,
    FieldIR,
    IdentityRule,
    ImportDef,
    KindIR,
    SpanRule,
    SpanSource,
    VariantIR,
    VariantShape,
    ViewKindIR,
)
from .reference_resolver import ReferenceResolver
from .view_builder import ViewBuilder

__all__ = [
    "DISCRIMINANT_KINDS",
    "IR",
    "ChildrenArm",
    "ChildrenMode",
    "ChildrenPlan",
    "ChildStep",
    "ChildStepKind",
    "FieldIR",
    "IdentityRule",
    "ImportDef",
    "KindIR",
    "ReferenceResolver",
    "SchemaAnalyzer",
    "SpanRule",
    "SpanSource",
    "VariantIR",
    "VariantShape",
    "ViewBuilder",
    "ViewKindIR",
]
