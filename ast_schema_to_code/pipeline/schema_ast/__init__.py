"""
Schema model module.

Contains the schema node definitions, the type-expression parser, the
entry parser and the resource loader.
"""

from __future__ import annotations

from .loader import load_schema_file, load_schema_text
from .nodes import (
    POSITION_TYPE,
    ChildRef,
    ChildrenSpec,
    FieldDef,
    NamedType,
    NodeDef,
    PositionType,
    SchemaModel,
    Shape,
    TypeExpr,
    VariantDef,
    Wrapper,
    WrapperType,
)
from .parser import SchemaParser
from .type_parser import parse_type_expr

__all__ = [
    "POSITION_TYPE",
    "ChildRef",
    "ChildrenSpec",
    "FieldDef",
    "NamedType",
    "NodeDef",
    "PositionType",
    "SchemaModel",
    "Shape",
    "TypeExpr",
    "VariantDef",
    "Wrapper",
    "WrapperType",
    "SchemaParser",
    "parse_type_expr",
    "load_schema_file",
    "load_schema_text",
]
