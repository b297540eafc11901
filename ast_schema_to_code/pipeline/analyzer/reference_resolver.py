"""
Reference resolver for type-expressions.

Resolves the names used inside type-expressions to schema entries,
primitives, runtime types or configured external types, expands aliases,
and renders the Python annotation for each expression.
"""

from __future__ import annotations

from ..config import CodeGeneratorConfig
from ..errors import SchemaReferenceError
from ..schema_ast.nodes import (
    NamedType,
    NodeDef,
    PositionType,
    Shape,
    TypeExpr,
    Wrapper,
    WrapperType,
)

# Names the runtime module provides to generated code
RUNTIME_NAMES = ("NodeId", "SeparatedList", "Span")


class ReferenceResolver:
    """Resolves type-expression references against the enabled schema entries."""

    def __init__(
        self,
        nodes: dict[str, NodeDef],
        disabled: dict[str, str],
        config: CodeGeneratorConfig,
    ):
        """
        Initialize the resolver.

        Args:
            nodes: Enabled schema entries by lookup key, in declaration order
            disabled: Entries removed by a feature gate, mapped to their gate
            config: Code generation configuration
        """
        self.nodes = nodes
        self.disabled = disabled
        self.config = config

        # Runtime and external names actually referenced, for import generation
        self.used_runtime_names: set[str] = set()
        self.used_external_names: set[str] = set()

    def get_node(self, name: str) -> NodeDef | None:
        return self.nodes.get(name)

    def check(self, type_expr: TypeExpr, context: str) -> None:
        """
        Verify that every name in a type-expression resolves.

        Raises:
            SchemaReferenceError: If a name is undeclared or disabled by a feature gate
        """
        if isinstance(type_expr, PositionType):
            return
        if isinstance(type_expr, WrapperType):
            if type_expr.wrapper is Wrapper.SEPARATED:
                self.used_runtime_names.add("SeparatedList")
            self.check(type_expr.inner, context)
            return

        if not isinstance(type_expr, NamedType):
            raise SchemaReferenceError(f"{context}: unsupported type-expression {type_expr!r}")
        name = type_expr.name
        if name in self.nodes:
            if type_expr.args:
                raise SchemaReferenceError(f"{context}: node {name} takes no type arguments")
            return
        if name in self.disabled:
            raise SchemaReferenceError(
                f"{context}: refers to {name}, which is disabled by feature gate '{self.disabled[name]}'"
            )
        if name in self.config.external_imports:
            self.used_external_names.add(name)
        elif name == "NodeId":
            self.used_runtime_names.add(name)
        elif name not in self.config.type_map:
            raise SchemaReferenceError(f"{context}: undeclared type '{name}'")
        elif type_expr.args:
            raise SchemaReferenceError(f"{context}: primitive {name} takes no type arguments")

        for arg in type_expr.args:
            self.check(arg, context)

    def resolve_alias(self, type_expr: TypeExpr) -> TypeExpr:
        """Expand alias references until the expression is not an alias."""
        seen: list[str] = []
        while isinstance(type_expr, NamedType):
            node = self.nodes.get(type_expr.name)
            if node is None or node.shape is not Shape.ALIAS:
                break
            if node.name in seen:
                chain = " -> ".join([*seen, node.name])
                raise SchemaReferenceError(f"Alias cycle: {chain}")
            seen.append(node.name)
            type_expr = node.alias_target
        return type_expr

    def is_position(self, type_expr: TypeExpr) -> bool:
        """Whether the expression is exactly the position type (through aliases)."""
        return isinstance(self.resolve_alias(type_expr), PositionType)

    def referenced_node(self, type_expr: TypeExpr) -> NodeDef | None:
        """
        The structured node a value of this type is, unwrapping aliases and one heap indirection.

        Returns None for primitives, positions, sequences and optionals.
        """
        resolved = self.resolve_alias(type_expr)
        if isinstance(resolved, WrapperType) and resolved.wrapper is Wrapper.BOX:
            resolved = self.resolve_alias(resolved.inner)
        if isinstance(resolved, NamedType):
            node = self.nodes.get(resolved.name)
            if node is not None and node.shape is not Shape.ALIAS:
                return node
        return None

    def annotation(self, type_expr: TypeExpr) -> str:
        """Render a type-expression as a Python annotation."""
        if isinstance(type_expr, PositionType):
            return "Span"
        if isinstance(type_expr, WrapperType):
            inner = self.annotation(type_expr.inner)
            if type_expr.wrapper is Wrapper.BOX:
                return inner
            if type_expr.wrapper is Wrapper.VEC:
                return f"list[{inner}]"
            if type_expr.wrapper is Wrapper.SEPARATED:
                return f"SeparatedList[{inner}]"
            return f"{inner} | None"

        if not isinstance(type_expr, NamedType):
            raise TypeError(f"Cannot render {type(type_expr).__name__} as an annotation")
        node = self.nodes.get(type_expr.name)
        if node is not None:
            return node.display_name
        if type_expr.name in self.config.external_imports or type_expr.name == "NodeId":
            base = type_expr.name
        else:
            base = self.config.type_map[type_expr.name]
        if type_expr.args:
            return f"{base}[{', '.join(self.annotation(a) for a in type_expr.args)}]"
        return base
