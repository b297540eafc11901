"""
Schema model node definitions.

These nodes represent the parsed AST schema before any reference
resolution, feature-gate evaluation or derivation. Declaration order is
significant everywhere: it is the emission order and the order of every
generated dispatch table.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

# Literal name of the position type in type-expressions
POSITION_TYPE = "Span"


class Shape(str, Enum):
    """Shape of a schema entry."""

    ALIAS = "alias"  # Transparent alias for a type-expression
    PRODUCT = "product"  # Aggregate of named fields
    SUM = "sum"  # Discriminated choice among variants


class Wrapper(str, Enum):
    """Container wrappers recognized in type-expressions."""

    BOX = "Box"  # Heap indirection, breaks recursive type cycles
    VEC = "Vec"  # Ordered sequence
    SEPARATED = "CommaSeparated"  # Ordered sequence carrying separator trivia
    OPTION = "Option"  # Optional value


@dataclass(frozen=True)
class TypeExpr:
    """Base class for type-expressions."""


@dataclass(frozen=True)
class PositionType(TypeExpr):
    """The literal position type."""

    def __str__(self) -> str:
        return POSITION_TYPE


@dataclass(frozen=True)
class NamedType(TypeExpr):
    """A primitive, external or node reference, with optional generic arguments."""

    name: str = ""
    args: tuple[TypeExpr, ...] = ()

    def __str__(self) -> str:
        if not self.args:
            return self.name
        return f"{self.name}<{', '.join(str(a) for a in self.args)}>"


@dataclass(frozen=True)
class WrapperType(TypeExpr):
    """A container wrapper around exactly one inner type."""

    wrapper: Wrapper = Wrapper.BOX
    inner: TypeExpr = field(default_factory=PositionType)

    def __str__(self) -> str:
        return f"{self.wrapper.value}<{self.inner}>"


@dataclass
class FieldDef:
    """A named field of a product node or of a sum variant."""

    name: str = ""
    type_expr: TypeExpr = field(default_factory=PositionType)


@dataclass
class VariantDef:
    """A variant of a sum node.

    Exactly one of ``payload`` and ``fields`` is set for non-unit variants;
    both are empty for a unit variant.
    """

    name: str = ""
    payload: TypeExpr | None = None
    fields: list[FieldDef] | None = None

    @property
    def is_unit(self) -> bool:
        return self.payload is None and self.fields is None

    def get_field(self, name: str) -> FieldDef | None:
        for f in self.fields or []:
            if f.name == name:
                return f
        return None


@dataclass
class ChildRef:
    """One entry of a children spec: ``[self.]field[?|!]``."""

    field: str = ""
    qualified: bool = False  # "self." prefix: refers to a field of the sum's variants
    optional: bool = False  # "?": skipped when absent
    excluded: bool = False  # "!": kept for other derivations, never traversed
    raw: str = ""


@dataclass
class ChildrenSpec:
    """How the structural children of a node are computed."""

    is_self: bool = False  # The variants themselves are the children
    refs: list[ChildRef] = field(default_factory=list)


@dataclass
class NodeDef:
    """One schema entry."""

    name: str = ""  # Lookup key, stable even when renamed
    shape: Shape = Shape.PRODUCT

    # Alias target (ALIAS shape only)
    alias_target: TypeExpr | None = None

    # Declared fields in order (PRODUCT shape only)
    fields: list[FieldDef] = field(default_factory=list)

    # Declared variants in order (SUM shape only)
    variants: list[VariantDef] = field(default_factory=list)

    # False only when the entry says `node: false`
    has_own_identity: bool = True

    # Inclusion condition; a leading "!" means "only when the feature is absent"
    feature_gate: str | None = None

    # Emitted type name override (`rename`)
    display_name_override: str | None = None

    children: ChildrenSpec | None = None

    # Extra derivable capabilities (`derive`)
    derives: list[str] = field(default_factory=list)

    @property
    def display_name(self) -> str:
        return self.display_name_override or self.name

    def get_field(self, name: str) -> FieldDef | None:
        for f in self.fields:
            if f.name == name:
                return f
        return None


@dataclass
class SchemaModel:
    """Root of the parsed schema: an ordered mapping of entry name to definition."""

    nodes: dict[str, NodeDef] = field(default_factory=dict)

    # Where the schema came from (for messages and the generation comment)
    source: str = ""

    def __iter__(self):
        return iter(self.nodes.values())

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, name: object) -> bool:
        return name in self.nodes

    def get(self, name: str) -> NodeDef | None:
        return self.nodes.get(name)
