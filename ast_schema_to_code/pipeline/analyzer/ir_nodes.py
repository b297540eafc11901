"""
IR (Intermediate Representation) node definitions.

These nodes represent the analyzed schema: feature gates are applied,
references are resolved, identity/position rules and children plans are
derived, and every annotation is already rendered for the backend.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from ..schema_ast.nodes import Shape


class VariantShape(str, Enum):
    """Shape of a sum variant payload."""

    UNIT = "unit"  # No payload
    POSITION = "position"  # Payload is exactly the position type
    WRAPPER = "wrapper"  # Payload wraps another type
    FIELDS = "fields"  # Named-field payload


class IdentityRule(str, Enum):
    """How an identity accessor arm obtains its value."""

    STORED = "stored"  # Returns the synthesized `id` field
    SENTINEL = "sentinel"  # Returns 0: no identity of its own
    DELEGATE = "delegate"  # Forwards to the wrapped node's get_id()


class SpanRule(str, Enum):
    """How a position accessor (or arm) obtains its value."""

    STORED = "stored"  # Returns a stored position field
    FORWARD = "forward"  # Forwards to a field's get_span()
    EMPTY = "empty"  # Returns the default empty position


@dataclass
class SpanSource:
    """Where a position comes from."""

    rule: SpanRule = SpanRule.EMPTY
    attribute: str = ""  # Field holding the position (or the positioned value)


@dataclass
class FieldIR:
    """A field of a generated dataclass."""

    name: str = ""
    annotation: str = ""


@dataclass
class VariantIR:
    """A sum variant, emitted as a dataclass subclass of the sum."""

    name: str = ""
    class_name: str = ""
    shape: VariantShape = VariantShape.UNIT
    fields: list[FieldIR] = field(default_factory=list)
    identity: IdentityRule | None = None  # None when the sum has no identity
    span: SpanSource | None = None  # None when the sum is not positioned


@dataclass
class KindIR:
    """One emitted schema entry."""

    name: str = ""  # Schema lookup key
    display_name: str = ""  # Emitted type name
    shape: Shape = Shape.PRODUCT

    # Alias target annotation (ALIAS shape only)
    alias_annotation: str = ""

    # Dataclass fields, synthesized identity first (PRODUCT shape only)
    fields: list[FieldIR] = field(default_factory=list)

    # Variants in declaration order (SUM shape only)
    variants: list[VariantIR] = field(default_factory=list)

    has_identity: bool = False
    positioned: bool = False

    # Position source of a positioned product
    span: SpanSource | None = None

    # Keyword arguments for @dataclass, from `derive`
    dataclass_options: dict[str, bool] = field(default_factory=dict)


class ChildStepKind(str, Enum):
    """How one child reference contributes to children()."""

    SINGLE = "single"  # One child
    SEQUENCE = "sequence"  # Every element of a list
    SEPARATED = "separated"  # Every element of a separator list, trivia ignored


@dataclass
class ChildStep:
    """One child reference resolved against its field type."""

    kind: ChildStepKind = ChildStepKind.SINGLE
    attribute: str = ""  # Field read from the node
    target: str = ""  # snake_case name of the child kind (selects the conversion)
    optional: bool = False  # Skipped when the field is None


@dataclass
class ChildrenArm:
    """Children steps for one sum variant."""

    class_name: str = ""
    steps: list[ChildStep] = field(default_factory=list)


class ChildrenMode(str, Enum):
    """Which branch of the children algorithm applies."""

    SELF = "self"  # The wrapped variant payload is the only child
    VARIANTS = "variants"  # Child references into variant fields
    FIELDS = "fields"  # Child references into product fields


@dataclass
class ChildrenPlan:
    """How children() is computed for one kind."""

    mode: ChildrenMode = ChildrenMode.FIELDS
    steps: list[ChildStep] = field(default_factory=list)  # FIELDS mode
    arms: list[ChildrenArm] = field(default_factory=list)  # SELF and VARIANTS modes


@dataclass
class ViewKindIR:
    """One case of the polymorphic node view."""

    display_name: str = ""
    snake_name: str = ""
    is_sum: bool = False
    positioned: bool = False

    # Classes converted to this kind (the kind itself, or every variant class of a sum)
    classes: list[str] = field(default_factory=list)

    children: ChildrenPlan | None = None


@dataclass
class ImportDef:
    """An import definition."""

    module: str = ""  # Module to import from
    names: list[str] = field(default_factory=list)  # Names to import


@dataclass
class IR:
    """The complete Intermediate Representation."""

    source: str = ""

    # Schema entries in declaration order, feature gates applied
    kinds: list[KindIR] = field(default_factory=list)

    # Participating kinds of the node view, in declaration order
    view: list[ViewKindIR] = field(default_factory=list)

    # Imports needed by the generated module
    imports: list[ImportDef] = field(default_factory=list)

    # Enabled features (for the header)
    features: list[str] = field(default_factory=list)

    # Generation comment
    generation_comment: str = ""
