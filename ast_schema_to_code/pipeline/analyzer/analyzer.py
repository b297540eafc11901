"""
Schema analyzer that transforms the schema model to IR.

Phase 2 of the pipeline: apply feature gates, resolve references, derive
each kind's shape, identity accessor and position accessor, then hand
over to the view builder for the polymorphic node view.
"""

from __future__ import annotations

import logging

from ..config import CodeGeneratorConfig
from ..errors import EmissionInvariantViolation, SchemaLoadError, SchemaReferenceError
from ..schema_ast.nodes import (
    POSITION_TYPE,
    FieldDef,
    NodeDef,
    SchemaModel,
    Shape,
    VariantDef,
)
from .ir_nodes import (
    IR,
    FieldIR,
    IdentityRule,
    ImportDef,
    KindIR,
    SpanRule,
    SpanSource,
    VariantIR,
    VariantShape,
)
from .reference_resolver import RUNTIME_NAMES, ReferenceResolver
from .view_builder import ViewBuilder

logger = logging.getLogger(__name__)

# Discriminant-only sums: they only select among payload variants, and
# their position lives on the containing node. Excluded by name from the
# structural position heuristic.
# TODO: replace with an explicit schema key once the schema owners agree on one.
DISCRIMINANT_KINDS = frozenset({"StatementKind", "ExpressionKind"})

# Names the generated module defines or imports itself
GENERATED_NAMES = frozenset({"Node", "NodeKind", "NodeValue", "Any", "Callable", "Enum", "cast", "dataclass"})

# `derive` capability -> @dataclass keyword argument (None: accepted, no effect)
DERIVE_OPTIONS: dict[str, str | None] = {
    "Hash": "unsafe_hash",
    "unsafe_hash": "unsafe_hash",
    "PartialOrd": "order",
    "Ord": "order",
    "order": "order",
    "frozen": "frozen",
    "slots": "slots",
    "Debug": None,
    "Clone": None,
    "Copy": None,
    "PartialEq": None,
    "Eq": None,
    "Default": None,
}


class SchemaAnalyzer:
    """Analyzes the schema model and builds IR."""

    def __init__(self, config: CodeGeneratorConfig):
        """
        Initialize the analyzer.

        Args:
            config: Code generation configuration
        """
        self.config = config

        # Will be set during analysis
        self.nodes: dict[str, NodeDef] = {}
        self.resolver: ReferenceResolver | None = None
        self.positioned: set[str] = set()

    def analyze(self, model: SchemaModel) -> IR:
        """
        Analyze the schema model and build IR.

        Args:
            model: The parsed schema model

        Returns:
            IR ready for code generation

        Raises:
            SchemaReferenceError: If a reference does not resolve
            EmissionInvariantViolation: If an entry cannot be emitted consistently
        """
        disabled = self._apply_feature_gates(model)
        self.resolver = ReferenceResolver(self.nodes, disabled, self.config)

        self._check_names()
        self._check_references()
        self.positioned = self._compute_positioned()

        ir = IR(source=model.source, features=sorted(self.config.features))
        for node in self.nodes.values():
            ir.kinds.append(self._analyze_node(node))

        ir.view = ViewBuilder(self.resolver).build(ir.kinds)
        ir.imports = self._build_imports()

        logger.info(
            "Derived %d kinds (%d positioned, %d in the node view)",
            len(ir.kinds),
            len(self.positioned),
            len(ir.view),
        )
        return ir

    def _apply_feature_gates(self, model: SchemaModel) -> dict[str, str]:
        """Keep enabled entries; return the disabled ones mapped to their gate."""
        disabled: dict[str, str] = {}
        self.nodes = {}
        for node in model:
            if self.config.is_enabled(node.feature_gate):
                self.nodes[node.name] = node
            else:
                logger.debug("Entry %s excluded by feature gate '%s'", node.name, node.feature_gate)
                disabled[node.name] = node.feature_gate
        return disabled

    def _check_names(self) -> None:
        """Reject entries whose emitted names would collide in the generated module."""
        if POSITION_TYPE in self.nodes:
            raise SchemaLoadError(f"'{POSITION_TYPE}' is the built-in position type and cannot be redeclared")

        taken: dict[str, str] = {}
        for node in self.nodes.values():
            names = [node.display_name]
            if node.shape is Shape.SUM:
                names.extend(self._variant_class_name(node, v) for v in node.variants)
            for name in names:
                # NodeId is the only runtime name a schema may declare itself
                if name in GENERATED_NAMES or (name in RUNTIME_NAMES and name != "NodeId"):
                    raise EmissionInvariantViolation(f"Entry {node.name}: '{name}' is reserved in the generated module")
                if name in self.config.external_imports:
                    raise EmissionInvariantViolation(f"Entry {node.name}: '{name}' collides with an external import")
                if name in taken:
                    raise EmissionInvariantViolation(f"Entry {node.name}: type name '{name}' is already used by {taken[name]}")
                taken[name] = node.name

    def _check_references(self) -> None:
        """Resolve every type-expression of every enabled entry."""
        for node in self.nodes.values():
            if node.shape is Shape.ALIAS:
                self.resolver.check(node.alias_target, f"alias {node.name}")
                continue
            for f in node.fields:
                self.resolver.check(f.type_expr, f"{node.name}.{f.name}")
            for variant in node.variants:
                if variant.payload is not None:
                    self.resolver.check(variant.payload, f"{node.name}::{variant.name}")
                for f in variant.fields or []:
                    self.resolver.check(f.type_expr, f"{node.name}::{variant.name}.{f.name}")

        # Surface alias cycles before anything expands them
        for node in self.nodes.values():
            if node.shape is Shape.ALIAS:
                self.resolver.resolve_alias(node.alias_target)

    # ------------------------------------------------------------------
    # Position derivation
    # ------------------------------------------------------------------

    def _compute_positioned(self) -> set[str]:
        """
        Compute the positioned kinds as a least fixpoint.

        Direct evidence (a `span` field, a position-typed field or payload)
        seeds the set; forwarding through fields, variant fields and wrapper
        variants that hold positioned kinds then propagates it.
        """
        candidates = [
            node
            for node in self.nodes.values()
            if node.shape is not Shape.ALIAS
            and node.has_own_identity
            and not (node.shape is Shape.SUM and node.name in DISCRIMINANT_KINDS)
        ]

        positioned = {node.name for node in candidates if self._has_direct_position(node)}
        changed = True
        while changed:
            changed = False
            for node in candidates:
                if node.name not in positioned and self._forwards_position(node, positioned):
                    positioned.add(node.name)
                    changed = True
        return positioned

    def _has_direct_position(self, node: NodeDef) -> bool:
        if node.shape is Shape.PRODUCT:
            if node.get_field("span") is not None:
                return True
            return any(self.resolver.is_position(f.type_expr) for f in node.fields)

        for variant in node.variants:
            if variant.payload is not None and self.resolver.is_position(variant.payload):
                return True
            if variant.fields is not None and self._position_field(variant.fields) is not None:
                return True
        return False

    def _forwards_position(self, node: NodeDef, positioned: set[str]) -> bool:
        if node.shape is Shape.PRODUCT:
            return self._forwarding_field(node.fields, positioned) is not None
        for variant in node.variants:
            if variant.payload is not None and self._wraps_positioned(variant.payload, positioned):
                return True
            if variant.fields is not None and self._forwarding_field(variant.fields, positioned) is not None:
                return True
        return False

    def _wraps_positioned(self, type_expr, positioned: set[str]) -> bool:
        target = self.resolver.referenced_node(type_expr)
        return target is not None and target.name in positioned

    def _position_field(self, fields: list[FieldDef]) -> FieldDef | None:
        """The stored position of a field list: `span` first, else the first position-typed field."""
        for f in fields:
            if f.name == "span" and self.resolver.is_position(f.type_expr):
                return f
        for f in fields:
            if self.resolver.is_position(f.type_expr):
                return f
        return None

    def _forwarding_field(self, fields: list[FieldDef], positioned: set[str]) -> FieldDef | None:
        """The first plain or boxed field holding a positioned kind."""
        for f in fields:
            if self._wraps_positioned(f.type_expr, positioned):
                return f
        return None

    def _product_span(self, node: NodeDef) -> SpanSource:
        span_field = node.get_field("span")
        if span_field is not None and not self.resolver.is_position(span_field.type_expr):
            raise EmissionInvariantViolation(
                f"Entry {node.name}: field 'span' must be of type {POSITION_TYPE}, got {span_field.type_expr}"
            )

        stored = self._position_field(node.fields)
        if stored is not None:
            return SpanSource(rule=SpanRule.STORED, attribute=stored.name)

        forwarded = self._forwarding_field(node.fields, self.positioned)
        if forwarded is None:
            raise EmissionInvariantViolation(f"Entry {node.name}: positioned kind has no position source")
        return SpanSource(rule=SpanRule.FORWARD, attribute=forwarded.name)

    def _variant_span(self, node: NodeDef, variant: VariantDef, shape: VariantShape) -> SpanSource:
        if shape is VariantShape.UNIT:
            return SpanSource(rule=SpanRule.EMPTY)
        if shape is VariantShape.POSITION:
            return SpanSource(rule=SpanRule.STORED, attribute="value")
        if shape is VariantShape.FIELDS:
            stored = self._position_field(variant.fields)
            if stored is not None:
                return SpanSource(rule=SpanRule.STORED, attribute=stored.name)
            forwarded = self._forwarding_field(variant.fields, self.positioned)
            if forwarded is not None:
                return SpanSource(rule=SpanRule.FORWARD, attribute=forwarded.name)
        elif self._wraps_positioned(variant.payload, self.positioned):
            return SpanSource(rule=SpanRule.FORWARD, attribute="value")

        if self.config.strict_positions:
            raise EmissionInvariantViolation(
                f"Entry {node.name}: variant {variant.name} cannot produce a position "
                "(add a span, or disable strict_positions to emit an empty one)"
            )
        logger.warning("Entry %s: variant %s falls back to an empty position", node.name, variant.name)
        return SpanSource(rule=SpanRule.EMPTY)

    # ------------------------------------------------------------------
    # Per-kind derivation
    # ------------------------------------------------------------------

    def _analyze_node(self, node: NodeDef) -> KindIR:
        kind = KindIR(
            name=node.name,
            display_name=node.display_name,
            shape=node.shape,
        )

        if node.shape is Shape.ALIAS:
            kind.alias_annotation = self.resolver.annotation(node.alias_target)
            return kind

        kind.has_identity = node.has_own_identity
        kind.positioned = node.name in self.positioned
        kind.dataclass_options = self._dataclass_options(node)

        if node.shape is Shape.PRODUCT:
            if kind.has_identity:
                kind.fields.append(FieldIR(name="id", annotation="NodeId"))
            kind.fields.extend(self._field_irs(node.fields))
            if kind.positioned:
                kind.span = self._product_span(node)
        else:
            kind.variants = [self._analyze_variant(node, kind, variant) for variant in node.variants]

        logger.debug(
            "Entry %s: %s, identity=%s, positioned=%s",
            node.name,
            node.shape.value,
            kind.has_identity,
            kind.positioned,
        )
        return kind

    def _analyze_variant(self, node: NodeDef, kind: KindIR, variant: VariantDef) -> VariantIR:
        shape = self.variant_shape(variant)
        result = VariantIR(
            name=variant.name,
            class_name=self._variant_class_name(node, variant),
            shape=shape,
        )

        if shape is VariantShape.FIELDS:
            if kind.has_identity:
                result.fields.append(FieldIR(name="id", annotation="NodeId"))
            result.fields.extend(self._field_irs(variant.fields))
        elif shape is not VariantShape.UNIT:
            result.fields.append(FieldIR(name="value", annotation=self.resolver.annotation(variant.payload)))

        if kind.has_identity:
            result.identity = self._variant_identity(node, variant, shape)
        if kind.positioned:
            result.span = self._variant_span(node, variant, shape)
        return result

    def variant_shape(self, variant: VariantDef) -> VariantShape:
        if variant.is_unit:
            return VariantShape.UNIT
        if variant.fields is not None:
            return VariantShape.FIELDS
        if self.resolver.is_position(variant.payload):
            return VariantShape.POSITION
        return VariantShape.WRAPPER

    def _variant_identity(self, node: NodeDef, variant: VariantDef, shape: VariantShape) -> IdentityRule:
        """Three-way identity dispatch; every shape maps to exactly one rule."""
        if shape in (VariantShape.UNIT, VariantShape.POSITION):
            return IdentityRule.SENTINEL
        if shape is VariantShape.FIELDS:
            return IdentityRule.STORED

        target = self.resolver.referenced_node(variant.payload)
        if target is None:
            raise EmissionInvariantViolation(
                f"Entry {node.name}: variant {variant.name} wraps {variant.payload}, which has no identity to delegate to"
            )
        if not target.has_own_identity:
            raise SchemaReferenceError(
                f"Entry {node.name}: variant {variant.name} delegates identity to {target.name}, "
                "which is declared with node: false"
            )
        return IdentityRule.DELEGATE

    def _field_irs(self, fields: list[FieldDef]) -> list[FieldIR]:
        return [FieldIR(name=f.name, annotation=self.resolver.annotation(f.type_expr)) for f in fields]

    def _dataclass_options(self, node: NodeDef) -> dict[str, bool]:
        options: dict[str, bool] = {}
        for capability in node.derives:
            if capability not in DERIVE_OPTIONS:
                raise SchemaLoadError(f"Entry {node.name}: unknown derive capability '{capability}'")
            option = DERIVE_OPTIONS[capability]
            if option is not None:
                options[option] = True
        return dict(sorted(options.items()))

    @staticmethod
    def _variant_class_name(node: NodeDef, variant: VariantDef) -> str:
        return f"{node.display_name}{variant.name}"

    def _build_imports(self) -> list[ImportDef]:
        # Span and NodeId type the node view itself, so they are always needed
        runtime = {"Span", "NodeId"} | self.resolver.used_runtime_names
        runtime -= set(self.nodes)

        imports = [ImportDef(module=self.config.runtime_module, names=sorted(runtime))]

        by_module: dict[str, list[str]] = {}
        for name in sorted(self.resolver.used_external_names):
            by_module.setdefault(self.config.external_imports[name], []).append(name)
        for module in sorted(by_module):
            imports.append(ImportDef(module=module, names=by_module[module]))
        return imports
