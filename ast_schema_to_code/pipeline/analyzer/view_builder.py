"""
Builder for the polymorphic node view.

Decides which kinds participate in the closed ``NodeKind`` union, derives
their canonical snake_case names, and turns each children spec into a
ChildrenPlan following the three-branch children algorithm.
"""

from __future__ import annotations

import logging

from ...utils import pascal_to_snake_case
from ..errors import EmissionInvariantViolation, SchemaReferenceError
from ..schema_ast.nodes import ChildRef, FieldDef, NodeDef, Shape, TypeExpr, Wrapper, WrapperType
from .ir_nodes import (
    ChildrenArm,
    ChildrenMode,
    ChildrenPlan,
    ChildStep,
    ChildStepKind,
    KindIR,
    VariantShape,
    ViewKindIR,
)
from .reference_resolver import ReferenceResolver

logger = logging.getLogger(__name__)


class ViewBuilder:
    """Builds the ViewKindIR list from analyzed kinds."""

    def __init__(self, resolver: ReferenceResolver):
        self.resolver = resolver
        self.participants: dict[str, ViewKindIR] = {}

    def build(self, kinds: list[KindIR]) -> list[ViewKindIR]:
        """
        Build the node view.

        Args:
            kinds: Analyzed kinds in declaration order

        Returns:
            One ViewKindIR per participating kind, in declaration order
        """
        snake_names: dict[str, str] = {}
        for kind in kinds:
            node = self.resolver.get_node(kind.name)
            if not self.participates(node):
                if node.children is not None:
                    raise EmissionInvariantViolation(
                        f"Entry {node.name}: declares children but is excluded from the node view (node: false)"
                    )
                continue

            snake = pascal_to_snake_case(kind.display_name)
            if snake in snake_names:
                raise EmissionInvariantViolation(
                    f"Entry {node.name}: accessor name '{snake}' collides with {snake_names[snake]}"
                )
            snake_names[snake] = node.name

            if kind.shape is Shape.SUM:
                classes = [variant.class_name for variant in kind.variants]
            else:
                classes = [kind.display_name]

            self.participants[node.name] = ViewKindIR(
                display_name=kind.display_name,
                snake_name=snake,
                is_sum=kind.shape is Shape.SUM,
                positioned=kind.positioned,
                classes=classes,
            )

        # Children reference other participants, so plans are built once all are known
        for kind in kinds:
            view_kind = self.participants.get(kind.name)
            node = self.resolver.get_node(kind.name)
            if view_kind is not None and node.children is not None:
                view_kind.children = self._children_plan(node, kind)

        logger.debug("Node view has %d kinds", len(self.participants))
        return list(self.participants.values())

    @staticmethod
    def participates(node: NodeDef) -> bool:
        """Aliases and `node: false` entries stay out of the view."""
        return node.shape is not Shape.ALIAS and node.has_own_identity

    def _children_plan(self, node: NodeDef, kind: KindIR) -> ChildrenPlan:
        spec = node.children

        if spec.is_self:
            if node.shape is not Shape.SUM:
                raise EmissionInvariantViolation(f"Entry {node.name}: 'children: [self]' is only legal on sum kinds")
            return self._self_plan(node, kind)

        qualified = [ref for ref in spec.refs if ref.qualified]
        if node.shape is Shape.SUM:
            if len(qualified) != len(spec.refs):
                raise EmissionInvariantViolation(
                    f"Entry {node.name}: children of a sum kind must reference variant fields as 'self.<field>'"
                )
            return self._variants_plan(node, kind)

        if qualified:
            raise EmissionInvariantViolation(
                f"Entry {node.name}: '{qualified[0].raw}' refers to a variant field, but {node.name} is not a sum kind"
            )
        return self._fields_plan(node)

    def _self_plan(self, node: NodeDef, kind: KindIR) -> ChildrenPlan:
        plan = ChildrenPlan(mode=ChildrenMode.SELF)
        for variant_def, variant in zip(node.variants, kind.variants, strict=True):
            arm = ChildrenArm(class_name=variant.class_name)
            if variant.shape is VariantShape.FIELDS:
                raise EmissionInvariantViolation(
                    f"Entry {node.name}: 'children: [self]' requires variants that wrap a child value, "
                    f"but {variant.name} has named fields"
                )
            if variant.shape is VariantShape.WRAPPER:
                target = self._element_kind(node, f"variant {variant.name}", variant_def.payload)
                arm.steps.append(ChildStep(kind=ChildStepKind.SINGLE, attribute="value", target=target))
            plan.arms.append(arm)
        return plan

    def _variants_plan(self, node: NodeDef, kind: KindIR) -> ChildrenPlan:
        refs = node.children.refs
        for ref in refs:
            if not any(v.get_field(ref.field) is not None for v in node.variants):
                raise SchemaReferenceError(f"Entry {node.name}: child reference '{ref.raw}' matches no variant field")

        plan = ChildrenPlan(mode=ChildrenMode.VARIANTS)
        for variant_def, variant in zip(node.variants, kind.variants, strict=True):
            arm = ChildrenArm(class_name=variant.class_name)
            for ref in refs:
                f = variant_def.get_field(ref.field)
                if f is not None and not ref.excluded:
                    arm.steps.append(self._child_step(node, ref, f))
            plan.arms.append(arm)
        return plan

    def _fields_plan(self, node: NodeDef) -> ChildrenPlan:
        plan = ChildrenPlan(mode=ChildrenMode.FIELDS)
        for ref in node.children.refs:
            f = node.get_field(ref.field)
            if f is None:
                raise SchemaReferenceError(f"Entry {node.name}: child reference '{ref.raw}' matches no declared field")
            if not ref.excluded:
                plan.steps.append(self._child_step(node, ref, f))
        return plan

    def _child_step(self, node: NodeDef, ref: ChildRef, f: FieldDef) -> ChildStep:
        """Apply the optional modifier, then the container rule, to one child field."""
        context = f"field '{f.name}'"
        type_expr = self.resolver.resolve_alias(f.type_expr)

        is_option = isinstance(type_expr, WrapperType) and type_expr.wrapper is Wrapper.OPTION
        if is_option and not ref.optional:
            raise EmissionInvariantViolation(f"Entry {node.name}: {context} is optional; reference it as '{f.name}?'")
        if ref.optional and not is_option:
            raise EmissionInvariantViolation(f"Entry {node.name}: '{ref.raw}' marks {context} optional, but it is not an Option")
        if is_option:
            type_expr = self.resolver.resolve_alias(type_expr.inner)

        if isinstance(type_expr, WrapperType) and type_expr.wrapper is Wrapper.VEC:
            step_kind = ChildStepKind.SEQUENCE
            element = type_expr.inner
        elif isinstance(type_expr, WrapperType) and type_expr.wrapper is Wrapper.SEPARATED:
            step_kind = ChildStepKind.SEPARATED
            element = type_expr.inner
        else:
            step_kind = ChildStepKind.SINGLE
            element = type_expr

        return ChildStep(
            kind=step_kind,
            attribute=f.name,
            target=self._element_kind(node, context, element),
            optional=is_option,
        )

    def _element_kind(self, node: NodeDef, context: str, type_expr: TypeExpr) -> str:
        """Snake name of the participating kind a child value converts to."""
        target = self.resolver.referenced_node(type_expr)
        if target is None or target.name not in self.participants:
            raise EmissionInvariantViolation(
                f"Entry {node.name}: {context} of type {type_expr} does not resolve to a node kind"
            )
        return self.participants[target.name].snake_name
