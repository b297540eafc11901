"""
Python code generation backend.

Generates a Python module from IR: dataclasses for the node kinds, the
identity and position accessors, and the ``Node`` view.
"""

from __future__ import annotations

from typing import Any

from ..analyzer.ir_nodes import (
    IR,
    ChildrenMode,
    ChildrenPlan,
    ChildStep,
    ChildStepKind,
    IdentityRule,
    KindIR,
    SpanRule,
    SpanSource,
    ViewKindIR,
)
from ..schema_ast.nodes import Shape
from .base import CodeBackend

INDENT = "    "


class PythonBackend(CodeBackend):
    """Python code generation backend."""

    TEMPLATE_LANG = "python"
    FILE_EXTENSION = "py"

    IDENTITY_EXPRESSIONS = {
        IdentityRule.STORED: "self.id",
        IdentityRule.SENTINEL: "0",
        IdentityRule.DELEGATE: "self.value.get_id()",
    }

    def generate(self, ir: IR) -> str:
        """Generate Python code from IR."""
        sections = [
            self.template("prefix").render(
                generation_comment=ir.generation_comment.splitlines() if self.config.add_generation_comment else [],
                imports=ir.imports,
            )
        ]

        # Per-kind definitions, in declaration order
        for kind in ir.kinds:
            sections.append(self._render_kind(kind))

        # Global view, after every kind it refers to
        sections.append(self.template("view").render(self._prepare_view_context(ir.view)))

        return "\n\n\n".join(section.strip("\n") for section in sections if section.strip()) + "\n"

    def _render_kind(self, kind: KindIR) -> str:
        if kind.shape is Shape.ALIAS:
            return self.template("alias").render(kind=kind)
        if kind.shape is Shape.PRODUCT:
            return self.template("product").render(
                kind=kind,
                decorator=self._decorator(kind.dataclass_options),
                span_expression=self._span_expression(kind.span) if kind.span else None,
            )
        return self.template("sum").render(
            kind=kind,
            decorator=self._decorator(kind.dataclass_options),
            variants=[
                {
                    "class_name": variant.class_name,
                    "fields": variant.fields,
                    "identity": self.IDENTITY_EXPRESSIONS[variant.identity] if variant.identity else None,
                    "span": self._span_expression(variant.span) if variant.span else None,
                }
                for variant in kind.variants
            ],
        )

    def _prepare_view_context(self, view: list[ViewKindIR]) -> dict[str, Any]:
        with_children = [k for k in view if k.children is not None]
        leaves = [k for k in view if k.children is None]
        return {
            "view": view,
            "node_value": " | ".join(k.display_name for k in view) or "object",
            "with_children": [
                {"kind": k, "lines": self._children_lines(k, k.children)} for k in with_children
            ],
            "leaves_pattern": " | ".join(f"NodeKind.{k.display_name}" for k in leaves),
        }

    def _children_lines(self, kind: ViewKindIR, plan: ChildrenPlan) -> list[str]:
        """Body lines of a kind's children helper, relative to the function body."""
        if plan.mode is ChildrenMode.FIELDS:
            lines = [line for step in plan.steps for line in self._step_lines(step)]
            return lines or ["pass"]

        lines = ["match node:"]
        for arm in plan.arms:
            lines.append(f"{INDENT}case {arm.class_name}():")
            body = [line for step in arm.steps for line in self._step_lines(step)] or ["pass"]
            lines.extend(f"{INDENT * 2}{line}" for line in body)
        lines.append(f"{INDENT}case _:")
        lines.append(f'{INDENT * 2}raise TypeError(f"{{type(node).__name__}} is not a variant of {kind.display_name}")')
        return lines

    def _step_lines(self, step: ChildStep) -> list[str]:
        """Container rule: one child, every element, or every element ignoring separators."""
        access = f"node.{step.attribute}"
        convert = f"node_from_{step.target}"

        if step.kind is ChildStepKind.SEQUENCE:
            statement = f"children.extend({convert}(x) for x in {access})"
        elif step.kind is ChildStepKind.SEPARATED:
            statement = f"children.extend({convert}(x) for x in {access}.inner)"
        else:
            statement = f"children.append({convert}({access}))"

        if step.optional:
            return [f"if {access} is not None:", f"{INDENT}{statement}"]
        return [statement]

    @staticmethod
    def _span_expression(source: SpanSource) -> str:
        if source.rule is SpanRule.STORED:
            return f"self.{source.attribute}"
        if source.rule is SpanRule.FORWARD:
            return f"self.{source.attribute}.get_span()"
        return "Span()"

    @staticmethod
    def _decorator(options: dict[str, bool]) -> str:
        if not options:
            return "@dataclass"
        arguments = ", ".join(f"{name}={value}" for name, value in options.items())
        return f"@dataclass({arguments})"
