"""
Schema parser that builds the schema model.

Phase 1 of the pipeline: turn the raw ordered mapping read from the
schema resource into NodeDef entries, without resolving references.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from typing import Any

from ...utils import is_valid_identifier
from ..errors import SchemaLoadError
from .nodes import (
    ChildRef,
    ChildrenSpec,
    FieldDef,
    NodeDef,
    SchemaModel,
    Shape,
    VariantDef,
)
from .type_parser import parse_type_expr

logger = logging.getLogger(__name__)

_CHILD_REF = re.compile(r"^(?P<qualified>self\.)?(?P<field>[A-Za-z_][A-Za-z0-9_]*)(?P<modifier>[?!])?$")


class SchemaParser:
    """Parses a raw AST schema mapping into a SchemaModel."""

    # Keys that configure an entry instead of declaring a field or variant
    RESERVED_KEYS = ("as", "derive", "node", "children", "feature", "rename")

    # Accepted values for the `as` key (all mean "sum shape")
    SUM_MARKERS = {"Enum", "enum", "sum"}

    # Attribute names the generated classes already use
    GENERATED_ATTRIBUTES = {"get_id", "get_span"}

    # Name of the synthesized identity field
    IDENTITY_FIELD = "id"

    def parse(self, raw: Mapping[str, Any], source: str = "<schema>") -> SchemaModel:
        """
        Parse a raw schema mapping.

        Args:
            raw: Ordered mapping of entry name to alias string or definition mapping
            source: Where the schema came from (for messages)

        Returns:
            SchemaModel with one NodeDef per entry, in declaration order

        Raises:
            SchemaLoadError: If an entry is malformed
        """
        if not isinstance(raw, Mapping):
            raise SchemaLoadError(f"Schema {source} must be a mapping of node names, got {type(raw).__name__}")

        model = SchemaModel(source=source)
        for name, definition in raw.items():
            if not isinstance(name, str) or not is_valid_identifier(name):
                raise SchemaLoadError(f"Invalid node name {name!r} in {source}")
            model.nodes[name] = self._parse_entry(name, definition)

        logger.debug("Parsed %d schema entries from %s", len(model), source)
        return model

    def _parse_entry(self, name: str, definition: Any) -> NodeDef:
        """Parse one schema entry."""
        if isinstance(definition, str):
            return NodeDef(
                name=name,
                shape=Shape.ALIAS,
                alias_target=parse_type_expr(definition, f"alias {name}"),
            )

        if not isinstance(definition, Mapping):
            raise SchemaLoadError(f"Entry {name} must be an alias string or a mapping, got {type(definition).__name__}")

        node = NodeDef(name=name)
        node.shape = self._parse_shape(name, definition.get("as"))
        node.derives = self._parse_derive(name, definition.get("derive"))
        node.has_own_identity = self._parse_node_flag(name, definition.get("node"))
        node.feature_gate = self._parse_feature(name, definition.get("feature"))
        node.display_name_override = self._parse_rename(name, definition.get("rename"))
        if "children" in definition:
            node.children = self._parse_children(name, definition["children"])

        members = [(key, value) for key, value in definition.items() if key not in self.RESERVED_KEYS]
        if node.shape is Shape.SUM:
            node.variants = [self._parse_variant(name, key, value) for key, value in members]
        else:
            node.fields = [self._parse_field(name, key, value) for key, value in members]
            if node.has_own_identity:
                self._check_identity_collision(name, node.fields)

        return node

    def _parse_shape(self, name: str, marker: Any) -> Shape:
        if marker is None:
            return Shape.PRODUCT
        if marker in self.SUM_MARKERS:
            return Shape.SUM
        raise SchemaLoadError(f"Entry {name}: unknown 'as' value {marker!r} (expected 'Enum')")

    def _parse_derive(self, name: str, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            items = [item.strip() for item in value.split(",")]
        elif isinstance(value, list) and all(isinstance(item, str) for item in value):
            items = [item.strip() for item in value]
        else:
            raise SchemaLoadError(f"Entry {name}: 'derive' must be a comma-separated string or a list of strings")
        return [item for item in items if item]

    def _parse_node_flag(self, name: str, value: Any) -> bool:
        if value is None:
            return True
        if not isinstance(value, bool):
            raise SchemaLoadError(f"Entry {name}: 'node' must be a boolean, got {value!r}")
        return value

    def _parse_feature(self, name: str, value: Any) -> str | None:
        if value is None:
            return None
        if not isinstance(value, str) or not value.lstrip("!"):
            raise SchemaLoadError(f"Entry {name}: 'feature' must be a non-empty feature name, got {value!r}")
        return value

    def _parse_rename(self, name: str, value: Any) -> str | None:
        if value is None:
            return None
        if not isinstance(value, str) or not is_valid_identifier(value):
            raise SchemaLoadError(f"Entry {name}: 'rename' must be a valid type name, got {value!r}")
        return value

    def _parse_children(self, name: str, value: Any) -> ChildrenSpec:
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            raise SchemaLoadError(f"Entry {name}: 'children' must be a list of field references")

        if "self" in value:
            if len(value) != 1:
                raise SchemaLoadError(f"Entry {name}: 'self' must be the only children entry")
            return ChildrenSpec(is_self=True)

        refs = []
        for raw in value:
            match = _CHILD_REF.match(raw.strip())
            if not match:
                raise SchemaLoadError(f"Entry {name}: malformed child reference {raw!r}")
            modifier = match.group("modifier")
            refs.append(
                ChildRef(
                    field=match.group("field"),
                    qualified=match.group("qualified") is not None,
                    optional=modifier == "?",
                    excluded=modifier == "!",
                    raw=raw,
                )
            )
        return ChildrenSpec(refs=refs)

    def _parse_field(self, owner: str, name: Any, value: Any) -> FieldDef:
        if not isinstance(name, str) or not is_valid_identifier(name):
            raise SchemaLoadError(f"Entry {owner}: invalid field name {name!r}")
        if name in self.GENERATED_ATTRIBUTES:
            raise SchemaLoadError(f"Entry {owner}: field name '{name}' collides with a generated accessor")
        return FieldDef(name=name, type_expr=parse_type_expr(value, f"{owner}.{name}"))

    def _parse_variant(self, owner: str, name: Any, value: Any) -> VariantDef:
        if not isinstance(name, str) or not is_valid_identifier(name):
            raise SchemaLoadError(f"Entry {owner}: invalid variant name {name!r}")
        if name == "span":
            raise SchemaLoadError(f"Entry {owner}: a sum cannot declare 'span'; positions come from its variants")

        if value is None or value == "":
            return VariantDef(name=name)
        if isinstance(value, str):
            return VariantDef(name=name, payload=parse_type_expr(value, f"{owner}::{name}"))
        if isinstance(value, Mapping):
            fields = [self._parse_field(f"{owner}::{name}", key, sub) for key, sub in value.items()]
            self._check_identity_collision(f"{owner}::{name}", fields)
            return VariantDef(name=name, fields=fields)
        raise SchemaLoadError(f"Entry {owner}: variant {name} must be empty, a type-expression or a field mapping")

    def _check_identity_collision(self, owner: str, fields: list[FieldDef]) -> None:
        for f in fields:
            if f.name == self.IDENTITY_FIELD:
                raise SchemaLoadError(f"Entry {owner}: field '{f.name}' collides with the synthesized identity field")
