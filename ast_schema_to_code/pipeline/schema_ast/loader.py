"""
Schema resource loader.

Reads a YAML or JSON schema file into an ordered mapping. Duplicate keys
are rejected instead of silently keeping the last one, since every node
name must be unique.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from ..errors import SchemaLoadError

YAML_SUFFIXES = {".yaml", ".yml"}
JSON_SUFFIXES = {".json"}


class UniqueKeyLoader(yaml.SafeLoader):
    """SafeLoader that refuses mappings with repeated keys."""

    def construct_mapping(self, node, deep=False):
        seen = set()
        for key_node, _ in node.value:
            key = self.construct_object(key_node, deep=deep)
            if key in seen:
                raise yaml.constructor.ConstructorError(
                    "while constructing a mapping",
                    node.start_mark,
                    f"found duplicate key {key!r}",
                    key_node.start_mark,
                )
            seen.add(key)
        return super().construct_mapping(node, deep=deep)


def _reject_duplicate_pairs(pairs: list[tuple[str, Any]]) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for key, value in pairs:
        if key in result:
            raise SchemaLoadError(f"Duplicate key {key!r} in JSON schema")
        result[key] = value
    return result


def load_schema_text(text: str, fmt: str, source: str = "<schema>") -> dict[str, Any]:
    """
    Parse schema text.

    Args:
        text: The schema document
        fmt: "yaml" or "json"
        source: Where the text came from (for messages)

    Returns:
        The ordered top-level mapping

    Raises:
        SchemaLoadError: If the text cannot be parsed or is not a mapping
    """
    if fmt == "yaml":
        try:
            data = yaml.load(text, Loader=UniqueKeyLoader)
        except yaml.YAMLError as e:
            raise SchemaLoadError(f"YAML parse error in {source}: {e}") from e
    elif fmt == "json":
        try:
            data = json.loads(text, object_pairs_hook=_reject_duplicate_pairs)
        except json.JSONDecodeError as e:
            raise SchemaLoadError(f"JSON parse error in {source}: {e}") from e
    else:
        raise SchemaLoadError(f"Unsupported schema format {fmt!r} for {source}")

    if data is None:
        raise SchemaLoadError(f"Schema {source} is empty")
    if not isinstance(data, dict):
        raise SchemaLoadError(f"Schema {source} must be a mapping of node names, got {type(data).__name__}")
    return data


def load_schema_file(path: str | Path) -> dict[str, Any]:
    """
    Read a schema file, choosing the format from its suffix.

    Raises:
        SchemaLoadError: If the file is missing, has an unknown suffix or cannot be parsed
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix in YAML_SUFFIXES:
        fmt = "yaml"
    elif suffix in JSON_SUFFIXES:
        fmt = "json"
    else:
        raise SchemaLoadError(f"Unsupported schema file type '{suffix}' for {path} (expected .yaml, .yml or .json)")

    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise SchemaLoadError(f"Schema file not found: {path}") from e
    except OSError as e:
        raise SchemaLoadError(f"Cannot read schema file {path}: {e}") from e

    return load_schema_text(text, fmt, source=path.name)
