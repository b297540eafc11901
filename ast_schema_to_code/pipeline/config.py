"""
Configuration for the code generator pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass, field

# Schema primitive names mapped to Python annotations. Python builtins map
# to themselves and need no entry.
DEFAULT_TYPE_MAP: dict[str, str] = {
    "usize": "int",
    "isize": "int",
    "u8": "int",
    "u16": "int",
    "u32": "int",
    "u64": "int",
    "i8": "int",
    "i16": "int",
    "i32": "int",
    "i64": "int",
    "f32": "float",
    "f64": "float",
    "String": "str",
    "ByteString": "bytes",
    "int": "int",
    "float": "float",
    "str": "str",
    "bytes": "bytes",
    "bool": "bool",
}


@dataclass
class OutputConfig:
    """Configuration for output file handling.

    Attributes:
        validate_before_write: Whether to parse the generated module before replacing the target
    """

    validate_before_write: bool = True


@dataclass
class FormatterConfig:
    """Configuration for post-processing formatters."""

    # Whether formatting is enabled
    enabled: bool = False

    # Line length for the formatter
    line_length: int = 100

    # Python version target (e.g., "py312", "py313")
    target_version: str = "py312"


@dataclass
class CodeGeneratorConfig:
    """Configuration options for code generation."""

    # Enabled feature names, matched against each entry's `feature` gate
    features: list[str] = field(default_factory=list)

    # Module the generated code imports Span, SeparatedList and NodeId from
    runtime_module: str = "ast_schema_to_code.runtime"

    # Schema primitive name -> Python annotation
    type_map: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_TYPE_MAP))

    # Extra type names usable in type-expressions -> module to import them from
    external_imports: dict[str, str] = field(default_factory=dict)

    # Reject sum variants that cannot produce a position instead of emitting an empty span
    strict_positions: bool = True

    # Add generation comment at top of file
    add_generation_comment: bool = True

    # Formatter configuration
    formatter: FormatterConfig = field(default_factory=FormatterConfig)

    # Output configuration
    output: OutputConfig = field(default_factory=OutputConfig)

    def is_enabled(self, gate: str | None) -> bool:
        """Evaluate a feature gate; a leading ``!`` means "only when absent"."""
        if not gate:
            return True
        if gate.startswith("!"):
            return gate[1:] not in self.features
        return gate in self.features

    @staticmethod
    def from_dict(d: dict) -> CodeGeneratorConfig:
        """Create a config from a dictionary."""
        config = CodeGeneratorConfig()
        for k, v in d.items():
            if k == "formatter" and isinstance(v, dict):
                config.formatter = FormatterConfig(**v)
            elif k == "output" and isinstance(v, dict):
                config.output = OutputConfig(**v)
            elif k == "type_map" and isinstance(v, dict):
                config.type_map = {**DEFAULT_TYPE_MAP, **v}
            elif hasattr(config, k):
                setattr(config, k, v)
        return config

    def to_dict(self) -> dict:
        """Convert config to a dictionary."""
        return {
            "features": list(self.features),
            "runtime_module": self.runtime_module,
            "type_map": dict(self.type_map),
            "external_imports": dict(self.external_imports),
            "strict_positions": self.strict_positions,
            "add_generation_comment": self.add_generation_comment,
            "formatter": {
                "enabled": self.formatter.enabled,
                "line_length": self.formatter.line_length,
                "target_version": self.formatter.target_version,
            },
            "output": {
                "validate_before_write": self.output.validate_before_write,
            },
        }
