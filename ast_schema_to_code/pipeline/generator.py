"""
Pipeline generator - orchestrates the phases of AST code generation.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from .analyzer import IR, SchemaAnalyzer
from .backends import PythonBackend
from .config import CodeGeneratorConfig
from .formatters import RuffFormatter
from .schema_ast import SchemaModel, SchemaParser, load_schema_file
from .writer import AtomicWriter

logger = logging.getLogger(__name__)

DEFAULT_COMMAND = "ast_schema_to_code"


class PipelineGenerator:
    """
    AST code generator from a declarative node schema.

    Phases:
    1. Parse the raw schema mapping into a SchemaModel
    2. Analyze the model: feature gates, references, identity/position
       derivation and the node view
    3. Render the IR through the jinja2 backend
    4. Optionally format the module with ruff
    5. Write it atomically (see write())
    """

    def __init__(
        self,
        schema: Mapping[str, Any] | SchemaModel,
        config: CodeGeneratorConfig | None = None,
        command: str = DEFAULT_COMMAND,
        source: str = "<schema>",
    ):
        """
        Initialize the generator.

        Args:
            schema: Raw schema mapping (as loaded from YAML/JSON) or an already parsed model
            config: Code generation configuration
            command: Command line recorded in the generation comment
            source: Name of the schema resource, used in error messages
        """
        self.schema = schema
        self.config = config or CodeGeneratorConfig()
        self.command = command
        self.source = source

        # Set by generate()
        self.model: SchemaModel | None = None
        self.ir: IR | None = None

    @classmethod
    def from_file(
        cls,
        path: str | Path,
        config: CodeGeneratorConfig | None = None,
        command: str = DEFAULT_COMMAND,
    ) -> PipelineGenerator:
        """Create a generator for a YAML or JSON schema file."""
        return cls(load_schema_file(path), config, command, source=str(path))

    def generate(self) -> str:
        """
        Generate the module source.

        Returns:
            Generated Python code

        Raises:
            AstSchemaError: If any phase rejects the schema
        """
        # Phase 1: Parse
        if isinstance(self.schema, SchemaModel):
            self.model = self.schema
        else:
            self.model = SchemaParser().parse(self.schema, self.source)

        # Phase 2: Analyze
        self.ir = SchemaAnalyzer(self.config).analyze(self.model)
        self.ir.generation_comment = self._generation_comment()

        # Phase 3: Render
        code = PythonBackend(self.config).generate(self.ir)
        logger.debug("Rendered %d lines", code.count("\n"))

        # Phase 4: Format
        if self.config.formatter.enabled:
            code = RuffFormatter().format(code, self.config.formatter)

        return code

    def write(self, output: str | Path) -> str:
        """Generate the module and atomically replace ``output`` with it."""
        code = self.generate()
        AtomicWriter().write(Path(output), code, validate=self.config.output.validate_before_write)
        logger.info("Generated %s from %s", output, self.source)
        return code

    def _generation_comment(self) -> str:
        lines = [
            f"This file is generated by {self.command}.",
            "Do not make modifications to this file directly.",
        ]
        if self.config.features:
            lines.append(f"Enabled features: {', '.join(sorted(self.config.features))}")
        return "\n".join(lines)
