"""
Base class for code generation backends.

Defines the interface that all language-specific backends must implement.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

import jinja2

from ...utils import pascal_to_snake_case
from ..analyzer.ir_nodes import IR
from ..config import CodeGeneratorConfig


class CodeBackend(ABC):
    """Abstract base class for code generation backends."""

    # Template directory name
    TEMPLATE_LANG: str = ""

    # File extension
    FILE_EXTENSION: str = ""

    def __init__(self, config: CodeGeneratorConfig):
        """
        Initialize the backend.

        Args:
            config: Code generation configuration
        """
        self.config = config
        self._setup_templates()

    def _setup_templates(self) -> None:
        """Set up Jinja2 templates."""
        template_dir = Path(__file__).parent.parent.parent / "templates" / self.TEMPLATE_LANG
        self.jinja_env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(template_dir)),
            lstrip_blocks=True,
            trim_blocks=True,
            keep_trailing_newline=False,
            undefined=jinja2.StrictUndefined,
        )
        # Add custom filters
        self.jinja_env.filters["snake"] = pascal_to_snake_case

    def template(self, name: str) -> jinja2.Template:
        return self.jinja_env.get_template(f"{name}.{self.FILE_EXTENSION}.jinja2")

    @abstractmethod
    def generate(self, ir: IR) -> str:
        """
        Generate code from IR.

        Args:
            ir: The intermediate representation

        Returns:
            Generated code as a string
        """
