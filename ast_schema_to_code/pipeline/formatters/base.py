"""
Base class for code formatters.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..config import FormatterConfig


class Formatter(ABC):
    """Abstract base class for code formatters."""

    @abstractmethod
    def format(self, code: str, config: FormatterConfig) -> str:
        """
        Format the given code.

        Args:
            code: The generated module source
            config: Formatter configuration

        Returns:
            Formatted code, or ``code`` unchanged when formatting is not possible
        """

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the formatter can be used."""
