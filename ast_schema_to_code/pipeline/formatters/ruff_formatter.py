"""
Ruff formatter for the generated module.

Formatting is optional: when ruff is missing or rejects the input, the
unformatted module is kept.
"""

from __future__ import annotations

import logging
import subprocess

from ..config import FormatterConfig
from .base import Formatter

logger = logging.getLogger(__name__)


class RuffFormatter(Formatter):
    """Formatter using ``ruff format`` over stdin/stdout."""

    def __init__(self):
        self._available: bool | None = None

    def is_available(self) -> bool:
        """Check if ruff is installed."""
        if self._available is None:
            try:
                result = subprocess.run(
                    ["ruff", "--version"],
                    capture_output=True,
                    text=True,
                    timeout=5,
                )
                self._available = result.returncode == 0
            except (subprocess.SubprocessError, FileNotFoundError):
                self._available = False
            if not self._available:
                logger.info("ruff is not available, generated code is left unformatted")
        return self._available

    def format(self, code: str, config: FormatterConfig) -> str:
        if not self.is_available():
            return code

        cmd = ["ruff", "format", "--stdin-filename", "generated.py"]
        if config.line_length:
            cmd.extend(["--line-length", str(config.line_length)])
        if config.target_version:
            cmd.extend(["--target-version", config.target_version])

        try:
            result = subprocess.run(
                cmd,
                input=code,
                capture_output=True,
                text=True,
                timeout=30,
            )
        except subprocess.SubprocessError as e:
            logger.warning("ruff format failed: %s", e)
            return code

        if result.returncode != 0:
            logger.warning("ruff format exited with %d: %s", result.returncode, result.stderr.strip())
            return code
        return result.stdout
