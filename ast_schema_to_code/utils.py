"""
Utility functions for the AST schema to code generator.
"""

import keyword
import re

# Acronym followed by a capitalized word: "HTMLParser" -> "HTML_Parser"
_ACRONYM_BOUNDARY = re.compile(r"([A-Z]+)([A-Z][a-z])")

# Lowercase letter or digit followed by an uppercase letter: "fooBar" -> "foo_Bar"
_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def pascal_to_snake_case(text: str) -> str:
    """Convert PascalCase or camelCase text to lowercase snake_case.

    Examples:
        "EchoStatement" -> "echo_statement"
        "HTMLParser" -> "html_parser"
        "Self_" -> "self_"
        "Int64Literal" -> "int64_literal"

    Args:
        text: The text to convert

    Returns:
        snake_case string
    """
    if not text:
        return ""
    text = _ACRONYM_BOUNDARY.sub(r"\1_\2", text)
    text = _CAMEL_BOUNDARY.sub(r"\1_\2", text)
    return text.replace("-", "_").lower()


def is_valid_identifier(name: str) -> bool:
    """Check that a name can be used as a Python identifier (and is not a keyword)."""
    return bool(_IDENTIFIER.match(name)) and not keyword.iskeyword(name)
