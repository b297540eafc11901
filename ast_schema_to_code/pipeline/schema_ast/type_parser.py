"""
Parser for type-expressions.

Grammar::

    type  := IDENT [ "<" type { "," type } ">" ]

``Box``, ``Vec``, ``CommaSeparated`` and ``Option`` take exactly one
argument and become ``WrapperType``; ``Span`` is the position type;
every other name is a ``NamedType`` resolved later by the analyzer.
"""

from __future__ import annotations

import re

from ..errors import SchemaLoadError
from .nodes import POSITION_TYPE, NamedType, PositionType, TypeExpr, Wrapper, WrapperType

_TOKEN = re.compile(r"\s*(?:(?P<ident>[A-Za-z_][A-Za-z0-9_]*)|(?P<punct>[<>,]))")

_WRAPPERS = {w.value: w for w in Wrapper}


class TypeExprParser:
    """Recursive-descent parser for a single type-expression."""

    def __init__(self, text: str, context: str = ""):
        self.text = text
        self.context = context
        self.tokens = self._tokenize(text)
        self.pos = 0

    def parse(self) -> TypeExpr:
        if not self.tokens:
            self._fail("empty type-expression")
        result = self._parse_type()
        if self.pos != len(self.tokens):
            self._fail(f"unexpected '{self.tokens[self.pos]}'")
        return result

    def _tokenize(self, text: str) -> list[str]:
        tokens = []
        index = 0
        stripped = text.rstrip()
        while index < len(stripped):
            match = _TOKEN.match(stripped, index)
            if not match:
                self._fail(f"unexpected character '{stripped[index:].strip()[:1]}'")
            tokens.append(match.group("ident") or match.group("punct"))
            index = match.end()
        return tokens

    def _peek(self) -> str | None:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def _expect(self, token: str) -> None:
        if self._peek() != token:
            found = self._peek() or "end of input"
            self._fail(f"expected '{token}', found '{found}'")
        self.pos += 1

    def _parse_type(self) -> TypeExpr:
        name = self._peek()
        if name is None or name in ("<", ">", ","):
            self._fail(f"expected a type name, found '{name or 'end of input'}'")
        self.pos += 1

        args: list[TypeExpr] = []
        if self._peek() == "<":
            self.pos += 1
            args.append(self._parse_type())
            while self._peek() == ",":
                self.pos += 1
                args.append(self._parse_type())
            self._expect(">")

        if name == POSITION_TYPE:
            if args:
                self._fail(f"{POSITION_TYPE} takes no type arguments")
            return PositionType()

        if name in _WRAPPERS:
            if len(args) != 1:
                self._fail(f"{name} takes exactly one type argument")
            return WrapperType(wrapper=_WRAPPERS[name], inner=args[0])

        return NamedType(name=name, args=tuple(args))

    def _fail(self, message: str) -> None:
        where = f" in {self.context}" if self.context else ""
        raise SchemaLoadError(f"Invalid type-expression '{self.text}'{where}: {message}")


def parse_type_expr(text: str, context: str = "") -> TypeExpr:
    """Parse a type-expression string.

    Args:
        text: The type-expression, e.g. ``"Option<Box<Expression>>"``
        context: Where the expression appears (for error messages)

    Returns:
        The parsed TypeExpr

    Raises:
        SchemaLoadError: If the expression is malformed
    """
    if not isinstance(text, str):
        where = f" in {context}" if context else ""
        raise SchemaLoadError(f"Type-expression{where} must be a string, got {type(text).__name__}")
    return TypeExprParser(text, context).parse()
