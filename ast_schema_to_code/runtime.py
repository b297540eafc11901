"""
Runtime support for modules produced by ast_schema_to_code.

Generated AST modules import their position, separator-list and identity
types from here. The walkers at the bottom of the module work on any
generated ``Node`` view: they only rely on ``Node.children()`` and
``Node.span``.
"""

from __future__ import annotations

import itertools
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")

type NodeId = int


@dataclass(frozen=True, order=True)
class Span:
    """Half-open byte range ``[start, end)`` in the parsed source."""

    start: int = 0
    end: int = 0

    def is_empty(self) -> bool:
        return self.start == self.end

    def contains_offset(self, offset: int) -> bool:
        return self.start <= offset <= self.end

    def is_before_offset(self, offset: int) -> bool:
        return self.end < offset

    def is_after_offset(self, offset: int) -> bool:
        return self.start > offset

    def join(self, other: Span) -> Span:
        """Smallest span covering both spans. Empty spans are ignored."""
        if self.is_empty():
            return other
        if other.is_empty():
            return self
        return Span(min(self.start, other.start), max(self.end, other.end))


@dataclass
class SeparatedList(Generic[T]):
    """Ordered elements together with the separators found between them.

    ``separators`` holds one span per separator token (commas for an
    argument list); it is trivia and never part of the element sequence.
    """

    inner: list[T] = field(default_factory=list)
    separators: list[Span] = field(default_factory=list)

    def __iter__(self) -> Iterator[T]:
        return iter(self.inner)

    def __len__(self) -> int:
        return len(self.inner)

    def __getitem__(self, index: int) -> T:
        return self.inner[index]


class NodeIdGenerator:
    """Monotonic identity source for code that builds AST nodes.

    Zero is reserved: it is the identity reported by variants that carry
    no identity of their own.
    """

    def __init__(self, start: int = 1):
        if start < 1:
            raise ValueError("node identities start at 1; 0 is the no-identity sentinel")
        self._counter = itertools.count(start)

    def next_id(self) -> NodeId:
        return next(self._counter)

    __call__ = next_id


class VisitorResult(Enum):
    """What a visitor wants to happen after entering a node."""

    CONTINUE = "continue"
    SKIP_CHILDREN = "skip_children"
    STOP = "stop"


class NodeVisitor:
    """Pre-order traversal over generated ``Node`` views.

    Subclasses override ``enter``; ``ancestors`` is the path from the root
    to the parent of ``node`` and must not be mutated.
    """

    def enter(self, node: Any, ancestors: list[Any]) -> VisitorResult:
        return VisitorResult.CONTINUE

    def traverse(self, nodes: Iterable[Any]) -> None:
        ancestors: list[Any] = []
        for node in nodes:
            if self._visit(node, ancestors) is VisitorResult.STOP:
                break

    def _visit(self, node: Any, ancestors: list[Any]) -> VisitorResult:
        result = self.enter(node, ancestors)
        if result is not VisitorResult.CONTINUE:
            return result

        ancestors.append(node)
        try:
            for child in node.children():
                if self._visit(child, ancestors) is VisitorResult.STOP:
                    return VisitorResult.STOP
        finally:
            ancestors.pop()
        return result


def walk(node: Any) -> Iterator[Any]:
    """Yield ``node`` and all of its descendants in pre-order."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children()))


class NodeFinder(NodeVisitor):
    """Finds the innermost node whose span contains a byte offset."""

    def __init__(self, offset: int):
        self.offset = offset
        self.found: Any | None = None

    @classmethod
    def find_at_offset(cls, nodes: Iterable[Any], offset: int) -> Any | None:
        finder = cls(offset)
        finder.traverse(nodes)
        return finder.found

    def enter(self, node: Any, ancestors: list[Any]) -> VisitorResult:
        span = node.span

        # Nodes without a position (discriminants, unpositioned kinds) are
        # transparent: their children may still contain the offset.
        if span.is_empty():
            return VisitorResult.CONTINUE

        # Entirely before the offset: nothing below can match.
        if span.is_before_offset(self.offset):
            return VisitorResult.SKIP_CHILDREN

        # Past the offset: siblings are in source order, so nothing later can match.
        if span.is_after_offset(self.offset):
            return VisitorResult.STOP

        if span.contains_offset(self.offset):
            self.found = node

        return VisitorResult.CONTINUE
