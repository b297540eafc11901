"""
Tests for the runtime support module used by generated code.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from ast_schema_to_code.runtime import (
    NodeFinder,
    NodeIdGenerator,
    NodeVisitor,
    SeparatedList,
    Span,
    VisitorResult,
    walk,
)


@dataclass(eq=False)
class FakeNode:
    label: str
    span: Span
    kids: list[FakeNode] = field(default_factory=list)

    def children(self):
        return list(self.kids)


@pytest.fixture
def tree():
    #  0         1         2
    #  012345678901234567890
    #  [a[]  ][b[ ][ ]] [c  ]
    return FakeNode(
        "root",
        Span(0, 20),
        [
            FakeNode("a", Span(0, 5), [FakeNode("a1", Span(1, 2))]),
            FakeNode("b", Span(6, 12), [FakeNode("b1", Span(7, 9)), FakeNode("b2", Span(10, 12))]),
            FakeNode("c", Span(14, 20)),
        ],
    )


class TestSpan:
    def test_default_is_empty(self):
        assert Span() == Span(0, 0)
        assert Span().is_empty()
        assert not Span(0, 1).is_empty()

    def test_offsets(self):
        span = Span(3, 6)
        assert span.contains_offset(3) and span.contains_offset(6)
        assert not span.contains_offset(7)
        assert span.is_before_offset(7)
        assert span.is_after_offset(2)
        assert not span.is_before_offset(6) and not span.is_after_offset(3)

    def test_join(self):
        assert Span(3, 6).join(Span(1, 4)) == Span(1, 6)
        assert Span(3, 6).join(Span()) == Span(3, 6)
        assert Span().join(Span(2, 3)) == Span(2, 3)

    def test_spans_are_ordered_and_hashable(self):
        assert sorted([Span(4, 5), Span(1, 9), Span(1, 2)]) == [Span(1, 2), Span(1, 9), Span(4, 5)]
        assert len({Span(1, 2), Span(1, 2)}) == 1


class TestSeparatedList:
    def test_iterates_elements_only(self):
        values = SeparatedList(["a", "b", "c"], [Span(1, 2), Span(3, 4)])
        assert list(values) == ["a", "b", "c"]
        assert len(values) == 3
        assert values[1] == "b"

    def test_default_is_empty(self):
        assert len(SeparatedList()) == 0
        assert SeparatedList().separators == []


class TestNodeIdGenerator:
    def test_identities_are_monotonic_and_start_after_the_sentinel(self):
        ids = NodeIdGenerator()
        assert [ids(), ids.next_id(), ids()] == [1, 2, 3]

    def test_custom_start(self):
        assert NodeIdGenerator(start=100)() == 100

    def test_zero_is_reserved(self):
        with pytest.raises(ValueError, match="0 is the no-identity sentinel"):
            NodeIdGenerator(start=0)


class RecordingVisitor(NodeVisitor):
    def __init__(self, skip=(), stop=()):
        self.skip = set(skip)
        self.stop = set(stop)
        self.entered = []

    def enter(self, node, ancestors):
        self.entered.append((node.label, [a.label for a in ancestors]))
        if node.label in self.stop:
            return VisitorResult.STOP
        if node.label in self.skip:
            return VisitorResult.SKIP_CHILDREN
        return VisitorResult.CONTINUE


class TestTraversal:
    def test_walk_is_pre_order(self, tree):
        assert [node.label for node in walk(tree)] == ["root", "a", "a1", "b", "b1", "b2", "c"]

    def test_visitor_tracks_ancestors(self, tree):
        visitor = RecordingVisitor()
        visitor.traverse([tree])
        assert visitor.entered == [
            ("root", []),
            ("a", ["root"]),
            ("a1", ["root", "a"]),
            ("b", ["root"]),
            ("b1", ["root", "b"]),
            ("b2", ["root", "b"]),
            ("c", ["root"]),
        ]

    def test_skip_children(self, tree):
        visitor = RecordingVisitor(skip={"b"})
        visitor.traverse([tree])
        assert [label for label, _ in visitor.entered] == ["root", "a", "a1", "b", "c"]

    def test_stop_ends_the_whole_traversal(self, tree):
        visitor = RecordingVisitor(stop={"b1"})
        other_root = FakeNode("other", Span(30, 40))
        visitor.traverse([tree, other_root])
        assert [label for label, _ in visitor.entered] == ["root", "a", "a1", "b", "b1"]


class TestNodeFinder:
    @pytest.mark.parametrize(
        "offset, expected",
        [
            (8, "b1"),
            (1, "a1"),
            (5, "a"),
            (13, "root"),
            (16, "c"),
            (100, None),
        ],
    )
    def test_innermost_node(self, tree, offset, expected):
        found = NodeFinder.find_at_offset([tree], offset)
        assert (found.label if found else None) == expected

    def test_empty_spans_are_transparent(self):
        root = FakeNode("root", Span(0, 10), [FakeNode("tag", Span(), [FakeNode("leaf", Span(3, 4))])])
        assert NodeFinder.find_at_offset([root], 3).label == "leaf"

    def test_over_a_generated_view(self, mini_lang):
        m = mini_lang
        ids = NodeIdGenerator()

        def name(start, text):
            span = Span(start, start + len(text))
            identifier = m.Identifier(id=ids(), span=span, name=text)
            return m.Expression(id=ids(), span=span, kind=m.ExpressionKindName(value=identifier))

        values = [name(5, "a"), name(8, "b"), name(11, "c")]
        echo = m.Echo(id=ids(), position=Span(0, 12), values=SeparatedList(values))

        found = NodeFinder.find_at_offset([m.Node.of(echo)], 11)
        assert found.kind is m.NodeKind.Identifier
        assert found.value is values[2].kind.value

        assert [node.name() for node in walk(m.Node.of(echo))] == ["Echo"] + ["Expression", "ExpressionKind", "Identifier"] * 3
