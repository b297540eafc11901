import pytest

from ast_schema_to_code.pipeline.errors import SchemaLoadError
from ast_schema_to_code.pipeline.schema_ast import (
    NamedType,
    PositionType,
    SchemaParser,
    Shape,
    Wrapper,
)


def parse(raw):
    return SchemaParser().parse(raw, "test.yaml")


def test_declaration_order_is_preserved():
    model = parse({"Zeta": {"a": "u32"}, "Alpha": "Span", "Mid": {"as": "Enum", "A": None}})
    assert [node.name for node in model] == ["Zeta", "Alpha", "Mid"]
    assert len(model) == 3
    assert "Alpha" in model


def test_alias_entry():
    node = parse({"Position": "Span"}).get("Position")
    assert node.shape is Shape.ALIAS
    assert node.alias_target == PositionType()


def test_product_entry():
    node = parse({"Echo": {"position": "Span", "values": "CommaSeparated<Expression>"}}).get("Echo")
    assert node.shape is Shape.PRODUCT
    assert [f.name for f in node.fields] == ["position", "values"]
    assert node.fields[1].type_expr.wrapper is Wrapper.SEPARATED
    assert node.has_own_identity
    assert node.children is None


def test_sum_variant_shapes():
    node = parse(
        {
            "ExpressionKind": {
                "as": "Enum",
                "Literal": "Span",
                "Name": "Identifier",
                "Empty": None,
                "Blank": "",
                "Binary": {"left": "Box<Expression>", "right": "Box<Expression>"},
            }
        }
    ).get("ExpressionKind")
    assert node.shape is Shape.SUM
    literal, name, empty, blank, binary = node.variants
    assert literal.payload == PositionType()
    assert name.payload == NamedType(name="Identifier")
    assert empty.is_unit and blank.is_unit
    assert [f.name for f in binary.fields] == ["left", "right"]
    assert binary.get_field("right") is not None
    assert binary.get_field("missing") is None


def test_entry_keys():
    node = parse(
        {
            "IfStatement": {
                "rename": "If",
                "derive": "Debug, Hash",
                "feature": "!legacy",
                "node": False,
                "condition": "Expression",
            }
        }
    ).get("IfStatement")
    assert node.display_name == "If"
    assert node.name == "IfStatement"
    assert node.derives == ["Debug", "Hash"]
    assert node.feature_gate == "!legacy"
    assert not node.has_own_identity
    assert [f.name for f in node.fields] == ["condition"]


def test_span_is_an_ordinary_product_field():
    node = parse({"Identifier": {"span": "Span", "name": "String"}}).get("Identifier")
    assert node.get_field("span").type_expr == PositionType()


def test_children_spec():
    node = parse(
        {"If": {"condition": "Expression", "else_body": "Option<Block>", "children": ["condition", "else_body?", "doc!"]}}
    ).get("If")
    condition, else_body, doc = node.children.refs
    assert (condition.field, condition.optional, condition.excluded) == ("condition", False, False)
    assert else_body.optional and else_body.field == "else_body"
    assert doc.excluded and doc.field == "doc"


def test_qualified_children_and_self():
    model = parse(
        {
            "Pattern": {"as": "Enum", "Tuple": {"elements": "Vec<Pattern>"}, "children": ["self.elements"]},
            "Kind": {"as": "Enum", "A": "Call", "children": "self"},
        }
    )
    assert model.get("Pattern").children.refs[0].qualified
    assert model.get("Kind").children.is_self


def test_node_false_allows_an_id_field():
    node = parse({"Token": {"node": False, "id": "u32"}}).get("Token")
    assert node.fields[0].name == "id"


@pytest.mark.parametrize(
    "raw, message",
    [
        ([], "must be a mapping"),
        ({"bad-name": "Span"}, "Invalid node name"),
        ({"class": "Span"}, "Invalid node name"),
        ({"Echo": 3}, "must be an alias string or a mapping"),
        ({"Echo": {"as": "Union"}}, "unknown 'as' value"),
        ({"Echo": {"node": "no"}}, "'node' must be a boolean"),
        ({"Echo": {"feature": "!"}}, "'feature' must be a non-empty feature name"),
        ({"Echo": {"rename": "not valid"}}, "'rename' must be a valid type name"),
        ({"Echo": {"derive": 3}}, "'derive' must be"),
        ({"Echo": {"children": [1]}}, "'children' must be a list"),
        ({"Echo": {"children": ["self", "a"]}}, "'self' must be the only children entry"),
        ({"Echo": {"children": ["a??"]}}, "malformed child reference"),
        ({"Echo": {"id": "u32"}}, "collides with the synthesized identity field"),
        ({"Echo": {"get_span": "Span"}}, "collides with a generated accessor"),
        ({"Echo": {"lambda": "u32"}}, "invalid field name"),
        ({"Kind": {"as": "Enum", "span": "Span"}}, "a sum cannot declare 'span'"),
        ({"Kind": {"as": "Enum", "A": 3}}, "must be empty, a type-expression or a field mapping"),
        ({"Kind": {"as": "Enum", "A": {"id": "u32"}}}, "collides with the synthesized identity field"),
        ({"Echo": {"values": "Vec<"}}, "Invalid type-expression"),
    ],
)
def test_malformed_entries(raw, message):
    with pytest.raises(SchemaLoadError, match=message):
        parse(raw)
