from ast_schema_to_code.pipeline.config import (
    DEFAULT_TYPE_MAP,
    CodeGeneratorConfig,
    FormatterConfig,
    OutputConfig,
)


def test_defaults():
    config = CodeGeneratorConfig()
    assert config.features == []
    assert config.runtime_module == "ast_schema_to_code.runtime"
    assert config.type_map == DEFAULT_TYPE_MAP
    assert config.strict_positions
    assert config.add_generation_comment
    assert not config.formatter.enabled
    assert config.output.validate_before_write


def test_default_type_map_is_not_shared():
    config = CodeGeneratorConfig()
    config.type_map["Text"] = "str"
    assert "Text" not in CodeGeneratorConfig().type_map


def test_from_dict():
    config = CodeGeneratorConfig.from_dict(
        {
            "features": ["decorators"],
            "strict_positions": False,
            "type_map": {"Text": "str"},
            "external_imports": {"Decimal": "decimal"},
            "formatter": {"enabled": True, "line_length": 88},
            "output": {"validate_before_write": False},
            "unknown_option": 1,
        }
    )
    assert config.features == ["decorators"]
    assert not config.strict_positions
    assert config.type_map["Text"] == "str"
    assert config.type_map["usize"] == "int"
    assert config.external_imports == {"Decimal": "decimal"}
    assert config.formatter == FormatterConfig(enabled=True, line_length=88)
    assert config.output == OutputConfig(validate_before_write=False)
    assert not hasattr(config, "unknown_option")


def test_to_dict_round_trip():
    config = CodeGeneratorConfig.from_dict({"features": ["a"], "formatter": {"enabled": True}})
    data = config.to_dict()
    assert data["features"] == ["a"]
    assert data["formatter"]["enabled"] is True
    assert CodeGeneratorConfig.from_dict(data) == config
