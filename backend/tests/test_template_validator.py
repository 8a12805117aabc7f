from configurator.engine.enums import CHIPSET_TYPE, FORM_FACTOR, MEMORY_TYPE, SOCKET_TYPE
from configurator.engine.template_validator import (
    auto_fill_enum_values, autocomplete_values, recommended_settings, validate_template_definition,
)
from tests.factories import make_template


def _fields(messages):
    return [m.field for m in messages]


def test_well_formed_socket_template(registry):
    template = make_template(
        "socket", "socket", enum_source=SOCKET_TYPE, enum_values=["AM4", "AM5"],
        is_required=True, is_compatibility_key=True, is_filterable=True, filter_type="checkbox",
    )
    result = validate_template_definition(template, registry)
    assert result.is_valid
    assert result.warnings == []


def test_name_must_be_machine_key(registry):
    result = validate_template_definition(make_template("base frequency", "frequency"), registry)
    assert _fields(result.errors) == ["name"]


def test_closed_enum_requires_matching_source(registry):
    missing = validate_template_definition(make_template("socket", "socket"), registry)
    wrong = validate_template_definition(make_template("chipset", "chipset", enum_source=SOCKET_TYPE), registry)
    assert "enum_source" in _fields(missing.errors)
    assert "enum_source" in _fields(wrong.errors)


def test_enum_values_must_be_subset_of_source(registry):
    template = make_template("memory_type", "memory_type", enum_source=MEMORY_TYPE, enum_values=["DDR4", "DDR3"])
    result = validate_template_definition(template, registry)
    assert not result.is_valid
    assert "DDR3" in result.errors[0].message


def test_open_enum_with_source_is_checked_too(registry):
    template = make_template("form_factor", "enum", enum_source=FORM_FACTOR, enum_values=["ATX", "XL-ATX"])
    result = validate_template_definition(template, registry)
    assert _fields(result.errors) == ["enum_values"]


def test_plain_enum_needs_values_or_source(registry):
    assert not validate_template_definition(make_template("color", "enum"), registry).is_valid
    assert validate_template_definition(make_template("color", "enum", enum_values=["Black"]), registry).is_valid


def test_unknown_source_and_data_type(registry):
    unknown_source = validate_template_definition(make_template("x", "enum", enum_source="NOPE"), registry)
    unknown_type = validate_template_definition(make_template("x", "hologram"), registry)
    assert "enum_source" in _fields(unknown_source.errors)
    assert _fields(unknown_type.errors) == ["data_type"]


def test_numeric_bounds(registry):
    inverted = make_template("tdp", "power_consumption", validation_rules={"min_value": 500, "max_value": 500})
    negative = make_template("offset", "number", validation_rules={"min_value": -5})
    assert not validate_template_definition(inverted, registry).is_valid

    result = validate_template_definition(negative, registry)
    assert result.is_valid
    assert _fields(result.warnings) == ["validation_rules"]


def test_text_rules(registry):
    bad_length = make_template("model", "text", validation_rules={"min_length": 5, "max_length": 2})
    bad_pattern = make_template("model", "text", validation_rules={"pattern": "(["})
    assert not validate_template_definition(bad_length, registry).is_valid
    assert not validate_template_definition(bad_pattern, registry).is_valid


def test_compatibility_key_warnings(registry):
    template = make_template("socket", "socket", enum_source=SOCKET_TYPE, is_compatibility_key=True)
    result = validate_template_definition(template, registry)
    assert result.is_valid
    assert set(_fields(result.warnings)) == {"is_required", "is_filterable"}


def test_filter_type(registry):
    unknown = make_template("brand", "text", is_filterable=True, filter_type="slider")
    missing = make_template("brand", "text", is_filterable=True)
    assert _fields(validate_template_definition(unknown, registry).errors) == ["filter_type"]
    assert _fields(validate_template_definition(missing, registry).warnings) == ["filter_type"]


def test_recommended_settings():
    socket = recommended_settings("socket")
    assert socket["enum_source"] == SOCKET_TYPE
    assert socket["is_compatibility_key"] is True
    assert recommended_settings("frequency")["validation_rules"]["unit"] == "MHz"
    assert recommended_settings("text")["is_filterable"] is False


def test_recommended_settings_pass_definition_check(registry):
    for data_type in ("socket", "memory_type", "chipset", "frequency", "memory_size", "power_consumption", "boolean"):
        settings = recommended_settings(data_type)
        template = make_template("field", **settings)
        assert validate_template_definition(template, registry).is_valid, data_type


def test_auto_fill_and_autocomplete(registry):
    chipset = make_template("chipset", "chipset", enum_source=CHIPSET_TYPE)
    assert auto_fill_enum_values(chipset, registry) == registry.values(CHIPSET_TYPE)
    assert autocomplete_values(chipset, registry) == registry.values(CHIPSET_TYPE)

    narrowed = make_template("chipset", "chipset", enum_source=CHIPSET_TYPE, enum_values=["B550"])
    assert autocomplete_values(narrowed, registry) == ["B550"]
    assert autocomplete_values(make_template("brand", "text"), registry) == []
