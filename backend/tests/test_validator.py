import pytest

from configurator.engine.enums import CHIPSET_TYPE, FORM_FACTOR, MEMORY_TYPE, SOCKET_TYPE
from configurator.engine.validator import validate_and_normalize, validate_specification_set
from configurator.schemas.validation import (
    BooleanValue, EnumValue, ErrorCode, NumberValue, TextValue,
)
from tests.factories import make_template


def _codes(result):
    return [e.code for e in result.errors]


# ==================== 数值 ====================

class TestNumber:
    def test_bounds_are_inclusive(self, registry):
        template = make_template("cores", "number", validation_rules={"min_value": 1, "max_value": 128})
        assert validate_and_normalize(1, template, registry).is_valid
        assert validate_and_normalize(128, template, registry).is_valid

        low = validate_and_normalize(0, template, registry)
        high = validate_and_normalize("129", template, registry)
        assert _codes(low) == [ErrorCode.RANGE_ERROR]
        assert _codes(high) == [ErrorCode.RANGE_ERROR]
        assert low.normalized_value is None

    def test_plain_number_keeps_declared_unit(self, registry):
        template = make_template("length", "number", validation_rules={"unit": "mm"})
        result = validate_and_normalize(" 245.5 ", template, registry)
        assert result.normalized_value == NumberValue(value=245.5, unit="mm")
        assert result.normalized_value.display() == "245.5 mm"

    def test_rejects_boolean_and_garbage(self, registry):
        template = make_template("cores", "number")
        assert _codes(validate_and_normalize(True, template, registry)) == [ErrorCode.TYPE_ERROR]
        assert _codes(validate_and_normalize("six", template, registry)) == [ErrorCode.TYPE_ERROR]
        assert _codes(validate_and_normalize("nan", template, registry)) == [ErrorCode.TYPE_ERROR]

    @pytest.mark.parametrize("raw, expected", [
        ("3200", 3200),
        ("3200 MHz", 3200),
        ("3.7 GHz", 3700),
        ("3.7ghz", 3700),
        (4800, 4800),
    ])
    def test_frequency_units(self, registry, raw, expected):
        template = make_template("frequency", "frequency")
        result = validate_and_normalize(raw, template, registry)
        assert result.normalized_value == NumberValue(value=expected, unit="MHz")

    @pytest.mark.parametrize("raw, expected", [
        ("16", 16),
        ("16 GB", 16),
        ("1 TB", 1024),
        ("512MB", 0.5),
    ])
    def test_memory_size_units(self, registry, raw, expected):
        template = make_template("capacity", "memory_size")
        result = validate_and_normalize(raw, template, registry)
        assert result.is_valid
        assert result.normalized_value.value == expected
        assert result.normalized_value.unit == "GB"

    def test_memory_size_warnings(self, registry):
        template = make_template("capacity", "memory_size")
        tiny = validate_and_normalize("256 MB", template, registry)
        huge = validate_and_normalize("2 TB", template, registry)
        assert tiny.is_valid and len(tiny.warnings) == 1
        assert huge.is_valid and len(huge.warnings) == 1

    def test_power_format(self, registry):
        template = make_template("wattage", "power_consumption")
        assert validate_and_normalize("650W", template, registry).normalized_value == NumberValue(value=650, unit="W")
        assert _codes(validate_and_normalize("650 kW", template, registry)) == [ErrorCode.TYPE_ERROR]


# ==================== 布尔与文本 ====================

def test_boolean(registry):
    template = make_template("modular", "boolean")
    assert validate_and_normalize("TRUE", template, registry).normalized_value == BooleanValue(value=True)
    assert validate_and_normalize(False, template, registry).normalized_value == BooleanValue(value=False)
    assert _codes(validate_and_normalize("yes", template, registry)) == [ErrorCode.TYPE_ERROR]
    assert _codes(validate_and_normalize(1, template, registry)) == [ErrorCode.TYPE_ERROR]


def test_text_length_and_pattern(registry):
    template = make_template("model", "text", validation_rules={
        "min_length": 2, "max_length": 8, "pattern": r"[A-Z0-9\-]+",
    })
    assert validate_and_normalize("  RTX-4070 ", template, registry).normalized_value == TextValue(value="RTX-4070")
    assert _codes(validate_and_normalize("X", template, registry)) == [ErrorCode.RANGE_ERROR]
    assert _codes(validate_and_normalize("rtx4070", template, registry)) == [ErrorCode.TYPE_ERROR]


# ==================== 必填与空值 ====================

def test_empty_value(registry):
    optional = make_template("brand", "text")
    required = make_template("brand", "text", is_required=True)

    skipped = validate_and_normalize("   ", optional, registry)
    assert skipped.is_valid and skipped.normalized_value is None

    missing = validate_and_normalize(None, required, registry)
    assert _codes(missing) == [ErrorCode.MISSING_REQUIRED]


def test_unknown_data_type(registry):
    template = make_template("x", "hologram")
    assert _codes(validate_and_normalize("1", template, registry)) == [ErrorCode.INVALID_DEFINITION]


# ==================== 枚举 ====================

class TestEnum:
    def test_alias_is_canonicalized(self, registry):
        template = make_template("socket", "socket", enum_source=SOCKET_TYPE)
        result = validate_and_normalize("lga 1700", template, registry)
        assert result.normalized_value == EnumValue(value="LGA1700")

    def test_unknown_value_suggests_source_values(self, registry):
        template = make_template("socket", "socket", enum_source=SOCKET_TYPE)
        result = validate_and_normalize("AM3", template, registry)
        assert _codes(result) == [ErrorCode.ENUM_VIOLATION]
        assert result.suggestions == registry.values(SOCKET_TYPE)

    def test_narrowed_values_are_a_second_layer(self, registry):
        template = make_template("socket", "socket", enum_source=SOCKET_TYPE, enum_values=["AM4", "AM5"])
        assert validate_and_normalize("am5", template, registry).normalized_value == EnumValue(value="AM5")

        known_but_excluded = validate_and_normalize("LGA1700", template, registry)
        unknown = validate_and_normalize("AM3", template, registry)
        assert _codes(known_but_excluded) == [ErrorCode.ENUM_VIOLATION]
        assert known_but_excluded.suggestions == ["AM4", "AM5"]
        assert known_but_excluded.errors[0].message != unknown.errors[0].message

    def test_default_source_by_data_type(self, registry):
        template = make_template("memory_type", "memory_type")
        assert validate_and_normalize("ddr5", template, registry).normalized_value == EnumValue(value="DDR5")

    def test_plain_enum_values(self, registry):
        template = make_template("color", "enum", enum_values=["Black", "White"])
        assert validate_and_normalize("white", template, registry).normalized_value == EnumValue(value="White")
        assert _codes(validate_and_normalize("Red", template, registry)) == [ErrorCode.ENUM_VIOLATION]

    def test_plain_enum_without_values(self, registry):
        template = make_template("color", "enum")
        assert _codes(validate_and_normalize("Red", template, registry)) == [ErrorCode.INVALID_DEFINITION]

    def test_unknown_source(self, registry):
        template = make_template("socket", "enum", enum_source="NOPE")
        assert _codes(validate_and_normalize("AM4", template, registry)) == [ErrorCode.INVALID_DEFINITION]

    def test_substitute_registry(self, small_registry):
        template = make_template("socket", "socket", enum_source=SOCKET_TYPE)
        assert validate_and_normalize("LGA 1700", template, small_registry).is_valid
        assert not validate_and_normalize("AM5", template, small_registry).is_valid


@pytest.mark.parametrize("data_type, raw", [
    ("socket", "lga 1700"),
    ("frequency", "3.2 GHz"),
    ("memory_size", "1 TB"),
    ("boolean", "True"),
    ("text", "  Corsair  "),
    ("enum", "matx"),
])
def test_normalization_is_idempotent(registry, data_type, raw):
    template = make_template("field", data_type, enum_source=FORM_FACTOR if data_type == "enum" else None)
    first = validate_and_normalize(raw, template, registry)
    second = validate_and_normalize(first.normalized_value, template, registry)
    assert first.is_valid
    assert second.normalized_value == first.normalized_value


# ==================== 跨字段 ====================

def test_relation_with_context(registry):
    chipset = make_template("chipset", "chipset", enum_source=CHIPSET_TYPE)

    ok = validate_and_normalize("B550", chipset, registry, context={"socket": EnumValue(value="AM4")})
    bad = validate_and_normalize("B550", chipset, registry, context={"socket": "LGA1700"})
    assert ok.is_valid
    assert _codes(bad) == [ErrorCode.RULE_VIOLATION]
    assert "AM4" in bad.errors[0].message


def test_warning_level_relation(registry):
    socket = make_template("socket", "socket", enum_source=SOCKET_TYPE)
    result = validate_and_normalize("AM5", socket, registry, context={"memory_type": "DDR4"})
    assert result.is_valid
    assert [w.code for w in result.warnings] == [ErrorCode.RULE_VIOLATION]


def _motherboard_templates():
    return [
        make_template("brand", "text", is_required=True),
        make_template("socket", "socket", enum_source=SOCKET_TYPE, is_required=True, is_compatibility_key=True),
        make_template("chipset", "chipset", enum_source=CHIPSET_TYPE, is_required=True, is_compatibility_key=True),
        make_template("memory_type", "memory_type", enum_source=MEMORY_TYPE, is_compatibility_key=True),
        make_template("form_factor", "enum", enum_source=FORM_FACTOR),
    ]


class TestSpecificationSet:
    def test_valid_set_is_normalized(self, registry):
        result = validate_specification_set(
            {"brand": "MSI", "socket": "am4", "chipset": "b550", "memory_type": "DDR4", "form_factor": "ATX"},
            _motherboard_templates(), registry,
        )
        assert result.is_valid
        assert result.normalized["socket"] == EnumValue(value="AM4")
        assert result.normalized["chipset"] == EnumValue(value="B550")

    def test_cross_field_result_replaces_single_field_result(self, registry):
        result = validate_specification_set(
            {"brand": "MSI", "socket": "LGA1700", "chipset": "B550"},
            _motherboard_templates(), registry,
        )
        assert not result.is_valid
        # 同一字段只保留带上下文的结果，不重复计数
        assert [e.code for e in result.errors] == [ErrorCode.RULE_VIOLATION]
        assert result.details["chipset"].errors[0].field == "chipset"
        assert "chipset" not in result.normalized

    def test_missing_required_and_unknown_keys(self, registry):
        result = validate_specification_set(
            {"socket": "AM4", "chipset": "B550", "colour": "red"},
            _motherboard_templates(), registry,
        )
        assert [e.code for e in result.errors] == [ErrorCode.MISSING_REQUIRED]
        assert result.errors[0].field == "brand"
        assert ErrorCode.UNKNOWN_SPECIFICATION in [w.code for w in result.warnings]
        assert "colour" not in result.normalized

    def test_optional_fields_may_be_absent(self, registry):
        result = validate_specification_set(
            {"brand": "MSI", "socket": "AM4", "chipset": "B550", "form_factor": ""},
            _motherboard_templates(), registry,
        )
        assert result.is_valid
        assert "form_factor" not in result.details
