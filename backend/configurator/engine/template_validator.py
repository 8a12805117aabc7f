"""
规格模板定义校验

在创建/更新模板时调用，错误阻断保存，警告只提示
"""

import re
from typing import List

from configurator.engine.enums import REQUIRED_ENUM_SOURCES, EnumRegistry
from configurator.engine.validator import resolve_enum_source
from configurator.schemas.validation import (
    ErrorCode,
    NUMERIC_DATA_TYPES,
    SpecificationDataType,
    ValidationResult,
)

NAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]+$")
FILTER_TYPES = ("checkbox", "dropdown", "range")


def validate_template_definition(template, registry: EnumRegistry) -> ValidationResult:
    """校验模板定义

    template 可以是 ORM 对象，也可以是 TemplateCreate 等 schema
    """
    result = ValidationResult()

    # 必填字段
    if not template.name:
        result.add_error(ErrorCode.INVALID_DEFINITION, "模板名称不能为空", "name")
    elif not NAME_PATTERN.match(template.name):
        result.add_error(ErrorCode.INVALID_DEFINITION, "模板名称只能包含字母、数字和下划线", "name")
    if not template.display_name:
        result.add_error(ErrorCode.INVALID_DEFINITION, "显示名称不能为空", "display_name")
    if not template.data_type:
        result.add_error(ErrorCode.INVALID_DEFINITION, "数据类型不能为空", "data_type")
        return result

    try:
        data_type = SpecificationDataType(template.data_type)
    except ValueError:
        result.add_error(ErrorCode.INVALID_DEFINITION, f"未知的数据类型: {template.data_type}", "data_type")
        return result

    enum_values = list(template.enum_values or [])

    if template.enum_source and not registry.has_source(template.enum_source):
        result.add_error(ErrorCode.INVALID_DEFINITION,
                         f"未知的枚举来源: {template.enum_source}，可用: {', '.join(registry.source_names())}",
                         "enum_source")

    # 封闭枚举：来源必须匹配，enum_values 必须是来源的子集
    expected_source = REQUIRED_ENUM_SOURCES.get(data_type.value)
    if expected_source:
        if template.enum_source != expected_source:
            result.add_error(ErrorCode.INVALID_DEFINITION,
                             f"{data_type.value} 类型必须使用枚举来源 {expected_source}",
                             "enum_source")
        canonical = set(registry.values(expected_source))
        unknown = [v for v in enum_values if v not in canonical]
        if unknown:
            result.add_error(ErrorCode.INVALID_DEFINITION,
                             f"enum_values 中存在来源 {expected_source} 之外的值: {', '.join(unknown)}",
                             "enum_values")
    elif data_type == SpecificationDataType.ENUM:
        if not enum_values and not template.enum_source:
            result.add_error(ErrorCode.INVALID_DEFINITION, "枚举类型必须提供 enum_values 或 enum_source",
                             "enum_values")
    if (not expected_source and enum_values and template.enum_source
            and registry.has_source(template.enum_source)):
        canonical = set(registry.values(template.enum_source))
        unknown = [v for v in enum_values if v not in canonical]
        if unknown:
            result.add_error(ErrorCode.INVALID_DEFINITION,
                             f"enum_values 中存在来源 {template.enum_source} 之外的值: {', '.join(unknown)}",
                             "enum_values")

    # 数值范围
    rules = template.validation_rules or {}
    min_value = rules.get("min_value")
    max_value = rules.get("max_value")
    if data_type in NUMERIC_DATA_TYPES:
        if min_value is not None and max_value is not None and min_value >= max_value:
            result.add_error(ErrorCode.INVALID_DEFINITION, "最小值必须小于最大值", "validation_rules")
        if min_value is not None and min_value < 0:
            result.add_warning(ErrorCode.INVALID_DEFINITION, "最小值为负数，请确认是否正确", "validation_rules")
    min_length = rules.get("min_length")
    max_length = rules.get("max_length")
    if min_length is not None and max_length is not None and min_length > max_length:
        result.add_error(ErrorCode.INVALID_DEFINITION, "最小长度不能大于最大长度", "validation_rules")
    pattern = rules.get("pattern")
    if pattern:
        try:
            re.compile(pattern)
        except re.error as e:
            result.add_error(ErrorCode.INVALID_DEFINITION, f"正则表达式无效: {e}", "validation_rules")

    # 兼容性键建议必填、可筛选
    if template.is_compatibility_key:
        if not template.is_required:
            result.add_warning(ErrorCode.INVALID_DEFINITION, "兼容性键建议设为必填", "is_required")
        if not template.is_filterable:
            result.add_warning(ErrorCode.INVALID_DEFINITION, "兼容性键建议设为可筛选", "is_filterable")

    if template.is_filterable and not template.filter_type:
        result.add_warning(ErrorCode.INVALID_DEFINITION, "可筛选的模板建议指定筛选类型", "filter_type")
    if template.filter_type and template.filter_type not in FILTER_TYPES:
        result.add_error(ErrorCode.INVALID_DEFINITION,
                         f"未知的筛选类型: {template.filter_type}，可用: {', '.join(FILTER_TYPES)}",
                         "filter_type")

    if template.display_order is not None and template.display_order < 0:
        result.add_warning(ErrorCode.INVALID_DEFINITION, "显示顺序为负数", "display_order")

    return result


def recommended_settings(data_type: str) -> dict:
    """数据类型的推荐设置"""
    data_type = SpecificationDataType(data_type)
    settings = {
        "data_type": data_type.value,
        "is_required": False,
        "is_compatibility_key": False,
        "is_filterable": False,
        "filter_type": None,
        "enum_source": None,
        "validation_rules": {},
    }

    if data_type.value in REQUIRED_ENUM_SOURCES:
        settings.update(
            is_required=True,
            is_compatibility_key=True,
            is_filterable=True,
            filter_type="checkbox",
            enum_source=REQUIRED_ENUM_SOURCES[data_type.value],
        )
    elif data_type == SpecificationDataType.POWER_CONNECTOR:
        settings.update(is_filterable=True, filter_type="checkbox", enum_source="POWER_CONNECTOR_TYPE")
    elif data_type == SpecificationDataType.ENUM:
        settings.update(is_filterable=True, filter_type="dropdown")
    elif data_type == SpecificationDataType.FREQUENCY:
        settings.update(is_filterable=True, filter_type="range",
                        validation_rules={"min_value": 100, "max_value": 10000, "unit": "MHz"})
    elif data_type == SpecificationDataType.MEMORY_SIZE:
        settings.update(is_filterable=True, filter_type="range",
                        validation_rules={"min_value": 1, "max_value": 1024, "unit": "GB"})
    elif data_type == SpecificationDataType.POWER_CONSUMPTION:
        settings.update(is_filterable=True, filter_type="range",
                        validation_rules={"min_value": 1, "max_value": 3000, "unit": "W"})
    elif data_type == SpecificationDataType.NUMBER:
        settings.update(is_filterable=True, filter_type="range")
    elif data_type == SpecificationDataType.BOOLEAN:
        settings.update(is_filterable=True, filter_type="checkbox")

    return settings


def auto_fill_enum_values(template, registry: EnumRegistry) -> List[str]:
    """用枚举来源的全部规范值填充 enum_values"""
    source = resolve_enum_source(template)
    if not source:
        return list(template.enum_values or [])
    return registry.values(source)


def autocomplete_values(template, registry: EnumRegistry) -> List[str]:
    """输入提示：enum_values 优先，其次来源的规范值"""
    if template.enum_values:
        return list(template.enum_values)
    source = resolve_enum_source(template)
    if source:
        return registry.values(source)
    return []
