"""
规格校验器

把任意输入转换为带标签的规格值，或给出结构化的错误/警告。
所有函数都是纯函数：模板、枚举注册表、上下文都通过参数传入
"""

import math
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional

from configurator.engine.enums import DEFAULT_ENUM_SOURCES, EnumRegistry
from configurator.schemas.validation import (
    BooleanValue,
    EnumValue,
    ErrorCode,
    NumberValue,
    NUMERIC_DATA_TYPES,
    ENUM_DATA_TYPES,
    SpecificationDataType,
    SpecificationSetResult,
    TextValue,
    TypedValue,
    ValidationMessage,
    ValidationResult,
    format_number,
)

# 带单位的数值：数字 + 可选单位
_FREQUENCY_RE = re.compile(r"^(\d+(?:\.\d+)?)\s*(mhz|ghz)?$", re.IGNORECASE)
_MEMORY_SIZE_RE = re.compile(r"^(\d+(?:\.\d+)?)\s*(mb|gb|tb)?$", re.IGNORECASE)
_POWER_RE = re.compile(r"^(\d+(?:\.\d+)?)\s*(w)?$", re.IGNORECASE)

_TYPED_VALUES = (EnumValue, NumberValue, TextValue, BooleanValue)

MEMORY_SIZE_WARN_MIN_GB = 0.5
MEMORY_SIZE_WARN_MAX_GB = 1024


def is_empty(raw_value: Any) -> bool:
    """None 或空白字符串视为未填写"""
    if raw_value is None:
        return True
    if isinstance(raw_value, str) and not raw_value.strip():
        return True
    return False


def _label(template) -> str:
    return template.display_name or template.name


def resolve_enum_source(template) -> Optional[str]:
    """模板使用的枚举来源：显式声明优先，否则按数据类型取默认来源"""
    if template.enum_source:
        return template.enum_source
    data_type = getattr(template.data_type, "value", template.data_type)
    return DEFAULT_ENUM_SOURCES.get(data_type)


def canonical_values(template, registry: EnumRegistry) -> List[str]:
    """模板的规范值集合（不考虑 enum_values 的收窄）"""
    source = resolve_enum_source(template)
    if source:
        return registry.values(source)
    return list(template.enum_values or [])


def _match_ignore_case(value: str, candidates: Iterable[str]) -> Optional[str]:
    upper = value.strip().upper()
    for candidate in candidates:
        if candidate.upper() == upper:
            return candidate
    return None


# ==================== 单字段校验 ====================

def _parse_number(raw_value: Any, data_type: SpecificationDataType, rules: dict, result: ValidationResult,
                  field: str, label: str) -> Optional[NumberValue]:
    """解析数值，按数据类型换算单位"""
    if isinstance(raw_value, bool):
        result.add_error(ErrorCode.TYPE_ERROR, f"{label} 需要数值，收到布尔值", field)
        return None

    unit = rules.get("unit")
    if data_type == SpecificationDataType.FREQUENCY:
        unit = "MHz"
    elif data_type == SpecificationDataType.MEMORY_SIZE:
        unit = "GB"
    elif data_type == SpecificationDataType.POWER_CONSUMPTION:
        unit = "W"

    if isinstance(raw_value, (int, float)):
        number = float(raw_value)
    else:
        text = str(raw_value).strip()
        if data_type == SpecificationDataType.FREQUENCY:
            match = _FREQUENCY_RE.match(text)
            if not match:
                result.add_error(ErrorCode.TYPE_ERROR,
                                 f"{label} 频率格式错误: \"{raw_value}\"，示例: 3200、3.2 GHz、3200 MHz", field)
                return None
            number = float(match.group(1))
            if (match.group(2) or "").lower() == "ghz":
                number = number * 1000
        elif data_type == SpecificationDataType.MEMORY_SIZE:
            match = _MEMORY_SIZE_RE.match(text)
            if not match:
                result.add_error(ErrorCode.TYPE_ERROR,
                                 f"{label} 容量格式错误: \"{raw_value}\"，示例: 16、16 GB、1 TB", field)
                return None
            number = float(match.group(1))
            suffix = (match.group(2) or "").lower()
            if suffix == "tb":
                number = number * 1024
            elif suffix == "mb":
                number = number / 1024
        elif data_type == SpecificationDataType.POWER_CONSUMPTION:
            match = _POWER_RE.match(text)
            if not match:
                result.add_error(ErrorCode.TYPE_ERROR,
                                 f"{label} 功率格式错误: \"{raw_value}\"，示例: 650、650 W", field)
                return None
            number = float(match.group(1))
        else:
            try:
                number = float(text)
            except ValueError:
                result.add_error(ErrorCode.TYPE_ERROR, f"{label} 需要数值，收到: \"{raw_value}\"", field)
                return None

    if not math.isfinite(number):
        result.add_error(ErrorCode.TYPE_ERROR, f"{label} 不是有效数值: \"{raw_value}\"", field)
        return None

    return NumberValue(value=number, unit=unit)


def _validate_number(raw_value, template, data_type, rules, result: ValidationResult) -> None:
    field, label = template.name, _label(template)
    parsed = _parse_number(raw_value, data_type, rules, result, field, label)
    if parsed is None:
        return

    number = parsed.value
    unit_suffix = f" {parsed.unit}" if parsed.unit else ""
    min_value = rules.get("min_value")
    max_value = rules.get("max_value")
    # 边界包含在内
    if min_value is not None and number < min_value:
        result.add_error(ErrorCode.RANGE_ERROR,
                         f"{label} 过小: {format_number(number)}{unit_suffix}，最小值 {format_number(min_value)}",
                         field)
    if max_value is not None and number > max_value:
        result.add_error(ErrorCode.RANGE_ERROR,
                         f"{label} 过大: {format_number(number)}{unit_suffix}，最大值 {format_number(max_value)}",
                         field)

    if data_type == SpecificationDataType.MEMORY_SIZE:
        if number < MEMORY_SIZE_WARN_MIN_GB:
            result.add_warning(ErrorCode.RANGE_ERROR, f"{label} 容量很小: {format_number(number)} GB", field)
        if number > MEMORY_SIZE_WARN_MAX_GB:
            result.add_warning(ErrorCode.RANGE_ERROR, f"{label} 容量很大: {format_number(number)} GB", field)

    if result.is_valid:
        result.normalized_value = parsed


def _validate_boolean(raw_value, template, result: ValidationResult) -> None:
    if isinstance(raw_value, bool):
        result.normalized_value = BooleanValue(value=raw_value)
        return
    if isinstance(raw_value, str):
        lowered = raw_value.strip().lower()
        if lowered in ("true", "false"):
            result.normalized_value = BooleanValue(value=lowered == "true")
            return
    result.add_error(ErrorCode.TYPE_ERROR,
                     f"{_label(template)} 需要 true/false，收到: \"{raw_value}\"", template.name)


def _validate_enum(raw_value, template, registry: EnumRegistry, result: ValidationResult) -> None:
    field, label = template.name, _label(template)
    text = str(raw_value).strip()
    enum_values = list(template.enum_values or [])
    source = resolve_enum_source(template)

    # 第一层：规范值集合
    if source:
        if not registry.has_source(source):
            result.add_error(ErrorCode.INVALID_DEFINITION, f"{label} 的枚举来源不存在: {source}", field)
            return
        canonical = registry.canonicalize(source, text)
        if canonical is None:
            allowed = registry.values(source)
            result.add_error(ErrorCode.ENUM_VIOLATION,
                             f"未知的{label}: \"{text}\"，支持的值: {', '.join(allowed)}", field)
            result.suggestions = allowed
            return
    else:
        if not enum_values:
            result.add_error(ErrorCode.INVALID_DEFINITION, f"{label} 未定义可选值", field)
            return
        canonical = _match_ignore_case(text, enum_values)
        if canonical is None:
            result.add_error(ErrorCode.ENUM_VIOLATION,
                             f"{label} 的值无效: \"{text}\"，可选值: {', '.join(enum_values)}", field)
            result.suggestions = enum_values
            return

    # 第二层：模板收窄的 enum_values
    if source and enum_values:
        narrowed = _match_ignore_case(canonical, enum_values)
        if narrowed is None:
            result.add_error(ErrorCode.ENUM_VIOLATION,
                             f"{label} \"{canonical}\" 不在该分类允许的范围内，允许: {', '.join(enum_values)}",
                             field)
            result.suggestions = enum_values
            return
        canonical = narrowed

    result.normalized_value = EnumValue(value=canonical)


def _validate_text(raw_value, template, rules: dict, result: ValidationResult) -> None:
    field, label = template.name, _label(template)
    text = str(raw_value).strip()

    min_length = rules.get("min_length")
    max_length = rules.get("max_length")
    if min_length is not None and len(text) < min_length:
        result.add_error(ErrorCode.RANGE_ERROR, f"{label} 长度不能少于 {min_length} 个字符", field)
    if max_length is not None and len(text) > max_length:
        result.add_error(ErrorCode.RANGE_ERROR, f"{label} 长度不能超过 {max_length} 个字符", field)

    pattern = rules.get("pattern")
    if pattern and not re.fullmatch(pattern, text):
        result.add_error(ErrorCode.TYPE_ERROR, f"{label} 格式不正确: \"{text}\"", field)

    if result.is_valid:
        result.normalized_value = TextValue(value=text)


def _context_value(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, _TYPED_VALUES):
        return value.canonical()
    return str(value).strip()


def _apply_relations(template, data_type, registry: EnumRegistry, context: Mapping[str, Any],
                     result: ValidationResult) -> None:
    """跨字段校验：按注册表中的值关联检查上下文"""
    value = result.normalized_value.canonical()
    for relation in registry.relations_for(data_type):
        context_value = _context_value(context.get(relation.context_key))
        if not context_value:
            continue
        allowed = relation.allowed.get(value)
        if allowed is None:
            continue
        if _match_ignore_case(context_value, allowed) is not None:
            continue

        message = relation.message.format(
            value=value, context_value=context_value, allowed=", ".join(allowed)
        )
        if relation.level == "error":
            result.add_error(ErrorCode.RULE_VIOLATION, message, template.name)
        else:
            result.add_warning(ErrorCode.RULE_VIOLATION, message, template.name)


def validate_and_normalize(
    raw_value: Any,
    template,
    registry: EnumRegistry,
    context: Optional[Mapping[str, Any]] = None,
) -> ValidationResult:
    """
    校验并规范化单个规格值

    Args:
        raw_value: 原始输入（字符串、数字、布尔值或已规范化的值）
        template: 规格模板（ORM 对象或同字段的 schema）
        registry: 枚举注册表
        context: 已规范化的同级规格 {模板名: 值}，提供时执行跨字段校验

    Returns:
        ValidationResult，合法时 normalized_value 为带标签的值
    """
    result = ValidationResult()
    if isinstance(raw_value, _TYPED_VALUES):
        raw_value = raw_value.value

    if is_empty(raw_value):
        if template.is_required:
            result.add_error(ErrorCode.MISSING_REQUIRED, f"缺少必填规格: {_label(template)}", template.name)
        return result

    try:
        data_type = SpecificationDataType(template.data_type)
    except ValueError:
        result.add_error(ErrorCode.INVALID_DEFINITION,
                         f"{_label(template)} 的数据类型未知: {template.data_type}", template.name)
        return result

    rules = template.validation_rules or {}

    if data_type in NUMERIC_DATA_TYPES:
        _validate_number(raw_value, template, data_type, rules, result)
    elif data_type == SpecificationDataType.BOOLEAN:
        _validate_boolean(raw_value, template, result)
    elif data_type in ENUM_DATA_TYPES:
        _validate_enum(raw_value, template, registry, result)
    else:
        _validate_text(raw_value, template, rules, result)

    if context and result.is_valid and result.normalized_value is not None:
        _apply_relations(template, data_type, registry, context, result)

    return result


# ==================== 整组校验 ====================

def validate_specification_set(
    raw_specifications: Mapping[str, Any],
    templates: List,
    registry: EnumRegistry,
) -> SpecificationSetResult:
    """
    校验一个商品的整组规格

    1. 必填检查（在原始输入上）
    2. 逐字段校验
    3. 兼容性键带上下文重新校验，结果替换第 2 步的结果
    """
    result = SpecificationSetResult()
    by_name = {t.name: t for t in templates}

    for key in raw_specifications:
        if key not in by_name:
            result.warnings.append(
                ValidationMessage(code=ErrorCode.UNKNOWN_SPECIFICATION, message=f"未知规格: {key}，已忽略", field=key)
            )

    details: Dict[str, ValidationResult] = {}
    for template in templates:
        raw_value = raw_specifications.get(template.name)
        if is_empty(raw_value) and not template.is_required:
            continue
        details[template.name] = validate_and_normalize(raw_value, template, registry)

    context: Dict[str, TypedValue] = {
        name: detail.normalized_value
        for name, detail in details.items()
        if detail.is_valid and detail.normalized_value is not None
    }

    for template in templates:
        if not template.is_compatibility_key or template.name not in details:
            continue
        if is_empty(raw_specifications.get(template.name)):
            continue
        sibling_context = {k: v for k, v in context.items() if k != template.name}
        details[template.name] = validate_and_normalize(
            raw_specifications[template.name], template, registry, sibling_context
        )

    for name, detail in details.items():
        result.errors.extend(detail.errors)
        result.warnings.extend(detail.warnings)
        if detail.is_valid and detail.normalized_value is not None:
            result.normalized[name] = detail.normalized_value

    result.details = details
    result.is_valid = not result.errors
    return result
