"""兼容规则定义校验"""

from typing import Dict, List, Mapping, Optional, Tuple

from configurator.engine.enums import EnumRegistry
from configurator.engine.validator import validate_and_normalize
from configurator.models.compatibility_rule import RuleLevel, RuleType
from configurator.schemas.validation import ErrorCode, ValidationResult, ValueKind, value_kind_for


def _is_numeric(template) -> bool:
    return value_kind_for(template.data_type) == ValueKind.NUMBER


def _term_field(term, name):
    return term.get(name) if isinstance(term, dict) else getattr(term, name)


def _check_window(rule, result: ValidationResult) -> None:
    bounds = (rule.lower_factor, rule.upper_factor, rule.min_value, rule.max_value)
    if all(b is None for b in bounds):
        result.add_error(ErrorCode.INVALID_DEFINITION, "范围规则至少需要一个系数或边界", "lower_factor")
    if rule.lower_factor is not None and rule.upper_factor is not None and rule.lower_factor > rule.upper_factor:
        result.add_error(ErrorCode.INVALID_DEFINITION, "下限系数不能大于上限系数", "lower_factor")
    if rule.min_value is not None and rule.max_value is not None and rule.min_value > rule.max_value:
        result.add_error(ErrorCode.INVALID_DEFINITION, "最小值不能大于最大值", "min_value")


def _check_sum_terms(rule, term_templates: Mapping[int, object], result: ValidationResult) -> None:
    for index, term in enumerate(rule.sum_terms or []):
        field = f"sum_terms[{index}]"
        template_id = _term_field(term, "template_id")
        constant = _term_field(term, "constant")
        if template_id is None and constant is None:
            result.add_error(ErrorCode.INVALID_DEFINITION, "累加项需要 template_id 或 constant", field)
        if constant is not None and constant < 0:
            result.add_error(ErrorCode.INVALID_DEFINITION, "累加项的 constant 不能为负数", field)
        if template_id is None:
            continue
        template = term_templates.get(template_id)
        if template is None:
            result.add_error(ErrorCode.INVALID_DEFINITION, f"累加项模板不存在: {template_id}", field)
        elif template.category_id != _term_field(term, "category_id"):
            result.add_error(ErrorCode.INVALID_DEFINITION, f"累加项模板 {template.name} 不属于该分类", field)
        elif not _is_numeric(template):
            result.add_error(ErrorCode.INVALID_DEFINITION, f"累加项模板 {template.name} 不是数值类型", field)


def validate_rule_definition(
    rule,
    primary_template: Optional[object],
    secondary_template: Optional[object],
    term_templates: Optional[Mapping[int, object]] = None,
) -> ValidationResult:
    """校验规则定义

    Args:
        rule: CompatibilityRule 或 RuleCreate
        primary_template / secondary_template: 规则引用的模板，不存在时传 None
        term_templates: sum_range 累加项引用的模板 {模板ID: 模板}
    """
    result = ValidationResult()

    if not rule.name:
        result.add_error(ErrorCode.INVALID_DEFINITION, "规则名称不能为空", "name")

    if rule.rule_type not in RuleType.ALL:
        result.add_error(ErrorCode.INVALID_DEFINITION,
                         f"未知的规则类型: {rule.rule_type}，可用: {', '.join(RuleType.ALL)}", "rule_type")
    level = rule.level or RuleLevel.ERROR
    if level not in RuleLevel.ALL:
        result.add_error(ErrorCode.INVALID_DEFINITION, f"未知的规则级别: {level}", "level")

    # 模板必须属于规则引用的分类
    if primary_template is None:
        result.add_error(ErrorCode.INVALID_DEFINITION, "主规格模板不存在", "primary_specification_template_id")
    elif primary_template.category_id != rule.primary_category_id:
        result.add_error(ErrorCode.INVALID_DEFINITION,
                         f"主规格模板 {primary_template.name} 不属于主分类", "primary_specification_template_id")
    if secondary_template is None:
        result.add_error(ErrorCode.INVALID_DEFINITION, "次规格模板不存在", "secondary_specification_template_id")
    elif secondary_template.category_id != rule.secondary_category_id:
        result.add_error(ErrorCode.INVALID_DEFINITION,
                         f"次规格模板 {secondary_template.name} 不属于次分类", "secondary_specification_template_id")

    if rule.rule_type == RuleType.RANGE:
        _check_window(rule, result)
        for template, field in ((primary_template, "primary_specification_template_id"),
                                (secondary_template, "secondary_specification_template_id")):
            if template is not None and not _is_numeric(template):
                result.add_warning(ErrorCode.INVALID_DEFINITION,
                                   f"范围规则引用了非数值模板 {template.name}", field)

    elif rule.rule_type == RuleType.SUM_RANGE:
        _check_window(rule, result)
        # 合计无法对非数值求和
        for template, field in ((primary_template, "primary_specification_template_id"),
                                (secondary_template, "secondary_specification_template_id")):
            if template is not None and not _is_numeric(template):
                result.add_error(ErrorCode.INVALID_DEFINITION,
                                 f"合计规则引用了非数值模板 {template.name}", field)
        if rule.primary_category_id == rule.secondary_category_id:
            result.add_error(ErrorCode.INVALID_DEFINITION, "合计规则的主次分类不能相同", "secondary_category_id")
        _check_sum_terms(rule, term_templates or {}, result)

    elif rule.rule_type == RuleType.VALUE_SET:
        if not rule.value_sets:
            result.add_error(ErrorCode.INVALID_DEFINITION, "值集合规则需要非空的 value_sets", "value_sets")

    elif rule.rule_type == RuleType.EXACT_MATCH:
        if (primary_template is not None and secondary_template is not None
                and value_kind_for(primary_template.data_type) != value_kind_for(secondary_template.data_type)):
            result.add_warning(ErrorCode.INVALID_DEFINITION, "两侧模板的值类型不同，精确匹配可能永远不成立", "rule_type")

    return result


def _canonical(raw: str, template, registry: EnumRegistry) -> Optional[str]:
    check = validate_and_normalize(raw, template, registry)
    if not check.is_valid or check.normalized_value is None:
        return None
    return check.normalized_value.canonical()


def canonicalize_value_sets(
    value_sets: Mapping[str, List[str]],
    primary_template,
    secondary_template,
    registry: EnumRegistry,
) -> Tuple[Dict[str, List[str]], ValidationResult]:
    """
    把 value_sets 换成规范值：键按主模板、成员按次模板规范化

    求值器按规范字符串精确比较，无法规范化的值记为 invalid_definition 错误

    Returns:
        (规范化后的 value_sets, 校验结果)
    """
    result = ValidationResult()
    canonical_sets: Dict[str, List[str]] = {}

    for key, members in value_sets.items():
        canonical_key = _canonical(key, primary_template, registry)
        if canonical_key is None:
            result.add_error(ErrorCode.INVALID_DEFINITION,
                             f"value_sets 的键 \"{key}\" 不是 {primary_template.name} 的合法取值", "value_sets")
            continue

        allowed = canonical_sets.setdefault(canonical_key, [])
        for member in members:
            canonical_member = _canonical(member, secondary_template, registry)
            if canonical_member is None:
                result.add_error(ErrorCode.INVALID_DEFINITION,
                                 f"value_sets[{key}] 中的 \"{member}\" 不是 {secondary_template.name} 的合法取值",
                                 "value_sets")
            elif canonical_member not in allowed:
                allowed.append(canonical_member)

    return canonical_sets, result
