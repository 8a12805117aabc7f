"""
兼容性规则求值器

对已选组件的快照逐条解释兼容规则，规则本身是数据（分类/模板对 + 比较方式），
新增组件类型或规则只需要新增数据行。

求值是纯函数，不访问数据库；调用方负责把商品规格解析成 SelectedComponent
"""

from typing import Iterable, List, Optional, Sequence, Tuple

from configurator.models.compatibility_rule import RuleLevel, RuleType
from configurator.schemas.compatibility import (
    CompatibilityEvaluationResult,
    CompatibilityIssue,
    CompatibilityStatus,
    CompatibleCandidate,
    IssueLevel,
    IssueSeverity,
    SelectedComponent,
)
from configurator.schemas.validation import ErrorCode, NumberValue, format_number


def aggregate_status(issues: Iterable[CompatibilityIssue]) -> CompatibilityStatus:
    """三态汇总：有 error 即 error，否则有 warning 即 warning"""
    status = CompatibilityStatus.VALID
    for issue in issues:
        if issue.level == IssueLevel.ERROR:
            return CompatibilityStatus.ERROR
        if issue.level == IssueLevel.WARNING:
            status = CompatibilityStatus.WARNING
    return status


def _is_active(rule) -> bool:
    return rule.is_active is not False


def _rule_level(rule) -> IssueLevel:
    return IssueLevel.WARNING if rule.level == RuleLevel.WARNING else IssueLevel.ERROR


def select_applicable_rules(selection: Sequence[SelectedComponent], rules: Iterable) -> List:
    """两个分类都出现在已选组件中的启用规则"""
    categories = {c.category_id for c in selection}
    return [
        rule for rule in rules
        if _is_active(rule)
        and rule.primary_category_id in categories
        and rule.secondary_category_id in categories
    ]


def _pairs(selection: Sequence[SelectedComponent], rule) -> List[Tuple[SelectedComponent, SelectedComponent]]:
    """规则作用的 (主, 次) 组件对

    两侧是同一分类时检查每个组件自身的两个规格（如主板插槽与芯片组）
    """
    primaries = [c for c in selection if c.category_id == rule.primary_category_id]
    if rule.primary_category_id == rule.secondary_category_id:
        return [(c, c) for c in primaries]
    secondaries = [c for c in selection if c.category_id == rule.secondary_category_id]
    return [(p, s) for p in primaries for s in secondaries]


def _violation(rule, component1: str, component2: str, message: str, details: str) -> CompatibilityIssue:
    level = _rule_level(rule)
    return CompatibilityIssue(
        type=ErrorCode.RULE_VIOLATION,
        level=level,
        severity=IssueSeverity.CRITICAL if level == IssueLevel.ERROR else IssueSeverity.MEDIUM,
        component1=component1,
        component2=component2,
        message=message,
        details=details,
        rule_id=rule.id,
    )


def _check_exact_match(rule, primary, secondary, primary_value, secondary_value) -> Optional[CompatibilityIssue]:
    if primary_value.canonical() == secondary_value.canonical():
        return None
    return _violation(
        rule, primary.name, secondary.name,
        f"{primary.name} 与 {secondary.name} 不兼容（{rule.name}）",
        f"{primary_value.display()} ≠ {secondary_value.display()}",
    )


def _window(rule, base: float) -> Tuple[Optional[float], Optional[float]]:
    """系数区间与绝对边界的交集"""
    low: Optional[float] = None
    high: Optional[float] = None
    if rule.lower_factor is not None:
        low = base * rule.lower_factor
    if rule.upper_factor is not None:
        high = base * rule.upper_factor
    if rule.min_value is not None:
        low = rule.min_value if low is None else max(low, rule.min_value)
    if rule.max_value is not None:
        high = rule.max_value if high is None else min(high, rule.max_value)
    return low, high


def _in_window(value: float, low: Optional[float], high: Optional[float]) -> bool:
    # 区间两端都包含
    return (low is None or value >= low) and (high is None or value <= high)


def _format_window(low: Optional[float], high: Optional[float]) -> str:
    left = format_number(round(low, 2)) if low is not None else "-∞"
    right = format_number(round(high, 2)) if high is not None else "+∞"
    return f"[{left}, {right}]"


def _check_range(rule, primary, secondary, primary_value, secondary_value) -> Optional[CompatibilityIssue]:
    if not isinstance(primary_value, NumberValue) or not isinstance(secondary_value, NumberValue):
        return _violation(
            rule, primary.name, secondary.name,
            f"{primary.name} 与 {secondary.name} 无法比较（{rule.name}）",
            f"范围规则需要数值：{primary_value.display()} / {secondary_value.display()}",
        )

    low, high = _window(rule, primary_value.value)
    if _in_window(secondary_value.value, low, high):
        return None

    window = _format_window(low, high)
    return _violation(
        rule, primary.name, secondary.name,
        f"{secondary.name} 的取值超出 {primary.name} 要求的范围（{rule.name}）",
        f"{secondary_value.display()} 不在 {window} 内",
    )


def _check_value_set(rule, primary, secondary, primary_value, secondary_value) -> Optional[CompatibilityIssue]:
    value_sets = rule.value_sets or {}
    allowed = value_sets.get(primary_value.canonical()) or []
    if secondary_value.canonical() in allowed:
        return None
    return _violation(
        rule, primary.name, secondary.name,
        f"{primary.name} 与 {secondary.name} 不兼容（{rule.name}）",
        f"{primary_value.display()} 允许: {', '.join(allowed) if allowed else '无'}，实际: {secondary_value.display()}",
    )


_CHECKS = {
    RuleType.EXACT_MATCH: _check_exact_match,
    RuleType.RANGE: _check_range,
    RuleType.VALUE_SET: _check_value_set,
}


def _missing_specification(rule, component1: str, component2: str, missing: List[str]) -> CompatibilityIssue:
    return CompatibilityIssue(
        type=ErrorCode.MISSING_SPECIFICATION,
        level=IssueLevel.ERROR,
        severity=IssueSeverity.HIGH,
        component1=component1,
        component2=component2,
        message=f"无法确认 {component1} 与 {component2} 的兼容性（{rule.name}）：缺少规格",
        details=f"缺少规格的组件: {', '.join(dict.fromkeys(missing))}",
        rule_id=rule.id,
    )


def _evaluate_pair(rule, primary: SelectedComponent, secondary: SelectedComponent) -> Optional[CompatibilityIssue]:
    primary_value = primary.specifications.get(rule.primary_specification_template_id)
    secondary_value = secondary.specifications.get(rule.secondary_specification_template_id)

    # 缺少规格视为失败
    if primary_value is None or secondary_value is None:
        missing = [c.name for c, v in ((primary, primary_value), (secondary, secondary_value)) if v is None]
        return _missing_specification(rule, primary.name, secondary.name, missing)

    check = _CHECKS.get(rule.rule_type)
    if check is None:
        return _violation(rule, primary.name, secondary.name, f"未知的规则类型: {rule.rule_type}", rule.name)
    return check(rule, primary, secondary, primary_value, secondary_value)


# ==================== 合计型规则 ====================

def _term_total(term: dict, selection: Sequence[SelectedComponent]) -> float:
    """累加项：分类中每个已选组件取模板数值，没有时取 constant"""
    total = 0.0
    for component in selection:
        if component.category_id != term.get("category_id"):
            continue
        value = component.specifications.get(term.get("template_id")) if term.get("template_id") else None
        if isinstance(value, NumberValue):
            total += value.value
        elif term.get("constant") is not None:
            total += term["constant"]
    return total


def _evaluate_sum(rule, selection: Sequence[SelectedComponent],
                  secondary: SelectedComponent) -> Optional[CompatibilityIssue]:
    """
    主模板在所有主分类组件上求和，加上累加项，得到合计；
    次方值须落在以合计为基数的区间内（如整机功耗与电源额定功率）
    """
    primaries = [c for c in selection if c.category_id == rule.primary_category_id]
    demand = "、".join(c.name for c in primaries)
    values = [(c, c.specifications.get(rule.primary_specification_template_id)) for c in primaries]
    capacity = secondary.specifications.get(rule.secondary_specification_template_id)

    # 主方或次方缺规格即失败，累加项缺值时按 constant 计
    missing = [c.name for c, v in values if v is None]
    if capacity is None:
        missing.append(secondary.name)
    if missing:
        return _missing_specification(rule, demand, secondary.name, missing)

    if not isinstance(capacity, NumberValue) or not all(isinstance(v, NumberValue) for _, v in values):
        return _violation(rule, demand, secondary.name,
                          f"{demand} 与 {secondary.name} 无法比较（{rule.name}）", "合计规则需要数值")

    total = sum(v.value for _, v in values)
    total += sum(_term_total(term, selection) for term in rule.sum_terms or [])

    low, high = _window(rule, total)
    if _in_window(capacity.value, low, high):
        return None

    required = NumberValue(value=round(total, 2), unit=capacity.unit).display()
    return _violation(
        rule, demand, secondary.name,
        f"{secondary.name} 不满足整机合计需求（{rule.name}）",
        f"合计 {required}，{capacity.display()} 不在 {_format_window(low, high)} 内",
    )


def _rule_categories(rule) -> set:
    categories = {rule.primary_category_id, rule.secondary_category_id}
    for term in rule.sum_terms or []:
        categories.add(term.get("category_id"))
    return categories


def evaluate_compatibility(
    selection: Sequence[SelectedComponent],
    rules: Iterable,
) -> CompatibilityEvaluationResult:
    """
    检查已选组件的兼容性

    Args:
        selection: 已选组件及其规格快照
        rules: 全部兼容规则（未启用的会被跳过）

    Returns:
        status/issues/rules_checked/rules_passed，总是返回完整的问题列表
    """
    result = CompatibilityEvaluationResult()

    for rule in select_applicable_rules(selection, rules):
        if rule.rule_type == RuleType.SUM_RANGE:
            # 合计型规则对每个次方组件检查一次
            outcomes = [
                _evaluate_sum(rule, selection, c)
                for c in selection if c.category_id == rule.secondary_category_id
            ]
        else:
            outcomes = [_evaluate_pair(rule, p, s) for p, s in _pairs(selection, rule)]

        for issue in outcomes:
            result.rules_checked += 1
            if issue is None:
                result.rules_passed += 1
            else:
                result.issues.append(issue)

    result.status = aggregate_status(result.issues)
    return result


def find_compatible_products(
    selection: Sequence[SelectedComponent],
    candidates: Sequence[SelectedComponent],
    target_category_id: int,
    rules: Iterable,
) -> List[CompatibleCandidate]:
    """
    在目标分类中筛选与当前配置兼容的候选组件

    候选组件替换配置中同分类的已选组件后求值，只看涉及目标分类的规则
    （包括把目标分类作为累加项的合计型规则）；结论不是 error 的候选组件被返回
    """
    target_rules = [r for r in rules if target_category_id in _rule_categories(r)]
    others = [c for c in selection if c.category_id != target_category_id]

    compatible = []
    for candidate in candidates:
        if candidate.category_id != target_category_id:
            continue
        evaluation = evaluate_compatibility(others + [candidate], target_rules)
        if evaluation.status == CompatibilityStatus.ERROR:
            continue
        compatible.append(CompatibleCandidate(
            product_id=candidate.product_id,
            name=candidate.name,
            status=evaluation.status,
            issues=evaluation.issues,
        ))
    return compatible
