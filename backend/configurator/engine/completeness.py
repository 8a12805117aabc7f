"""
规格完整度统计

只读统计，与兼容性求值分开：这里报告“数据不完整”，
求值器对缺失规格则直接判定失败
"""

from typing import Iterable, List, Sequence

from configurator.schemas.analytics import CompletionStats, ProductMissingSpecs, RuleCoverageIssue


def _present_template_ids(product) -> set:
    return {spec.template_id for spec in product.specifications}


def _missing(products: Sequence, templates: Sequence) -> List[ProductMissingSpecs]:
    report = []
    for product in products:
        present = _present_template_ids(product)
        missing = [t.name for t in templates if t.id not in present]
        if missing:
            report.append(ProductMissingSpecs(product_id=product.id, product_name=product.name, missing=missing))
    return report


def missing_required_specifications(products: Sequence, templates: Sequence) -> List[ProductMissingSpecs]:
    """每个商品缺少的必填规格"""
    return _missing(products, [t for t in templates if t.is_required])


def missing_key_specifications(products: Sequence, templates: Sequence) -> List[ProductMissingSpecs]:
    """每个商品缺少的兼容性键规格"""
    return _missing(products, [t for t in templates if t.is_compatibility_key])


def completion_stats(products: Sequence, templates: Sequence) -> CompletionStats:
    """按必填规格统计完整度"""
    total = len(products)
    incomplete = len(missing_required_specifications(products, templates))
    complete = total - incomplete
    rate = round(complete / total * 100, 2) if total else 0.0
    return CompletionStats(total=total, complete=complete, incomplete=incomplete, completion_rate=rate)


def rule_coverage_issues(category_id: int, products: Sequence, rules: Iterable,
                         templates_by_id: dict) -> List[RuleCoverageIssue]:
    """分类中缺少规则所引用模板的商品"""
    issues = []
    for rule in rules:
        if rule.is_active is False:
            continue
        sides = []
        if rule.primary_category_id == category_id:
            sides.append(rule.primary_specification_template_id)
        if rule.secondary_category_id == category_id:
            sides.append(rule.secondary_specification_template_id)

        for template_id in dict.fromkeys(sides):
            lacking = [p.id for p in products if template_id not in _present_template_ids(p)]
            if not lacking:
                continue
            template = templates_by_id.get(template_id)
            issues.append(RuleCoverageIssue(
                rule_id=rule.id,
                rule_name=rule.name,
                template_id=template_id,
                template_name=template.name if template is not None else str(template_id),
                product_ids=lacking,
            ))
    return issues
