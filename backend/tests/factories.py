"""测试用的模板/规则构造函数（不落库）"""

from configurator.models import CompatibilityRule, SpecificationTemplate


def make_template(name, data_type, **kwargs) -> SpecificationTemplate:
    defaults = dict(
        id=None,
        category_id=1,
        display_name=name,
        is_required=False,
        is_compatibility_key=False,
        is_filterable=False,
        filter_type=None,
        enum_source=None,
        enum_values=None,
        validation_rules=None,
        display_order=0,
    )
    defaults.update(kwargs)
    return SpecificationTemplate(name=name, data_type=data_type, **defaults)


def make_rule(rule_id, primary, secondary, rule_type="exact_match", **kwargs) -> CompatibilityRule:
    """primary / secondary 为 (分类ID, 模板ID)"""
    defaults = dict(
        name=f"rule-{rule_id}",
        lower_factor=None,
        upper_factor=None,
        min_value=None,
        max_value=None,
        value_sets=None,
        sum_terms=None,
        level="error",
        is_active=True,
    )
    defaults.update(kwargs)
    return CompatibilityRule(
        id=rule_id,
        primary_category_id=primary[0],
        primary_specification_template_id=primary[1],
        secondary_category_id=secondary[0],
        secondary_specification_template_id=secondary[1],
        rule_type=rule_type,
        **defaults,
    )
