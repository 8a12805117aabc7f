"""兼容规则服务"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from configurator.core.exceptions import DefinitionError, RuleNotFoundError
from configurator.engine.enums import EnumRegistry
from configurator.engine.rule_validator import canonicalize_value_sets, validate_rule_definition
from configurator.models import CompatibilityRule, SpecificationTemplate
from configurator.models.compatibility_rule import RuleType
from configurator.schemas.compatibility_rule import RuleCreate, RuleUpdate
from configurator.schemas.validation import ValidationResult

logger = logging.getLogger(__name__)


def _with_relations(query):
    return query.options(
        selectinload(CompatibilityRule.primary_category),
        selectinload(CompatibilityRule.secondary_category),
        selectinload(CompatibilityRule.primary_template),
        selectinload(CompatibilityRule.secondary_template),
    )


async def get_rule(db: AsyncSession, rule_id: int) -> CompatibilityRule:
    result = await db.execute(
        _with_relations(select(CompatibilityRule))
        .execution_options(populate_existing=True)
        .where(CompatibilityRule.id == rule_id)
    )
    rule = result.scalar_one_or_none()
    if rule is None:
        raise RuleNotFoundError(rule_id)
    return rule


async def list_rules(
    db: AsyncSession, category_id: Optional[int] = None, is_active: Optional[bool] = None
) -> List[CompatibilityRule]:
    query = _with_relations(select(CompatibilityRule))
    if category_id is not None:
        query = query.where(
            or_(
                CompatibilityRule.primary_category_id == category_id,
                CompatibilityRule.secondary_category_id == category_id,
            )
        )
    if is_active is not None:
        query = query.where(CompatibilityRule.is_active == is_active)
    result = await db.execute(query.order_by(CompatibilityRule.id))
    return list(result.scalars().all())


async def _check_definition(db: AsyncSession, rule, registry: EnumRegistry) -> Tuple[ValidationResult, Optional[dict]]:
    """校验规则定义，返回 (校验结果, 规范化后的 value_sets)；错误时抛出 DefinitionError"""
    primary = await db.get(SpecificationTemplate, rule.primary_specification_template_id)
    secondary = await db.get(SpecificationTemplate, rule.secondary_specification_template_id)

    term_templates = {}
    for term in rule.sum_terms or []:
        template_id = term.get("template_id") if isinstance(term, dict) else term.template_id
        if template_id is not None:
            template = await db.get(SpecificationTemplate, template_id)
            if template is not None:
                term_templates[template_id] = template

    check = validate_rule_definition(rule, primary, secondary, term_templates)

    value_sets = None
    if (rule.rule_type == RuleType.VALUE_SET and rule.value_sets
            and primary is not None and secondary is not None):
        value_sets, value_check = canonicalize_value_sets(rule.value_sets, primary, secondary, registry)
        check.errors.extend(value_check.errors)
        check.is_valid = check.is_valid and value_check.is_valid

    if not check.is_valid:
        raise DefinitionError("兼容规则定义不合法", check.error_messages)
    return check, value_sets


async def create_rule(
    db: AsyncSession, rule_in: RuleCreate, registry: EnumRegistry
) -> Tuple[CompatibilityRule, ValidationResult]:
    check, value_sets = await _check_definition(db, rule_in, registry)

    data = rule_in.model_dump()
    if value_sets is not None:
        data["value_sets"] = value_sets
    rule = CompatibilityRule(**data)
    db.add(rule)
    await db.commit()

    logger.info(f"🔗 创建兼容规则: {rule.name} ({rule.rule_type})")
    return await get_rule(db, rule.id), check


async def update_rule(
    db: AsyncSession, rule_id: int, rule_in: RuleUpdate, registry: EnumRegistry
) -> Tuple[CompatibilityRule, ValidationResult]:
    rule = await get_rule(db, rule_id)
    update_data = rule_in.model_dump(exclude_unset=True)

    merged = RuleCreate(**{
        **{field: getattr(rule, field) for field in RuleCreate.model_fields},
        **update_data,
    })
    check, value_sets = await _check_definition(db, merged, registry)
    if value_sets is not None:
        update_data["value_sets"] = value_sets

    for field, value in update_data.items():
        setattr(rule, field, value)
    await db.commit()

    logger.info(f"🔗 更新兼容规则: {rule.name}")
    return await get_rule(db, rule_id), check


async def delete_rule(db: AsyncSession, rule_id: int) -> None:
    rule = await get_rule(db, rule_id)
    await db.delete(rule)
    await db.commit()
    logger.info(f"🗑️ 删除兼容规则: {rule.name}")
