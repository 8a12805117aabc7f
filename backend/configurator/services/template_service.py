"""
规格模板服务

创建/更新时校验模板定义：错误阻断保存（DefinitionError），警告随结果返回
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from configurator.core.exceptions import (
    CategoryNotFoundError, ConflictError, DefinitionError, TemplateNotFoundError,
)
from configurator.engine.enums import EnumRegistry
from configurator.engine.template_validator import auto_fill_enum_values, validate_template_definition
from configurator.models import Category, CompatibilityRule, ProductSpecification, SpecificationTemplate
from configurator.schemas.specification_template import TemplateCreate, TemplateUpdate
from configurator.schemas.validation import ValidationResult, value_kind_for
from configurator.services.catalog_store import CatalogStore

logger = logging.getLogger(__name__)


async def get_templates_for_category(db: AsyncSession, category_id: int) -> List[SpecificationTemplate]:
    """分类下的模板（按 display_order），分类不存在时抛出 CategoryNotFoundError"""
    return await CatalogStore(db).get_templates_for_category(category_id)


async def get_template(db: AsyncSession, template_id: int) -> SpecificationTemplate:
    result = await db.execute(
        select(SpecificationTemplate)
        .options(selectinload(SpecificationTemplate.category))
        .execution_options(populate_existing=True)
        .where(SpecificationTemplate.id == template_id)
    )
    template = result.scalar_one_or_none()
    if template is None:
        raise TemplateNotFoundError(template_id)
    return template


async def list_templates(db: AsyncSession, category_id: Optional[int] = None) -> List[SpecificationTemplate]:
    query = select(SpecificationTemplate).options(selectinload(SpecificationTemplate.category))
    if category_id is not None:
        query = query.where(SpecificationTemplate.category_id == category_id)
    query = query.order_by(SpecificationTemplate.category_id, SpecificationTemplate.display_order,
                           SpecificationTemplate.id)
    result = await db.execute(query)
    return list(result.scalars().all())


def _raise_if_invalid(check: ValidationResult) -> None:
    if not check.is_valid:
        raise DefinitionError("模板定义不合法", check.error_messages)


async def _count_specifications(db: AsyncSession, template_id: int) -> int:
    result = await db.execute(
        select(func.count(ProductSpecification.id)).where(ProductSpecification.template_id == template_id)
    )
    return result.scalar() or 0


async def create_template(
    db: AsyncSession, template_in: TemplateCreate, registry: EnumRegistry
) -> Tuple[SpecificationTemplate, ValidationResult]:
    """创建模板，返回 (模板, 定义校验结果)"""
    category = await db.get(Category, template_in.category_id)
    if category is None:
        raise CategoryNotFoundError(template_in.category_id)

    if template_in.auto_fill_enum_values:
        template_in.enum_values = auto_fill_enum_values(template_in, registry)

    check = validate_template_definition(template_in, registry)
    _raise_if_invalid(check)

    existing = await db.execute(
        select(SpecificationTemplate).where(
            and_(
                SpecificationTemplate.category_id == template_in.category_id,
                SpecificationTemplate.name == template_in.name,
            )
        )
    )
    if existing.scalar_one_or_none():
        raise ConflictError(f"该分类下已存在同名模板: {template_in.name}")

    data = template_in.model_dump(exclude={"auto_fill_enum_values"}, mode="json")
    template = SpecificationTemplate(**data)
    db.add(template)
    await db.commit()
    template = await get_template(db, template.id)

    logger.info(f"📐 创建规格模板: {category.name}.{template.name} ({template.data_type})")
    return template, check


async def update_template(
    db: AsyncSession, template_id: int, template_in: TemplateUpdate, registry: EnumRegistry
) -> Tuple[SpecificationTemplate, ValidationResult]:
    """更新模板，按合并后的定义重新校验"""
    template = await get_template(db, template_id)

    update_data = template_in.model_dump(exclude_unset=True, mode="json")
    merged = TemplateCreate(
        category_id=template.category_id,
        name=template.name,
        display_name=update_data.get("display_name", template.display_name),
        description=update_data.get("description", template.description),
        data_type=update_data.get("data_type", template.data_type),
        is_required=update_data.get("is_required", template.is_required),
        is_compatibility_key=update_data.get("is_compatibility_key", template.is_compatibility_key),
        is_filterable=update_data.get("is_filterable", template.is_filterable),
        filter_type=update_data.get("filter_type", template.filter_type),
        enum_source=update_data.get("enum_source", template.enum_source),
        enum_values=update_data.get("enum_values", template.enum_values),
        validation_rules=update_data.get("validation_rules", template.validation_rules),
        display_order=update_data.get("display_order", template.display_order),
    )
    check = validate_template_definition(merged, registry)
    _raise_if_invalid(check)

    # 已有规格值按旧的值类型存储，值类型改变会破坏存量数据
    if value_kind_for(merged.data_type) != value_kind_for(template.data_type):
        spec_count = await _count_specifications(db, template_id)
        if spec_count:
            raise ConflictError(
                f"模板 {template.name} 已有 {spec_count} 个商品规格值，"
                f"不能把数据类型从 {template.data_type} 改为 {getattr(merged.data_type, 'value', merged.data_type)}"
            )

    for field, value in update_data.items():
        setattr(template, field, value)
    await db.commit()

    logger.info(f"📐 更新规格模板: {template.name}")
    return await get_template(db, template_id), check


async def delete_template(db: AsyncSession, template_id: int) -> None:
    """删除模板；被兼容规则或商品规格引用时拒绝"""
    template = await get_template(db, template_id)

    rule_count = (await db.execute(
        select(func.count(CompatibilityRule.id)).where(
            or_(
                CompatibilityRule.primary_specification_template_id == template_id,
                CompatibilityRule.secondary_specification_template_id == template_id,
            )
        )
    )).scalar() or 0
    # sum_range 的累加项也会引用模板
    term_rules = await db.execute(select(CompatibilityRule).where(CompatibilityRule.sum_terms.isnot(None)))
    rule_count += sum(
        1 for rule in term_rules.scalars()
        if any(term.get("template_id") == template_id for term in rule.sum_terms or [])
    )
    if rule_count:
        raise ConflictError(f"模板 {template.name} 被 {rule_count} 条兼容规则引用，无法删除")

    spec_count = await _count_specifications(db, template_id)
    if spec_count:
        raise ConflictError(f"模板 {template.name} 已有 {spec_count} 个商品规格值，无法删除")

    await db.delete(template)
    await db.commit()
    logger.info(f"🗑️ 删除规格模板: {template.name}")
