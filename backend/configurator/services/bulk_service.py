"""
批量规格编辑

把同一个值写入多个商品：值只校验一次，兼容性键再按每个商品现有的规格做跨字段校验；
之后每个商品独立提交，某个商品失败只记录错误并回滚它自己的修改，其余商品继续处理
"""

import logging
from typing import Any, Dict, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from configurator.core.exceptions import TemplateNotFoundError
from configurator.engine.enums import EnumRegistry
from configurator.engine.validator import validate_and_normalize
from configurator.models import Product, ProductSpecification, SpecificationTemplate
from configurator.schemas.product import BulkItemError, BulkSpecificationResult
from configurator.schemas.validation import TypedValue

logger = logging.getLogger(__name__)


async def apply_to_product(db: AsyncSession, template: dict, product_id: int, typed: TypedValue) -> None:
    """写入（或覆盖）一个商品的规格值

    template 是模板字段的快照（id/name/category_id/display_order），回滚后仍可使用
    """
    product = await db.get(Product, product_id)
    if product is None:
        raise ValueError(f"商品不存在: {product_id}")
    if product.spec_category_id != template["category_id"]:
        raise ValueError(f"商品 {product.name} 不属于模板 {template['name']} 的分类")

    result = await db.execute(
        select(ProductSpecification).where(
            ProductSpecification.product_id == product_id,
            ProductSpecification.template_id == template["id"],
        )
    )
    row = result.scalar_one_or_none()
    if row is None:
        row = ProductSpecification(
            product_id=product_id,
            template_id=template["id"],
            name=template["name"],
            display_order=template["display_order"],
        )
        db.add(row)
    row.set_typed_value(typed)


async def _cross_field_errors(
    db: AsyncSession, template: SpecificationTemplate, typed: TypedValue,
    product_ids: List[int], registry: EnumRegistry,
) -> Dict[int, str]:
    """
    兼容性键的跨字段校验：把新值放进每个商品现有的规格中，
    逐个兼容性键带上下文重新校验，与创建/更新商品时的第二轮校验一致

    Returns:
        {商品ID: 错误信息}，只包含校验失败的商品
    """
    key_templates = (await db.execute(
        select(SpecificationTemplate).where(
            SpecificationTemplate.category_id == template.category_id,
            SpecificationTemplate.is_compatibility_key.is_(True),
        )
    )).scalars().all()

    rows = await db.execute(
        select(ProductSpecification).where(
            ProductSpecification.product_id.in_(product_ids),
            ProductSpecification.template_id != template.id,
        )
    )
    values_by_product: Dict[int, Dict[str, TypedValue]] = {}
    for row in rows.scalars():
        value = row.typed_value
        if value is not None:
            values_by_product.setdefault(row.product_id, {})[row.name] = value

    errors: Dict[int, str] = {}
    for product_id in product_ids:
        values = {**values_by_product.get(product_id, {}), template.name: typed}
        messages = []
        for key_template in key_templates:
            value = values.get(key_template.name)
            if value is None:
                continue
            context = {name: v for name, v in values.items() if name != key_template.name}
            messages.extend(validate_and_normalize(value, key_template, registry, context).error_messages)
        if messages:
            errors[product_id] = "; ".join(messages)
    return errors


async def bulk_apply_specification(
    db: AsyncSession,
    registry: EnumRegistry,
    template_id: int,
    product_ids: List[int],
    raw_value: Any,
) -> BulkSpecificationResult:
    """
    批量设置规格值

    Returns:
        success_count / error_count / errors（每个失败商品一条）
    """
    template = await db.get(SpecificationTemplate, template_id)
    if template is None:
        raise TemplateNotFoundError(template_id)

    result = BulkSpecificationResult()
    validation = validate_and_normalize(raw_value, template, registry)
    result.validation = validation
    if not validation.is_valid or validation.normalized_value is None:
        message = "; ".join(validation.error_messages) or "值为空"
        result.error_count = len(product_ids)
        result.errors = [BulkItemError(product_id=pid, error=message) for pid in product_ids]
        return result

    typed = validation.normalized_value
    cross_errors: Dict[int, str] = {}
    if template.is_compatibility_key:
        cross_errors = await _cross_field_errors(db, template, typed, product_ids, registry)

    snapshot = {
        "id": template.id,
        "name": template.name,
        "category_id": template.category_id,
        "display_order": template.display_order or 0,
    }
    for product_id in product_ids:
        if product_id in cross_errors:
            logger.warning(f"⚠️ 商品 {product_id} 批量更新 {snapshot['name']} 未通过跨字段校验: {cross_errors[product_id]}")
            result.error_count += 1
            result.errors.append(BulkItemError(product_id=product_id, error=cross_errors[product_id]))
            continue
        try:
            await apply_to_product(db, snapshot, product_id, typed)
            await db.commit()
            result.success_count += 1
        except Exception as e:
            await db.rollback()
            logger.warning(f"⚠️ 商品 {product_id} 批量更新 {snapshot['name']} 失败: {e}")
            result.error_count += 1
            result.errors.append(BulkItemError(product_id=product_id, error=str(e)))

    logger.info(f"📦 批量设置 {snapshot['name']}={typed.display()}: 成功 {result.success_count}，失败 {result.error_count}")
    return result
