"""
商品规格服务

创建商品的步骤：
1. 解析分类（subcategory_id 优先），加载模板
2. 在原始输入上检查必填项，逐字段校验，再带上下文校验兼容性键
3. 有任何错误则直接返回，不写数据库
4. 插入商品（提交），再插入规格行（提交）
5. 规格插入失败时删除刚创建的商品，对调用方而言整个操作要么全部完成要么没有发生
"""

import logging
from typing import Any, Dict, List, Mapping

from configurator.core.exceptions import ProductNotFoundError
from configurator.engine.enums import EnumRegistry
from configurator.engine.validator import validate_specification_set
from configurator.models import ProductSpecification, SpecificationTemplate
from configurator.schemas.product import ProductCreationResult
from configurator.schemas.validation import (
    ErrorCode, SpecificationSetResult, ValidationMessage, ValueKind, value_kind_for,
)
from configurator.services.catalog_store import CatalogStore

logger = logging.getLogger(__name__)


def build_specification_rows(
    templates: List[SpecificationTemplate], validation: SpecificationSetResult
) -> List[ProductSpecification]:
    """把规范化的值转换为规格行"""
    rows = []
    for template in templates:
        typed = validation.normalized.get(template.name)
        if typed is None:
            continue
        if ValueKind(typed.kind) != value_kind_for(template.data_type):
            raise ValueError(f"规格 {template.name} 的值类型 {typed.kind} 与数据类型 {template.data_type} 不符")
        row = ProductSpecification(
            template_id=template.id,
            name=template.name,
            display_order=template.display_order or 0,
        )
        row.set_typed_value(typed)
        rows.append(row)
    return rows


class ProductSpecificationService:
    """商品与规格的写入编排"""

    def __init__(self, store: CatalogStore, registry: EnumRegistry):
        self.store = store
        self.registry = registry

    async def _validate(self, category_id: int, raw_specifications: Mapping[str, Any]):
        templates = await self.store.get_templates_for_category(category_id)
        validation = validate_specification_set(raw_specifications, templates, self.registry)
        return templates, validation

    @staticmethod
    def _failure(message: str, code: ErrorCode = ErrorCode.INVALID_DEFINITION, **kwargs) -> ProductCreationResult:
        return ProductCreationResult(
            success=False,
            errors=[ValidationMessage(code=code, message=message)],
            **kwargs,
        )

    async def create_product_with_specifications(
        self, product_data: Dict[str, Any], raw_specifications: Mapping[str, Any]
    ) -> ProductCreationResult:
        """创建商品及其规格"""
        category_id = product_data.get("subcategory_id") or product_data.get("category_id")
        if not category_id:
            return self._failure("商品必须指定分类")

        category = await self.store.get_category(category_id)
        if category is None:
            return self._failure(f"分类不存在: {category_id}")

        templates, validation = await self._validate(category_id, raw_specifications)
        if not validation.is_valid:
            logger.info(f"⛔ 商品 {product_data.get('name')} 规格校验未通过: {len(validation.errors)} 个错误")
            return ProductCreationResult(
                success=False,
                errors=validation.errors,
                warnings=validation.warnings,
                validation_details=validation.details,
            )

        rows = build_specification_rows(templates, validation)
        product = await self.store.insert_product(product_data)
        product_id = product.id

        try:
            created = await self.store.insert_specifications(product_id, rows)
        except Exception as e:
            logger.exception(f"❌ 商品 {product_id} 规格写入失败，回滚商品")
            await self.store.delete_product(product_id)
            return ProductCreationResult(
                success=False,
                errors=[ValidationMessage(code=ErrorCode.INVALID_DEFINITION, message=f"规格写入失败: {e}")],
                warnings=validation.warnings,
                validation_details=validation.details,
            )

        logger.info(f"✅ 创建商品 {product.name} (id={product_id})，规格 {created} 项")
        return ProductCreationResult(
            success=True,
            product_id=product_id,
            specifications_created=created,
            warnings=validation.warnings,
            validation_details=validation.details,
        )

    async def update_product_specifications(
        self, product_id: int, raw_specifications: Mapping[str, Any]
    ) -> ProductCreationResult:
        """按完整规格替换商品现有规格（全部成功或全部不变）"""
        product = await self.store.get_product(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)

        templates, validation = await self._validate(product.spec_category_id, raw_specifications)
        if not validation.is_valid:
            return ProductCreationResult(
                success=False,
                product_id=product_id,
                errors=validation.errors,
                warnings=validation.warnings,
                validation_details=validation.details,
            )

        rows = build_specification_rows(templates, validation)
        try:
            created = await self.store.replace_specifications(product_id, rows)
        except Exception as e:
            logger.exception(f"❌ 商品 {product_id} 规格更新失败")
            return self._failure(f"规格写入失败: {e}", product_id=product_id,
                                 warnings=validation.warnings, validation_details=validation.details)

        logger.info(f"✏️ 更新商品 {product_id} 规格 {created} 项")
        return ProductCreationResult(
            success=True,
            product_id=product_id,
            specifications_created=created,
            warnings=validation.warnings,
            validation_details=validation.details,
        )

    async def get_product_specifications(self, product_id: int) -> List[ProductSpecification]:
        product = await self.store.get_product(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return await self.store.get_product_specifications(product_id)
