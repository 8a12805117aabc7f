"""
商品目录存取

封装 AsyncSession 上的读写操作，供规格服务、兼容性检查和统计使用。
写操作各自提交；插入规格失败时回滚本次事务后重新抛出
"""

import logging
from typing import Dict, List, Optional, Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from configurator.core.exceptions import CategoryNotFoundError
from configurator.models import (
    Category, CompatibilityRule, Product, ProductSpecification, SpecificationTemplate,
)
from configurator.schemas.compatibility import SelectedComponent

logger = logging.getLogger(__name__)


class CatalogStore:
    """目录读写"""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ==================== 分类与模板 ====================

    async def get_category(self, category_id: int) -> Optional[Category]:
        return await self.db.get(Category, category_id)

    async def get_templates_for_category(self, category_id: int) -> List[SpecificationTemplate]:
        """分类下的全部模板，按 display_order 排序；分类不存在时抛出 CategoryNotFoundError"""
        category = await self.get_category(category_id)
        if category is None:
            raise CategoryNotFoundError(category_id)

        result = await self.db.execute(
            select(SpecificationTemplate)
            .where(SpecificationTemplate.category_id == category_id)
            .order_by(SpecificationTemplate.display_order, SpecificationTemplate.id)
        )
        return list(result.scalars().all())

    async def get_template(self, template_id: int) -> Optional[SpecificationTemplate]:
        return await self.db.get(SpecificationTemplate, template_id)

    async def get_templates_by_ids(self, template_ids: Sequence[int]) -> Dict[int, SpecificationTemplate]:
        if not template_ids:
            return {}
        result = await self.db.execute(
            select(SpecificationTemplate).where(SpecificationTemplate.id.in_(list(template_ids)))
        )
        return {t.id: t for t in result.scalars().all()}

    # ==================== 商品 ====================

    async def get_product(self, product_id: int) -> Optional[Product]:
        result = await self.db.execute(
            select(Product)
            .options(selectinload(Product.specifications))
            .execution_options(populate_existing=True)
            .where(Product.id == product_id)
        )
        return result.scalar_one_or_none()

    async def get_products(self, product_ids: Sequence[int]) -> List[Product]:
        if not product_ids:
            return []
        result = await self.db.execute(
            select(Product)
            .options(selectinload(Product.specifications))
            .execution_options(populate_existing=True)
            .where(Product.id.in_(list(product_ids)))
            .order_by(Product.id)
        )
        return list(result.scalars().unique().all())

    async def list_products_for_category(self, category_id: int, in_stock_only: bool = False) -> List[Product]:
        """规格模板属于该分类的商品（subcategory_id 优先）"""
        query = (
            select(Product)
            .options(selectinload(Product.specifications))
            .execution_options(populate_existing=True)
            .where(
                (Product.subcategory_id == category_id)
                | ((Product.subcategory_id.is_(None)) & (Product.category_id == category_id))
            )
            .order_by(Product.id)
        )
        if in_stock_only:
            query = query.where(Product.in_stock == True)  # noqa: E712
        result = await self.db.execute(query)
        return list(result.scalars().unique().all())

    async def insert_product(self, product_data: dict) -> Product:
        """插入商品并提交"""
        product = Product(**product_data)
        self.db.add(product)
        await self.db.commit()
        await self.db.refresh(product)
        return product

    async def insert_specifications(self, product_id: int, rows: List[ProductSpecification]) -> int:
        """插入规格行并提交，失败时回滚后抛出"""
        for row in rows:
            row.product_id = product_id
        try:
            self.db.add_all(rows)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return len(rows)

    async def replace_specifications(self, product_id: int, rows: List[ProductSpecification]) -> int:
        """在一个事务中删除旧规格并写入新规格"""
        try:
            await self.db.execute(
                delete(ProductSpecification).where(ProductSpecification.product_id == product_id)
            )
            for row in rows:
                row.product_id = product_id
            self.db.add_all(rows)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return len(rows)

    async def delete_product(self, product_id: int) -> None:
        """删除商品及其规格并提交"""
        await self.db.execute(
            delete(ProductSpecification).where(ProductSpecification.product_id == product_id)
        )
        await self.db.execute(delete(Product).where(Product.id == product_id))
        await self.db.commit()

    async def get_product_specifications(self, product_id: int) -> List[ProductSpecification]:
        result = await self.db.execute(
            select(ProductSpecification)
            .where(ProductSpecification.product_id == product_id)
            .order_by(ProductSpecification.display_order, ProductSpecification.id)
        )
        return list(result.scalars().all())

    # ==================== 兼容规则 ====================

    async def list_rules(self, active_only: bool = True) -> List[CompatibilityRule]:
        query = select(CompatibilityRule).order_by(CompatibilityRule.id)
        if active_only:
            query = query.where(CompatibilityRule.is_active == True)  # noqa: E712
        result = await self.db.execute(query)
        return list(result.scalars().all())

    # ==================== 求值快照 ====================

    @staticmethod
    def to_component(product: Product) -> SelectedComponent:
        """商品 → 求值用的规格快照"""
        specifications = {}
        for spec in product.specifications:
            typed = spec.typed_value
            if typed is not None:
                specifications[spec.template_id] = typed
        return SelectedComponent(
            product_id=product.id,
            name=product.name,
            category_id=product.spec_category_id,
            specifications=specifications,
        )

    async def load_selection(self, product_ids: Sequence[int]) -> List[SelectedComponent]:
        products = await self.get_products(product_ids)
        return [self.to_component(p) for p in products]
