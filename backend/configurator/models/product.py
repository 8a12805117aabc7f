"""
商品模型 - PC 组件商品
规格值单独存放在 ProductSpecification 中
"""

from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, DECIMAL
from sqlalchemy.orm import relationship
from configurator.db.base import Base


class Product(Base):
    """商品

    规格按 subcategory_id（优先）或 category_id 对应的模板校验
    """
    __tablename__ = "pc_products"

    id = Column(Integer, primary_key=True, index=True)

    name = Column(String(200), nullable=False, index=True, comment="品名")
    slug = Column(String(200), unique=True, nullable=False, index=True, comment="商品标识")
    sku = Column(String(100), nullable=True, comment="SKU")
    brand = Column(String(100), nullable=True, comment="品牌")

    # 分类
    category_id = Column(Integer, ForeignKey("pc_categories.id"), nullable=True, comment="分类ID")
    subcategory_id = Column(Integer, ForeignKey("pc_categories.id"), nullable=True, comment="子分类ID")

    price = Column(DECIMAL(12, 2), default=Decimal("0.00"), comment="售价")
    description = Column(Text, comment="描述")
    in_stock = Column(Boolean, default=True, comment="是否有货")

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # 关系
    category = relationship("Category", foreign_keys=[category_id])
    subcategory = relationship("Category", foreign_keys=[subcategory_id])
    specifications = relationship(
        "ProductSpecification",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductSpecification.display_order",
    )

    def __repr__(self):
        return f"<Product {self.slug}: {self.name}>"

    @property
    def spec_category_id(self) -> int:
        """规格模板所属分类：子分类优先"""
        return self.subcategory_id or self.category_id
