"""商品规格值模型

每行保存一个商品在一个模板上的值。值是带标签的联合类型：
value_kind 指明唯一被填充的类型列，其余类型列必须为空（由 CHECK 约束保证）
"""

from typing import Optional

from sqlalchemy import (
    Column, Integer, String, Float, Boolean, Text, ForeignKey, DateTime,
    CheckConstraint, UniqueConstraint, func,
)
from sqlalchemy.orm import relationship
from configurator.db.base import Base
from configurator.schemas.validation import (
    BooleanValue, EnumValue, NumberValue, TextValue, TypedValue, ValueKind,
)


class ProductSpecification(Base):
    """商品规格值"""
    __tablename__ = "pc_product_specifications"
    # 插入/更新后立即取回数据库生成的时间戳（异步会话不能懒加载）
    __mapper_args__ = {"eager_defaults": True}
    __table_args__ = (
        UniqueConstraint('product_id', 'template_id', name='uq_product_template'),
        CheckConstraint(
            "(value_kind = 'enum' AND value_enum IS NOT NULL"
            " AND value_number IS NULL AND value_text IS NULL AND value_boolean IS NULL)"
            " OR (value_kind = 'number' AND value_number IS NOT NULL"
            " AND value_enum IS NULL AND value_text IS NULL AND value_boolean IS NULL)"
            " OR (value_kind = 'text' AND value_text IS NOT NULL"
            " AND value_enum IS NULL AND value_number IS NULL AND value_boolean IS NULL)"
            " OR (value_kind = 'boolean' AND value_boolean IS NOT NULL"
            " AND value_enum IS NULL AND value_number IS NULL AND value_text IS NULL)",
            name="ck_single_typed_value",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("pc_products.id", ondelete="CASCADE"), nullable=False, index=True, comment="商品ID")
    template_id = Column(Integer, ForeignKey("pc_specification_templates.id"), nullable=False, index=True, comment="模板ID")
    name = Column(String(100), nullable=False, comment="模板机器键（冗余）")

    # 显示值（冗余，如 "3200 MHz"）
    value = Column(String(500), nullable=False, default="", comment="显示值")
    display_order = Column(Integer, default=0, comment="排序")

    # 类型值：只能通过 typed_value / set_typed_value 访问
    value_kind = Column(String(10), nullable=False, comment="值类型：enum/number/text/boolean")
    value_enum = Column(String(100), nullable=True, index=True)
    value_number = Column(Float, nullable=True, index=True)
    value_unit = Column(String(20), nullable=True)
    value_text = Column(Text, nullable=True)
    value_boolean = Column(Boolean, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # 关系
    product = relationship("Product", back_populates="specifications")
    template = relationship("SpecificationTemplate")

    def __repr__(self):
        return f"<ProductSpecification {self.product_id}.{self.name}={self.value}>"

    @property
    def typed_value(self) -> Optional[TypedValue]:
        """按 value_kind 还原带标签的值"""
        kind = self.value_kind
        if kind == ValueKind.ENUM.value and self.value_enum is not None:
            return EnumValue(value=self.value_enum)
        if kind == ValueKind.NUMBER.value and self.value_number is not None:
            return NumberValue(value=self.value_number, unit=self.value_unit)
        if kind == ValueKind.TEXT.value and self.value_text is not None:
            return TextValue(value=self.value_text)
        if kind == ValueKind.BOOLEAN.value and self.value_boolean is not None:
            return BooleanValue(value=self.value_boolean)
        return None

    def set_typed_value(self, typed: TypedValue) -> None:
        """写入类型值，同时清空其他类型列并刷新显示值"""
        self.value_enum = None
        self.value_number = None
        self.value_unit = None
        self.value_text = None
        self.value_boolean = None

        self.value_kind = typed.kind
        if isinstance(typed, EnumValue):
            self.value_enum = typed.value
        elif isinstance(typed, NumberValue):
            self.value_number = typed.value
            self.value_unit = typed.unit
        elif isinstance(typed, TextValue):
            self.value_text = typed.value
        else:
            self.value_boolean = typed.value
        self.value = typed.display()
