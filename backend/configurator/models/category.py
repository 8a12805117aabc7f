"""商品分类模型 - 支持多层级树形结构"""

from typing import Dict, Optional

from sqlalchemy import Column, Integer, String, ForeignKey, Boolean, DateTime, func
from sqlalchemy.orm import relationship
from configurator.db.base import Base


class Category(Base):
    """商品分类

    支持多层级树形结构，PC 组件分类带有组件类型，如：
    - 处理器 (cpu)
      - AMD 处理器
      - Intel 处理器
    - 主板 (motherboard)
    - 内存 (memory)

    子分类继承父分类的组件语义，但在兼容规则中是独立的引用目标
    """
    __tablename__ = "pc_categories"
    # 插入/更新后立即取回数据库生成的时间戳（异步会话不能懒加载）
    __mapper_args__ = {"eager_defaults": True}

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, comment="分类名称")
    slug = Column(String(100), unique=True, nullable=False, comment="分类标识")
    parent_id = Column(Integer, ForeignKey("pc_categories.id"), nullable=True, comment="父分类ID")
    level = Column(Integer, default=1, comment="层级（1=一级分类）")
    sort_order = Column(Integer, default=0, comment="排序")
    description = Column(String(500), nullable=True, comment="描述")
    is_active = Column(Boolean, default=True, comment="是否启用")

    # PC 配置器
    is_pc_component = Column(Boolean, default=False, comment="是否为PC组件分类")
    pc_component_type = Column(String(30), nullable=True, comment="组件类型：cpu/motherboard/memory/psu/case/cooling/gpu/storage")
    pc_display_order = Column(Integer, default=0, comment="配置器中的显示顺序")

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # 关系
    parent = relationship("Category", remote_side=[id], backref="children")
    templates = relationship(
        "SpecificationTemplate",
        back_populates="category",
        cascade="all, delete-orphan",
        order_by="SpecificationTemplate.display_order",
    )

    def __repr__(self):
        return f"<Category {self.slug}: {self.name}>"

    def effective_component_type(self, categories_by_id: Dict[int, "Category"]) -> Optional[str]:
        """组件类型，子分类沿父链继承

        categories_by_id 提供父链上的分类，避免逐级懒加载
        """
        node = self
        while node is not None:
            if node.pc_component_type:
                return node.pc_component_type
            node = categories_by_id.get(node.parent_id) if node.parent_id else None
        return None
