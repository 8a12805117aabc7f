"""规格模板模型 - 定义分类下商品可以拥有的属性"""

from sqlalchemy import Column, Integer, String, ForeignKey, Boolean, DateTime, JSON, UniqueConstraint, func
from sqlalchemy.orm import relationship
from configurator.db.base import Base


class SpecificationTemplate(Base):
    """规格模板

    按分类定义属性，如处理器分类下：
    - socket（插槽，兼容性键，枚举来源 SOCKET_TYPE）
    - base_frequency（基础频率，MHz）
    - tdp（功耗，W）
    """
    __tablename__ = "pc_specification_templates"
    # 插入/更新后立即取回数据库生成的时间戳（异步会话不能懒加载）
    __mapper_args__ = {"eager_defaults": True}
    __table_args__ = (
        UniqueConstraint('category_id', 'name', name='uq_template_category_name'),
    )

    id = Column(Integer, primary_key=True, index=True)
    category_id = Column(Integer, ForeignKey("pc_categories.id"), nullable=False, index=True, comment="所属分类")
    name = Column(String(100), nullable=False, comment="机器键，如：socket")
    display_name = Column(String(100), nullable=False, comment="显示名称")
    description = Column(String(500), nullable=True, comment="描述")
    data_type = Column(String(30), nullable=False, comment="数据类型")

    is_required = Column(Boolean, default=False, comment="是否必填")
    is_compatibility_key = Column(Boolean, default=False, comment="是否为兼容性键")
    is_filterable = Column(Boolean, default=False, comment="是否可筛选")
    filter_type = Column(String(20), nullable=True, comment="筛选控件：checkbox/dropdown/range")

    # 枚举
    enum_source = Column(String(50), nullable=True, comment="共享枚举来源，如：SOCKET_TYPE")
    enum_values = Column(JSON, nullable=True, comment="允许值（必须是枚举来源的子集）")

    # 校验规则：min_value / max_value / min_length / max_length / pattern / unit
    validation_rules = Column(JSON, nullable=True, comment="校验规则")

    display_order = Column(Integer, default=0, comment="排序")

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # 关系
    category = relationship("Category", back_populates="templates")

    def __repr__(self):
        return f"<SpecificationTemplate {self.category_id}.{self.name} ({self.data_type})>"
