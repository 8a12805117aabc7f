"""兼容规则模型 - 以数据形式声明两个分类规格之间的关系"""

from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, ForeignKey, JSON, func
from sqlalchemy.orm import relationship
from configurator.db.base import Base


class RuleType:
    """比较方式"""
    EXACT_MATCH = "exact_match"   # 规范字符串相等
    RANGE = "range"               # 次方值落在区间内
    VALUE_SET = "value_set"       # 次方值属于主方值对应的集合
    SUM_RANGE = "sum_range"       # 次方值落在（主方合计 + 累加项）的区间内

    ALL = (EXACT_MATCH, RANGE, VALUE_SET, SUM_RANGE)


class RuleLevel:
    ERROR = "error"
    WARNING = "warning"

    ALL = (ERROR, WARNING)


class CompatibilityRule(Base):
    """兼容规则

    例如：
    - 处理器.socket exact_match 主板.socket
    - 显卡.power_requirement range 电源.wattage（lower_factor=1.0）
    - 主板.socket value_set 主板.chipset（AM4 → [B450, B550, X570]）
    - 处理器.tdp sum_range 电源.wattage（累加显卡功耗与各组件固定功耗）
    """
    __tablename__ = "pc_compatibility_rules"
    # 插入/更新后立即取回数据库生成的时间戳（异步会话不能懒加载）
    __mapper_args__ = {"eager_defaults": True}

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, comment="规则名称")
    description = Column(String(500), nullable=True, comment="描述")

    primary_category_id = Column(Integer, ForeignKey("pc_categories.id"), nullable=False, index=True, comment="主分类")
    primary_specification_template_id = Column(
        Integer, ForeignKey("pc_specification_templates.id"), nullable=False, comment="主规格模板"
    )
    secondary_category_id = Column(Integer, ForeignKey("pc_categories.id"), nullable=False, index=True, comment="次分类")
    secondary_specification_template_id = Column(
        Integer, ForeignKey("pc_specification_templates.id"), nullable=False, comment="次规格模板"
    )

    rule_type = Column(String(20), nullable=False, comment="比较方式：exact_match/range/value_set/sum_range")

    # range 参数：[主值*lower_factor, 主值*upper_factor] 和/或 [min_value, max_value]
    lower_factor = Column(Float, nullable=True, comment="下限系数")
    upper_factor = Column(Float, nullable=True, comment="上限系数")
    min_value = Column(Float, nullable=True, comment="绝对下限")
    max_value = Column(Float, nullable=True, comment="绝对上限")

    # value_set 参数：{主值: [允许的次方值]}
    value_sets = Column(JSON, nullable=True, comment="值集合")

    # sum_range 参数：[{category_id, template_id?, constant?}]，每个已选组件计一次
    sum_terms = Column(JSON, nullable=True, comment="累加项")

    level = Column(String(10), default=RuleLevel.ERROR, nullable=False, comment="违反时的级别：error/warning")
    is_active = Column(Boolean, default=True, comment="是否启用")

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # 关系
    primary_category = relationship("Category", foreign_keys=[primary_category_id])
    secondary_category = relationship("Category", foreign_keys=[secondary_category_id])
    primary_template = relationship("SpecificationTemplate", foreign_keys=[primary_specification_template_id])
    secondary_template = relationship("SpecificationTemplate", foreign_keys=[secondary_specification_template_id])

    def __repr__(self):
        return f"<CompatibilityRule {self.name} ({self.rule_type})>"
