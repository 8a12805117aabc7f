# PC 配置器数据模型
# 分类 → 规格模板 → 商品规格值，兼容规则引用两侧的模板

from configurator.models.category import Category
from configurator.models.specification_template import SpecificationTemplate
from configurator.models.product import Product
from configurator.models.product_specification import ProductSpecification
from configurator.models.compatibility_rule import CompatibilityRule, RuleLevel, RuleType

__all__ = [
    "Category",
    "SpecificationTemplate",
    "Product",
    "ProductSpecification",
    "CompatibilityRule",
    "RuleLevel",
    "RuleType",
]
