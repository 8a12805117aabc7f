"""服务层异常

服务层只抛出这些异常，由接口层统一转换为 HTTPException
"""

from typing import List, Optional

from fastapi import HTTPException


class ConfiguratorError(Exception):
    """服务层异常基类"""

    status_code = 400

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or []


class NotFoundError(ConfiguratorError):
    status_code = 404


class CategoryNotFoundError(NotFoundError):
    def __init__(self, category_id: int):
        super().__init__(f"分类不存在: {category_id}")
        self.category_id = category_id


class TemplateNotFoundError(NotFoundError):
    def __init__(self, template_id: int):
        super().__init__(f"规格模板不存在: {template_id}")
        self.template_id = template_id


class ProductNotFoundError(NotFoundError):
    def __init__(self, product_id: int):
        super().__init__(f"商品不存在: {product_id}")
        self.product_id = product_id


class RuleNotFoundError(NotFoundError):
    def __init__(self, rule_id: int):
        super().__init__(f"兼容规则不存在: {rule_id}")
        self.rule_id = rule_id


class DefinitionError(ConfiguratorError):
    """模板或规则定义不合法（创建/更新时阻断）"""


class ConflictError(ConfiguratorError):
    """唯一性冲突或被引用无法删除"""


def to_http_exception(exc: ConfiguratorError) -> HTTPException:
    """服务层异常 → HTTPException"""
    if exc.errors:
        return HTTPException(status_code=exc.status_code, detail={"message": exc.message, "errors": exc.errors})
    return HTTPException(status_code=exc.status_code, detail=exc.message)
