"""商品Schema - 商品信息与规格值"""
from typing import Any, Dict, List, Optional
from decimal import Decimal
from datetime import datetime
from pydantic import BaseModel, Field

from configurator.schemas.validation import TypedValue, ValidationMessage, ValidationResult


class ProductBase(BaseModel):
    """商品基础字段"""
    name: str = Field(..., min_length=1, max_length=200, description="品名")
    slug: str = Field(..., min_length=1, max_length=200, description="商品标识")
    sku: Optional[str] = Field(None, max_length=100)
    brand: Optional[str] = Field(None, max_length=100)
    category_id: Optional[int] = Field(None, description="分类ID")
    subcategory_id: Optional[int] = Field(None, description="子分类ID（优先用于规格模板）")
    price: Decimal = Field(default=Decimal("0"), ge=0, description="售价")
    description: Optional[str] = None
    in_stock: bool = True


class ProductCreate(ProductBase):
    """创建商品（带规格）"""
    specifications: Dict[str, Any] = Field(default_factory=dict, description="原始规格 {模板名: 值}")


class ProductSpecificationResponse(BaseModel):
    id: int
    template_id: int
    name: str
    value: str
    display_order: int = 0
    typed_value: Optional[TypedValue] = None

    class Config:
        from_attributes = True


class ProductResponse(ProductBase):
    """商品响应"""
    id: int
    created_at: Optional[datetime] = None
    specifications: List[ProductSpecificationResponse] = Field(default_factory=list)

    class Config:
        from_attributes = True


class ProductListResponse(BaseModel):
    data: List[ProductResponse]
    total: int
    page: int
    limit: int


class ProductCreationResult(BaseModel):
    """创建/更新商品规格的结果"""
    success: bool
    product_id: Optional[int] = None
    specifications_created: int = 0
    errors: List[ValidationMessage] = []
    warnings: List[ValidationMessage] = []
    validation_details: Dict[str, ValidationResult] = Field(default_factory=dict)


class SpecificationsUpdate(BaseModel):
    specifications: Dict[str, Any] = Field(..., description="完整的原始规格 {模板名: 值}，替换现有规格")


# ==================== 批量编辑 ====================

class BulkSpecificationRequest(BaseModel):
    template_id: int
    product_ids: List[int] = Field(..., min_length=1)
    value: Any = Field(..., description="原始值")


class BulkItemError(BaseModel):
    product_id: int
    error: str


class BulkSpecificationResult(BaseModel):
    success_count: int = 0
    error_count: int = 0
    errors: List[BulkItemError] = []
    validation: Optional[ValidationResult] = None
