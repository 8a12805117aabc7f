"""规格模板Schema"""

from typing import Any, Dict, List, Optional
from datetime import datetime
from pydantic import BaseModel, Field

from configurator.schemas.validation import SpecificationDataType, ValidationResult


class TemplateBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, description="机器键")
    display_name: str = Field(..., min_length=1, max_length=100, description="显示名称")
    description: Optional[str] = Field(None, max_length=500)
    data_type: SpecificationDataType
    is_required: bool = False
    is_compatibility_key: bool = False
    is_filterable: bool = False
    filter_type: Optional[str] = None
    enum_source: Optional[str] = None
    enum_values: Optional[List[str]] = None
    validation_rules: Optional[Dict[str, Any]] = Field(
        None, description="min_value/max_value/min_length/max_length/pattern/unit"
    )
    display_order: int = 0


class TemplateCreate(TemplateBase):
    category_id: int = Field(..., description="所属分类ID")
    auto_fill_enum_values: bool = Field(False, description="用枚举来源的全部值填充 enum_values")


class TemplateUpdate(BaseModel):
    display_name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    data_type: Optional[SpecificationDataType] = None
    is_required: Optional[bool] = None
    is_compatibility_key: Optional[bool] = None
    is_filterable: Optional[bool] = None
    filter_type: Optional[str] = None
    enum_source: Optional[str] = None
    enum_values: Optional[List[str]] = None
    validation_rules: Optional[Dict[str, Any]] = None
    display_order: Optional[int] = None


class TemplateResponse(TemplateBase):
    id: int
    category_id: int
    category_name: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TemplateListResponse(BaseModel):
    data: List[TemplateResponse]
    total: int


class TemplateDefinitionCheck(TemplateBase):
    """只做定义校验，不保存"""
    category_id: Optional[int] = None


class TemplateValidationResponse(BaseModel):
    is_valid: bool
    result: ValidationResult
    template: Optional[TemplateResponse] = None


class AutocompleteResponse(BaseModel):
    template_id: int
    values: List[str]
