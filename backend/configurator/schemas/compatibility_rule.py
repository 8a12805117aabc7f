"""兼容规则Schema"""

from typing import Dict, List, Optional
from datetime import datetime
from pydantic import BaseModel, Field


class SumTerm(BaseModel):
    """sum_range 的累加项：分类中每个已选组件取模板值，缺失时取 constant"""
    category_id: int
    template_id: Optional[int] = None
    constant: Optional[float] = None


class RuleBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, description="规则名称")
    description: Optional[str] = Field(None, max_length=500)
    primary_category_id: int
    primary_specification_template_id: int
    secondary_category_id: int
    secondary_specification_template_id: int
    rule_type: str = Field(..., description="exact_match/range/value_set/sum_range")
    lower_factor: Optional[float] = None
    upper_factor: Optional[float] = None
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    value_sets: Optional[Dict[str, List[str]]] = None
    sum_terms: Optional[List[SumTerm]] = None
    level: str = Field("error", description="error/warning")
    is_active: bool = True


class RuleCreate(RuleBase):
    pass


class RuleUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    primary_category_id: Optional[int] = None
    primary_specification_template_id: Optional[int] = None
    secondary_category_id: Optional[int] = None
    secondary_specification_template_id: Optional[int] = None
    rule_type: Optional[str] = None
    lower_factor: Optional[float] = None
    upper_factor: Optional[float] = None
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    value_sets: Optional[Dict[str, List[str]]] = None
    sum_terms: Optional[List[SumTerm]] = None
    level: Optional[str] = None
    is_active: Optional[bool] = None


class RuleResponse(RuleBase):
    id: int
    primary_category_name: Optional[str] = None
    secondary_category_name: Optional[str] = None
    primary_template_name: Optional[str] = None
    secondary_template_name: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RuleListResponse(BaseModel):
    data: List[RuleResponse]
    total: int
