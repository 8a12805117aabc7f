"""商品分类Schema"""

from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, Field


class CategoryBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, description="分类名称")
    slug: str = Field(..., min_length=1, max_length=100, pattern=r"^[a-z0-9\-]+$", description="分类标识")
    parent_id: Optional[int] = Field(None, description="父分类ID")
    description: Optional[str] = Field(None, max_length=500)
    sort_order: int = Field(0, ge=0)
    is_pc_component: bool = False
    pc_component_type: Optional[str] = Field(None, max_length=30, description="组件类型")
    pc_display_order: int = 0


class CategoryCreate(CategoryBase):
    pass


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None
    is_pc_component: Optional[bool] = None
    pc_component_type: Optional[str] = None
    pc_display_order: Optional[int] = None


class CategoryResponse(CategoryBase):
    id: int
    level: int
    is_active: bool
    parent_name: Optional[str] = None
    effective_component_type: Optional[str] = None
    template_count: int = 0
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CategoryTreeNode(CategoryResponse):
    """分类树节点"""
    children: List["CategoryTreeNode"] = []


class CategoryListResponse(BaseModel):
    data: List[CategoryResponse]
    total: int
    page: int
    limit: int
