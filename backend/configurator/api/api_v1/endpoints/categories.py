"""商品分类API"""

from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func, and_, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from configurator.core.deps import get_db
from configurator.core.exceptions import ConfiguratorError, to_http_exception
from configurator.models import Category, Product, SpecificationTemplate
from configurator.schemas.category import (
    CategoryCreate, CategoryUpdate, CategoryResponse,
    CategoryListResponse, CategoryTreeNode
)
from configurator.schemas.specification_template import TemplateResponse
from configurator.services import template_service

router = APIRouter()


async def _category_map(db: AsyncSession) -> Dict[int, Category]:
    """全部分类（带模板），用于父链和树的构建"""
    result = await db.execute(
        select(Category).options(selectinload(Category.templates))
    )
    return {c.id: c for c in result.scalars().unique().all()}


def _build_response(cat: Category, cat_map: Dict[int, Category]) -> CategoryResponse:
    """构建响应"""
    parent = cat_map.get(cat.parent_id) if cat.parent_id else None
    return CategoryResponse(
        id=cat.id,
        name=cat.name,
        slug=cat.slug,
        parent_id=cat.parent_id,
        parent_name=parent.name if parent else None,
        level=cat.level,
        description=cat.description,
        sort_order=cat.sort_order,
        is_active=cat.is_active,
        is_pc_component=cat.is_pc_component,
        pc_component_type=cat.pc_component_type,
        pc_display_order=cat.pc_display_order,
        effective_component_type=cat.effective_component_type(cat_map),
        template_count=len(cat.templates),
        created_at=cat.created_at)


@router.get("/", response_model=CategoryListResponse)
async def list_categories(
    *,
    db: AsyncSession = Depends(get_db),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    parent_id: Optional[int] = Query(None, description="父分类ID，不传则获取所有"),
    is_pc_component: Optional[bool] = Query(None),
    is_active: Optional[bool] = Query(None),
    search: Optional[str] = Query(None)) -> Any:
    """获取分类列表"""
    cat_map = await _category_map(db)

    conditions = []
    if parent_id is not None:
        conditions.append(Category.parent_id == parent_id)
    if is_pc_component is not None:
        conditions.append(Category.is_pc_component == is_pc_component)
    if is_active is not None:
        conditions.append(Category.is_active == is_active)
    if search:
        conditions.append(Category.name.ilike(f"%{search}%"))

    query = select(Category.id)
    count_query = select(func.count(Category.id))
    if conditions:
        query = query.where(and_(*conditions))
        count_query = count_query.where(and_(*conditions))
    total = (await db.execute(count_query)).scalar() or 0

    # 排序和分页
    query = query.order_by(Category.level, Category.pc_display_order, Category.sort_order, Category.id)
    query = query.offset((page - 1) * limit).limit(limit)
    ids = (await db.execute(query)).scalars().all()

    return CategoryListResponse(
        data=[_build_response(cat_map[i], cat_map) for i in ids],
        total=total,
        page=page,
        limit=limit
    )


@router.get("/tree", response_model=List[CategoryTreeNode])
async def get_category_tree(
    *,
    db: AsyncSession = Depends(get_db),
    is_active: Optional[bool] = Query(True)) -> Any:
    """获取分类树"""
    cat_map = await _category_map(db)
    visible = [
        c for c in sorted(cat_map.values(), key=lambda c: (c.level, c.sort_order, c.id))
        if is_active is None or c.is_active == is_active
    ]
    children_of: Dict[Optional[int], List[Category]] = {}
    for cat in visible:
        children_of.setdefault(cat.parent_id, []).append(cat)

    def build_node(cat: Category) -> CategoryTreeNode:
        base = _build_response(cat, cat_map)
        return CategoryTreeNode(
            **base.model_dump(),
            children=[build_node(child) for child in children_of.get(cat.id, [])])

    return [build_node(cat) for cat in children_of.get(None, [])]


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(
    *,
    db: AsyncSession = Depends(get_db),
    category_id: int) -> Any:
    """获取分类详情"""
    cat_map = await _category_map(db)
    cat = cat_map.get(category_id)
    if not cat:
        raise HTTPException(status_code=404, detail="分类不存在")

    return _build_response(cat, cat_map)


@router.get("/{category_id}/templates", response_model=List[TemplateResponse])
async def get_category_templates(
    *,
    db: AsyncSession = Depends(get_db),
    category_id: int) -> Any:
    """获取分类下的规格模板（按显示顺序）"""
    try:
        templates = await template_service.get_templates_for_category(db, category_id)
    except ConfiguratorError as e:
        raise to_http_exception(e)
    category = await db.get(Category, category_id)
    return [
        TemplateResponse.model_validate(t).model_copy(update={"category_name": category.name})
        for t in templates
    ]


@router.post("/", response_model=CategoryResponse)
async def create_category(
    *,
    db: AsyncSession = Depends(get_db),
    category_in: CategoryCreate) -> Any:
    """创建分类"""
    level = 1
    if category_in.parent_id:
        parent = await db.get(Category, category_in.parent_id)
        if not parent:
            raise HTTPException(status_code=400, detail="父分类不存在")
        level = parent.level + 1

    existing = await db.execute(select(Category).where(Category.slug == category_in.slug))
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=400, detail="分类标识已存在")

    cat = Category(**category_in.model_dump(), level=level)
    db.add(cat)
    await db.commit()

    cat_map = await _category_map(db)
    return _build_response(cat_map[cat.id], cat_map)


@router.put("/{category_id}", response_model=CategoryResponse)
async def update_category(
    *,
    db: AsyncSession = Depends(get_db),
    category_id: int,
    category_in: CategoryUpdate) -> Any:
    """更新分类"""
    cat = await db.get(Category, category_id)
    if not cat:
        raise HTTPException(status_code=404, detail="分类不存在")

    # 更新字段
    update_data = category_in.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(cat, field, value)

    await db.commit()

    cat_map = await _category_map(db)
    return _build_response(cat_map[category_id], cat_map)


@router.delete("/{category_id}")
async def delete_category(
    *,
    db: AsyncSession = Depends(get_db),
    category_id: int) -> Any:
    """删除分类"""
    cat = await db.get(Category, category_id)
    if not cat:
        raise HTTPException(status_code=404, detail="分类不存在")

    children = (await db.execute(
        select(func.count(Category.id)).where(Category.parent_id == category_id)
    )).scalar() or 0
    if children:
        raise HTTPException(status_code=400, detail="该分类下有子分类，无法删除")

    products = (await db.execute(
        select(func.count(Product.id)).where(
            (Product.category_id == category_id) | (Product.subcategory_id == category_id)
        )
    )).scalar() or 0
    if products:
        raise HTTPException(status_code=400, detail="该分类下有商品，无法删除")

    templates = (await db.execute(
        select(func.count(SpecificationTemplate.id)).where(SpecificationTemplate.category_id == category_id)
    )).scalar() or 0
    if templates:
        raise HTTPException(status_code=400, detail="该分类下有规格模板，无法删除")

    # 直接执行 DELETE，避免级联时懒加载 templates/children
    await db.execute(delete(Category).where(Category.id == category_id))
    await db.commit()

    return {"message": "删除成功"}
