"""商品API - 商品与规格值"""

from typing import Any, List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from configurator.core.deps import get_db, get_enum_registry
from configurator.core.exceptions import ConfiguratorError, to_http_exception
from configurator.engine.enums import EnumRegistry
from configurator.models import Product
from configurator.schemas.product import (
    BulkSpecificationRequest, BulkSpecificationResult, ProductCreate, ProductCreationResult,
    ProductListResponse, ProductResponse, ProductSpecificationResponse, SpecificationsUpdate,
)
from configurator.services.bulk_service import bulk_apply_specification
from configurator.services.catalog_store import CatalogStore
from configurator.services.product_specification_service import ProductSpecificationService

router = APIRouter()


def _build_spec_response(spec) -> ProductSpecificationResponse:
    return ProductSpecificationResponse(
        id=spec.id,
        template_id=spec.template_id,
        name=spec.name,
        value=spec.value,
        display_order=spec.display_order,
        typed_value=spec.typed_value)


def _build_response(product: Product) -> ProductResponse:
    """构建响应"""
    return ProductResponse(
        id=product.id,
        name=product.name,
        slug=product.slug,
        sku=product.sku,
        brand=product.brand,
        category_id=product.category_id,
        subcategory_id=product.subcategory_id,
        price=product.price,
        description=product.description,
        in_stock=product.in_stock,
        created_at=product.created_at,
        specifications=[_build_spec_response(s) for s in product.specifications])


def _service(db: AsyncSession, registry: EnumRegistry) -> ProductSpecificationService:
    return ProductSpecificationService(CatalogStore(db), registry)


@router.get("/", response_model=ProductListResponse)
async def list_products(
    *,
    db: AsyncSession = Depends(get_db),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    category_id: Optional[int] = Query(None, description="分类或子分类ID"),
    in_stock: Optional[bool] = Query(None),
    search: Optional[str] = Query(None)) -> Any:
    """获取商品列表"""
    conditions = []
    if category_id is not None:
        conditions.append(or_(Product.category_id == category_id, Product.subcategory_id == category_id))
    if in_stock is not None:
        conditions.append(Product.in_stock == in_stock)
    if search:
        conditions.append(or_(Product.name.ilike(f"%{search}%"), Product.sku.ilike(f"%{search}%")))

    query = (
        select(Product)
        .options(selectinload(Product.specifications))
        .execution_options(populate_existing=True)
    )
    count_query = select(func.count(Product.id))
    for condition in conditions:
        query = query.where(condition)
        count_query = count_query.where(condition)

    total = (await db.execute(count_query)).scalar() or 0
    query = query.order_by(Product.id).offset((page - 1) * limit).limit(limit)
    products = (await db.execute(query)).scalars().unique().all()

    return ProductListResponse(
        data=[_build_response(p) for p in products],
        total=total,
        page=page,
        limit=limit
    )


@router.post("/", response_model=ProductCreationResult)
async def create_product(
    *,
    db: AsyncSession = Depends(get_db),
    registry: EnumRegistry = Depends(get_enum_registry),
    product_in: ProductCreate,
    response: Response) -> Any:
    """创建商品及其规格（校验失败时不创建任何数据）"""
    existing = await db.execute(select(Product.id).where(Product.slug == product_in.slug))
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=400, detail="商品标识已存在")

    product_data = product_in.model_dump(exclude={"specifications"})
    result = await _service(db, registry).create_product_with_specifications(
        product_data, product_in.specifications
    )
    if not result.success:
        response.status_code = 400
    return result


@router.post("/bulk-specifications", response_model=BulkSpecificationResult)
async def bulk_update_specifications(
    *,
    db: AsyncSession = Depends(get_db),
    registry: EnumRegistry = Depends(get_enum_registry),
    bulk_in: BulkSpecificationRequest) -> Any:
    """把同一个规格值写入多个商品，单个商品失败不影响其他商品"""
    try:
        return await bulk_apply_specification(
            db, registry, bulk_in.template_id, bulk_in.product_ids, bulk_in.value
        )
    except ConfiguratorError as e:
        raise to_http_exception(e)


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    *,
    db: AsyncSession = Depends(get_db),
    product_id: int) -> Any:
    """获取商品详情"""
    product = await CatalogStore(db).get_product(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="商品不存在")
    return _build_response(product)


@router.get("/{product_id}/specifications", response_model=List[ProductSpecificationResponse])
async def get_product_specifications(
    *,
    db: AsyncSession = Depends(get_db),
    registry: EnumRegistry = Depends(get_enum_registry),
    product_id: int) -> Any:
    """获取商品规格（按显示顺序）"""
    try:
        specs = await _service(db, registry).get_product_specifications(product_id)
    except ConfiguratorError as e:
        raise to_http_exception(e)
    return [_build_spec_response(s) for s in specs]


@router.put("/{product_id}/specifications", response_model=ProductCreationResult)
async def update_product_specifications(
    *,
    db: AsyncSession = Depends(get_db),
    registry: EnumRegistry = Depends(get_enum_registry),
    product_id: int,
    specs_in: SpecificationsUpdate,
    response: Response) -> Any:
    """替换商品规格（全部成功或保持不变）"""
    try:
        result = await _service(db, registry).update_product_specifications(product_id, specs_in.specifications)
    except ConfiguratorError as e:
        raise to_http_exception(e)
    if not result.success:
        response.status_code = 400
    return result
