"""兼容性检查API"""

from typing import Any
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from configurator.core.deps import get_db
from configurator.core.exceptions import ConfiguratorError, to_http_exception
from configurator.schemas.compatibility import (
    CompatibilityCheckRequest, CompatibilityEvaluationResult,
    CompatibleProductsRequest, CompatibleProductsResponse,
)
from configurator.services import compatibility_service

router = APIRouter()


@router.post("/check", response_model=CompatibilityEvaluationResult)
async def check_compatibility(
    *,
    db: AsyncSession = Depends(get_db),
    check_in: CompatibilityCheckRequest) -> Any:
    """检查已选组件的兼容性，返回完整的问题列表"""
    try:
        return await compatibility_service.check_selection(db, check_in.product_ids)
    except ConfiguratorError as e:
        raise to_http_exception(e)


@router.post("/compatible-products", response_model=CompatibleProductsResponse)
async def get_compatible_products(
    *,
    db: AsyncSession = Depends(get_db),
    request_in: CompatibleProductsRequest) -> Any:
    """目标分类中与当前配置兼容的商品"""
    try:
        total, compatible = await compatibility_service.compatible_products(
            db, request_in.product_ids, request_in.target_category_id, request_in.in_stock_only
        )
    except ConfiguratorError as e:
        raise to_http_exception(e)
    return CompatibleProductsResponse(
        target_category_id=request_in.target_category_id,
        total_candidates=total,
        compatible=compatible,
    )
