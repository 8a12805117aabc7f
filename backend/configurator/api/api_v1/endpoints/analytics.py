"""规格完整度统计API"""

from typing import Any
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from configurator.core.deps import get_db
from configurator.core.exceptions import ConfiguratorError, to_http_exception
from configurator.schemas.analytics import CategoryAnalyticsReport
from configurator.services import analytics_service

router = APIRouter()


@router.get("/categories/{category_id}", response_model=CategoryAnalyticsReport)
async def get_category_report(
    *,
    db: AsyncSession = Depends(get_db),
    category_id: int) -> Any:
    """分类的规格完整度：缺少必填/兼容性键的商品、完成率、规则覆盖"""
    try:
        return await analytics_service.category_report(db, category_id)
    except ConfiguratorError as e:
        raise to_http_exception(e)
