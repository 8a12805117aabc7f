"""V1 API 路由聚合 - 单机版（无认证）"""
from fastapi import APIRouter

from configurator.api.api_v1.endpoints import (
    analytics, categories, compatibility, enums, products, rules, templates,
)

api_router = APIRouter()

# 目录
api_router.include_router(categories.router, prefix="/categories", tags=["商品分类"])
api_router.include_router(templates.router, prefix="/templates", tags=["规格模板"])
api_router.include_router(products.router, prefix="/products", tags=["商品管理"])

# 兼容性
api_router.include_router(rules.router, prefix="/rules", tags=["兼容规则"])
api_router.include_router(compatibility.router, prefix="/compatibility", tags=["兼容性检查"])

# 统计与枚举
api_router.include_router(analytics.router, prefix="/analytics", tags=["完整度统计"])
api_router.include_router(enums.router, prefix="/enums", tags=["共享枚举"])
