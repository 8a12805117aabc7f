"""依赖注入 - 单机版（无认证）"""
from typing import AsyncGenerator
from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from configurator.db.session import SessionLocal
from configurator.engine.enums import EnumRegistry, default_registry


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    获取数据库会话依赖
    """
    async with SessionLocal() as session:
        yield session


def get_enum_registry(request: Request) -> EnumRegistry:
    """
    获取启动时加载的枚举注册表

    注册表在 lifespan 中放入 app.state，未启动 lifespan（例如测试直接调用）时退回内置注册表
    """
    registry = getattr(request.app.state, "enum_registry", None)
    if registry is None:
        return default_registry()
    return registry
