import asyncio

from configurator.db.session import engine
from configurator.db.base import Base

# 导入所有模型，确保表能被创建
from configurator.models import (  # noqa: F401
    Category, SpecificationTemplate, Product, ProductSpecification, CompatibilityRule
)


async def ensure_tables_exist() -> None:
    """
    确保数据库表存在（应用启动时调用）
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


if __name__ == "__main__":
    asyncio.run(ensure_tables_exist())
