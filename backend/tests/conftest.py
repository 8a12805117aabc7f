"""
测试公共夹具

每个测试使用独立的临时 SQLite 文件；NullPool 让每次 asyncio.run 都拿到新连接
"""

import asyncio
import os

os.environ.setdefault("LOG_TO_FILE", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from configurator.core.deps import get_db
from configurator.db.base import Base
from configurator.db.seed import seed_demo_data
from configurator.engine.enums import EnumRegistry, default_registry
from configurator.models import Category, Product, SpecificationTemplate


@pytest.fixture
def registry() -> EnumRegistry:
    return default_registry()


@pytest.fixture
def small_registry() -> EnumRegistry:
    """替代用的小枚举集"""
    return EnumRegistry.model_validate({
        "sources": {
            "SOCKET_TYPE": {"name": "SOCKET_TYPE", "values": ["AM4", "LGA1700"]},
            "MEMORY_TYPE": {"name": "MEMORY_TYPE", "values": ["DDR4"]},
            "CHIPSET_TYPE": {"name": "CHIPSET_TYPE", "values": ["B550"]},
        },
        "aliases": {"SOCKET_TYPE": {"LGA 1700": "LGA1700"}},
        "relations": [],
    })


@pytest.fixture
def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)

    async def _create():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(_create())
    yield engine
    asyncio.run(engine.dispose())


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
def run(session_factory):
    """在新会话中执行 fn(db, *args)"""
    def _run(fn, *args, **kwargs):
        async def _inner():
            async with session_factory() as db:
                return await fn(db, *args, **kwargs)
        return asyncio.run(_inner())
    return _run


async def _demo_ids(db):
    categories = (await db.execute(select(Category))).scalars().all()
    slugs = {c.id: c.slug for c in categories}
    templates = (await db.execute(select(SpecificationTemplate))).scalars().all()
    products = (await db.execute(select(Product))).scalars().all()
    return {
        "categories": {c.slug: c.id for c in categories},
        "templates": {(slugs[t.category_id], t.name): t.id for t in templates},
        "products": {p.slug: p.id for p in products},
    }


@pytest.fixture
def demo(run, registry):
    """写入演示目录，返回 分类/模板/商品 的ID映射"""
    run(seed_demo_data, registry)
    return run(_demo_ids)


@pytest.fixture
def client(session_factory):
    from configurator.main import app

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()
