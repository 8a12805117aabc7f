from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from configurator.api.api_v1.api import api_router
from configurator.core.config import settings
from configurator.core.logging_config import setup_logging, get_logger
from configurator.db.session import SessionLocal
from configurator.db.init_db import ensure_tables_exist
from configurator.db.seed import seed_demo_data
from configurator.engine.enums import load_enum_registry

# 初始化日志系统
setup_logging(settings.LOG_LEVEL, settings.LOG_DIR if settings.LOG_TO_FILE else None)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    # 启动时
    logger.info("🚀 应用启动中...")

    # 枚举注册表加载失败时直接中止启动
    app.state.enum_registry = load_enum_registry(settings.ENUM_REGISTRY_PATH)
    logger.info(f"🔖 枚举注册表已加载: {', '.join(app.state.enum_registry.source_names())}")

    await ensure_tables_exist()
    logger.info("📊 数据库表已就绪")

    if settings.SEED_DEMO_DATA:
        async with SessionLocal() as db:
            await seed_demo_data(db, app.state.enum_registry)

    yield
    # 关闭时
    logger.info("🛑 应用关闭中...")


app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    description="PC 配置器 - 规格模板、规格值校验与兼容性检查",
    lifespan=lifespan
)

# CORS配置
if settings.BACKEND_CORS_ORIGINS:
    logger.info(f"配置CORS，允许的源: {settings.BACKEND_CORS_ORIGINS}")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

logger.info(f"注册API路由，前缀: {settings.API_V1_STR}")
app.include_router(api_router, prefix=settings.API_V1_STR)


@app.get("/")
async def root():
    return {"message": settings.PROJECT_NAME}


@app.get("/health")
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="127.0.0.1", port=8000, log_level="info")
