"""
演示数据初始化脚本
- 清除现有目录数据（保留表结构）
- 创建 PC 组件分类、规格模板、兼容规则
- 创建若干带规格的演示商品
"""

import asyncio
import sys
import os

# 添加项目路径
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from configurator.core.config import settings
from configurator.db.init_db import ensure_tables_exist
from configurator.db.seed import seed_demo_data
from configurator.db.session import SessionLocal
from configurator.engine.enums import load_enum_registry


async def clear_all_data(db: AsyncSession):
    """清除所有目录数据（保留表结构）"""
    print("🗑️  清除所有数据...")

    # 按照外键依赖顺序删除
    tables_to_clear = [
        "pc_product_specifications",
        "pc_compatibility_rules",
        "pc_products",
        "pc_specification_templates",
        "pc_categories",
    ]

    for table in tables_to_clear:
        await db.execute(text(f"DELETE FROM {table}"))
        print(f"   ✓ 清除 {table}")
    await db.commit()
    print("   完成！\n")


async def main():
    """主函数"""
    print("=" * 60)
    print("🚀 PC 配置器 - 演示数据初始化")
    print("=" * 60 + "\n")

    registry = load_enum_registry(settings.ENUM_REGISTRY_PATH)
    await ensure_tables_exist()

    async with SessionLocal() as db:
        try:
            await clear_all_data(db)
            await seed_demo_data(db, registry)
        except Exception as e:
            await db.rollback()
            print(f"\n❌ 初始化失败: {e}")
            raise

    print("\n" + "=" * 60)
    print("✅ 演示数据初始化完成！")
    print("=" * 60)
    print("\n📦 已创建数据:")
    print("   - 8 个组件分类")
    print("   - 处理器/主板/内存/显卡/电源/机箱的规格模板")
    print("   - 5 条兼容规则")
    print("   - 10 个演示商品")


if __name__ == "__main__":
    asyncio.run(main())
