"""
初始化数据库表结构（folders / folder_paths / files / archived_files / user）
"""
import asyncio
from app.db.database import engine, Base
import app.models  # noqa: F401  注册全部模型


async def init_tables():
    """按模型定义创建缺失的表"""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    print("✅ 已创建数据表:")
    for table_name in Base.metadata.tables:
        print(f"  - {table_name}")
    await engine.dispose()


if __name__ == "__main__":
    print("=" * 60)
    print("初始化数据库表结构")
    print("=" * 60)
    asyncio.run(init_tables())
