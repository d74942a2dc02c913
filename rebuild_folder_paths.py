"""
检查文件夹闭包表一致性，必要时按 parent_id 重建（直接调用服务，不通过API）

用法:
    python rebuild_folder_paths.py            只检查
    python rebuild_folder_paths.py --rebuild  检查并重建
"""
import argparse
import asyncio
from app.db.database import AsyncSessionLocal, engine
from app.services.folder_integrity import FolderIntegrityService


async def check_and_rebuild(rebuild: bool = False, owner_id: int = None):
    """检查闭包表，rebuild=True 时重建"""
    async with AsyncSessionLocal() as db:
        service = FolderIntegrityService(db)
        violations = await service.find_violations(owner_id)

        print("=" * 80)
        print(f"发现 {len(violations)} 处不一致")
        print("=" * 80)
        for violation in violations[:50]:
            print(f"  ❌ {violation}")
        if len(violations) > 50:
            print(f"  ... 其余 {len(violations) - 50} 处省略")

        if rebuild and not violations:
            print("\n⚪ 闭包表一致，无需重建")
        elif rebuild:
            row_count = await service.rebuild()
            print(f"\n✅ 闭包表已重建: 写入 {row_count} 条记录")

            remaining = await service.find_violations(owner_id)
            print(f"重建后剩余不一致: {len(remaining)}")

    await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="检查/重建文件夹闭包表")
    parser.add_argument("--rebuild", action="store_true", help="发现不一致时按 parent_id 重建")
    parser.add_argument("--owner-id", type=int, default=None, help="只检查该用户的文件夹")
    args = parser.parse_args()

    asyncio.run(check_and_rebuild(rebuild=args.rebuild, owner_id=args.owner_id))
