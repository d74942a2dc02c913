"""
文件夹仓储

负责 folders 表的增删改查。parent_id / depth 等结构字段只在服务层编排下修改。
"""
import uuid
from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select, update, delete, exists, and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError
from app.models.folder import Folder, utcnow


class FolderRepository:
    """文件夹仓储"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, folder: Folder) -> Folder:
        self.db.add(folder)
        # 闭包表使用 Core 语句插入，需要先把文件夹行写入
        await self._flush()
        return folder

    async def update(self, folder: Folder) -> Folder:
        await self._flush()
        return folder

    async def _flush(self):
        """写入文件夹行；并发事务绕过重名检查时由唯一索引拦截"""
        try:
            await self.db.flush()
        except IntegrityError as e:
            raise ConflictError("同名文件夹已存在") from e

    async def find_by_id(self, folder_id: uuid.UUID) -> Optional[Folder]:
        return await self.db.get(Folder, folder_id)

    async def find_by_ids(self, folder_ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, Folder]:
        """按ID批量获取，返回 {id: Folder}"""
        ids = list(folder_ids)
        if not ids:
            return {}
        result = await self.db.execute(select(Folder).where(Folder.id.in_(ids)))
        return {folder.id: folder for folder in result.scalars().all()}

    async def lock_by_ids(self, folder_ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, Folder]:
        """
        以 SELECT ... FOR UPDATE 锁定文件夹行并刷新会话中的对象

        按ID排序加锁，避免并发事务之间因加锁顺序不同而死锁。
        不支持行锁的方言（如SQLite）会忽略 FOR UPDATE。
        """
        ids = list(set(folder_ids))
        if not ids:
            return {}
        result = await self.db.execute(
            select(Folder)
            .where(Folder.id.in_(ids))
            .order_by(Folder.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return {folder.id: folder for folder in result.scalars().all()}

    async def find_by_parent_id(self, parent_id: uuid.UUID) -> List[Folder]:
        result = await self.db.execute(
            select(Folder).where(Folder.parent_id == parent_id).order_by(Folder.name)
        )
        return list(result.scalars().all())

    async def find_root_by_owner(self, owner_id: int, owner_type: str) -> List[Folder]:
        result = await self.db.execute(
            select(Folder).where(
                and_(
                    Folder.owner_id == owner_id,
                    Folder.owner_type == owner_type,
                    Folder.parent_id.is_(None)
                )
            ).order_by(Folder.name)
        )
        return list(result.scalars().all())

    async def find_by_owner(self, owner_id: int, owner_type: str) -> List[Folder]:
        result = await self.db.execute(
            select(Folder).where(
                Folder.owner_id == owner_id,
                Folder.owner_type == owner_type
            ).order_by(Folder.depth)
        )
        return list(result.scalars().all())

    async def exists_by_name_and_parent(self, name: str, parent_id: uuid.UUID) -> bool:
        """同一父文件夹下是否已有同名文件夹"""
        stmt = select(
            exists().where(
                and_(Folder.parent_id == parent_id, Folder.name == name)
            )
        )
        return bool((await self.db.execute(stmt)).scalar())

    async def exists_by_name_and_owner_root(self, name: str, owner_id: int, owner_type: str) -> bool:
        """所有者的根目录下是否已有同名文件夹"""
        stmt = select(
            exists().where(
                and_(
                    Folder.parent_id.is_(None),
                    Folder.owner_id == owner_id,
                    Folder.owner_type == owner_type,
                    Folder.name == name
                )
            )
        )
        return bool((await self.db.execute(stmt)).scalar())

    async def bulk_update_depth(self, folder_depths: Dict[uuid.UUID, int]):
        """
        批量更新深度

        按目标深度分组，每个深度一条 UPDATE ... WHERE id IN (...)。
        """
        by_depth: Dict[int, List[uuid.UUID]] = defaultdict(list)
        for folder_id, depth in folder_depths.items():
            by_depth[depth].append(folder_id)

        now = utcnow()
        for depth, ids in sorted(by_depth.items()):
            await self.db.execute(
                update(Folder).where(Folder.id.in_(ids)).values(depth=depth, updated_at=now)
            )

    async def delete(self, folder_id: uuid.UUID):
        await self.db.execute(delete(Folder).where(Folder.id == folder_id))
