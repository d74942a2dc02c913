"""
文件夹闭包表仓储

folder_paths 的唯一写入方。所有方法都是直接的关系型操作，不在调用之间缓存数据；
调用方负责把它们与文件夹行的写入放进同一个事务。
"""
import uuid
from typing import Dict, Iterable, List

from sqlalchemy import select, insert, delete, or_, and_
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.folder_path import FolderPath, build_ancestor_paths


class FolderClosureRepository:
    """文件夹闭包表仓储"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def insert_self_reference(self, folder_id: uuid.UUID):
        """插入自引用行 (id, id, 0)，每个文件夹创建时调用且仅调用一次"""
        await self.insert_ancestor_paths([FolderPath.self_reference(folder_id)])

    async def insert_ancestor_paths(self, paths: Iterable[FolderPath]):
        """批量插入新文件夹的祖先行"""
        rows = [
            {
                "ancestor_id": path.ancestor_id,
                "descendant_id": path.descendant_id,
                "path_length": path.path_length,
            }
            for path in paths
        ]
        if not rows:
            return
        await self.db.execute(insert(FolderPath), rows)

    async def find_ancestor_ids(self, folder_id: uuid.UUID) -> List[uuid.UUID]:
        """
        获取全部真祖先ID，按路径长度升序（最近的祖先在前）

        反转后即为从根开始的面包屑顺序。
        """
        result = await self.db.execute(
            select(FolderPath.ancestor_id)
            .where(
                FolderPath.descendant_id == folder_id,
                FolderPath.path_length > 0
            )
            .order_by(FolderPath.path_length)
        )
        return list(result.scalars().all())

    async def find_descendant_ids(self, folder_id: uuid.UUID) -> List[uuid.UUID]:
        """获取全部真子孙ID（不含自身），顺序不保证"""
        result = await self.db.execute(
            select(FolderPath.descendant_id).where(
                FolderPath.ancestor_id == folder_id,
                FolderPath.path_length > 0
            )
        )
        return list(result.scalars().all())

    async def find_ancestor_paths(self, folder_id: uuid.UUID) -> List[FolderPath]:
        """获取以该文件夹为子孙的全部闭包行（含自引用行），用作新建子文件夹或挂接子树的种子"""
        # 只取列值构造游离对象，避免会话身份映射中残留的旧行覆盖最新数据
        result = await self.db.execute(
            select(FolderPath.ancestor_id, FolderPath.descendant_id, FolderPath.path_length)
            .where(FolderPath.descendant_id == folder_id)
            .order_by(FolderPath.path_length)
        )
        return [
            FolderPath(
                ancestor_id=row.ancestor_id,
                descendant_id=row.descendant_id,
                path_length=row.path_length,
            )
            for row in result.all()
        ]

    async def find_descendants_with_depth(self, folder_id: uuid.UUID) -> Dict[uuid.UUID, int]:
        """获取全部真子孙及其相对深度 {descendant_id: path_length}"""
        result = await self.db.execute(
            select(FolderPath.descendant_id, FolderPath.path_length).where(
                FolderPath.ancestor_id == folder_id,
                FolderPath.path_length > 0
            )
        )
        return {row.descendant_id: row.path_length for row in result.all()}

    async def _find_subtree_depths(self, folder_id: uuid.UUID) -> Dict[uuid.UUID, int]:
        """子树全部节点（含自身）及其相对深度"""
        result = await self.db.execute(
            select(FolderPath.descendant_id, FolderPath.path_length).where(
                FolderPath.ancestor_id == folder_id
            )
        )
        return {row.descendant_id: row.path_length for row in result.all()}

    async def delete_subtree_paths(self, folder_id: uuid.UUID):
        """
        删除与子树中任一节点相关的全部闭包行

        包括子树与外部祖先之间的行以及子树内部的行，子树的文件夹随后会被删除。
        """
        subtree_ids = list(await self._find_subtree_depths(folder_id))
        if not subtree_ids:
            return

        await self.db.execute(
            delete(FolderPath)
            .where(
                or_(
                    FolderPath.descendant_id.in_(subtree_ids),
                    FolderPath.ancestor_id.in_(subtree_ids)
                )
            )
            .execution_options(synchronize_session=False)
        )

    async def move_subtree(self, folder_id: uuid.UUID, new_parent_paths: Iterable[FolderPath]):
        """
        将以 folder_id 为根的子树重新挂接到新的父文件夹下

        1. 取出子树全部节点 n 及其相对深度 r（自身 r = 0）
        2. 删除所有「祖先在子树外、子孙在子树内」的行，子树内部的行保持不变
        3. 对新父文件夹的每条闭包行 (A, P, d)，为每个节点插入 (A, n, d + 1 + r)

        new_parent_paths 为空表示移动到根目录，此时只做第2步。
        """
        subtree = await self._find_subtree_depths(folder_id)
        if not subtree:
            return
        subtree_ids = list(subtree)

        await self.db.execute(
            delete(FolderPath)
            .where(
                and_(
                    FolderPath.descendant_id.in_(subtree_ids),
                    FolderPath.ancestor_id.notin_(subtree_ids)
                )
            )
            .execution_options(synchronize_session=False)
        )

        parent_paths = list(new_parent_paths)
        if not parent_paths:
            return

        new_paths: List[FolderPath] = []
        for node_id, relative_depth in subtree.items():
            new_paths.extend(build_ancestor_paths(node_id, parent_paths, offset=relative_depth))
        await self.insert_ancestor_paths(new_paths)
