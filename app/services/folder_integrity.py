"""
文件夹层级一致性检查与闭包表重建

以 parent_id 邻接关系为准，交叉检查 folders 与 folder_paths：
- 每个文件夹恰有一条自引用行
- 真祖先行的路径长度恰好是 1..depth 各一条
- 路径长度为1的行与 parent_id 一致
- 沿 parent_id 上溯不成环
"""
import logging
import uuid
from collections import defaultdict
from typing import Dict, List, Optional, Tuple

from sqlalchemy import select, insert, delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ValidationError
from app.db.database import transaction
from app.models.folder import Folder, OwnerType
from app.models.folder_path import FolderPath
from app.repositories.folder_repository import FolderRepository

logger = logging.getLogger(__name__)


class FolderIntegrityService:
    """文件夹层级一致性服务"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.folders = FolderRepository(db)

    async def _load_parents(self) -> Dict[uuid.UUID, Optional[uuid.UUID]]:
        result = await self.db.execute(select(Folder.id, Folder.parent_id))
        return {row.id: row.parent_id for row in result.all()}

    @staticmethod
    def _ancestor_chain(folder_id: uuid.UUID, parents: Dict[uuid.UUID, Optional[uuid.UUID]]) -> List[uuid.UUID]:
        """沿 parent_id 上溯得到真祖先（最近的在前），遇到环抛出 ValidationError"""
        chain = []
        seen = {folder_id}
        current = parents.get(folder_id)
        while current is not None:
            if current in seen:
                raise ValidationError(f"文件夹 {folder_id} 的父链存在环")
            seen.add(current)
            chain.append(current)
            current = parents.get(current)
        return chain

    async def find_violations(self, owner_id: Optional[int] = None, owner_type: str = OwnerType.USER) -> List[str]:
        """
        检查层级一致性

        Args:
            owner_id: 只检查该所有者的文件夹，None表示检查全部

        Returns:
            List[str]: 发现的问题描述，为空表示一致
        """
        parents = await self._load_parents()
        if owner_id is None:
            targets = list(parents)
            depths = dict((await self.db.execute(select(Folder.id, Folder.depth))).all())
        else:
            owned = await self.folders.find_by_owner(owner_id, owner_type)
            targets = [f.id for f in owned]
            depths = {f.id: f.depth for f in owned}

        if not targets:
            return []

        result = await self.db.execute(
            select(FolderPath.ancestor_id, FolderPath.descendant_id, FolderPath.path_length)
            .where(FolderPath.descendant_id.in_(targets))
        )
        rows_by_descendant: Dict[uuid.UUID, List[Tuple[uuid.UUID, int]]] = defaultdict(list)
        for row in result.all():
            rows_by_descendant[row.descendant_id].append((row.ancestor_id, row.path_length))

        violations = []
        for folder_id in targets:
            rows = rows_by_descendant.get(folder_id, [])

            self_rows = [length for ancestor, length in rows if ancestor == folder_id]
            if self_rows != [0]:
                violations.append(f"{folder_id}: 自引用行异常 {self_rows}")

            proper = {ancestor: length for ancestor, length in rows if ancestor != folder_id}
            if any(length == 0 for length in proper.values()):
                violations.append(f"{folder_id}: 存在路径长度为0的非自引用行")

            try:
                chain = self._ancestor_chain(folder_id, parents)
            except ValidationError as e:
                violations.append(f"{folder_id}: {e.message}")
                continue

            expected = {ancestor: index + 1 for index, ancestor in enumerate(chain)}
            if proper != expected:
                violations.append(f"{folder_id}: 祖先行与父链不一致")

            if depths.get(folder_id) != len(chain):
                violations.append(f"{folder_id}: depth={depths.get(folder_id)} 与祖先数量 {len(chain)} 不一致")

        return violations

    async def rebuild(self) -> int:
        """
        按 parent_id 重新生成整张闭包表并修正 depth

        Returns:
            int: 写入的闭包行数量

        Raises:
            ValidationError: parent_id 存在环，无法重建
        """
        async with transaction(self.db):
            parents = await self._load_parents()
            rows = []
            depths = {}
            for folder_id in parents:
                chain = self._ancestor_chain(folder_id, parents)
                depths[folder_id] = len(chain)
                rows.append({"ancestor_id": folder_id, "descendant_id": folder_id, "path_length": 0})
                rows.extend(
                    {"ancestor_id": ancestor, "descendant_id": folder_id, "path_length": index + 1}
                    for index, ancestor in enumerate(chain)
                )

            await self.db.execute(delete(FolderPath).execution_options(synchronize_session=False))
            if rows:
                await self.db.execute(insert(FolderPath), rows)
            if depths:
                await self.folders.bulk_update_depth(depths)

        logger.info("重建闭包表: 文件夹%s个, 闭包行%s条", len(parents), len(rows))
        return len(rows)
