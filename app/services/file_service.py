"""
文件服务

文件夹内容查询，以及文件夹删除时把其中的有效文件转入归档：创建归档记录并删除原文件记录。
"""
import uuid
from datetime import timedelta
from typing import List, Optional, Protocol

from sqlalchemy import select, delete, and_
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.models.archived_file import ArchivedFile
from app.models.file import File, FileStatus
from app.models.folder import utcnow


class FileArchiver(Protocol):
    async def find_by_folder_ids(self, folder_ids: List[uuid.UUID]) -> List[File]:
        ...

    async def archive(self, file: File, original_path: str, actor_id: int) -> ArchivedFile:
        ...


class FileService:
    """文件服务"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_folder_ids(self, folder_ids: List[uuid.UUID]) -> List[File]:
        """获取直接位于这些文件夹中的全部文件"""
        if not folder_ids:
            return []
        result = await self.db.execute(
            select(File).where(File.folder_id.in_(folder_ids))
        )
        return list(result.scalars().all())

    async def find_active_in_folder(self, folder_id: Optional[uuid.UUID], owner_id: int) -> List[File]:
        """
        获取文件夹中的有效文件

        folder_id 为 None 时返回该所有者根目录下的文件。
        """
        if folder_id is None:
            condition = and_(File.folder_id.is_(None), File.owner_id == owner_id)
        else:
            condition = File.folder_id == folder_id
        result = await self.db.execute(
            select(File).where(condition, File.status == FileStatus.ACTIVE).order_by(File.name)
        )
        return list(result.scalars().all())

    async def archive(self, file: File, original_path: str, actor_id: int) -> ArchivedFile:
        """
        归档单个文件

        Args:
            file: 待归档的文件
            original_path: 文件删除前的完整路径，如 /Docs/2024/report.pdf
            actor_id: 执行删除的用户ID

        Returns:
            ArchivedFile: 新建的归档记录
        """
        now = utcnow()
        archived = ArchivedFile(
            id=uuid.uuid4(),
            original_file_id=file.id,
            original_folder_id=file.folder_id,
            original_path=original_path,
            name=file.name,
            mime_type=file.mime_type,
            size=file.size,
            owner_id=file.owner_id,
            created_by=file.created_by,
            storage_key=file.storage_key,
            archived_by=actor_id,
            archived_at=now,
            expires_at=now + timedelta(days=settings.ARCHIVE_RETENTION_DAYS),
        )
        self.db.add(archived)
        await self.db.execute(delete(File).where(File.id == file.id))
        return archived
