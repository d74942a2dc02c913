"""
权限解析接口

文件夹服务只通过 has_permission 询问「能否执行」，不关心权限模型本身。
默认实现只认可个人所有者；接入真实的权限引擎时替换 get_permission_resolver 依赖即可。
"""
import uuid
from typing import Protocol, Union

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.database import get_db
from app.models.folder import Folder, OwnerType


class ResourceType:
    FOLDER = "folder"
    GROUP = "group"


class Permission:
    FOLDER_READ = "folder:read"
    FOLDER_CREATE = "folder:create"
    FOLDER_MOVE_IN = "folder:move_in"
    FOLDER_MOVE_OUT = "folder:move_out"


class PermissionResolver(Protocol):
    async def has_permission(
        self,
        actor_id: int,
        resource_type: str,
        resource_id: Union[uuid.UUID, int],
        permission: str,
    ) -> bool:
        ...


class OwnerPermissionResolver:
    """仅授予文件夹个人所有者全部权限的解析器"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def has_permission(
        self,
        actor_id: int,
        resource_type: str,
        resource_id: Union[uuid.UUID, int],
        permission: str,
    ) -> bool:
        if resource_type != ResourceType.FOLDER:
            return False
        folder = await self.db.get(Folder, resource_id)
        if folder is None:
            return False
        return folder.owner_type == OwnerType.USER and folder.owner_id == actor_id


async def get_permission_resolver(db: AsyncSession = Depends(get_db)) -> PermissionResolver:
    """权限解析器依赖"""
    return OwnerPermissionResolver(db)
