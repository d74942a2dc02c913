"""
文件夹绝对路径构建
"""
import uuid
from typing import Dict

from app.core.exceptions import InternalError
from app.repositories.folder_closure_repository import FolderClosureRepository
from app.repositories.folder_repository import FolderRepository


class FolderPathBuilder:
    """
    通过闭包表把文件夹ID解析成 /根/.../自身 形式的路径

    同一个实例内缓存已解析的名称和路径，适合在一次删除中为大量文件构建路径。
    """

    def __init__(self, folders: FolderRepository, closure: FolderClosureRepository):
        self.folders = folders
        self.closure = closure
        self._names: Dict[uuid.UUID, str] = {}
        self._paths: Dict[uuid.UUID, str] = {}

    async def build(self, folder_id: uuid.UUID) -> str:
        if folder_id in self._paths:
            return self._paths[folder_id]

        ancestor_ids = await self.closure.find_ancestor_ids(folder_id)
        chain = list(reversed(ancestor_ids)) + [folder_id]

        missing = [i for i in chain if i not in self._names]
        if missing:
            found = await self.folders.find_by_ids(missing)
            for i in missing:
                if i not in found:
                    raise InternalError(f"闭包表引用了不存在的文件夹: {i}")
                self._names[i] = found[i].name

        path = "/" + "/".join(self._names[i] for i in chain)
        self._paths[folder_id] = path
        return path

    async def build_file_path(self, folder_id: uuid.UUID, file_name: str) -> str:
        return f"{await self.build(folder_id)}/{file_name}"
