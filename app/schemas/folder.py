"""
文件夹Schema模型
"""
import uuid
from pydantic import BaseModel, Field
from typing import Optional, List, Literal
from datetime import datetime


class FolderBase(BaseModel):
    """文件夹基础模型"""
    name: str = Field(..., min_length=1, max_length=255, description="文件夹名称")


class FolderCreate(FolderBase):
    """创建文件夹请求模型"""
    parentId: Optional[uuid.UUID] = Field(None, description="父文件夹ID，为null表示根目录")
    ownerType: Literal["user", "group"] = Field("user", description="根目录文件夹的所有者类型")
    ownerId: Optional[int] = Field(None, description="群组文件夹的群组ID")


class FolderRename(BaseModel):
    """重命名文件夹请求模型"""
    name: str = Field(..., min_length=1, max_length=255, description="新文件夹名称")


class FolderMove(BaseModel):
    """移动文件夹请求模型"""
    parentId: Optional[uuid.UUID] = Field(None, description="新父文件夹ID，为null表示移动到根目录")


class FolderResponse(BaseModel):
    """文件夹响应模型"""
    id: uuid.UUID
    name: str
    parentId: Optional[uuid.UUID] = None
    ownerId: int
    ownerType: str
    depth: int
    status: str
    createdAt: datetime
    updatedAt: datetime

    @classmethod
    def from_folder(cls, folder) -> "FolderResponse":
        return cls(
            id=folder.id,
            name=folder.name,
            parentId=folder.parent_id,
            ownerId=folder.owner_id,
            ownerType=folder.owner_type,
            depth=folder.depth,
            status=folder.status,
            createdAt=folder.created_at,
            updatedAt=folder.updated_at
        )


class FileInFolder(BaseModel):
    """文件夹内的文件"""
    id: uuid.UUID
    name: str
    folderId: Optional[uuid.UUID] = None
    mimeType: str
    size: int
    lastModified: datetime

    @classmethod
    def from_file(cls, file) -> "FileInFolder":
        return cls(
            id=file.id,
            name=file.name,
            folderId=file.folder_id,
            mimeType=file.mime_type,
            size=file.size,
            lastModified=file.updated_at
        )


class FolderContentsResponse(BaseModel):
    """文件夹内容响应模型"""
    folder: Optional[FolderResponse] = None
    folders: List[FolderResponse] = []
    files: List[FileInFolder] = []


class BreadcrumbItem(BaseModel):
    """面包屑节点"""
    id: uuid.UUID
    name: str


class BreadcrumbResponse(BaseModel):
    """面包屑响应模型"""
    items: List[BreadcrumbItem] = []


class FolderDeleteResponse(BaseModel):
    """删除文件夹响应模型"""
    deletedFolderCount: int
    archivedFileCount: int
