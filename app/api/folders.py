"""
文件夹管理API
"""
import uuid
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.database import get_db
from app.schemas.folder import (
    FolderCreate, FolderRename, FolderMove, FolderResponse,
    FolderContentsResponse, FileInFolder, BreadcrumbItem, BreadcrumbResponse,
    FolderDeleteResponse
)
from app.schemas.common import ResponseModel
from app.services.folder_service import FolderService, FolderContents
from app.services.permission_resolver import PermissionResolver, get_permission_resolver
from app.utils.auth import get_current_user_id

router = APIRouter(prefix="/api", tags=["文件夹管理"])


async def get_folder_service(
    db: AsyncSession = Depends(get_db),
    permission_resolver: PermissionResolver = Depends(get_permission_resolver)
) -> FolderService:
    """文件夹服务依赖"""
    return FolderService(db, permission_resolver)


def _contents_response(contents: FolderContents) -> FolderContentsResponse:
    return FolderContentsResponse(
        folder=FolderResponse.from_folder(contents.folder) if contents.folder else None,
        folders=[FolderResponse.from_folder(f) for f in contents.folders],
        files=[FileInFolder.from_file(f) for f in contents.files]
    )


@router.post("/folders", response_model=ResponseModel)
async def create_folder(
    folder_data: FolderCreate,
    service: FolderService = Depends(get_folder_service),
    current_user_id: int = Depends(get_current_user_id)
):
    """
    创建文件夹
    """
    folder = await service.create_folder(
        actor_id=current_user_id,
        name=folder_data.name,
        parent_id=folder_data.parentId,
        owner_id=folder_data.ownerId,
        owner_type=folder_data.ownerType
    )

    return ResponseModel(
        code=200,
        message="文件夹创建成功",
        data=FolderResponse.from_folder(folder)
    )


@router.get("/folders/root/contents", response_model=ResponseModel)
async def list_root_contents(
    service: FolderService = Depends(get_folder_service),
    current_user_id: int = Depends(get_current_user_id)
):
    """
    获取根目录内容
    """
    contents = await service.list_folder_contents(current_user_id, None)
    return ResponseModel(code=200, data=_contents_response(contents))


@router.get("/folders/{folder_id}", response_model=ResponseModel)
async def get_folder(
    folder_id: uuid.UUID,
    service: FolderService = Depends(get_folder_service),
    current_user_id: int = Depends(get_current_user_id)
):
    """
    获取文件夹详情
    """
    folder = await service.get_folder(current_user_id, folder_id)
    return ResponseModel(code=200, data=FolderResponse.from_folder(folder))


@router.get("/folders/{folder_id}/contents", response_model=ResponseModel)
async def list_folder_contents(
    folder_id: uuid.UUID,
    service: FolderService = Depends(get_folder_service),
    current_user_id: int = Depends(get_current_user_id)
):
    """
    获取文件夹内容（子文件夹在前，文件在后）
    """
    contents = await service.list_folder_contents(current_user_id, folder_id)
    return ResponseModel(code=200, data=_contents_response(contents))


@router.get("/folders/{folder_id}/ancestors", response_model=ResponseModel)
async def get_ancestors(
    folder_id: uuid.UUID,
    service: FolderService = Depends(get_folder_service),
    current_user_id: int = Depends(get_current_user_id)
):
    """
    获取面包屑（从顶层文件夹到直接父文件夹）
    """
    ancestors = await service.get_ancestors(current_user_id, folder_id)
    return ResponseModel(
        code=200,
        data=BreadcrumbResponse(
            items=[BreadcrumbItem(id=a.id, name=a.name) for a in ancestors]
        )
    )


@router.put("/folders/{folder_id}/rename", response_model=ResponseModel)
async def rename_folder(
    folder_id: uuid.UUID,
    rename_data: FolderRename,
    service: FolderService = Depends(get_folder_service),
    current_user_id: int = Depends(get_current_user_id)
):
    """
    重命名文件夹
    """
    folder = await service.rename_folder(current_user_id, folder_id, rename_data.name)

    return ResponseModel(
        code=200,
        message="重命名成功",
        data=FolderResponse.from_folder(folder)
    )


@router.put("/folders/{folder_id}/move", response_model=ResponseModel)
async def move_folder(
    folder_id: uuid.UUID,
    move_data: FolderMove,
    service: FolderService = Depends(get_folder_service),
    current_user_id: int = Depends(get_current_user_id)
):
    """
    移动文件夹（连同子文件夹一起移动）
    """
    folder = await service.move_folder(current_user_id, folder_id, move_data.parentId)

    return ResponseModel(
        code=200,
        message="移动成功",
        data=FolderResponse.from_folder(folder)
    )


@router.delete("/folders/{folder_id}", response_model=ResponseModel)
async def delete_folder(
    folder_id: uuid.UUID,
    service: FolderService = Depends(get_folder_service),
    current_user_id: int = Depends(get_current_user_id)
):
    """
    删除文件夹（级联删除子文件夹，文件转入归档）
    """
    result = await service.delete_folder(current_user_id, folder_id)

    return ResponseModel(
        code=200,
        message="删除成功",
        data=FolderDeleteResponse(
            deletedFolderCount=result.deleted_folder_count,
            archivedFileCount=result.archived_file_count
        )
    )
