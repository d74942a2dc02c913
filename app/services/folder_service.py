"""
文件夹服务

编排文件夹仓储与闭包表仓储，保证以下不变式：
- 每个文件夹有且仅有一条自引用闭包行
- 每个真祖先对应一条闭包行，路径长度等于边数
- 文件夹树无环，深度不超过 MAX_FOLDER_DEPTH
- depth 恒等于真祖先数量

所有结构性修改（创建、移动、删除）都在同一个事务内完成，并先对相关文件夹行加锁再做校验。
"""
import logging
import uuid
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import ConflictError, ForbiddenError, InternalError, NotFoundError, ValidationError
from app.db.database import transaction
from app.models.file import File
from app.models.folder import Folder, OwnerType, MAX_FOLDER_DEPTH
from app.models.folder_path import build_ancestor_paths
from app.models.user import User
from app.repositories.folder_closure_repository import FolderClosureRepository
from app.repositories.folder_repository import FolderRepository
from app.services.file_service import FileArchiver, FileService
from app.services.folder_integrity import FolderIntegrityService
from app.services.folder_path_builder import FolderPathBuilder
from app.services.permission_resolver import Permission, PermissionResolver, ResourceType
from app.utils.folder_name import validate_folder_name

logger = logging.getLogger(__name__)


@dataclass
class DeleteFolderResult:
    deleted_folder_count: int
    archived_file_count: int


@dataclass
class FolderContents:
    folder: Optional[Folder]  # 根目录时为None
    folders: List[Folder] = field(default_factory=list)
    files: List[File] = field(default_factory=list)


class FolderService:
    """文件夹服务"""

    def __init__(
        self,
        db: AsyncSession,
        permission_resolver: PermissionResolver,
        file_service: Optional[FileArchiver] = None,
        verify_hierarchy: Optional[bool] = None,
    ):
        self.db = db
        self.folders = FolderRepository(db)
        self.closure = FolderClosureRepository(db)
        self.permission_resolver = permission_resolver
        self.file_service = file_service or FileService(db)
        # 为True时每次结构性修改提交前交叉检查所有者的整棵树，默认跟随DEBUG
        self.verify_hierarchy = settings.DEBUG if verify_hierarchy is None else verify_hierarchy

    # ------------------------------------------------------------------
    # 内部工具
    # ------------------------------------------------------------------

    async def _get_folder(self, folder_id: uuid.UUID, message: str = "文件夹不存在") -> Folder:
        folder = await self.folders.find_by_id(folder_id)
        if folder is None:
            raise NotFoundError(message)
        return folder

    async def _authorize(self, actor_id: int, folder: Folder, permission: str) -> bool:
        """个人所有者直接放行，其余情况交给权限解析器"""
        if folder.is_owned_by(actor_id):
            return True
        return await self.permission_resolver.has_permission(
            actor_id, ResourceType.FOLDER, folder.id, permission
        )

    async def _require_read(self, actor_id: int, folder: Folder):
        if not await self._authorize(actor_id, folder, Permission.FOLDER_READ):
            logger.warning("用户 %s 无权访问文件夹 %s", actor_id, folder.id)
            raise ForbiddenError("无权访问该文件夹")

    async def _is_personal_folder(self, actor_id: int, folder_id: uuid.UUID) -> bool:
        user = await self.db.get(User, actor_id)
        return user is not None and user.personal_folder_id == folder_id

    async def _name_exists(
        self,
        name: str,
        parent_id: Optional[uuid.UUID],
        owner_id: int,
        owner_type: str,
    ) -> bool:
        if parent_id is not None:
            return await self.folders.exists_by_name_and_parent(name, parent_id)
        return await self.folders.exists_by_name_and_owner_root(name, owner_id, owner_type)

    async def _lock_chain(
        self,
        folder_id: uuid.UUID,
        extra_ids: Iterable[uuid.UUID] = (),
        message: str = "文件夹不存在",
    ) -> Dict[uuid.UUID, Folder]:
        """
        在一条语句中锁定文件夹、其祖先链以及 extra_ids

        祖先链在加锁前读取，加锁后再读一次，不一致说明有并发移动，直接报冲突由调用方重试。
        """
        ancestor_ids = await self.closure.find_ancestor_ids(folder_id)
        locked = await self.folders.lock_by_ids([*extra_ids, folder_id, *ancestor_ids])
        if folder_id not in locked:
            raise NotFoundError(message)
        if await self.closure.find_ancestor_ids(folder_id) != ancestor_ids:
            raise ConflictError("文件夹层级已被并发修改，请重试")
        return locked

    async def _verify_hierarchy(self, owner_id: int, owner_type: str):
        if not self.verify_hierarchy:
            return
        violations = await FolderIntegrityService(self.db).find_violations(owner_id, owner_type)
        if violations:
            logger.error("文件夹层级一致性检查失败: %s", violations[:10])
            raise InternalError("文件夹层级数据不一致")

    # ------------------------------------------------------------------
    # 查询
    # ------------------------------------------------------------------

    async def get_folder(self, actor_id: int, folder_id: uuid.UUID) -> Folder:
        folder = await self._get_folder(folder_id)
        await self._require_read(actor_id, folder)
        return folder

    async def get_ancestors(self, actor_id: int, folder_id: uuid.UUID) -> List[Folder]:
        """
        获取面包屑：第一个元素是顶层祖先，最后一个元素是直接父文件夹

        根文件夹返回空列表。
        """
        folder = await self._get_folder(folder_id)
        await self._require_read(actor_id, folder)

        ancestor_ids = await self.closure.find_ancestor_ids(folder_id)
        if not ancestor_ids:
            return []

        found = await self.folders.find_by_ids(ancestor_ids)
        ancestors = []
        for ancestor_id in ancestor_ids:
            if ancestor_id not in found:
                raise InternalError(f"闭包表引用了不存在的文件夹: {ancestor_id}")
            ancestors.append(found[ancestor_id])

        # 闭包表按路径长度升序返回（最近的祖先在前），反转为从根开始
        ancestors.reverse()
        return ancestors

    async def list_folder_contents(self, actor_id: int, folder_id: Optional[uuid.UUID] = None) -> FolderContents:
        """列出文件夹下的子文件夹与有效文件；folder_id 为 None 时列出个人根目录"""
        if folder_id is None:
            folders = await self.folders.find_root_by_owner(actor_id, OwnerType.USER)
            files = await self.file_service.find_active_in_folder(None, actor_id)
            return FolderContents(folder=None, folders=folders, files=files)

        folder = await self._get_folder(folder_id)
        await self._require_read(actor_id, folder)
        folders = await self.folders.find_by_parent_id(folder.id)
        files = await self.file_service.find_active_in_folder(folder.id, folder.owner_id)
        return FolderContents(folder=folder, folders=folders, files=files)

    # ------------------------------------------------------------------
    # 创建
    # ------------------------------------------------------------------

    async def create_folder(
        self,
        actor_id: int,
        name: str,
        parent_id: Optional[uuid.UUID] = None,
        owner_id: Optional[int] = None,
        owner_type: str = OwnerType.USER,
    ) -> Folder:
        """
        创建文件夹

        有父文件夹时新文件夹继承父文件夹的所有者；
        根目录下的个人文件夹属于调用者，群组文件夹需要在群组上有创建权限。

        Args:
            actor_id: 调用者用户ID
            name: 文件夹名称
            parent_id: 父文件夹ID，None表示根目录
            owner_id: 根目录文件夹的所有者ID（群组文件夹时为群组ID）
            owner_type: 根目录文件夹的所有者类型

        Returns:
            Folder: 新建的文件夹

        Raises:
            ValidationError: 名称不合法或深度超限
            NotFoundError: 父文件夹不存在
            ForbiddenError: 无权在该位置创建
            ConflictError: 同级已有同名文件夹
        """
        folder_name = validate_folder_name(name)

        if parent_id is not None:
            parent = await self._get_folder(parent_id, "父文件夹不存在")
            if not await self._authorize(actor_id, parent, Permission.FOLDER_CREATE):
                logger.warning("用户 %s 无权在文件夹 %s 下创建", actor_id, parent_id)
                raise ForbiddenError("无权在该位置创建文件夹")
            if parent.depth + 1 > MAX_FOLDER_DEPTH:
                raise ValidationError(f"文件夹层级不能超过{MAX_FOLDER_DEPTH}层")
            owner_id, owner_type = parent.owner_id, parent.owner_type
        elif owner_type == OwnerType.USER:
            if owner_id is not None and owner_id != actor_id:
                raise ForbiddenError("不能为其他用户创建文件夹")
            owner_id = actor_id
        elif owner_type == OwnerType.GROUP:
            if owner_id is None:
                raise ValidationError("创建群组文件夹需要指定群组ID")
            allowed = await self.permission_resolver.has_permission(
                actor_id, ResourceType.GROUP, owner_id, Permission.FOLDER_CREATE
            )
            if not allowed:
                logger.warning("用户 %s 无权在群组 %s 下创建文件夹", actor_id, owner_id)
                raise ForbiddenError("无权在该群组下创建文件夹")
        else:
            raise ValidationError(f"不支持的所有者类型: {owner_type}")

        async with transaction(self.db):
            depth = 0
            if parent_id is not None:
                locked = await self._lock_chain(parent_id, message="父文件夹不存在")
                depth = locked[parent_id].depth + 1

            if await self._name_exists(folder_name, parent_id, owner_id, owner_type):
                raise ConflictError("同名文件夹已存在")

            folder = Folder.new(
                name=folder_name,
                parent_id=parent_id,
                owner_id=owner_id,
                owner_type=owner_type,
                created_by=actor_id,
                depth=depth,
            )
            await self.folders.create(folder)
            await self.closure.insert_self_reference(folder.id)

            if parent_id is not None:
                parent_paths = await self.closure.find_ancestor_paths(parent_id)
                await self.closure.insert_ancestor_paths(build_ancestor_paths(folder.id, parent_paths))

            await self._verify_hierarchy(owner_id, owner_type)

        logger.info("创建文件夹 %s (parent=%s, depth=%s)", folder.id, parent_id, folder.depth)
        return folder

    # ------------------------------------------------------------------
    # 重命名
    # ------------------------------------------------------------------

    async def rename_folder(self, actor_id: int, folder_id: uuid.UUID, new_name: str) -> Folder:
        folder_name = validate_folder_name(new_name)
        folder = await self._get_folder(folder_id)
        if not folder.is_owned_by(actor_id):
            raise ForbiddenError("无权重命名该文件夹")

        # 名称未变化时不做重名检查
        if folder.equals_name(folder_name):
            return folder

        async with transaction(self.db):
            if await self._name_exists(folder_name, folder.parent_id, folder.owner_id, folder.owner_type):
                raise ConflictError("同名文件夹已存在")
            folder.rename(folder_name)
            await self.folders.update(folder)

        logger.info("重命名文件夹 %s", folder.id)
        return folder

    # ------------------------------------------------------------------
    # 移动
    # ------------------------------------------------------------------

    async def move_folder(
        self,
        actor_id: int,
        folder_id: uuid.UUID,
        new_parent_id: Optional[uuid.UUID] = None,
    ) -> Folder:
        """
        移动文件夹（连同整棵子树）

        子树内部的层级关系不变，只更换挂接点；子孙的深度按 新深度 + 相对深度 重新计算。

        Raises:
            NotFoundError: 文件夹或目标文件夹不存在
            ForbiddenError: 无移出/移入权限，或尝试移动个人主文件夹
            ValidationError: 移动到自身、移动到子孙下、或子树最深处超出深度上限
            ConflictError: 目标位置已有同名文件夹，或层级被并发修改
        """
        folder = await self._get_folder(folder_id)

        # 移出权限
        if folder.parent_id is not None:
            current_parent = await self._get_folder(folder.parent_id, "父文件夹不存在")
            can_move_out = await self._authorize(actor_id, current_parent, Permission.FOLDER_MOVE_OUT)
        else:
            can_move_out = folder.is_owned_by(actor_id)
        if not can_move_out:
            logger.warning("用户 %s 无权移出文件夹 %s", actor_id, folder_id)
            raise ForbiddenError("无权移动该文件夹")

        if await self._is_personal_folder(actor_id, folder.id):
            raise ForbiddenError("个人主文件夹不能移动")

        # 移动到当前位置时不做任何处理
        if new_parent_id == folder.parent_id:
            return folder

        # 移入权限
        if new_parent_id is not None:
            new_parent = await self._get_folder(new_parent_id, "目标文件夹不存在")
            if not await self._authorize(actor_id, new_parent, Permission.FOLDER_MOVE_IN):
                logger.warning("用户 %s 无权移入文件夹 %s", actor_id, new_parent_id)
                raise ForbiddenError("无权移动到该文件夹")
        elif not folder.is_owned_by(actor_id):
            raise ForbiddenError("只有所有者可以移动到根目录")

        async with transaction(self.db):
            # 先锁定被移动的文件夹和目标祖先链，再基于最新数据做环路与深度校验
            new_depth = 0
            new_parent_paths = []
            if new_parent_id is not None:
                locked = await self._lock_chain(new_parent_id, extra_ids=[folder.id], message="目标文件夹不存在")
                new_depth = locked[new_parent_id].depth + 1
            else:
                locked = await self.folders.lock_by_ids([folder.id])
            if folder.id not in locked:
                raise NotFoundError("文件夹不存在")

            descendant_ids = await self.closure.find_descendant_ids(folder.id)
            descendant_depths = {}
            max_relative_depth = 0
            if descendant_ids:
                descendant_depths = await self.closure.find_descendants_with_depth(folder.id)
                max_relative_depth = max(descendant_depths.values())

            folder.can_move_to(new_parent_id, new_depth + max_relative_depth, descendant_ids)

            if await self._name_exists(folder.name, new_parent_id, folder.owner_id, folder.owner_type):
                raise ConflictError("目标位置已存在同名文件夹")

            if new_parent_id is not None:
                new_parent_paths = await self.closure.find_ancestor_paths(new_parent_id)
            await self.closure.move_subtree(folder.id, new_parent_paths)

            folder.move_to(new_parent_id, new_depth)
            await self.folders.update(folder)

            if descendant_depths:
                await self.folders.bulk_update_depth(
                    {descendant_id: new_depth + relative_depth
                     for descendant_id, relative_depth in descendant_depths.items()}
                )

            await self._verify_hierarchy(folder.owner_id, folder.owner_type)

        logger.info(
            "移动文件夹 %s -> parent=%s (depth=%s, 子孙%s个)",
            folder.id, new_parent_id, new_depth, len(descendant_ids)
        )
        return folder

    # ------------------------------------------------------------------
    # 删除
    # ------------------------------------------------------------------

    async def delete_folder(self, actor_id: int, folder_id: uuid.UUID) -> DeleteFolderResult:
        """
        删除文件夹及其全部子孙（物理删除）

        子树中的有效文件先转入归档，然后删除闭包行，最后由深到浅删除文件夹行。
        """
        folder = await self._get_folder(folder_id)
        if not folder.is_owned_by(actor_id):
            logger.warning("用户 %s 无权删除文件夹 %s", actor_id, folder_id)
            raise ForbiddenError("无权删除该文件夹")
        if await self._is_personal_folder(actor_id, folder.id):
            raise ForbiddenError("个人主文件夹不能删除")

        archived_count = 0
        async with transaction(self.db):
            locked = await self.folders.lock_by_ids([folder.id])
            if folder.id not in locked:
                raise NotFoundError("文件夹不存在")
            owner_id, owner_type = folder.owner_id, folder.owner_type

            descendant_ids = await self.closure.find_descendant_ids(folder.id)
            subtree_ids = [folder.id, *descendant_ids]

            files = await self.file_service.find_by_folder_ids(subtree_ids)
            path_builder = FolderPathBuilder(self.folders, self.closure)
            for file in files:
                if not file.is_active:
                    continue
                original_path = await path_builder.build_file_path(file.folder_id, file.name)
                await self.file_service.archive(file, original_path, actor_id)
                archived_count += 1

            relative_depths = {}
            if descendant_ids:
                relative_depths = await self.closure.find_descendants_with_depth(folder.id)

            await self.closure.delete_subtree_paths(folder.id)

            # 由深到浅删除，保证不会先删掉仍被子文件夹引用的父文件夹
            deepest_first = sorted(descendant_ids, key=lambda i: relative_depths.get(i, 0), reverse=True)
            for delete_id in [*deepest_first, folder.id]:
                await self.folders.delete(delete_id)

            await self._verify_hierarchy(owner_id, owner_type)

        logger.info("删除文件夹 %s: 文件夹%s个, 归档文件%s个", folder_id, len(subtree_ids), archived_count)
        return DeleteFolderResult(
            deleted_folder_count=len(subtree_ids),
            archived_file_count=archived_count,
        )
