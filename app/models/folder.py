"""
文件夹模型

文件夹树按所有者划分，层级关系同时保存在 parent_id 与闭包表 folder_paths 中。
depth 是冗余缓存：恒等于闭包表中该文件夹真祖先的数量，根文件夹为 0。
文件夹没有软删除状态，删除即物理删除。
"""
import uuid
from datetime import datetime, timezone
from typing import Iterable, Optional

from sqlalchemy import Column, BigInteger, Integer, String, TIMESTAMP, ForeignKey, Uuid, Index, UniqueConstraint, func, text
from app.db.database import Base
from app.core.exceptions import ValidationError
from app.utils.folder_name import validate_folder_name

# 文件夹最大深度（根文件夹深度为0）
MAX_FOLDER_DEPTH = 20


class OwnerType:
    USER = "user"
    GROUP = "group"

    ALL = (USER, GROUP)


class FolderStatus:
    ACTIVE = "active"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Folder(Base):
    __tablename__ = "folders"
    __table_args__ = (
        Index("ix_folders_owner_parent", "owner_type", "owner_id", "parent_id"),
        # 同级重名在数据库层兜底：有父文件夹时按 parent_id，根目录按所有者
        UniqueConstraint("parent_id", "name", name="uq_folders_parent_name"),
        Index(
            "uq_folders_root_owner_name", "owner_type", "owner_id", "name",
            unique=True,
            postgresql_where=text("parent_id IS NULL"),
            sqlite_where=text("parent_id IS NULL"),
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    parent_id = Column(Uuid, ForeignKey("folders.id"), nullable=True, index=True)
    owner_id = Column(BigInteger, nullable=False)
    owner_type = Column(String(16), nullable=False, default=OwnerType.USER)
    created_by = Column(BigInteger, nullable=False)
    depth = Column(Integer, nullable=False, default=0)
    status = Column(String(16), nullable=False, default=FolderStatus.ACTIVE)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow)

    @classmethod
    def new(
        cls,
        name: str,
        parent_id: Optional[uuid.UUID],
        owner_id: int,
        owner_type: str,
        created_by: int,
        depth: int,
    ) -> "Folder":
        """
        创建新的文件夹实体（尚未持久化）

        Raises:
            ValidationError: 名称不合法、深度超出上限或所有者类型非法
        """
        name = validate_folder_name(name)
        if depth > MAX_FOLDER_DEPTH:
            raise ValidationError(f"文件夹层级不能超过{MAX_FOLDER_DEPTH}层")
        if owner_type not in OwnerType.ALL:
            raise ValidationError(f"不支持的所有者类型: {owner_type}")

        now = utcnow()
        return cls(
            id=uuid.uuid4(),
            name=name,
            parent_id=parent_id,
            owner_id=owner_id,
            owner_type=owner_type,
            created_by=created_by,
            depth=depth,
            status=FolderStatus.ACTIVE,
            created_at=now,
            updated_at=now,
        )

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    def is_owned_by(self, user_id: int) -> bool:
        """判断是否为指定用户个人所有"""
        return self.owner_type == OwnerType.USER and self.owner_id == user_id

    def equals_name(self, name: str) -> bool:
        return self.name == name

    def rename(self, new_name: str):
        self.name = validate_folder_name(new_name)
        self.updated_at = utcnow()

    def move_to(self, new_parent_id: Optional[uuid.UUID], new_depth: int):
        """只修改内存中的父文件夹和深度，不做持久化"""
        self.parent_id = new_parent_id
        self.depth = new_depth
        self.updated_at = utcnow()

    def can_move_to(
        self,
        candidate_parent_id: Optional[uuid.UUID],
        prospective_max_depth: int,
        descendant_ids: Iterable[uuid.UUID],
    ):
        """
        校验能否移动到指定父文件夹下

        Args:
            candidate_parent_id: 目标父文件夹ID，None表示移动到根目录
            prospective_max_depth: 移动后整棵子树中最深节点的深度
            descendant_ids: 当前文件夹的全部子孙ID

        Raises:
            ValidationError: 移动到自身、移动到子孙文件夹下或超出深度上限
        """
        if candidate_parent_id is not None:
            if candidate_parent_id == self.id:
                raise ValidationError("不能将文件夹移动到自身下面")
            if candidate_parent_id in set(descendant_ids):
                raise ValidationError("不能将文件夹移动到自己的子文件夹下")

        if prospective_max_depth > MAX_FOLDER_DEPTH:
            raise ValidationError(f"移动后文件夹层级将超过{MAX_FOLDER_DEPTH}层")

    def __repr__(self):
        return f"<Folder {self.id} name={self.name!r} depth={self.depth}>"
