"""
文件夹闭包表模型

每一行表示 (祖先, 子孙, 路径长度) 的一条可达关系，
每个文件夹都有且仅有一条 path_length = 0 的自引用行。
"""
import uuid
from typing import Iterable, List

from sqlalchemy import Column, Integer, ForeignKey, Uuid, CheckConstraint
from app.db.database import Base


class FolderPath(Base):
    __tablename__ = "folder_paths"
    __table_args__ = (
        CheckConstraint("path_length >= 0", name="ck_folder_paths_path_length"),
    )

    ancestor_id = Column(Uuid, ForeignKey("folders.id"), primary_key=True)
    descendant_id = Column(Uuid, ForeignKey("folders.id"), primary_key=True, index=True)
    path_length = Column(Integer, nullable=False)

    @classmethod
    def self_reference(cls, folder_id: uuid.UUID) -> "FolderPath":
        return cls(ancestor_id=folder_id, descendant_id=folder_id, path_length=0)

    @property
    def is_self_reference(self) -> bool:
        return self.ancestor_id == self.descendant_id and self.path_length == 0

    def __repr__(self):
        return f"<FolderPath {self.ancestor_id} -> {self.descendant_id} ({self.path_length})>"


def build_ancestor_paths(
    descendant_id: uuid.UUID,
    parent_paths: Iterable[FolderPath],
    offset: int = 0,
) -> List[FolderPath]:
    """
    根据父文件夹的闭包行生成子孙节点的祖先行

    parent_paths 是父文件夹的全部闭包行（含自引用行），
    每一行 (A, parent, d) 生成 (A, descendant, d + 1 + offset)。
    新建文件夹时 offset 为 0，父文件夹的自引用行即生成 (parent, new, 1)；
    移动子树时 offset 为节点相对于被移动文件夹的深度。

    Args:
        descendant_id: 需要挂接的节点ID
        parent_paths: 父文件夹的闭包行
        offset: 节点在子树中的相对深度

    Returns:
        List[FolderPath]: 待插入的闭包行
    """
    return [
        FolderPath(
            ancestor_id=path.ancestor_id,
            descendant_id=descendant_id,
            path_length=path.path_length + 1 + offset,
        )
        for path in parent_paths
    ]
