"""
归档文件模型（文件夹删除时配下文件移入归档）
"""
import uuid

from sqlalchemy import Column, BigInteger, String, Text, TIMESTAMP, Uuid
from app.db.database import Base
from app.models.folder import utcnow


class ArchivedFile(Base):
    __tablename__ = "archived_files"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    original_file_id = Column(Uuid, nullable=False, index=True)
    original_folder_id = Column(Uuid, nullable=True)
    original_path = Column(Text, nullable=False)
    name = Column(String(255), nullable=False)
    mime_type = Column(String(255), nullable=False)
    size = Column(BigInteger, nullable=False, default=0)
    owner_id = Column(BigInteger, nullable=False)
    created_by = Column(BigInteger, nullable=False)
    storage_key = Column(String(1024), nullable=True)
    archived_by = Column(BigInteger, nullable=False)
    archived_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)
    expires_at = Column(TIMESTAMP(timezone=True), nullable=False)
