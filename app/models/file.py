"""
文件模型
"""
import uuid

from sqlalchemy import Column, BigInteger, String, TIMESTAMP, ForeignKey, Uuid, func
from app.db.database import Base
from app.models.folder import utcnow


class FileStatus:
    UPLOADING = "uploading"
    ACTIVE = "active"


class File(Base):
    __tablename__ = "files"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    folder_id = Column(Uuid, ForeignKey("folders.id", ondelete="CASCADE"), nullable=True, index=True)
    owner_id = Column(BigInteger, nullable=False)
    created_by = Column(BigInteger, nullable=False)
    mime_type = Column(String(255), nullable=False, default="application/octet-stream")
    size = Column(BigInteger, nullable=False, default=0)
    storage_key = Column(String(1024), nullable=True)
    status = Column(String(16), nullable=False, default=FileStatus.ACTIVE)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow)

    @property
    def is_active(self) -> bool:
        return self.status == FileStatus.ACTIVE
