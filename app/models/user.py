"""
用户模型
"""
from sqlalchemy import Column, BigInteger, Integer, String, Boolean, TIMESTAMP, ForeignKey, Uuid, func
from app.db.database import Base


class User(Base):
    __tablename__ = "user"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    username = Column(String(64), unique=True, nullable=True)
    email = Column(String(255), unique=True, nullable=True)
    # 个人主文件夹，不允许移动和删除
    personal_folder_id = Column(Uuid, ForeignKey("folders.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    is_active = Column(Boolean, nullable=False, default=True)
    is_deleted = Column(Boolean, nullable=False, default=False)
