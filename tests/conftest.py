"""
测试公共夹具：每个测试使用独立的内存SQLite数据库
"""
import uuid
from typing import List, Optional

import pytest
from sqlalchemy import event, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401  注册全部模型
from app.db.database import Base
from app.models.folder import Folder
from app.models.user import User
from app.services.folder_service import FolderService
from app.services.permission_resolver import OwnerPermissionResolver

ALICE = 1
BOB = 2


class RecordingResolver:
    """按预设结果回答并记录每次调用的权限解析器"""

    def __init__(self, allow: bool = True):
        self.allow = allow
        self.calls = []

    async def has_permission(self, actor_id, resource_type, resource_id, permission):
        self.calls.append((actor_id, resource_type, resource_id, permission))
        return self.allow


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        session.add_all([User(id=ALICE, username="alice"), User(id=BOB, username="bob")])
        await session.commit()
        yield session


@pytest.fixture
def service(db):
    return FolderService(db, OwnerPermissionResolver(db))


async def fetch_folder(db: AsyncSession, folder_id: uuid.UUID) -> Optional[Folder]:
    """绕过会话缓存重新读取文件夹"""
    result = await db.execute(
        select(Folder).where(Folder.id == folder_id).execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def make_chain(service: FolderService, actor_id: int, names: List[str], parent_id=None) -> List[Folder]:
    """依次创建一条 names[0] -> names[1] -> ... 的文件夹链"""
    folders = []
    for name in names:
        folder = await service.create_folder(actor_id, name, parent_id=parent_id)
        folders.append(folder)
        parent_id = folder.id
    return folders
