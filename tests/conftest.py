"""
pytest 公共夹具

环境变量必须在导入 todo_service 之前设置：main 模块导入时就会读取配置。
每个用例独立一个 SQLite 内存库（StaticPool 单连接），互不干扰。
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("ENV", "development")

import pytest
from httpx import ASGITransport, AsyncClient

from todo_service.config import Settings
from todo_service.db.engine import Database
from todo_service.main import create_app


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def settings():
    return Settings(DATABASE_URL="sqlite+aiosqlite://")


@pytest.fixture
async def database(settings):
    db = Database(settings)
    await db.connect()
    yield db
    await db.dispose()


@pytest.fixture
async def session(database):
    async with database.session_factory() as s:
        yield s


@pytest.fixture
async def app(settings):
    application = create_app(settings)
    # httpx 的 ASGITransport 不触发 lifespan，这里手动进入
    async with application.router.lifespan_context(application):
        yield application


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def unreachable_settings(tmp_path):
    """指向不存在目录下的 SQLite 文件，连接必然失败"""
    return Settings(DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'todo.db'}")
