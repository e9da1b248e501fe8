"""
数据库引擎：AsyncEngine 创建 + AsyncSession 工厂

Database 由应用生命周期显式构造 / 打开 / 关闭，挂在 app.state 上，
请求通过 get_db 依赖拿到独立的 AsyncSession，不使用模块级单例。

内存 SQLite 只有一条共享连接（StaticPool），同一时刻只允许一个 session 持有它，
否则一个 session 的 rollback / close 会撤销另一个 session 尚未提交的写入。
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from todo_service.config import Settings
from todo_service.db.models import Base

log = structlog.get_logger()


def build_engine(settings: Settings) -> AsyncEngine:
    """按配置创建 AsyncEngine"""
    if settings.is_sqlite_memory:
        # 内存库随连接存在，必须单连接共享
        return create_async_engine(
            settings.DATABASE_URL,
            echo=settings.DB_ECHO,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    if settings.is_sqlite:
        return create_async_engine(
            settings.DATABASE_URL,
            echo=settings.DB_ECHO,
            pool_timeout=settings.DB_POOL_TIMEOUT,
        )
    return create_async_engine(
        settings.DATABASE_URL,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        pool_recycle=settings.DB_POOL_RECYCLE,
        echo=settings.DB_ECHO,
        connect_args={"server_settings": {"search_path": settings.DB_SCHEMA}},
    )


class Database:
    """进程级数据库句柄：engine + session 工厂"""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.engine = build_engine(settings)
        self.session_factory = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False
        )
        self._shared_connection_lock = asyncio.Lock() if settings.is_sqlite_memory else None

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """请求级 session；共享单连接时串行持有"""
        if self._shared_connection_lock is None:
            async with self.session_factory() as session:
                yield session
            return
        async with self._shared_connection_lock:
            async with self.session_factory() as session:
                yield session

    async def connect(self) -> None:
        """Fail Fast：连接不可用时直接抛出，拒绝启动"""
        async with self.engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            if self.settings.DB_CREATE_TABLES:
                await conn.run_sync(Base.metadata.create_all)
        log.info("数据库连接正常", create_tables=self.settings.DB_CREATE_TABLES)

    async def ping(self) -> None:
        async with self.session() as session:
            await session.execute(text("SELECT 1"))

    async def dispose(self) -> None:
        await self.engine.dispose()
        log.info("数据库连接池已释放")


def get_database(request: Request) -> Database:
    """FastAPI 依赖注入：获取生命周期内创建的 Database"""
    return request.app.state.database


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """FastAPI 依赖注入：获取数据库会话"""
    async with get_database(request).session() as session:
        yield session
