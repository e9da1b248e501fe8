"""
Todo 存储层：基于 SQLAlchemy AsyncSession 的 CRUD

每个请求持有一个独立的 TodoStore（绑定请求级 session），写操作各自提交。

容错策略：
- 写操作命中不存在的 id：抛 TodoNotFoundError
- 连接 / 驱动层故障（OperationalError、InterfaceError、连接池超时）：翻译为 StorageUnavailableError
- 数据库拒绝取值（DataError、IntegrityError）：翻译为 InvalidInputError，重试无意义
- 两者原异常都保留在 __cause__，其余异常原样上抛
- find_unique 未命中返回 None，由调用方决定是否视为错误
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.exc import DataError, IntegrityError, InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession

from todo_service.db.engine import get_db
from todo_service.db.models import Todo
from todo_service.errors import InvalidInputError, StorageUnavailableError, TodoNotFoundError
from todo_service.observability.metrics import TODO_OPERATION_TOTAL

log = structlog.get_logger()


class TodoStore:
    """Todo 表的 CRUD"""

    def __init__(self, session: AsyncSession):
        self.session = session

    @asynccontextmanager
    async def _operation(self, name: str) -> AsyncIterator[None]:
        try:
            yield
        except TodoNotFoundError:
            TODO_OPERATION_TOTAL.labels(operation=name, status="not_found").inc()
            raise
        except (DataError, IntegrityError) as e:
            TODO_OPERATION_TOTAL.labels(operation=name, status="rejected").inc()
            log.warning("TodoStore 写入被数据库拒绝", operation=name, error=str(e))
            raise InvalidInputError(
                "Value rejected by storage", details={"operation": name, "error": str(e.orig)}
            ) from e
        except (OperationalError, InterfaceError, PoolTimeoutError) as e:
            TODO_OPERATION_TOTAL.labels(operation=name, status="error").inc()
            log.error("TodoStore 操作失败，数据库不可用", operation=name, error=str(e))
            raise StorageUnavailableError(name, str(e)) from e
        else:
            TODO_OPERATION_TOTAL.labels(operation=name, status="success").inc()

    async def find_many(self) -> list[Todo]:
        """全部记录，按 id 升序"""
        async with self._operation("find_many"):
            result = await self.session.execute(select(Todo).order_by(Todo.id))
            return list(result.scalars().all())

    async def find_unique(self, todo_id: int) -> Todo | None:
        async with self._operation("find_unique"):
            return await self.session.get(Todo, todo_id)

    async def create(self, title: str, content: str) -> Todo:
        async with self._operation("create"):
            todo = Todo(title=title, content=content, done=False)
            self.session.add(todo)
            await self.session.commit()
            return todo

    async def update(self, todo_id: int, done: bool) -> Todo:
        """只更新 done 字段"""
        async with self._operation("update"):
            todo = await self.session.get(Todo, todo_id)
            if todo is None:
                raise TodoNotFoundError(todo_id)
            todo.done = done
            await self.session.commit()
            return todo

    async def delete(self, todo_id: int) -> Todo:
        async with self._operation("delete"):
            todo = await self.session.get(Todo, todo_id)
            if todo is None:
                raise TodoNotFoundError(todo_id)
            await self.session.delete(todo)
            await self.session.commit()
            return todo


async def get_todo_store(session: AsyncSession = Depends(get_db)) -> TodoStore:
    """FastAPI 依赖注入：请求级 TodoStore"""
    return TodoStore(session)
