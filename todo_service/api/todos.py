"""
Todo 接口

集合端点 /todos：
- GET    列出全部 → {"todos": [...]}
- POST   {title, content} 新建（done 固定 False）→ 302 /todos
- PUT    {id, done} 只更新 done → 302 /todos
- DELETE {id} 删除 → 302 /todos

单条端点 /todo/{todo_id}：
- GET    → {"todo": {...}}，不存在返回 404，不会返回 {"todo": null}

其余方法统一返回 405 UNSUPPORTED_OPERATION（见 errors.http_exception_handler）。
"""

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from todo_service.errors import TodoNotFoundError
from todo_service.todo.schemas import (
    TodoCreate,
    TodoDelete,
    TodoDoneUpdate,
    TodoListResponse,
    TodoRead,
    TodoId,
    TodoResponse,
)
from todo_service.todo.store import TodoStore, get_todo_store

router = APIRouter(tags=["Todo"])
log = structlog.get_logger()


def _redirect_to_list(request: Request) -> RedirectResponse:
    return RedirectResponse(request.app.state.settings.TODOS_LOCATION, status_code=302)


# ── 集合端点 ──

@router.get("/todos", response_model=TodoListResponse)
async def list_todos(store: TodoStore = Depends(get_todo_store)):
    todos = await store.find_many()
    return TodoListResponse(todos=[TodoRead.model_validate(t) for t in todos])


@router.post("/todos", status_code=302, response_class=RedirectResponse)
async def create_todo(
    body: TodoCreate,
    request: Request,
    store: TodoStore = Depends(get_todo_store),
):
    todo = await store.create(title=body.title, content=body.content)
    log.info("新增 Todo", todo_id=todo.id)
    return _redirect_to_list(request)


@router.put("/todos", status_code=302, response_class=RedirectResponse)
async def mark_todo_done(
    body: TodoDoneUpdate,
    request: Request,
    store: TodoStore = Depends(get_todo_store),
):
    await store.update(body.id, done=body.done)
    log.info("更新 Todo 完成状态", todo_id=body.id, done=body.done)
    return _redirect_to_list(request)


@router.delete("/todos", status_code=302, response_class=RedirectResponse)
async def delete_todo(
    body: TodoDelete,
    request: Request,
    store: TodoStore = Depends(get_todo_store),
):
    await store.delete(body.id)
    log.info("删除 Todo", todo_id=body.id)
    return _redirect_to_list(request)


# ── 单条端点 ──

@router.get("/todo/{todo_id}", response_model=TodoResponse)
async def get_todo(todo_id: TodoId, store: TodoStore = Depends(get_todo_store)):
    todo = await store.find_unique(todo_id)
    if todo is None:
        raise TodoNotFoundError(todo_id)
    return TodoResponse(todo=TodoRead.model_validate(todo))
