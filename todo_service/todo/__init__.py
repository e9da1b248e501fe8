"""
Todo 模块：请求/响应模型 + 数据库存储层
"""

from todo_service.todo.schemas import TodoRead, parse_todo_id
from todo_service.todo.store import TodoStore, get_todo_store

__all__ = ["TodoRead", "TodoStore", "get_todo_store", "parse_todo_id"]
