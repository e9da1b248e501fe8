"""
Todo 请求/响应模型 + id 解析

请求体只校验字段存在与基本类型；id 通过 TodoId 走 parse_todo_id，
解析失败直接抛 InvalidIdentifierError（不是 ValueError，pydantic 不会吞掉），
保证不会带着非法 id 访问存储层。
"""

import re
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, field_validator

from todo_service.errors import InvalidIdentifierError

_ID_PATTERN = re.compile(r"[0-9]+")
MAX_TODO_ID = 2**31 - 1  # Integer 主键上限


def parse_todo_id(raw: Any) -> int:
    """解析十进制正整数 id：接受 JSON 整数或纯数字字符串，其余一律拒绝"""
    if isinstance(raw, bool):
        raise InvalidIdentifierError(raw)
    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, str) and _ID_PATTERN.fullmatch(raw.strip()):
        value = int(raw.strip(), 10)
    else:
        raise InvalidIdentifierError(raw)
    if not 1 <= value <= MAX_TODO_ID:
        raise InvalidIdentifierError(raw)
    return value


TodoId = Annotated[int, BeforeValidator(parse_todo_id)]


class TodoRead(BaseModel):
    """单个 Todo 条目"""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    content: str
    done: bool


class TodoCreate(BaseModel):
    """创建请求：done 不接受外部输入，固定为 False"""

    title: str
    content: str

    @field_validator("title", "content")
    @classmethod
    def check_storable(cls, v: str) -> str:
        """JSON 里的孤立代理项（\\ud800）和 NUL 字符数据库存不了"""
        if "\x00" in v:
            raise ValueError("must not contain NUL characters")
        try:
            v.encode("utf-8")
        except UnicodeEncodeError:
            raise ValueError("must be valid UTF-8 text") from None
        return v


class TodoDoneUpdate(BaseModel):
    id: TodoId
    done: bool


class TodoDelete(BaseModel):
    id: TodoId


class TodoListResponse(BaseModel):
    todos: list[TodoRead]


class TodoResponse(BaseModel):
    todo: TodoRead
