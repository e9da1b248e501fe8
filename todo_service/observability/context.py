"""
请求级 trace_id：contextvar 随协程 / 子任务复制，错误响应体从这里取
"""

import contextvars
import uuid

import structlog

trace_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("trace_id", default="")


def new_trace_id() -> str:
    return uuid.uuid4().hex


def get_trace_id() -> str:
    return trace_id_var.get()


def bind_trace_id(trace_id: str) -> None:
    """同时写入 contextvar 和 structlog 上下文，之后的日志行都带 trace_id"""
    trace_id_var.set(trace_id)
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(trace_id=trace_id)
