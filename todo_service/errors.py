"""
统一异常：带类型标签的错误枚举 + FastAPI 异常处理器

所有业务错误都继承 TodoServiceError，按 kind 区分：
- NOT_FOUND             记录不存在
- INVALID_INPUT         请求体缺字段 / 类型不符
- INVALID_IDENTIFIER    id 不是合法的十进制正整数（INVALID_INPUT 的子类）
- STORAGE_UNAVAILABLE   数据库连接 / 驱动层失败
- UNSUPPORTED_OPERATION 路由不支持的 HTTP 方法

响应体统一为 {"detail", "code", "trace_id", "details"?}。
"""

from enum import Enum
from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler as default_http_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.routing import Match

from todo_service.observability.context import get_trace_id
from todo_service.observability.metrics import ERROR_TOTAL

log = structlog.get_logger()


class TodoErrorKind(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_IDENTIFIER = "INVALID_IDENTIFIER"
    STORAGE_UNAVAILABLE = "STORAGE_UNAVAILABLE"
    UNSUPPORTED_OPERATION = "UNSUPPORTED_OPERATION"


class TodoServiceError(Exception):
    """业务异常基类"""

    def __init__(
        self,
        message: str,
        kind: TodoErrorKind,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "detail": self.message,
            "code": self.kind.value,
            "trace_id": get_trace_id(),
        }
        if self.details:
            result["details"] = self.details
        return result


class TodoNotFoundError(TodoServiceError):
    def __init__(self, todo_id: int):
        super().__init__(
            message=f"Todo not found: {todo_id}",
            kind=TodoErrorKind.NOT_FOUND,
            status_code=404,
            details={"id": todo_id},
        )


class InvalidInputError(TodoServiceError):
    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        kind: TodoErrorKind = TodoErrorKind.INVALID_INPUT,
        status_code: int = 422,
    ):
        super().__init__(message, kind=kind, status_code=status_code, details=details)


class InvalidIdentifierError(InvalidInputError):
    """id 解析失败：在任何存储调用之前抛出"""

    def __init__(self, raw: object):
        super().__init__(
            message=f"Invalid todo id: {raw!r}",
            details={"id": raw},
            kind=TodoErrorKind.INVALID_IDENTIFIER,
            status_code=400,
        )


class StorageUnavailableError(TodoServiceError):
    def __init__(self, operation: str, error: str):
        super().__init__(
            message=f"Storage unavailable during {operation}",
            kind=TodoErrorKind.STORAGE_UNAVAILABLE,
            status_code=503,
            details={"operation": operation, "error": error},
        )


class UnsupportedOperationError(TodoServiceError):
    def __init__(self, method: str, path: str, allowed: list[str]):
        super().__init__(
            message=f"Method {method} not supported on {path}",
            kind=TodoErrorKind.UNSUPPORTED_OPERATION,
            status_code=405,
            details={"method": method, "allowed": allowed},
        )
        self.allowed = allowed


# ── 异常处理器 ──

async def todo_service_exception_handler(request: Request, exc: TodoServiceError) -> JSONResponse:
    ERROR_TOTAL.labels(error_type=exc.kind.value).inc()
    log.warning(
        "请求失败",
        code=exc.kind.value,
        path=request.url.path,
        method=request.method,
        detail=exc.message,
    )
    headers = None
    if isinstance(exc, UnsupportedOperationError):
        headers = {"Allow": ", ".join(exc.allowed)}
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """pydantic 校验失败统一映射为 INVALID_INPUT"""
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]
    return await todo_service_exception_handler(
        request, InvalidInputError("Request validation failed", details={"errors": errors})
    )


def _allowed_methods(request: Request) -> list[str]:
    """同一路径上所有路由的方法并集（Starlette 自带的 Allow 只含第一个部分匹配的路由）"""
    methods: set[str] = set()
    for route in request.app.router.routes:
        match, _ = route.matches(request.scope)
        if match != Match.NONE:
            methods |= getattr(route, "methods", None) or set()
    return sorted(methods)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> Response:
    """路由匹配但方法不匹配时 Starlette 抛 405，统一转为 UNSUPPORTED_OPERATION"""
    if exc.status_code == 405:
        return await todo_service_exception_handler(
            request,
            UnsupportedOperationError(request.method, request.url.path, _allowed_methods(request)),
        )
    return await default_http_exception_handler(request, exc)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    ERROR_TOTAL.labels(error_type="unknown").inc()
    log.error("未处理异常", path=request.url.path, method=request.method, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={
            "detail": "An unexpected error occurred",
            "code": "INTERNAL_ERROR",
            "trace_id": get_trace_id(),
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TodoServiceError, todo_service_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
