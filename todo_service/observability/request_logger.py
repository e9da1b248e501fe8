"""
访问日志中间件

每个请求一对日志（收到 / 完成），响应头回写 X-Trace-ID 与 X-Duration-Ms。
未处理异常在这里就地转成 500 响应：Starlette 的兜底处理器位于所有中间件之外，
交给它的话 500 响应既没有这两个头，也没有完成日志。
"""

import time

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from todo_service.errors import unhandled_exception_handler
from todo_service.observability.context import bind_trace_id, new_trace_id

log = structlog.get_logger()


class RequestLoggerMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        trace_id = request.headers.get("X-Trace-ID") or new_trace_id()
        bind_trace_id(trace_id)

        started = time.monotonic()
        log.info("收到请求", method=request.method, path=request.url.path)

        try:
            response = await call_next(request)
        except Exception as exc:
            response = await unhandled_exception_handler(request, exc)

        elapsed_ms = int((time.monotonic() - started) * 1000)
        log.info(
            "请求完成",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=elapsed_ms,
        )

        response.headers["X-Trace-ID"] = trace_id
        response.headers["X-Duration-Ms"] = str(elapsed_ms)
        return response
