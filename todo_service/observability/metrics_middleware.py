"""
请求级指标采集中间件

采集每个 HTTP 请求的方法、路由模板、状态码、耗时。
"""

import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from todo_service.observability.metrics import REQUEST_DURATION, REQUEST_TOTAL

SKIP_PATHS = ("/metrics", "/health")


class MetricsMiddleware(BaseHTTPMiddleware):
    """HTTP 请求指标采集"""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path.startswith(SKIP_PATHS):
            return await call_next(request)

        start = time.monotonic()
        response = await call_next(request)
        duration_ms = (time.monotonic() - start) * 1000

        # 用路由模板做 label（/todo/{todo_id}），避免 id 打爆基数
        route = request.scope.get("route")
        endpoint = getattr(route, "path", request.url.path)
        method = request.method

        REQUEST_TOTAL.labels(method=method, endpoint=endpoint, status_code=str(response.status_code)).inc()
        REQUEST_DURATION.labels(method=method, endpoint=endpoint).observe(duration_ms)

        return response
