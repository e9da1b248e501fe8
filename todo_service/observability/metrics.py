"""
Prometheus 指标定义

所有指标统一在此文件定义，中间件和业务代码按需引用。
"""

from prometheus_client import Counter, Histogram

# ── 请求级指标 ──

REQUEST_TOTAL = Counter(
    "todo_request_total",
    "HTTP 请求总数",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "todo_request_duration_ms",
    "HTTP 请求耗时（毫秒）",
    ["method", "endpoint"],
    buckets=[5, 10, 25, 50, 100, 250, 500, 1000, 2500],
)

# ── 存储层指标 ──

TODO_OPERATION_TOTAL = Counter(
    "todo_operation_total",
    "Todo 存储操作总数",
    ["operation", "status"],  # operation: find_many/find_unique/create/update/delete; status: success/not_found/rejected/error
)

# ── 错误指标 ──

ERROR_TOTAL = Counter(
    "todo_error_total",
    "错误总数",
    ["error_type"],  # TodoErrorKind 取值 / unknown
)
