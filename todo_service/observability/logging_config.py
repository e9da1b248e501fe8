"""
日志初始化

业务代码统一用 structlog.get_logger()；开发环境人读的控制台格式，
生产环境一行一个 JSON 对象。标准 logging（uvicorn、SQLAlchemy）同样输出到 stdout。
"""

import logging
import sys

import structlog


def _renderer(env: str) -> list:
    if env == "production":
        return [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(ensure_ascii=False),
        ]
    return [structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())]


def setup_logging(env: str = "development", level: int = logging.INFO) -> None:
    """可重复调用：每次 create_app 都会重新配置"""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            *_renderer(env),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    # SQL 语句回显由 DB_ECHO 控制，这里不重复放大
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
