"""
FastAPI 应用主入口
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from prometheus_client import make_asgi_app

from todo_service.api.health import router as health_router
from todo_service.api.todos import router as todos_router
from todo_service.config import Settings, get_settings
from todo_service.db.engine import Database
from todo_service.errors import register_exception_handlers
from todo_service.observability.logging_config import setup_logging
from todo_service.observability.metrics_middleware import MetricsMiddleware
from todo_service.observability.request_logger import RequestLoggerMiddleware

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(application: FastAPI):
    """应用生命周期：启动时打开数据库（不可用则拒绝启动），关闭时释放连接池"""
    settings: Settings = application.state.settings
    log.info("应用启动", env=settings.ENV, app=settings.APP_NAME)

    database = Database(settings)
    try:
        await database.connect()
    except Exception:
        await database.dispose()
        raise
    application.state.database = database

    yield

    await database.dispose()
    log.info("应用关闭，资源已释放")


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(env=settings.ENV)

    application = FastAPI(
        title=settings.APP_NAME,
        version="0.1.0",
        lifespan=lifespan,
    )
    application.state.settings = settings

    # ── 中间件（执行顺序：从下往上注册，从上往下执行） ──
    application.add_middleware(MetricsMiddleware)
    application.add_middleware(RequestLoggerMiddleware)

    register_exception_handlers(application)

    # ── Prometheus 指标端点 ──
    application.mount("/metrics", make_asgi_app())

    # ── 路由注册 ──
    application.include_router(health_router)
    application.include_router(todos_router)

    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("todo_service.main:app", host="0.0.0.0", port=get_settings().APP_PORT)
