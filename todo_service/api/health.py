"""
健康检查接口：探活 + 数据库连接状态
"""

import structlog
from fastapi import APIRouter, Depends

from todo_service.db.engine import Database, get_database

router = APIRouter(tags=["健康检查"])
log = structlog.get_logger()


@router.get("/health")
async def health_check(database: Database = Depends(get_database)):
    """健康检查：校验数据库连接，失败时返回 degraded 而不是 5xx"""
    status = {"status": "ok", "database": "ok"}

    try:
        await database.ping()
    except Exception as e:
        status["database"] = f"error: {e}"
        status["status"] = "degraded"
        log.error("数据库健康检查失败", error=str(e))

    return status
