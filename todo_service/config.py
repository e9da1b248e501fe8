"""
全局配置模块：通过 pydantic-settings 读取 .env 环境变量
"""

from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import make_url


class Settings(BaseSettings):
    """应用全局配置，从 .env 文件加载"""

    model_config = SettingsConfigDict(
        env_file=Path(__file__).parent / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── 数据库 ──
    DATABASE_URL: str  # postgresql+asyncpg://... 或 sqlite+aiosqlite://（本地/测试）
    DB_SCHEMA: str = "public"  # 仅 PostgreSQL 生效（search_path）

    DB_ECHO: bool = False  # 打印 SQL 日志，调试时可在 .env 设为 true
    DB_CREATE_TABLES: bool = True  # 启动时 create_all，不负责迁移

    # ── 连接池（SQLite 忽略） ──
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800

    # ── Todo 路由 ──
    TODOS_LOCATION: str = "/todos"  # 写操作成功后的重定向目标

    # ── 应用 ──
    ENV: str = "development"  # development | production
    APP_NAME: str = "todo-service"
    APP_PORT: int = 8000

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    @property
    def is_sqlite_memory(self) -> bool:
        """无文件路径或 :memory: 的 SQLite，只能单连接共享"""
        if not self.is_sqlite:
            return False
        url = make_url(self.DATABASE_URL)
        return url.database in (None, "", ":memory:") or url.query.get("mode") == "memory"

    @model_validator(mode="after")
    def _check_env(self) -> "Settings":
        """ENV 只允许 development / production"""
        if self.ENV not in ("development", "production"):
            raise ValueError(f"ENV 取值非法: {self.ENV!r}，只允许 development / production")
        return self


@lru_cache
def get_settings() -> Settings:
    """单例获取配置（带缓存）"""
    return Settings()
