"""
配置加载
"""

import pytest
from pydantic import ValidationError

from todo_service.config import Settings


def test_settings_reject_unknown_env():
    with pytest.raises(ValidationError):
        Settings(DATABASE_URL="sqlite+aiosqlite://", ENV="staging")


def test_settings_detect_sqlite():
    assert Settings(DATABASE_URL="sqlite+aiosqlite://").is_sqlite
    assert not Settings(DATABASE_URL="postgresql+asyncpg://u:p@localhost/todo").is_sqlite


def test_settings_defaults():
    settings = Settings(DATABASE_URL="sqlite+aiosqlite://")
    assert settings.TODOS_LOCATION == "/todos"
    assert settings.DB_CREATE_TABLES is True


@pytest.mark.parametrize(
    "url, expected",
    [
        ("sqlite+aiosqlite://", True),
        ("sqlite+aiosqlite:///:memory:", True),
        ("sqlite+aiosqlite:///file:todo?mode=memory&cache=shared&uri=true", True),
        ("sqlite+aiosqlite:////var/lib/todo/todo.db", False),
        ("postgresql+asyncpg://u:p@localhost/todo", False),
    ],
)
def test_settings_detect_in_memory_sqlite(url, expected):
    assert Settings(DATABASE_URL=url).is_sqlite_memory is expected
