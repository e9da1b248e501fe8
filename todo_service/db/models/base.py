"""
SQLAlchemy 声明基类：所有模型继承此 Base
PostgreSQL 下通过连接参数 search_path 做 schema 隔离，模型本身不绑定 schema
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """声明基类"""

    __abstract__ = True
