"""
Todo 模型：唯一的业务实体

id 由数据库自增分配，创建后不可变；
title / content 为自由文本，本层不做长度/格式约束；
done 只能通过更新接口修改，创建时固定为 False。
"""

from sqlalchemy import Boolean, Integer, Text, false
from sqlalchemy.orm import Mapped, mapped_column

from todo_service.db.models.base import Base


class Todo(Base):
    """Todo 表"""

    __tablename__ = "todos"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(Text, nullable=False, comment="标题")
    content: Mapped[str] = mapped_column(Text, nullable=False, comment="内容")
    done: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false(), comment="是否完成"
    )
