"""
数据库模块
"""
from .database import (
    async_engine,
    AsyncSessionLocal,
    get_db,
    init_db,
    close_db,
)

__all__ = [
    "async_engine",
    "AsyncSessionLocal",
    "get_db",
    "init_db",
    "close_db",
]
