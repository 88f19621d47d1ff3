"""
凭证存储契约

持久化层实现 CredentialStore；引擎只依赖此抽象。
唯一性由存储层约束保证，引擎不做进程内加锁。
"""
from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Awaitable, List, Optional, Tuple, TypeVar
from uuid import UUID

from .exceptions import StoreTimeoutError
from .models import Credential
from .status import KeyStatus

T = TypeVar("T")


class SortField(str, Enum):
    """列表排序字段"""
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"
    EXPIRY_AT = "expiry_at"
    NAME = "name"


class SortOrder(str, Enum):
    """排序方向"""
    ASC = "ASC"
    DESC = "DESC"


@dataclass
class KeyListFilter:
    """列表过滤条件，status 与 StatusResolver 使用同一推导规则"""

    owner_id: Optional[str] = None
    status: Optional[KeyStatus] = None
    search: Optional[str] = None
    include_deleted: bool = False

    @property
    def effective_include_deleted(self) -> bool:
        return self.include_deleted or self.status is KeyStatus.DELETED


@dataclass
class KeySort:
    field: SortField = SortField.CREATED_AT
    order: SortOrder = SortOrder.DESC


class CredentialStore(ABC):
    """
    凭证存储抽象基类

    所有方法都接受不透明的 correlation_id 用于链路追踪。
    """

    @abstractmethod
    async def insert_unique(self, record: Credential, *, correlation_id: Optional[str] = None) -> UUID:
        """
        插入新记录

        Raises:
            UniquenessViolation: 可比较值已存在
            StoreError: 存储故障
        """
        pass

    @abstractmethod
    async def find_by_comparable_value(
        self, value: str, *, correlation_id: Optional[str] = None
    ) -> Optional[Credential]:
        """按可比较值精确查找（包含已删除记录）"""
        pass

    @abstractmethod
    async def get(
        self, key_id: UUID, *, include_deleted: bool = False, correlation_id: Optional[str] = None
    ) -> Optional[Credential]:
        """按ID查找"""
        pass

    @abstractmethod
    async def update_active_flag(
        self,
        key_id: UUID,
        is_active: bool,
        *,
        actor: Optional[str] = None,
        correlation_id: Optional[str] = None,
    ) -> Credential:
        """
        更新 is_active 标记

        Raises:
            RecordNotFound: 记录不存在或已删除
        """
        pass

    @abstractmethod
    async def soft_delete(
        self, key_id: UUID, *, actor: Optional[str] = None, correlation_id: Optional[str] = None
    ) -> Credential:
        """
        软删除记录

        Raises:
            RecordNotFound: 记录不存在或已删除
        """
        pass

    @abstractmethod
    async def list(
        self,
        key_filter: KeyListFilter,
        page: int,
        limit: int,
        sort: KeySort,
        *,
        now: Optional[datetime] = None,
        correlation_id: Optional[str] = None,
    ) -> Tuple[List[Credential], int]:
        """
        分页查询，返回 (记录列表, 总数)

        now 用于按派生状态过滤，调用方应传入与校验相同的时钟。
        """
        pass


async def bounded(awaitable: Awaitable[T], timeout: Optional[float]) -> T:
    """为存储调用加超时，超时转换为 StoreTimeoutError"""
    if timeout is None:
        return await awaitable
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError as exc:
        raise StoreTimeoutError(f"Credential store call timed out after {timeout}s") from exc


__all__ = [
    "CredentialStore",
    "KeyListFilter",
    "KeySort",
    "SortField",
    "SortOrder",
    "bounded",
]
