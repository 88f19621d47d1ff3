"""
基于 SQLAlchemy 的凭证存储实现

每次调用使用独立会话，不跨调用持有事务；唯一性依赖 key_hash 唯一索引。
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from keymanager.core.keys.exceptions import RecordNotFound, StoreError, UniquenessViolation
from keymanager.core.keys.models import Credential, ensure_utc, utcnow
from keymanager.core.keys.store import CredentialStore, KeyListFilter, KeySort
from keymanager.models.api_key import KEY_HASH_INDEX, ApiKey
from keymanager.repositories.api_key import ApiKeyRepository

logger = logging.getLogger(__name__)

# 驱动层连接错误（如 asyncpg 的 ConnectionRefusedError）不经过 SQLAlchemy 包装
STORE_FAILURES = (SQLAlchemyError, OSError)


def is_key_hash_conflict(exc: IntegrityError) -> bool:
    """判断完整性错误是否来自 key_hash 唯一索引"""
    orig = exc.orig
    for err in (orig, getattr(orig, "__cause__", None)):
        constraint = getattr(err, "constraint_name", None)
        if constraint:
            return constraint == KEY_HASH_INDEX
    return KEY_HASH_INDEX in str(orig)


def to_credential(row: ApiKey) -> Credential:
    """ORM模型 -> 领域记录"""
    return Credential(
        id=row.id,
        owner_id=row.owner_id,
        key_hash=row.key_hash,
        key_hint=row.key_hint,
        name=row.name,
        description=row.description,
        is_active=bool(row.is_active),
        expiry_at=ensure_utc(row.expiry_at),
        created_at=ensure_utc(row.created_at),
        updated_at=ensure_utc(row.updated_at),
        deleted_at=ensure_utc(row.deleted_at),
        created_by=row.created_by,
        updated_by=row.updated_by,
        deleted_by=row.deleted_by,
    )


class SqlAlchemyCredentialStore(CredentialStore):
    """CredentialStore 的关系型实现"""

    def __init__(self, session_factory: Callable[[], AsyncSession]):
        self._session_factory = session_factory

    async def insert_unique(self, record: Credential, *, correlation_id: Optional[str] = None) -> UUID:
        async with self._session_factory() as session:
            repo = ApiKeyRepository(session)
            try:
                row = await repo.create(
                    id=record.id,
                    owner_id=record.owner_id,
                    key_hash=record.key_hash,
                    key_hint=record.key_hint,
                    name=record.name,
                    description=record.description,
                    is_active=record.is_active,
                    expiry_at=record.expiry_at,
                    created_at=record.created_at,
                    updated_at=record.updated_at,
                    created_by=record.created_by,
                    updated_by=record.updated_by,
                )
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                if is_key_hash_conflict(exc):
                    raise UniquenessViolation("api key comparable value already exists") from exc
                logger.error("insert_unique integrity error (correlation_id=%s): %s", correlation_id, exc)
                raise StoreError("Failed to insert api key") from exc
            except STORE_FAILURES as exc:
                await session.rollback()
                logger.error("insert_unique failed (correlation_id=%s): %s", correlation_id, exc)
                raise StoreError("Failed to insert api key") from exc
            return row.id

    async def find_by_comparable_value(
        self, value: str, *, correlation_id: Optional[str] = None
    ) -> Optional[Credential]:
        async with self._session_factory() as session:
            try:
                row = await ApiKeyRepository(session).get_by_key_hash(value)
            except STORE_FAILURES as exc:
                raise StoreError("Failed to look up api key") from exc
            return to_credential(row) if row else None

    async def get(
        self, key_id: UUID, *, include_deleted: bool = False, correlation_id: Optional[str] = None
    ) -> Optional[Credential]:
        async with self._session_factory() as session:
            repo = ApiKeyRepository(session)
            try:
                row = await (repo.get(key_id) if include_deleted else repo.get_live(key_id))
            except STORE_FAILURES as exc:
                raise StoreError("Failed to load api key") from exc
            return to_credential(row) if row else None

    async def update_active_flag(
        self,
        key_id: UUID,
        is_active: bool,
        *,
        actor: Optional[str] = None,
        correlation_id: Optional[str] = None,
    ) -> Credential:
        return await self._mutate(
            key_id,
            correlation_id,
            is_active=is_active,
            updated_by=actor,
        )

    async def soft_delete(
        self, key_id: UUID, *, actor: Optional[str] = None, correlation_id: Optional[str] = None
    ) -> Credential:
        now = utcnow()
        return await self._mutate(
            key_id,
            correlation_id,
            deleted_at=now,
            deleted_by=actor,
            updated_by=actor,
        )

    async def _mutate(self, key_id: UUID, correlation_id: Optional[str], **values) -> Credential:
        async with self._session_factory() as session:
            repo = ApiKeyRepository(session)
            try:
                row = await repo.get_live(key_id)
                if row is None:
                    raise RecordNotFound(f"API key {key_id} not found")
                for field, value in values.items():
                    setattr(row, field, value)
                row.updated_at = utcnow()
                await session.commit()
                await session.refresh(row)
            except STORE_FAILURES as exc:
                await session.rollback()
                logger.error("Updating api key %s failed (correlation_id=%s): %s", key_id, correlation_id, exc)
                raise StoreError("Failed to update api key") from exc
            return to_credential(row)

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
        async with self._session_factory() as session:
            try:
                rows, total = await ApiKeyRepository(session).list_filtered(
                    now=now or utcnow(),
                    owner_id=key_filter.owner_id,
                    status=key_filter.status,
                    search=key_filter.search,
                    include_deleted=key_filter.effective_include_deleted,
                    skip=(page - 1) * limit,
                    limit=limit,
                    sort=sort,
                )
            except STORE_FAILURES as exc:
                raise StoreError("Failed to list api keys") from exc
            return [to_credential(row) for row in rows], total


__all__ = ["SqlAlchemyCredentialStore", "to_credential", "is_key_hash_conflict"]
