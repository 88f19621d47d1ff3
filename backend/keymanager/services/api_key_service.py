"""API密钥服务"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Callable, List, Optional, Tuple
from uuid import UUID

from keymanager.config.settings import Settings, get_settings
from keymanager.core.keys.audit import (
    ACTION_DELETE,
    ACTION_REVOKE,
    OUTCOME_FAILURE,
    OUTCOME_SUCCESS,
    AuditEmitter,
    AuditEvent,
    AuditSink,
    LoggingAuditSink,
)
from keymanager.core.keys.codec import KeyCodec
from keymanager.core.keys.exceptions import RecordNotFound
from keymanager.core.keys.generator import DEFAULT_EXPIRY, KeyGenerationResult, KeyGenerator
from keymanager.core.keys.hashing import KeyHasher
from keymanager.core.keys.models import Credential, utcnow
from keymanager.core.keys.status import KeyStatus, StatusResolver
from keymanager.core.keys.store import CredentialStore, KeyListFilter, KeySort, bounded
from keymanager.core.keys.validator import KeyValidator, ValidationResult

logger = logging.getLogger(__name__)


class ApiKeyService:
    """密钥管理业务逻辑：签发、校验、吊销、软删除、查询"""

    def __init__(
        self,
        store: CredentialStore,
        audit_sink: AuditSink,
        settings: Settings,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.settings = settings
        self.clock = clock
        self.store_timeout = settings.STORE_TIMEOUT_SECONDS
        self.codec = KeyCodec(settings.KEY_PREFIX, settings.KEY_ENTROPY_BYTES)
        self.hasher = KeyHasher(settings.KEY_HASH_SECRET)
        self.audit = AuditEmitter(audit_sink, timeout=settings.AUDIT_TIMEOUT_SECONDS)
        self.generator = KeyGenerator(
            store,
            self.codec,
            self.hasher,
            self.audit,
            max_retries=settings.MAX_GENERATION_RETRIES,
            default_expiry=settings.default_key_expiry,
            store_timeout=self.store_timeout,
            clock=clock,
        )
        self.validator = KeyValidator(
            store,
            self.codec,
            self.hasher,
            self.audit,
            store_timeout=self.store_timeout,
            clock=clock,
        )

    async def generate_key(
        self,
        owner_id: str,
        name: str,
        description: Optional[str] = None,
        is_active: bool = True,
        expires_at=DEFAULT_EXPIRY,
        created_by: Optional[str] = None,
    ) -> KeyGenerationResult:
        return await self.generator.generate(
            owner_id,
            name,
            description=description,
            is_active=is_active,
            expires_at=expires_at,
            created_by=created_by,
        )

    async def validate_key(
        self, presented_key: Optional[str], owner_id_hint: Optional[str] = None
    ) -> ValidationResult:
        return await self.validator.validate(presented_key, owner_id_hint)

    async def get_key(self, key_id: UUID, include_deleted: bool = False) -> Credential:
        record = await bounded(
            self.store.get(key_id, include_deleted=include_deleted), self.store_timeout
        )
        if record is None:
            raise RecordNotFound(f"API key {key_id} not found")
        return record

    async def revoke_key(self, key_id: UUID, actor: Optional[str] = None) -> Credential:
        """吊销密钥（is_active=False），下一次校验立即返回 KEY_INACTIVE"""
        correlation_id = uuid.uuid4().hex
        try:
            record = await bounded(
                self.store.update_active_flag(
                    key_id, False, actor=actor, correlation_id=correlation_id
                ),
                self.store_timeout,
            )
        except RecordNotFound:
            await self._audit_admin(str(key_id), ACTION_REVOKE, OUTCOME_FAILURE, actor, correlation_id)
            raise
        await self._audit_admin(str(key_id), ACTION_REVOKE, OUTCOME_SUCCESS, actor, correlation_id)
        logger.info("API key %s revoked", key_id)
        return record

    async def delete_key(self, key_id: UUID, actor: Optional[str] = None) -> Credential:
        """软删除密钥，记录保留用于审计"""
        correlation_id = uuid.uuid4().hex
        try:
            record = await bounded(
                self.store.soft_delete(key_id, actor=actor, correlation_id=correlation_id),
                self.store_timeout,
            )
        except RecordNotFound:
            await self._audit_admin(str(key_id), ACTION_DELETE, OUTCOME_FAILURE, actor, correlation_id)
            raise
        await self._audit_admin(str(key_id), ACTION_DELETE, OUTCOME_SUCCESS, actor, correlation_id)
        logger.info("API key %s deleted", key_id)
        return record

    async def list_keys(
        self,
        key_filter: Optional[KeyListFilter] = None,
        page: int = 1,
        limit: Optional[int] = None,
        sort: Optional[KeySort] = None,
    ) -> Tuple[List[Credential], int]:
        """分页查询，limit 受 MAX_PAGE_SIZE 限制"""
        page = max(page, 1)
        limit = limit or self.settings.DEFAULT_PAGE_SIZE
        limit = max(1, min(limit, self.settings.MAX_PAGE_SIZE))
        return await bounded(
            self.store.list(
                key_filter or KeyListFilter(),
                page,
                limit,
                sort or KeySort(),
                now=self.clock(),
            ),
            self.store_timeout,
        )

    def status_of(self, record: Credential) -> KeyStatus:
        return StatusResolver.resolve(record, self.clock())

    async def _audit_admin(
        self,
        subject_id: str,
        action: str,
        outcome: str,
        actor: Optional[str],
        correlation_id: str,
    ) -> None:
        await self.audit.emit(
            AuditEvent(
                subject_id=subject_id,
                action=action,
                outcome=outcome,
                reason_code=None if outcome == OUTCOME_SUCCESS else "KEY_NOT_FOUND",
                metadata={"actor": actor, "correlation_id": correlation_id},
                timestamp=self.clock(),
            )
        )


def build_api_key_service(settings: Optional[Settings] = None) -> ApiKeyService:
    """按配置装配数据库存储与审计输出"""
    from keymanager.db.database import AsyncSessionLocal
    from keymanager.services.audit_sink import DatabaseAuditSink
    from keymanager.services.credential_store import SqlAlchemyCredentialStore

    settings = settings or get_settings()
    if settings.AUDIT_SINK == "database":
        sink: AuditSink = DatabaseAuditSink(AsyncSessionLocal)
    else:
        sink = LoggingAuditSink()
    return ApiKeyService(SqlAlchemyCredentialStore(AsyncSessionLocal), sink, settings)


_api_key_service: Optional[ApiKeyService] = None


def get_api_key_service() -> ApiKeyService:
    global _api_key_service
    if _api_key_service is None:
        _api_key_service = build_api_key_service()
    return _api_key_service
