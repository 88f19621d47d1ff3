"""
密钥生成器

每次尝试都重新抽取熵并插入存储；存储返回唯一性冲突时视为正常的重试信号。
重试次数是硬上限，耗尽后报告 KeyCollisionExhausted，不做任何降级。
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Optional
from uuid import UUID

from .audit import (
    ACTION_GENERATE,
    OUTCOME_FAILURE,
    OUTCOME_SUCCESS,
    UNKNOWN_SUBJECT,
    AuditEmitter,
    AuditEvent,
)
from .codec import KeyCodec
from .exceptions import (
    InvalidKeyRequest,
    KeyCollisionExhausted,
    StoreError,
    UniquenessViolation,
)
from .hashing import KeyHasher
from .models import Credential, ensure_utc, utcnow
from .status import KeyStatus, StatusResolver
from .store import CredentialStore, bounded

logger = logging.getLogger(__name__)

REASON_COLLISION_EXHAUSTED = "KEY_COLLISION_EXHAUSTED"
REASON_STORE_ERROR = "STORE_ERROR"


class _DefaultExpiry:
    def __repr__(self) -> str:
        return "DEFAULT_EXPIRY"


# 未指定过期时间时使用配置的默认有效期；显式传入 None 表示永不过期
DEFAULT_EXPIRY = _DefaultExpiry()


@dataclass
class KeyGenerationResult:
    """生成结果，raw_key 只在此处返回一次"""

    key_id: UUID
    raw_key: str = field(repr=False)
    owner_id: str
    name: str
    created_at: datetime
    expires_at: Optional[datetime]
    status: KeyStatus
    key_hint: Optional[str] = None


class KeyGenerator:
    """为服务账号签发新凭证"""

    def __init__(
        self,
        store: CredentialStore,
        codec: KeyCodec,
        hasher: KeyHasher,
        audit: AuditEmitter,
        *,
        max_retries: int = 5,
        default_expiry: timedelta = timedelta(days=365),
        store_timeout: Optional[float] = 5.0,
        clock: Callable[[], datetime] = utcnow,
    ):
        if max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        self.store = store
        self.codec = codec
        self.hasher = hasher
        self.audit = audit
        self.max_retries = max_retries
        self.default_expiry = default_expiry
        self.store_timeout = store_timeout
        self.clock = clock

    def _resolve_expiry(self, expires_at, created_at: datetime) -> Optional[datetime]:
        if expires_at is DEFAULT_EXPIRY:
            return created_at + self.default_expiry
        if expires_at is None:
            return None
        expires_at = ensure_utc(expires_at)
        if expires_at <= created_at:
            raise InvalidKeyRequest("expires_at must be later than the creation time")
        return expires_at

    async def generate(
        self,
        owner_id: str,
        name: str,
        description: Optional[str] = None,
        is_active: bool = True,
        expires_at=DEFAULT_EXPIRY,
        *,
        created_by: Optional[str] = None,
        correlation_id: Optional[str] = None,
    ) -> KeyGenerationResult:
        """
        生成并持久化新密钥

        Args:
            owner_id: 服务账号标识（必填）
            name: 密钥名称（必填）
            description: 描述
            is_active: 是否激活，默认True
            expires_at: 过期时间；不传使用默认有效期，None表示永不过期
            created_by: 操作者
            correlation_id: 追踪ID

        Raises:
            InvalidKeyRequest: 参数不合法
            KeyCollisionExhausted: 重试耗尽
            StoreError: 存储故障
        """
        correlation_id = correlation_id or uuid.uuid4().hex
        owner_id = (owner_id or "").strip()
        name = (name or "").strip()
        if not owner_id:
            raise InvalidKeyRequest("owner_id is required")
        if not name:
            raise InvalidKeyRequest("name is required")

        created_at = self.clock()
        expiry_at = self._resolve_expiry(expires_at, created_at)

        for attempt in range(1, self.max_retries + 1):
            raw_key = self.codec.generate()
            record = Credential(
                owner_id=owner_id,
                key_hash=self.hasher.comparable(raw_key),
                key_hint=self.codec.mask(raw_key),
                name=name,
                description=description,
                is_active=is_active,
                expiry_at=expiry_at,
                created_at=created_at,
                updated_at=created_at,
                created_by=created_by,
                updated_by=created_by,
            )

            try:
                key_id = await bounded(
                    self.store.insert_unique(record, correlation_id=correlation_id),
                    self.store_timeout,
                )
            except UniquenessViolation:
                logger.warning(
                    "API key collision on attempt %d/%d (owner=%s, correlation_id=%s)",
                    attempt,
                    self.max_retries,
                    owner_id,
                    correlation_id,
                )
                continue
            except StoreError as exc:
                logger.error(
                    "Credential store failed during key generation (owner=%s, correlation_id=%s): %s",
                    owner_id,
                    correlation_id,
                    exc,
                )
                await self._audit_failure(owner_id, REASON_STORE_ERROR, attempt, correlation_id)
                raise
            except Exception as exc:
                # 存储实现未包装的异常统一按存储故障上报
                logger.exception(
                    "Unexpected credential store error during key generation (owner=%s, correlation_id=%s)",
                    owner_id,
                    correlation_id,
                )
                await self._audit_failure(owner_id, REASON_STORE_ERROR, attempt, correlation_id)
                raise StoreError("Credential store failed during key generation") from exc

            status = StatusResolver.resolve(record, created_at)
            await self.audit.emit(
                AuditEvent(
                    subject_id=str(key_id),
                    action=ACTION_GENERATE,
                    outcome=OUTCOME_SUCCESS,
                    metadata={
                        "owner_id": owner_id,
                        "key_hint": record.key_hint,
                        "attempts": attempt,
                        "expires_at": expiry_at.isoformat() if expiry_at else None,
                        "correlation_id": correlation_id,
                    },
                )
            )
            logger.info("API key %s generated for owner %s", key_id, owner_id)

            return KeyGenerationResult(
                key_id=key_id,
                raw_key=raw_key,
                owner_id=owner_id,
                name=name,
                created_at=created_at,
                expires_at=expiry_at,
                status=status,
                key_hint=record.key_hint,
            )

        logger.error(
            "API key generation exhausted %d attempts (owner=%s, correlation_id=%s)",
            self.max_retries,
            owner_id,
            correlation_id,
        )
        await self._audit_failure(
            owner_id, REASON_COLLISION_EXHAUSTED, self.max_retries, correlation_id
        )
        raise KeyCollisionExhausted(self.max_retries)

    async def _audit_failure(
        self, owner_id: str, reason: str, attempts: int, correlation_id: str
    ) -> None:
        await self.audit.emit(
            AuditEvent(
                subject_id=UNKNOWN_SUBJECT,
                action=ACTION_GENERATE,
                outcome=OUTCOME_FAILURE,
                reason_code=reason,
                metadata={
                    "owner_id": owner_id,
                    "attempts": attempts,
                    "correlation_id": correlation_id,
                },
            )
        )


__all__ = ["KeyGenerator", "KeyGenerationResult", "DEFAULT_EXPIRY"]
