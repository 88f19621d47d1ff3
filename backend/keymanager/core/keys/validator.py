"""
密钥校验管道

格式 -> 查找 -> 吊销/删除 -> 过期 -> 成功，每一阶段失败都对应唯一原因码。
预期失败一律返回结构化结果；基础设施异常统一映射为 VALIDATION_ERROR（失败即拒绝）。
每次校验恰好产生一条审计事件。
"""
from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Optional

from .audit import (
    ACTION_VALIDATE,
    OUTCOME_FAILURE,
    OUTCOME_SUCCESS,
    UNKNOWN_SUBJECT,
    AuditEmitter,
    AuditEvent,
)
from .codec import KeyCodec
from .hashing import KeyHasher
from .models import Credential, utcnow
from .status import KeyStatus, StatusResolver
from .store import CredentialStore, bounded

logger = logging.getLogger(__name__)


class ReasonCode(str, Enum):
    """校验失败原因码"""
    INVALID_FORMAT = "INVALID_FORMAT"
    KEY_NOT_FOUND = "KEY_NOT_FOUND"
    KEY_INACTIVE = "KEY_INACTIVE"
    KEY_EXPIRED = "KEY_EXPIRED"
    VALIDATION_ERROR = "VALIDATION_ERROR"


STATUS_CODES: Dict[Optional[ReasonCode], int] = {
    None: 200,
    ReasonCode.INVALID_FORMAT: 400,
    ReasonCode.KEY_NOT_FOUND: 404,
    ReasonCode.KEY_INACTIVE: 403,
    ReasonCode.KEY_EXPIRED: 401,
    ReasonCode.VALIDATION_ERROR: 500,
}


@dataclass
class KeyInfo:
    """校验成功时返回的密钥信息"""

    id: str
    owner_id: str
    expires_at: Optional[datetime]
    status: KeyStatus


@dataclass
class ValidationResult:
    """校验结果"""

    is_valid: bool
    message: str
    status_code: int
    timestamp: str
    reason: Optional[ReasonCode] = None
    key_info: Optional[KeyInfo] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "is_valid": self.is_valid,
            "message": self.message,
            "status_code": self.status_code,
            "timestamp": self.timestamp,
        }
        if self.reason is not None:
            data["reason"] = self.reason.value
        if self.key_info is not None:
            data["key_info"] = {
                "id": self.key_info.id,
                "owner_id": self.key_info.owner_id,
                "expires_at": self.key_info.expires_at.isoformat() if self.key_info.expires_at else None,
                "status": self.key_info.status.value,
            }
        return data


class KeyValidator:
    """认证传入的原始密钥"""

    def __init__(
        self,
        store: CredentialStore,
        codec: KeyCodec,
        hasher: KeyHasher,
        audit: AuditEmitter,
        *,
        store_timeout: Optional[float] = 5.0,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.codec = codec
        self.hasher = hasher
        self.audit = audit
        self.store_timeout = store_timeout
        self.clock = clock

    async def validate(
        self,
        presented_key: Optional[str],
        owner_id_hint: Optional[str] = None,
        *,
        correlation_id: Optional[str] = None,
    ) -> ValidationResult:
        """
        校验密钥

        owner_id_hint 仅用于审计上下文，不参与匹配：只有密钥本身的精确匹配才能通过认证。
        """
        started = time.perf_counter()
        correlation_id = correlation_id or uuid.uuid4().hex
        audit_context = {
            "owner_hint": owner_id_hint,
            "key_mask": self.codec.mask(presented_key),
            "correlation_id": correlation_id,
        }

        if not isinstance(presented_key, str) or not presented_key.strip():
            return await self._fail(
                ReasonCode.INVALID_FORMAT, "API key cannot be empty", None, audit_context, started
            )

        try:
            record = None
            if self.codec.looks_well_formed(presented_key):
                record = await bounded(
                    self.store.find_by_comparable_value(
                        self.hasher.comparable(presented_key), correlation_id=correlation_id
                    ),
                    self.store_timeout,
                )

            if record is None:
                return await self._fail(
                    ReasonCode.KEY_NOT_FOUND, "API key not found", None, audit_context, started
                )

            now = self.clock()
            status = StatusResolver.resolve(record, now)

            if status in (KeyStatus.DELETED, KeyStatus.REVOKED):
                # 对外不区分删除与吊销，审计中保留具体状态
                return await self._fail(
                    ReasonCode.KEY_INACTIVE,
                    "API key is not active",
                    record,
                    {**audit_context, "status": status.value},
                    started,
                )

            if status is KeyStatus.EXPIRED:
                return await self._fail(
                    ReasonCode.KEY_EXPIRED,
                    f"API key expired on {record.expiry_at.isoformat()}",
                    record,
                    {**audit_context, "expires_at": record.expiry_at.isoformat()},
                    started,
                )

            return await self._succeed(record, status, audit_context, started)

        except Exception:
            logger.exception(
                "Key validation error (key=%s, owner_hint=%s, correlation_id=%s)",
                audit_context["key_mask"],
                owner_id_hint,
                correlation_id,
            )
            return await self._fail(
                ReasonCode.VALIDATION_ERROR, "Internal validation error", None, audit_context, started
            )

    async def _succeed(
        self,
        record: Credential,
        status: KeyStatus,
        audit_context: Dict[str, Any],
        started: float,
    ) -> ValidationResult:
        await self._audit(str(record.id), OUTCOME_SUCCESS, None, audit_context, started)
        return ValidationResult(
            is_valid=True,
            message="API key validation successful",
            status_code=STATUS_CODES[None],
            timestamp=self.clock().isoformat(),
            key_info=KeyInfo(
                id=str(record.id),
                owner_id=record.owner_id,
                expires_at=record.expiry_at,
                status=status,
            ),
        )

    async def _fail(
        self,
        reason: ReasonCode,
        message: str,
        record: Optional[Credential],
        audit_context: Dict[str, Any],
        started: float,
    ) -> ValidationResult:
        subject = str(record.id) if record is not None else UNKNOWN_SUBJECT
        await self._audit(subject, OUTCOME_FAILURE, reason, audit_context, started)
        return ValidationResult(
            is_valid=False,
            message=message,
            status_code=STATUS_CODES[reason],
            timestamp=self.clock().isoformat(),
            reason=reason,
        )

    async def _audit(
        self,
        subject_id: str,
        outcome: str,
        reason: Optional[ReasonCode],
        audit_context: Dict[str, Any],
        started: float,
    ) -> None:
        metadata = dict(audit_context)
        metadata["duration_ms"] = round((time.perf_counter() - started) * 1000, 3)
        await self.audit.emit(
            AuditEvent(
                subject_id=subject_id,
                action=ACTION_VALIDATE,
                outcome=outcome,
                reason_code=reason.value if reason else None,
                metadata=metadata,
                timestamp=self.clock(),
            )
        )


__all__ = ["KeyValidator", "ValidationResult", "KeyInfo", "ReasonCode", "STATUS_CODES"]
