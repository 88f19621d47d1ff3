"""
审计事件

AuditSink 是外部协作方，引擎只通过 AuditEmitter 发送事件；
审计写入失败只记录日志，绝不影响校验/生成结果。
"""
from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from .models import utcnow

logger = logging.getLogger(__name__)

ACTION_GENERATE = "generate"
ACTION_VALIDATE = "validate"
ACTION_REVOKE = "revoke"
ACTION_DELETE = "delete"

OUTCOME_SUCCESS = "success"
OUTCOME_FAILURE = "failure"

UNKNOWN_SUBJECT = "unknown"


@dataclass
class AuditEvent:
    """结构化审计事件（不包含原始密钥）"""

    subject_id: str
    action: str
    outcome: str
    reason_code: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subject_id": self.subject_id,
            "action": self.action,
            "outcome": self.outcome,
            "reason_code": self.reason_code,
            "metadata": self.metadata,
            "timestamp": self.timestamp.isoformat(),
        }


class AuditSink(ABC):
    """审计接收端抽象基类"""

    @abstractmethod
    async def record(self, event: AuditEvent) -> None:
        """写入一条审计事件"""
        pass


class LoggingAuditSink(AuditSink):
    """写入 ``keymanager.audit`` 日志通道"""

    def __init__(self, audit_logger: Optional[logging.Logger] = None):
        self._logger = audit_logger or logging.getLogger("keymanager.audit")

    async def record(self, event: AuditEvent) -> None:
        self._logger.info(
            "Key audit: action=%s outcome=%s subject=%s reason=%s metadata=%s",
            event.action,
            event.outcome,
            event.subject_id,
            event.reason_code,
            event.metadata,
        )


class AuditEmitter:
    """带超时保护的审计发送器"""

    def __init__(self, sink: AuditSink, timeout: float = 2.0):
        self.sink = sink
        self.timeout = timeout

    async def emit(self, event: AuditEvent) -> bool:
        """
        发送审计事件

        Returns:
            bool: 是否写入成功；失败时仅记录运行日志
        """
        try:
            await asyncio.wait_for(self.sink.record(event), timeout=self.timeout)
            return True
        except asyncio.TimeoutError:
            logger.warning(
                "Audit sink timed out after %.2fs (action=%s, subject=%s)",
                self.timeout,
                event.action,
                event.subject_id,
            )
        except Exception:
            logger.exception(
                "Failed to write audit event (action=%s, subject=%s)",
                event.action,
                event.subject_id,
            )
        return False


__all__ = [
    "AuditEvent",
    "AuditSink",
    "LoggingAuditSink",
    "AuditEmitter",
    "ACTION_GENERATE",
    "ACTION_VALIDATE",
    "ACTION_REVOKE",
    "ACTION_DELETE",
    "OUTCOME_SUCCESS",
    "OUTCOME_FAILURE",
    "UNKNOWN_SUBJECT",
]
