"""
数据库审计输出
"""
from __future__ import annotations

from typing import Callable

from sqlalchemy.ext.asyncio import AsyncSession

from keymanager.core.keys.audit import AuditEvent, AuditSink
from keymanager.repositories.key_audit_log import KeyAuditLogRepository


class DatabaseAuditSink(AuditSink):
    """将审计事件写入 key_audit_logs 表"""

    def __init__(self, session_factory: Callable[[], AsyncSession]):
        self._session_factory = session_factory

    async def record(self, event: AuditEvent) -> None:
        async with self._session_factory() as session:
            repo = KeyAuditLogRepository(session)
            await repo.create(
                subject_id=event.subject_id,
                action=event.action,
                outcome=event.outcome,
                reason_code=event.reason_code,
                extra=event.metadata,
                timestamp=event.timestamp,
            )
            await session.commit()


__all__ = ["DatabaseAuditSink"]
