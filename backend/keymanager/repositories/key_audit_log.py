"""密钥审计日志仓储"""
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from keymanager.models.key_audit_log import KeyAuditLog
from .base import BaseRepository


class KeyAuditLogRepository(BaseRepository[KeyAuditLog]):
    """密钥审计日志仓储"""

    def __init__(self, session: AsyncSession):
        super().__init__(KeyAuditLog, session)

    async def list_by_subject(self, subject_id: str, limit: int = 100) -> List[KeyAuditLog]:
        stmt = (
            select(self.model)
            .where(self.model.subject_id == subject_id)
            .order_by(self.model.timestamp.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


__all__ = ["KeyAuditLogRepository"]
