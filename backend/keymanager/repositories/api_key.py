"""API密钥仓储"""
from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import and_, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from keymanager.core.keys.status import KeyStatus
from keymanager.core.keys.store import KeySort, SortField, SortOrder
from keymanager.models.api_key import ApiKey
from .base import BaseRepository


def escape_like(value: str) -> str:
    """转义 LIKE 通配符，搜索词按字面匹配"""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class ApiKeyRepository(BaseRepository[ApiKey]):
    """API密钥仓储"""

    def __init__(self, session: AsyncSession):
        super().__init__(ApiKey, session)

    @staticmethod
    def status_condition(status: KeyStatus, now: datetime):
        """派生状态对应的SQL条件，与 StatusResolver 的优先级保持一致"""
        not_deleted = ApiKey.deleted_at.is_(None)
        if status is KeyStatus.DELETED:
            return ApiKey.deleted_at.is_not(None)
        if status is KeyStatus.REVOKED:
            return and_(not_deleted, ApiKey.is_active.is_(False))
        if status is KeyStatus.EXPIRED:
            return and_(
                not_deleted,
                ApiKey.is_active.is_(True),
                ApiKey.expiry_at.is_not(None),
                ApiKey.expiry_at <= now,
            )
        return and_(
            not_deleted,
            ApiKey.is_active.is_(True),
            or_(ApiKey.expiry_at.is_(None), ApiKey.expiry_at > now),
        )

    async def get_by_key_hash(self, key_hash: str) -> Optional[ApiKey]:
        stmt = select(self.model).where(self.model.key_hash == key_hash)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_live(self, key_id: UUID) -> Optional[ApiKey]:
        """获取未软删除的记录"""
        stmt = select(self.model).where(
            self.model.id == key_id,
            self.model.deleted_at.is_(None),
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_filtered(
        self,
        now: datetime,
        owner_id: Optional[str] = None,
        status: Optional[KeyStatus] = None,
        search: Optional[str] = None,
        include_deleted: bool = False,
        skip: int = 0,
        limit: int = 50,
        sort: Optional[KeySort] = None,
    ) -> Tuple[List[ApiKey], int]:
        """按条件分页查询，返回 (记录, 总数)"""
        sort = sort or KeySort()
        conditions = []

        if owner_id:
            conditions.append(self.model.owner_id == owner_id)
        if not include_deleted:
            conditions.append(self.model.deleted_at.is_(None))
        if status is not None:
            conditions.append(self.status_condition(status, now))
        if search:
            pattern = f"%{escape_like(search)}%"
            conditions.append(
                or_(
                    self.model.name.ilike(pattern, escape="\\"),
                    self.model.description.ilike(pattern, escape="\\"),
                )
            )

        count_stmt = select(func.count()).select_from(self.model).where(*conditions)
        total = (await self.session.execute(count_stmt)).scalar_one()

        column = getattr(self.model, SortField(sort.field).value)
        ordering = column.asc() if sort.order is SortOrder.ASC else column.desc()
        stmt = (
            select(self.model)
            .where(*conditions)
            .order_by(ordering, self.model.id)
            .offset(skip)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total


__all__ = ["ApiKeyRepository", "escape_like"]
