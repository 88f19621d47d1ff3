"""
SQLAlchemy 基础模型
"""
from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Column, DateTime, String
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import declarative_base, declared_attr

Base = declarative_base()

SCHEMA = "keymanager"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UUIDMixin:
    """UUID主键Mixin"""

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid4)


class TimestampMixin:
    """时间戳Mixin"""

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)


class AuditMixin:
    """审计字段Mixin"""

    created_by = Column(String(100), nullable=True)
    updated_by = Column(String(100), nullable=True)

    @declared_attr
    def created_at(cls):
        return Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    @declared_attr
    def updated_at(cls):
        return Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)


class SoftDeleteMixin:
    """软删除Mixin，记录保留用于审计"""

    deleted_at = Column(DateTime(timezone=True), nullable=True, default=None)
    deleted_by = Column(String(100), nullable=True)


__all__ = ["Base", "SCHEMA", "UUIDMixin", "TimestampMixin", "AuditMixin", "SoftDeleteMixin"]
