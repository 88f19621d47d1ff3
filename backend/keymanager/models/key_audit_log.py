"""
密钥审计日志ORM模型
"""
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String
from sqlalchemy.dialects.postgresql import JSONB

from .base import SCHEMA, Base, UUIDMixin


class KeyAuditLog(Base, UUIDMixin):
    """密钥审计日志模型"""

    __tablename__ = "key_audit_logs"
    __table_args__ = {"schema": SCHEMA}

    subject_id = Column(String(100), nullable=False, index=True)
    action = Column(String(20), nullable=False)
    outcome = Column(String(20), nullable=False)  # success, failure
    reason_code = Column(String(50), nullable=True)
    extra = Column(JSONB, nullable=True)
    timestamp = Column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
        default=lambda: datetime.now(timezone.utc),
    )

    def to_dict(self):
        """转换为字典"""
        return {
            "id": str(self.id),
            "subject_id": self.subject_id,
            "action": self.action,
            "outcome": self.outcome,
            "reason_code": self.reason_code,
            "metadata": self.extra or {},
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }

    def __repr__(self):
        return f"<KeyAuditLog(id={self.id}, action={self.action}, outcome={self.outcome})>"


__all__ = ["KeyAuditLog"]
