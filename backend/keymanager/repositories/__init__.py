"""
Repository模块
"""
from .base import BaseRepository
from .api_key import ApiKeyRepository
from .key_audit_log import KeyAuditLogRepository

__all__ = [
    "BaseRepository",
    "ApiKeyRepository",
    "KeyAuditLogRepository",
]
