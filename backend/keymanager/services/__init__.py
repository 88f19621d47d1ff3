"""
业务服务层
"""
from .api_key_service import ApiKeyService, build_api_key_service, get_api_key_service
from .audit_sink import DatabaseAuditSink
from .credential_store import SqlAlchemyCredentialStore

__all__ = [
    "ApiKeyService",
    "build_api_key_service",
    "get_api_key_service",
    "DatabaseAuditSink",
    "SqlAlchemyCredentialStore",
]
