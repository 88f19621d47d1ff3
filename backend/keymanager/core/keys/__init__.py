"""
API密钥生命周期引擎

生成、校验、状态推导，依赖外部的 CredentialStore 与 AuditSink。
"""
from .audit import AuditEmitter, AuditEvent, AuditSink, LoggingAuditSink
from .codec import KeyCodec
from .exceptions import (
    InvalidKeyRequest,
    KeyCollisionExhausted,
    KeyManagerError,
    RecordNotFound,
    StoreError,
    StoreTimeoutError,
    UniquenessViolation,
)
from .generator import DEFAULT_EXPIRY, KeyGenerationResult, KeyGenerator
from .hashing import KeyHasher
from .models import Credential
from .status import KeyStatus, StatusResolver
from .store import CredentialStore, KeyListFilter, KeySort, SortField, SortOrder
from .validator import KeyInfo, KeyValidator, ReasonCode, ValidationResult

__all__ = [
    "AuditEmitter",
    "AuditEvent",
    "AuditSink",
    "LoggingAuditSink",
    "KeyCodec",
    "KeyHasher",
    "Credential",
    "KeyStatus",
    "StatusResolver",
    "CredentialStore",
    "KeyListFilter",
    "KeySort",
    "SortField",
    "SortOrder",
    "KeyGenerator",
    "KeyGenerationResult",
    "DEFAULT_EXPIRY",
    "KeyValidator",
    "KeyInfo",
    "ReasonCode",
    "ValidationResult",
    "KeyManagerError",
    "StoreError",
    "StoreTimeoutError",
    "UniquenessViolation",
    "RecordNotFound",
    "InvalidKeyRequest",
    "KeyCollisionExhausted",
]
