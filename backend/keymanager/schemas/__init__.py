# Pydantic Schemas模块

from .common import (
    BaseSchema,
    TimestampMixin,
    UUIDMixin,
)

from .api_key import (
    ApiKeyCreate,
    ApiKeyGenerateResponse,
    ApiKeyResponse,
    ApiKeyActionRequest,
    ApiKeyValidateRequest,
    KeyInfoResponse,
    ValidationResultResponse,
    ApiKeyListQuery,
)

from .response import (
    PaginationMeta,
    PaginatedResponse,
    success_response,
    paginated_response,
)

__all__ = [
    "BaseSchema",
    "TimestampMixin",
    "UUIDMixin",
    "ApiKeyCreate",
    "ApiKeyGenerateResponse",
    "ApiKeyResponse",
    "ApiKeyActionRequest",
    "ApiKeyValidateRequest",
    "KeyInfoResponse",
    "ValidationResultResponse",
    "ApiKeyListQuery",
    "PaginationMeta",
    "PaginatedResponse",
    "success_response",
    "paginated_response",
]
