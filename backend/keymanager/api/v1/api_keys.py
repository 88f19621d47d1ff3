"""API密钥管理API"""
import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse

from keymanager.core.keys.exceptions import (
    InvalidKeyRequest,
    KeyCollisionExhausted,
    RecordNotFound,
    StoreError,
)
from keymanager.core.keys.generator import DEFAULT_EXPIRY
from keymanager.core.keys.store import KeyListFilter, KeySort
from keymanager.core.keys.validator import KeyInfo
from keymanager.api.dependencies.api_key import get_validated_key
from keymanager.schemas.api_key import (
    ApiKeyActionRequest,
    ApiKeyCreate,
    ApiKeyGenerateResponse,
    ApiKeyListQuery,
    ApiKeyResponse,
    ApiKeyValidateRequest,
    KeyInfoResponse,
    ValidationResultResponse,
)
from keymanager.schemas.response import PaginatedResponse, paginated_response, success_response
from keymanager.services.api_key_service import ApiKeyService, get_api_key_service

logger = logging.getLogger(__name__)

router = APIRouter()


def _store_unavailable(exc: Exception) -> HTTPException:
    logger.error("Credential store unavailable: %s", exc)
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Credential store unavailable",
    )


@router.get("", response_model=PaginatedResponse[ApiKeyResponse])
async def list_api_keys(
    query: ApiKeyListQuery = Depends(),
    service: ApiKeyService = Depends(get_api_key_service),
):
    key_filter = KeyListFilter(
        owner_id=query.owner_id,
        status=query.status,
        search=query.search,
        include_deleted=query.include_deleted,
    )
    sort = KeySort(field=query.sort_by, order=query.sort_order)
    limit = max(1, min(query.limit or service.settings.DEFAULT_PAGE_SIZE, service.settings.MAX_PAGE_SIZE))

    try:
        records, total = await service.list_keys(key_filter, page=query.page, limit=limit, sort=sort)
    except StoreError as exc:
        raise _store_unavailable(exc) from exc

    items = [ApiKeyResponse.from_record(r, service.status_of(r)) for r in records]
    return paginated_response(items, page=query.page, limit=limit, total=total)


@router.post("", response_model=ApiKeyGenerateResponse, status_code=status.HTTP_201_CREATED)
async def create_api_key(
    payload: ApiKeyCreate,
    service: ApiKeyService = Depends(get_api_key_service),
):
    # 未提供 expires_at 时使用默认有效期，显式 null 表示永不过期
    expires_at = payload.expires_at if "expires_at" in payload.model_fields_set else DEFAULT_EXPIRY

    try:
        result = await service.generate_key(
            owner_id=payload.owner_id,
            name=payload.name,
            description=payload.description,
            is_active=payload.is_active,
            expires_at=expires_at,
            created_by=payload.created_by,
        )
    except InvalidKeyRequest as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except KeyCollisionExhausted as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Unable to generate a unique API key, please retry",
        ) from exc
    except StoreError as exc:
        raise _store_unavailable(exc) from exc

    return ApiKeyGenerateResponse(
        key_id=result.key_id,
        api_key=result.raw_key,
        owner_id=result.owner_id,
        name=result.name,
        key_hint=result.key_hint,
        created_at=result.created_at,
        expires_at=result.expires_at,
        status=result.status,
    )


@router.post("/validate", response_model=ValidationResultResponse)
async def validate_api_key(
    payload: ApiKeyValidateRequest,
    service: ApiKeyService = Depends(get_api_key_service),
):
    result = await service.validate_key(payload.api_key, payload.client_id)
    return JSONResponse(status_code=result.status_code, content=result.to_dict())


@router.get("/me", response_model=KeyInfoResponse)
async def get_current_key(key_info: KeyInfo = Depends(get_validated_key)):
    return KeyInfoResponse(
        id=key_info.id,
        owner_id=key_info.owner_id,
        expires_at=key_info.expires_at,
        status=key_info.status,
    )


@router.get("/{key_id}", response_model=ApiKeyResponse)
async def get_api_key(
    key_id: UUID,
    include_deleted: bool = False,
    service: ApiKeyService = Depends(get_api_key_service),
):
    try:
        record = await service.get_key(key_id, include_deleted=include_deleted)
    except RecordNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except StoreError as exc:
        raise _store_unavailable(exc) from exc

    return ApiKeyResponse.from_record(record, service.status_of(record))


@router.post("/{key_id}/revoke")
async def revoke_api_key(
    key_id: UUID,
    payload: Optional[ApiKeyActionRequest] = None,
    service: ApiKeyService = Depends(get_api_key_service),
):
    actor = payload.actor if payload else None
    try:
        record = await service.revoke_key(key_id, actor=actor)
    except RecordNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except StoreError as exc:
        raise _store_unavailable(exc) from exc

    return success_response(
        ApiKeyResponse.from_record(record, service.status_of(record)).model_dump(mode="json"),
        message="API key revoked",
    )


@router.delete("/{key_id}")
async def delete_api_key(
    key_id: UUID,
    actor: Optional[str] = None,
    service: ApiKeyService = Depends(get_api_key_service),
):
    try:
        await service.delete_key(key_id, actor=actor)
    except RecordNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except StoreError as exc:
        raise _store_unavailable(exc) from exc

    return success_response(message="API key deleted")
