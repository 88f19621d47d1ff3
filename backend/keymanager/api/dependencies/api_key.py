"""
API密钥认证依赖
"""
from typing import Optional

from fastapi import Depends, Header, HTTPException, Security
from fastapi.security import APIKeyHeader

from keymanager.core.keys.validator import KeyInfo
from keymanager.services.api_key_service import ApiKeyService, get_api_key_service

api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


async def get_validated_key(
    api_key: Optional[str] = Security(api_key_header),
    client_id: Optional[str] = Header(None, alias="X-Client-Id"),
    service: ApiKeyService = Depends(get_api_key_service),
) -> KeyInfo:
    """校验请求头中的API密钥，失败时按原因码返回对应状态码"""
    result = await service.validate_key(api_key, client_id)
    if not result.is_valid:
        raise HTTPException(
            status_code=result.status_code,
            detail={"reason": result.reason.value, "message": result.message},
        )
    return result.key_info


__all__ = ["get_validated_key", "api_key_header"]
