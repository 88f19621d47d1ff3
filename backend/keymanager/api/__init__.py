"""
API路由主入口
"""
from fastapi import APIRouter

from keymanager.api.v1 import api_keys

api_router = APIRouter()

api_router.include_router(
    api_keys.router,
    prefix="/api-keys",
    tags=["API密钥管理"],
)

__all__ = ["api_router"]
