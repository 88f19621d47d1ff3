"""
API v1路由模块
"""
from .api_keys import router as api_keys_router

__all__ = [
    "api_keys_router",
]
