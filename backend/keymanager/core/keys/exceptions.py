"""
API密钥引擎异常定义
"""


class KeyManagerError(Exception):
    """密钥管理异常基类"""


class StoreError(KeyManagerError):
    """凭证存储不可用或发生意外错误"""


class StoreTimeoutError(StoreError):
    """凭证存储调用超时"""


class UniquenessViolation(KeyManagerError):
    """插入时可比较值违反唯一约束"""


class RecordNotFound(KeyManagerError):
    """密钥记录不存在（或已软删除）"""


class InvalidKeyRequest(KeyManagerError):
    """生成请求参数不合法"""


class KeyCollisionExhausted(KeyManagerError):
    """重试次数耗尽仍未生成唯一密钥"""

    def __init__(self, attempts: int):
        super().__init__(f"Unable to generate a unique API key after {attempts} attempts")
        self.attempts = attempts


__all__ = [
    "KeyManagerError",
    "StoreError",
    "StoreTimeoutError",
    "UniquenessViolation",
    "RecordNotFound",
    "InvalidKeyRequest",
    "KeyCollisionExhausted",
]
