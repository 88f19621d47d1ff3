"""
密钥可比较形式

只持久化单向哈希：以服务端密钥做 HMAC-SHA256，未配置密钥时退化为 SHA-256。
"""
from __future__ import annotations

from typing import Optional

from cryptography.hazmat.primitives import hashes, hmac


class KeyHasher:
    """生成与校验共用的哈希器"""

    algorithm = "hmac-sha256"

    def __init__(self, secret: Optional[str] = None):
        self._secret = secret.encode("utf-8") if secret else None

    def comparable(self, raw_key: str) -> str:
        """计算原始密钥的可比较形式（十六进制）"""
        data = raw_key.encode("utf-8")
        if self._secret:
            mac = hmac.HMAC(self._secret, hashes.SHA256())
            mac.update(data)
            return mac.finalize().hex()

        digest = hashes.Hash(hashes.SHA256())
        digest.update(data)
        return digest.finalize().hex()


__all__ = ["KeyHasher"]
