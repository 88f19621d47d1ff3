"""
密钥编解码

外部密钥格式：固定前缀 + URL安全Base64（无填充）编码的随机字节，例如 ``ak_3q2-7w...``
"""
from __future__ import annotations

import base64
import math
import re
import secrets
from typing import Optional

MIN_ENTROPY_BYTES = 16
MAX_ENTROPY_BYTES = 128
MASK_VISIBLE_CHARS = 8

_PREFIX_PATTERN = re.compile(r"^[A-Za-z0-9_]{1,16}$")


def _encoded_length(num_bytes: int) -> int:
    return math.ceil(num_bytes * 4 / 3)


class KeyCodec:
    """定义密钥的文本形态，并在查库前做结构校验"""

    def __init__(self, prefix: str = "ak_", entropy_bytes: int = 32):
        if not _PREFIX_PATTERN.match(prefix):
            raise ValueError(f"Invalid key prefix: {prefix!r}")
        if not MIN_ENTROPY_BYTES <= entropy_bytes <= MAX_ENTROPY_BYTES:
            raise ValueError(
                f"entropy_bytes must be between {MIN_ENTROPY_BYTES} and {MAX_ENTROPY_BYTES}"
            )
        self.prefix = prefix
        self.entropy_bytes = entropy_bytes
        # 长度策略按允许的熵范围计算，调整 entropy_bytes 后旧密钥仍然合法
        self._pattern = re.compile(
            "^{prefix}[A-Za-z0-9_-]{{{low},{high}}}$".format(
                prefix=re.escape(prefix),
                low=_encoded_length(MIN_ENTROPY_BYTES),
                high=_encoded_length(MAX_ENTROPY_BYTES),
            )
        )

    def encode(self, entropy: bytes) -> str:
        """前缀 + 随机字节编码，输出不含空白的单个可打印token"""
        if len(entropy) < MIN_ENTROPY_BYTES:
            raise ValueError(f"At least {MIN_ENTROPY_BYTES} bytes of entropy are required")
        body = base64.urlsafe_b64encode(entropy).rstrip(b"=").decode("ascii")
        return f"{self.prefix}{body}"

    def generate(self) -> str:
        """使用操作系统CSPRNG生成新密钥"""
        return self.encode(secrets.token_bytes(self.entropy_bytes))

    def looks_well_formed(self, candidate: Optional[str]) -> bool:
        """
        廉价的结构检查，只用于在查库前筛掉明显非法的输入

        返回True并不代表密钥存在。
        """
        if not isinstance(candidate, str) or not candidate.strip():
            return False
        return self._pattern.fullmatch(candidate) is not None

    @staticmethod
    def mask(candidate: Optional[str]) -> str:
        """截断并遮盖密钥，用于审计和日志，永远不输出完整值"""
        if not candidate:
            return "***"
        visible = min(MASK_VISIBLE_CHARS, len(candidate) // 2)
        return candidate[:visible] + "***"


__all__ = ["KeyCodec", "MIN_ENTROPY_BYTES", "MAX_ENTROPY_BYTES"]
