"""
应用配置设置
"""
from datetime import timedelta
from typing import Literal, Optional

from pydantic import ConfigDict, Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """应用配置"""

    model_config = ConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"  # 忽略额外字段
    )

    # 应用配置
    APP_NAME: str = "API Key Manager"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = True

    # 服务器配置
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # 数据库配置
    DATABASE_URL: Optional[str] = None

    # 密钥格式配置
    KEY_PREFIX: str = "ak_"
    KEY_ENTROPY_BYTES: int = Field(default=32, ge=16, le=128)
    KEY_HASH_SECRET: str = "your-key-hash-secret-change-in-production"

    # 生成策略
    MAX_GENERATION_RETRIES: int = Field(default=5, ge=1)
    DEFAULT_KEY_EXPIRY_DAYS: int = Field(default=365, ge=1)

    # 列表分页
    DEFAULT_PAGE_SIZE: int = Field(default=50, ge=1)
    MAX_PAGE_SIZE: int = Field(default=100, ge=1)

    # 外部依赖超时（秒）
    STORE_TIMEOUT_SECONDS: float = Field(default=5.0, gt=0)
    AUDIT_TIMEOUT_SECONDS: float = Field(default=2.0, gt=0)

    # 审计输出: log 写日志通道, database 写 key_audit_logs 表
    AUDIT_SINK: Literal["log", "database"] = "log"

    # 日志配置
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    @property
    def default_key_expiry(self) -> timedelta:
        return timedelta(days=self.DEFAULT_KEY_EXPIRY_DAYS)


# 全局配置实例
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """获取全局配置实例（单例）"""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
