"""
FastAPI应用主入口
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from keymanager.config.settings import get_settings
from keymanager.config.logging import setup_logging
from keymanager.db.database import close_db

# 导入API路由
from keymanager.api import api_router

# 配置日志
settings = get_settings()
setup_logging(settings.LOG_LEVEL, settings.LOG_DIR)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    # 启动时
    logger.info("应用启动中...")
    logger.info(
        "密钥策略: prefix=%s entropy=%d bytes max_retries=%d default_expiry=%d days",
        settings.KEY_PREFIX,
        settings.KEY_ENTROPY_BYTES,
        settings.MAX_GENERATION_RETRIES,
        settings.DEFAULT_KEY_EXPIRY_DAYS,
    )

    yield

    # 关闭时
    logger.info("应用关闭中...")

    # 关闭数据库连接
    await close_db()
    logger.info("应用已关闭")


# 创建FastAPI应用
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    lifespan=lifespan
)

# 配置CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # 生产环境应该配置具体的域名
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root():
    """根路径"""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running"
    }


@app.get("/health")
async def health_check():
    """健康检查"""
    return {"status": "healthy"}


# 注册API路由
app.include_router(api_router, prefix="/api/v1")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "keymanager.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
