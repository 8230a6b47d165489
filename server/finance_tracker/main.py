import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from finance_tracker.config import settings
from finance_tracker.database import init_db
from finance_tracker.errors import LedgerError
from finance_tracker.routers import (
    auth,
    accounts,
    transactions,
    adjustments,
    receivables,
    categories,
    balance,
    stats,
)

# 导入所有 model 使 SQLAlchemy 注册表结构
import finance_tracker.models  # noqa: F401

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期：启动时建表并灌入默认数据"""
    await init_db()
    logger.info(f"{settings.APP_NAME} {settings.APP_VERSION} 启动完成")
    yield


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="个人记账后端 API - 多账户余额、对账调节与应收款",
    lifespan=lifespan,
)

# CORS 中间件
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# 统一异常处理
@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "code": exc.code},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={
            "detail": "Invalid request",
            "code": "VALIDATION_ERROR",
            "errors": jsonable_encoder(exc.errors()),
        },
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.exception(f"未处理异常 {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500, content={"detail": "Internal server error", "code": "INTERNAL_ERROR"}
    )


# 注册路由
app.include_router(auth.router)
app.include_router(accounts.router)
app.include_router(transactions.router)
app.include_router(adjustments.router)
app.include_router(receivables.router)
app.include_router(categories.router)
app.include_router(balance.router)
app.include_router(stats.router)


@app.get("/health", tags=["系统"])
async def health_check():
    """健康检查接口"""
    return {
        "status": "ok",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
    }
