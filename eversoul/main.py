import logging
from contextlib import asynccontextmanager
from typing import Any

import httpx
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHttpException

from eversoul.core.config import ENABLE_DATABASE_CACHE, FETCH_TIMEOUT, LOG_LEVEL
from eversoul.core.database import SessionLocal, engine, init_models, init_redis_pool, close_redis_pool
from eversoul.core.logging import setup_logging
from eversoul.gamedata.cache import TableCache
from eversoul.gamedata.fetcher import TableFetcher
from eversoul.gamedata.refresh import CacheRefresher
from eversoul.gamedata.store import PersistedTableStore, UpdateTaskLog
from eversoul.api.api import api_router

setup_logging(LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    프로세스 전역 객체는 여기서 한 번만 만든다
    (HTTP 클라이언트, 테이블 캐시, 갱신 작업기)
    """
    init_redis_pool()
    try:
        await init_models()
    except (SQLAlchemyError, OSError):
        # 영속 캐시 없이도 원격 fetch 로 동작 가능
        logger.warning("Database unavailable at startup; persisted cache disabled until it recovers", exc_info=True)

    http_client = httpx.AsyncClient(timeout=FETCH_TIMEOUT, follow_redirects=True)
    fetcher = TableFetcher(http_client)
    store = PersistedTableStore(SessionLocal)
    table_cache = TableCache(fetcher, store if ENABLE_DATABASE_CACHE else None)

    app.state.table_cache = table_cache
    app.state.refresher = CacheRefresher(fetcher, store, UpdateTaskLog(SessionLocal), cache=table_cache)
    yield

    await table_cache.wait_for_pending_writes()
    await http_client.aclose()
    await close_redis_pool()
    await engine.dispose()

app = FastAPI(
    title="EverSoul Stage Guide API",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc"
)


def error_response(status_code: int, message: Any, data: Any = None) -> JSONResponse:
    """성공 응답(BaseResponse)과 같은 모양의 실패 응답"""
    return JSONResponse(
        status_code=status_code,
        content={"status": status_code, "success": False, "message": message, "data": data},
    )

@app.exception_handler(StarletteHttpException)
async def http_exception_handler(request: Request, exc: StarletteHttpException):
    return error_response(exc.status_code, exc.detail)

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # 어떤 필드가 잘못되었는지 data 에 담는다
    return error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "입력 데이터 형식이 올바르지 않습니다.",
        jsonable_errors(exc),
    )

@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "서버 내부에서 오류가 발생했습니다.",
        str(exc) if app.debug else None,
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api/v1")

@app.get("/health")
async def health_check():
    return {"status": "ok"}
