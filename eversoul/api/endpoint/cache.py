from typing import List, Optional
from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from eversoul.core.config import CRON_SECRET
from eversoul.schemas.common import BaseResponse
from eversoul.schemas.cache import (
    CacheClearResult,
    CacheStats,
    CacheUpdateRequest,
    CacheUpdateResult,
    CacheUpdateTaskResponse,
)
from eversoul.service.cache import CacheService
from eversoul.api import deps

router = APIRouter()

@router.get("/stats", response_model=BaseResponse[CacheStats])
async def read_cache_stats(
    service: CacheService = Depends(deps.get_cache_service)
):
    stats = await service.get_stats()
    return BaseResponse(success=True, data=stats)

@router.post("/clear", response_model=BaseResponse[CacheClearResult])
async def clear_cache(
    service: CacheService = Depends(deps.get_cache_service)
):
    """메모리 + 영속 캐시 전체 삭제 후 저장소 압축"""
    result = await service.clear()
    message = "OK" if result.deleted_count is not None else "메모리 캐시만 삭제되었습니다"
    return BaseResponse(success=True, data=result, message=message)

@router.post("/update", response_model=BaseResponse[CacheUpdateResult])
async def update_cache(
    body: CacheUpdateRequest,
    service: CacheService = Depends(deps.get_cache_service)
):
    """
    수동 갱신 (live / review / all)
    - 테이블을 순서대로 받아 저장, 실패한 테이블은 건너뜀
    """
    result = await service.update(body.data_source, body.is_manual)
    return BaseResponse(
        success=True,
        data=result,
        message=f"캐시 갱신 완료, {result.updated_files}개 파일 갱신"
    )

@router.get("/update", response_model=BaseResponse[List[CacheUpdateTaskResponse]])
async def read_update_tasks(
    limit: int = Query(10, ge=1, le=100),
    service: CacheService = Depends(deps.get_cache_service)
):
    tasks = await service.recent_tasks(limit)
    return BaseResponse(success=True, data=tasks)

@router.api_route("/cron", methods=["GET", "POST"], response_model=BaseResponse[CacheUpdateResult])
async def scheduled_update(
    authorization: Optional[str] = Header(None),
    service: CacheService = Depends(deps.get_cache_service)
):
    """정기 갱신 트리거 (Authorization: Bearer {CRON_SECRET})"""
    if authorization != f"Bearer {CRON_SECRET}":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    result = await service.scheduled_update()
    return BaseResponse(success=True, data=result)
