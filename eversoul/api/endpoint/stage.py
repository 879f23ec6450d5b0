from typing import List
from fastapi import APIRouter, Depends, Path, Query
from eversoul.core.config import DataSource
from eversoul.schemas.common import BaseResponse
from eversoul.schemas.stage import StageDetails, StageOverviewResponse, StageSummary
from eversoul.service.stage import StageService
from eversoul.api import deps

router = APIRouter()

@router.get("", response_model=BaseResponse[List[StageSummary]])
async def read_stages(
    source: DataSource = Query(DataSource.LIVE, description="데이터 소스 (live / review)"),
    service: StageService = Depends(deps.get_stage_service)
):
    """
    메인 스토리 스테이지 목록 (area_no, stage_no 오름차순)
    """
    stages = await service.get_stage_list(source)
    return BaseResponse(success=True, data=stages)

@router.get("/overview", response_model=BaseResponse[StageOverviewResponse])
async def read_stage_overview(
    service: StageService = Depends(deps.get_stage_service)
):
    """
    live / review 스테이지 목록을 동시에 조회
    - 한쪽만 실패하면 errors 에 사유를 담고 나머지로 응답
    """
    overview = await service.get_stage_overview()
    return BaseResponse(success=True, data=overview)

@router.get("/{source}/{area_no}/{stage_no}", response_model=BaseResponse[StageDetails])
async def read_stage_detail(
    source: DataSource,
    area_no: int = Path(..., ge=1),
    stage_no: int = Path(..., ge=1),
    service: StageService = Depends(deps.get_stage_service)
):
    """
    **스테이지 상세**
    - 고정 보상, 적 편성(팀 전투력), 드랍 확률표, 관련 상점 패키지
    """
    details = await service.get_stage_detail(source, area_no, stage_no)
    return BaseResponse(success=True, data=details)
