from datetime import datetime
from typing import List, Optional
from pydantic import Field
from eversoul.core.config import RefreshTarget
from eversoul.schemas.common import BaseSchema

class MemoryCacheStats(BaseSchema):
    total_entries: int = 0
    hits: int = 0
    misses: int = 0

class SourceCacheStats(BaseSchema):
    data_source: str
    count: int
    last_updated: Optional[datetime] = None

class PersistedCacheStats(BaseSchema):
    hits: int = 0
    stats_by_source: Optional[List[SourceCacheStats]] = None  # 저장소 조회 실패 시 None

class CacheStats(BaseSchema):
    memory: MemoryCacheStats
    persisted: PersistedCacheStats

class CacheClearResult(BaseSchema):
    deleted_count: Optional[int] = None  # 저장소 정리 실패 시 None (메모리는 항상 초기화)

class CacheUpdateRequest(BaseSchema):
    data_source: RefreshTarget
    is_manual: bool = True

class CacheUpdateTaskResponse(BaseSchema):
    id: int
    task_type: str
    data_source: str
    status: str
    updated_files: int = 0
    error_message: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

class CacheUpdateResult(BaseSchema):
    task_id: int
    updated_files: int = Field(0, description="성공적으로 갱신된 파일 수")
    failed_files: List[str] = []
