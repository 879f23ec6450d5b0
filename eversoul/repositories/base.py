from typing import Generic, TypeVar, Type
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import delete
from eversoul.core.database import Base

# 제네릭 타입 정의 (어떤 모델이든 들어올 수 있음)
ModelType = TypeVar("ModelType", bound=Base)

class BaseRepository(Generic[ModelType]):
    def __init__(self, model: Type[ModelType], db: AsyncSession):
        self.model = model
        self.db = db

    async def delete_all(self) -> int:
        """테이블 전체 삭제 후 삭제된 행 수 반환"""
        result = await self.db.execute(delete(self.model))
        await self.db.commit()
        return result.rowcount or 0
