from typing import Generic, Optional, TypeVar
from pydantic import BaseModel, ConfigDict, Field, model_validator

T = TypeVar("T")

class BaseSchema(BaseModel):
    """모든 스키마의 공통 부모"""
    model_config = ConfigDict(from_attributes=True) # ORM 객체를 Pydantic으로 자동 변환 (구 orm_mode)

class RowSchema(BaseModel):
    """
    원격 마스터 데이터 한 행(row)의 공통 부모
    - 스키마에 없는 컬럼은 무시
    - null 값은 필드 기본값으로 대체 (선택 필드는 대부분 비어 있을 수 있음)
    - 숫자로 들어온 문자열 컬럼(type_value 등)은 문자열로 변환
    """
    model_config = ConfigDict(extra="ignore", frozen=True, coerce_numbers_to_str=True)

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data):
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data

class BaseResponse(BaseSchema, Generic[T]):
    success: bool = True
    data: Optional[T] = None
    status: int = Field(200, description="HTTP code")
    message: str = "OK"
