from datetime import datetime
from sqlalchemy import String, Integer, Text, Boolean, DateTime, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column
from eversoul.core.database import Base

class GameDataCache(Base):
    """원격 테이블 원본(JSON 텍스트)을 (데이터 소스, 파일명) 단위로 보관"""
    __tablename__ = "game_data_cache"
    __table_args__ = (
        UniqueConstraint("data_source", "file_name", name="uq_game_data_cache_source_file"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    data_source: Mapped[str] = mapped_column(String(16), index=True)
    file_name: Mapped[str] = mapped_column(String(64))
    data: Mapped[str] = mapped_column(Text)
    fetched_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    is_valid: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

class CacheUpdateTask(Base):
    __tablename__ = "cache_update_task"

    id: Mapped[int] = mapped_column(primary_key=True)
    task_type: Mapped[str] = mapped_column(String(16))     # manual / auto
    data_source: Mapped[str] = mapped_column(String(16))   # live / review / all
    status: Mapped[str] = mapped_column(String(16), default="running", index=True)
    updated_files: Mapped[int] = mapped_column(Integer, default=0)
    error_message: Mapped[str | None] = mapped_column(Text)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
