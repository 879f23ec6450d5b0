from fastapi import APIRouter
from eversoul.api.endpoint import stage, cache

api_router = APIRouter()

api_router.include_router(stage.router, prefix="/stages", tags=["Stages"])
api_router.include_router(cache.router, prefix="/cache", tags=["Cache"])
