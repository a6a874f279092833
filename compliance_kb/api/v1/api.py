from fastapi import APIRouter
from compliance_kb.api.v1.endpoints import chunks, search, status

api_router = APIRouter()
api_router.include_router(chunks.router, tags=["chunks"])
api_router.include_router(search.router, tags=["search"])
api_router.include_router(status.router, tags=["status"])
