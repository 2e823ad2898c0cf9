"""API router for v1 endpoints."""
from fastapi import APIRouter
from tourify.api import accounts, content

api_router = APIRouter()

api_router.include_router(accounts.router, prefix="/accounts", tags=["accounts"])
api_router.include_router(content.router, prefix="/content", tags=["content"])
