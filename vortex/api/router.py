from fastapi import APIRouter

from vortex.api.digest import router as digest_router
from vortex.api.jobs import router as jobs_router

api_router = APIRouter()

# API routes at /api/*
api_router.include_router(digest_router, prefix="/api/digest", tags=["digest"])
api_router.include_router(jobs_router, prefix="/api", tags=["jobs"])
