from fastapi import APIRouter

from app.api.agents import router as agents_router
from app.api.jobs import router as jobs_router

api_router = APIRouter()

# API routes at /api/*
api_router.include_router(agents_router, prefix="/api", tags=["agents"])
api_router.include_router(jobs_router, prefix="/api", tags=["jobs"])
