"""V1 API router -- aggregates all v1 endpoint routers."""

from __future__ import annotations

from fastapi import APIRouter

from src.dealboard.api.v1 import accounts, deals, health, organizations, pipeline

router = APIRouter()

router.include_router(health.router)
router.include_router(organizations.router)
router.include_router(accounts.router)
router.include_router(deals.router)
router.include_router(pipeline.router)
