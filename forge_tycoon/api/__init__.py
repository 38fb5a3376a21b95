"""
REST API routes for Forge Tycoon.
"""

from fastapi import APIRouter

from forge_tycoon.api.shop import router as shop_router
from forge_tycoon.api.saves import router as saves_router
from forge_tycoon.api.tick import router as tick_router

api_router = APIRouter()

api_router.include_router(shop_router, prefix="/shop", tags=["shop"])
api_router.include_router(saves_router, prefix="/saves", tags=["saves"])
api_router.include_router(tick_router, prefix="/tick", tags=["tick"])

__all__ = ["api_router"]
