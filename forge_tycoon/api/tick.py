"""
Tick engine control routes for Forge Tycoon.
"""

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel

from forge_tycoon.config import get_settings
from forge_tycoon.tick_engine import TickEngine, get_tick_engine

router = APIRouter()


class TickStatusResponse(BaseModel):
    """Response schema for tick engine status."""

    tick_number: int
    is_running: bool
    is_paused: bool
    tick_rate_ms: int


def _require_engine() -> TickEngine:
    engine = get_tick_engine()
    if engine is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Tick engine not initialized",
        )
    return engine


@router.get("/status", response_model=TickStatusResponse)
async def get_tick_status() -> TickStatusResponse:
    """
    Get the current tick engine status.
    """
    engine = get_tick_engine()
    settings = get_settings()

    if engine is None:
        return TickStatusResponse(
            tick_number=0,
            is_running=False,
            is_paused=False,
            tick_rate_ms=settings.tick_rate_ms,
        )

    return TickStatusResponse(
        tick_number=engine.tick_number,
        is_running=engine.is_running,
        is_paused=engine.is_paused,
        tick_rate_ms=engine.tick_rate_ms,
    )


@router.post("/pause")
async def pause_tick() -> dict:
    """
    Pause the simulation. Game time stops with it.
    """
    engine = _require_engine()
    engine.pause()
    return {"message": "Tick engine paused", "tick_number": engine.tick_number}


@router.post("/resume")
async def resume_tick() -> dict:
    engine = _require_engine()
    engine.resume()
    return {"message": "Tick engine resumed", "tick_number": engine.tick_number}


@router.post("/step")
async def step_tick() -> dict:
    """
    Trigger a single tick when the engine is paused.
    """
    engine = _require_engine()
    if engine.is_running:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Tick engine must be paused to step manually",
        )

    await engine.step()
    return {"message": "Tick executed", "tick_number": engine.tick_number}
