"""
Save slot API routes for Forge Tycoon.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from forge_tycoon.api.deps import bad_request, not_found, require_save_manager
from forge_tycoon.persistence import SaveManager

router = APIRouter()

ManagerDep = Annotated[SaveManager, Depends(require_save_manager)]


# Request/Response schemas
class SaveSummary(BaseModel):
    """Response schema for one save slot."""

    slot: str
    version: str
    saved_at: str | None
    meta: dict


class SaveListResponse(BaseModel):
    """Response schema for the slot list."""

    saves: list[SaveSummary]


class ImportRequest(BaseModel):
    """Request schema for importing exported JSON text."""

    data: str = Field(..., min_length=2)


class AutosaveRequest(BaseModel):
    """Request schema for autosave settings."""

    enabled: bool | None = None
    interval_seconds: int | None = Field(default=None, gt=0)


# Routes
@router.get("", response_model=SaveListResponse)
async def list_saves(manager: ManagerDep) -> SaveListResponse:
    """
    List all save slots, newest first.
    """
    return SaveListResponse(saves=[SaveSummary(**s) for s in await manager.list_saves()])


@router.put("/autosave")
async def configure_autosave(request: AutosaveRequest, manager: ManagerDep) -> dict:
    if request.enabled is not None:
        manager.set_autosave_enabled(request.enabled)
    if request.interval_seconds is not None:
        manager.set_autosave_interval(request.interval_seconds)
    return {
        "enabled": manager.autosave_enabled,
        "interval_seconds": manager.autosave_interval,
    }


@router.post("/{slot}", status_code=status.HTTP_201_CREATED)
async def save_game(slot: str, manager: ManagerDep) -> dict:
    if not await manager.save_game(slot):
        raise bad_request(f"Failed to save game to slot '{slot}'")
    return {"slot": slot}


@router.post("/{slot}/load")
async def load_game(slot: str, manager: ManagerDep) -> dict:
    """
    Restore the game from a slot. Missing or invalid slots change nothing.
    """
    if not await manager.load_game(slot):
        raise not_found("Valid save")
    return {"slot": slot}


@router.delete("/{slot}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_save(slot: str, manager: ManagerDep) -> None:
    if not await manager.delete_save(slot):
        raise not_found("Save")


@router.get("/{slot}/export", response_class=PlainTextResponse)
async def export_save(slot: str, manager: ManagerDep) -> str:
    text = await manager.export_save(slot)
    if text is None:
        raise not_found("Save")
    return text


@router.post("/{slot}/import", status_code=status.HTTP_201_CREATED)
async def import_save(slot: str, request: ImportRequest, manager: ManagerDep) -> dict:
    if not await manager.import_save(request.data, slot):
        raise bad_request("Imported data is not a valid save")
    return {"slot": slot}
