"""
Shop API routes for Forge Tycoon.
Read-only state plus the player's commands.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from forge_tycoon.api.deps import bad_request, not_found, purchase_or_400, require_shop
from forge_tycoon.gameplay.shop import Shop
from forge_tycoon.gameplay.workers import TaskKind, WorkerTask

router = APIRouter()

ShopDep = Annotated[Shop, Depends(require_shop)]


# Request/Response schemas
class CraftRequest(BaseModel):
    """Request schema for starting a craft."""

    item_id: str = Field(..., min_length=1)
    quantity: int = Field(default=1, ge=1)


class QuantityRequest(BaseModel):
    """Request schema for moving or selling stock."""

    quantity: int = Field(default=1, ge=1)


class PriceRequest(BaseModel):
    """Request schema for overriding a listing price. None clears it."""

    price: float | None = Field(default=None, ge=0)


class HireRequest(BaseModel):
    """Request schema for hiring a worker."""

    type_id: str = Field(..., min_length=1)


class TaskRequest(BaseModel):
    """Request schema for assigning a worker task."""

    kind: TaskKind
    item_id: str | None = None


class RestRequest(BaseModel):
    """Request schema for sending a worker to rest or back to work."""

    resting: bool


class MaterialOrderRequest(BaseModel):
    """Request schema for buying materials."""

    order: dict[str, float] = Field(..., min_length=1)


class AutoListRequest(BaseModel):
    """Request schema for toggling auto-listing of crafted items."""

    enabled: bool


class ShopStateResponse(BaseModel):
    """Response schema for the shop overview."""

    money: float
    coal_level: float
    time: dict[str, float]
    formatted_time: str
    materials: dict[str, float]
    items: dict[str, int]
    tools: dict[str, dict[str, float]]
    current_job: dict[str, Any] | None
    queue: list[dict[str, Any]]
    tick_count: int


def _contract(shop: Shop, contract) -> dict[str, Any]:
    body = contract.to_dict()
    body["time_remaining"] = shop.contracts.contract_time_remaining(contract.id)
    return body


def _worker(worker) -> dict[str, Any]:
    body = worker.to_dict()
    body["status_label"] = worker.status_label
    body["type_name"] = worker.worker_type.name
    return body


# Routes
@router.get("", response_model=ShopStateResponse)
async def get_state(shop: ShopDep) -> ShopStateResponse:
    """
    Overview of money, fuel, stock and production.
    """
    return ShopStateResponse(
        money=shop.inventory.money,
        coal_level=shop.forge.level,
        time=shop.clock.get_time(),
        formatted_time=shop.clock.formatted_datetime(),
        materials=shop.inventory.get_materials(),
        items=shop.inventory.get_items(),
        tools=shop.tools.durability_details(),
        current_job=shop.crafting.current.to_dict() if shop.crafting.current else None,
        queue=[job.to_dict() for job in shop.crafting.get_queue()],
        tick_count=shop.tick_count,
    )


@router.get("/notifications")
async def get_notifications(shop: ShopDep, limit: int = 20) -> dict:
    """
    Most recent notifications, oldest first.
    """
    return {
        "notifications": [
            {"level": n.level.value, "message": n.message}
            for n in shop.recent_notifications(limit)
        ]
    }


# Crafting
@router.post("/craft", status_code=status.HTTP_201_CREATED)
async def start_craft(request: CraftRequest, shop: ShopDep) -> dict:
    """
    Start or queue a craft.
    """
    check = shop.crafting.start_crafting(request.item_id, request.quantity)
    if not check:
        raise bad_request(check.reason)
    return {
        "current_job": shop.crafting.current.to_dict() if shop.crafting.current else None,
        "queue_length": len(shop.crafting.queue),
    }


@router.get("/craft/check/{item_id}")
async def check_craft(item_id: str, shop: ShopDep, quantity: int = 1) -> dict:
    """
    Whether an item could be crafted right now, and why not.
    """
    check = shop.crafting.can_craft(item_id, quantity)
    return {"can_craft": check.can_craft, "reason": check.reason}


@router.post("/craft/cancel")
async def cancel_craft(shop: ShopDep) -> dict:
    if not shop.crafting.cancel_current_craft():
        raise bad_request("Nothing is being crafted")
    return {"message": "Craft canceled"}


@router.delete("/craft/queue/{index}")
async def cancel_queued(index: int, shop: ShopDep) -> dict:
    if not shop.crafting.cancel_queued_craft(index):
        raise not_found("Queued craft")
    return {"message": "Queued craft removed"}


@router.post("/craft/pause")
async def pause_craft(shop: ShopDep) -> dict:
    if not shop.crafting.pause_crafting("Paused by player"):
        raise bad_request("No active craft to pause")
    return {"message": "Craft paused"}


@router.post("/craft/resume")
async def resume_craft(shop: ShopDep) -> dict:
    if not shop.crafting.resume_crafting():
        raise bad_request("Craft could not be resumed")
    return {"message": "Craft resumed"}


@router.put("/craft/auto-list")
async def set_auto_list(request: AutoListRequest, shop: ShopDep) -> dict:
    shop.crafting.set_auto_add_to_storefront(request.enabled)
    return {"enabled": request.enabled}


# Forge
@router.post("/forge/refill")
async def refill_forge(shop: ShopDep) -> dict:
    if not shop.forge.refill():
        raise bad_request("The forge could not be refilled")
    return {"coal_level": shop.forge.level}


# Storefront
@router.get("/storefront")
async def get_storefront(shop: ShopDep) -> dict:
    return {"items": shop.storefront.storefront_items()}


@router.post("/storefront/{item_id}")
async def list_item(item_id: str, request: QuantityRequest, shop: ShopDep) -> dict:
    """
    Move crafted stock onto the shelf.
    """
    if item_id not in shop.storefront.recipes:
        raise not_found("Item")
    if not shop.storefront.add_item_to_storefront(item_id, request.quantity):
        raise bad_request("Not enough items in inventory")
    return {"items": shop.storefront.storefront_items()}


@router.delete("/storefront/{item_id}")
async def unlist_item(item_id: str, shop: ShopDep, quantity: int = 1) -> dict:
    if item_id not in shop.storefront.listings:
        raise not_found("Listing")
    if not shop.storefront.remove_item_from_storefront(item_id, quantity):
        raise bad_request("Not enough items in the storefront")
    return {"items": shop.storefront.storefront_items()}


@router.post("/storefront/{item_id}/sell")
async def sell_item(item_id: str, request: QuantityRequest, shop: ShopDep) -> dict:
    if item_id not in shop.storefront.listings:
        raise not_found("Listing")
    price = shop.storefront.item_price(item_id)
    if not shop.storefront.sell_item(item_id, request.quantity):
        raise bad_request("Not enough items in the storefront")
    return {"price": price, "quantity": request.quantity, "money": shop.inventory.money}


@router.put("/storefront/{item_id}/price")
async def set_price(item_id: str, request: PriceRequest, shop: ShopDep) -> dict:
    if not shop.storefront.set_item_price(item_id, request.price):
        raise not_found("Listing")
    return {"item_id": item_id, "price": shop.storefront.item_price(item_id)}


# Contracts
@router.get("/contracts")
async def get_contracts(shop: ShopDep) -> dict:
    contracts = shop.contracts.all_contracts()
    return {
        kind: [_contract(shop, c) for c in items]
        for kind, items in contracts.items()
    }


@router.post("/contracts/{contract_id}/fulfill")
async def fulfill_contract(contract_id: str, shop: ShopDep) -> dict:
    contract = shop.contracts.find_contract(contract_id)
    if contract is None:
        raise not_found("Contract")
    if not shop.contracts.fulfill_contract(contract_id):
        raise bad_request(f"Not enough {contract.item_name} to fulfill this contract")
    return {"payout": contract.payout, "money": shop.inventory.money}


@router.post("/contracts/{contract_id}/reject")
async def reject_contract(contract_id: str, shop: ShopDep) -> dict:
    if not shop.contracts.reject_contract(contract_id):
        raise not_found("Contract")
    return {"message": "Contract rejected"}


# Workers
@router.get("/workers")
async def get_workers(shop: ShopDep) -> dict:
    return {
        "workers": [_worker(w) for w in shop.workers.hired_workers()],
        "wage_debt": shop.workers.wage_debt,
    }


@router.get("/workers/types")
async def get_worker_types(shop: ShopDep) -> dict:
    return {"types": shop.workers.available_worker_types()}


@router.post("/workers", status_code=status.HTTP_201_CREATED)
async def hire_worker(request: HireRequest, shop: ShopDep) -> dict:
    if request.type_id not in shop.workers.worker_types:
        raise not_found("Worker type")
    worker = shop.workers.hire_worker(request.type_id)
    if worker is None:
        raise bad_request("Not enough money to hire this worker")
    return _worker(worker)


@router.delete("/workers/{worker_id}")
async def fire_worker(worker_id: str, shop: ShopDep) -> dict:
    if not shop.workers.fire_worker(worker_id):
        raise not_found("Worker")
    return {"message": "Worker fired"}


@router.post("/workers/{worker_id}/task")
async def assign_task(worker_id: str, request: TaskRequest, shop: ShopDep) -> dict:
    worker = shop.workers.get_worker(worker_id)
    if worker is None:
        raise not_found("Worker")
    task = WorkerTask(kind=request.kind, item_id=request.item_id)
    if not shop.workers.assign_task(worker_id, task):
        raise bad_request(f"{worker.name} cannot take this task right now")
    return _worker(worker)


@router.post("/workers/{worker_id}/rest")
async def set_resting(worker_id: str, request: RestRequest, shop: ShopDep) -> dict:
    if not shop.workers.set_worker_resting(worker_id, request.resting):
        raise not_found("Worker")
    return _worker(shop.workers.get_worker(worker_id))


# Blueprints
@router.get("/blueprints")
async def get_blueprints(shop: ShopDep) -> dict:
    return {
        "available": shop.blueprints.available_blueprints(),
        "unlocked": [r.summary() for r in shop.blueprints.unlocked_blueprints()],
    }


@router.post("/blueprints/{item_id}/purchase")
async def purchase_blueprint(item_id: str, shop: ShopDep) -> dict:
    if item_id not in shop.blueprints.recipes:
        raise not_found("Blueprint")
    return purchase_or_400(shop.blueprints.purchase_blueprint(item_id))


# Purchasing
@router.post("/purchase/materials")
async def purchase_materials(request: MaterialOrderRequest, shop: ShopDep) -> dict:
    return purchase_or_400(shop.inventory.purchase_materials(request.order))


@router.post("/purchase/tools/{tool_id}")
async def purchase_tool(tool_id: str, shop: ShopDep) -> dict:
    if shop.inventory.tool_price(tool_id) is None:
        raise not_found("Tool")
    return purchase_or_400(shop.inventory.purchase_tool(tool_id))


# Random events
@router.get("/events")
async def get_events(shop: ShopDep) -> dict:
    return {
        "events": [
            {**e.to_dict(), "time_remaining": shop.events.event_time_remaining(e.instance_id)}
            for e in shop.events.active_events()
        ]
    }


@router.post("/events/{event_id}/trigger")
async def trigger_event(event_id: str, shop: ShopDep) -> dict:
    """
    Force a random event, still subject to its conditions.
    """
    event = shop.events.trigger_specific_event(event_id)
    if event is None:
        raise bad_request(f"Event {event_id} could not be triggered")
    return event.to_dict()
