"""
Tests for the REST API.
"""

import pytest
from httpx import AsyncClient

from forge_tycoon.api.deps import set_shop


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    """Test the health check without a running tick engine."""
    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["tick_number"] == 0
    assert not data["tick_engine_running"]


@pytest.mark.asyncio
async def test_shop_state(client: AsyncClient):
    """Test the shop overview starts from the opening stock."""
    response = await client.get("/api/shop")
    assert response.status_code == 200
    data = response.json()
    assert data["money"] == 100.00
    assert data["coal_level"] == 100.0
    assert data["formatted_time"] == "Day 1, 8:00 AM"
    assert data["items"]["horseshoe"] == 2
    assert data["tools"]["hammer"]["current"] == 25
    assert data["current_job"] is None


@pytest.mark.asyncio
async def test_shop_not_initialized(client: AsyncClient):
    """Test shop routes answer 503 before the shop exists."""
    set_shop(None)
    response = await client.get("/api/shop")
    assert response.status_code == 503


# Crafting
@pytest.mark.asyncio
async def test_start_craft(client: AsyncClient):
    """Test starting a craft makes it the active job."""
    response = await client.post("/api/shop/craft", json={"item_id": "nail"})
    assert response.status_code == 201
    data = response.json()
    assert data["current_job"]["item_id"] == "nail"
    assert data["current_job"]["quantity"] == 10
    assert data["queue_length"] == 0

    response = await client.post("/api/shop/craft", json={"item_id": "hinge"})
    assert response.json()["queue_length"] == 1


@pytest.mark.asyncio
async def test_start_craft_locked_blueprint(client: AsyncClient):
    """Test crafting a locked item fails with the reason."""
    response = await client.post("/api/shop/craft", json={"item_id": "rifle"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Blueprint not unlocked"


@pytest.mark.asyncio
async def test_start_craft_bad_quantity(client: AsyncClient):
    """Test the request schema rejects a zero quantity."""
    response = await client.post("/api/shop/craft", json={"item_id": "nail", "quantity": 0})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_check_craft(client: AsyncClient):
    """Test the craft check reports why an item can't be made."""
    response = await client.get("/api/shop/craft/check/horseshoe")
    assert response.json() == {"can_craft": True, "reason": None}

    response = await client.get("/api/shop/craft/check/nail", params={"quantity": 1000})
    assert response.json() == {"can_craft": False, "reason": "Not enough materials"}


@pytest.mark.asyncio
async def test_cancel_craft(client: AsyncClient):
    """Test cancelling with and without an active job."""
    response = await client.post("/api/shop/craft/cancel")
    assert response.status_code == 400

    await client.post("/api/shop/craft", json={"item_id": "horseshoe"})
    response = await client.post("/api/shop/craft/cancel")
    assert response.status_code == 200

    state = (await client.get("/api/shop")).json()
    assert state["current_job"] is None
    assert state["materials"]["iron"] == 50


@pytest.mark.asyncio
async def test_pause_and_resume_craft(client: AsyncClient):
    """Test pausing and resuming the active job."""
    await client.post("/api/shop/craft", json={"item_id": "horseshoe"})

    response = await client.post("/api/shop/craft/pause")
    assert response.status_code == 200
    state = (await client.get("/api/shop")).json()
    assert state["current_job"]["state"] == "paused"

    response = await client.post("/api/shop/craft/resume")
    assert response.status_code == 200
    response = await client.post("/api/shop/craft/resume")
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_refill_full_forge(client: AsyncClient):
    """Test refilling a full forge is refused."""
    response = await client.post("/api/shop/forge/refill")
    assert response.status_code == 400


# Storefront
@pytest.mark.asyncio
async def test_storefront_listing_and_sale(client: AsyncClient):
    """Test listing stock and selling it at the shelf price."""
    response = await client.post("/api/shop/storefront/horseshoe", json={"quantity": 2})
    assert response.status_code == 200
    assert response.json()["items"][0]["quantity"] == 2

    response = await client.post("/api/shop/storefront/horseshoe/sell", json={"quantity": 1})
    assert response.status_code == 200
    data = response.json()
    assert data["price"] == 5.00
    assert data["money"] == 105.00

    listing = (await client.get("/api/shop/storefront")).json()["items"][0]
    assert listing["quantity"] == 1


@pytest.mark.asyncio
async def test_storefront_errors(client: AsyncClient):
    """Test storefront routes reject unknown items and missing stock."""
    response = await client.post("/api/shop/storefront/shovel", json={"quantity": 1})
    assert response.status_code == 404

    response = await client.post("/api/shop/storefront/horseshoe", json={"quantity": 5})
    assert response.status_code == 400

    response = await client.post("/api/shop/storefront/hinge/sell", json={"quantity": 1})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_storefront_price_override(client: AsyncClient):
    """Test an explicit price replaces the computed one."""
    await client.post("/api/shop/storefront/horseshoe", json={"quantity": 1})

    response = await client.put("/api/shop/storefront/horseshoe/price", json={"price": 9.5})
    assert response.status_code == 200
    assert response.json()["price"] == 9.5

    response = await client.put("/api/shop/storefront/nail/price", json={"price": 1.0})
    assert response.status_code == 404


# Contracts
@pytest.mark.asyncio
async def test_contracts(client: AsyncClient):
    """Test listing contracts and settling unknown ones."""
    response = await client.get("/api/shop/contracts")
    assert response.json() == {"standard": [], "special": []}

    response = await client.post("/api/shop/contracts/nope/fulfill")
    assert response.status_code == 404

    response = await client.post("/api/shop/contracts/nope/reject")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_blueprint_purchase(client: AsyncClient):
    """Test buying a blueprint unlocks it once."""
    response = await client.post("/api/shop/blueprints/bullets/purchase")
    assert response.status_code == 200
    assert response.json()["cost"] == 25.00

    blueprints = (await client.get("/api/shop/blueprints")).json()
    assert "bullets" in [b["id"] for b in blueprints["unlocked"]]

    response = await client.post("/api/shop/blueprints/bullets/purchase")
    assert response.status_code == 400

    response = await client.post("/api/shop/blueprints/shovel/purchase")
    assert response.status_code == 404


# Workers
@pytest.mark.asyncio
async def test_hire_and_fire_worker(client: AsyncClient):
    """Test hiring charges the hire cost and firing removes the worker."""
    response = await client.post("/api/shop/workers", json={"type_id": "apprentice"})
    assert response.status_code == 201
    worker = response.json()
    assert worker["type_name"] == "Apprentice"
    assert worker["status_label"] == "Idle"

    state = (await client.get("/api/shop")).json()
    assert state["money"] == 80.00

    workers = (await client.get("/api/shop/workers")).json()
    assert [w["id"] for w in workers["workers"]] == [worker["id"]]

    response = await client.delete(f"/api/shop/workers/{worker['id']}")
    assert response.status_code == 200
    response = await client.delete(f"/api/shop/workers/{worker['id']}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_hire_unknown_type(client: AsyncClient):
    """Test hiring an unknown worker type is a 404."""
    response = await client.post("/api/shop/workers", json={"type_id": "wizard"})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_hire_without_funds(client: AsyncClient):
    """Test a hire the shop can't afford is refused."""
    await client.post("/api/shop/workers", json={"type_id": "master"})
    response = await client.post("/api/shop/workers", json={"type_id": "master"})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_worker_task_and_rest(client: AsyncClient):
    """Test assigning a task and sending the worker to rest."""
    worker = (await client.post("/api/shop/workers", json={"type_id": "journeyman"})).json()

    response = await client.post(
        f"/api/shop/workers/{worker['id']}/task",
        json={"kind": "coal"},
    )
    assert response.status_code == 200
    assert response.json()["status_label"] == "Monitoring coal"

    response = await client.post(
        f"/api/shop/workers/{worker['id']}/rest",
        json={"resting": True},
    )
    assert response.status_code == 200

    response = await client.post(
        f"/api/shop/workers/{worker['id']}/task",
        json={"kind": "crafting", "item_id": "nail"},
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_worker_types(client: AsyncClient):
    """Test the hiring menu lists every worker type."""
    response = await client.get("/api/shop/workers/types")
    ids = {t["id"] for t in response.json()["types"]}
    assert ids == {"apprentice", "journeyman", "master"}


# Purchasing
@pytest.mark.asyncio
async def test_purchase_materials(client: AsyncClient):
    """Test buying materials at list price."""
    response = await client.post("/api/shop/purchase/materials", json={"order": {"iron": 2}})
    assert response.status_code == 200
    assert response.json() == {"success": True, "cost": 5.00}

    state = (await client.get("/api/shop")).json()
    assert state["materials"]["iron"] == 52
    assert state["money"] == 95.00


@pytest.mark.asyncio
async def test_purchase_unknown_material(client: AsyncClient):
    """Test an order naming an unknown material is refused."""
    response = await client.post("/api/shop/purchase/materials", json={"order": {"mithril": 1}})
    assert response.status_code == 400
    assert "mithril" in response.json()["detail"]


@pytest.mark.asyncio
async def test_purchase_unknown_tool(client: AsyncClient):
    """Test buying a tool that doesn't exist is a 404."""
    response = await client.post("/api/shop/purchase/tools/lightsaber")
    assert response.status_code == 404


# Random events
@pytest.mark.asyncio
async def test_trigger_event(client: AsyncClient):
    """Test forcing an event and listing it as active."""
    response = await client.post("/api/shop/events/iron_shipment/trigger")
    assert response.status_code == 200
    assert response.json()["name"] == "Iron Shipment"

    response = await client.post("/api/shop/events/iron_shipment/trigger")
    assert response.status_code == 400

    events = (await client.get("/api/shop/events")).json()["events"]
    assert len(events) == 1
    assert events[0]["time_remaining"]["minutes"] == 15


@pytest.mark.asyncio
async def test_notifications(client: AsyncClient):
    """Test recent notifications are exposed."""
    await client.post("/api/shop/craft", json={"item_id": "rifle"})
    response = await client.get("/api/shop/notifications", params={"limit": 1})
    notifications = response.json()["notifications"]
    assert notifications[0]["level"] == "error"
    assert "rifle" in notifications[0]["message"].lower()


# Saves
@pytest.mark.asyncio
async def test_save_load_and_delete(client: AsyncClient):
    """Test the slot lifecycle through the API."""
    response = await client.post("/api/saves/slot1")
    assert response.status_code == 201

    await client.post("/api/shop/purchase/materials", json={"order": {"iron": 2}})

    response = await client.post("/api/saves/slot1/load")
    assert response.status_code == 200
    state = (await client.get("/api/shop")).json()
    assert state["money"] == 100.00

    saves = (await client.get("/api/saves")).json()["saves"]
    assert [s["slot"] for s in saves] == ["slot1"]

    response = await client.delete("/api/saves/slot1")
    assert response.status_code == 204
    response = await client.delete("/api/saves/slot1")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_load_missing_save(client: AsyncClient):
    """Test loading a missing slot is a 404."""
    response = await client.post("/api/saves/nothing-here/load")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_export_and_import_save(client: AsyncClient):
    """Test exported text can be imported into a new slot."""
    await client.post("/api/saves/slot1")

    response = await client.get("/api/saves/slot1/export")
    assert response.status_code == 200
    text = response.text

    response = await client.post("/api/saves/copy/import", json={"data": text})
    assert response.status_code == 201

    response = await client.post("/api/saves/broken/import", json={"data": "[1, 2]"})
    assert response.status_code == 400

    response = await client.get("/api/saves/nothing-here/export")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_configure_autosave(client: AsyncClient):
    """Test autosave settings are clamped to the minimum interval."""
    response = await client.put(
        "/api/saves/autosave",
        json={"enabled": False, "interval_seconds": 10},
    )
    assert response.status_code == 200
    assert response.json() == {"enabled": False, "interval_seconds": 30}


# Tick engine
@pytest.mark.asyncio
async def test_tick_status_without_engine(client: AsyncClient):
    """Test the tick status before the engine has started."""
    response = await client.get("/api/tick/status")
    assert response.status_code == 200
    data = response.json()
    assert data["tick_number"] == 0
    assert not data["is_running"]


@pytest.mark.asyncio
async def test_tick_controls_without_engine(client: AsyncClient):
    """Test tick controls answer 503 before the engine has started."""
    response = await client.post("/api/tick/pause")
    assert response.status_code == 503
