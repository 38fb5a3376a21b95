"""
BlueprintRegistry - which recipes the shop is allowed to craft.
NO UI DEPENDENCIES.
"""
import logging
from typing import Dict, List, Mapping, Optional, Protocol, Set

from forge_tycoon.events import BlueprintUnlocked, EventBus, NotificationLevel

from .catalog import RECIPES, Recipe
from .inventory import PurchaseResult, ResourceLedger

logger = logging.getLogger(__name__)


class BlueprintView(Protocol):
    """The read-only capability handed to event eligibility checks."""

    def is_blueprint_unlocked(self, item_id: str) -> bool:
        ...


class BlueprintRegistry:
    """
    Set of unlocked recipe ids, seeded from the catalog.

    A recipe goes from locked to unlocked at most once. Purchases ask the
    ledger for money directly and unlock only when the debit succeeds.
    """

    def __init__(
        self,
        bus: EventBus,
        inventory: ResourceLedger,
        recipes: Mapping[str, Recipe] = RECIPES,
    ):
        self.bus = bus
        self.inventory = inventory
        self.recipes = recipes
        self._unlocked: Set[str] = {r.id for r in recipes.values() if r.unlocked}

    def is_unlocked(self, item_id: str) -> bool:
        return item_id in self._unlocked

    # Satisfies BlueprintView
    is_blueprint_unlocked = is_unlocked

    def unlock_blueprint(self, item_id: str) -> bool:
        """Unlock a recipe. Returns False if unknown or already unlocked."""
        recipe = self.recipes.get(item_id)
        if recipe is None:
            logger.error(f"Cannot unlock unknown blueprint: {item_id}")
            return False
        if item_id in self._unlocked:
            return False

        self._unlocked.add(item_id)
        logger.info(f"Blueprint unlocked: {item_id}")
        self.bus.publish(BlueprintUnlocked(item_id=item_id, item=recipe))
        self.bus.notify(NotificationLevel.SUCCESS, f"New item unlocked for crafting: {recipe.name}")
        return True

    def purchase_blueprint(self, item_id: str) -> PurchaseResult:
        if item_id in self._unlocked:
            self.bus.notify(NotificationLevel.INFO, "You already own this blueprint.")
            return PurchaseResult(False, "Blueprint already unlocked")

        recipe = self.recipes.get(item_id)
        if recipe is None:
            self.bus.notify(NotificationLevel.ERROR, "Invalid blueprint.")
            return PurchaseResult(False, "Unknown item")
        if not recipe.blueprint_price:
            self.bus.notify(NotificationLevel.ERROR, "This blueprint is not for sale.")
            return PurchaseResult(False, "Blueprint not for sale")

        result = self.inventory.debit(recipe.blueprint_price, reason=f"blueprint {item_id}")
        if not result:
            self.bus.notify(
                NotificationLevel.ERROR,
                f"Not enough money to buy the {recipe.name} blueprint (${recipe.blueprint_price:.2f}).",
            )
            return result

        self.unlock_blueprint(item_id)
        return result

    def available_blueprints(self) -> List[dict]:
        """Locked recipes that can be bought."""
        return [
            {
                "id": r.id,
                "name": r.name,
                "description": r.description,
                "price": r.blueprint_price,
                "category": r.category,
                "complexity": r.complexity,
            }
            for r in self.recipes.values()
            if r.id not in self._unlocked and r.blueprint_price
        ]

    def unlocked_blueprints(self) -> List[Recipe]:
        return [r for r in self.recipes.values() if r.id in self._unlocked]

    def blueprint_details(self, item_id: str) -> Optional[Dict]:
        recipe = self.recipes.get(item_id)
        if recipe is None:
            return None
        details = recipe.summary()
        details["unlocked"] = item_id in self._unlocked
        return details

    def serialize(self) -> dict:
        return {"unlocked": sorted(self._unlocked)}

    def deserialize(self, data: Optional[dict]) -> None:
        if not data or "unlocked" not in data:
            return
        unlocked = set()
        for item_id in data["unlocked"]:
            if item_id in self.recipes:
                unlocked.add(item_id)
            else:
                logger.warning(f"Ignoring unknown blueprint in save: {item_id}")
        self._unlocked = unlocked
