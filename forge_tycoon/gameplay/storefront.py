"""
Storefront - listed goods, pricing and simulated walk-in customers.
NO UI DEPENDENCIES.
"""
import logging
import math
import random
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Mapping, Optional

from forge_tycoon.events import (
    EventBus,
    ItemCrafted,
    ItemSold,
    NotificationLevel,
    StorefrontUpdated,
)

from .catalog import RECIPES, Recipe
from .constants import (
    BASE_CUSTOMER_CHANCE,
    CUSTOMER_CHECK_INTERVAL,
    MAX_PURCHASE_FACTOR,
    PURCHASE_CHANCE_FACTOR,
)
from .inventory import ResourceLedger
from .timing import Now, TimedModifier, from_iso, to_iso, utc_now

logger = logging.getLogger(__name__)


@dataclass
class Listing:
    item_id: str
    quantity: int
    price: Optional[float] = None      # explicit override, bypasses modifiers
    last_sold: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "item_id": self.item_id,
            "quantity": self.quantity,
            "price": self.price,
            "last_sold": to_iso(self.last_sold),
        }


class Storefront:
    """
    Goods for sale and the customers who buy them.

    Every CUSTOMER_CHECK_INTERVAL ticks one customer may walk in. They pick
    an item weighted by demand and may buy a demand-scaled quantity.
    """

    def __init__(
        self,
        bus: EventBus,
        inventory: ResourceLedger,
        recipes: Mapping[str, Recipe] = RECIPES,
        rng: Optional[random.Random] = None,
        now: Now = utc_now,
    ):
        self.bus = bus
        self.inventory = inventory
        self.recipes = recipes
        self.rng = rng or random.Random()
        self.now = now

        self.listings: Dict[str, Listing] = {}
        self.base_customer_chance = BASE_CUSTOMER_CHANCE
        self.customer_check_interval = CUSTOMER_CHECK_INTERVAL
        self.customer_timer = 0

        self.demand_multipliers: Dict[str, TimedModifier] = {}
        self.global_modifier = 1.0
        self.category_modifiers: Dict[str, float] = {}
        self.item_modifiers: Dict[str, float] = {}

        bus.subscribe(ItemCrafted, self._on_item_crafted)

    # =========================================================================
    # STOCK
    # =========================================================================

    def add_item_to_storefront(self, item_id: str, quantity: int = 1) -> bool:
        """Move crafted stock from the ledger onto the shelf."""
        if item_id not in self.recipes:
            self.bus.notify(NotificationLevel.ERROR, f"Unknown item: {item_id}")
            return False
        if quantity <= 0 or not self.inventory.remove_item(item_id, quantity):
            self.bus.notify(NotificationLevel.ERROR, "Not enough items in inventory.")
            return False

        listing = self.listings.get(item_id)
        if listing is None:
            self.listings[item_id] = Listing(item_id=item_id, quantity=quantity)
        else:
            listing.quantity += quantity
        self._publish_update()
        return True

    def remove_item_from_storefront(self, item_id: str, quantity: int = 1) -> bool:
        """Take stock off the shelf and back into the ledger."""
        listing = self.listings.get(item_id)
        if listing is None or quantity <= 0 or listing.quantity < quantity:
            self.bus.notify(NotificationLevel.ERROR, "Not enough items in the storefront.")
            return False

        listing.quantity -= quantity
        if listing.quantity == 0:
            del self.listings[item_id]
        self.inventory.add_item(item_id, quantity)
        self._publish_update()
        return True

    def sell_item(self, item_id: str, quantity: int = 1) -> bool:
        """Sell listed stock at the current price."""
        listing = self.listings.get(item_id)
        if listing is None or quantity <= 0 or listing.quantity < quantity:
            return False

        price = self.item_price(item_id)
        total = price * quantity

        listing.quantity -= quantity
        listing.last_sold = self.now()
        if listing.quantity == 0:
            del self.listings[item_id]

        self.inventory.add_money(total)
        self.bus.publish(ItemSold(item_id=item_id, price=price, quantity=quantity))
        name = self.recipes[item_id].name
        self.bus.notify(NotificationLevel.SUCCESS, f"Sold {quantity}x {name} for ${total:.2f}")
        self._publish_update()
        return True

    def _on_item_crafted(self, event: ItemCrafted) -> None:
        if event.list_in_storefront:
            self.add_item_to_storefront(event.item_id, event.quantity)

    # =========================================================================
    # PRICING
    # =========================================================================

    def item_price(self, item_id: str) -> float:
        """
        Asking price for one unit.

        base * global * category * item modifiers, unless the listing has
        an explicit price, which replaces the whole chain.
        """
        listing = self.listings.get(item_id)
        if listing is not None and listing.price is not None:
            return listing.price

        recipe = self.recipes.get(item_id)
        if recipe is None:
            return 0.0

        price = recipe.base_price * self.global_modifier
        price *= self.category_modifiers.get(recipe.category, 1.0)
        price *= self.item_modifiers.get(item_id, 1.0)
        return price

    def set_item_price(self, item_id: str, price: Optional[float]) -> bool:
        """Override (or with None, clear) the asking price of a listing."""
        listing = self.listings.get(item_id)
        if listing is None or (price is not None and price < 0):
            return False
        listing.price = price
        self._publish_update()
        return True

    def set_price_modifier(self, kind: str, value: float, target: Optional[str] = None) -> bool:
        """kind is 'global', 'category' (target=category) or 'item' (target=item id)."""
        if value < 0:
            return False
        if kind == "global":
            self.global_modifier = value
        elif kind == "category" and target:
            self.category_modifiers[target] = value
        elif kind == "item" and target:
            self.item_modifiers[target] = value
        else:
            logger.warning(f"Ignoring price modifier of kind {kind!r} with target {target!r}")
            return False
        self._publish_update()
        return True

    # =========================================================================
    # DEMAND
    # =========================================================================

    def set_demand_multiplier(self, item_id: str, multiplier: float, expiry: datetime) -> None:
        self.demand_multipliers[item_id] = TimedModifier(multiplier, expiry)

    def demand_multiplier(self, item_id: str) -> float:
        modifier = self.demand_multipliers.get(item_id)
        if modifier and modifier.is_active(self.now()):
            return modifier.multiplier
        return 1.0

    def update_demand_multipliers(self) -> None:
        """Drop demand boosts whose expiry has passed."""
        now = self.now()
        for item_id, modifier in list(self.demand_multipliers.items()):
            if not modifier.is_active(now):
                del self.demand_multipliers[item_id]

    # =========================================================================
    # UPDATE LOOP
    # =========================================================================

    def update(self) -> None:
        self.customer_timer += 1
        self.update_demand_multipliers()

        if self.customer_timer >= self.customer_check_interval:
            self.customer_timer = 0
            self.check_for_customers()

    def check_for_customers(self) -> bool:
        """Roll one customer visit. Returns True if something was bought."""
        in_stock = [i for i, listing in self.listings.items() if listing.quantity > 0]
        if not in_stock:
            return False

        if self.rng.random() >= self.base_customer_chance / 100:
            return False

        item_id = self._pick_item(in_stock)
        demand = self.demand_multiplier(item_id)
        if self.rng.random() >= PURCHASE_CHANCE_FACTOR * demand:
            return False

        stock = self.listings[item_id].quantity
        wanted = math.floor(self.rng.random() * MAX_PURCHASE_FACTOR * demand) + 1
        quantity = max(1, min(stock, wanted))
        return self.sell_item(item_id, quantity)

    def _pick_item(self, candidates: List[str]) -> str:
        """Demand-weighted choice; uniform when all weights are zero."""
        weights = [self.demand_multiplier(i) for i in candidates]
        total = sum(weights)
        if total <= 0:
            return self.rng.choice(candidates)

        remaining = self.rng.random() * total
        for item_id, weight in zip(candidates, weights):
            remaining -= weight
            if remaining <= 0:
                return item_id
        return candidates[0]

    # =========================================================================
    # STATE QUERIES
    # =========================================================================

    def storefront_items(self) -> List[dict]:
        items = []
        for item_id, listing in self.listings.items():
            recipe = self.recipes.get(item_id)
            items.append({
                "id": item_id,
                "name": recipe.name if recipe else item_id,
                "description": recipe.description if recipe else "",
                "category": recipe.category if recipe else None,
                "quantity": listing.quantity,
                "price": self.item_price(item_id),
                "base_price": recipe.base_price if recipe else 0.0,
                "demand": self.demand_multiplier(item_id),
                "last_sold": to_iso(listing.last_sold),
            })
        return items

    def _publish_update(self) -> None:
        self.bus.publish(StorefrontUpdated(
            listings={i: listing.to_dict() for i, listing in self.listings.items()}
        ))

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def serialize(self) -> dict:
        return {
            "listings": {i: listing.to_dict() for i, listing in self.listings.items()},
            "customer_timer": self.customer_timer,
            "base_customer_chance": self.base_customer_chance,
            "demand_multipliers": {i: m.to_dict() for i, m in self.demand_multipliers.items()},
            "price_modifiers": {
                "global": self.global_modifier,
                "by_category": dict(self.category_modifiers),
                "by_item": dict(self.item_modifiers),
            },
        }

    def deserialize(self, data: Optional[dict]) -> None:
        if not data:
            return

        self.listings = {}
        for item_id, raw in (data.get("listings") or {}).items():
            if item_id not in self.recipes:
                logger.warning(f"Skipping storefront listing for unknown item {item_id}")
                continue
            quantity = int(raw.get("quantity", 0))
            if quantity <= 0:
                continue
            self.listings[item_id] = Listing(
                item_id=item_id,
                quantity=quantity,
                price=raw.get("price"),
                last_sold=from_iso(raw.get("last_sold")),
            )

        self.customer_timer = int(data.get("customer_timer", 0))
        self.base_customer_chance = data.get("base_customer_chance", self.base_customer_chance)

        self.demand_multipliers = {}
        for item_id, raw in (data.get("demand_multipliers") or {}).items():
            try:
                self.demand_multipliers[item_id] = TimedModifier.from_dict(raw)
            except (KeyError, TypeError, ValueError):
                logger.warning(f"Skipping malformed demand multiplier for {item_id}")

        modifiers = data.get("price_modifiers") or {}
        self.global_modifier = float(modifiers.get("global", 1.0))
        self.category_modifiers = dict(modifiers.get("by_category") or {})
        self.item_modifiers = dict(modifiers.get("by_item") or {})

        self._publish_update()
