"""
ResourceLedger - materials, crafted goods, tools and money.
NO UI DEPENDENCIES.

Primitive operations either succeed completely and publish an update event,
or return False with no mutation and nothing published. Player-facing
purchases additionally publish a notification describing the outcome.
"""
import logging
from dataclasses import dataclass
from typing import Dict, Mapping, Optional

from forge_tycoon.events import (
    EventBus,
    InventoryUpdated,
    MoneyUpdated,
    NotificationLevel,
    ToolBroken,
)

from .catalog import MATERIALS, TOOLS
from .constants import (
    DEFAULT_TOOL_DURABILITY,
    STARTING_ITEMS,
    STARTING_MATERIALS,
    STARTING_MONEY,
    STARTING_TOOLS,
)
from .timing import Now, TimedModifier, utc_now

logger = logging.getLogger(__name__)


@dataclass
class ToolRecord:
    """Remaining uses of one owned tool. Never stored at zero."""
    uses: int
    max_uses: int

    @property
    def percentage(self) -> float:
        return self.uses / self.max_uses * 100


@dataclass
class PurchaseResult:
    """Outcome of anything that spends money."""
    success: bool
    reason: Optional[str] = None
    cost: float = 0.0

    def __bool__(self) -> bool:
        return self.success


INSUFFICIENT_FUNDS = "Insufficient funds"


def round_money(value: float) -> float:
    return round(value, 2)


class ResourceLedger:
    """
    Owns every countable resource of the shop.

    Also hosts the purchase pricing surface: timed material price
    multipliers and a global tool price multiplier set by random events.
    """

    def __init__(self, bus: EventBus, now: Now = utc_now):
        self.bus = bus
        self.now = now

        self._materials: Dict[str, float] = dict(STARTING_MATERIALS)
        self._items: Dict[str, int] = dict(STARTING_ITEMS)
        self._tools: Dict[str, ToolRecord] = {
            tool_id: ToolRecord(uses, max_uses)
            for tool_id, (uses, max_uses) in STARTING_TOOLS.items()
        }
        self._money: float = STARTING_MONEY

        self._material_price_modifiers: Dict[str, TimedModifier] = {}
        self._tool_price_modifier: Optional[TimedModifier] = None

    # =========================================================================
    # MATERIALS
    # =========================================================================

    def add_material(self, material_id: str, amount: float) -> bool:
        if amount <= 0:
            return False
        self._materials[material_id] = self._materials.get(material_id, 0) + amount
        self.bus.publish(InventoryUpdated())
        return True

    def remove_material(self, material_id: str, amount: float) -> bool:
        """Debit a material. Fails without mutation if stock is short."""
        if amount <= 0:
            return False
        available = self._materials.get(material_id, 0)
        if available < amount:
            return False
        self._materials[material_id] = available - amount
        self.bus.publish(InventoryUpdated())
        return True

    def get_material(self, material_id: str) -> float:
        return self._materials.get(material_id, 0)

    def has_materials(self, required: Mapping[str, float]) -> bool:
        return all(self._materials.get(m, 0) >= amount for m, amount in required.items())

    def consume_materials(self, required: Mapping[str, float]) -> bool:
        """All-or-nothing debit of several materials."""
        if not self.has_materials(required):
            return False
        for material_id, amount in required.items():
            if amount > 0:
                self._materials[material_id] = self._materials.get(material_id, 0) - amount
        self.bus.publish(InventoryUpdated())
        return True

    def get_materials(self) -> Dict[str, float]:
        return dict(self._materials)

    # =========================================================================
    # CRAFTED ITEMS
    # =========================================================================

    def add_item(self, item_id: str, quantity: int = 1) -> bool:
        if quantity <= 0:
            return False
        self._items[item_id] = self._items.get(item_id, 0) + quantity
        self.bus.publish(InventoryUpdated())
        return True

    def remove_item(self, item_id: str, quantity: int = 1) -> bool:
        if quantity <= 0:
            return False
        available = self._items.get(item_id, 0)
        if available < quantity:
            return False
        remaining = available - quantity
        if remaining == 0:
            del self._items[item_id]
        else:
            self._items[item_id] = remaining
        self.bus.publish(InventoryUpdated())
        return True

    def get_item_count(self, item_id: str) -> int:
        return self._items.get(item_id, 0)

    def has_items(self, required: Mapping[str, int]) -> bool:
        return all(self._items.get(i, 0) >= quantity for i, quantity in required.items())

    def get_items(self) -> Dict[str, int]:
        return dict(self._items)

    # =========================================================================
    # TOOLS
    # =========================================================================

    def add_or_replace_tool(self, tool_id: str, max_uses: Optional[int] = None) -> None:
        """Install a fresh tool at full durability."""
        if max_uses is None:
            spec = TOOLS.get(tool_id)
            max_uses = spec.durability if spec else DEFAULT_TOOL_DURABILITY
        self._tools[tool_id] = ToolRecord(uses=max_uses, max_uses=max_uses)
        self.bus.publish(InventoryUpdated())

    def use_tool(self, tool_id: str, amount: int = 1) -> bool:
        """Wear a tool down. A tool that reaches zero uses is destroyed."""
        record = self._tools.get(tool_id)
        if record is None:
            return False

        record.uses -= amount
        if record.uses <= 0:
            del self._tools[tool_id]
            logger.info(f"Tool broke: {tool_id}")
            self.bus.publish(ToolBroken(tool_id=tool_id))
        self.bus.publish(InventoryUpdated())
        return True

    def restore_tool(self, tool_id: str, amount: int) -> Optional[ToolRecord]:
        """Add uses back to an owned tool, clamped to its maximum."""
        record = self._tools.get(tool_id)
        if record is None or amount <= 0:
            return None
        record.uses = min(record.uses + amount, record.max_uses)
        self.bus.publish(InventoryUpdated())
        return ToolRecord(record.uses, record.max_uses)

    def has_tool(self, tool_id: str) -> bool:
        return tool_id in self._tools

    def tool_durability_percentage(self, tool_id: str) -> float:
        """Percent of uses left, or -1 when the tool isn't owned."""
        record = self._tools.get(tool_id)
        return record.percentage if record else -1

    def get_tools(self) -> Dict[str, ToolRecord]:
        return {tool_id: ToolRecord(r.uses, r.max_uses) for tool_id, r in self._tools.items()}

    # =========================================================================
    # MONEY
    # =========================================================================

    @property
    def money(self) -> float:
        return self._money

    def add_money(self, amount: float) -> bool:
        if amount <= 0:
            return False
        self._money = round_money(self._money + amount)
        self.bus.publish(MoneyUpdated(balance=self._money))
        return True

    def remove_money(self, amount: float) -> bool:
        if amount <= 0 or self._money < amount:
            return False
        self._money = round_money(self._money - amount)
        self.bus.publish(MoneyUpdated(balance=self._money))
        return True

    def debit(self, amount: float, reason: str = "") -> PurchaseResult:
        """Direct synchronous money request used by other components."""
        if amount <= 0:
            return PurchaseResult(False, "Invalid amount", amount)
        if not self.remove_money(amount):
            logger.debug(f"Debit of {amount:.2f} refused ({reason or 'no reason'})")
            return PurchaseResult(False, INSUFFICIENT_FUNDS, amount)
        return PurchaseResult(True, None, amount)

    # =========================================================================
    # PURCHASE PRICING
    # =========================================================================

    def set_material_price_multiplier(self, material_id: str, multiplier: float, expiry) -> None:
        self._material_price_modifiers[material_id] = TimedModifier(multiplier, expiry)

    def set_tool_price_multiplier(self, multiplier: float, expiry) -> None:
        self._tool_price_modifier = TimedModifier(multiplier, expiry)

    def material_price(self, material_id: str) -> Optional[float]:
        """Current unit price of a material, or None if it isn't sold."""
        material = MATERIALS.get(material_id)
        if material is None:
            return None
        modifier = self._material_price_modifiers.get(material_id)
        if modifier and modifier.is_active(self.now()):
            return material.base_price * modifier.multiplier
        return material.base_price

    def tool_price(self, tool_id: str) -> Optional[float]:
        spec = TOOLS.get(tool_id)
        if spec is None:
            return None
        modifier = self._tool_price_modifier
        if modifier and modifier.is_active(self.now()):
            return spec.base_price * modifier.multiplier
        return spec.base_price

    def purchase_materials(self, order: Mapping[str, float]) -> PurchaseResult:
        """Buy several materials at current prices in one payment."""
        cost = 0.0
        for material_id, amount in order.items():
            price = self.material_price(material_id)
            if price is None:
                self.bus.notify(NotificationLevel.ERROR, f"Unknown material: {material_id}")
                return PurchaseResult(False, f"Unknown material: {material_id}")
            if amount <= 0:
                return PurchaseResult(False, "Amounts must be positive")
            cost += price * amount
        cost = round_money(cost)

        if not order or cost <= 0:
            return PurchaseResult(False, "Nothing to purchase")

        if not self.remove_money(cost):
            self.bus.notify(NotificationLevel.ERROR, "Not enough money to purchase materials.")
            return PurchaseResult(False, INSUFFICIENT_FUNDS, cost)

        for material_id, amount in order.items():
            self._materials[material_id] = self._materials.get(material_id, 0) + amount
        self.bus.publish(InventoryUpdated())
        self.bus.notify(NotificationLevel.SUCCESS, f"Purchased materials for ${cost:.2f}")
        return PurchaseResult(True, None, cost)

    def purchase_tool(self, tool_id: str) -> PurchaseResult:
        price = self.tool_price(tool_id)
        if price is None:
            self.bus.notify(NotificationLevel.ERROR, f"Unknown tool: {tool_id}")
            return PurchaseResult(False, f"Unknown tool: {tool_id}")

        cost = round_money(price)
        if not self.remove_money(cost):
            self.bus.notify(NotificationLevel.ERROR, "Not enough money to purchase this tool.")
            return PurchaseResult(False, INSUFFICIENT_FUNDS, cost)

        self.add_or_replace_tool(tool_id)
        self.bus.notify(NotificationLevel.SUCCESS, f"Purchased new {tool_id} for ${cost:.2f}")
        return PurchaseResult(True, None, cost)

    def update(self) -> None:
        """Drop expired price modifiers."""
        now = self.now()
        for material_id, modifier in list(self._material_price_modifiers.items()):
            if not modifier.is_active(now):
                del self._material_price_modifiers[material_id]
                self.bus.notify(NotificationLevel.INFO, f"{material_id.capitalize()} prices are back to normal.")
        if self._tool_price_modifier and not self._tool_price_modifier.is_active(now):
            self._tool_price_modifier = None
            self.bus.notify(NotificationLevel.INFO, "Tool prices are back to normal.")

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def serialize(self) -> dict:
        return {
            "materials": dict(self._materials),
            "items": dict(self._items),
            "tools": {
                tool_id: {"uses": r.uses, "max_uses": r.max_uses}
                for tool_id, r in self._tools.items()
            },
            "money": self._money,
            "material_price_modifiers": {
                m: modifier.to_dict() for m, modifier in self._material_price_modifiers.items()
            },
            "tool_price_modifier": (
                self._tool_price_modifier.to_dict() if self._tool_price_modifier else None
            ),
        }

    def deserialize(self, data: Optional[dict]) -> None:
        if not data:
            return

        if "materials" in data:
            self._materials = {k: float(v) for k, v in data["materials"].items() if v >= 0}
        if "items" in data:
            self._items = {k: int(v) for k, v in data["items"].items() if v > 0}
        if "tools" in data:
            self._tools = {}
            for tool_id, record in data["tools"].items():
                try:
                    uses, max_uses = int(record["uses"]), int(record["max_uses"])
                except (KeyError, TypeError, ValueError):
                    logger.warning(f"Skipping malformed tool record for {tool_id}: {record!r}")
                    continue
                if 0 < uses <= max_uses:
                    self._tools[tool_id] = ToolRecord(uses, max_uses)
        if "money" in data:
            self._money = round_money(float(data["money"]))

        self._material_price_modifiers = {}
        for material_id, raw in (data.get("material_price_modifiers") or {}).items():
            try:
                self._material_price_modifiers[material_id] = TimedModifier.from_dict(raw)
            except (KeyError, TypeError, ValueError):
                logger.warning(f"Skipping malformed price modifier for {material_id}")
        self._tool_price_modifier = None
        raw_tool = data.get("tool_price_modifier")
        if raw_tool:
            try:
                self._tool_price_modifier = TimedModifier.from_dict(raw_tool)
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed tool price modifier")

        self.bus.publish(InventoryUpdated())
        self.bus.publish(MoneyUpdated(balance=self._money))
