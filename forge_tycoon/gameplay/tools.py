"""
ToolWear - which tools a craft needs and how hard it wears them.
NO UI DEPENDENCIES.
"""
import logging
from typing import Dict, List, Optional, Tuple

from forge_tycoon.events import EventBus, ToolRepaired

from .catalog import Recipe
from .constants import (
    DEFAULT_CATEGORY,
    DEFAULT_COMPLEXITY,
    FALLBACK_TOOLS,
    TOOL_REQUIREMENTS,
    TOOL_WEAR,
)
from .inventory import ResourceLedger

logger = logging.getLogger(__name__)


class ToolWear:
    """
    Maps item category to required tools and complexity to wear.

    Requirements are by category, not by the recipe's own tool list:
    an item in an unmapped category (e.g. "tool") needs only a hammer.
    """

    def __init__(self, bus: EventBus, inventory: ResourceLedger):
        self.bus = bus
        self.inventory = inventory
        self.requirements: Dict[str, Tuple[str, ...]] = dict(TOOL_REQUIREMENTS)
        self.wear: Dict[str, int] = dict(TOOL_WEAR)

    def required_tools(self, item: Recipe) -> Tuple[str, ...]:
        category = item.category or DEFAULT_CATEGORY
        return self.requirements.get(category, FALLBACK_TOOLS)

    def wear_amount(self, item: Recipe) -> int:
        return self.wear.get(item.complexity or DEFAULT_COMPLEXITY, 1)

    def check_tools_for_item(self, item: Recipe) -> bool:
        return not self.missing_tools(item)

    def missing_tools(self, item: Recipe) -> List[str]:
        return [t for t in self.required_tools(item) if not self.inventory.has_tool(t)]

    def use_tools_for_item(self, item: Recipe) -> None:
        """Wear every required tool that is still owned."""
        amount = self.wear_amount(item)
        for tool_id in self.required_tools(item):
            if not self.inventory.has_tool(tool_id):
                continue
            if not self.inventory.use_tool(tool_id, amount):
                logger.warning(f"Failed to wear tool {tool_id} while finishing {item.id}")

    def durability_details(self) -> Dict[str, dict]:
        return {
            tool_id: {
                "percentage": record.percentage,
                "current": record.uses,
                "max": record.max_uses,
            }
            for tool_id, record in self.inventory.get_tools().items()
        }

    def repair_tool(self, tool_id: str, amount: int) -> bool:
        """Restore uses to an owned tool, never beyond its maximum."""
        record = self.inventory.restore_tool(tool_id, amount)
        if record is None:
            return False
        self.bus.publish(ToolRepaired(tool_id=tool_id, uses=record.uses, max_uses=record.max_uses))
        return True

    def serialize(self) -> dict:
        return {
            "requirements": {k: list(v) for k, v in self.requirements.items()},
            "wear": dict(self.wear),
        }

    def deserialize(self, data: Optional[dict]) -> None:
        if not data:
            return
        if data.get("requirements"):
            self.requirements = {k: tuple(v) for k, v in data["requirements"].items()}
        if data.get("wear"):
            self.wear = {k: int(v) for k, v in data["wear"].items()}
