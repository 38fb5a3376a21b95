"""
Forge - the coal gauge that gates all production.
NO UI DEPENDENCIES.
"""
import logging
from typing import Optional

from forge_tycoon.events import (
    CoalConsumed,
    CoalLow,
    CoalRefilled,
    CoalUpdated,
    EventBus,
    NotificationLevel,
)

from .constants import (
    COAL_DEPLETION_RATE,
    COAL_LOW_THRESHOLD,
    COAL_MAX_LEVEL,
    COAL_MIN_CRAFTING_LEVEL,
    COAL_PER_REFILL,
)
from .inventory import ResourceLedger

logger = logging.getLogger(__name__)


class Forge:
    """
    A 0-100 fuel gauge that burns down every tick.

    At or below the low threshold it refills itself from the ledger's coal
    when it can; otherwise it warns once per depletion episode. The warning
    re-arms on refill.
    """

    def __init__(self, bus: EventBus, inventory: ResourceLedger):
        self.bus = bus
        self.inventory = inventory

        self.level = COAL_MAX_LEVEL
        self.depletion_rate = COAL_DEPLETION_RATE
        self.low_threshold = COAL_LOW_THRESHOLD
        self.coal_per_refill = COAL_PER_REFILL
        self.has_warned_low = False

    def update(self) -> None:
        """Passive burn for one tick."""
        if self.level > 0:
            self.level = max(0.0, self.level - self.depletion_rate)

        if self.level <= self.low_threshold:
            if self.can_refill():
                self.refill()
                return
            self._check_low()

        self.bus.publish(CoalUpdated(level=self.level))

    def refill(self, by: Optional[str] = None) -> bool:
        """Top the gauge up to 100 using one batch of coal from the ledger."""
        if self.level >= COAL_MAX_LEVEL:
            self.bus.notify(NotificationLevel.INFO, "The forge is already full.")
            return False
        if not self.inventory.remove_material("coal", self.coal_per_refill):
            self.bus.notify(
                NotificationLevel.ERROR,
                f"Not enough coal to refill the forge (need {self.coal_per_refill}).",
            )
            return False

        self.level = COAL_MAX_LEVEL
        self.has_warned_low = False
        if by:
            self.bus.notify(NotificationLevel.INFO, f"{by} has refilled the forge.")
        self.bus.publish(CoalRefilled(level=self.level, refilled_by=by))
        self.bus.publish(CoalUpdated(level=self.level))
        return True

    def consume_coal(self, amount: float) -> bool:
        """Explicit draw-down for a production step."""
        if amount <= 0 or self.level < amount:
            return False

        self.level -= amount
        self._check_low()
        self.bus.publish(CoalConsumed(amount=amount, level=self.level))
        self.bus.publish(CoalUpdated(level=self.level))
        return True

    def has_enough_coal(self, min_level: float = COAL_MIN_CRAFTING_LEVEL) -> bool:
        return self.level >= min_level

    def can_refill(self) -> bool:
        return (
            self.level < COAL_MAX_LEVEL
            and self.inventory.get_material("coal") >= self.coal_per_refill
        )

    def _check_low(self) -> None:
        if self.level <= self.low_threshold and not self.has_warned_low:
            self.has_warned_low = True
            logger.info(f"Forge coal low ({self.level:.1f}%)")
            self.bus.publish(CoalLow(level=self.level))
            self.bus.notify(NotificationLevel.WARNING, "Coal is running low! Consider refilling.")

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def serialize(self) -> dict:
        return {
            "level": self.level,
            "depletion_rate": self.depletion_rate,
            "low_threshold": self.low_threshold,
            "has_warned_low": self.has_warned_low,
        }

    def deserialize(self, data: Optional[dict]) -> None:
        if not data:
            return
        if "level" in data:
            self.level = min(COAL_MAX_LEVEL, max(0.0, float(data["level"])))
        self.depletion_rate = float(data.get("depletion_rate", self.depletion_rate))
        self.low_threshold = float(data.get("low_threshold", self.low_threshold))
        self.has_warned_low = bool(data.get("has_warned_low", False))
        self.bus.publish(CoalUpdated(level=self.level))
