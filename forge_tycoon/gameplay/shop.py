"""
Shop - wires every gameplay system to one bus and runs the tick.
NO UI DEPENDENCIES.

This is the central gameplay module. It can be fully tested without the
HTTP layer or a database.

Usage:
    shop = Shop(rng=random.Random(1))
    shop.crafting.start_crafting("nail")
    shop.simulate(10)
    snapshot = shop.serialize()
"""
import logging
import random
from collections import deque
from typing import Deque, List, Optional

from forge_tycoon.events import EventBus, Notification

from .blueprints import BlueprintRegistry
from .clock import Clock
from .constants import TIME_MULTIPLIER
from .contracts import ContractBoard
from .crafting import ProductionQueue
from .forge import Forge
from .inventory import ResourceLedger
from .random_events import EventDirector
from .storefront import Storefront
from .timing import Now, to_iso, utc_now
from .tools import ToolWear
from .workers import WorkforcePool

logger = logging.getLogger(__name__)

SAVE_VERSION = "1.0.0"
NOTIFICATION_HISTORY = 50

# Snapshot section -> attribute, in restore order
SECTIONS = (
    ("inventory", "inventory"),
    ("blueprints", "blueprints"),
    ("coal", "forge"),
    ("tools", "tools"),
    ("crafting", "crafting"),
    ("storefront", "storefront"),
    ("contracts", "contracts"),
    ("workers", "workers"),
    ("events", "events"),
    ("time", "clock"),
)


class Shop:
    """
    The whole simulation.

    Exposes each system as an attribute and advances all of them with
    tick(). Update order is fixed: the forge runs before production so a
    gauge that just hit zero pauses the job in the same tick, and workers
    run after the economy so they see a settled production queue.
    """

    def __init__(
        self,
        time_multiplier: float = TIME_MULTIPLIER,
        rng: Optional[random.Random] = None,
        now: Now = utc_now,
        bus: Optional[EventBus] = None,
    ):
        self.bus = bus or EventBus()
        self.rng = rng or random.Random()
        self.now = now

        self.clock = Clock(self.bus, time_multiplier)
        self.inventory = ResourceLedger(self.bus, now=now)
        self.forge = Forge(self.bus, self.inventory)
        self.tools = ToolWear(self.bus, self.inventory)
        self.blueprints = BlueprintRegistry(self.bus, self.inventory)
        self.crafting = ProductionQueue(self.bus, self.inventory, self.forge, self.tools, self.blueprints)
        self.storefront = Storefront(self.bus, self.inventory, rng=self.rng, now=now)
        self.contracts = ContractBoard(self.bus, self.inventory, self.blueprints, rng=self.rng, now=now)
        self.workers = WorkforcePool(self.bus, self.inventory, self.crafting, self.forge, rng=self.rng, now=now)
        self.events = EventDirector(
            self.bus,
            self.storefront,
            self.contracts,
            self.workers,
            self.inventory,
            self.blueprints,
            rng=self.rng,
            now=now,
        )

        self.tick_count = 0
        self.notifications: Deque[Notification] = deque(maxlen=NOTIFICATION_HISTORY)
        self.bus.subscribe(Notification, self.notifications.append)

        self.clock.start()

    # =========================================================================
    # TICK
    # =========================================================================

    def tick(self, real_seconds: float = 1) -> None:
        """One full sweep of every system, in order, to completion."""
        self.tick_count += 1
        self.clock.tick(real_seconds)
        self.forge.update()
        self.inventory.update()
        self.crafting.update()
        self.storefront.update()
        self.contracts.update()
        self.workers.update()
        self.events.update()

    def simulate(self, ticks: int) -> None:
        for _ in range(ticks):
            self.tick()

    def recent_notifications(self, limit: int = NOTIFICATION_HISTORY) -> List[Notification]:
        return list(self.notifications)[-limit:]

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def serialize(self, slot_name: str = "auto", version: str = SAVE_VERSION) -> dict:
        data = {key: getattr(self, attr).serialize() for key, attr in SECTIONS}
        data["meta"] = {
            "save_date": to_iso(self.now()),
            "version": version,
            "slot_name": slot_name,
            "tick_count": self.tick_count,
        }
        return data

    def deserialize(self, data) -> bool:
        """
        Restore every system from a snapshot.

        A snapshot that is not shaped like one, or that fails part way
        through, leaves the shop exactly as it was and returns False.
        """
        if not self.is_valid_snapshot(data):
            logger.warning("Ignoring structurally invalid snapshot")
            return False

        previous = self.serialize()
        try:
            self._restore(data)
        except (KeyError, TypeError, ValueError, AttributeError):
            logger.warning("Snapshot could not be restored, keeping current state", exc_info=True)
            self._restore(previous)
            return False
        return True

    def _restore(self, data: dict) -> None:
        for key, attr in SECTIONS:
            getattr(self, attr).deserialize(data.get(key))
        self.tick_count = int((data.get("meta") or {}).get("tick_count", 0))

    @staticmethod
    def is_valid_snapshot(data) -> bool:
        if not isinstance(data, dict) or not isinstance(data.get("meta"), dict):
            return False
        return all(
            data.get(key) is None or isinstance(data[key], dict)
            for key, _ in SECTIONS
        )
