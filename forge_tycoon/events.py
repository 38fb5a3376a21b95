"""
Event bus and the closed catalog of events published on it.

Every event is a dataclass with a fixed tag (``name``) and a fixed payload.
The bus dispatches by event class, synchronously and in registration order.
Subscribers receive the payload object itself and must treat it as read-only.

Usage:
    bus = EventBus()
    unsubscribe = bus.subscribe(CoalLow, lambda e: print(e.level))
    bus.publish(CoalLow(level=19.5))
    unsubscribe()
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, ClassVar, Dict, List, Optional, Type, TypeVar

if TYPE_CHECKING:
    from forge_tycoon.gameplay.contracts import Contract
    from forge_tycoon.gameplay.crafting import CraftingJob
    from forge_tycoon.gameplay.catalog import Recipe
    from forge_tycoon.gameplay.random_events import ActiveEvent
    from forge_tycoon.gameplay.workers import Worker

logger = logging.getLogger(__name__)


class NotificationLevel(str, Enum):
    """Severity of a user-facing notification."""
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    EVENT = "event"


@dataclass
class GameEvent:
    """Base class for everything published on the bus."""
    name: ClassVar[str] = "event"


E = TypeVar("E", bound=GameEvent)
Handler = Callable[[Any], None]


# =============================================================================
# NOTIFICATIONS
# =============================================================================

@dataclass
class Notification(GameEvent):
    """A message for the presentation layer."""
    name: ClassVar[str] = "notification"
    level: NotificationLevel
    message: str


# =============================================================================
# INVENTORY AND MONEY
# =============================================================================

@dataclass
class InventoryUpdated(GameEvent):
    name: ClassVar[str] = "inventory:updated"


@dataclass
class MoneyUpdated(GameEvent):
    name: ClassVar[str] = "money:updated"
    balance: float


@dataclass
class ToolBroken(GameEvent):
    name: ClassVar[str] = "tool:broken"
    tool_id: str


@dataclass
class ToolRepaired(GameEvent):
    name: ClassVar[str] = "tool:repaired"
    tool_id: str
    uses: int
    max_uses: int


# =============================================================================
# FORGE
# =============================================================================

@dataclass
class CoalUpdated(GameEvent):
    name: ClassVar[str] = "coal:updated"
    level: float


@dataclass
class CoalLow(GameEvent):
    name: ClassVar[str] = "coal:low"
    level: float


@dataclass
class CoalRefilled(GameEvent):
    name: ClassVar[str] = "coal:refilled"
    level: float
    refilled_by: Optional[str] = None


@dataclass
class CoalConsumed(GameEvent):
    name: ClassVar[str] = "coal:consumed"
    amount: float
    level: float


# =============================================================================
# CRAFTING
# =============================================================================

@dataclass
class CraftingQueued(GameEvent):
    name: ClassVar[str] = "crafting:queued"
    job: "CraftingJob"


@dataclass
class CraftingStarted(GameEvent):
    name: ClassVar[str] = "crafting:started"
    job: "CraftingJob"


@dataclass
class CraftingProgress(GameEvent):
    name: ClassVar[str] = "crafting:progress"
    item_id: str
    progress: float
    total: float
    percentage: float


@dataclass
class CraftingPaused(GameEvent):
    name: ClassVar[str] = "crafting:paused"
    item_id: str
    reason: str


@dataclass
class CraftingResumed(GameEvent):
    name: ClassVar[str] = "crafting:resumed"
    item_id: str


@dataclass
class CraftingCompleted(GameEvent):
    name: ClassVar[str] = "crafting:completed"
    job: "CraftingJob"


@dataclass
class CraftingCanceled(GameEvent):
    name: ClassVar[str] = "crafting:canceled"
    item_name: str


@dataclass
class CraftingQueueUpdated(GameEvent):
    name: ClassVar[str] = "crafting:queue-updated"
    queue: List["CraftingJob"]


@dataclass
class CraftingQueueEmpty(GameEvent):
    name: ClassVar[str] = "crafting:queue-empty"


@dataclass
class ItemCrafted(GameEvent):
    """Finished goods delivered to the ledger."""
    name: ClassVar[str] = "item:crafted"
    item_id: str
    quantity: int
    worker_id: Optional[str] = None
    list_in_storefront: bool = False


# =============================================================================
# BLUEPRINTS AND STOREFRONT
# =============================================================================

@dataclass
class BlueprintUnlocked(GameEvent):
    name: ClassVar[str] = "blueprint:unlocked"
    item_id: str
    item: "Recipe"


@dataclass
class StorefrontUpdated(GameEvent):
    name: ClassVar[str] = "storefront:updated"
    listings: Dict[str, Any]


@dataclass
class ItemSold(GameEvent):
    name: ClassVar[str] = "item:sold"
    item_id: str
    price: float
    quantity: int


# =============================================================================
# CONTRACTS
# =============================================================================

@dataclass
class ContractAvailable(GameEvent):
    name: ClassVar[str] = "contract:available"
    contract: "Contract"


@dataclass
class SpecialContractAvailable(GameEvent):
    name: ClassVar[str] = "contract:special-available"
    contract: "Contract"


@dataclass
class ContractCompleted(GameEvent):
    name: ClassVar[str] = "contract:completed"
    contract: "Contract"


@dataclass
class ContractRejected(GameEvent):
    name: ClassVar[str] = "contract:rejected"
    contract: "Contract"


@dataclass
class ContractExpired(GameEvent):
    name: ClassVar[str] = "contract:expired"
    contract: "Contract"


# =============================================================================
# WORKERS
# =============================================================================

@dataclass
class WorkerHired(GameEvent):
    name: ClassVar[str] = "worker:hired"
    worker: "Worker"


@dataclass
class WorkerFired(GameEvent):
    name: ClassVar[str] = "worker:fired"
    worker: "Worker"


@dataclass
class WorkerTaskAssigned(GameEvent):
    name: ClassVar[str] = "worker:task-assigned"
    worker: "Worker"


@dataclass
class WorkerRestingChanged(GameEvent):
    name: ClassVar[str] = "worker:resting-changed"
    worker: "Worker"
    resting: bool


@dataclass
class WagesPaid(GameEvent):
    name: ClassVar[str] = "worker:wages-paid"
    amount: float
    worker_count: int


@dataclass
class WagesUnpaid(GameEvent):
    name: ClassVar[str] = "worker:wages-unpaid"
    amount: float
    debt: float


# =============================================================================
# RANDOM EVENTS
# =============================================================================

@dataclass
class RandomEventTriggered(GameEvent):
    name: ClassVar[str] = "event:triggered"
    event: "ActiveEvent"
    applied_effects: List[str] = field(default_factory=list)


@dataclass
class RandomEventExpired(GameEvent):
    name: ClassVar[str] = "event:expired"
    event: "ActiveEvent"


# =============================================================================
# TIME
# =============================================================================

@dataclass
class TimeTick(GameEvent):
    name: ClassVar[str] = "time:tick"
    time: Dict[str, float]


@dataclass
class HourChanged(GameEvent):
    name: ClassVar[str] = "time:hour-changed"
    hour: int


@dataclass
class NewDay(GameEvent):
    name: ClassVar[str] = "time:new-day"
    day: int


@dataclass
class WorkdayStart(GameEvent):
    name: ClassVar[str] = "time:workday-start"


@dataclass
class WorkdayEnd(GameEvent):
    name: ClassVar[str] = "time:workday-end"


@dataclass
class TimeSkipped(GameEvent):
    name: ClassVar[str] = "time:skipped"
    hours: float
    minutes: float


@dataclass
class TimeMultiplierChanged(GameEvent):
    name: ClassVar[str] = "time:multiplier-changed"
    multiplier: float


@dataclass
class ClockStateChanged(GameEvent):
    name: ClassVar[str] = "time:running-changed"
    running: bool


# =============================================================================
# PERSISTENCE
# =============================================================================

@dataclass
class GameSaved(GameEvent):
    name: ClassVar[str] = "save:saved"
    slot: str


@dataclass
class GameLoaded(GameEvent):
    name: ClassVar[str] = "save:loaded"
    slot: str


@dataclass
class SaveDeleted(GameEvent):
    name: ClassVar[str] = "save:deleted"
    slot: str


# =============================================================================
# BUS
# =============================================================================

class EventBus:
    """
    Synchronous publish/subscribe hub.

    A handler that raises is logged and skipped; the remaining handlers
    still run and the publisher never sees the exception. The bus does not
    detect publish cycles.
    """

    def __init__(self) -> None:
        self._handlers: Dict[Type[GameEvent], List[Handler]] = {}

    def subscribe(self, event_type: Type[E], handler: Callable[[E], None]) -> Callable[[], None]:
        """Register a handler. Returns a callable that removes it again."""
        self._handlers.setdefault(event_type, []).append(handler)

        def unsubscribe() -> None:
            self.unsubscribe(event_type, handler)

        return unsubscribe

    def once(self, event_type: Type[E], handler: Callable[[E], None]) -> Callable[[], None]:
        """Register a handler that removes itself after the first delivery."""
        def wrapper(event: E) -> None:
            self.unsubscribe(event_type, wrapper)
            handler(event)

        return self.subscribe(event_type, wrapper)

    def unsubscribe(self, event_type: Type[GameEvent], handler: Handler) -> bool:
        handlers = self._handlers.get(event_type)
        if not handlers or handler not in handlers:
            return False
        handlers.remove(handler)
        if not handlers:
            del self._handlers[event_type]
        return True

    def publish(self, event: GameEvent) -> bool:
        """
        Deliver an event to every current subscriber.
        Returns False when nobody was listening.
        """
        handlers = self._handlers.get(type(event))
        if not handlers:
            return False

        # Snapshot so handlers may (un)subscribe while we iterate
        for handler in list(handlers):
            try:
                handler(event)
            except Exception:
                logger.exception(f"Error in handler for '{event.name}'")
        return True

    def notify(self, level: NotificationLevel, message: str) -> bool:
        """Publish a user-facing notification."""
        return self.publish(Notification(level=level, message=message))

    def unsubscribe_all(self, event_type: Type[GameEvent]) -> None:
        self._handlers.pop(event_type, None)

    def reset(self) -> None:
        """Drop every subscription."""
        self._handlers.clear()

    def listener_count(self, event_type: Type[GameEvent]) -> int:
        return len(self._handlers.get(event_type, ()))

    def event_names(self) -> List[str]:
        """Tags of all events that currently have subscribers."""
        return [event_type.name for event_type in self._handlers]
