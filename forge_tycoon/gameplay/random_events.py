"""
EventDirector - rolls for random events and applies their effects.
NO UI DEPENDENCIES.
"""
import logging
import random
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Sequence
from uuid import uuid4

from forge_tycoon.events import (
    EventBus,
    HourChanged,
    NotificationLevel,
    RandomEventExpired,
    RandomEventTriggered,
)

from .blueprints import BlueprintView
from .catalog import MATERIALS, RECIPES
from .constants import (
    EVENT_CHANCE,
    EVENT_CHECK_INTERVAL,
    MIN_EVENT_CHECK_INTERVAL,
    PRIME_TIME_BONUS,
    PRIME_TIME_HOURS,
)
from .contracts import ContractBoard
from .event_data import (
    EVENT_DEFINITIONS,
    DemandIncrease,
    Effect,
    EventDefinition,
    MaterialPriceChange,
    SpecialContractOffer,
    ToolPriceChange,
    WorkerDiscount,
    choose_event,
    get_definition,
)
from .inventory import ResourceLedger
from .storefront import Storefront
from .timing import Now, deadline_from_iso, from_iso, minutes_from, seconds_left, to_iso, utc_now
from .workers import WorkforcePool

logger = logging.getLogger(__name__)


@dataclass
class ActiveEvent:
    definition_id: str
    instance_id: str
    name: str
    description: str
    duration_minutes: float
    start_time: datetime
    expiry_time: datetime
    applied_effects: List[str] = field(default_factory=list)

    def is_expired(self, now: datetime) -> bool:
        return self.expiry_time <= now

    def to_dict(self) -> dict:
        return {
            "definition_id": self.definition_id,
            "instance_id": self.instance_id,
            "name": self.name,
            "description": self.description,
            "duration_minutes": self.duration_minutes,
            "start_time": to_iso(self.start_time),
            "expiry_time": to_iso(self.expiry_time),
            "applied_effects": list(self.applied_effects),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ActiveEvent":
        return cls(
            definition_id=data["definition_id"],
            instance_id=data["instance_id"],
            name=data.get("name", data["definition_id"]),
            description=data.get("description", ""),
            duration_minutes=float(data["duration_minutes"]),
            start_time=deadline_from_iso(data["start_time"]),
            expiry_time=deadline_from_iso(data["expiry_time"]),
            applied_effects=list(data.get("applied_effects") or []),
        )


class EventDirector:
    """
    Periodic random events with real-time durations.

    A roll happens every EVENT_CHECK_INTERVAL ticks and on the prime-time
    hours reported by the clock. At most one instance of a definition is
    active at a time. Effects are pushed into the owning components, each of
    which expires its own modifier; the director only tracks the event.
    """

    def __init__(
        self,
        bus: EventBus,
        storefront: Storefront,
        contracts: ContractBoard,
        workers: WorkforcePool,
        inventory: ResourceLedger,
        blueprints: BlueprintView,
        definitions: Sequence[EventDefinition] = EVENT_DEFINITIONS,
        rng: Optional[random.Random] = None,
        now: Now = utc_now,
    ):
        self.bus = bus
        self.storefront = storefront
        self.contracts = contracts
        self.workers = workers
        self.inventory = inventory
        self.blueprints = blueprints
        self.definitions = definitions
        self.rng = rng or random.Random()
        self.now = now

        self.active: List[ActiveEvent] = []
        self.event_check_interval = EVENT_CHECK_INTERVAL
        self.event_check_timer = 0
        self.event_chance: float = EVENT_CHANCE

        bus.subscribe(HourChanged, self._on_hour_changed)

    # =========================================================================
    # UPDATE LOOP
    # =========================================================================

    def update(self) -> None:
        self.event_check_timer += 1
        if self.event_check_timer >= self.event_check_interval:
            self.event_check_timer = 0
            self.check_for_event()

        self.check_expired_events()

    def _on_hour_changed(self, event: HourChanged) -> None:
        if event.hour in PRIME_TIME_HOURS:
            self.check_for_event(self.event_chance * PRIME_TIME_BONUS)

    def check_for_event(self, chance: Optional[float] = None) -> Optional[ActiveEvent]:
        """Roll against chance (percent, defaults to event_chance)."""
        if chance is None:
            chance = self.event_chance
        if self.rng.random() * 100 <= chance:
            return self.trigger_random_event()
        return None

    def trigger_random_event(self) -> Optional[ActiveEvent]:
        definition = choose_event(self.rng, self.blueprints, self.definitions)
        if definition is None:
            logger.warning("No eligible random event to trigger")
            return None
        if self.is_active(definition.id):
            logger.info(f"Event {definition.id} already active, skipping")
            return None
        return self._start(definition)

    def trigger_specific_event(self, event_id: str) -> Optional[ActiveEvent]:
        """Force an event, still honouring its condition and non-duplication."""
        definition = get_definition(event_id, self.definitions)
        if definition is None:
            logger.warning(f"Event {event_id} not found")
            return None
        if self.is_active(event_id):
            logger.warning(f"Event {event_id} already active")
            return None
        if not definition.is_eligible(self.blueprints):
            logger.warning(f"Event {event_id} conditions not met")
            return None
        return self._start(definition)

    def check_expired_events(self) -> List[ActiveEvent]:
        now = self.now()
        expired = [e for e in self.active if e.is_expired(now)]
        if not expired:
            return []

        self.active = [e for e in self.active if not e.is_expired(now)]
        for event in expired:
            self.bus.publish(RandomEventExpired(event=event))
            self.bus.notify(NotificationLevel.INFO, f"Event ended: {event.name}")
        return expired

    # =========================================================================
    # EFFECTS
    # =========================================================================

    def _start(self, definition: EventDefinition) -> ActiveEvent:
        start = self.now()
        event = ActiveEvent(
            definition_id=definition.id,
            instance_id=f"{definition.id}_{uuid4().hex[:8]}",
            name=definition.name,
            description=definition.description,
            duration_minutes=definition.duration_minutes,
            start_time=start,
            expiry_time=minutes_from(start, definition.duration_minutes),
        )
        self.active.append(event)

        for effect in definition.effects:
            applied = self._apply(effect, event.expiry_time)
            if applied:
                event.applied_effects.append(applied)

        logger.info(f"Random event started: {definition.id}")
        self.bus.publish(RandomEventTriggered(event=event, applied_effects=list(event.applied_effects)))
        self.bus.notify(NotificationLevel.EVENT, f"EVENT: {event.name} - {event.description}")
        return event

    def _apply(self, effect: Effect, expiry: datetime) -> Optional[str]:
        """Push one effect into its owning component. Returns a description."""
        if isinstance(effect, DemandIncrease):
            self.storefront.set_demand_multiplier(effect.item_id, effect.multiplier, expiry)
            recipe = RECIPES.get(effect.item_id)
            name = recipe.name if recipe else effect.item_id
            return f"Increased demand for {name} (×{effect.multiplier})"

        if isinstance(effect, MaterialPriceChange):
            self.inventory.set_material_price_multiplier(effect.material_id, effect.multiplier, expiry)
            material = MATERIALS.get(effect.material_id)
            name = material.name if material else effect.material_id
            direction = "Decreased" if effect.multiplier < 1 else "Increased"
            return f"{direction} price for {name} (×{effect.multiplier})"

        if isinstance(effect, SpecialContractOffer):
            contract = self.contracts.offer_special_contract(
                item_id=effect.item_id,
                customer=effect.customer,
                quantity=effect.quantity,
                payout_multiplier=effect.payout_multiplier,
                duration_minutes=effect.duration_minutes,
                description=effect.description,
                prefix="event",
            )
            if contract is None:
                return None
            return f"New special contract from {effect.customer}"

        if isinstance(effect, WorkerDiscount):
            self.workers.set_hiring_discount(effect.type_id, effect.multiplier, expiry)
            return f"Worker hiring discount (×{effect.multiplier})"

        if isinstance(effect, ToolPriceChange):
            self.inventory.set_tool_price_multiplier(effect.multiplier, expiry)
            return f"Tool price discount (×{effect.multiplier})"

        logger.warning(f"Unknown event effect: {effect!r}")
        return None

    # =========================================================================
    # SETTINGS AND QUERIES
    # =========================================================================

    def set_event_chance(self, chance: float) -> None:
        self.event_chance = max(0.0, min(100.0, chance))

    def set_event_check_interval(self, interval: int) -> None:
        self.event_check_interval = max(MIN_EVENT_CHECK_INTERVAL, interval)
        self.event_check_timer = 0

    def is_active(self, definition_id: str) -> bool:
        return any(e.definition_id == definition_id for e in self.active)

    def active_events(self) -> List[ActiveEvent]:
        return list(self.active)

    def event_time_remaining(self, instance_id: str) -> Optional[dict]:
        event = next((e for e in self.active if e.instance_id == instance_id), None)
        if event is None:
            return None

        left = seconds_left(event.expiry_time, self.now())
        if left <= 0:
            return {"minutes": 0, "seconds": 0, "percentage": 0.0}
        percentage = left / (event.duration_minutes * 60) * 100
        return {"minutes": int(left // 60), "seconds": int(left % 60), "percentage": percentage}

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def serialize(self) -> dict:
        return {
            "active_events": [e.to_dict() for e in self.active],
            "event_check_timer": self.event_check_timer,
            "event_chance": self.event_chance,
            "event_check_interval": self.event_check_interval,
        }

    def deserialize(self, data: Optional[dict]) -> None:
        if not data:
            return

        restored = []
        for raw in data.get("active_events") or []:
            try:
                restored.append(ActiveEvent.from_dict(raw))
            except (KeyError, TypeError, ValueError):
                logger.warning(f"Skipping malformed event in save: {raw!r}")
        self.active = restored

        self.event_check_timer = int(data.get("event_check_timer", 0))
        self.event_chance = float(data.get("event_chance", self.event_chance))
        self.event_check_interval = max(
            MIN_EVENT_CHECK_INTERVAL,
            int(data.get("event_check_interval", self.event_check_interval)),
        )
