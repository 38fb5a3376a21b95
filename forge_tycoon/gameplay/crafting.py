"""
ProductionQueue - the shop's single crafting station and its backlog.
NO UI DEPENDENCIES.

Job lifecycle:

    QUEUED -> ACTIVE -> COMPLETED
                |  ^
                v  |
               PAUSED        (any non-terminal state) -> CANCELED

Resources, coal and tools are checked and materials/coal debited when a
job is created. Tool wear happens when the job completes.
"""
import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping, Optional
from uuid import uuid4

from forge_tycoon.events import (
    CoalRefilled,
    CoalUpdated,
    CraftingCanceled,
    CraftingCompleted,
    CraftingPaused,
    CraftingProgress,
    CraftingQueued,
    CraftingQueueEmpty,
    CraftingQueueUpdated,
    CraftingResumed,
    CraftingStarted,
    EventBus,
    ItemCrafted,
    NotificationLevel,
)

from .blueprints import BlueprintRegistry
from .catalog import RECIPES, Recipe
from .constants import DEFAULT_COAL_USAGE, MAX_QUEUE_SIZE, NOT_ENOUGH_COAL, REFUND_THRESHOLD
from .forge import Forge
from .inventory import ResourceLedger
from .tools import ToolWear

logger = logging.getLogger(__name__)


class JobState(Enum):
    """Where a crafting job is in its lifecycle."""
    QUEUED = "queued"        # Waiting behind the active job
    ACTIVE = "active"        # Progressing each tick
    PAUSED = "paused"        # Active slot, but not progressing
    COMPLETED = "completed"
    CANCELED = "canceled"


_TRANSITIONS = {
    JobState.QUEUED: {JobState.ACTIVE, JobState.CANCELED},
    JobState.ACTIVE: {JobState.PAUSED, JobState.COMPLETED, JobState.CANCELED},
    JobState.PAUSED: {JobState.ACTIVE, JobState.CANCELED},
    JobState.COMPLETED: set(),
    JobState.CANCELED: set(),
}


class InvalidTransition(ValueError):
    """A job was asked to move to a state it can't reach from where it is."""


@dataclass
class CraftCheck:
    """Result of validating a craft request."""
    can_craft: bool
    reason: Optional[str] = None

    def __bool__(self) -> bool:
        return self.can_craft


@dataclass
class CraftingJob:
    item_id: str
    name: str
    crafting_time: float
    quantity: int                      # units delivered on completion
    batches: int = 1                   # multiples of the recipe paid for
    materials: Dict[str, float] = field(default_factory=dict)
    worker_id: Optional[str] = None
    speed: float = 1.0
    progress: float = 0.0
    state: JobState = JobState.QUEUED
    pause_reason: Optional[str] = None
    id: str = field(default_factory=lambda: uuid4().hex)

    @property
    def paused(self) -> bool:
        return self.state == JobState.PAUSED

    @property
    def percentage(self) -> float:
        return min(100.0, self.progress / self.crafting_time * 100) if self.crafting_time else 100.0

    def _move(self, target: JobState) -> None:
        if target not in _TRANSITIONS[self.state]:
            raise InvalidTransition(f"Job {self.id} cannot go from {self.state.value} to {target.value}")
        self.state = target

    def activate(self) -> None:
        self._move(JobState.ACTIVE)

    def pause(self, reason: str) -> None:
        self._move(JobState.PAUSED)
        self.pause_reason = reason

    def resume(self) -> None:
        if self.state != JobState.PAUSED:
            raise InvalidTransition(f"Job {self.id} is not paused")
        self._move(JobState.ACTIVE)
        self.pause_reason = None

    def complete(self) -> None:
        self._move(JobState.COMPLETED)

    def cancel(self) -> None:
        self._move(JobState.CANCELED)
        self.pause_reason = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "item_id": self.item_id,
            "name": self.name,
            "crafting_time": self.crafting_time,
            "quantity": self.quantity,
            "batches": self.batches,
            "materials": dict(self.materials),
            "worker_id": self.worker_id,
            "speed": self.speed,
            "progress": self.progress,
            "state": self.state.value,
            "pause_reason": self.pause_reason,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CraftingJob":
        return cls(
            id=data.get("id") or uuid4().hex,
            item_id=data["item_id"],
            name=data.get("name", data["item_id"]),
            crafting_time=float(data["crafting_time"]),
            quantity=int(data["quantity"]),
            batches=int(data.get("batches", 1)),
            materials={k: float(v) for k, v in data.get("materials", {}).items()},
            worker_id=data.get("worker_id"),
            speed=float(data.get("speed", 1.0)),
            progress=float(data.get("progress", 0.0)),
            state=JobState(data.get("state", JobState.QUEUED.value)),
            pause_reason=data.get("pause_reason"),
        )


class ProductionQueue:
    """
    One active job plus a FIFO backlog.

    Each job progresses by its own speed, captured from speed_multiplier
    when the job is created. Workers set the multiplier around their
    start_crafting call and restore it afterwards.
    """

    def __init__(
        self,
        bus: EventBus,
        inventory: ResourceLedger,
        forge: Forge,
        tools: ToolWear,
        blueprints: BlueprintRegistry,
        recipes: Mapping[str, Recipe] = RECIPES,
    ):
        self.bus = bus
        self.inventory = inventory
        self.forge = forge
        self.tools = tools
        self.blueprints = blueprints
        self.recipes = recipes

        self.current: Optional[CraftingJob] = None
        self.queue: List[CraftingJob] = []
        self.speed_multiplier = 1.0
        self.auto_add_to_storefront = False

        bus.subscribe(CoalUpdated, self._on_coal_updated)
        bus.subscribe(CoalRefilled, self._on_coal_refilled)

    # =========================================================================
    # COMMANDS
    # =========================================================================

    def can_craft(self, item_id: str, quantity: int = 1) -> CraftCheck:
        """Validate a craft request without changing anything."""
        recipe = self.recipes.get(item_id)
        if recipe is None:
            return CraftCheck(False, "Unknown item")
        if not self.blueprints.is_unlocked(item_id):
            return CraftCheck(False, "Blueprint not unlocked")
        missing = self.tools.missing_tools(recipe)
        if missing:
            return CraftCheck(False, f"Missing tools: {', '.join(missing)}")
        if not self.inventory.has_materials(self._scaled_materials(recipe, quantity)):
            return CraftCheck(False, "Not enough materials")
        if not self.forge.has_enough_coal():
            return CraftCheck(False, NOT_ENOUGH_COAL)
        return CraftCheck(True)

    def start_crafting(self, item_id: str, quantity: int = 1, worker_id: Optional[str] = None) -> CraftCheck:
        """
        Reserve inputs for a job and start or queue it.

        Materials are debited for `quantity` multiples of the recipe and the
        recipe's coal cost is drawn once. Output is batch_size * quantity.
        """
        if quantity < 1:
            return CraftCheck(False, "Quantity must be at least 1")

        check = self.can_craft(item_id, quantity)
        if not check:
            self.bus.notify(NotificationLevel.ERROR, self._failure_message(item_id, check.reason))
            return check

        recipe = self.recipes[item_id]
        materials = self._scaled_materials(recipe, quantity)
        if not self.inventory.consume_materials(materials):
            logger.error(f"Material debit failed after validation for {item_id}")
            return CraftCheck(False, "Not enough materials")
        self.forge.consume_coal(recipe.coal_usage or DEFAULT_COAL_USAGE)

        job = CraftingJob(
            item_id=item_id,
            name=recipe.name,
            crafting_time=recipe.crafting_time,
            quantity=recipe.batch_size * quantity,
            batches=quantity,
            materials=materials,
            worker_id=worker_id,
            speed=self.speed_multiplier,
        )

        if self.current is None:
            self._activate(job)
        else:
            self.queue.append(job)
            self.bus.publish(CraftingQueued(job=job))
            self.bus.publish(CraftingQueueUpdated(queue=list(self.queue)))
        return CraftCheck(True)

    def pause_crafting(self, reason: str = "Unknown reason") -> bool:
        job = self.current
        if job is None or job.state != JobState.ACTIVE:
            return False
        job.pause(reason)
        logger.info(f"Crafting of {job.item_id} paused: {reason}")
        self.bus.publish(CraftingPaused(item_id=job.item_id, reason=reason))
        return True

    def resume_crafting(self) -> bool:
        job = self.current
        if job is None or not job.paused:
            return False
        if job.pause_reason == NOT_ENOUGH_COAL and not self.forge.has_enough_coal():
            self.bus.notify(NotificationLevel.ERROR, "Cannot resume crafting: Still not enough coal")
            return False
        job.resume()
        self.bus.publish(CraftingResumed(item_id=job.item_id))
        return True

    def cancel_current_craft(self) -> bool:
        """
        Drop the active job. Materials come back in proportion to the
        work left, truncated to whole units, and only if more than half
        of the craft remained.
        """
        job = self.current
        if job is None:
            return False

        ratio = 1 - job.progress / job.crafting_time if job.crafting_time else 0
        if ratio > REFUND_THRESHOLD:
            for material_id, amount in job.materials.items():
                refund = math.floor(amount * ratio)
                if refund > 0:
                    self.inventory.add_material(material_id, refund)

        job.cancel()
        self.current = None
        self._promote_next()

        self.bus.notify(NotificationLevel.INFO, f"Canceled crafting of {job.name}")
        self.bus.publish(CraftingCanceled(item_name=job.name))
        return True

    def cancel_queued_craft(self, index: int) -> bool:
        """Remove a waiting job with a full refund."""
        if index < 0 or index >= len(self.queue):
            return False

        job = self.queue.pop(index)
        for material_id, amount in job.materials.items():
            if amount > 0:
                self.inventory.add_material(material_id, amount)
        job.cancel()

        self.bus.notify(NotificationLevel.INFO, f"Removed {job.name} from crafting queue")
        self.bus.publish(CraftingQueueUpdated(queue=list(self.queue)))
        return True

    def set_speed_multiplier(self, multiplier: float) -> None:
        self.speed_multiplier = multiplier

    def set_auto_add_to_storefront(self, enabled: bool) -> None:
        self.auto_add_to_storefront = enabled

    # =========================================================================
    # UPDATE LOOP
    # =========================================================================

    def update(self) -> None:
        """Advance the active job by one tick."""
        if self.current is None:
            if not self._promote_next():
                return

        job = self.current
        if job.paused:
            return

        job.progress += 1 * job.speed

        if not self.forge.has_enough_coal():
            self.pause_crafting(NOT_ENOUGH_COAL)
            return

        if job.progress >= job.crafting_time:
            self._complete(job)
        else:
            self.bus.publish(CraftingProgress(
                item_id=job.item_id,
                progress=job.progress,
                total=job.crafting_time,
                percentage=job.percentage,
            ))

    def _complete(self, job: CraftingJob) -> None:
        recipe = self.recipes.get(job.item_id)
        if recipe is None:
            logger.warning(f"Completed job references unknown item {job.item_id}; no output delivered")
        else:
            self.tools.use_tools_for_item(recipe)

        job.complete()
        self.current = None

        if recipe is not None and recipe.creates_tool:
            self.inventory.add_or_replace_tool(recipe.creates_tool)
            self.bus.notify(NotificationLevel.SUCCESS, f"Crafted a new {job.name}")
        elif recipe is not None:
            self.inventory.add_item(job.item_id, job.quantity)
            description = f"{job.quantity}x {job.name}" if job.quantity > 1 else job.name
            self.bus.publish(ItemCrafted(
                item_id=job.item_id,
                quantity=job.quantity,
                worker_id=job.worker_id,
                list_in_storefront=self.auto_add_to_storefront,
            ))
            self.bus.notify(NotificationLevel.SUCCESS, f"Crafted {description}")

        self.bus.publish(CraftingCompleted(job=job))

        if not self._promote_next():
            self.bus.publish(CraftingQueueEmpty())

    def _activate(self, job: CraftingJob) -> None:
        job.activate()
        self.current = job
        self.bus.publish(CraftingStarted(job=job))

    def _promote_next(self) -> bool:
        if not self.queue:
            return False
        self._activate(self.queue.pop(0))
        self.bus.publish(CraftingQueueUpdated(queue=list(self.queue)))
        return True

    def _on_coal_updated(self, event: CoalUpdated) -> None:
        if event.level <= 0 and self.current is not None:
            self.pause_crafting(NOT_ENOUGH_COAL)

    def _on_coal_refilled(self, event: CoalRefilled) -> None:
        job = self.current
        if job is not None and job.paused and job.pause_reason == NOT_ENOUGH_COAL:
            self.resume_crafting()

    # =========================================================================
    # STATE QUERIES
    # =========================================================================

    @property
    def is_idle(self) -> bool:
        """No active job and nothing waiting."""
        return self.current is None and not self.queue

    def get_queue(self) -> List[CraftingJob]:
        return list(self.queue)

    def has_queue_space(self, max_queue_size: int = MAX_QUEUE_SIZE) -> bool:
        return len(self.queue) < max_queue_size

    def craftable_items(self) -> List[Recipe]:
        return [r for r in self.recipes.values() if self.blueprints.is_unlocked(r.id)]

    @staticmethod
    def _scaled_materials(recipe: Recipe, quantity: int) -> Dict[str, float]:
        return {m: amount * quantity for m, amount in recipe.required_materials.items()}

    def _failure_message(self, item_id: str, reason: Optional[str]) -> str:
        recipe = self.recipes.get(item_id)
        name = recipe.name if recipe else item_id
        if reason == "Unknown item":
            return f"Unknown item: {item_id}"
        if reason == "Blueprint not unlocked":
            return f"You haven't unlocked the blueprint for {name} yet."
        if reason == "Not enough materials":
            return f"Not enough materials to craft {name}"
        if reason == NOT_ENOUGH_COAL:
            return f"Not enough coal in the forge to craft {name}"
        return reason or f"Cannot craft {name}"

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def serialize(self) -> dict:
        return {
            "current": self.current.to_dict() if self.current else None,
            "queue": [job.to_dict() for job in self.queue],
            "speed_multiplier": self.speed_multiplier,
            "auto_add_to_storefront": self.auto_add_to_storefront,
        }

    def deserialize(self, data: Optional[dict]) -> None:
        if not data:
            return

        current = None
        if data.get("current"):
            current = self._restore_job(data["current"])
            if current is not None and current.state not in (JobState.ACTIVE, JobState.PAUSED):
                logger.warning(f"Saved active job in state {current.state.value}; treating as active")
                current.state = JobState.ACTIVE
        self.current = current

        self.queue = []
        for raw in data.get("queue", []):
            job = self._restore_job(raw)
            if job is not None:
                job.state = JobState.QUEUED
                self.queue.append(job)

        self.speed_multiplier = float(data.get("speed_multiplier", 1.0))
        self.auto_add_to_storefront = bool(data.get("auto_add_to_storefront", False))

        if self.current:
            self.bus.publish(CraftingStarted(job=self.current))
        if self.queue:
            self.bus.publish(CraftingQueueUpdated(queue=list(self.queue)))

    def _restore_job(self, raw: dict) -> Optional[CraftingJob]:
        try:
            job = CraftingJob.from_dict(raw)
        except (KeyError, TypeError, ValueError):
            logger.warning(f"Skipping malformed crafting job in save: {raw!r}")
            return None
        if job.item_id not in self.recipes:
            logger.warning(f"Skipping crafting job for unknown item {job.item_id}")
            return None
        return job
