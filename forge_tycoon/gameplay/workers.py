"""
WorkforcePool - hired hands who craft and tend the forge.
NO UI DEPENDENCIES.
"""
import logging
import math
import random
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, List, Mapping, Optional
from uuid import uuid4

from forge_tycoon.events import (
    EventBus,
    NewDay,
    NotificationLevel,
    WagesPaid,
    WagesUnpaid,
    WorkerFired,
    WorkerHired,
    WorkerRestingChanged,
    WorkerTaskAssigned,
)

from .constants import (
    COAL_TASK_FATIGUE,
    COAL_TASK_REFILL_LEVEL,
    CRAFTING_FATIGUE,
    FATIGUE_REARM_RATIO,
    HIGH_FATIGUE_RATIO,
    IDLE_FATIGUE,
    REST_RECOVERY,
)
from .crafting import ProductionQueue
from .forge import Forge
from .inventory import ResourceLedger, round_money
from .timing import Now, TimedModifier, from_iso, to_iso, utc_now

logger = logging.getLogger(__name__)

ALL_WORKERS = "all"


@dataclass(frozen=True)
class WorkerType:
    id: str
    name: str
    description: str
    salary: float
    speed_multiplier: float
    fatigue_rate: float
    recovery_rate: float
    max_fatigue: float
    hire_cost: float

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "salary": self.salary,
            "speed_multiplier": self.speed_multiplier,
            "fatigue_rate": self.fatigue_rate,
            "recovery_rate": self.recovery_rate,
            "max_fatigue": self.max_fatigue,
            "hire_cost": self.hire_cost,
        }


WORKER_TYPES: Dict[str, WorkerType] = {
    "apprentice": WorkerType(
        "apprentice", "Apprentice", "A young worker learning the blacksmith trade.",
        salary=5, speed_multiplier=0.8, fatigue_rate=1.2, recovery_rate=1.0,
        max_fatigue=100, hire_cost=20,
    ),
    "journeyman": WorkerType(
        "journeyman", "Journeyman", "An experienced blacksmith with good skills.",
        salary=8, speed_multiplier=1.0, fatigue_rate=1.0, recovery_rate=1.2,
        max_fatigue=120, hire_cost=50,
    ),
    "master": WorkerType(
        "master", "Master Blacksmith", "A highly skilled blacksmith with years of experience.",
        salary=15, speed_multiplier=1.3, fatigue_rate=0.8, recovery_rate=1.5,
        max_fatigue=150, hire_cost=100,
    ),
}

FIRST_NAMES = [
    "John", "William", "James", "George", "Charles", "Thomas", "Henry", "Robert",
    "Joseph", "Edward", "Frank", "Walter", "Harry", "Samuel", "Arthur", "Albert",
    "Daniel", "Joshua", "Michael", "Jonathan", "Benjamin", "Elijah", "Isaac", "Caleb",
    "Matthew", "Andrew", "David", "Frederick", "Oliver", "Jacob", "Theodore", "Richard",
]

LAST_NAMES = [
    "Smith", "Johnson", "Williams", "Brown", "Jones", "Miller", "Davis", "Wilson",
    "Taylor", "Clark", "Hall", "Allen", "Young", "Wright", "Hill", "Scott",
    "Adams", "Baker", "Cooper", "Ford", "Gray", "Harris", "King", "Lewis",
    "Morgan", "Parker", "Turner", "Walker", "Wood", "Thompson", "White", "Jenkins",
    "Coleman", "Brooks", "Powell", "Sullivan", "Murphy", "Barnes", "Bell", "Fisher",
]


class WorkerStatus(Enum):
    IDLE = "idle"
    WORKING = "working"
    RESTING = "resting"


class TaskKind(Enum):
    CRAFTING = "crafting"   # Start the item whenever the production queue is idle
    COAL = "coal"           # Refill the forge when it runs low


@dataclass
class WorkerTask:
    kind: TaskKind
    item_id: Optional[str] = None

    @property
    def label(self) -> str:
        if self.kind == TaskKind.CRAFTING:
            return f"Crafting {self.item_id}"
        return "Monitoring coal"

    def to_dict(self) -> dict:
        return {"kind": self.kind.value, "item_id": self.item_id}

    @classmethod
    def from_dict(cls, data: dict) -> "WorkerTask":
        return cls(kind=TaskKind(data["kind"]), item_id=data.get("item_id"))


@dataclass
class Worker:
    id: str
    name: str
    type_id: str
    salary: float
    fatigue: float = 0.0
    status: WorkerStatus = WorkerStatus.IDLE
    task: Optional[WorkerTask] = None
    hire_date: Optional[datetime] = None
    high_fatigue_warning: bool = False
    was_resting: bool = False

    @property
    def worker_type(self) -> WorkerType:
        return WORKER_TYPES[self.type_id]

    @property
    def resting(self) -> bool:
        return self.status == WorkerStatus.RESTING

    @property
    def exhausted(self) -> bool:
        return self.fatigue >= self.worker_type.max_fatigue

    @property
    def status_label(self) -> str:
        if self.resting:
            return "Resting"
        if self.task is not None:
            return self.task.label
        return "Idle"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "type_id": self.type_id,
            "salary": self.salary,
            "fatigue": self.fatigue,
            "status": self.status.value,
            "task": self.task.to_dict() if self.task else None,
            "hire_date": to_iso(self.hire_date),
            "high_fatigue_warning": self.high_fatigue_warning,
            "was_resting": self.was_resting,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Worker":
        if data["type_id"] not in WORKER_TYPES:
            raise ValueError(f"Unknown worker type: {data['type_id']}")
        raw_task = data.get("task")
        return cls(
            id=data["id"],
            name=data["name"],
            type_id=data["type_id"],
            salary=float(data["salary"]),
            fatigue=float(data.get("fatigue", 0.0)),
            status=WorkerStatus(data.get("status", WorkerStatus.IDLE.value)),
            task=WorkerTask.from_dict(raw_task) if raw_task else None,
            hire_date=from_iso(data.get("hire_date")),
            high_fatigue_warning=bool(data.get("high_fatigue_warning", False)),
            was_resting=bool(data.get("was_resting", False)),
        )


class WorkforcePool:
    """
    Hired workers, their tasks and their fatigue.

    Each tick a worker either rests (recovering fatigue), is forced to rest
    at maximum fatigue, or carries out its task and tires. Crafting tasks only
    start a job when the production queue is completely idle, at the worker's
    own speed. Wages are paid in one lump on every new day; a shortfall is
    carried forward as wage debt and added to the next day's bill.
    """

    def __init__(
        self,
        bus: EventBus,
        inventory: ResourceLedger,
        crafting: ProductionQueue,
        forge: Forge,
        worker_types: Mapping[str, WorkerType] = WORKER_TYPES,
        rng: Optional[random.Random] = None,
        now: Now = utc_now,
    ):
        self.bus = bus
        self.inventory = inventory
        self.crafting = crafting
        self.forge = forge
        self.worker_types = worker_types
        self.rng = rng or random.Random()
        self.now = now

        self.workers: Dict[str, Worker] = {}
        self.hiring_discounts: Dict[str, TimedModifier] = {}
        self.wage_debt = 0.0

        bus.subscribe(NewDay, self._on_new_day)

    # =========================================================================
    # HIRING
    # =========================================================================

    def hire_worker(self, type_id: str) -> Optional[Worker]:
        worker_type = self.worker_types.get(type_id)
        if worker_type is None:
            self.bus.notify(NotificationLevel.ERROR, f"Unknown worker type: {type_id}")
            return None

        cost = round_money(worker_type.hire_cost * (self.hiring_discount(type_id) or 1.0))
        if not self.inventory.debit(cost, reason=f"hire {type_id}"):
            self.bus.notify(
                NotificationLevel.ERROR,
                f"Not enough money to hire a {worker_type.name}. Cost: ${cost:.2f}",
            )
            return None

        worker = Worker(
            id=f"{type_id}_{uuid4().hex[:12]}",
            name=f"{self.rng.choice(FIRST_NAMES)} {self.rng.choice(LAST_NAMES)}",
            type_id=type_id,
            salary=worker_type.salary,
            hire_date=self.now(),
        )
        self.workers[worker.id] = worker

        self.bus.publish(WorkerHired(worker=worker))
        self.bus.notify(
            NotificationLevel.SUCCESS,
            f"Hired {worker.name} as a {worker_type.name} for ${cost:.2f}",
        )
        return worker

    def fire_worker(self, worker_id: str) -> bool:
        worker = self.workers.pop(worker_id, None)
        if worker is None:
            self.bus.notify(NotificationLevel.ERROR, "Worker not found.")
            return False

        self.bus.publish(WorkerFired(worker=worker))
        self.bus.notify(NotificationLevel.INFO, f"Fired {worker.name}.")
        return True

    # =========================================================================
    # TASKS AND REST
    # =========================================================================

    def assign_task(self, worker_id: str, task: WorkerTask) -> bool:
        worker = self.workers.get(worker_id)
        if worker is None:
            self.bus.notify(NotificationLevel.ERROR, "Worker not found.")
            return False
        if worker.resting:
            self.bus.notify(NotificationLevel.ERROR, f"{worker.name} is resting and cannot be assigned tasks.")
            return False
        if worker.exhausted:
            self.bus.notify(NotificationLevel.ERROR, f"{worker.name} is too fatigued to work.")
            return False
        if task.kind == TaskKind.CRAFTING and not task.item_id:
            self.bus.notify(NotificationLevel.ERROR, "No item specified for crafting task.")
            return False

        worker.task = task
        worker.status = WorkerStatus.WORKING
        self.bus.publish(WorkerTaskAssigned(worker=worker))
        self.bus.notify(NotificationLevel.INFO, f"Assigned {worker.name} to {task.kind.value} duty.")
        return True

    def set_worker_resting(self, worker_id: str, resting: bool) -> bool:
        worker = self.workers.get(worker_id)
        if worker is None:
            return False

        if resting:
            worker.status = WorkerStatus.RESTING
            worker.task = None
        else:
            worker.status = WorkerStatus.IDLE
        self.bus.publish(WorkerRestingChanged(worker=worker, resting=resting))
        return True

    # =========================================================================
    # UPDATE LOOP
    # =========================================================================

    def update(self) -> None:
        for worker in list(self.workers.values()):
            self._update_worker(worker)
        self.update_hiring_discounts()

    def _update_worker(self, worker: Worker) -> None:
        if worker.resting:
            self._recover(worker)
            return

        if worker.exhausted:
            self.set_worker_resting(worker.id, True)
            self.bus.notify(
                NotificationLevel.WARNING,
                f"{worker.name} is too fatigued to work and needs to rest.",
            )
            return

        task = worker.task
        if task is not None and task.kind == TaskKind.CRAFTING:
            self._run_crafting_task(worker, task)
        elif task is not None and task.kind == TaskKind.COAL:
            self._run_coal_task(worker)

        self._tire(worker)

    def _run_crafting_task(self, worker: Worker, task: WorkerTask) -> None:
        if not self.crafting.is_idle:
            return

        check = self.crafting.can_craft(task.item_id)
        if not check:
            self.bus.notify(
                NotificationLevel.WARNING,
                f"{worker.name} can't craft {task.item_id}: {check.reason}",
            )
            worker.task = None
            worker.status = WorkerStatus.IDLE
            return

        previous = self.crafting.speed_multiplier
        self.crafting.set_speed_multiplier(worker.worker_type.speed_multiplier)
        try:
            self.crafting.start_crafting(task.item_id, 1, worker_id=worker.id)
        finally:
            self.crafting.set_speed_multiplier(previous)

    def _run_coal_task(self, worker: Worker) -> None:
        if self.forge.level <= COAL_TASK_REFILL_LEVEL and self.forge.can_refill():
            self.forge.refill(by=worker.name)

    def _tire(self, worker: Worker) -> None:
        worker_type = worker.worker_type
        if worker.task is None:
            increase = IDLE_FATIGUE
        elif worker.task.kind == TaskKind.CRAFTING:
            increase = CRAFTING_FATIGUE * worker_type.fatigue_rate
        else:
            increase = COAL_TASK_FATIGUE

        worker.fatigue = min(worker_type.max_fatigue, worker.fatigue + increase)

        if worker.fatigue >= worker_type.max_fatigue * HIGH_FATIGUE_RATIO and not worker.high_fatigue_warning:
            worker.high_fatigue_warning = True
            self.bus.notify(
                NotificationLevel.WARNING,
                f"{worker.name} is getting very tired ({math.floor(worker.fatigue)}% fatigue).",
            )

    def _recover(self, worker: Worker) -> None:
        worker_type = worker.worker_type
        worker.fatigue = max(0.0, worker.fatigue - REST_RECOVERY * worker_type.recovery_rate)

        if worker.fatigue < worker_type.max_fatigue * FATIGUE_REARM_RATIO:
            worker.high_fatigue_warning = False

        if worker.fatigue == 0 and worker.was_resting:
            worker.was_resting = False
            self.bus.notify(NotificationLevel.INFO, f"{worker.name} is fully rested and ready to work.")
        elif worker.fatigue > 0:
            worker.was_resting = True

    # =========================================================================
    # WAGES
    # =========================================================================

    def _on_new_day(self, event: NewDay) -> None:
        self.process_daily_wages()

    def process_daily_wages(self) -> bool:
        """Pay today's salaries plus any debt carried from earlier days."""
        salaries = sum(w.salary for w in self.workers.values())
        owed = round_money(salaries + self.wage_debt)
        if owed <= 0:
            return True

        if self.inventory.debit(owed, reason="wages"):
            self.wage_debt = 0.0
            self.bus.publish(WagesPaid(amount=owed, worker_count=len(self.workers)))
            self.bus.notify(
                NotificationLevel.INFO,
                f"Paid ${owed:.2f} in wages to {len(self.workers)} worker(s).",
            )
            return True

        self.wage_debt = owed
        logger.info(f"Wages unpaid, debt now {owed:.2f}")
        self.bus.publish(WagesUnpaid(amount=owed, debt=self.wage_debt))
        self.bus.notify(
            NotificationLevel.ERROR,
            f"Not enough money to pay worker wages! (${owed:.2f} needed)",
        )
        return False

    # =========================================================================
    # HIRING DISCOUNTS
    # =========================================================================

    def set_hiring_discount(self, type_id: str, multiplier: float, expiry: datetime) -> None:
        """type_id is a worker type id or "all"."""
        self.hiring_discounts[type_id] = TimedModifier(multiplier, expiry)
        percent = round((1 - multiplier) * 100)
        self.bus.notify(
            NotificationLevel.INFO,
            f"Worker hiring discount: {percent}% off {self._describe_type(type_id)}",
        )

    def hiring_discount(self, type_id: str) -> Optional[float]:
        """Active multiplier for a type; a type-specific discount beats "all"."""
        now = self.now()
        for key in (type_id, ALL_WORKERS):
            modifier = self.hiring_discounts.get(key)
            if modifier and modifier.is_active(now):
                return modifier.multiplier
        return None

    def update_hiring_discounts(self) -> None:
        now = self.now()
        for type_id, modifier in list(self.hiring_discounts.items()):
            if not modifier.is_active(now):
                del self.hiring_discounts[type_id]
                self.bus.notify(
                    NotificationLevel.INFO,
                    f"Hiring discount for {self._describe_type(type_id)} has expired.",
                )

    def _describe_type(self, type_id: str) -> str:
        if type_id == ALL_WORKERS:
            return "all workers"
        worker_type = self.worker_types.get(type_id)
        return worker_type.name if worker_type else type_id

    # =========================================================================
    # STATE QUERIES
    # =========================================================================

    def available_worker_types(self) -> List[dict]:
        types = []
        for worker_type in self.worker_types.values():
            info = worker_type.to_dict()
            discount = self.hiring_discount(worker_type.id)
            info["current_hire_cost"] = round_money(worker_type.hire_cost * (discount or 1.0))
            info["discount"] = discount
            types.append(info)
        return types

    def hired_workers(self) -> List[Worker]:
        return list(self.workers.values())

    def get_worker(self, worker_id: str) -> Optional[Worker]:
        return self.workers.get(worker_id)

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def serialize(self) -> dict:
        return {
            "workers": {i: w.to_dict() for i, w in self.workers.items()},
            "hiring_discounts": {k: m.to_dict() for k, m in self.hiring_discounts.items()},
            "wage_debt": self.wage_debt,
        }

    def deserialize(self, data: Optional[dict]) -> None:
        if not data:
            return

        self.workers = {}
        for worker_id, raw in (data.get("workers") or {}).items():
            try:
                self.workers[worker_id] = Worker.from_dict(raw)
            except (KeyError, TypeError, ValueError):
                logger.warning(f"Skipping malformed worker in save: {worker_id}")

        self.hiring_discounts = {}
        for type_id, raw in (data.get("hiring_discounts") or {}).items():
            try:
                self.hiring_discounts[type_id] = TimedModifier.from_dict(raw)
            except (KeyError, TypeError, ValueError):
                logger.warning(f"Skipping malformed hiring discount for {type_id}")

        self.wage_debt = float(data.get("wage_debt", 0.0))
