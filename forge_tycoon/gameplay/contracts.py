"""
ContractBoard - standard and special bulk orders with real-time deadlines.
NO UI DEPENDENCIES.

Deadlines are wall-clock instants, not game time: a 15 minute contract
expires 15 real minutes after it was offered whatever the time multiplier.
"""
import logging
import random
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, List, Mapping, Optional, Sequence
from uuid import uuid4

from forge_tycoon.events import (
    BlueprintUnlocked,
    ContractAvailable,
    ContractCompleted,
    ContractExpired,
    ContractRejected,
    EventBus,
    NotificationLevel,
    SpecialContractAvailable,
)

from .blueprints import BlueprintRegistry
from .catalog import RECIPES, Recipe
from .constants import CONTRACT_INTERVAL, MAX_CONTRACTS
from .contract_data import (
    CONTRACT_DEFINITIONS,
    INTRO_CONTRACTS,
    ContractDefinition,
    calculate_payout,
    choose_definition,
)
from .inventory import ResourceLedger
from .timing import Now, deadline_from_iso, from_iso, minutes_from, seconds_left, to_iso, utc_now

logger = logging.getLogger(__name__)


class ContractKind(Enum):
    STANDARD = "standard"   # Generated on the board's cadence, capped
    SPECIAL = "special"     # Spawned by events or unlocks, uncapped


@dataclass
class Contract:
    id: str
    customer: str
    item_id: str
    quantity: int
    description: str
    expiry_time: datetime
    payout_multiplier: float = 1.0
    payout: float = 0.0
    duration_minutes: Optional[float] = None
    kind: ContractKind = ContractKind.STANDARD
    item_name: str = ""
    created_at: Optional[datetime] = None
    base_definition: Optional[str] = None

    @property
    def is_special(self) -> bool:
        return self.kind == ContractKind.SPECIAL

    def is_expired(self, now: datetime) -> bool:
        return self.expiry_time <= now

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer": self.customer,
            "item_id": self.item_id,
            "item_name": self.item_name,
            "quantity": self.quantity,
            "description": self.description,
            "expiry_time": to_iso(self.expiry_time),
            "payout_multiplier": self.payout_multiplier,
            "payout": self.payout,
            "duration_minutes": self.duration_minutes,
            "kind": self.kind.value,
            "created_at": to_iso(self.created_at),
            "base_definition": self.base_definition,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Contract":
        return cls(
            id=data["id"],
            customer=data["customer"],
            item_id=data["item_id"],
            quantity=int(data["quantity"]),
            description=data.get("description", ""),
            expiry_time=deadline_from_iso(data["expiry_time"]),
            payout_multiplier=float(data.get("payout_multiplier", 1.0)),
            payout=float(data.get("payout", 0.0)),
            duration_minutes=data.get("duration_minutes"),
            kind=ContractKind(data.get("kind", ContractKind.STANDARD.value)),
            item_name=data.get("item_name", ""),
            created_at=from_iso(data.get("created_at")),
            base_definition=data.get("base_definition"),
        )


class ContractBoard:
    """
    Offers contracts and settles them.

    A new standard contract is attempted every CONTRACT_INTERVAL ticks while
    fewer than MAX_CONTRACTS are open. Special contracts bypass both.
    Expiry is checked every tick regardless of the generation timer.
    """

    def __init__(
        self,
        bus: EventBus,
        inventory: ResourceLedger,
        blueprints: BlueprintRegistry,
        recipes: Mapping[str, Recipe] = RECIPES,
        definitions: Sequence[ContractDefinition] = CONTRACT_DEFINITIONS,
        rng: Optional[random.Random] = None,
        now: Now = utc_now,
    ):
        self.bus = bus
        self.inventory = inventory
        self.blueprints = blueprints
        self.recipes = recipes
        self.definitions = definitions
        self.rng = rng or random.Random()
        self.now = now

        self.active_contracts: List[Contract] = []
        self.special_contracts: List[Contract] = []
        self.contract_timer = 0
        self.contract_interval = CONTRACT_INTERVAL
        self.max_contracts = MAX_CONTRACTS
        self.time_multiplier = 1.0

        bus.subscribe(BlueprintUnlocked, self._on_blueprint_unlocked)

    # =========================================================================
    # UPDATE LOOP
    # =========================================================================

    def update(self) -> None:
        self.contract_timer += 1
        if self.contract_timer >= self.contract_interval:
            self.contract_timer = 0
            self.generate_contract()

        self.check_expired_contracts()

    def generate_contract(self) -> Optional[Contract]:
        if len(self.active_contracts) >= self.max_contracts:
            return None

        definition = choose_definition(self.rng, self.available_items(), self.definitions)
        if definition is None:
            logger.warning("No contract definition available to generate from")
            return None

        recipe = self.recipes.get(definition.item_id)
        if recipe is None:
            logger.warning(f"Contract {definition.id} references unknown item: {definition.item_id}")
            return None

        quantity, duration = definition.roll(self.rng)
        duration = round(duration * self.time_multiplier)
        now = self.now()

        contract = Contract(
            id=f"{definition.id}_{uuid4().hex[:8]}",
            customer=definition.customer,
            item_id=definition.item_id,
            item_name=recipe.name,
            quantity=quantity,
            description=definition.description,
            expiry_time=minutes_from(now, duration),
            duration_minutes=duration,
            payout_multiplier=definition.payout_multiplier,
            payout=calculate_payout(recipe.base_price, quantity, definition.payout_multiplier),
            created_at=now,
            base_definition=definition.id,
        )
        self.active_contracts.append(contract)

        self.bus.publish(ContractAvailable(contract=contract))
        self.bus.notify(
            NotificationLevel.INFO,
            f"New contract from {contract.customer}: {contract.quantity}x {contract.item_name}",
        )
        return contract

    def check_expired_contracts(self) -> List[Contract]:
        """Remove every contract whose deadline has passed."""
        now = self.now()
        expired = [c for c in self.active_contracts + self.special_contracts if c.is_expired(now)]
        if not expired:
            return []

        self.active_contracts = [c for c in self.active_contracts if not c.is_expired(now)]
        self.special_contracts = [c for c in self.special_contracts if not c.is_expired(now)]

        for contract in expired:
            self.bus.publish(ContractExpired(contract=contract))
            self.bus.notify(
                NotificationLevel.WARNING,
                f"Contract from {contract.customer} for {contract.quantity}x {contract.item_name} has expired.",
            )
        return expired

    # =========================================================================
    # PLAYER COMMANDS
    # =========================================================================

    def fulfill_contract(self, contract_id: str) -> bool:
        contract = self.find_contract(contract_id)
        if contract is None:
            self.bus.notify(NotificationLevel.ERROR, "Contract not found.")
            return False

        if not self.inventory.has_items({contract.item_id: contract.quantity}):
            self.bus.notify(
                NotificationLevel.ERROR,
                f"Not enough {contract.item_name} to fulfill this contract.",
            )
            return False

        if not self.inventory.remove_item(contract.item_id, contract.quantity):
            self.bus.notify(NotificationLevel.ERROR, "Failed to remove items from inventory.")
            return False

        self._discard(contract)
        self.inventory.add_money(contract.payout)

        self.bus.publish(ContractCompleted(contract=contract))
        self.bus.notify(
            NotificationLevel.SUCCESS,
            f"Contract completed: {contract.quantity}x {contract.item_name} for ${contract.payout:.2f}",
        )
        return True

    def reject_contract(self, contract_id: str) -> bool:
        contract = self.find_contract(contract_id)
        if contract is None:
            self.bus.notify(NotificationLevel.ERROR, "Contract not found.")
            return False

        self._discard(contract)
        self.bus.publish(ContractRejected(contract=contract))
        self.bus.notify(NotificationLevel.INFO, f"Rejected contract from {contract.customer}.")
        return True

    # =========================================================================
    # SPECIAL CONTRACTS
    # =========================================================================

    def add_special_contract(self, contract: Contract) -> Optional[Contract]:
        """Post an uncapped contract. Payout is computed if not already set."""
        recipe = self.recipes.get(contract.item_id)
        if recipe is None:
            logger.warning(f"Special contract references unknown item: {contract.item_id}")
            return None

        contract.kind = ContractKind.SPECIAL
        if not contract.payout:
            contract.payout = calculate_payout(recipe.base_price, contract.quantity, contract.payout_multiplier)
        contract.item_name = recipe.name
        contract.created_at = self.now()
        self.special_contracts.append(contract)

        self.bus.publish(SpecialContractAvailable(contract=contract))
        self.bus.notify(
            NotificationLevel.INFO,
            f"Special contract available: {contract.customer} wants {contract.quantity}x {contract.item_name}",
        )
        return contract

    def offer_special_contract(
        self,
        item_id: str,
        customer: str,
        quantity: int,
        payout_multiplier: float,
        duration_minutes: float,
        description: str = "",
        prefix: str = "special",
    ) -> Optional[Contract]:
        """Build a special contract expiring duration_minutes from now and post it."""
        contract = Contract(
            id=f"{prefix}_{item_id}_{uuid4().hex[:8]}",
            customer=customer,
            item_id=item_id,
            quantity=quantity,
            description=description,
            expiry_time=minutes_from(self.now(), duration_minutes),
            duration_minutes=duration_minutes,
            payout_multiplier=payout_multiplier,
            kind=ContractKind.SPECIAL,
        )
        return self.add_special_contract(contract)

    def _on_blueprint_unlocked(self, event: BlueprintUnlocked) -> None:
        intro = INTRO_CONTRACTS.get(event.item_id)
        if intro is None:
            return
        self.offer_special_contract(
            item_id=event.item_id,
            customer=intro.customer,
            quantity=intro.quantity,
            payout_multiplier=intro.payout_multiplier,
            duration_minutes=intro.duration_minutes,
            description=intro.description,
            prefix="intro",
        )

    # =========================================================================
    # STATE QUERIES
    # =========================================================================

    def available_items(self) -> List[str]:
        """Unlocked items that customers can order (no replacement tools)."""
        return [
            r.id for r in self.recipes.values()
            if self.blueprints.is_unlocked(r.id) and not r.creates_tool
        ]

    def find_contract(self, contract_id: str) -> Optional[Contract]:
        for contract in self.active_contracts + self.special_contracts:
            if contract.id == contract_id:
                return contract
        return None

    def all_contracts(self) -> Dict[str, List[Contract]]:
        return {
            "standard": list(self.active_contracts),
            "special": list(self.special_contracts),
        }

    def contract_time_remaining(self, contract_id: str) -> Optional[dict]:
        contract = self.find_contract(contract_id)
        if contract is None:
            return None

        left = seconds_left(contract.expiry_time, self.now())
        if left <= 0:
            return {"minutes": 0, "seconds": 0, "percentage": 0.0}

        percentage = 0.0
        if contract.duration_minutes:
            percentage = left / (contract.duration_minutes * 60) * 100
        return {"minutes": int(left // 60), "seconds": int(left % 60), "percentage": percentage}

    def _discard(self, contract: Contract) -> None:
        if contract.is_special:
            self.special_contracts.remove(contract)
        else:
            self.active_contracts.remove(contract)

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def serialize(self) -> dict:
        return {
            "active_contracts": [c.to_dict() for c in self.active_contracts],
            "special_contracts": [c.to_dict() for c in self.special_contracts],
            "contract_timer": self.contract_timer,
        }

    def deserialize(self, data: Optional[dict]) -> None:
        if not data:
            return
        self.active_contracts = self._restore(data.get("active_contracts") or [])
        self.special_contracts = self._restore(data.get("special_contracts") or [])
        self.contract_timer = int(data.get("contract_timer", 0))

    def _restore(self, raw_contracts: list) -> List[Contract]:
        restored = []
        for raw in raw_contracts:
            try:
                restored.append(Contract.from_dict(raw))
            except (KeyError, TypeError, ValueError):
                logger.warning(f"Skipping malformed contract in save: {raw!r}")
        return restored
