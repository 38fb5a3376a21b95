"""
Random event definitions and their typed effects.
NO UI DEPENDENCIES.

Conditions only see a BlueprintView, never the components themselves.
"""
import random
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple, Union

from .blueprints import BlueprintView


@dataclass(frozen=True)
class DemandIncrease:
    item_id: str
    multiplier: float


@dataclass(frozen=True)
class MaterialPriceChange:
    material_id: str
    multiplier: float


@dataclass(frozen=True)
class SpecialContractOffer:
    customer: str
    item_id: str
    quantity: int
    payout_multiplier: float
    description: str
    duration_minutes: int


@dataclass(frozen=True)
class WorkerDiscount:
    type_id: str    # worker type id or "all"
    multiplier: float


@dataclass(frozen=True)
class ToolPriceChange:
    multiplier: float


Effect = Union[DemandIncrease, MaterialPriceChange, SpecialContractOffer, WorkerDiscount, ToolPriceChange]
Condition = Callable[[BlueprintView], bool]


@dataclass(frozen=True)
class EventDefinition:
    id: str
    name: str
    description: str
    duration_minutes: int
    weight: int
    effects: Tuple[Effect, ...]
    condition: Optional[Condition] = None

    def is_eligible(self, blueprints: BlueprintView) -> bool:
        return self.condition is None or self.condition(blueprints)


def any_unlocked(*item_ids: str) -> Condition:
    def condition(blueprints: BlueprintView) -> bool:
        return any(blueprints.is_blueprint_unlocked(i) for i in item_ids)
    return condition


EVENT_DEFINITIONS: List[EventDefinition] = [
    EventDefinition(
        "mine_collapse", "Mine Collapse!",
        "The local mine has suffered a collapse! Miners need new tools immediately.",
        10, 10,
        (
            DemandIncrease("pickaxe", 2.0),
            SpecialContractOffer("Rocky Mountain Mining Co.", "pickaxe", 8, 1.5,
                                 "Emergency order: Replacement pickaxes needed for rescue efforts.", 8),
        ),
    ),
    EventDefinition(
        "horse_race", "County Horse Race",
        "The annual county horse race is coming up! Local ranchers need horseshoes for their prized horses.",
        15, 8,
        (
            DemandIncrease("horseshoe", 1.8),
            SpecialContractOffer("Big Sky Ranch", "horseshoe", 16, 1.3,
                                 "Premium horseshoes needed for race horses.", 12),
        ),
    ),
    EventDefinition(
        "railroad_expansion", "Railroad Expansion",
        "The railroad is expanding west! They need supplies to build new track.",
        20, 7,
        (
            DemandIncrease("nail", 1.5),
            SpecialContractOffer("Western Pacific Railroad", "nail", 120, 1.4,
                                 "Large order of rail spikes needed for new track.", 15),
        ),
    ),
    EventDefinition(
        "bandit_activity", "Bandit Activity",
        "Bandits are active in the area! The sheriff needs weapons to arm deputies.",
        12, 6,
        (
            DemandIncrease("rifle", 1.7),
            DemandIncrease("revolver", 1.6),
            SpecialContractOffer("County Sheriff's Office", "bullets", 40, 1.6,
                                 "The sheriff needs ammunition for a posse to track down bandits.", 10),
        ),
        condition=any_unlocked("rifle", "revolver"),
    ),
    EventDefinition(
        "iron_shipment", "Iron Shipment",
        "A large shipment of iron has arrived in town! Prices are lower than usual.",
        15, 12,
        (MaterialPriceChange("iron", 0.7),),
    ),
    EventDefinition(
        "coal_shortage", "Coal Shortage",
        "Coal supplies are running low in the region. Prices have increased.",
        18, 9,
        (MaterialPriceChange("coal", 1.5),),
    ),
    EventDefinition(
        "lumber_surplus", "Lumber Surplus",
        "Local lumberjacks have an excess of wood. Prices are temporarily reduced.",
        12, 10,
        (MaterialPriceChange("wood", 0.6),),
    ),
    EventDefinition(
        "mayors_ball", "Mayor's Annual Ball",
        "The mayor is hosting a grand ball for the town's elite. Decorative items are in high demand.",
        20, 5,
        (
            DemandIncrease("decorativeHorseshoe", 2.0),
            DemandIncrease("silverCandelabra", 2.5),
            SpecialContractOffer("Mayor's Office", "belt_buckle", 5, 1.8,
                                 "The mayor wants custom belt buckles as gifts for honored guests.", 15),
        ),
        condition=any_unlocked("decorativeHorseshoe", "belt_buckle", "silverCandelabra"),
    ),
    EventDefinition(
        "gold_rush", "Gold Rush",
        "Gold has been discovered nearby! Mining tools are in incredibly high demand.",
        25, 3,
        (
            DemandIncrease("pickaxe", 3.0),
            MaterialPriceChange("gold", 0.8),
            SpecialContractOffer("Prospector's Association", "pickaxe", 12, 2.0,
                                 "Prospectors need quality tools to stake their claims in the gold fields.", 20),
        ),
    ),
    EventDefinition(
        "skilled_apprentice", "Skilled Apprentice",
        "A skilled apprentice is looking for work! They'll work for reduced wages.",
        30, 6,
        (WorkerDiscount("apprentice", 0.7),),
    ),
    EventDefinition(
        "tool_salesman", "Traveling Tool Salesman",
        "A traveling salesman has arrived selling quality tools at discounted prices.",
        10, 7,
        (ToolPriceChange(0.6),),
    ),
    EventDefinition(
        "military_contract", "Military Contract",
        "The army is looking for supplies! This could be a lucrative opportunity.",
        15, 4,
        (
            SpecialContractOffer("U.S. Army", "rifle", 10, 2.0,
                                 "The Army needs rifles for a new detachment being deployed to the territory.", 25),
            SpecialContractOffer("U.S. Army", "bullets", 50, 1.8,
                                 "The Army needs ammunition for training exercises.", 15),
        ),
        condition=any_unlocked("rifle"),
    ),
]


def get_definition(event_id: str, definitions: Sequence[EventDefinition] = EVENT_DEFINITIONS) -> Optional[EventDefinition]:
    for definition in definitions:
        if definition.id == event_id:
            return definition
    return None


def choose_event(
    rng: random.Random,
    blueprints: BlueprintView,
    definitions: Sequence[EventDefinition] = EVENT_DEFINITIONS,
) -> Optional[EventDefinition]:
    """Weighted pick among the definitions whose condition currently holds."""
    eligible = [d for d in definitions if d.is_eligible(blueprints)]
    if not eligible:
        return None

    remaining = rng.random() * sum(d.weight for d in eligible)
    for definition in eligible:
        remaining -= definition.weight
        if remaining <= 0:
            return definition
    return eligible[0]
