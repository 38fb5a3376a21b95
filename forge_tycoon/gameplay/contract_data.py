"""
Contract definitions - the bulk orders customers can place.
NO UI DEPENDENCIES.
"""
import random
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from .constants import BASIC_CONTRACT_ITEMS


@dataclass(frozen=True)
class ContractDefinition:
    """
    A template for standard contracts.

    Quantity and duration (real minutes) are drawn uniformly from the
    inclusive ranges. Weight is the relative chance of being picked.
    """
    id: str
    customer: str
    item_id: str
    min_quantity: int
    max_quantity: int
    min_duration: int
    max_duration: int
    payout_multiplier: float
    description: str
    weight: int

    def roll(self, rng: random.Random) -> Tuple[int, int]:
        """Draw (quantity, duration minutes)."""
        return (
            rng.randint(self.min_quantity, self.max_quantity),
            rng.randint(self.min_duration, self.max_duration),
        )


@dataclass(frozen=True)
class IntroContract:
    """A one-off special contract offered when a blueprint unlocks."""
    customer: str
    description: str
    quantity: int
    payout_multiplier: float
    duration_minutes: int


CONTRACT_DEFINITIONS: List[ContractDefinition] = [
    # Mining company
    ContractDefinition("mining_pickaxes", "Rocky Mountain Mining Co.", "pickaxe", 3, 8, 10, 20, 1.2,
                       "The local mining company needs new pickaxes for their expanding workforce.", 10),
    ContractDefinition("mining_shovels", "Rocky Mountain Mining Co.", "shovel", 2, 6, 8, 15, 1.2,
                       "The miners need replacement shovels after a cave-in damaged their equipment.", 8),

    # Ranch
    ContractDefinition("ranch_horseshoes", "Big Sky Ranch", "horseshoe", 10, 24, 8, 15, 1.15,
                       "The local ranch needs a large order of horseshoes for their horses.", 12),
    ContractDefinition("ranch_decorative_horseshoes", "Big Sky Ranch", "decorativeHorseshoe", 3, 8, 12, 20, 1.25,
                       "The ranch owner wants some decorative horseshoes as gifts for important guests.", 5),

    # General store
    ContractDefinition("store_nails", "Thompson's General Store", "nail", 40, 100, 5, 10, 1.1,
                       "The general store needs to restock their supply of nails.", 15),
    ContractDefinition("store_hinges", "Thompson's General Store", "hinge", 5, 15, 8, 15, 1.1,
                       "The general store has several customers needing hinges for doors and cabinets.", 10),
    ContractDefinition("store_pots", "Thompson's General Store", "pot", 3, 8, 10, 20, 1.2,
                       "The general store needs cooking pots to sell to new homesteaders.", 8),

    # Sheriff's office
    ContractDefinition("sheriff_rifles", "County Sheriff's Office", "rifle", 2, 5, 15, 25, 1.3,
                       "The sheriff's office needs new rifles for their deputies.", 4),
    ContractDefinition("sheriff_revolvers", "County Sheriff's Office", "revolver", 1, 3, 12, 20, 1.3,
                       "The sheriff needs new revolvers for the deputy patrol.", 3),
    ContractDefinition("sheriff_bullets", "County Sheriff's Office", "bullets", 10, 30, 8, 15, 1.25,
                       "The sheriff's office needs ammunition for their firearms.", 6),

    # Railroad
    ContractDefinition("railroad_tools", "Western Pacific Railroad", "pickaxe", 5, 10, 12, 20, 1.25,
                       "The railroad needs tools for laying new track through the mountains.", 6),
    ContractDefinition("railroad_spikes", "Western Pacific Railroad", "nail", 100, 200, 10, 18, 1.2,
                       "The railroad needs spikes for securing rails to the ties.", 7),

    # Upscale
    ContractDefinition("mayor_buckles", "Mayor's Office", "belt_buckle", 3, 6, 12, 20, 1.4,
                       "The mayor wants custom belt buckles as gifts for visiting dignitaries.", 3),
    ContractDefinition("mansion_candelabra", "Morgan Estate", "silverCandelabra", 2, 4, 15, 25, 1.5,
                       "The wealthy Morgan family wants silver candelabras for their dining room.", 2),
]

INTRO_CONTRACTS: Dict[str, IntroContract] = {
    "rifle": IntroContract(
        "County Sheriff's Office",
        "The sheriff wants to test your craftsmanship with a first order.",
        2, 1.5, 30,
    ),
    "revolver": IntroContract(
        "Silver Dollar Saloon",
        "The saloon owner needs protection for his establishment.",
        1, 1.4, 20,
    ),
    "decorativeHorseshoe": IntroContract(
        "Wilson Ranch",
        "The Wilson family wants decorative horseshoes for their new barn.",
        3, 1.3, 25,
    ),
}


def choose_definition(
    rng: random.Random,
    available_items: Sequence[str],
    definitions: Sequence[ContractDefinition] = CONTRACT_DEFINITIONS,
) -> Optional[ContractDefinition]:
    """
    Weighted pick among definitions for items the shop can make.
    Falls back to the basic-item definitions when nothing matches.
    """
    candidates = list(definitions)
    if available_items:
        candidates = [d for d in definitions if d.item_id in available_items]
    if not candidates:
        candidates = [d for d in definitions if d.item_id in BASIC_CONTRACT_ITEMS]
    if not candidates:
        return None

    remaining = rng.random() * sum(d.weight for d in candidates)
    for definition in candidates:
        remaining -= definition.weight
        if remaining <= 0:
            return definition
    return candidates[0]


def calculate_payout(base_price: float, quantity: int, multiplier: float) -> float:
    return round(base_price * quantity * multiplier, 2)
