"""
Reference data: materials, tools and craftable recipes.
NO UI DEPENDENCIES.

Everything here is immutable. Which recipes are unlocked at runtime is
owned by the BlueprintRegistry; ``Recipe.unlocked`` only seeds it.
"""
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class Material:
    """A raw material bought by weight or count."""
    id: str
    name: str
    description: str
    base_price: float
    unit: str


@dataclass(frozen=True)
class ToolSpec:
    """A purchasable tool and how many uses a fresh one has."""
    id: str
    name: str
    description: str
    durability: int
    base_price: float


@dataclass(frozen=True)
class Recipe:
    """A craftable item: inputs, timing and economics."""
    id: str
    name: str
    description: str
    category: str
    complexity: str
    crafting_time: float          # seconds (ticks at speed 1.0)
    base_price: float
    required_materials: Dict[str, float] = field(default_factory=dict)
    required_tools: Tuple[str, ...] = ()
    coal_usage: Optional[float] = None
    batch_size: int = 1
    unlocked: bool = False
    blueprint_price: Optional[float] = None
    creates_tool: Optional[str] = None

    def summary(self) -> dict:
        """Plain-data view for listings and API responses."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "complexity": self.complexity,
            "crafting_time": self.crafting_time,
            "base_price": self.base_price,
            "required_materials": dict(self.required_materials),
            "required_tools": list(self.required_tools),
            "coal_usage": self.coal_usage,
            "batch_size": self.batch_size,
            "blueprint_price": self.blueprint_price,
            "creates_tool": self.creates_tool,
        }


def _index(*entries):
    return {entry.id: entry for entry in entries}


# =============================================================================
# MATERIALS
# =============================================================================

MATERIALS: Dict[str, Material] = _index(
    Material("iron", "Iron", "Basic metal for crafting tools and weapons", 2.50, "pound"),
    Material("coal", "Coal", "Fuel for the forge", 1.00, "pound"),
    Material("wood", "Wood", "Used for handles and structural components", 1.50, "board"),
    Material("leather", "Leather", "Used for handles and decorative elements", 3.00, "piece"),
    Material("gunpowder", "Gunpowder", "Used in ammunition crafting", 5.00, "ounce"),
    Material("copper", "Copper", "Soft metal used for decorative elements and wire", 3.00, "pound"),
    Material("silver", "Silver", "Precious metal for decorative items", 12.00, "ounce"),
    Material("gold", "Gold", "Valuable precious metal for luxury items", 25.00, "ounce"),
)

# =============================================================================
# TOOLS
# =============================================================================

TOOLS: Dict[str, ToolSpec] = _index(
    ToolSpec("hammer", "Hammer", "Basic shaping tool for metalwork", 30, 10.00),
    ToolSpec("anvil", "Anvil", "Heavy metal block for shaping metal", 50, 35.00),
    ToolSpec("tongs", "Tongs", "For holding hot metal while working", 40, 15.00),
    ToolSpec("saw", "Saw", "For cutting wood", 35, 12.00),
    ToolSpec("file", "File", "For smoothing and final shaping", 25, 8.00),
    ToolSpec("chisel", "Chisel", "For detailed metal work", 20, 7.50),
    ToolSpec("needle", "Needle", "For working with leather", 15, 5.00),
    ToolSpec("scissors", "Scissors", "For cutting leather and cloth", 30, 9.00),
)

# =============================================================================
# RECIPES
# =============================================================================

_STANDARD = ("hammer", "tongs", "anvil")

RECIPES: Dict[str, Recipe] = _index(
    # Basic items
    Recipe("horseshoe", "Horseshoe", "Standard horseshoe for horses",
           "metal", "simple", 30, 5.00,
           {"iron": 2, "coal": 1}, _STANDARD, coal_usage=5, unlocked=True),
    Recipe("nail", "Nail", "Basic iron nail",
           "metal", "simple", 10, 0.25,
           {"iron": 0.2}, ("hammer", "anvil"), coal_usage=2, batch_size=10, unlocked=True),
    Recipe("hinge", "Hinge", "Metal hinge for doors and cabinets",
           "metal", "simple", 25, 2.00,
           {"iron": 1}, _STANDARD, coal_usage=3, unlocked=True),
    Recipe("pickaxe", "Pickaxe", "Tool for mining operations",
           "metal", "medium", 60, 15.00,
           {"iron": 4, "wood": 1}, _STANDARD + ("saw",), coal_usage=8, unlocked=True),
    Recipe("hatchet", "Hatchet", "Small axe for chopping wood",
           "metal", "medium", 45, 12.00,
           {"iron": 3, "wood": 1}, _STANDARD + ("saw",), coal_usage=7, unlocked=True),

    # Medium complexity items
    Recipe("knife", "Knife", "General purpose knife",
           "metal", "medium", 40, 8.00,
           {"iron": 1.5, "wood": 0.5, "leather": 0.5}, _STANDARD + ("file",),
           coal_usage=5, unlocked=True),
    Recipe("pot", "Iron Pot", "Cooking pot for the home",
           "metal", "medium", 50, 10.00,
           {"iron": 5}, _STANDARD, coal_usage=10, unlocked=True),

    # Weapons (blueprints)
    Recipe("rifle", "Rifle", "Long-range firearm",
           "weapon", "complex", 120, 45.00,
           {"iron": 8, "wood": 2}, _STANDARD + ("file", "saw", "chisel"),
           coal_usage=15, blueprint_price=50.00),
    Recipe("revolver", "Revolver", "Six-shooter sidearm",
           "weapon", "complex", 100, 35.00,
           {"iron": 5, "wood": 1}, _STANDARD + ("file", "chisel"),
           coal_usage=12, blueprint_price=40.00),
    Recipe("bullets", "Bullets", "Ammunition for firearms",
           "weapon", "medium", 30, 0.50,
           {"iron": 0.5, "gunpowder": 0.5}, ("tongs", "hammer"),
           coal_usage=2, batch_size=10, blueprint_price=25.00),

    # Decorative items (blueprints)
    Recipe("decorativeHorseshoe", "Decorative Horseshoe", "Ornate horseshoe for good luck",
           "metal", "medium", 45, 12.00,
           {"iron": 2, "copper": 0.5}, _STANDARD + ("chisel", "file"),
           coal_usage=6, blueprint_price=15.00),
    Recipe("belt_buckle", "Belt Buckle", "Decorative belt buckle",
           "metal", "medium", 35, 8.00,
           {"iron": 1, "copper": 0.5}, _STANDARD + ("chisel", "file"),
           coal_usage=4, blueprint_price=10.00),
    Recipe("silverCandelabra", "Silver Candelabra", "Elegant silver candle holder",
           "metal", "complex", 90, 65.00,
           {"silver": 3, "iron": 1}, _STANDARD + ("chisel", "file"),
           coal_usage=10, blueprint_price=35.00),

    # Replacement tools
    Recipe("new_hammer", "Hammer", "Crafted replacement hammer",
           "tool", "simple", 40, 10.00,
           {"iron": 2, "wood": 1}, ("tongs", "anvil"),
           coal_usage=5, creates_tool="hammer", unlocked=True),
    Recipe("new_tongs", "Tongs", "Crafted replacement tongs",
           "tool", "simple", 30, 15.00,
           {"iron": 3}, ("hammer", "anvil"),
           coal_usage=6, creates_tool="tongs", unlocked=True),
    Recipe("new_file", "File", "Crafted replacement file",
           "tool", "medium", 35, 8.00,
           {"iron": 1.5}, _STANDARD,
           coal_usage=4, creates_tool="file", unlocked=True),
    Recipe("new_chisel", "Chisel", "Crafted replacement chisel",
           "tool", "medium", 30, 7.50,
           {"iron": 1, "wood": 0.5}, _STANDARD + ("file",),
           coal_usage=3, creates_tool="chisel", unlocked=True),
)


def get_recipe(item_id: str) -> Optional[Recipe]:
    return RECIPES.get(item_id)


def get_material(material_id: str) -> Optional[Material]:
    return MATERIALS.get(material_id)


def get_tool(tool_id: str) -> Optional[ToolSpec]:
    return TOOLS.get(tool_id)
