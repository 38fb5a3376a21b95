"""
Game constants - all magic numbers in one place.
NO UI DEPENDENCIES.
"""

# =============================================================================
# STARTING INVENTORY
# =============================================================================
STARTING_MONEY = 100.00

STARTING_MATERIALS = {
    "iron": 50,
    "coal": 25,
    "wood": 30,
    "leather": 10,
    "gunpowder": 5,
    "copper": 20,
    "silver": 5,
    "gold": 1,
}

STARTING_ITEMS = {
    "pickaxe": 1,
    "hatchet": 1,
    "horseshoe": 2,
}

# tool id -> (uses, max uses)
STARTING_TOOLS = {
    "hammer": (25, 30),
    "anvil": (50, 50),
    "tongs": (40, 40),
}

DEFAULT_TOOL_DURABILITY = 30  # uses, for tools missing from the catalog

# =============================================================================
# FORGE (levels are percent)
# =============================================================================
COAL_MAX_LEVEL = 100.0
COAL_DEPLETION_RATE = 0.5     # per tick
COAL_LOW_THRESHOLD = 20.0
COAL_PER_REFILL = 5           # coal material consumed by one refill
COAL_MIN_CRAFTING_LEVEL = 20.0
DEFAULT_COAL_USAGE = 5        # for recipes that don't specify one

# =============================================================================
# TOOL WEAR
# =============================================================================
TOOL_REQUIREMENTS = {
    "metal": ("hammer", "tongs", "anvil"),
    "weapon": ("hammer", "tongs", "anvil", "file"),
    "wood": ("saw", "hammer"),
    "leather": ("needle", "scissors"),
}
FALLBACK_TOOLS = ("hammer",)
DEFAULT_CATEGORY = "metal"

# complexity tier -> uses worn off each required tool per craft
TOOL_WEAR = {
    "simple": 1,
    "medium": 2,
    "complex": 3,
}
DEFAULT_COMPLEXITY = "medium"

# =============================================================================
# CRAFTING
# =============================================================================
MAX_QUEUE_SIZE = 5
REFUND_THRESHOLD = 0.5        # refund ratio must exceed this on cancel
NOT_ENOUGH_COAL = "Not enough coal"

# =============================================================================
# STOREFRONT (timers are in ticks)
# =============================================================================
BASE_CUSTOMER_CHANCE = 10     # percent per check
CUSTOMER_CHECK_INTERVAL = 30
PURCHASE_CHANCE_FACTOR = 0.6  # times demand multiplier
MAX_PURCHASE_FACTOR = 3       # times demand multiplier

# =============================================================================
# CONTRACTS
# =============================================================================
CONTRACT_INTERVAL = 180       # ticks between generation attempts
MAX_CONTRACTS = 3             # standard contracts only
BASIC_CONTRACT_ITEMS = ("nail", "horseshoe", "hinge")

# =============================================================================
# WORKERS
# =============================================================================
REST_RECOVERY = 0.2           # times recovery rate, per tick
CRAFTING_FATIGUE = 0.2        # times fatigue rate, per tick
COAL_TASK_FATIGUE = 0.05
IDLE_FATIGUE = 0.1
HIGH_FATIGUE_RATIO = 0.8
FATIGUE_REARM_RATIO = 0.5
COAL_TASK_REFILL_LEVEL = 20.0

# =============================================================================
# RANDOM EVENTS
# =============================================================================
EVENT_CHECK_INTERVAL = 3600   # ticks
EVENT_CHANCE = 5              # percent per check
MIN_EVENT_CHECK_INTERVAL = 60
PRIME_TIME_HOURS = (9, 14)
PRIME_TIME_BONUS = 1.5

# =============================================================================
# TIME
# =============================================================================
TIME_MULTIPLIER = 60          # game minutes per real second
START_DAY = 1
START_HOUR = 8
WORKDAY_START = 8
WORKDAY_END = 18
