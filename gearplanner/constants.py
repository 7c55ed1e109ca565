"""Planner constants. No mutable state."""

# Equipment slot name -> how many items it holds at once
SLOT_CAPACITY: dict[str, int] = {
    "helmet":    1,
    "goggles":   1,
    "necklace":  1,
    "cloak":     1,
    "bracers":   1,
    "belt":      1,
    "boots":     1,
    "gloves":    1,
    "ring":      2,
    "trinket":   1,
    "armor":     1,
    "main_hand": 1,
    "off_hand":  1,
    "quiver":    1,
}

# Slots the search leaves alone unless asked otherwise (weapon choice is a build decision)
IGNORED_SLOTS: tuple[str, ...] = ("main_hand", "off_hand", "quiver")

# Armor categories an item may declare; "any" fits every build
ARMOR_CATEGORIES: tuple[str, ...] = ("any", "cloth", "light", "medium", "heavy", "docent")

# Bonus type whose values always add up instead of taking the largest
STACKING_BONUS = "stacking"

# ---------------------------------------------------------------------------
# Search defaults
# ---------------------------------------------------------------------------

DEFAULT_DURATION_SECONDS = 15.0
STARTING_TEMPERATURE = 1.0
ITEM_QUALITY_MINIMUM_RATIO = 0.40
PROGRESS_INTERVAL = 16  # iterations between temperature updates

TARGET_ITEMS_MIN_LEVEL = 26
TARGET_ITEMS_MAX_LEVEL = 30

# Score given to a loadout that contributes nothing, keeps acceptance ratios finite
SCORE_FLOOR = 1.0
