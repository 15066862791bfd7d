HORSE_NAMES = (
    "Thunder Bolt", "Silver Arrow", "Midnight Star", "Golden Hooves", "Wind Runner",
    "Storm Chaser", "Royal Gallop", "Diamond Dust", "Swift Spirit", "Blazing Speed",
    "Lucky Charm", "Highland Racer", "Shadow Dancer", "Victory Lap", "Rapid Fire",
    "Mystic Stride", "Brave Heart", "Enchanted Run", "Stellar Dash", "Noble Steed",
    "Epic Journey", "Graceful Gait", "Wild Glory", "Mighty Hoof", "Daring Dash",
)

# One distinct hue per horse in a full pool.
COLORS = (
    "#FF0000",  # red
    "#0000FF",  # blue
    "#008000",  # green
    "#FFFF00",  # yellow
    "#FFA500",  # orange
    "#800080",  # purple
    "#FFC0CB",  # pink
    "#A52A2A",  # brown
    "#000000",  # black
    "#FFFFFF",  # white
    "#808080",  # grey
    "#00FFFF",  # cyan
    "#FF00FF",  # magenta
    "#00FF00",  # lime
    "#008080",  # teal
    "#4B0082",  # indigo
    "#EE82EE",  # violet
    "#800000",  # maroon
    "#000080",  # navy
    "#808000",  # olive
)

ROUND_DISTANCES = (1200, 1400, 1600, 1800, 2000, 2200)

# Relative race length is measured against the shortest rung of the ladder.
SHORTEST_DISTANCE = 1200.0

ERROR_MESSAGES = {
    "horse_generation": "Failed to generate horses",
    "race_generation": "Failed to generate race program",
    "simulation": "Error occurred during race simulation",
    "start": "Failed to start race",
    "transition": "Error during round transition",
}
